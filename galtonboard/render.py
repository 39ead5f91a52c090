"""Drawing the board, the histogram and rotated text onto a framebuffer."""

from __future__ import annotations

from .board import DEFAULT_RADIUS, DISPLAY_HEIGHT, DISPLAY_WIDTH, MAX_BIN_QTY, Board
from .font import FONT_8X5, Font
from .framebuffer import Framebuffer

_BIN_WALL_DEPTH = 35
_QTY_X = 13
_QTY_Y = 1
_QTY_MAX_DIGITS = 3


def draw_char_sideways(
    fb: Framebuffer, y: int, x: int, scale: int, char: str, font: Font | None = None
) -> None:
    """Draw a character rotated a quarter turn, its top facing the left edge."""
    font = font or FONT_8X5
    if not font.has_char(char):
        return
    rows = font.parts_per_line * 8
    for w, column in enumerate(font.glyph(char)):
        py = y + (font.width - 1 - w) * scale
        for bit in range(rows):
            if column >> bit & 1:
                fb.draw_square(x + bit * scale, py, scale, scale)


def draw_text_sideways(fb: Framebuffer, start_x: int, y: int, text: str) -> None:
    """Draw rotated text, each character placed one advance before the last."""
    for index, char in enumerate(text):
        draw_char_sideways(fb, start_x - index * FONT_8X5.advance, y, 1, char)


def set_histogram_line(fb: Framebuffer, x_l: int, x_h: int, count: int) -> None:
    """Draw a histogram bar ``count`` columns deep across rows x_l to x_h."""
    for i in range(1, count + 1):
        fb.draw_line(DISPLAY_WIDTH - i, x_l, DISPLAY_WIDTH - i, x_h)


def draw_pins(fb: Framebuffer, board: Board) -> None:
    """Draw every pin as a small disc."""
    r_squared = DEFAULT_RADIUS * DEFAULT_RADIUS
    offsets = range(-DEFAULT_RADIUS, DEFAULT_RADIUS + 1)
    for pin in board.pins:
        for dy in offsets:
            for dx in offsets:
                if dx * dx + dy * dy <= r_squared:
                    fb.draw_pixel(pin.x + dx, pin.y + dy)


def draw_bins(fb: Framebuffer, board: Board) -> None:
    """Draw the outer walls and the dividers between bins."""
    fb.draw_line(DISPLAY_WIDTH - _BIN_WALL_DEPTH, 0, DISPLAY_WIDTH, 0)
    fb.draw_line(
        DISPLAY_WIDTH - _BIN_WALL_DEPTH, DISPLAY_HEIGHT - 1,
        DISPLAY_WIDTH, DISPLAY_HEIGHT - 1,
    )
    for slot in board.bins[:MAX_BIN_QTY - 1]:
        fb.draw_line(DISPLAY_WIDTH - slot.y, slot.x_h, DISPLAY_WIDTH, slot.x_h)


def draw_balls(fb: Framebuffer, board: Board, radius: int = DEFAULT_RADIUS) -> None:
    """Draw every visible ball as a disc of the given radius."""
    limit = radius * radius + 1
    offsets = range(-radius, radius + 1)
    for ball in board.balls:
        if not ball.visible:
            continue
        for dy in offsets:
            for dx in offsets:
                if dx * dx + dy * dy <= limit:
                    fb.draw_pixel(ball.x + dx, ball.y + dy)


def draw_ball_qty(fb: Framebuffer, qty: int) -> None:
    """Draw the number of balls released so far, at most three digits."""
    draw_text_sideways(fb, _QTY_X, _QTY_Y, str(qty)[:_QTY_MAX_DIGITS])


def draw_histogram(fb: Framebuffer, board: Board) -> None:
    """Update the board's histogram and draw its bars."""
    for x_l, x_h, count in board.update_histogram():
        set_histogram_line(fb, x_l, x_h, count)