"""Galton board state: pins, falling balls, collisions and bins."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

from .rng import RandomSource

DISPLAY_WIDTH = 128
DISPLAY_HEIGHT = 64

FALL_VELOCITY = 0.5
MAX_BALL_QTY = 50
DEFAULT_RADIUS = 1
MAX_BIN_QTY = 7
BIN_DEPTH = 35

_SPAWN_X = 10
_PIN_START = 20
_DESCEND_STEP = 2
_BOUNCE_BACK = 3
_WALK_STEP = 5
_HISTOGRAM_DECAY = 0.70


class _BitSource(Protocol):
    def random_bit(self) -> int: ...

    def random_byte(self) -> int: ...


class Bias(IntEnum):
    """Which way balls tend to fall after hitting a pin."""

    NONE = 0
    LEFT = 1
    RIGHT = 2


@dataclass
class Ball:
    """A round object on the board; pins use the same shape."""

    x: int
    y: int
    radius: int = DEFAULT_RADIUS
    visible: bool = True


@dataclass
class Bin:
    """A slot at the bottom of the board spanning rows x_l to x_h."""

    x_l: int
    x_h: int
    y: int = BIN_DEPTH
    count: int = 0
    visual_count: int = 0


def clamp_inclusive(value: int, lower: int, upper: int) -> int:
    """Limit ``value`` to the closed range [lower, upper]."""
    if value > upper:
        return upper
    if value < lower:
        return lower
    return value


class Board:
    """The pins, balls and bins of one simulation run."""

    def __init__(self, rng: _BitSource | None = None, bias: Bias | int = Bias.NONE) -> None:
        self.rng = rng if rng is not None else RandomSource()
        self.bias = Bias(bias)
        self.balls: list[Ball] = []
        self.pins: list[Ball] = []
        self.bins: list[Bin] = []

    def spawn_ball(self) -> Ball | None:
        """Add a ball at the top; reuse a fallen one when the board is full.

        Returns the new ball, or None when every slot holds a visible ball.
        """
        ball = Ball(x=_SPAWN_X, y=DISPLAY_HEIGHT // 2)
        if len(self.balls) < MAX_BALL_QTY:
            self.balls.append(ball)
            return ball
        for index, old in enumerate(self.balls):
            if not old.visible:
                self.balls[index] = ball
                return ball
        return None

    def populate_bins(self) -> None:
        """Lay out MAX_BIN_QTY equal bins across the board."""
        bin_width = math.floor(DISPLAY_HEIGHT / float(MAX_BIN_QTY) + 0.5)
        self.bins = [
            Bin(x_l=index * bin_width, x_h=(index + 1) * bin_width)
            for index in range(MAX_BIN_QTY)
        ]

    def populate_pins(self, row_qty: int) -> None:
        """Add a triangle of pins with ``row_qty`` rows."""
        if row_qty <= 0:
            return
        total = len(self.pins) + row_qty * (row_qty + 1) // 2
        if total > MAX_BALL_QTY:
            raise ValueError(f"at most {MAX_BALL_QTY} pins fit on the board")

        width, height = DISPLAY_HEIGHT, DISPLAY_WIDTH
        horiz_spacing = width // row_qty
        vert_spacing = (height - _PIN_START) // (row_qty + 4)
        start = width // 2

        for row in range(row_qty):
            row_offset = horiz_spacing / 2.0 * row
            depth = _PIN_START + row * vert_spacing
            for col in range(row + 1):
                across = int(start - row_offset + col * horiz_spacing)
                self.pins.append(Ball(x=depth, y=across))

    def random_walk(self) -> int:
        """Sideways displacement after a collision, following the bias."""
        if self.bias is Bias.NONE:
            go_back = bool(self.rng.random_bit())
        else:
            threshold = 25 if self.bias is Bias.LEFT else 75
            go_back = self.rng.random_byte() % 101 < threshold
        return -_WALK_STEP if go_back else _WALK_STEP

    def _handle_collision(self, ball: Ball) -> None:
        ball.x -= _BOUNCE_BACK
        ball.y = clamp_inclusive(
            ball.y + self.random_walk(),
            ball.radius * 2,
            DISPLAY_HEIGHT - ball.radius * 2,
        )

    def handle_descend(self, ball: Ball) -> None:
        """Move a ball one step down the board."""
        ball.x = clamp_inclusive(
            ball.x + _DESCEND_STEP,
            ball.radius * 2,
            DISPLAY_WIDTH - ball.radius * 2,
        )

    def detect_collision(self, ball: Ball) -> None:
        """Bounce a ball off every pin it touches, in pin order."""
        for pin in self.pins:
            dx = ball.x - pin.x
            dy = ball.y - pin.y
            if math.isqrt(dx * dx + dy * dy) < ball.radius + pin.radius + 1:
                self._handle_collision(ball)

    def detect_oob(self, ball: Ball) -> None:
        """Drop a ball into its bin once it passes the top of the bins."""
        depth = self.bins[0].y if self.bins else 0
        if ball.x > DISPLAY_WIDTH - depth:
            for slot in self.bins:
                if slot.x_l <= ball.y <= slot.x_h:
                    slot.count += 1
                    slot.visual_count += 1
                    break
            ball.visible = False

    def adjust_histogram(self) -> None:
        """Shrink every bar of the displayed histogram to 70 %, rounding up."""
        for slot in self.bins:
            slot.visual_count = math.ceil(slot.visual_count * _HISTOGRAM_DECAY)

    def update_histogram(self) -> list[tuple[int, int, int]]:
        """Keep bars within their bins and return (x_l, x_h, height) per bin.

        Each height is taken right after its own bin is processed, so a
        later rescale does not change bars already reported.
        """
        lines = []
        for slot in self.bins:
            if slot.visual_count > 0:
                slot.visual_count = clamp_inclusive(slot.visual_count, 0, slot.y)
            if slot.visual_count >= slot.y:
                self.adjust_histogram()
            lines.append((slot.x_l, slot.x_h, slot.visual_count))
        return lines

    def step(self) -> None:
        """Advance every visible ball by one tick."""
        for ball in self.balls:
            if ball.visible:
                self.handle_descend(ball)
                self.detect_collision(ball)
                self.detect_oob(ball)