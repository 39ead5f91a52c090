"""Monochrome page-organised framebuffer and an SSD1306 display driver."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Callable

from .font import FONT_8X5, Font

_BMP_HEADER_SIZE = 54


class Command(IntEnum):
    """SSD1306 command bytes."""

    SET_CONTRAST = 0x81
    SET_ENTIRE_ON = 0xA4
    SET_NORM_INV = 0xA6
    SET_DISP = 0xAE
    SET_MEM_ADDR = 0x20
    SET_COL_ADDR = 0x21
    SET_PAGE_ADDR = 0x22
    SET_DISP_START_LINE = 0x40
    SET_SEG_REMAP = 0xA0
    SET_MUX_RATIO = 0xA8
    SET_COM_OUT_DIR = 0xC0
    SET_DISP_OFFSET = 0xD3
    SET_COM_PIN_CFG = 0xDA
    SET_DISP_CLK_DIV = 0xD5
    SET_PRECHARGE = 0xD9
    SET_VCOM_DESEL = 0xDB
    SET_CHARGE_PUMP = 0x8D


class Framebuffer:
    """A 1-bit image laid out in 8-pixel-high pages, one byte per column per page."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be positive")
        if height % 8:
            raise ValueError("height must be a multiple of 8")
        self.width = width
        self.height = height
        self.pages = height // 8
        self._buffer = bytearray(self.pages * width)

    @property
    def buffer(self) -> bytes:
        """A copy of the raw page-organised pixel data."""
        return bytes(self._buffer)

    def _in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def clear(self) -> None:
        """Turn every pixel off."""
        self._buffer[:] = bytes(len(self._buffer))

    def clear_pixel(self, x: int, y: int) -> None:
        """Turn one pixel off; coordinates outside the screen are ignored."""
        if self._in_bounds(x, y):
            self._buffer[x + self.width * (y >> 3)] &= ~(1 << (y & 7)) & 0xFF

    def draw_pixel(self, x: int, y: int) -> None:
        """Turn one pixel on; coordinates outside the screen are ignored."""
        if self._in_bounds(x, y):
            self._buffer[x + self.width * (y >> 3)] |= 1 << (y & 7)

    def get_pixel(self, x: int, y: int) -> bool:
        """Whether a pixel is on; pixels outside the screen are off."""
        if not self._in_bounds(x, y):
            return False
        return bool(self._buffer[x + self.width * (y >> 3)] >> (y & 7) & 1)

    def draw_line(self, x1: int, y1: int, x2: int, y2: int) -> None:
        """Draw a line, stepping one pixel per column."""
        if x1 > x2:
            x1, y1, x2, y2 = x2, y2, x1, y1
        if x1 == x2:
            for y in range(min(y1, y2), max(y1, y2) + 1):
                self.draw_pixel(x1, y)
            return
        slope = (y2 - y1) / (x2 - x1)
        for x in range(x1, x2 + 1):
            self.draw_pixel(x, int(slope * (x - x1) + y1))

    def clear_square(self, x: int, y: int, width: int, height: int) -> None:
        """Turn off every pixel of a rectangle."""
        for i in range(width):
            for j in range(height):
                self.clear_pixel(x + i, y + j)

    def draw_square(self, x: int, y: int, width: int, height: int) -> None:
        """Turn on every pixel of a rectangle."""
        for i in range(width):
            for j in range(height):
                self.draw_pixel(x + i, y + j)

    def draw_empty_square(self, x: int, y: int, width: int, height: int) -> None:
        """Draw the outline of a rectangle spanning width+1 by height+1 pixels."""
        self.draw_line(x, y, x + width, y)
        self.draw_line(x, y + height, x + width, y + height)
        self.draw_line(x, y, x, y + height)
        self.draw_line(x + width, y, x + width, y + height)

    def draw_char(
        self, x: int, y: int, scale: int, char: str, font: Font | None = None
    ) -> None:
        """Draw one character; characters the font lacks are skipped."""
        font = font or FONT_8X5
        if not font.has_char(char):
            return
        rows = font.parts_per_line * 8
        for w, column in enumerate(font.glyph(char)):
            for j in range(rows):
                if column >> j & 1:
                    self.draw_square(x + w * scale, y + j * scale, scale, scale)

    def draw_string(
        self, x: int, y: int, scale: int, text: str, font: Font | None = None
    ) -> None:
        """Draw text left to right starting at (x, y)."""
        font = font or FONT_8X5
        step = font.advance * scale
        for index, char in enumerate(text):
            self.draw_char(x + index * step, y, scale, char, font)

    def draw_bmp(self, data: bytes, x_offset: int = 0, y_offset: int = 0) -> None:
        """Draw an uncompressed monochrome BMP image, lighting its black pixels."""
        data = bytes(data)
        if len(data) < _BMP_HEADER_SIZE:
            raise ValueError("data is smaller than a BMP header")
        (pixel_offset,) = struct.unpack_from("<I", data, 10)
        (info_size,) = struct.unpack_from("<I", data, 14)
        (img_width,) = struct.unpack_from("<I", data, 18)
        (img_height,) = struct.unpack_from("<i", data, 22)
        (bit_count,) = struct.unpack_from("<H", data, 28)
        (compression,) = struct.unpack_from("<I", data, 30)
        if bit_count != 1:
            raise ValueError("BMP image is not monochrome")
        if compression != 0:
            raise ValueError("BMP image is compressed")

        table_start = 14 + info_size
        color_val = 0
        for index in range(2):
            entry = table_start + index * 4
            if not any(data[entry:entry + 3]):
                color_val = index
                break

        bytes_per_line = (img_width + 7) // 8
        bytes_per_line = (bytes_per_line + 3) & ~3

        if img_height > 0:
            rows = range(img_height - 1, -1, -1)
        else:
            rows = range(-img_height)
        needed = pixel_offset + len(rows) * bytes_per_line
        if len(data) < needed:
            raise ValueError("BMP pixel data is truncated")

        for line_index, y in enumerate(rows):
            start = pixel_offset + line_index * bytes_per_line
            line = data[start:start + bytes_per_line]
            for x in range(img_width):
                if (line[x >> 3] >> (7 - (x & 7))) & 1 == color_val:
                    self.draw_pixel(x_offset + x, y_offset + y)

    def to_text(self) -> str:
        """Render the image as lines of '#' (on) and '.' (off), one per pixel row."""
        return "\n".join(
            "".join("#" if self.get_pixel(x, y) else "." for x in range(self.width))
            for y in range(self.height)
        )


def init_commands(width: int, height: int, external_vcc: bool = False) -> bytes:
    """The command sequence that configures and switches on an SSD1306."""
    return bytes((
        Command.SET_DISP,
        Command.SET_DISP_CLK_DIV,
        0x80,
        Command.SET_MUX_RATIO,
        (height - 1) & 0xFF,
        Command.SET_DISP_OFFSET,
        0x00,
        Command.SET_DISP_START_LINE,
        Command.SET_CHARGE_PUMP,
        0x10 if external_vcc else 0x14,
        Command.SET_SEG_REMAP | 0x01,
        Command.SET_COM_OUT_DIR | 0x08,
        Command.SET_COM_PIN_CFG,
        0x02 if width > 2 * height else 0x12,
        Command.SET_CONTRAST,
        0xFF,
        Command.SET_PRECHARGE,
        0x22 if external_vcc else 0xF1,
        Command.SET_VCOM_DESEL,
        0x30,
        Command.SET_ENTIRE_ON,
        Command.SET_NORM_INV,
        Command.SET_DISP | 0x01,
        Command.SET_MEM_ADDR,
        0x00,
    ))


class SSD1306(Framebuffer):
    """An SSD1306 display reached through a ``write(address, data)`` callable."""

    def __init__(
        self,
        width: int,
        height: int,
        address: int,
        write: Callable[[int, bytes], object],
        external_vcc: bool = False,
    ) -> None:
        super().__init__(width, height)
        self.address = address
        self.external_vcc = external_vcc
        self._write = write
        for command in init_commands(width, height, external_vcc):
            self._command(command)

    def _command(self, value: int) -> None:
        self._write(self.address, bytes((0x00, value & 0xFF)))

    def poweroff(self) -> None:
        """Switch the panel off."""
        self._command(Command.SET_DISP | 0x00)

    def poweron(self) -> None:
        """Switch the panel on."""
        self._command(Command.SET_DISP | 0x01)

    def contrast(self, value: int) -> None:
        """Set the contrast level, 0 to 255."""
        self._command(Command.SET_CONTRAST)
        self._command(value)

    def invert(self, inv: int) -> None:
        """Invert the display when ``inv`` is odd, restore it otherwise."""
        self._command(Command.SET_NORM_INV | (int(inv) & 1))

    def show(self) -> None:
        """Send the whole framebuffer to the panel."""
        column_start, column_end = 0, self.width - 1
        if self.width == 64:
            column_start += 32
            column_end += 32
        payload = (
            Command.SET_COL_ADDR, column_start, column_end,
            Command.SET_PAGE_ADDR, 0, self.pages - 1,
        )
        for value in payload:
            self._command(value)
        self._write(self.address, b"\x40" + bytes(self._buffer))