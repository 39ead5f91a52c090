import struct

import pytest

from galtonboard.font import FONT_8X5
from galtonboard.framebuffer import SSD1306, Command, Framebuffer, init_commands


def make_bmp(rows, top_down=False, bit_count=1, compression=0, black_index=0):
    height = len(rows)
    width = len(rows[0])
    bytes_per_line = ((width + 31) // 32) * 4
    palette = [b"\xff\xff\xff\x00", b"\xff\xff\xff\x00"]
    palette[black_index] = b"\x00\x00\x00\x00"
    stored = rows if top_down else list(reversed(rows))
    pixels = bytearray()
    for row in stored:
        line = bytearray(bytes_per_line)
        for x, lit in enumerate(row):
            bit = black_index if lit else 1 - black_index
            if bit:
                line[x >> 3] |= 0x80 >> (x & 7)
        pixels += line
    offset = 14 + 40 + 8
    info = struct.pack(
        "<IiiHHIIiiII", 40, width, -height if top_down else height, 1,
        bit_count, compression, len(pixels), 0, 0, 2, 2,
    )
    header = b"BM" + struct.pack("<IHHI", offset + len(pixels), 0, 0, offset)
    return header + info + b"".join(palette) + bytes(pixels)


def lit_pixels(fb):
    return {(x, y) for y in range(fb.height) for x in range(fb.width) if fb.get_pixel(x, y)}


PATTERN = [
    [1, 0, 0, 1, 1, 0, 1, 0, 1],
    [0, 1, 1, 0, 0, 0, 0, 1, 0],
    [1, 1, 0, 0, 1, 1, 0, 0, 1],
]


def pattern_pixels(rows, dx=0, dy=0):
    return {(x + dx, y + dy) for y, row in enumerate(rows) for x, v in enumerate(row) if v}


def test_pixel_layout_in_pages():
    fb = Framebuffer(16, 16)
    fb.draw_pixel(3, 9)
    assert fb.buffer[3 + 16 * (9 >> 3)] == 1 << (9 & 7)
    assert fb.get_pixel(3, 9)
    fb.clear_pixel(3, 9)
    assert not fb.get_pixel(3, 9)
    assert not any(fb.buffer)


def test_out_of_bounds_pixels_ignored():
    fb = Framebuffer(8, 8)
    for x, y in [(-1, 0), (0, -1), (8, 0), (0, 8)]:
        fb.draw_pixel(x, y)
        assert not fb.get_pixel(x, y)
    assert not any(fb.buffer)


def test_clear_resets_buffer():
    fb = Framebuffer(8, 8)
    fb.draw_square(0, 0, 8, 8)
    assert all(b == 0xFF for b in fb.buffer)
    fb.clear()
    assert not any(fb.buffer)


def test_invalid_dimensions():
    with pytest.raises(ValueError):
        Framebuffer(8, 10)
    with pytest.raises(ValueError):
        Framebuffer(0, 8)


def test_horizontal_and_vertical_lines():
    fb = Framebuffer(32, 16)
    fb.draw_line(2, 5, 20, 5)
    assert lit_pixels(fb) == {(x, 5) for x in range(2, 21)}
    fb.clear()
    fb.draw_line(7, 12, 7, 1)
    assert lit_pixels(fb) == {(7, y) for y in range(1, 13)}


def test_line_direction_does_not_matter():
    a = Framebuffer(32, 32)
    b = Framebuffer(32, 32)
    a.draw_line(1, 2, 25, 17)
    b.draw_line(25, 17, 1, 2)
    assert a.buffer == b.buffer
    assert a.get_pixel(1, 2) and a.get_pixel(25, 17)


def test_diagonal_line_one_pixel_per_column():
    fb = Framebuffer(16, 16)
    fb.draw_line(0, 0, 15, 15)
    assert lit_pixels(fb) == {(i, i) for i in range(16)}


def test_squares():
    fb = Framebuffer(16, 16)
    fb.draw_square(2, 3, 4, 5)
    assert lit_pixels(fb) == {(x, y) for x in range(2, 6) for y in range(3, 8)}
    fb.clear_square(2, 3, 2, 5)
    assert lit_pixels(fb) == {(x, y) for x in range(4, 6) for y in range(3, 8)}


def test_empty_square_outline():
    fb = Framebuffer(16, 16)
    fb.draw_empty_square(1, 2, 5, 4)
    expected = set()
    for x in range(1, 7):
        expected |= {(x, 2), (x, 6)}
    for y in range(2, 7):
        expected |= {(1, y), (6, y)}
    assert lit_pixels(fb) == expected


def test_draw_char_scale_two_doubles_pixels():
    small = Framebuffer(16, 16)
    big = Framebuffer(16, 16)
    small.draw_char(0, 0, 1, "A")
    big.draw_char(0, 0, 2, "A")
    doubled = {(2 * x + i, 2 * y + j) for x, y in lit_pixels(small) for i in (0, 1) for j in (0, 1)}
    assert lit_pixels(big) == doubled
    assert lit_pixels(small)


def test_draw_char_outside_font_is_skipped():
    fb = Framebuffer(8, 8)
    fb.draw_char(0, 0, 1, "\x7f")
    fb.draw_char(0, 0, 1, "!")
    assert fb.to_text().splitlines() == [
        "..#.....",
        "..#.....",
        "..#.....",
        "..#.....",
        "..#.....",
        "........",
        "..#.....",
        "........",
    ]


def test_draw_string_matches_chars():
    a = Framebuffer(32, 8)
    b = Framebuffer(32, 8)
    a.draw_string(1, 0, 1, "Hi!")
    for i, ch in enumerate("Hi!"):
        b.draw_char(1 + i * FONT_8X5.advance, 0, 1, ch)
    assert a.buffer == b.buffer


def test_to_text():
    fb = Framebuffer(8, 8)
    fb.draw_pixel(1, 0)
    lines = fb.to_text().splitlines()
    assert len(lines) == 8
    assert lines[0] == ".#......"
    assert all(set(line) == {"."} for line in lines[1:])


@pytest.mark.parametrize("top_down", [False, True])
@pytest.mark.parametrize("black_index", [0, 1])
def test_bmp_roundtrip(top_down, black_index):
    fb = Framebuffer(16, 8)
    fb.draw_bmp(make_bmp(PATTERN, top_down=top_down, black_index=black_index))
    assert lit_pixels(fb) == pattern_pixels(PATTERN)


def test_bmp_offset():
    fb = Framebuffer(32, 16)
    fb.draw_bmp(make_bmp(PATTERN), 4, 6)
    assert lit_pixels(fb) == pattern_pixels(PATTERN, 4, 6)


def test_bmp_errors():
    fb = Framebuffer(16, 8)
    with pytest.raises(ValueError):
        fb.draw_bmp(b"BM" + bytes(20))
    with pytest.raises(ValueError):
        fb.draw_bmp(make_bmp(PATTERN, bit_count=24))
    with pytest.raises(ValueError):
        fb.draw_bmp(make_bmp(PATTERN, compression=1))
    with pytest.raises(ValueError):
        fb.draw_bmp(make_bmp(PATTERN)[:-4])
    assert not any(fb.buffer)


def test_init_commands_values():
    cmds = init_commands(128, 64, False)
    assert cmds[0] == Command.SET_DISP
    assert cmds[3] == Command.SET_MUX_RATIO
    assert cmds[4] == 64 - 1
    assert cmds[9] == 0x14
    assert cmds[13] == 0x12
    assert cmds[22] == Command.SET_DISP | 0x01
    ext = init_commands(128, 32, True)
    assert ext[9] == 0x10
    assert ext[17] == 0x22
    assert ext[13] == 0x02


class Recorder:
    def __init__(self):
        self.writes = []

    def __call__(self, address, data):
        self.writes.append((address, bytes(data)))


def test_display_init_sends_commands():
    rec = Recorder()
    SSD1306(128, 64, 0x3C, rec)
    assert rec.writes == [(0x3C, bytes((0, c))) for c in init_commands(128, 64, False)]


def test_display_simple_commands():
    rec = Recorder()
    disp = SSD1306(128, 64, 0x3C, rec)
    rec.writes.clear()
    disp.contrast(100)
    disp.invert(3)
    disp.poweroff()
    disp.poweron()
    assert [d for _, d in rec.writes] == [
        bytes((0, Command.SET_CONTRAST)),
        bytes((0, 100)),
        bytes((0, Command.SET_NORM_INV | 1)),
        bytes((0, Command.SET_DISP)),
        bytes((0, Command.SET_DISP | 1)),
    ]


def test_display_show_sends_buffer():
    rec = Recorder()
    disp = SSD1306(128, 64, 0x3C, rec)
    disp.draw_pixel(0, 0)
    rec.writes.clear()
    disp.show()
    commands = [d[1] for _, d in rec.writes[:-1]]
    assert commands == [Command.SET_COL_ADDR, 0, 127, Command.SET_PAGE_ADDR, 0, 64 // 8 - 1]
    address, data = rec.writes[-1]
    assert address == 0x3C
    assert data[0] == 0x40
    assert data[1:] == disp.buffer
    assert len(data) == 1 + 128 * 8


def test_display_show_64_wide_shifts_columns():
    rec = Recorder()
    disp = SSD1306(64, 48, 0x3C, rec)
    rec.writes.clear()
    disp.show()
    commands = [d[1] for _, d in rec.writes[:-1]]
    assert commands[1:3] == [32, 64 - 1 + 32]