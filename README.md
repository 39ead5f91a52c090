# galtonboard

A Galton board simulation drawn on a 128x64 monochrome framebuffer. The
framebuffer is laid out like the memory of an SSD1306 OLED panel.

Balls enter the board, fall through a triangle of six rows of pins and are
pushed sideways at each pin they touch. They land in seven bins, and a
histogram of the bins grows along the edge of the screen. Once every ball has
been released and the board has had time to empty, the screen shows a table
with the count for each bin.

## Installing

```
pip install .
```

## Running

```
galtonboard
```

This runs one whole simulation and prints how many balls fell into each bin,
one line per bin (`bin 1: ...` to `bin 7: ...`).

Options:

- `--rng {sdk,simple}`: where random bits come from. `simple` debiases raw
  bits with a von Neumann extractor; `sdk` takes the low bit of a 32-bit
  generator. Default `simple`.
- `--bias {left,none,right}`: a fair board, or one that leans to one side.
  Default `none`.
- `--balls {100,200,300,400}`: how many balls to release. Default `100`.
- `--seed N`: seed the random source so that a run can be repeated.
- `--show`: also print the final screen as text, `#` for a lit pixel and `.`
  for a dark one.

## Using it as a library

- `galtonboard.font`: `Font` is a fixed-width bitmap font (`Font.from_bytes`,
  `has_char`, `glyph`); `FONT_8X5` is the built-in font for ASCII 32 to 126.
- `galtonboard.framebuffer`: `Framebuffer` is a pixel buffer with pixels,
  lines, filled and empty squares, text and uncompressed monochrome BMP
  drawing (`draw_bmp`). `to_text()` turns it into a printable picture.
  `SSD1306` is a framebuffer that sends its set-up commands, power, contrast
  and invert commands and its contents (`show()`) through a
  `write(address, data)` callable that you supply. `init_commands` gives the
  set-up command bytes, and `Command` names the command bytes.
- `galtonboard.rng`: `RandomSource` gives random bits and bytes in one of the
  two `RngMode` ways; `von_neumann` debiases a pair of bits.
- `galtonboard.board`: `Board` holds the `Ball`s, pins and `Bin`s and moves
  the balls one tick at a time (`step`). `Bias` picks a fair board or one
  that leans left or right.
- `galtonboard.render`: functions that draw pins, bins, balls, the ball count,
  the histogram and rotated text onto a framebuffer.
- `galtonboard.menu`: the set-up menu. `Page`, `default_pages`, `Menu` with
  `handle_input` and `draw`, and `JoystickReader`, which turns a vertical
  axis reading and a button state into up, down and select presses.
- `galtonboard.app`: `Settings` holds the RNG mode, the bias and the number
  of balls; `settings_from_menu` reads them from a finished `Menu`.
  `Simulation` runs the ticks and frames; `Simulation.run()` runs to the end
  and returns the count of each bin.

## What it does not do

- It does not talk to a display or a joystick by itself. `SSD1306` needs a
  write callable for the bus, and `JoystickReader` needs readings handed to
  it.
- The `galtonboard` command does not show the menu or animate the board. It
  takes its choices from the command line and runs the simulation at full
  speed on a simulated clock. With `--show` it prints only the last screen.

## Tests

```
pip install .[test]
pytest
```