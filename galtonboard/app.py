"""Running a Galton board simulation from menu choices to the final tally."""

from __future__ import annotations

import argparse
import random
import sys
from dataclasses import dataclass
from typing import Sequence

from .board import DEFAULT_RADIUS, DISPLAY_HEIGHT, DISPLAY_WIDTH, Bias, Board
from .framebuffer import Framebuffer
from .menu import Menu
from .render import (
    draw_ball_qty,
    draw_balls,
    draw_bins,
    draw_histogram,
    draw_pins,
    draw_text_sideways,
)
from .rng import RandomSource, RngMode

PIN_ROWS = 6
TICK_INTERVAL_MS = 20
FRAME_INTERVAL_MS = 33
SPAWN_EVERY_FRAMES = 3
END_DELAY_POLLS = 80
BALLS_BASE = 100
BALLS_STEP = 100

_BIN_COLUMN_X = 55
_QTY_COLUMN_X = 20
_COUNT_COLUMN_X = 15
_TABLE_TOP = 5
_TABLE_ROW_HEIGHT = 9
_BIN_LABEL_CHARS = 3
_COUNT_CHARS = 5


@dataclass(frozen=True)
class Settings:
    """The choices a run is started with."""

    rng: RngMode = RngMode.SIMPLE
    bias: Bias = Bias.NONE
    max_ball_spawn: int = BALLS_BASE

    def __post_init__(self) -> None:
        object.__setattr__(self, "rng", RngMode(self.rng))
        object.__setattr__(self, "bias", Bias(self.bias))
        if self.max_ball_spawn < 0:
            raise ValueError("the number of balls cannot be negative")


def settings_from_menu(menu: Menu) -> Settings:
    """Read the generator, bias and ball count chosen on a finished menu."""
    if not menu.finished():
        raise ValueError("the menu has not been completed")
    if len(menu.pages) < 4:
        raise ValueError("the menu lacks the generator, bias or ball pages")
    choices = [page.saved_index for page in menu.pages[1:4]]
    if any(choice is None for choice in choices):
        raise ValueError("a menu page has no saved choice")
    rng_choice, bias_choice, balls_choice = choices
    return Settings(
        rng=RngMode(rng_choice),
        bias=Bias(bias_choice),
        max_ball_spawn=BALLS_BASE + BALLS_STEP * balls_choice,
    )


class Simulation:
    """Drives the board with physics ticks and display frames."""

    def __init__(
        self,
        settings: Settings,
        rng: RandomSource | None = None,
        fb: Framebuffer | None = None,
    ) -> None:
        self.settings = settings
        self.rng = rng if rng is not None else RandomSource(settings.rng)
        self.fb = fb if fb is not None else Framebuffer(DISPLAY_WIDTH, DISPLAY_HEIGHT)
        self.board = Board(self.rng, settings.bias)
        self.board.populate_pins(PIN_ROWS)
        self.board.populate_bins()
        self.spawned = 0
        self.ended = False
        self._polled = 0

    def _show(self) -> None:
        show = getattr(self.fb, "show", None)
        if callable(show):
            show()

    def tick(self) -> bool:
        """Advance the balls; False once the run has ended."""
        self.board.step()
        return not self.ended

    def frame(self) -> bool:
        """Release balls, redraw the board; False once the end screen is shown."""
        limit = self.settings.max_ball_spawn
        self._polled += 1
        if self._polled >= SPAWN_EVERY_FRAMES and self.spawned < limit:
            self.board.spawn_ball()
            self.spawned += 1
            self._polled = 0
        if self.spawned >= limit:
            self._polled += 1
            if self._polled > END_DELAY_POLLS:
                self.ended = True
                self.end_sequence()
                return False

        fb = self.fb
        fb.clear()
        draw_pins(fb, self.board)
        draw_bins(fb, self.board)
        draw_balls(fb, self.board, DEFAULT_RADIUS)
        draw_ball_qty(fb, self.spawned)
        draw_histogram(fb, self.board)
        self._show()
        return True

    def end_sequence(self) -> None:
        """Draw the final table of bins and their counts."""
        fb = self.fb
        fb.clear()
        draw_text_sideways(fb, _BIN_COLUMN_X, _TABLE_TOP, "BIN")
        draw_text_sideways(fb, _QTY_COLUMN_X, _TABLE_TOP, "QTY")
        for number, slot in enumerate(self.board.bins, start=1):
            row_y = _TABLE_TOP + number * _TABLE_ROW_HEIGHT
            draw_text_sideways(fb, _BIN_COLUMN_X, row_y, str(number)[:_BIN_LABEL_CHARS])
            draw_text_sideways(fb, _COUNT_COLUMN_X, row_y, str(slot.count)[:_COUNT_CHARS])
        self._show()

    def run(self) -> list[int]:
        """Run to the end on a simulated clock and return the count of each bin."""
        next_tick = TICK_INTERVAL_MS
        next_frame = FRAME_INTERVAL_MS
        ticking = framing = True
        while ticking or framing:
            if ticking and (not framing or next_tick <= next_frame):
                ticking = self.tick()
                next_tick += TICK_INTERVAL_MS
            else:
                framing = self.frame()
                next_frame += FRAME_INTERVAL_MS
        return [slot.count for slot in self.board.bins]


_RNG_CHOICES = {"simple": RngMode.SIMPLE, "sdk": RngMode.PICO_SDK}
_BIAS_CHOICES = {"none": Bias.NONE, "left": Bias.LEFT, "right": Bias.RIGHT}
_BALL_CHOICES = tuple(BALLS_BASE + BALLS_STEP * i for i in range(4))


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="galtonboard", description="Simulate a Galton board and tally its bins."
    )
    parser.add_argument("--rng", choices=sorted(_RNG_CHOICES), default="simple")
    parser.add_argument("--bias", choices=sorted(_BIAS_CHOICES), default="none")
    parser.add_argument("--balls", type=int, choices=_BALL_CHOICES, default=BALLS_BASE)
    parser.add_argument("--seed", type=int, default=None, help="seed for repeatable runs")
    parser.add_argument("--show", action="store_true", help="print the final screen")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run one simulation and print how many balls fell into each bin."""
    args = _parser().parse_args(argv)
    settings = Settings(
        rng=_RNG_CHOICES[args.rng],
        bias=_BIAS_CHOICES[args.bias],
        max_ball_spawn=args.balls,
    )
    rng = None
    if args.seed is not None:
        generator = random.Random(args.seed)
        rng = RandomSource(
            settings.rng,
            raw_bit=lambda: generator.getrandbits(1),
            rand32=lambda: generator.getrandbits(32),
        )
    simulation = Simulation(settings, rng)
    counts = simulation.run()
    if args.show:
        print(simulation.fb.to_text())
    for number, count in enumerate(counts, start=1):
        print(f"bin {number}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())