"""Random bits from a raw entropy source or a 32-bit generator."""

from __future__ import annotations

import random
from enum import IntEnum
from typing import Callable

_SYSTEM_RANDOM = random.SystemRandom()


class RngMode(IntEnum):
    """Where random bits come from."""

    SIMPLE = 0
    """Debiased raw bits from an entropy source."""
    PICO_SDK = 1
    """The low bit of a 32-bit random number generator."""


def von_neumann(bit1: int, bit2: int) -> int | None:
    """Debias a pair of raw bits: 01 gives 0, 10 gives 1, equal bits give None."""
    if bit1 == 0 and bit2 == 1:
        return 0
    if bit1 == 1 and bit2 == 0:
        return 1
    return None


def _default_raw_bit() -> int:
    return _SYSTEM_RANDOM.getrandbits(1)


def _default_rand32() -> int:
    return _SYSTEM_RANDOM.getrandbits(32)


class RandomSource:
    """Produces random bits and bytes in one of the two :class:`RngMode` ways."""

    def __init__(
        self,
        mode: RngMode | int = RngMode.SIMPLE,
        raw_bit: Callable[[], int] | None = None,
        rand32: Callable[[], int] | None = None,
    ) -> None:
        self.mode = RngMode(mode)
        self._raw_bit = raw_bit or _default_raw_bit
        self._rand32 = rand32 or _default_rand32

    def von_neumann_extractor(self) -> int | None:
        """Read two raw bits and debias them; None when the pair is discarded."""
        first = self._raw_bit() & 1
        second = self._raw_bit() & 1
        return von_neumann(first, second)

    def random_bit(self) -> int:
        """Return one random bit, 0 or 1."""
        if self.mode is RngMode.PICO_SDK:
            return self._rand32() & 1
        while (result := self.von_neumann_extractor()) is None:
            pass
        return result

    def random_byte(self) -> int:
        """Return eight random bits as a byte, the first bit being the most significant."""
        byte = 0
        for _ in range(8):
            byte = (byte << 1) | self.random_bit()
        return byte