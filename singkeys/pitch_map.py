"""Mapping from a sung frequency to the key it stands for.

The supported register is split into ten adjacent half-open ranges
``[low, high)``, each bound to one :class:`Symbol`.  A frequency equal to
a range's lower edge belongs to that range; a frequency equal to its
upper edge belongs to the next range (or to nothing, at the top).
"""

from __future__ import annotations

import bisect
import enum
import math
from typing import Optional


class Symbol(enum.Enum):
    """Abstract key identity produced by classification.

    Values are the friendly key names understood by
    :class:`~singkeys.key_sender.KeySender`.
    """

    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    BACKSPACE = "backspace"
    SYM_X = "x"
    SYM_Z = "z"
    SYM_A = "a"
    SYM_S = "s"
    CONFIRM = "enter"

    @property
    def key_name(self) -> str:
        return self.value


# (low Hz inclusive, high Hz exclusive, symbol), sorted by ``low``.
PITCH_TABLE: tuple[tuple[float, float, Symbol], ...] = (
    (100.0, 115.0, Symbol.DOWN),
    (115.0, 130.0, Symbol.LEFT),
    (130.0, 145.0, Symbol.RIGHT),
    (145.0, 160.0, Symbol.UP),
    (160.0, 175.0, Symbol.BACKSPACE),
    (175.0, 200.0, Symbol.SYM_X),
    (200.0, 230.0, Symbol.SYM_Z),
    (230.0, 270.0, Symbol.SYM_A),
    (270.0, 305.0, Symbol.SYM_S),
    (305.0, 338.0, Symbol.CONFIRM),
)

_LOW_EDGES: tuple[float, ...] = tuple(row[0] for row in PITCH_TABLE)


def classify(frequency: float) -> Optional[Symbol]:
    """Return the symbol whose range contains ``frequency``, if any."""
    if not math.isfinite(frequency) or frequency <= 0.0:
        return None
    idx = bisect.bisect_right(_LOW_EDGES, frequency) - 1
    if idx < 0:
        return None
    low, high, symbol = PITCH_TABLE[idx]
    if low <= frequency < high:
        return symbol
    return None


__all__ = ["Symbol", "PITCH_TABLE", "classify"]
