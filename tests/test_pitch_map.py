import math
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from singkeys.pitch_map import PITCH_TABLE, Symbol, classify  # noqa: E402

EPS = 1e-6


@pytest.mark.parametrize("low, high, symbol", PITCH_TABLE)
def test_range_includes_low_edge_and_excludes_high_edge(low, high, symbol) -> None:
    assert classify(low) is symbol
    assert classify(high - EPS) is symbol
    assert classify(high) is not symbol


def test_table_is_contiguous_and_sorted() -> None:
    for (_, high, _), (next_low, _, _) in zip(PITCH_TABLE, PITCH_TABLE[1:]):
        assert high == next_low
    assert [row[2] for row in PITCH_TABLE] == list(Symbol)


@pytest.mark.parametrize("freq", [0.0, 50.0, 99.999, 338.0, 338.5, 440.0, 2000.0])
def test_out_of_register_maps_to_none(freq: float) -> None:
    assert classify(freq) is None


@pytest.mark.parametrize("freq", [-120.0, math.nan, math.inf])
def test_invalid_frequency_maps_to_none(freq: float) -> None:
    assert classify(freq) is None


def test_reference_points() -> None:
    assert classify(120.0) is Symbol.LEFT
    assert classify(220.0) is Symbol.SYM_Z
    assert classify(330.0) is Symbol.CONFIRM
    assert Symbol.CONFIRM.key_name == "enter"
