"""Move-frequency heatmaps and play-style detection over recorded move logs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Sequence

from .game import BOARD_CELLS, CENTER, CORNERS


class Tendency(str, Enum):
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
    BALANCED = "balanced"


AGGRESSIVE_CORNER_SHARE = 0.5
DEFENSIVE_CENTER_SHARE = 0.3


@dataclass(frozen=True)
class PlayerPattern:
    preferred_positions: List[int]
    tendency: Tendency


def heatmap(moves: Iterable[int]) -> List[int]:
    """Count plays per cell; positions outside 0..8 are skipped."""
    counts = [0] * BOARD_CELLS
    for pos in moves:
        if isinstance(pos, int) and 0 <= pos < BOARD_CELLS:
            counts[pos] += 1
    return counts


def detect_pattern(moves: Sequence[int]) -> PlayerPattern:
    counts = heatmap(moves)
    total = len(moves) or 1

    corner_share = sum(counts[pos] for pos in CORNERS) / total
    center_share = counts[CENTER] / total

    if corner_share > AGGRESSIVE_CORNER_SHARE:
        tendency = Tendency.AGGRESSIVE
    elif center_share > DEFENSIVE_CENTER_SHARE:
        tendency = Tendency.DEFENSIVE
    else:
        tendency = Tendency.BALANCED

    # sorted() is stable, so equal counts keep ascending index order
    ranked = sorted(range(BOARD_CELLS), key=lambda pos: counts[pos], reverse=True)
    return PlayerPattern(preferred_positions=ranked[:3], tendency=tendency)
