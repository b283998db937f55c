"""
Session-level rollups derived from count lines.

Nothing here is stored: every read of a session recomputes the totals from
its current lines, so they cannot drift from the lines they summarise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Protocol


class _CountLine(Protocol):
    counted_quantity: Optional[int]
    deviation: Optional[int]


@dataclass(frozen=True)
class CountRollup:
    total_items: int = 0
    completed_items: int = 0
    total_deviations: int = 0
    has_deviations: bool = False


def summarize(lines: Iterable[_CountLine]) -> CountRollup:
    total_items = 0
    completed_items = 0
    total_deviations = 0
    has_deviations = False
    for line in lines:
        total_items += 1
        if line.counted_quantity is not None:
            completed_items += 1
        deviation = line.deviation or 0
        total_deviations += abs(deviation)
        if deviation != 0:
            has_deviations = True
    return CountRollup(
        total_items=total_items,
        completed_items=completed_items,
        total_deviations=total_deviations,
        has_deviations=has_deviations,
    )


def has_deviation(line: _CountLine) -> bool:
    return line.deviation is not None and line.deviation != 0
