"""Aggregation of per-period feed records."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence, Tuple, TypeVar, Union

from app.core.logging import get_logger

log = get_logger("ingestion.runner")

T = TypeVar("T")


def sort_periods(periods: Iterable[str]) -> List[str]:
    """Period keys (YYYYMM), newest first, compared numerically."""
    return sorted(periods, key=int, reverse=True)


def aggregate(periods: Union[Mapping[str, Sequence[T]], Iterable[Tuple[str, Sequence[T]]]]) -> List[T]:
    """Concatenate period entries, newest period first, keeping entry order within a period."""
    pairs = dict(periods.items() if isinstance(periods, Mapping) else periods)

    aggregated: List[T] = []
    for period in sort_periods(pairs):
        aggregated.extend(pairs[period])
    log.debug(f"Aggregated {len(aggregated)} entries from {len(pairs)} periods")
    return aggregated
