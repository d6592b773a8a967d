"""Size and file-count totals over walked entries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..common.filesystem import Entry


@dataclass(frozen=True)
class AggregateResult:
    total_bytes: int = 0
    file_count: int = 0


class StatsAggregator:
    """Sum sizes and count files. Directories contribute nothing.

    Totals are plain sums, so the result does not depend on the order the
    entries arrive in.
    """

    def __init__(self) -> None:
        self._total_bytes = 0
        self._file_count = 0

    def add(self, entry: Entry) -> None:
        if entry.is_directory:
            return
        self._total_bytes += entry.size
        self._file_count += 1

    @property
    def result(self) -> AggregateResult:
        return AggregateResult(total_bytes=self._total_bytes, file_count=self._file_count)


def accumulate(entries: Iterable[Entry]) -> AggregateResult:
    """Return the totals for *entries*, consuming the iterable."""

    aggregator = StatsAggregator()
    for entry in entries:
        aggregator.add(entry)
    return aggregator.result
