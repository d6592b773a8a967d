"""Deterministic text report for walked entries."""
from __future__ import annotations

import locale
import os
import sys
from typing import IO, Iterable, List, Optional, Sequence, Tuple

from ..common.filesystem import Entry
from .stats import AggregateResult, StatsAggregator


def format_entry(entry: Entry) -> str:
    return f"{entry.relative_path} => {entry.size}\n"


def format_bytes(value: int, thousands_separator: Optional[str] = None) -> str:
    """Group the digits of *value* in threes.

    With no separator the active ``LC_NUMERIC`` locale decides, so callers
    that need stable output should pass one explicitly.
    """

    if thousands_separator is None:
        return locale.format_string("%d", value, grouping=True)
    return f"{value:,d}".replace(",", thousands_separator)


def format_total(result: AggregateResult, thousands_separator: Optional[str] = None) -> str:
    total = format_bytes(result.total_bytes, thousands_separator)
    return f"Total: {result.file_count} files, {total} bytes\n"


class StableReporter:
    """Collect formatted entries, sort them, and write the report.

    Filesystem listing order never reaches the output: lines are sorted by
    code point before anything is written.
    """

    def __init__(
        self,
        stream: Optional[IO[str]] = None,
        *,
        thousands_separator: Optional[str] = None,
    ) -> None:
        self._stream = stream
        self.thousands_separator = thousands_separator
        self._buffer: List[str] = []

    def add(self, entry: Entry) -> None:
        self._buffer.append(format_entry(entry))

    def lines(self) -> List[str]:
        return sorted(self._buffer)

    def trailer(self, result: AggregateResult) -> str:
        return format_total(result, self.thousands_separator)

    def render(self, entries: Iterable[Entry]) -> Tuple[List[str], str]:
        """Consume *entries* and return ``(sorted_lines, trailer)`` for them alone.

        The incremental ``add`` buffer is left untouched.
        """

        aggregator = StatsAggregator()
        lines: List[str] = []
        for entry in entries:
            aggregator.add(entry)
            lines.append(format_entry(entry))
        return sorted(lines), self.trailer(aggregator.result)

    def write(self, lines: Sequence[str], trailer: str) -> None:
        """Write the report.

        Paths that are not valid in the filesystem encoding come back from
        ``os.scandir`` as surrogate escapes. When the stream has a binary
        buffer the lines are re-encoded with ``os.fsencode`` so the original
        bytes reach the output.
        """

        stream = self._stream if self._stream is not None else sys.stdout
        binary = getattr(stream, "buffer", None)
        if binary is None:
            stream.writelines(lines)
            stream.write(trailer)
            stream.flush()
            return
        stream.flush()
        binary.writelines(os.fsencode(line) for line in lines)
        binary.write(os.fsencode(trailer))
        binary.flush()
