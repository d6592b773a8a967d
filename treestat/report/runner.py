"""Walk a tree once and produce its sorted size report."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, List, Optional

from ..common.filesystem import CancellationToken, TransientChildError, walk
from ..config import DEFAULT_CONFIG, TreeStatConfig
from ..logging_utils import log_walk_summary
from .reporter import StableReporter
from .stats import AggregateResult, StatsAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreeReport:
    root: str
    lines: List[str]
    trailer: str
    totals: AggregateResult
    errors: List[TransientChildError] = field(default_factory=list)


class ReportRunner:
    """Feed one walk into a :class:`StatsAggregator` and a :class:`StableReporter`."""

    def __init__(
        self,
        config: Optional[TreeStatConfig] = None,
        *,
        stream: Optional[IO[str]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self._stream = stream
        self._cancel_token = cancel_token

    def run(self, root: str | Path) -> TreeReport:
        walker = walk(root, self.config.walk, cancel_token=self._cancel_token)
        logger.debug(
            "walking tree",
            extra={"_ts_root": str(root), "_ts_mode": self.config.walk.mode},
        )
        aggregator = StatsAggregator()
        reporter = self._new_reporter()
        for entry in walker:
            aggregator.add(entry)
            reporter.add(entry)

        totals = aggregator.result
        log_walk_summary(
            logger,
            root=str(root),
            file_count=totals.file_count,
            total_bytes=totals.total_bytes,
            skipped=len(walker.errors),
        )
        return TreeReport(
            root=str(root),
            lines=reporter.lines(),
            trailer=reporter.trailer(totals),
            totals=totals,
            errors=list(walker.errors),
        )

    def report(self, root: str | Path) -> TreeReport:
        """Run the walk and write the report to the output stream."""

        result = self.run(root)
        self._new_reporter().write(result.lines, result.trailer)
        return result

    def _new_reporter(self) -> StableReporter:
        return StableReporter(
            self._stream,
            thousands_separator=self.config.report.thousands_separator,
        )


__all__ = ["ReportRunner", "TreeReport"]
