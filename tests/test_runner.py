import io
import json
import os
from pathlib import Path

import pytest

from treestat.common.filesystem import NotFoundError, TreeWalker
from treestat.config import ReportOptions, TreeStatConfig, WalkOptions
from treestat.logging_utils import setup_logging
from treestat.report.runner import ReportRunner
from treestat.report.stats import AggregateResult


def comma_config(**walk) -> TreeStatConfig:
    return TreeStatConfig(walk=WalkOptions(**walk), report=ReportOptions(thousands_separator=","))


def test_report_scenario(sample_tree: Path) -> None:
    stream = io.StringIO()

    result = ReportRunner(comma_config(), stream=stream).report(sample_tree)

    assert stream.getvalue() == "a => 5\nb => 0\nb/c => 10\nTotal: 2 files, 15 bytes\n"
    assert result.totals == AggregateResult(total_bytes=15, file_count=2)
    assert result.errors == []


def test_report_empty_directory(make_tree) -> None:
    stream = io.StringIO()

    ReportRunner(comma_config(), stream=stream).report(make_tree({}))

    assert stream.getvalue() == "Total: 0 files, 0 bytes\n"


def test_repeated_runs_are_identical(make_tree) -> None:
    layout = {f"dir{i}/file{j}": b"x" * (i * 10 + j) for i in range(4) for j in range(5)}
    layout.update({"top.bin": b"t" * 2048, "empty": None})
    root = make_tree(layout)
    runner = ReportRunner(comma_config())

    first = runner.run(root)
    second = runner.run(root)

    assert first.lines == second.lines
    assert first.totals == second.totals
    assert first.trailer == "Total: 21 files, 2,388 bytes\n"


def test_thousands_grouping_in_trailer(make_tree) -> None:
    root = make_tree({"big": b"0" * 123456})

    result = ReportRunner(comma_config()).run(root)

    assert result.lines == ["big => 123456\n"]
    assert result.trailer == "Total: 1 files, 123,456 bytes\n"


def test_vanished_child_reduces_totals(make_tree, monkeypatch: pytest.MonkeyPatch) -> None:
    root = make_tree({"keep": b"k" * 4, "gone": b"g" * 1000})
    original = TreeWalker._stat_child

    def stat_child(self, path: str):
        if os.path.basename(path) == "gone":
            os.remove(path)
        return original(self, path)

    monkeypatch.setattr(TreeWalker, "_stat_child", stat_child)

    result = ReportRunner(comma_config()).run(root)

    assert result.lines == ["keep => 4\n"]
    assert result.trailer == "Total: 1 files, 4 bytes\n"
    assert [error.relative_path for error in result.errors] == ["gone"]


def test_walk_options_are_applied(make_tree) -> None:
    root = make_tree({"a": None, "a/b": None, "a/b/c": b"123"})

    result = ReportRunner(comma_config(max_depth=1)).run(root)

    assert result.lines == ["a => 0\n", "a/b => 0\n"]
    assert result.totals.file_count == 0


def test_missing_root_writes_nothing(tmp_path: Path) -> None:
    stream = io.StringIO()

    with pytest.raises(NotFoundError):
        ReportRunner(comma_config(), stream=stream).report(tmp_path / "absent")

    assert stream.getvalue() == ""


def test_run_logs_structured_summary(sample_tree: Path) -> None:
    log_stream = io.StringIO()
    setup_logging("treestat", stream=log_stream)

    ReportRunner(comma_config()).run(sample_tree)

    records = [json.loads(line) for line in log_stream.getvalue().splitlines()]
    summary = [record for record in records if record["message"] == "walk complete"]
    assert len(summary) == 1
    assert summary[0]["file_count"] == 2
    assert summary[0]["total_bytes"] == 15
    assert summary[0]["skipped"] == 0
    assert summary[0]["logger"] == "treestat.report.runner"
