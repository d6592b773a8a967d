from pathlib import Path

import pytest

pytest.importorskip("yaml")

from treestat.config import (
    DEFAULT_CONFIG,
    LoggingOptions,
    ReportOptions,
    WalkOptions,
    load_config,
    override,
)


def test_load_config_defaults() -> None:
    config = load_config(None)

    assert config is DEFAULT_CONFIG
    assert config.walk == WalkOptions()
    assert config.walk.mode == "self_first"
    assert config.walk.follow_symlinks is False
    assert config.report.thousands_separator is None


def test_load_config(tmp_path: Path) -> None:
    cfg = tmp_path / "treestat.yml"
    cfg.write_text(
        """
walk:
  mode: child_first
  max_depth: 3
  follow_symlinks: true
  dot_filter: suffix
report:
  thousands_separator: "_"
  locale: C
logging:
  level: DEBUG
  file: /tmp/treestat.log
"""
    )

    config = load_config(cfg)

    assert config.walk == WalkOptions(
        mode="child_first", max_depth=3, follow_symlinks=True, dot_filter="suffix"
    )
    assert config.report == ReportOptions(thousands_separator="_", locale="C")
    assert config.logging == LoggingOptions(level="DEBUG", file="/tmp/treestat.log")


def test_load_config_partial_sections(tmp_path: Path) -> None:
    cfg = tmp_path / "treestat.yml"
    cfg.write_text("walk:\n  max_depth: 0\n")

    config = load_config(cfg)

    assert config.walk.max_depth == 0
    assert config.report == ReportOptions()


def test_load_config_empty_file(tmp_path: Path) -> None:
    cfg = tmp_path / "treestat.yml"
    cfg.write_text("")

    assert load_config(cfg) == DEFAULT_CONFIG


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yml")


@pytest.mark.parametrize(
    "body,fragment",
    [
        ("walk:\n  colour: blue\n", "colour"),
        ("walk:\n  mode: breadth_first\n", "walk"),
        ("walk:\n  max_depth: -1\n", "walk"),
        ("walk:\n  dot_filter: prefix\n", "walk"),
        ("logging:\n  level: LOUD\n", "logging"),
        ("extras:\n  a: 1\n", "extras"),
        ("walk: []\n", "walk"),
        ("- a\n- b\n", "mapping"),
    ],
)
def test_load_config_rejects_invalid_values(tmp_path: Path, body: str, fragment: str) -> None:
    cfg = tmp_path / "treestat.yml"
    cfg.write_text(body)

    with pytest.raises(ValueError) as exc:
        load_config(cfg)

    assert fragment in str(exc.value)


def test_override_ignores_none_values() -> None:
    config = override(
        DEFAULT_CONFIG,
        walk={"max_depth": 2, "mode": None},
        report={"thousands_separator": None},
    )

    assert config.walk.max_depth == 2
    assert config.walk.mode == "self_first"
    assert config.report == DEFAULT_CONFIG.report


def test_override_validates() -> None:
    with pytest.raises(ValueError):
        override(DEFAULT_CONFIG, walk={"mode": "sideways"})
