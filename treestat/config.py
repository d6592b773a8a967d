"""treestat configuration defaults and YAML loading."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml


LOG_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
DEFAULT_LOG_LEVEL = "WARNING"

MODE_SELF_FIRST = "self_first"
MODE_CHILD_FIRST = "child_first"
MODE_LEAVES_ONLY = "leaves_only"
SUPPORTED_MODES = {MODE_SELF_FIRST, MODE_CHILD_FIRST, MODE_LEAVES_ONLY}

DOT_FILTER_EXACT = "exact"
DOT_FILTER_SUFFIX = "suffix"
SUPPORTED_DOT_FILTERS = {DOT_FILTER_EXACT, DOT_FILTER_SUFFIX}

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class WalkOptions:
    """Traversal knobs for :class:`treestat.common.filesystem.TreeWalker`."""

    mode: str = MODE_SELF_FIRST
    max_depth: Optional[int] = None
    follow_symlinks: bool = False
    dot_filter: str = DOT_FILTER_EXACT
    stat_directory_size: bool = False

    def __post_init__(self) -> None:
        if self.mode not in SUPPORTED_MODES:
            raise ValueError(f"Unsupported walk mode {self.mode!r}")
        if self.dot_filter not in SUPPORTED_DOT_FILTERS:
            raise ValueError(f"Unsupported dot filter {self.dot_filter!r}")
        if self.max_depth is not None:
            if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
                raise ValueError("max_depth must be an integer or null")
            if self.max_depth < 0:
                raise ValueError("max_depth must not be negative")


@dataclass(frozen=True)
class ReportOptions:
    # None groups digits using the active LC_NUMERIC locale.
    thousands_separator: Optional[str] = None
    locale: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("thousands_separator", "locale"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{name} must be a string or null")


@dataclass(frozen=True)
class LoggingOptions:
    level: str = DEFAULT_LOG_LEVEL
    file: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.level, str) or self.level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unsupported log level {self.level!r}")


@dataclass(frozen=True)
class TreeStatConfig:
    walk: WalkOptions = field(default_factory=WalkOptions)
    report: ReportOptions = field(default_factory=ReportOptions)
    logging: LoggingOptions = field(default_factory=LoggingOptions)


DEFAULT_CONFIG = TreeStatConfig()


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return dict(data)


def _build_section(cls, section: str, raw: Any):
    if raw is None:
        return cls()
    if not isinstance(raw, Mapping):
        raise ValueError(f"Configuration section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(
            f"Unknown keys in '{section}' section: " + ", ".join(sorted(map(str, unknown)))
        )
    try:
        return cls(**raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid '{section}' section: {exc}") from exc


def load_config(path: str | Path | None) -> TreeStatConfig:
    if path is None:
        return DEFAULT_CONFIG
    data = _load_yaml(Path(path))
    unknown = set(data) - {"walk", "report", "logging"}
    if unknown:
        raise ValueError("Unknown configuration sections: " + ", ".join(sorted(map(str, unknown))))
    return TreeStatConfig(
        walk=_build_section(WalkOptions, "walk", data.get("walk")),
        report=_build_section(ReportOptions, "report", data.get("report")),
        logging=_build_section(LoggingOptions, "logging", data.get("logging")),
    )


def override(config: TreeStatConfig, **sections: Mapping[str, Any]) -> TreeStatConfig:
    """Return *config* with non-``None`` values from *sections* applied.

    ``override(cfg, walk={"max_depth": 2})`` replaces only ``walk.max_depth``.
    """

    updated: Dict[str, Any] = {}
    for name, values in sections.items():
        current = getattr(config, name)
        changes = {key: value for key, value in values.items() if value is not None}
        updated[name] = replace(current, **changes) if changes else current
    return replace(config, **updated)


__all__ = [
    "DEFAULT_CONFIG",
    "LoggingOptions",
    "ReportOptions",
    "TreeStatConfig",
    "WalkOptions",
    "load_config",
    "override",
]
