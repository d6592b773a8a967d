import logging
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

TreeLayout = Dict[str, Optional[bytes]]


def build_tree(root: Path, layout: TreeLayout) -> Path:
    """Create files (bytes payload) and directories (``None``) below *root*."""

    root.mkdir(parents=True, exist_ok=True)
    for name, payload in layout.items():
        path = root / name
        if payload is None:
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
    return root


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    def _make(layout: TreeLayout, name: str = "tree") -> Path:
        return build_tree(tmp_path / name, layout)

    return _make


@pytest.fixture
def sample_tree(make_tree) -> Path:
    return make_tree({"a": b"x" * 5, "b": None, "b/c": b"y" * 10})


@pytest.fixture(autouse=True)
def reset_treestat_logger():
    try:
        yield
    finally:
        logger = logging.getLogger("treestat")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
