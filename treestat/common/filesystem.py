"""Filesystem traversal for treestat.

``TreeWalker`` walks a directory tree depth-first and yields one
:class:`Entry` per node below the root. Its state is an explicit stack of
open directory listings, so a walk can be paused between entries and
resumed with ``has_next()`` / ``get_next()`` (or plain iteration).

Symbolic links are not followed unless ``WalkOptions.follow_symlinks`` is
set. An unfollowed link is reported as a leaf with the size of the link
itself, which keeps link cycles from turning into infinite walks.

Listing order comes straight from the filesystem and differs between
platforms. Anything user-facing must sort the entries first.
"""
from __future__ import annotations

import errno
import logging
import os
import stat
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple

from ..config import (
    DOT_FILTER_SUFFIX,
    MODE_CHILD_FIRST,
    MODE_LEAVES_ONLY,
    WalkOptions,
)

logger = logging.getLogger(__name__)

_DOT_NAMES = frozenset({".", ".."})


class TreeWalkError(Exception):
    """Base class for traversal errors."""


class NotFoundError(TreeWalkError, FileNotFoundError):
    """The walk root does not exist."""


class AccessDeniedError(TreeWalkError, PermissionError):
    """The walk root cannot be read."""


class RootNotDirectoryError(TreeWalkError, NotADirectoryError):
    """The walk root exists but is not a directory."""


class RootUnavailableError(TreeWalkError, OSError):
    """Any other OS failure while opening the walk root."""


class WalkCancelledError(TreeWalkError):
    """Raised when a :class:`CancellationToken` stops a walk."""


class TransientChildError(TreeWalkError):
    """A child that could not be visited. Recorded, never raised by the walker."""

    def __init__(self, relative_path: str, reason: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(relative_path, reason)
        self.relative_path = relative_path
        self.reason = reason
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.relative_path}: {self.reason}"


class CancellationToken:
    """Thread-safe flag checked by the walker before each directory listing."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class Entry:
    """One filesystem node found below the walk root."""

    relative_path: str
    size: int
    is_directory: bool
    is_symlink: bool = False
    depth: int = 0


@dataclass
class _Frame:
    path: str
    prefix: str
    depth: int
    cursor: Iterator[os.DirEntry]
    key: Tuple[int, int]
    # Held back until the listing is exhausted in child_first mode.
    entry: Optional[Entry] = None


@dataclass
class _Child:
    entry: Entry
    path: str
    key: Tuple[int, int]


def _list_directory(path: str) -> List[os.DirEntry]:
    with os.scandir(path) as it:
        return list(it)


class TreeWalker:
    """Single-pass, depth-first cursor over the tree below *root*."""

    def __init__(
        self,
        root: str | Path,
        options: Optional[WalkOptions] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self.root = Path(root)
        self.options = options or WalkOptions()
        self.errors: List[TransientChildError] = []
        self._cancel_token = cancel_token
        self._stack: List[_Frame] = []
        self._active: Set[Tuple[int, int]] = set()
        self._lookahead: Optional[Entry] = None
        self._exhausted = False
        self._open_root()

    def _open_root(self) -> None:
        root = os.fspath(self.root)
        try:
            st = os.stat(root)
        except (FileNotFoundError, NotADirectoryError) as exc:
            # ENOTDIR here means a parent component is a regular file.
            raise NotFoundError(errno.ENOENT, "Root path does not exist", root) from exc
        except PermissionError as exc:
            raise AccessDeniedError(errno.EACCES, "Root path is not accessible", root) from exc
        except OSError as exc:
            raise RootUnavailableError(exc.errno, exc.strerror or str(exc), root) from exc
        if not stat.S_ISDIR(st.st_mode):
            raise RootNotDirectoryError(errno.ENOTDIR, "Root path is not a directory", root)

        self._check_cancelled()
        try:
            listing = _list_directory(root)
        except FileNotFoundError as exc:
            raise NotFoundError(errno.ENOENT, "Root path does not exist", root) from exc
        except NotADirectoryError as exc:
            raise RootNotDirectoryError(errno.ENOTDIR, "Root path is not a directory", root) from exc
        except PermissionError as exc:
            raise AccessDeniedError(errno.EACCES, "Root path is not readable", root) from exc
        except OSError as exc:
            raise RootUnavailableError(exc.errno, exc.strerror or str(exc), root) from exc
        self._push(_Frame(root, "", 0, iter(listing), (st.st_dev, st.st_ino)))

    # -- cursor -----------------------------------------------------------

    def __iter__(self) -> "TreeWalker":
        return self

    def has_next(self) -> bool:
        if self._lookahead is None and not self._exhausted:
            try:
                self._lookahead = self._advance()
            except BaseException:
                self.close()
                raise
            if self._lookahead is None:
                self.close()
        return self._lookahead is not None

    def get_next(self) -> Entry:
        if not self.has_next():
            raise StopIteration
        entry, self._lookahead = self._lookahead, None
        return entry  # type: ignore[return-value]

    __next__ = get_next

    def close(self) -> None:
        """Abandon the walk and drop any pending listings."""

        self._stack.clear()
        self._active.clear()
        self._exhausted = True

    # -- traversal --------------------------------------------------------

    def _advance(self) -> Optional[Entry]:
        mode = self.options.mode
        while self._stack:
            frame = self._stack[-1]
            dirent = next(frame.cursor, None)
            if dirent is None:
                self._pop()
                if frame.entry is not None:
                    return frame.entry
                continue
            if self._skip_name(dirent.name):
                continue

            child = self._visit(frame, dirent)
            if child is None:
                continue
            entry = child.entry

            pushed = False
            if entry.is_directory and self._should_descend(child):
                pushed = self._open_child(child)
            if pushed and mode == MODE_CHILD_FIRST:
                self._stack[-1].entry = entry
                continue
            if entry.is_directory and mode == MODE_LEAVES_ONLY:
                continue
            return entry
        return None

    def _skip_name(self, name: str) -> bool:
        if self.options.dot_filter == DOT_FILTER_SUFFIX:
            return name.endswith(".")
        return name in _DOT_NAMES

    def _stat_child(self, path: str) -> os.stat_result:
        return os.lstat(path)

    def _visit(self, frame: _Frame, dirent: os.DirEntry) -> Optional[_Child]:
        relative_path = frame.prefix + dirent.name
        try:
            st = self._stat_child(dirent.path)
        except OSError as exc:
            self._record(relative_path, exc.strerror or str(exc), exc)
            return None

        is_symlink = stat.S_ISLNK(st.st_mode)
        if is_symlink and self.options.follow_symlinks:
            try:
                st = os.stat(dirent.path)
            except OSError:
                # Dangling or unreadable target; report the link itself.
                pass

        is_directory = stat.S_ISDIR(st.st_mode)
        size = st.st_size
        if is_directory and not self.options.stat_directory_size:
            size = 0
        entry = Entry(
            relative_path=relative_path,
            size=size,
            is_directory=is_directory,
            is_symlink=is_symlink,
            depth=frame.depth,
        )
        return _Child(entry, dirent.path, (st.st_dev, st.st_ino))

    def _should_descend(self, child: _Child) -> bool:
        max_depth = self.options.max_depth
        if max_depth is not None and child.entry.depth >= max_depth:
            return False
        if child.key in self._active:
            self._record(child.entry.relative_path, "symbolic link cycle")
            return False
        return True

    def _open_child(self, child: _Child) -> bool:
        self._check_cancelled()
        try:
            listing = _list_directory(child.path)
        except OSError as exc:
            self._record(child.entry.relative_path, exc.strerror or str(exc), exc)
            return False
        self._push(
            _Frame(
                path=child.path,
                prefix=child.entry.relative_path + "/",
                depth=child.entry.depth + 1,
                cursor=iter(listing),
                key=child.key,
            )
        )
        return True

    def _push(self, frame: _Frame) -> None:
        self._stack.append(frame)
        self._active.add(frame.key)

    def _pop(self) -> None:
        frame = self._stack.pop()
        self._active.discard(frame.key)

    def _check_cancelled(self) -> None:
        if self._cancel_token is not None and self._cancel_token.cancelled:
            raise WalkCancelledError(f"Walk of {self.root} cancelled")

    def _record(self, relative_path: str, reason: str, cause: Optional[BaseException] = None) -> None:
        error = TransientChildError(relative_path, reason, cause)
        self.errors.append(error)
        logger.debug(
            "skipping child",
            extra={"_ts_path": relative_path, "_ts_reason": reason},
        )


def walk(
    root: str | Path,
    options: Optional[WalkOptions] = None,
    *,
    cancel_token: Optional[CancellationToken] = None,
) -> TreeWalker:
    """Start a walk of *root*. Root errors are raised here, not on first use."""

    return TreeWalker(root, options, cancel_token=cancel_token)


__all__ = [
    "AccessDeniedError",
    "CancellationToken",
    "Entry",
    "NotFoundError",
    "RootNotDirectoryError",
    "RootUnavailableError",
    "TransientChildError",
    "TreeWalkError",
    "TreeWalker",
    "WalkCancelledError",
    "walk",
]
