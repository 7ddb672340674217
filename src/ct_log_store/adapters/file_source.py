"""
Filesystem adapter — reads the backing log-list file.

Implements the LogListSource port. The file is read whole on every call
and never kept open. Publishers replace the list by swapping an enclosing
directory (or a symlink to it), so a whole-file read observes either the
old or the new content, never a mix.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()


class FileLogListSource:
    """
    Read the log list from a path on disk.

    Every OSError (missing file, permission denied, path is a directory,
    transient read failure) becomes Result.failure(NOT_FOUND, ...).
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Result[bytes]:
        return (
            Result.from_computation(
                self._path.read_bytes,
                ErrorCode.NOT_FOUND,
                f"Log list not readable at {self._path}",
            )
            .peek(lambda raw: log.debug("source.read", path=str(self._path), size_bytes=len(raw)))
            .peek_failure(
                lambda err: log.warning("source.unreadable", path=str(self._path), error=err.cause())
            )
        )
