"""Data models for the filewatch package."""

import logging
import os
import stat as stat_module
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)


class WatchMode(Enum):
    """How a WatchManager subscribes to paths."""
    EVENT = "event"
    POLLING = "polling"


class EventName:
    """Names of the events published by a WatchManager."""
    CHANGE = "change"
    FALLBACK = "fallback"
    ERROR = "error"


@dataclass(frozen=True)
class FileStatus:
    """
    Filesystem status of a watched path.

    Attributes:
        path: The watched path
        is_directory: Whether the path is a directory
        mtime: Modification time as a Unix timestamp
        size: Size in bytes
        mode: Raw st_mode bits
    """
    path: str
    is_directory: bool
    mtime: float
    size: int = 0
    mode: int = 0

    @property
    def deleted(self) -> bool:
        return False

    @classmethod
    def from_stat_result(cls, path: str, result: os.stat_result) -> "FileStatus":
        """Create from the result of os.stat()."""
        return cls(
            path=path,
            is_directory=stat_module.S_ISDIR(result.st_mode),
            mtime=result.st_mtime,
            size=result.st_size,
            mode=result.st_mode,
        )


@dataclass(frozen=True)
class Deleted:
    """Change payload for a watched path that no longer exists."""
    path: str
    deleted: bool = field(default=True, init=False)


ChangeInfo = Union[FileStatus, Deleted]


@dataclass(eq=False)
class WatchEntry:
    """
    One active subscription on one path.

    Attributes:
        path: The watched path, also the registry key
        mtime: Baseline modification time, None once a deletion was reported
        close_fn: Releases the underlying subscription
    """
    path: str
    mtime: Optional[float]
    close_fn: Optional[Callable[[], None]] = None
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the subscription. Only the first call has any effect."""
        if self._closed:
            return
        self._closed = True
        if self.close_fn is None:
            return
        try:
            self.close_fn()
        except Exception as e:
            logger.debug(f"Ignoring error while releasing watch on {self.path}: {e}")
