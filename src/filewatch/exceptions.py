"""Custom exceptions for the filewatch package."""

import errno
from typing import Optional


# inotify reports instance exhaustion as EMFILE and watch exhaustion as ENOSPC
RESOURCE_EXHAUSTED_ERRNOS = frozenset({errno.EMFILE, errno.ENFILE, errno.ENOSPC})


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class NativeWatchError(WatcherError):
    """The native watch facility failed to subscribe to a path."""
    def __init__(self, message: str, path: Optional[str] = None, code: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.code = code


class ResourceExhaustedError(NativeWatchError):
    """No more native watch handles can be allocated."""
    pass


def classify_os_error(path: str, err: OSError) -> NativeWatchError:
    """
    Wrap an OSError raised by the native facility.

    Args:
        path: Path that was being subscribed to
        err: The underlying error

    Returns:
        ResourceExhaustedError for handle/watch limits, NativeWatchError otherwise
    """
    if err.errno in RESOURCE_EXHAUSTED_ERRNOS:
        error = ResourceExhaustedError(
            f"Out of native watch handles while watching {path}: {err}",
            path=path,
            code=err.errno,
        )
    else:
        error = NativeWatchError(f"Cannot watch {path}: {err}", path=path, code=err.errno)
    error.__cause__ = err
    return error
