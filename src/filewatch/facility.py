"""
Interface to the operating system's watch primitives.

The WatchManager only talks to the filesystem through a NativeWatchFacility,
so the watcher state machine can run against the real OS (see
``fs_watcher.WatchdogFacility``) or an in-memory stand-in.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from .config import WatchOptions
from .models import FileStatus


class Subscription(ABC):
    """An open native or polling subscription on one path."""

    @abstractmethod
    def close(self) -> None:
        """Release the subscription."""
        pass


class NativeWatchFacility(ABC):
    """Abstract base class for watch-a-path / poll-a-path primitives."""

    #: Event subscriptions may stop delivering after their first event and
    #: must be closed and reopened after every change.
    recreate_on_change: bool = True

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if the path currently exists."""
        pass

    @abstractmethod
    def stat(self, path: str) -> Optional[FileStatus]:
        """
        Query the status of a path.

        Returns:
            The path's status, or None if it does not exist
        """
        pass

    @abstractmethod
    def open_event_subscription(
        self,
        path: str,
        options: WatchOptions,
        callback: Callable[[], None],
    ) -> Subscription:
        """
        Subscribe to native change notifications for a path.

        Args:
            path: Path to watch
            options: Watch options (``persistent`` is honoured)
            callback: Called, possibly from another thread, on every native event

        Returns:
            The open subscription

        Raises:
            ResourceExhaustedError: If no more native handles are available
            NativeWatchError: For any other native failure
        """
        pass

    @abstractmethod
    def open_polling_subscription(
        self,
        path: str,
        options: WatchOptions,
        callback: Callable[[], None],
    ) -> Subscription:
        """
        Stat a path every ``options.interval_ms`` until closed.

        ``callback`` runs only on ticks where the path's status (existence,
        mtime, size or mode) differs from the previous tick.

        Args:
            path: Path being polled
            options: Watch options (``interval_ms`` and ``persistent`` are honoured)
            callback: Called, possibly from another thread, when the path changed

        Returns:
            The open subscription

        Raises:
            NativeWatchError: If the path cannot be polled
        """
        pass
