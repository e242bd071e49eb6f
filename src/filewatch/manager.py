"""
Watch registry with automatic fallback from native events to polling.

A WatchManager starts in event mode, holding one native subscription per
path. When the host runs out of native watch handles it migrates every
watched path to interval polling and stays there.
"""

import logging
import os
import threading
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .budget import ResourceBudget
from .clock import Clock, Debouncer
from .config import WatchOptions
from .events import EventEmitter
from .exceptions import NativeWatchError, ResourceExhaustedError, classify_os_error
from .facility import NativeWatchFacility, Subscription
from .fs_watcher import WatchdogFacility
from .models import Deleted, EventName, WatchEntry, WatchMode

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

# Events produced while the registry lock is held; published after release.
Notice = Tuple[str, Tuple[Any, ...]]


def _release(debouncer: Debouncer, subscription: Subscription):
    def close():
        debouncer.cancel()
        subscription.close()
    return close


def _as_watch_error(path: str, err: Exception) -> NativeWatchError:
    if isinstance(err, NativeWatchError):
        return err
    if isinstance(err, OSError):
        return classify_os_error(path, err)
    error = NativeWatchError(f"Cannot watch {path}: {err}", path=path)
    error.__cause__ = err
    return error


class WatchManager(EventEmitter):
    """
    Watches an explicit, dynamic set of paths.

    Events:
        change(path, info): ``info`` is a FileStatus, or a Deleted marker
            once the path has disappeared
        fallback(count): native handles ran out and ``count`` paths were
            moved to polling
        error(err): a native failure not recovered by falling back

    Example:
        watcher = WatchManager(WatchOptions(interval_ms=500))
        watcher.on("change", lambda path, info: print(path, info))
        watcher.add("settings.toml")
    """

    def __init__(
        self,
        options: Optional[Union[WatchOptions, Mapping[str, Any]]] = None,
        facility: Optional[NativeWatchFacility] = None,
        clock: Optional[Clock] = None,
        budget: Optional[ResourceBudget] = None,
    ):
        """
        Initialize the manager.

        Args:
            options: WatchOptions, or a mapping accepted by WatchOptions.from_dict
            facility: Native watch facility (defaults to WatchdogFacility)
            clock: Clock used for debouncing
            budget: Exhaustion latch (defaults to the process-wide one)
        """
        super().__init__()
        if options is None:
            options = WatchOptions()
        elif not isinstance(options, WatchOptions):
            options = WatchOptions.from_dict(options)

        self._options = options
        self._clock = clock or Clock()
        self._facility = facility or WatchdogFacility()
        self._budget = budget or ResourceBudget.shared()
        self._mode = WatchMode.POLLING if options.force_polling else WatchMode.EVENT
        self._watchers: Dict[str, WatchEntry] = {}
        self._lock = threading.RLock()

    @property
    def options(self) -> WatchOptions:
        return self._options

    @property
    def mode(self) -> WatchMode:
        return self._mode

    def add(self, path: PathLike) -> None:
        """
        Start watching a path.

        Does nothing if the path is already watched, does not exist, or if
        native handles are known to be exhausted and this manager is not
        polling. Failures are reported through the ``error`` event.

        Args:
            path: File or directory to watch
        """
        with self._lock:
            notices = self._add(os.fspath(path))
        self._publish(notices)

    def remove(self, path: PathLike) -> None:
        """
        Stop watching a path. Unknown paths are ignored.

        Args:
            path: Previously added path
        """
        with self._lock:
            self._remove(os.fspath(path))

    def remove_all(self) -> None:
        """Stop watching every path."""
        with self._lock:
            self._remove_all()

    def list(self) -> List[str]:
        """
        Get the currently watched paths.

        Returns:
            Snapshot list of watched paths
        """
        with self._lock:
            return list(self._watchers)

    def poll(self) -> int:
        """
        Switch to polling mode.

        Invoked internally when the system runs out of native watch
        handles. Every watched path is released and re-added as a polling
        watch. The switch is permanent for this manager.

        Returns:
            Number of paths migrated, 0 if already polling
        """
        with self._lock:
            count, notices = self._poll()
        self._publish(notices)
        return count

    def close(self) -> None:
        """Release every watch."""
        self.remove_all()

    def _add(self, path: str) -> List[Notice]:
        if self._budget.exhausted and self._mode is not WatchMode.POLLING:
            return []

        if path in self._watchers or not self._facility.exists(path):
            return []

        status = self._facility.stat(path)
        if status is None:
            return []

        entry = WatchEntry(path=path, mtime=status.mtime)
        if self._mode is WatchMode.POLLING:
            return self._add_polling(entry)
        return self._add_event(entry)

    def _add_polling(self, entry: WatchEntry) -> List[Notice]:
        path = entry.path
        debounced = self._debouncer(entry)

        try:
            subscription = self._facility.open_polling_subscription(path, self._options, debounced)
        except (NativeWatchError, OSError, RuntimeError) as e:
            debounced.cancel()
            error = _as_watch_error(path, e)
            logger.warning(f"Polling {path} failed: {error}")
            return [(EventName.ERROR, (error,))]

        entry.close_fn = _release(debounced, subscription)
        self._watchers[path] = entry
        logger.debug(f"Watching {path} (polling)")
        return []

    def _add_event(self, entry: WatchEntry) -> List[Notice]:
        path = entry.path
        debounced = self._debouncer(entry)

        try:
            subscription = self._facility.open_event_subscription(path, self._options, debounced)
        except (NativeWatchError, OSError, RuntimeError) as e:
            debounced.cancel()
            return self._open_failed(path, _as_watch_error(path, e))

        entry.close_fn = _release(debounced, subscription)
        self._watchers[path] = entry
        logger.debug(f"Watching {path} (native events)")
        return []

    def _debouncer(self, entry: WatchEntry) -> Debouncer:
        # Watcher threads only touch the debouncer; the check runs on a timer.
        return Debouncer(
            lambda: self._check(entry),
            self._options.debounce_seconds,
            self._clock,
            daemon=not self._options.persistent,
        )

    def _open_failed(self, path: str, error: NativeWatchError) -> List[Notice]:
        if not isinstance(error, ResourceExhaustedError):
            logger.debug(f"Native watch on {path} failed: {error}")
            return [(EventName.ERROR, (error,))]

        if not self._options.fallback:
            self._budget.mark_exhausted()
            return [(EventName.ERROR, (error,))]

        count, notices = self._poll()
        notices.extend(self._add(path))
        if path in self._watchers:
            count += 1
        logger.info(f"Out of native watch handles, moved {count} path(s) to polling")
        notices.append((EventName.FALLBACK, (count,)))
        return notices

    def _poll(self) -> Tuple[int, List[Notice]]:
        if self._mode is WatchMode.POLLING:
            return 0, []

        self._mode = WatchMode.POLLING
        watched = list(self._watchers)
        self._remove_all()

        notices: List[Notice] = []
        for path in watched:
            notices.extend(self._add(path))
        return len(watched), notices

    def _remove(self, path: str) -> bool:
        entry = self._watchers.pop(path, None)
        if entry is None:
            return False
        entry.close()
        logger.debug(f"Stopped watching {path}")
        return True

    def _remove_all(self) -> None:
        for path in list(self._watchers):
            self._remove(path)

    def _check(self, entry: WatchEntry) -> None:
        """Compare a path against its baseline and publish a change."""
        path = entry.path

        with self._lock:
            if self._watchers.get(path) is not entry:
                return

            notices: List[Notice] = []
            # Some native watchers go deaf after one event; swap in a fresh
            # subscription before looking at the file.
            if self._mode is WatchMode.EVENT and self._facility.recreate_on_change:
                self._remove(path)
                notices = self._add(path)
            successor = self._watchers.get(path)

        self._publish(notices)

        status = self._facility.stat(path)

        with self._lock:
            if self._watchers.get(path) is not successor:
                logger.debug(f"Discarding check result for {path}, watch changed meanwhile")
                return

            if status is None:
                if entry.mtime is None:
                    return
                entry.mtime = None
                info = Deleted(path)
            elif status.is_directory or entry.mtime is None or status.mtime > entry.mtime:
                entry.mtime = status.mtime
                info = status
            else:
                return

        self.emit(EventName.CHANGE, path, info)

    def _publish(self, notices: List[Notice]) -> None:
        for event, args in notices:
            self.emit(event, *args)

    def __len__(self) -> int:
        with self._lock:
            return len(self._watchers)

    def __contains__(self, path: PathLike) -> bool:
        with self._lock:
            return os.fspath(path) in self._watchers

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
