"""Native watch facility backed by the watchdog library."""

import logging
import os
import threading
from typing import Callable, Optional

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver
from watchdog.events import FileSystemEventHandler

from .config import WatchOptions
from .exceptions import classify_os_error
from .facility import NativeWatchFacility, Subscription
from .models import FileStatus

logger = logging.getLogger(__name__)


class FSEventHandler(FileSystemEventHandler):
    """
    Forwards watchdog events that concern one target path.

    Files are watched through their parent directory, so events for
    siblings are filtered out. For a directory target every event under the
    scheduled directory counts.
    """

    def __init__(self, target: str, callback: Callable[[], None], is_directory: bool = False):
        super().__init__()
        self.target = os.path.abspath(target)
        self.callback = callback
        self.is_directory = is_directory

    def _matches(self, event) -> bool:
        if self.is_directory:
            return True
        if os.path.abspath(os.fsdecode(event.src_path)) == self.target:
            return True
        dest_path = getattr(event, "dest_path", None)
        return bool(dest_path) and os.path.abspath(os.fsdecode(dest_path)) == self.target

    def _emit(self, event) -> None:
        if self._matches(event):
            self.callback()

    def on_created(self, event):
        self._emit(event)

    def on_deleted(self, event):
        self._emit(event)

    def on_modified(self, event):
        self._emit(event)

    def on_moved(self, event):
        self._emit(event)


class ObserverSubscription(Subscription):
    """A dedicated watchdog observer for a single path."""

    def __init__(self, path: str, observer: BaseObserver):
        self.path = path
        self._observer = observer

    def close(self) -> None:
        self._observer.stop()
        if self._observer is not threading.current_thread() and self._observer.is_alive():
            self._observer.join(timeout=5.0)


class WatchdogFacility(NativeWatchFacility):
    """
    Watches paths with one watchdog observer each.

    One observer per path means one native handle per path (an inotify
    instance on Linux), so exhausting the host limit surfaces as
    ResourceExhaustedError from ``open_event_subscription``. Polling uses
    watchdog's PollingObserver, which diffs directory snapshots and only
    dispatches when something actually changed.
    """

    recreate_on_change = True

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def stat(self, path: str) -> Optional[FileStatus]:
        try:
            return FileStatus.from_stat_result(path, os.stat(path))
        except OSError:
            return None

    def open_event_subscription(
        self,
        path: str,
        options: WatchOptions,
        callback: Callable[[], None],
    ) -> Subscription:
        observer = Observer()
        watched_dir = self._start(observer, path, options, callback)
        logger.debug(f"Opened native watch on {path} (via {watched_dir})")
        return ObserverSubscription(path, observer)

    def open_polling_subscription(
        self,
        path: str,
        options: WatchOptions,
        callback: Callable[[], None],
    ) -> Subscription:
        observer = PollingObserver(timeout=options.interval_seconds)
        watched_dir = self._start(observer, path, options, callback)
        logger.debug(f"Polling {path} (via {watched_dir}) every {options.interval_ms}ms")
        return ObserverSubscription(path, observer)

    def _start(
        self,
        observer: BaseObserver,
        path: str,
        options: WatchOptions,
        callback: Callable[[], None],
    ) -> str:
        """Schedule a handler for path on observer and start it."""
        is_directory = os.path.isdir(path)
        watched_dir = path if is_directory else (os.path.dirname(os.path.abspath(path)) or os.sep)
        handler = FSEventHandler(path, callback, is_directory=is_directory)

        observer.daemon = not options.persistent
        try:
            observer.schedule(handler, watched_dir, recursive=False)
            observer.start()
        except OSError as e:
            try:
                observer.unschedule_all()
            except Exception as cleanup_error:
                logger.debug(f"Error discarding failed observer for {path}: {cleanup_error}")
            raise classify_os_error(path, e) from e
        return watched_dir
