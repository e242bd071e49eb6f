"""
filewatch

Watches an explicit set of file paths and reports changes, falling back
from native OS notifications to interval polling when the host runs out of
native watch handles.

Features:
- Dynamic add/remove of watched paths
- change / fallback / error events
- Debounced native notifications
- Recreate-on-change workaround for watchers that go deaf after one event
- Sticky, process-wide exhaustion latch
"""

from .models import (
    WatchMode,
    EventName,
    FileStatus,
    Deleted,
    WatchEntry,
)

from .config import WatchOptions

from .exceptions import (
    WatcherError,
    NativeWatchError,
    ResourceExhaustedError,
    classify_os_error,
)

from .budget import ResourceBudget
from .clock import Clock, Debouncer, TimerHandle
from .events import EventEmitter
from .facility import NativeWatchFacility, Subscription
from .fs_watcher import WatchdogFacility, FSEventHandler
from .manager import WatchManager


def create_watcher(options=None, **kwargs) -> WatchManager:
    """
    Create a WatchManager.

    Args:
        options: WatchOptions or a mapping of option names
        **kwargs: Passed to WatchManager (facility, clock, budget)

    Returns:
        A new WatchManager
    """
    return WatchManager(options, **kwargs)


__all__ = [
    # Models
    "WatchMode",
    "EventName",
    "FileStatus",
    "Deleted",
    "WatchEntry",
    # Config
    "WatchOptions",
    # Exceptions
    "WatcherError",
    "NativeWatchError",
    "ResourceExhaustedError",
    "classify_os_error",
    # Components
    "ResourceBudget",
    "Clock",
    "Debouncer",
    "TimerHandle",
    "EventEmitter",
    "NativeWatchFacility",
    "Subscription",
    "WatchdogFacility",
    "FSEventHandler",
    # Manager
    "WatchManager",
    "create_watcher",
]

__version__ = "0.1.0"
