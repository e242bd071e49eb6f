"""Timers used for debouncing watch notifications."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle(ABC):
    """A scheduled callback that can be cancelled."""

    @abstractmethod
    def cancel(self) -> None:
        pass


def _run_guarded(fn: Callable[[], None]) -> None:
    try:
        fn()
    except Exception:
        logger.exception("Timer callback failed")


class _OneShotTimer(TimerHandle):
    """Runs a callback once after a delay on its own thread."""

    def __init__(self, delay: float, fn: Callable[[], None], daemon: bool):
        self._timer = threading.Timer(delay, _run_guarded, args=(fn,))
        self._timer.daemon = daemon
        self._timer.name = "filewatch-timer"

    def start(self) -> "_OneShotTimer":
        self._timer.start()
        return self

    def cancel(self) -> None:
        self._timer.cancel()


class Clock:
    """
    Thread-backed clock.

    Callbacks run on background threads. ``daemon=False`` makes a pending
    timer keep the interpreter alive, which is how persistent watches are
    implemented.
    """

    def monotonic(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, fn: Callable[[], None], daemon: bool = True) -> TimerHandle:
        """Run ``fn`` once after ``delay`` seconds."""
        return _OneShotTimer(delay, fn, daemon).start()


class Debouncer:
    """
    Collapses bursts of calls into one trailing call.

    Each call restarts the wait; ``fn`` runs once no call has arrived for
    ``wait`` seconds. Arguments passed to the debouncer are ignored.
    """

    def __init__(
        self,
        fn: Callable[[], None],
        wait: float,
        clock: Optional[Clock] = None,
        daemon: bool = True,
    ):
        """
        Initialize the debouncer.

        Args:
            fn: Callback to run after the burst settles
            wait: Quiet period in seconds
            clock: Clock used to schedule the callback
            daemon: Whether the pending timer lets the process exit
        """
        self.fn = fn
        self.wait = wait
        self.clock = clock or Clock()
        self.daemon = daemon
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._cancelled = False
        self._lock = threading.Lock()

    def __call__(self, *args, **kwargs) -> None:
        with self._lock:
            if self._cancelled:
                return
            if self._handle is not None:
                self._handle.cancel()
            self._generation += 1
            generation = self._generation
            self._handle = self.clock.call_later(
                self.wait, lambda: self._fire(generation), daemon=self.daemon
            )

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._cancelled or generation != self._generation:
                return
            self._handle = None
        self.fn()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._handle is not None

    def cancel(self) -> None:
        """Drop any pending call and ignore future ones."""
        with self._lock:
            self._cancelled = True
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
