"""Shared fixtures: a hand-driven clock and an in-memory watch facility."""

from typing import Callable, Dict, List, Optional

import pytest

from filewatch.budget import ResourceBudget
from filewatch.clock import Clock, TimerHandle
from filewatch.config import WatchOptions
from filewatch.facility import NativeWatchFacility, Subscription
from filewatch.manager import WatchManager
from filewatch.models import EventName, FileStatus


class ManualTimer(TimerHandle):
    def __init__(self, when: float, fn: Callable[[], None], seq: int):
        self.when = when
        self.fn = fn
        self.seq = seq
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock(Clock):
    """Clock whose timers only fire when advance() is called."""

    def __init__(self):
        self.now = 0.0
        self._timers: List[ManualTimer] = []
        self._seq = 0

    def monotonic(self) -> float:
        return self.now

    def call_later(self, delay, fn, daemon=True) -> TimerHandle:
        self._seq += 1
        timer = ManualTimer(self.now + delay, fn, self._seq)
        self._timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.seq))
            self.now = max(self.now, timer.when)
            self._timers.remove(timer)
            timer.fn()
        self.now = target
        self._timers = [t for t in self._timers if not t.cancelled]

    def pending(self) -> int:
        return len([t for t in self._timers if not t.cancelled])


class FakeSubscription(Subscription):
    def __init__(self, path: str, kind: str, callback):
        self.path = path
        self.kind = kind
        self.callback = callback
        self.handle: Optional[TimerHandle] = None
        self.close_count = 0
        self.fail_on_close = False

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def close(self) -> None:
        self.close_count += 1
        if self.handle is not None:
            self.handle.cancel()
        if self.fail_on_close:
            raise OSError("close failed")


class FakeFacility(NativeWatchFacility):
    """In-memory filesystem with scriptable native subscriptions."""

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self.files: Dict[str, FileStatus] = {}
        self.subscriptions: List[FakeSubscription] = []
        self.event_attempts: List[str] = []
        self.event_error: Optional[Exception] = None
        self.polling_errors: Dict[str, Exception] = {}
        self.on_stat: Optional[Callable[[str], None]] = None
        self.recreate_on_change = True

    def create(self, path: str, mtime: float = 1.0, is_directory: bool = False) -> None:
        self.files[path] = FileStatus(path=path, is_directory=is_directory, mtime=mtime, size=0)

    def touch(self, path: str, mtime: Optional[float] = None) -> None:
        current = self.files[path]
        new_mtime = current.mtime + 1.0 if mtime is None else mtime
        self.files[path] = FileStatus(
            path=path,
            is_directory=current.is_directory,
            mtime=new_mtime,
            size=current.size + 1,
        )

    def delete(self, path: str) -> None:
        del self.files[path]

    def exists(self, path: str) -> bool:
        return path in self.files

    def stat(self, path: str) -> Optional[FileStatus]:
        if self.on_stat is not None:
            self.on_stat(path)
        return self.files.get(path)

    def open_event_subscription(self, path, options, callback) -> Subscription:
        self.event_attempts.append(path)
        if self.event_error is not None:
            raise self.event_error
        subscription = FakeSubscription(path, "event", callback)
        self.subscriptions.append(subscription)
        return subscription

    def open_polling_subscription(self, path, options, callback) -> Subscription:
        if path in self.polling_errors:
            raise self.polling_errors[path]
        subscription = FakeSubscription(path, "polling", callback)
        self.subscriptions.append(subscription)
        self._poll_tick(subscription, options.interval_seconds, self.files.get(path))
        return subscription

    def _poll_tick(self, subscription: FakeSubscription, interval: float, previous) -> None:
        def tick():
            current = self.files.get(subscription.path)
            if current != previous:
                subscription.callback()
            if not subscription.closed:
                self._poll_tick(subscription, interval, current)

        subscription.handle = self.clock.call_later(interval, tick)

    def active(self, kind: Optional[str] = None, path: Optional[str] = None) -> List[FakeSubscription]:
        return [
            s for s in self.subscriptions
            if not s.closed
            and (kind is None or s.kind == kind)
            and (path is None or s.path == path)
        ]

    def fire(self, path: str) -> None:
        """Deliver a native event to every open event subscription on path."""
        for subscription in self.active("event", path):
            subscription.callback()


class Recorder:
    """Collects every event published by a manager."""

    def __init__(self, manager: WatchManager):
        self.changes = []
        self.fallbacks = []
        self.errors = []
        manager.on(EventName.CHANGE, lambda path, info: self.changes.append((path, info)))
        manager.on(EventName.FALLBACK, self.fallbacks.append)
        manager.on(EventName.ERROR, self.errors.append)


@pytest.fixture(autouse=True)
def reset_shared_budget():
    ResourceBudget.shared().reset()
    yield
    ResourceBudget.shared().reset()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def facility(clock):
    return FakeFacility(clock)


@pytest.fixture
def budget():
    return ResourceBudget()


@pytest.fixture
def make_manager(facility, clock, budget):
    managers = []

    def factory(**options) -> WatchManager:
        manager = WatchManager(
            WatchOptions(**options),
            facility=facility,
            clock=clock,
            budget=budget,
        )
        managers.append(manager)
        return manager

    yield factory

    for manager in managers:
        manager.close()
