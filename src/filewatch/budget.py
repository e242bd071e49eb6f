"""Process-wide record of native watch handle exhaustion."""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class ResourceBudget:
    """
    Sticky latch set once the host runs out of native watch handles.

    Exhaustion is a fact about the host, not about one manager, so a single
    instance is shared by every WatchManager unless one is injected
    explicitly. Once set the latch stays set.
    """

    _shared: Optional["ResourceBudget"] = None
    _shared_lock = threading.Lock()

    def __init__(self):
        self._exhausted = False
        self._lock = threading.Lock()

    @classmethod
    def shared(cls) -> "ResourceBudget":
        """Return the process-wide budget."""
        with cls._shared_lock:
            if cls._shared is None:
                cls._shared = cls()
            return cls._shared

    @property
    def exhausted(self) -> bool:
        with self._lock:
            return self._exhausted

    def mark_exhausted(self) -> None:
        """Latch the exhaustion flag."""
        with self._lock:
            if self._exhausted:
                return
            self._exhausted = True
        logger.warning("Native watch handles exhausted; further event-mode watches are disabled")

    def reset(self) -> None:
        """Clear the latch. Only meant for tests."""
        with self._lock:
            self._exhausted = False
