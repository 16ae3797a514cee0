"""Throttle for elevated success logging.

The first successful publishes of a producer are logged at info level with
their payload; after the allowance is spent they drop to debug for good.
"""

from __future__ import annotations

import threading

from ..config.settings import MAX_VERBOSE_LOG_COUNT


class VerboseLogThrottle:
    """Race-safe countdown of elevated success logs."""

    def __init__(self, limit: int = MAX_VERBOSE_LOG_COUNT, enabled: bool = True):
        self.limit = limit
        self.enabled = enabled
        self._count = 0
        self._lock = threading.RLock()

    def allowed(self) -> bool:
        """Whether an elevated log slot is still available."""
        with self._lock:
            return self._allowed()

    def acquire(self) -> tuple[bool, bool]:
        """Take one slot if available, as a single atomic step.

        Returns:
            ``(verbose, exhausted)``: whether the caller may log verbosely,
            and whether this call took the last slot
        """
        with self._lock:
            if not self._allowed():
                return False, False
            self._count += 1
            return True, self._count == self.limit

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def _allowed(self) -> bool:
        return self.enabled and self._count < self.limit
