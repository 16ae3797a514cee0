"""Tracking of in-flight asynchronous publish operations.

Every dispatched operation is registered as a ``Future`` and removed again
when it settles, whatever the outcome. ``pending()`` lets a shutdown path
block until everything already dispatched has finished.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Executor, Future, wait
from typing import Any, Callable, Dict, Optional, Set


class PendingTracker:
    """Set of not-yet-settled futures with a blocking drain."""

    def __init__(self) -> None:
        self._pending: Set[Future] = set()
        self._lock = threading.RLock()

        # Statistics
        self._total_tracked = 0

    def track(self, future: Future) -> Future:
        """Register ``future`` until it settles."""
        with self._lock:
            self._pending.add(future)
            self._total_tracked += 1

        # Runs immediately if the future is already done
        future.add_done_callback(self._discard)
        return future

    def wrap(self, executor: Executor, fn: Callable[..., Any]) -> Callable[..., Future]:
        """Return a callable that submits ``fn`` to ``executor`` and tracks it."""

        def submit(*args: Any, **kwargs: Any) -> Future:
            return self.track(executor.submit(fn, *args, **kwargs))

        return submit

    def pending(self, timeout: Optional[float] = None) -> bool:
        """Block until no tracked operation is left.

        Waits on snapshots of the set repeatedly, so operations registered
        while waiting are awaited too.

        Args:
            timeout: Maximum seconds to wait, None waits indefinitely

        Returns:
            True if the set drained, False if the timeout expired first
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            with self._lock:
                snapshot = set(self._pending)

            if not snapshot:
                return True

            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            _, not_done = wait(snapshot, timeout=remaining)

            if not_done:
                return False

            # Done callbacks may still be running; drop settled futures here
            with self._lock:
                self._pending.difference_update(snapshot)

    def count(self) -> int:
        """Number of operations still in flight."""
        with self._lock:
            return len(self._pending)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "in_flight": len(self._pending),
                "total_tracked": self._total_tracked,
            }

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
