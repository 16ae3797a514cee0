"""Message batching by count and by time.

``split_batches`` partitions a message sequence into contiguous chunks that
fit one publish call. ``MessageBatcher`` accumulates messages one at a time
and hands the buffered batch to a callback when the buffer reaches its size
limit, when the periodic timer fires, or when ``flush()`` is called.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar, Union

from loguru import logger

T = TypeVar("T")


def as_message_list(messages: Union[T, Sequence[T]]) -> List[T]:
    """Normalize a single message or a list/tuple of messages to a list."""
    if isinstance(messages, (list, tuple)):
        return list(messages)
    return [messages]


def split_batches(messages: Union[T, Sequence[T]], max_batch_size: int) -> List[List[T]]:
    """Split messages into order-preserving chunks of at most ``max_batch_size``.

    Produces ``ceil(n / max_batch_size)`` chunks; every chunk but the last
    holds exactly ``max_batch_size`` messages. No messages, no chunks.
    """
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be at least 1, got {max_batch_size}")

    items = as_message_list(messages)
    return [items[i : i + max_batch_size] for i in range(0, len(items), max_batch_size)]


class MessageBatcher(Generic[T]):
    """Accumulates messages and dispatches them in batches.

    The callback receives the drained batch and must not block; producers
    pass a callable that schedules the publish on an executor.
    """

    def __init__(self, batch_size: int, batch_ready_callback: Callable[[List[T]], Any]):
        """Initialize the batcher.

        Args:
            batch_size: Buffered messages that trigger an immediate flush
            batch_ready_callback: Function to call with each drained batch
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        self.batch_size = batch_size
        self.batch_ready_callback = batch_ready_callback

        self._buffer: List[T] = []
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None
        self._interval_seconds: Optional[float] = None

        # Statistics
        self._total_messages_added = 0
        self._total_batches_dispatched = 0
        self._total_dispatch_errors = 0

    def add(self, message: T) -> None:
        """Buffer a message, flushing right away if the buffer is full."""
        batch: Optional[List[T]] = None

        with self._lock:
            self._buffer.append(message)
            self._total_messages_added += 1

            if len(self._buffer) >= self.batch_size:
                batch = self._swap_buffer()

        if batch:
            logger.debug(f"Buffer reached batch size {self.batch_size}, flushing")
            self._dispatch(batch)

    def flush(self) -> int:
        """Dispatch whatever is buffered.

        Returns:
            Number of messages dispatched (0 when the buffer was empty)
        """
        with self._lock:
            batch = self._swap_buffer()

        if batch:
            self._dispatch(batch)

        return len(batch)

    def start(self, interval_ms: int) -> None:
        """Start the timer that flushes every ``interval_ms`` milliseconds."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        with self._lock:
            if self.is_running():
                logger.warning("Batcher is already running")
                return

            self._interval_seconds = interval_ms / 1000.0
            self._stop_event = threading.Event()
            self._timer_thread = threading.Thread(target=self._timer_loop, args=(self._stop_event, self._interval_seconds), name="message-batcher-timer", daemon=True)
            self._timer_thread.start()

    def stop(self) -> None:
        """Stop the timer. Buffered messages stay until the next ``flush()``."""
        with self._lock:
            thread = self._timer_thread
            self._timer_thread = None
            self._stop_event.set()

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)

    def is_running(self) -> bool:
        return self._timer_thread is not None and self._timer_thread.is_alive()

    def size(self) -> int:
        """Return the number of buffered messages."""
        with self._lock:
            return len(self._buffer)

    def get_stats(self) -> Dict[str, Any]:
        """Get batcher statistics."""
        with self._lock:
            return {
                "running": self.is_running(),
                "buffer_size": len(self._buffer),
                "batch_size": self.batch_size,
                "interval_seconds": self._interval_seconds,
                "total_messages_added": self._total_messages_added,
                "total_batches_dispatched": self._total_batches_dispatched,
                "total_dispatch_errors": self._total_dispatch_errors,
            }

    def _swap_buffer(self) -> List[T]:
        """Replace the buffer with an empty one. Caller holds the lock."""
        batch = self._buffer
        self._buffer = []
        return batch

    def _dispatch(self, batch: List[T]) -> None:
        try:
            self.batch_ready_callback(batch)
            with self._lock:
                self._total_batches_dispatched += 1
        except Exception:
            with self._lock:
                self._total_dispatch_errors += 1
            logger.exception(f"Failed to dispatch batch of {len(batch)} messages")

    def _timer_loop(self, stop_event: threading.Event, interval_seconds: float) -> None:
        logger.debug("Started batcher timer")

        while not stop_event.wait(interval_seconds):
            self.flush()

        logger.debug("Batcher timer finished")
