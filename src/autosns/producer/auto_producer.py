"""Event-driven SNS producer.

Subscribes to a named event, buffers every emitted payload and publishes
the buffer in batches when it fills up, when the batch interval elapses or
when a flush is requested. Automatic publishes never raise; failures are
logged by the sender and the producer keeps accepting messages.

Shutdown order is always: stop the timer, flush what is buffered, wait for
every dispatched publish to settle. ``on_stop()`` does all three.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar, Union

from loguru import logger

from ..batcher import MessageBatcher
from ..config.settings import AutoProducerOptions
from ..events import FLUSH_EVENT, EventEmitter, Subscription
from ..sender import ClientFactory, PublishBatchResult, SNSClient, SNSProducer
from ..tracking import PendingTracker

T = TypeVar("T")


class AutoSNSProducer(Generic[T]):
    """Buffers event payloads and publishes them to SNS in batches."""

    def __init__(
        self,
        client_or_factory: Union[SNSClient, ClientFactory, None],
        event_emitter: Optional[EventEmitter],
        options: Union[AutoProducerOptions, Dict[str, Any]],
        max_workers: Optional[int] = None,
    ):
        """Initialize the producer and subscribe it to its event.

        Args:
            client_or_factory: SNS client, or a factory called with the topic region
            event_emitter: Emitter delivering the payloads, None to call ``add`` directly
            options: Producer options or a mapping of option values
            max_workers: Threads used for publishing

        Raises:
            ConfigurationError: If no client or factory is given
        """
        self.options = options if isinstance(options, AutoProducerOptions) else AutoProducerOptions(**options)

        self._logger = logger.bind(context=AutoSNSProducer.service_name(self.options.name))
        self.sns_producer: SNSProducer[T] = SNSProducer(client_or_factory, self.options.producer_options(), max_workers=max_workers)

        self._pending = PendingTracker()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=f"autosns-{self.options.name}")
        self.batcher: MessageBatcher[T] = MessageBatcher(
            self.options.batch_size,
            self._pending.wrap(self._executor, self._publish_ignoring_errors),
        )

        self._subscriptions: List[Subscription] = []
        if event_emitter is not None:
            self._subscriptions.append(event_emitter.on(self.options.event_name, self.add))
            self._subscriptions.append(event_emitter.on(FLUSH_EVENT, lambda _payload: self.flush()))

    @staticmethod
    def service_name(name: str) -> str:
        return f"AutoSNSProducer:{name}"

    def add(self, message: T) -> None:
        """Buffer one message. Never blocks on the network."""
        self.batcher.add(message)

    def publish_batch(self, messages: Union[T, Sequence[T]]) -> List[PublishBatchResult]:
        """Publish right away, bypassing the buffer. Errors propagate."""
        return self.sns_producer.publish_batch(messages)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Publish the buffer and wait for every in-flight publish.

        Args:
            timeout: Maximum seconds to wait, None waits indefinitely

        Returns:
            True if everything settled within the timeout
        """
        verbose_log = self.sns_producer.verbose_logging_enabled()

        self.batcher.flush()
        drained = self._pending.pending(timeout)

        if not drained:
            self._logger.warning("Timed out waiting for {inFlight} publishes to settle", inFlight=self._pending.count())
        else:
            self._logger.log("INFO" if verbose_log else "DEBUG", "Flushed")

        return drained

    def on_start(self) -> None:
        """Start the batch interval timer."""
        self._logger.info(
            "Starting message batcher with batchSize = {batchSize} and maxBatchIntervalMs = {maxBatchIntervalMs}ms...",
            batchSize=self.options.batch_size,
            maxBatchIntervalMs=self.options.max_batch_interval_ms,
        )

        self.batcher.start(self.options.max_batch_interval_ms)

    def on_stop(self, timeout: Optional[float] = None) -> bool:
        """Stop the timer, flush the buffer and wait for in-flight publishes."""
        self._logger.info("Stopping message batcher...")

        self.batcher.stop()
        return self.flush(timeout)

    def close(self) -> None:
        """Cancel event subscriptions and release publishing threads.

        Call after ``on_stop()``; the producer cannot publish afterwards.
        """
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()

        self._executor.shutdown(wait=True)
        self.sns_producer.close()

    def in_flight(self) -> int:
        return self._pending.count()

    def get_stats(self) -> Dict[str, Any]:
        """Get producer statistics."""
        return {
            "name": self.options.name,
            "event_name": self.options.event_name,
            "batcher": self.batcher.get_stats(),
            "sender": self.sns_producer.get_stats(),
            "pending": self._pending.get_stats(),
        }

    def __enter__(self) -> "AutoSNSProducer[T]":
        self.on_start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        """Stop and drain, then release threads and subscriptions."""
        self.on_stop()
        self.close()

    def _publish_ignoring_errors(self, messages: List[T]) -> None:
        try:
            self.sns_producer.publish_batch(messages)
        except Exception as error:
            # Already logged at error level by the sender
            self._logger.debug(f"Dropped batch of {len(messages)} messages after publish failure: {error}")
