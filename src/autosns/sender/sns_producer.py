"""Batch publishing to an SNS topic.

This module provides the sender side of the pipeline: a message sequence of
any length is split into chunks the endpoint accepts in one call, each chunk
is converted into request entries and published, and the per-chunk outcomes
are logged and handed back to the caller.
"""

from __future__ import annotations

import json
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar, Union

from loguru import logger

from ..batcher import split_batches
from ..config.settings import ProducerOptions
from .client import ClientFactory, PublishBatchResult, SNSClient, resolve_client
from .verbose import VerboseLogThrottle

T = TypeVar("T")


class SNSProducer(Generic[T]):
    """Publishes messages to one SNS topic in endpoint-sized batches."""

    def __init__(
        self,
        client_or_factory: Union[SNSClient, ClientFactory, None],
        options: Union[ProducerOptions, Dict[str, Any]],
        max_workers: Optional[int] = None,
    ):
        """Initialize the producer.

        Args:
            client_or_factory: SNS client, or a factory called with the topic region
            options: Producer options or a mapping of option values
            max_workers: Threads used to publish chunks concurrently

        Raises:
            ConfigurationError: If no client or factory is given
        """
        self.options = options if isinstance(options, ProducerOptions) else ProducerOptions(**options)
        self.client = resolve_client(client_or_factory, self.options.topic_arn)

        self._logger = logger.bind(context=SNSProducer.service_name(self.options.name))
        self._throttle = VerboseLogThrottle(enabled=self.options.verbose_beginning)
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.RLock()

        # Statistics
        self._total_batches_published = 0
        self._total_messages_succeeded = 0
        self._total_messages_failed = 0
        self._total_publish_errors = 0

    @staticmethod
    def service_name(name: str) -> str:
        return f"SNSProducer:{name}"

    def publish_batch(self, messages: Union[T, Sequence[T]]) -> List[PublishBatchResult]:
        """Publish one message or a sequence of messages.

        The sequence is split into chunks of ``max_batch_size`` which are
        published concurrently. Returns once every chunk has settled.

        Returns:
            One result per chunk, in chunk order

        Raises:
            Exception: The first error raised by the client, after all chunks settled
        """
        batches = split_batches(messages, self.options.max_batch_size)

        if not batches:
            return []

        if len(batches) == 1:
            return [self._publish_one(batches[0], throws=True)]

        executor = self._get_executor()
        futures = [executor.submit(self._publish_one, batch, True) for batch in batches]
        wait(futures)

        for future in futures:
            error = future.exception()
            if error is not None:
                raise error

        return [future.result() for future in futures]

    def prepare_batch(self, messages: Sequence[T]) -> List[Dict[str, Any]]:
        """Convert messages into request entries.

        Ids are the message index within this batch, so every batch starts
        again at ``"0"``.
        """
        if self.options.prepare_entry is not None:
            return [self.options.prepare_entry(message, index) for index, message in enumerate(messages)]

        return [{"Id": str(index), "Message": self.options.serializer(message)} for index, message in enumerate(messages)]

    def verbose_logging_enabled(self) -> bool:
        return self._throttle.allowed()

    def get_stats(self) -> Dict[str, Any]:
        """Get producer statistics."""
        with self._lock:
            return {
                "topic_arn": self.options.topic_arn,
                "total_batches_published": self._total_batches_published,
                "total_messages_succeeded": self._total_messages_succeeded,
                "total_messages_failed": self._total_messages_failed,
                "total_publish_errors": self._total_publish_errors,
                "verbose_log_count": self._throttle.count,
                "verbose_logging": self._throttle.allowed(),
            }

    def close(self) -> None:
        """Shut down the chunk publishing threads."""
        with self._lock:
            executor = self._executor
            self._executor = None

        if executor is not None:
            executor.shutdown(wait=True)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix=f"sns-{self.options.name}")
            return self._executor

    def _publish_one(self, messages: List[T], throws: bool) -> Optional[PublishBatchResult]:
        try:
            entries = self.prepare_batch(messages)
            response = self.client.publish_batch(TopicArn=self.options.topic_arn, PublishBatchRequestEntries=entries)
        except Exception as error:
            with self._lock:
                self._total_publish_errors += 1

            self._logger.opt(exception=error).error(
                "Failed to publish {messageCount} messages to SNS topic {topicArn}",
                messageCount=len(messages),
                topicArn=self.options.topic_arn,
            )

            if throws:
                raise
            return None

        result = PublishBatchResult.from_response(response)

        with self._lock:
            self._total_batches_published += 1
            self._total_messages_succeeded += result.success_count
            self._total_messages_failed += result.failure_count

        self._log_result(entries, result)
        return result

    def _log_result(self, entries: List[Dict[str, Any]], result: PublishBatchResult) -> None:
        exhausted = False

        if result.failure_count > 0:
            verbose = self._throttle.allowed()
            level = "WARNING"
        else:
            verbose, exhausted = self._throttle.acquire()
            level = "INFO" if verbose else "DEBUG"

        if not self.options.verbose_beginning:
            messages = "-"
        elif verbose:
            messages = json.dumps(entries, default=str)
        else:
            messages = f"messages are only logged for the first {self._throttle.limit} batches"

        self._logger.bind(messages=messages).log(
            level,
            "Published {messageCount} messages to SNS topic {topicArn}: {successCount} succeeded, {failCount} failed.",
            messageCount=len(entries),
            topicArn=self.options.topic_arn,
            successCount=result.success_count,
            failCount=result.failure_count,
        )

        if exhausted:
            self._logger.info("Success messages will be logged as debug from now on")
