"""Shared fixtures for producer tests."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Optional

import pytest
from loguru import logger

TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:MyTopic"


class FakeSNSClient:
    """Records publish_batch calls instead of talking to AWS."""

    def __init__(
        self,
        response: Optional[Callable[[List[Dict[str, Any]]], Dict[str, Any]]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def publish_batch(self, *, TopicArn: str, PublishBatchRequestEntries: List[Dict[str, Any]]) -> Dict[str, Any]:
        with self._lock:
            self.calls.append({"TopicArn": TopicArn, "PublishBatchRequestEntries": list(PublishBatchRequestEntries)})

        if self.delay:
            time.sleep(self.delay)

        if self.error is not None:
            raise self.error

        if self.response is not None:
            return self.response(PublishBatchRequestEntries)

        return {"Successful": [{"Id": entry["Id"]} for entry in PublishBatchRequestEntries], "Failed": []}

    @property
    def entries(self) -> List[List[Dict[str, Any]]]:
        with self._lock:
            return [call["PublishBatchRequestEntries"] for call in self.calls]


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def sns_client() -> FakeSNSClient:
    return FakeSNSClient()


@pytest.fixture
def log_records():
    """Capture loguru records emitted during the test."""
    records: List[Dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def published_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [record for record in records if record["message"].startswith("Published ")]
