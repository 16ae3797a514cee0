"""SNS client contract and client resolution.

The producers talk to any object exposing the boto3 SNS ``publish_batch``
signature. Callers hand over either a ready client or a factory that builds
one for the topic's region.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Union, runtime_checkable

from ..errors import ConfigurationError


@runtime_checkable
class SNSClient(Protocol):
    """Protocol for the remote batch publish primitive."""

    def publish_batch(self, *, TopicArn: str, PublishBatchRequestEntries: List[Dict[str, Any]]) -> Mapping[str, Any]:
        """Publish up to ten entries; returns ``Successful`` and ``Failed`` lists."""
        ...


ClientFactory = Callable[[Optional[str]], SNSClient]


@dataclass
class PublishBatchResult:
    """Outcome of one publish call, which the endpoint may apply partially."""

    successful: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_response(cls, response: Optional[Mapping[str, Any]]) -> "PublishBatchResult":
        response = response or {}
        return cls(
            successful=list(response.get("Successful") or []),
            failed=list(response.get("Failed") or []),
        )

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


def region_from_topic_arn(topic_arn: Optional[str]) -> Optional[str]:
    """Return the region of ``arn:aws:sns:<region>:<account>:<topic>``.

    Falls back to ``AWS_REGION`` when the ARN carries no region.
    """
    parts = (topic_arn or "").split(":")
    if len(parts) > 3 and parts[3]:
        return parts[3]
    return os.getenv("AWS_REGION")


def resolve_client(client_or_factory: Union[SNSClient, ClientFactory, None], topic_arn: Optional[str]) -> SNSClient:
    """Turn a client instance or factory into a client.

    Raises:
        ConfigurationError: If neither a client nor a factory was given
    """
    if client_or_factory is None:
        raise ConfigurationError("Either an SNS client or an SNS client factory must be provided")

    if isinstance(client_or_factory, SNSClient):
        return client_or_factory

    if callable(client_or_factory):
        client = client_or_factory(region_from_topic_arn(topic_arn))
        if client is None:
            raise ConfigurationError("SNS client factory returned no client")
        return client

    raise ConfigurationError(f"Object of type {type(client_or_factory).__name__} is neither an SNS client nor a client factory")
