"""Option models for SNS producers.

Options are validated once at construction so that a bad batch size or
interval fails immediately instead of on the first publish. Environment
variables can override the numeric settings through ``from_env``.
"""

from __future__ import annotations

import json
import os
from typing import Any, Callable, Dict, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_MAX_BATCH_SIZE = 10
DEFAULT_BATCH_SIZE = 10
DEFAULT_MAX_BATCH_INTERVAL_MS = 10000
MAX_VERBOSE_LOG_COUNT = 10

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def default_serializer(message: Any) -> str:
    """Encode a message as compact JSON."""
    return json.dumps(message, separators=(",", ":"))


class ProducerOptions(BaseModel):
    """Options for publishing batches to one SNS topic."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Producer name used in log context")
    topic_arn: str = Field(..., min_length=1, description="ARN of the destination topic")
    serializer: Callable[[Any], str] = Field(default=default_serializer, description="Message to string encoder")
    prepare_entry: Optional[Callable[[Any, int], Dict[str, Any]]] = Field(None, description="Builds a full request entry from a message and its index within the batch")
    verbose_beginning: bool = Field(default=True, description="Log the first batches at info level with their payload")
    max_batch_size: int = Field(default=DEFAULT_MAX_BATCH_SIZE, ge=1, description="Maximum entries per publish call")


class AutoProducerOptions(ProducerOptions):
    """Options for a producer fed by a named event."""

    event_name: str = Field(..., min_length=1, description="Event that feeds the producer")
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1, description="Buffered messages that trigger a flush")
    max_batch_interval_ms: int = Field(default=DEFAULT_MAX_BATCH_INTERVAL_MS, gt=0, description="Maximum time between automatic flushes")

    @model_validator(mode="before")
    @classmethod
    def default_name_from_event(cls, data: Any) -> Any:
        """Name the producer after its event unless a name is given."""
        if isinstance(data, dict) and not data.get("name"):
            data = {**data, "name": data.get("event_name")}
        return data

    @classmethod
    def from_env(cls, **overrides: Any) -> "AutoProducerOptions":
        """Build options from environment variables plus explicit overrides.

        Explicit keyword arguments win over the environment.
        """
        values: Dict[str, Any] = {}

        if topic_arn := os.getenv("AUTOSNS_TOPIC_ARN"):
            values["topic_arn"] = topic_arn

        if event_name := os.getenv("AUTOSNS_EVENT_NAME"):
            values["event_name"] = event_name

        for env_name, field_name in (
            ("AUTOSNS_BATCH_SIZE", "batch_size"),
            ("AUTOSNS_MAX_BATCH_SIZE", "max_batch_size"),
            ("AUTOSNS_MAX_BATCH_INTERVAL_MS", "max_batch_interval_ms"),
        ):
            if raw := os.getenv(env_name):
                try:
                    values[field_name] = int(raw)
                except ValueError:
                    logger.warning(f"Invalid {field_name}: {raw}")

        if verbose := os.getenv("AUTOSNS_VERBOSE_BEGINNING"):
            if verbose.strip().lower() in _TRUE_VALUES:
                values["verbose_beginning"] = True
            elif verbose.strip().lower() in _FALSE_VALUES:
                values["verbose_beginning"] = False
            else:
                logger.warning(f"Invalid verbose_beginning: {verbose}")

        values.update(overrides)
        return cls(**values)

    def producer_options(self) -> ProducerOptions:
        """Options for the underlying batch sender."""
        return ProducerOptions(
            name=self.name,
            topic_arn=self.topic_arn,
            serializer=self.serializer,
            prepare_entry=self.prepare_entry,
            verbose_beginning=self.verbose_beginning,
            max_batch_size=self.max_batch_size,
        )
