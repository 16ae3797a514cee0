"""Configuration module for SNS producers."""

from .logger_config import setup_logging
from .settings import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_BATCH_INTERVAL_MS,
    DEFAULT_MAX_BATCH_SIZE,
    MAX_VERBOSE_LOG_COUNT,
    AutoProducerOptions,
    ProducerOptions,
    default_serializer,
)

__all__ = [
    "AutoProducerOptions",
    "ProducerOptions",
    "default_serializer",
    "setup_logging",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MAX_BATCH_INTERVAL_MS",
    "DEFAULT_MAX_BATCH_SIZE",
    "MAX_VERBOSE_LOG_COUNT",
]
