"""autosns - Batched, drain-safe publishing of application events to SNS."""

from .batcher import MessageBatcher, split_batches
from .config import AutoProducerOptions, ProducerOptions, setup_logging
from .core import ProducerHost
from .errors import AutoSNSError, ConfigurationError
from .events import FLUSH_EVENT, EventEmitter, Subscription
from .producer import AutoSNSProducer
from .sender import PublishBatchResult, SNSClient, SNSProducer
from .tracking import PendingTracker

__version__ = "1.0.0"

__all__ = [
    "AutoSNSProducer",
    "SNSProducer",
    "SNSClient",
    "PublishBatchResult",
    "MessageBatcher",
    "split_batches",
    "PendingTracker",
    "EventEmitter",
    "Subscription",
    "FLUSH_EVENT",
    "ProducerHost",
    "AutoProducerOptions",
    "ProducerOptions",
    "setup_logging",
    "AutoSNSError",
    "ConfigurationError",
]
