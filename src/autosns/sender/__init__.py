"""SNS batch publishing."""

from .client import ClientFactory, PublishBatchResult, SNSClient, region_from_topic_arn, resolve_client
from .sns_producer import SNSProducer
from .verbose import VerboseLogThrottle

__all__ = ["SNSProducer", "SNSClient", "ClientFactory", "PublishBatchResult", "VerboseLogThrottle", "region_from_topic_arn", "resolve_client"]
