"""Event-driven batching producer."""

from .auto_producer import AutoSNSProducer

__all__ = ["AutoSNSProducer"]
