"""Message batching by count and time."""

from .message_batcher import MessageBatcher, as_message_list, split_batches

__all__ = ["MessageBatcher", "as_message_list", "split_batches"]
