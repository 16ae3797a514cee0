"""Named event delivery for feeding producers."""

from .emitter import FLUSH_EVENT, EventEmitter, Subscription

__all__ = ["EventEmitter", "Subscription", "FLUSH_EVENT"]
