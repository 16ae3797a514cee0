"""In-flight operation tracking for graceful draining."""

from .pending import PendingTracker

__all__ = ["PendingTracker"]
