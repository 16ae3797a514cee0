"""Host lifecycle integration."""

from .host import ProducerHost

__all__ = ["ProducerHost"]
