"""Lifecycle owner for a set of producers.

The host starts every producer, stops them in order on shutdown and can hook
process exit signals so that buffered messages are published before exit.
"""

from __future__ import annotations

import os
import signal
import sys
import threading
from types import FrameType
from typing import Any, Dict, List, Optional

from loguru import logger

from ..producer import AutoSNSProducer


class ProducerHost:
    """Starts, stops and drains the producers it owns."""

    #: Exit signals we hook
    _BASE_SIGNALS = [signal.SIGINT, signal.SIGTERM]
    if hasattr(signal, "SIGHUP"):
        _BASE_SIGNALS.append(signal.SIGHUP)

    #: Windows-specific mapping (Ctrl-Break)
    if os.name == "nt" and hasattr(signal, "SIGBREAK"):
        _BASE_SIGNALS.append(signal.SIGBREAK)  # type: ignore[attr-defined]

    def __init__(self, producers: Optional[List[AutoSNSProducer]] = None, stop_timeout: Optional[float] = None) -> None:
        self._producers: List[AutoSNSProducer] = list(producers or [])
        self._stop_timeout = stop_timeout
        self._lock = threading.RLock()
        self._running = False
        self.signal_received = False
        self.received_signal: Optional[str] = None

    def add(self, producer: AutoSNSProducer) -> AutoSNSProducer:
        """Register a producer; it is started right away if the host runs."""
        with self._lock:
            self._producers.append(producer)
            running = self._running

        if running:
            producer.on_start()
        return producer

    def start(self) -> None:
        with self._lock:
            if self._running:
                logger.warning("Producer host is already running")
                return
            self._running = True
            producers = list(self._producers)

        logger.info(f"Starting {len(producers)} producers")
        for producer in producers:
            producer.on_start()

    def stop(self) -> bool:
        """Stop and drain every producer.

        A producer that fails to stop is logged and the others still stop.

        Returns:
            True if every producer drained cleanly
        """
        with self._lock:
            if not self._running:
                return True
            self._running = False
            producers = list(self._producers)

        logger.info(f"Stopping {len(producers)} producers")
        clean = True
        for producer in producers:
            try:
                clean = producer.on_stop(self._stop_timeout) and clean
            except Exception:
                clean = False
                logger.exception(f"Failed to stop {AutoSNSProducer.service_name(producer.options.name)}")

        return clean

    def close(self) -> None:
        """Stop, then release every producer's resources."""
        self.stop()
        with self._lock:
            producers = list(self._producers)

        for producer in producers:
            producer.close()

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            producers = list(self._producers)
            running = self._running

        return {
            "running": running,
            "producers": [producer.get_stats() for producer in producers],
        }

    def install_signal_handlers(self) -> None:
        """Stop gracefully on exit signals; a second signal exits at once."""
        for sig in self._BASE_SIGNALS:
            try:
                signal.signal(sig, self._handle_exit)
            except (ValueError, OSError):  # not allowed in threads / rare OSes
                logger.warning(f"Could not hook signal {sig}")

    def __enter__(self) -> "ProducerHost":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _handle_exit(self, signum: int, frame: Optional[FrameType]) -> None:
        if self.signal_received:
            sys.exit(0)
        signal_name = signal.Signals(signum).name
        logger.info(f"Received {signal_name}, starting graceful shutdown...")
        self.signal_received = True
        self.received_signal = signal_name

        self.stop()
        sys.exit(0)
