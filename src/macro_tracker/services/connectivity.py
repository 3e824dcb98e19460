"""Connectivity monitoring with reconnect edge detection."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from macro_tracker.adapters.reachability_client import ReachabilityProbe

_logger = logging.getLogger(__name__)


@dataclass
class ConnectivityMonitor:
    """Tracks reachability and fires a callback when the device comes online."""

    connected: bool = True
    _on_reconnect: Callable[[], object] | None = field(default=None, repr=False)

    def set_reconnect_callback(self, callback: Callable[[], object] | None) -> None:
        """Register the reconnect callback, replacing any previous one."""
        self._on_reconnect = callback

    def update(self, connected: bool) -> None:
        """Record a reachability signal."""
        was_connected = self.connected
        self.connected = connected
        if was_connected or not connected:
            return
        _logger.info("Connectivity restored")
        if self._on_reconnect is not None:
            self._on_reconnect()

    async def watch(self, probe: ReachabilityProbe, interval_seconds: float) -> None:
        """Poll the probe until cancelled; a failing probe counts as offline."""
        while True:
            try:
                reachable = await probe.is_reachable()
            except Exception:
                _logger.exception("Reachability probe failed")
                reachable = False
            try:
                self.update(reachable)
            except Exception:
                _logger.exception("Reconnect callback failed")
            await asyncio.sleep(interval_seconds)
