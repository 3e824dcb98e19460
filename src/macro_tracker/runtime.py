"""Background sync lifecycle: startup sync, reconnects and sign-ins."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field

from macro_tracker.app_logging import configure_logging
from macro_tracker.containers import AppContainer

_logger = logging.getLogger(__name__)


@dataclass
class SyncRuntime:
    """Connects identity and connectivity events to the sync engine."""

    container: AppContainer
    _watch_task: asyncio.Task | None = field(default=None, init=False, repr=False)
    _unsubscribe: Callable[[], None] | None = field(
        default=None, init=False, repr=False
    )

    async def start(self, *, watch_connectivity: bool = True) -> None:
        """Wire event sources and run the initial full sync when signed in."""
        engine = self.container.sync_engine
        monitor = self.container.connectivity_monitor
        monitor.set_reconnect_callback(lambda: engine.launch(engine.full_sync()))
        self._unsubscribe = self.container.identity.subscribe(self._on_identity)
        if self.container.identity.current_principal() is not None:
            engine.launch(engine.full_sync())
        if watch_connectivity:
            self._watch_task = asyncio.create_task(
                monitor.watch(
                    self.container.reachability_probe,
                    self.container.settings.reachability_interval_seconds,
                )
            )
        _logger.info("Sync runtime started")

    async def stop(self) -> None:
        """Stop watching, wait for in-flight syncs and release resources."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.container.connectivity_monitor.set_reconnect_callback(None)
        if self._watch_task is not None:
            self._watch_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._watch_task
            self._watch_task = None
        await self.container.sync_engine.drain()
        await self.container.close_resources()
        _logger.info("Sync runtime stopped")

    def _on_identity(self, principal: str | None) -> None:
        if principal is None:
            return
        engine = self.container.sync_engine
        engine.launch(engine.full_sync())


@asynccontextmanager
async def running(
    container: AppContainer, *, watch_connectivity: bool = True
) -> AsyncIterator[SyncRuntime]:
    """Run the sync runtime for the duration of the context."""
    configure_logging(container.settings.log_level)
    runtime = SyncRuntime(container)
    await runtime.start(watch_connectivity=watch_connectivity)
    try:
        yield runtime
    finally:
        await runtime.stop()
