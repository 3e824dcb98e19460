"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from macro_tracker.adapters.reachability_client import (
    HttpxReachabilityProbe,
    ReachabilityProbe,
)
from macro_tracker.adapters.sqlite_local_store import SqliteLocalStore
from macro_tracker.adapters.supabase_remote_store import SupabaseRemoteStore
from macro_tracker.config import Settings, resolve_timezone
from macro_tracker.services.connectivity import ConnectivityMonitor
from macro_tracker.services.identity import SessionIdentityProvider
from macro_tracker.services.journal import JournalService
from macro_tracker.services.sync import LocalStore, RemoteStore, SyncEngine


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    identity: SessionIdentityProvider
    local_store: LocalStore
    remote_store: RemoteStore
    sync_engine: SyncEngine
    connectivity_monitor: ConnectivityMonitor
    reachability_probe: ReachabilityProbe
    journal_service: JournalService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_key
    )
    identity = SessionIdentityProvider()
    local_store = SqliteLocalStore(resolved_settings.local_db_path)
    remote_store = SupabaseRemoteStore(supabase_client)
    sync_engine = SyncEngine(
        identity=identity,
        local_store=local_store,
        remote_store=remote_store,
    )
    reachability_probe = HttpxReachabilityProbe.create(
        resolved_settings.resolved_reachability_url,
        timeout_seconds=resolved_settings.reachability_timeout_seconds,
    )
    journal_service = JournalService(
        identity=identity,
        local_store=local_store,
        sync_engine=sync_engine,
        timezone=resolve_timezone(resolved_settings.timezone),
    )

    async def close_resources() -> None:
        await reachability_probe.close()
        local_store.close()

    return AppContainer(
        settings=resolved_settings,
        identity=identity,
        local_store=local_store,
        remote_store=remote_store,
        sync_engine=sync_engine,
        connectivity_monitor=ConnectivityMonitor(),
        reachability_probe=reachability_probe,
        journal_service=journal_service,
        close_resources=close_resources,
    )
