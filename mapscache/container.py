"""Builds the process-wide cache, ledger and provider client from settings."""

from dataclasses import dataclass
from typing import Optional

import httpx

from .application.cache.persistence import CacheSnapshotManager
from .application.cache.store import CacheStore
from .application.coalescing import RequestCoalescer
from .application.memoize import Memoizer
from .application.usage.ledger import UsageLedger
from .application.usage.sessions import AutocompleteSessions
from .config import Settings
from .infrastructure.providers.google_maps import MapsClient
from .infrastructure.providers.http_client_factory import HttpClientFactory
from .infrastructure.storage.file import FileBlobStore


@dataclass
class Components:
    settings: Settings
    cache: CacheStore
    ledger: UsageLedger
    memoizer: Memoizer
    http_client: httpx.AsyncClient
    maps_client: MapsClient
    snapshot_manager: Optional[CacheSnapshotManager] = None
    coalescer: Optional[RequestCoalescer] = None

    async def aclose(self) -> None:
        await HttpClientFactory.close_client(self.http_client)


def build_components(
    settings: Settings, http_client: Optional[httpx.AsyncClient] = None
) -> Components:
    """
    Wire the cache store, usage ledger and maps client.

    Args:
        settings: Application settings
        http_client: Client for provider requests, built from settings when None

    Returns:
        The shared components of one process
    """
    cache = CacheStore(
        max_size=settings.cache_max_size,
        default_ttl_seconds=settings.cache_default_ttl_seconds,
        cleanup_interval_seconds=settings.cache_cleanup_interval_seconds,
        snapshot_max_entries=settings.cache_snapshot_max_entries,
        snapshot_max_age_seconds=settings.cache_snapshot_max_age_seconds,
    )

    snapshot_manager = None
    if settings.cache_snapshot_path:
        snapshot_manager = CacheSnapshotManager(
            cache,
            FileBlobStore(settings.cache_snapshot_path),
            save_interval_seconds=settings.cache_snapshot_interval_seconds,
        )

    ledger = UsageLedger(
        daily_budget=settings.daily_budget,
        cost_per_unit=settings.cost_overrides(),
        blob_store=FileBlobStore(settings.ledger_path) if settings.ledger_path else None,
        flush_interval_seconds=settings.ledger_flush_interval_seconds or None,
    )

    coalescer = RequestCoalescer() if settings.singleflight_enabled else None
    memoizer = Memoizer(cache, ledger, coalescer)

    http_client = http_client or HttpClientFactory.create_client(settings)
    maps_client = MapsClient(
        http_client,
        memoizer,
        api_key=settings.google_maps_api_key,
        sessions=AutocompleteSessions(
            max_sessions=settings.autocomplete_max_sessions,
            ttl_seconds=settings.autocomplete_session_ttl_seconds,
        ),
        base_url=settings.maps_base_url,
    )

    return Components(
        settings=settings,
        cache=cache,
        ledger=ledger,
        memoizer=memoizer,
        http_client=http_client,
        maps_client=maps_client,
        snapshot_manager=snapshot_manager,
        coalescer=coalescer,
    )
