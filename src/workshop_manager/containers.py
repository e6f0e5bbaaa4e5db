"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from workshop_manager.adapters.discord_webhook_client import HttpxDiscordWebhookClient
from workshop_manager.adapters.supabase_snapshot_repository import (
    SupabaseSnapshotRepository,
)
from workshop_manager.config import Settings
from workshop_manager.services.orders import OrderService, WebhookClient
from workshop_manager.services.reports import ReportService
from workshop_manager.services.store import WorkshopStore
from workshop_manager.services.sync import SnapshotPoller


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: WorkshopStore
    poller: SnapshotPoller
    report_service: ReportService
    order_service: OrderService
    webhook_client: WebhookClient
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    repository = SupabaseSnapshotRepository(
        supabase_client,
        table=resolved_settings.snapshot_table,
        row_id=resolved_settings.snapshot_row_id,
    )
    store = WorkshopStore(repository)
    poller = SnapshotPoller(
        store, interval_seconds=resolved_settings.sync_poll_interval_seconds
    )
    webhook_client = HttpxDiscordWebhookClient.create()

    async def close_resources() -> None:
        await poller.stop()
        await store.flush()
        await webhook_client.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        poller=poller,
        report_service=ReportService(store, resolved_settings.timezone),
        order_service=OrderService(store, webhook_client),
        webhook_client=webhook_client,
        close_resources=close_resources,
    )
