"""Tests for container wiring."""

import asyncio

from workshop_manager.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.order_service.store is container.store
    assert container.report_service.timezone_name == "UTC"
    assert container.poller.interval_seconds == 10.0
    asyncio.run(container.close_resources())
