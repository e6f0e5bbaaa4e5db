"""Tests for admin authentication."""

from fastapi.testclient import TestClient

from workshop_manager.api.app import create_app
from workshop_manager.containers import AppContainer


def test_admin_health_requires_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/health")

    assert response.status_code == 401


def test_admin_health_accepts_valid_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/health", headers={"X-Admin-Token": "admin-token"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_admin_token_comes_from_settings(container: AppContainer) -> None:
    container.settings.admin_token = "rotated"
    client = TestClient(create_app(container))

    assert (
        client.get("/admin/health", headers={"X-Admin-Token": "admin-token"})
        .status_code
        == 401
    )
    assert (
        client.get("/admin/health", headers={"X-Admin-Token": "rotated"}).status_code
        == 200
    )
