"""ASGI entrypoint for the workshop manager API."""

from workshop_manager.api.app import create_app
from workshop_manager.containers import build_container

app = create_app(build_container())
