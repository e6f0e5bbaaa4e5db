"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from workshop_manager.adapters.discord_webhook_client import HttpxDiscordWebhookClient


def test_discord_webhook_client_posts_embed() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(204)

    transport = httpx.MockTransport(handler)
    client = HttpxDiscordWebhookClient(
        http_client=httpx.AsyncClient(transport=transport)
    )

    asyncio.run(
        client.post_embed("https://discord.test/api/webhooks/1/abc", {"title": "Hi"})
    )
    asyncio.run(client.close())

    assert captured["url"] == "https://discord.test/api/webhooks/1/abc"
    assert captured["body"] == {"embeds": [{"title": "Hi"}]}


def test_discord_webhook_client_raises_on_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Unknown Webhook"})

    transport = httpx.MockTransport(handler)
    client = HttpxDiscordWebhookClient(
        http_client=httpx.AsyncClient(transport=transport)
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.post_embed("https://discord.test/hook", {"title": "Hi"}))
