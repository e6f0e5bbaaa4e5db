"""Discord webhook client adapter."""

from dataclasses import dataclass

import httpx

from workshop_manager.services.orders import WebhookClient


@dataclass
class HttpxDiscordWebhookClient(WebhookClient):
    """Discord webhook client implemented with httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxDiscordWebhookClient":
        """Create a webhook client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient())

    async def post_embed(self, webhook_url: str, embed: dict[str, object]) -> None:
        """Post an embed message to a Discord webhook."""
        response = await self.http_client.post(
            webhook_url, json={"embeds": [embed]}, timeout=10
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
