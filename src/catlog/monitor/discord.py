"""Discord webhook notifications for detected status codes."""

from datetime import datetime

import httpx
import structlog

from catlog.errors import NotificationError

from .classifier import is_error_code

log = structlog.get_logger()

# Discord embed colors
COLOR_SERVER_ERROR = 0xFF0000  # Red
COLOR_CLIENT_ERROR = 0xFFA500  # Orange
COLOR_INFO = 0x00FF00  # Green


class DiscordClient:
    """Simple Discord webhook client."""

    def __init__(self, webhook_url: str, username: str = "catlog"):
        self.webhook_url = webhook_url
        self.username = username

    def send_embed(
        self,
        title: str,
        description: str,
        color: int,
        fields: list[dict] | None = None,
        image_url: str | None = None,
    ) -> bool:
        """Send a rich embed message to Discord.

        Args:
            title: Embed title
            description: Embed description
            color: Embed color (decimal, e.g., 0xFF0000 for red)
            fields: Optional list of {"name": "...", "value": "...", "inline": bool}
            image_url: Optional image shown in the embed

        Returns:
            True if successful, False otherwise
        """
        embed: dict = {
            "title": title,
            "description": description,
            "color": color,
        }
        if fields:
            embed["fields"] = fields
        if image_url:
            embed["image"] = {"url": image_url}

        try:
            response = httpx.post(
                self.webhook_url,
                json={"username": self.username, "embeds": [embed]},
                timeout=10.0,
            )
            response.raise_for_status()
            log.debug("Discord embed sent", title=title)
            return True
        except httpx.HTTPStatusError as e:
            log.error("Discord API error", status=e.response.status_code)
            return False
        except httpx.RequestError as e:
            log.error("Discord request failed", error=str(e))
            return False


class DiscordNotifier:
    """Notifier that posts each detected status code to a Discord channel."""

    name = "discord"

    def __init__(self, client: DiscordClient, cat_base_url: str = "https://http.cat"):
        self.client = client
        self.cat_base_url = cat_base_url.rstrip("/")

    def notify(self, status_code: int, line: str) -> None:
        if status_code >= 500:
            color = COLOR_SERVER_ERROR
        elif is_error_code(status_code):
            color = COLOR_CLIENT_ERROR
        else:
            color = COLOR_INFO

        sent = self.client.send_embed(
            title=f"{status_code} Detected",
            description=f"```{line[:500]}```",
            color=color,
            fields=[
                {
                    "name": "Time",
                    "value": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                    "inline": True,
                },
            ],
            image_url=f"{self.cat_base_url}/{status_code}",
        )
        if not sent:
            raise NotificationError(f"Discord notification for {status_code} failed")
