"""Minimal Discord REST client for interaction follow-ups."""

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"
REQUEST_TIMEOUT_SECONDS = 10


class DiscordClient:
    """Edits deferred interaction responses and registers slash commands."""

    def __init__(self, api_base: str = DISCORD_API_BASE, session=None):
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()

    def edit_original_response(
        self, application_id: str, interaction_token: str, content: str
    ) -> bool:
        """Replace the content of a deferred interaction response.

        The interaction token addresses exactly one original message and
        needs no bot authorization.

        Returns:
            True if Discord accepted the edit
        """
        url = (
            f"{self.api_base}/webhooks/{application_id}/{interaction_token}"
            "/messages/@original"
        )
        try:
            response = self.session.patch(
                url, json={"content": content}, timeout=REQUEST_TIMEOUT_SECONDS
            )
        except requests.RequestException as e:
            logger.error("Failed to edit Discord message: %s", e)
            return False

        if not response.ok:
            logger.error(
                "Failed to edit Discord message: %s - %s",
                response.status_code,
                response.text,
            )
            return False
        return True

    def register_commands(
        self,
        application_id: str,
        bot_token: str,
        commands: list[dict[str, Any]],
        guild_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Overwrite the application's slash commands.

        Guild commands update immediately; global commands can take up to
        an hour to propagate.

        Raises:
            requests.HTTPError: If Discord rejects the registration
        """
        if guild_id:
            url = f"{self.api_base}/applications/{application_id}/guilds/{guild_id}/commands"
        else:
            url = f"{self.api_base}/applications/{application_id}/commands"

        response = self.session.put(
            url,
            json=commands,
            headers={"Authorization": f"Bot {bot_token}"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response.json()
