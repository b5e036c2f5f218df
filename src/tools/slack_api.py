# later - Slack Scheduled Message Command
# AGPL-3.0 License - https://github.com/mindfulent/slashAI

"""
Slack Web API Client

Thin async client for the Slack endpoints used by /later:
- users.info (timezone and locale lookup)
- chat.scheduleMessage (deferred delivery)
- response_url (ephemeral replies to a slash command)
"""

import os
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

# Slack refuses chat.scheduleMessage more than 120 days ahead
SCHEDULE_HORIZON_DAYS = 120

DEFAULT_API_URL = "https://slack.com/api/"


class SlackAPIError(Exception):
    """Slack answered a Web API call with ok=false."""

    def __init__(self, method: str, error: str, response_data: Optional[dict] = None):
        self.method = method
        self.error = error
        self.response_data = response_data or {}
        super().__init__(f"{method} failed: {error}")


class SlackAPIClient:
    """Client for the Slack Web API (bot token)"""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or os.getenv("SLACK_API_URL", DEFAULT_API_URL)
        self.token = token or os.getenv("SLACK_BOT_TOKEN")

        if not self.token:
            logger.warning(
                "SLACK_BOT_TOKEN not set - Slack API calls will fail authentication"
            )

        # The token goes on Web API calls only, never to response_url hooks
        self._auth_headers = {"Authorization": f"Bearer {self.token}"}
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client"""
        await self._client.aclose()

    async def api_call(
        self,
        method: str,
        payload: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """
        Call a Web API method and return the decoded body.

        Read methods such as users.info only accept query/form arguments, so
        a call with `params` is sent as GET; everything else is POSTed as JSON.

        Raises:
            SlackAPIError: Slack rejected the call (ok=false)
            httpx.HTTPError: transport failure or non-2xx status
        """
        if params is not None:
            response = await self._client.get(
                method, params=params, headers=self._auth_headers
            )
        else:
            response = await self._client.post(
                method, json=payload or {}, headers=self._auth_headers
            )
        response.raise_for_status()
        data = response.json()

        if not data.get("ok"):
            error = data.get("error", "unknown_error")
            logger.warning(f"Slack {method} returned error: {error}")
            raise SlackAPIError(method, error, data)

        return data

    async def users_info(self, user_id: str) -> dict[str, Any]:
        """Fetch a user's profile, including timezone and locale."""
        data = await self.api_call(
            "users.info",
            params={"user": user_id, "include_locale": "true"},
        )
        return data.get("user", {})

    async def schedule_message(
        self,
        channel: str,
        text: str,
        post_at: int,
        blocks: Optional[list[dict]] = None,
    ) -> dict[str, Any]:
        """
        Schedule a message for delivery.

        Args:
            channel: Channel ID to post in
            text: Fallback text for notifications
            post_at: Delivery time as integer Unix seconds
            blocks: Optional Block Kit layout

        Returns:
            The decoded chat.scheduleMessage response
        """
        payload: dict[str, Any] = {
            "channel": channel,
            "post_at": post_at,
            "text": text,
        }
        if blocks:
            payload["blocks"] = blocks

        return await self.api_call("chat.scheduleMessage", payload)

    async def respond(self, response_url: str, payload: dict[str, Any]) -> None:
        """Send a reply through a slash command's response_url."""
        response = await self._client.post(response_url, json=payload)
        response.raise_for_status()
