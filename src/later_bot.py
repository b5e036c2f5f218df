"""
later Slack Bot

Receives /later slash commands over HTTP, acknowledges them right away and
schedules the requested message in the background.
"""

import asyncio
import hashlib
import hmac
import logging
import time
from typing import Optional
from urllib.parse import parse_qsl

from aiohttp import web
from dotenv import load_dotenv

from commands.later_commands import CommandRequest, LaterCommand
from scheduling.config import LaterConfig
from tools.slack_api import SlackAPIClient

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("later")

SIGNATURE_VERSION = "v0"


def verify_slack_signature(
    signing_secret: str,
    timestamp: str,
    body: bytes,
    signature: str,
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> bool:
    """
    Check Slack's X-Slack-Signature header for a request body.

    Args:
        signing_secret: App signing secret
        timestamp: X-Slack-Request-Timestamp header
        body: Raw request body
        signature: X-Slack-Signature header ("v0=<hex>")
        tolerance_seconds: Max clock difference before a request counts as a replay
        now: Current Unix time (defaults to time.time())

    Returns:
        True if the signature is valid and fresh
    """
    if not signing_secret or not timestamp or not signature:
        return False

    try:
        request_time = int(timestamp)
    except ValueError:
        return False

    current = time.time() if now is None else now
    if abs(current - request_time) > tolerance_seconds:
        return False

    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + body
    expected = hmac.new(
        signing_secret.encode("utf-8"),
        base,
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(f"{SIGNATURE_VERSION}={expected}", signature)


class LaterBot:
    """HTTP front end for the /later slash command."""

    def __init__(self, config: LaterConfig, client: Optional[SlackAPIClient] = None):
        self.config = config
        self.client = client or SlackAPIClient(
            token=config.slack_bot_token,
            base_url=config.slack_api_url,
            timeout=config.http_timeout,
        )
        self.command = LaterCommand(self.client)
        self._tasks: set[asyncio.Task] = set()

        if not config.slack_signing_secret:
            logger.warning("SLACK_SIGNING_SECRET not set, all commands will be rejected")

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/slack/commands", self.handle_command)
        app.router.add_get("/health", self.handle_health)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def handle_command(self, request: web.Request) -> web.Response:
        """Verify and acknowledge a slash command, then run it in the background."""
        body = await request.read()

        if not verify_slack_signature(
            self.config.slack_signing_secret or "",
            request.headers.get("X-Slack-Request-Timestamp", ""),
            body,
            request.headers.get("X-Slack-Signature", ""),
            tolerance_seconds=self.config.signature_tolerance_seconds,
        ):
            logger.warning("Rejected slash command with invalid signature")
            return web.Response(status=401, text="invalid signature")

        try:
            form = dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
            command = CommandRequest.from_form(form)
        except ValueError as e:
            logger.warning(f"Rejected malformed slash command: {e}")
            return web.Response(status=400, text=str(e))

        if command.command != self.config.command_name:
            logger.warning(f"Rejected unknown command {command.command}")
            return web.Response(status=400, text="unknown command")

        self.spawn(self.command.handle(command))
        return web.Response(status=200)

    def spawn(self, coro) -> asyncio.Task:
        """Run an invocation in the background, logging any failure."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Command failed: {error}", exc_info=error)

    async def _on_cleanup(self, app: web.Application) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.client.close()


def main():
    """Run the HTTP server."""
    config = LaterConfig.from_env()
    if not config.slack_bot_token:
        print("Error: SLACK_BOT_TOKEN environment variable not set")
        print("Please set it in your .env file")
        return

    bot = LaterBot(config)
    logger.info(f"later is listening on {config.host}:{config.port}")
    web.run_app(bot.build_app(), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
