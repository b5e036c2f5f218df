# later - Slack Scheduled Message Command
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""Tests for the HTTP front end and configuration."""

import asyncio
import hashlib
import hmac
import logging
import sys
import time
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import urlencode

import pytest
from aiohttp import test_utils

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from later_bot import LaterBot, verify_slack_signature
from scheduling.config import LaterConfig

SECRET = "8f742231b10e8888abcd99yyyzzz85a5"


def _sign(body: bytes, timestamp: str, secret: str = SECRET) -> str:
    base = f"v0:{timestamp}:".encode("utf-8") + body
    return "v0=" + hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()


class TestLaterConfig:
    def test_defaults(self):
        config = LaterConfig()
        assert config.command_name == "/later"
        assert config.port == 3000
        assert config.signature_tolerance_seconds == 300

    def test_from_env_default(self):
        with patch.dict("os.environ", {}, clear=True):
            config = LaterConfig.from_env()
            assert config.slack_bot_token is None
            assert config.slack_api_url == "https://slack.com/api/"
            assert config.port == 3000

    def test_from_env_custom_values(self):
        with patch.dict("os.environ", {
            "SLACK_BOT_TOKEN": "xoxb-1",
            "SLACK_SIGNING_SECRET": "shh",
            "LATER_COMMAND": "/schedule",
            "PORT": "8080",
            "SLACK_HTTP_TIMEOUT": "5",
        }):
            config = LaterConfig.from_env()
            assert config.slack_bot_token == "xoxb-1"
            assert config.slack_signing_secret == "shh"
            assert config.command_name == "/schedule"
            assert config.port == 8080
            assert config.http_timeout == 5.0


class TestVerifySlackSignature:
    def test_valid(self):
        body = b"command=%2Flater&text=friday+ship"
        ts = "1531420618"
        assert verify_slack_signature(SECRET, ts, body, _sign(body, ts), now=1531420618)

    def test_tampered_body(self):
        body = b"command=%2Flater&text=friday+ship"
        ts = "1531420618"
        signature = _sign(body, ts)
        assert not verify_slack_signature(SECRET, ts, body + b"x", signature, now=1531420618)

    def test_wrong_secret(self):
        body = b"text=hi"
        ts = "1531420618"
        assert not verify_slack_signature(SECRET, ts, body, _sign(body, ts, "other"), now=1531420618)

    def test_stale_timestamp(self):
        body = b"text=hi"
        ts = "1531420618"
        assert not verify_slack_signature(SECRET, ts, body, _sign(body, ts), now=1531420618 + 301)

    def test_missing_parts(self):
        assert not verify_slack_signature("", "1", b"", "v0=abc", now=1)
        assert not verify_slack_signature(SECRET, "", b"", "v0=abc", now=1)
        assert not verify_slack_signature(SECRET, "not-a-number", b"", "v0=abc", now=1)


def _bot() -> LaterBot:
    client = MagicMock()
    client.close = AsyncMock()
    bot = LaterBot(LaterConfig(slack_bot_token="xoxb-1", slack_signing_secret=SECRET), client=client)
    bot.command.handle = AsyncMock()
    return bot


def _form(**overrides) -> bytes:
    fields = {
        "user_id": "U1",
        "user_name": "ada",
        "channel_id": "C123",
        "text": "tomorrow at 3pm ship the report",
        "command": "/later",
        "response_url": "https://hooks.slack.test/commands/T1/1/abc",
    }
    fields.update(overrides)
    return urlencode(fields).encode("utf-8")


def _headers(body: bytes) -> dict:
    ts = str(int(time.time()))
    return {
        "Content-Type": "application/x-www-form-urlencoded",
        "X-Slack-Request-Timestamp": ts,
        "X-Slack-Signature": _sign(body, ts),
    }


class TestHandleCommand:
    @pytest.mark.asyncio
    async def test_acknowledges_and_runs_in_background(self):
        bot = _bot()
        body = _form()

        async with test_utils.TestClient(test_utils.TestServer(bot.build_app())) as client:
            resp = await client.post("/slack/commands", data=body, headers=_headers(body))
            assert resp.status == 200
            await asyncio.sleep(0)

        bot.command.handle.assert_awaited_once()
        request = bot.command.handle.await_args.args[0]
        assert request.text == "tomorrow at 3pm ship the report"
        assert request.channel_id == "C123"
        bot.client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bad_signature(self):
        bot = _bot()
        body = _form()
        headers = _headers(body)
        headers["X-Slack-Signature"] = "v0=deadbeef"

        async with test_utils.TestClient(test_utils.TestServer(bot.build_app())) as client:
            resp = await client.post("/slack/commands", data=body, headers=headers)
            assert resp.status == 401

        bot.command.handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_fields(self):
        bot = _bot()
        body = urlencode({"command": "/later", "text": "friday"}).encode("utf-8")

        async with test_utils.TestClient(test_utils.TestServer(bot.build_app())) as client:
            resp = await client.post("/slack/commands", data=body, headers=_headers(body))
            assert resp.status == 400

        bot.command.handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_body_not_utf8(self):
        bot = _bot()
        body = b"command=%2Flater&text=\xff\xfe"

        async with test_utils.TestClient(test_utils.TestServer(bot.build_app())) as client:
            resp = await client.post("/slack/commands", data=body, headers=_headers(body))
            assert resp.status == 400

        bot.command.handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_command(self):
        bot = _bot()
        body = _form(command="/sooner")

        async with test_utils.TestClient(test_utils.TestServer(bot.build_app())) as client:
            resp = await client.post("/slack/commands", data=body, headers=_headers(body))
            assert resp.status == 400

        bot.command.handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_health(self):
        bot = _bot()

        async with test_utils.TestClient(test_utils.TestServer(bot.build_app())) as client:
            resp = await client.get("/health")
            assert resp.status == 200
            assert await resp.json() == {"status": "ok"}


class TestBackgroundFailures:
    @pytest.mark.asyncio
    async def test_failure_is_logged(self, caplog):
        bot = _bot()

        async def boom():
            raise RuntimeError("slack is down")

        with caplog.at_level(logging.ERROR, logger="later"):
            task = bot.spawn(boom())
            await asyncio.gather(task, return_exceptions=True)
            await asyncio.sleep(0)

        assert "Command failed: slack is down" in caplog.text
        assert task not in bot._tasks
