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

"""
/later Slash Command

Schedules a message from free-form text, e.g.
`/later tomorrow at 9am ship the report`.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Awaitable, Callable, Mapping, Optional

import pytz

from scheduling import formatter
from scheduling.localization import resolve_localization
from scheduling.negotiator import (
    RejectedPast,
    RejectedTooFar,
    Scheduled,
    SchedulingNegotiator,
)
from scheduling.time_parser import extract_date_phrase, extract_message_text
from tools.slack_api import SlackAPIClient

logger = logging.getLogger("later.commands.later")

Respond = Callable[[dict], Awaitable[None]]

REQUIRED_FIELDS = ("user_id", "user_name", "channel_id", "command", "response_url")


@dataclass(frozen=True)
class CommandRequest:
    """A single slash command invocation as sent by Slack."""

    user_id: str
    user_name: str
    channel_id: str
    text: str
    command: str
    response_url: str

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "CommandRequest":
        """
        Build a request from Slack's form-encoded slash command payload.

        Raises:
            ValueError: If a required field is missing
        """
        missing = [field for field in REQUIRED_FIELDS if not form.get(field)]
        if missing:
            raise ValueError(f"Missing slash command fields: {', '.join(missing)}")

        return cls(
            user_id=form["user_id"],
            user_name=form["user_name"],
            channel_id=form["channel_id"],
            text=form.get("text", ""),
            command=form["command"],
            response_url=form["response_url"],
        )


def _now(tz: pytz.BaseTzInfo) -> datetime:
    return datetime.now(tz)


class LaterCommand:
    """
    Handler for /later.

    Each call to `handle` sends exactly one ephemeral reply, unless the
    user's timezone can't be resolved or Slack can't be reached; those
    errors propagate and the requester sees nothing.
    """

    def __init__(
        self,
        client: SlackAPIClient,
        negotiator: Optional[SchedulingNegotiator] = None,
        clock: Callable[[pytz.BaseTzInfo], datetime] = _now,
    ):
        self.client = client
        self.negotiator = negotiator or SchedulingNegotiator(
            client, clock=lambda: clock(pytz.UTC)
        )
        self.clock = clock

    async def respond(self, request: CommandRequest, payload: dict) -> None:
        await self.client.respond(request.response_url, payload)

    async def handle(self, request: CommandRequest, respond: Optional[Respond] = None) -> None:
        """Run one /later invocation end to end."""
        respond = respond or partial(self.respond, request)

        logger.info(f"{request.command} from {request.user_id} in {request.channel_id}")

        localization = await resolve_localization(self.client, request.user_id)
        now = self.clock(localization.tzinfo)

        phrase = extract_date_phrase(now, request.text)
        if phrase is None:
            logger.info(f"No date found in {request.text!r}")
            await respond(formatter.parse_error(request.command, request.text))
            return

        message = extract_message_text(request.text, phrase)
        if not message:
            logger.info(f"Nothing to schedule besides {phrase.matched_text!r}")
            await respond(formatter.empty_message_error(request.command))
            return

        when = formatter.humanize_when(phrase.resolved_at, now)

        outcome = await self.negotiator.schedule(
            channel_id=request.channel_id,
            message_text=message,
            post_at=phrase.resolved_at,
            sender_name=request.user_name,
        )

        if isinstance(outcome, Scheduled):
            await respond(formatter.scheduled_confirmation(message, when))
        elif isinstance(outcome, RejectedPast):
            await respond(formatter.past_error(when))
        elif isinstance(outcome, RejectedTooFar):
            await respond(formatter.too_far_error(when, outcome.horizon_days))
        else:
            await respond(formatter.rejected_error(when, outcome.reason))
