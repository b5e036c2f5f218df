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
Scheduling Negotiator

Submits a message to chat.scheduleMessage and turns Slack's rejection codes
into outcome values. Only Slack-level rejections are translated; transport
and auth failures propagate to the caller untouched. Nothing is retried,
since a retry could schedule the same message twice.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

import pytz

from tools.slack_api import SCHEDULE_HORIZON_DAYS, SlackAPIClient, SlackAPIError

from .formatter import scheduled_message_blocks

logger = logging.getLogger("later.scheduling.negotiator")

TIME_IN_PAST = "time_in_past"
TIME_TOO_FAR = "time_too_far"

# The bot itself is misconfigured; nothing the requester can act on
AUTH_ERRORS = frozenset({
    "invalid_auth",
    "not_authed",
    "token_revoked",
    "token_expired",
    "account_inactive",
    "missing_scope",
    "not_allowed_token_type",
    "ekm_access_denied",
})


@dataclass(frozen=True)
class Scheduled:
    post_at: datetime
    scheduled_message_id: Optional[str] = None


@dataclass(frozen=True)
class RejectedPast:
    post_at: datetime


@dataclass(frozen=True)
class RejectedTooFar:
    post_at: datetime
    horizon_days: int = SCHEDULE_HORIZON_DAYS


@dataclass(frozen=True)
class RejectedOther:
    post_at: datetime
    reason: str


SchedulingOutcome = Union[Scheduled, RejectedPast, RejectedTooFar, RejectedOther]


def to_epoch_seconds(instant: datetime) -> int:
    """Unix seconds, truncated so a fraction never pushes into the next second."""
    return math.floor(instant.timestamp())


def _utcnow() -> datetime:
    return datetime.now(pytz.UTC)


class SchedulingNegotiator:
    """Schedules messages through Slack on behalf of a user."""

    def __init__(
        self,
        client: SlackAPIClient,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.clock = clock

    async def schedule(
        self,
        channel_id: str,
        message_text: str,
        post_at: datetime,
        sender_name: str,
    ) -> SchedulingOutcome:
        """
        Schedule `message_text` in `channel_id` at `post_at`.

        The bot posts the message, so the sender is credited in a context
        block under the text.

        Returns:
            Scheduled, RejectedPast, RejectedTooFar or RejectedOther

        Raises:
            httpx.HTTPError: Transport or HTTP-level failure
            SlackAPIError: The bot token was refused (AUTH_ERRORS)
        """
        post_at_seconds = to_epoch_seconds(post_at)

        if post_at_seconds <= to_epoch_seconds(self.clock()):
            logger.info(f"Not submitting {post_at.isoformat()}: already in the past")
            return RejectedPast(post_at=post_at)

        try:
            response = await self.client.schedule_message(
                channel=channel_id,
                text=message_text,
                post_at=post_at_seconds,
                blocks=scheduled_message_blocks(message_text, sender_name),
            )
        except SlackAPIError as e:
            if e.error in AUTH_ERRORS:
                raise
            logger.info(f"Slack rejected message for {post_at.isoformat()}: {e.error}")
            if e.error == TIME_IN_PAST:
                return RejectedPast(post_at=post_at)
            if e.error == TIME_TOO_FAR:
                return RejectedTooFar(post_at=post_at)
            return RejectedOther(post_at=post_at, reason=e.error)

        message_id = response.get("scheduled_message_id")
        logger.info(
            f"Scheduled message {message_id} in {channel_id} for {post_at.isoformat()}"
        )
        return Scheduled(post_at=post_at, scheduled_message_id=message_id)
