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
User Localization

Looks up the requesting user's timezone and locale from Slack. The lookup is
done fresh for every command so a changed timezone takes effect immediately.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import pytz

from tools.slack_api import SlackAPIClient, SlackAPIError

from .time_parser import validate_timezone

logger = logging.getLogger("later.scheduling.localization")


@dataclass(frozen=True)
class UserLocalization:
    """A user's timezone and (optional) locale."""

    timezone: str  # IANA name, e.g. "Europe/Amsterdam"
    locale: Optional[str] = None  # e.g. "en-US"

    @property
    def tzinfo(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.timezone)


class LocalizationError(Exception):
    """Raised when a user's timezone cannot be determined."""

    pass


async def resolve_localization(client: SlackAPIClient, user_id: str) -> UserLocalization:
    """
    Fetch the timezone and locale for a Slack user.

    There is no fallback timezone: guessing UTC would silently deliver the
    message at the wrong wall-clock time.

    Args:
        client: Slack Web API client
        user_id: Slack user ID of the requester

    Returns:
        UserLocalization for the user

    Raises:
        LocalizationError: If the user is unknown or has no usable timezone
    """
    if not user_id:
        raise LocalizationError("Cannot resolve localization without a user ID")

    try:
        user = await client.users_info(user_id)
    except SlackAPIError as e:
        raise LocalizationError(f"Could not look up user {user_id}: {e.error}") from e

    tz_name = user.get("tz")
    if not tz_name:
        raise LocalizationError(f"Slack returned no timezone for user {user_id}")

    if not validate_timezone(tz_name):
        raise LocalizationError(f"Unknown timezone '{tz_name}' for user {user_id}")

    localization = UserLocalization(timezone=tz_name, locale=user.get("locale"))
    logger.debug(f"Resolved localization for {user_id}: {localization}")
    return localization
