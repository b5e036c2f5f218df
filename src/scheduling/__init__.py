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
Message Scheduling Package

Natural language date parsing, user localization, Slack scheduling and
reply formatting for the /later command.
"""

from .config import LaterConfig
from .time_parser import (
    DateMatch,
    ParsedDatePhrase,
    extract_date_phrase,
    extract_message_text,
    select_date_phrase,
    strip_quotes,
    validate_timezone,
)
from .localization import LocalizationError, UserLocalization, resolve_localization
from .negotiator import (
    RejectedOther,
    RejectedPast,
    RejectedTooFar,
    Scheduled,
    SchedulingNegotiator,
    SchedulingOutcome,
)
from .formatter import humanize_when

__all__ = [
    "LaterConfig",
    "DateMatch",
    "ParsedDatePhrase",
    "extract_date_phrase",
    "extract_message_text",
    "select_date_phrase",
    "strip_quotes",
    "validate_timezone",
    "LocalizationError",
    "UserLocalization",
    "resolve_localization",
    "RejectedOther",
    "RejectedPast",
    "RejectedTooFar",
    "Scheduled",
    "SchedulingNegotiator",
    "SchedulingOutcome",
    "humanize_when",
]
