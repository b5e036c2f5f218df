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
Response Formatter

Builds the ephemeral Slack replies for /later and renders scheduled times
relative to the requester's calendar ("Tomorrow at 15:00").
"""

from datetime import datetime

from tools.slack_api import SCHEDULE_HORIZON_DAYS

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def humanize_when(when: datetime, now: datetime) -> str:
    """
    Render `when` relative to `now`, in `now`'s timezone.

    - same day: "Today at 09:30"
    - next day: "Tomorrow at 09:30"
    - within the coming week: "Friday at 09:30"
    - anything else: "Friday 10 May 2024 at 09:30"
    """
    local = when.astimezone(now.tzinfo)
    clock = local.strftime("%H:%M")
    days_ahead = (local.date() - now.date()).days

    if days_ahead == 0:
        return f"Today at {clock}"
    if days_ahead == 1:
        return f"Tomorrow at {clock}"
    if 1 < days_ahead < 7:
        return f"{WEEKDAYS[local.weekday()]} at {clock}"

    return (
        f"{WEEKDAYS[local.weekday()]} {local.day:02d} {MONTHS[local.month - 1]} "
        f"{local.year} at {clock}"
    )


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _context(text: str) -> dict:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def error_response(error: str) -> dict:
    """Ephemeral reply carrying a single error message."""
    return {
        "response_type": "ephemeral",
        "text": error,
        "blocks": [_section(error)],
    }


def context_response(text: str, context: str) -> dict:
    """Ephemeral reply with a message and a small context line under it."""
    return {
        "response_type": "ephemeral",
        "text": text,
        "blocks": [_section(text), _context(context)],
    }


def parse_error(command: str, text: str) -> dict:
    return error_response(f"I didn't understand `{command} {text}`.")


def empty_message_error(command: str) -> dict:
    return error_response(
        "There's no message to schedule. Add one after the time, "
        f"e.g. `{command} tomorrow at 9am ship the report`."
    )


def past_error(when: str) -> dict:
    return error_response(
        f"{when} is in the past. "
        "You can only schedule messages for times in the future."
    )


def too_far_error(when: str, horizon_days: int = SCHEDULE_HORIZON_DAYS) -> dict:
    return error_response(
        f"{when} is too far in the future. "
        f"You can only schedule messages up to {horizon_days} days in the future."
    )


def rejected_error(when: str, reason: str) -> dict:
    return error_response(
        f"Slack couldn't schedule your message for {when} (`{reason}`)."
    )


def scheduled_confirmation(message: str, when: str) -> dict:
    return context_response(message, f"Scheduled for {when}")


def scheduled_message_blocks(message: str, sender: str) -> list[dict]:
    """Blocks for the delivered message, attributed to the human sender."""
    return [_section(message), _context(f"From @{sender}")]
