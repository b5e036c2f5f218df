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
Service Configuration

Slack credentials and HTTP settings for the /later command service.
Values can be overridden via environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class LaterConfig:
    """Configuration for the /later command service."""

    # Slack credentials
    slack_bot_token: Optional[str] = None
    slack_signing_secret: Optional[str] = None
    slack_api_url: str = "https://slack.com/api/"

    # Slash command this service answers to
    command_name: str = "/later"

    # Inbound HTTP server
    host: str = "0.0.0.0"
    port: int = 3000

    # Max age of a signed Slack request (replay protection)
    signature_tolerance_seconds: int = 300

    # Outbound HTTP timeout for Slack calls
    http_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "LaterConfig":
        """Create config from environment variables with defaults."""
        return cls(
            slack_bot_token=os.getenv("SLACK_BOT_TOKEN"),
            slack_signing_secret=os.getenv("SLACK_SIGNING_SECRET"),
            slack_api_url=os.getenv("SLACK_API_URL", "https://slack.com/api/"),
            command_name=os.getenv("LATER_COMMAND", "/later"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            signature_tolerance_seconds=int(
                os.getenv("SLACK_SIGNATURE_TOLERANCE", "300")
            ),
            http_timeout=float(os.getenv("SLACK_HTTP_TIMEOUT", "30.0")),
        )
