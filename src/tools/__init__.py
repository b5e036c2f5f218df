"""Outbound API clients."""

from .slack_api import (
    SCHEDULE_HORIZON_DAYS,
    SlackAPIClient,
    SlackAPIError,
)

__all__ = [
    "SCHEDULE_HORIZON_DAYS",
    "SlackAPIClient",
    "SlackAPIError",
]
