"""Slash command handlers."""

from .later_commands import CommandRequest, LaterCommand

__all__ = ["CommandRequest", "LaterCommand"]
