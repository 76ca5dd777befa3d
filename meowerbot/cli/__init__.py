"""CLI module for meowerbot."""

from meowerbot.cli.commands import app

__all__ = ["app"]
