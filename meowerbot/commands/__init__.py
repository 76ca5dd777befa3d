"""
Command system for meowerbot.

Commands are registered on a CommandDispatcher with an argument pattern:

    dispatcher.register("add", add, args=["number", "number"])

    # @Bot add 2 4 -> add(reply, (2.0, 4.0), post)
"""

from meowerbot.commands.dispatcher import CommandDispatcher
from meowerbot.commands.patterns import (
    ArgumentKind,
    ArgumentSpec,
    Pattern,
    parse_arguments,
)
from meowerbot.commands.registry import Command, CommandHandler, CommandRegistry

__all__ = [
    # Patterns
    "ArgumentKind",
    "ArgumentSpec",
    "Pattern",
    "parse_arguments",
    # Registry
    "Command",
    "CommandHandler",
    "CommandRegistry",
    # Dispatch
    "CommandDispatcher",
]
