"""
Command registry for a bot.

The registry is append-only: commands are added once, in order, and never
replaced or removed.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator

from loguru import logger

from meowerbot.commands.patterns import Pattern
from meowerbot.errors import ConfigurationError

# handler(reply, args, post); may return an awaitable
CommandHandler = Callable[[Callable[..., Awaitable[Any]], tuple, Any], Any]


@dataclass(frozen=True)
class Command:
    """A registered command."""
    name: str
    pattern: Pattern
    handler: CommandHandler
    description: str | None = None
    category: str = "None"
    admin: bool = False

    def usage(self, bot_username: str | None) -> str:
        """Render '@bot name <args>' for the help listing."""
        parts = [f"@{bot_username}", self.name]
        signature = self.pattern.signature()
        if signature:
            parts.append(signature)
        return " ".join(parts)


class CommandRegistry:
    """
    Registry of all commands of one bot.

    Example:
        registry = CommandRegistry()
        registry.add(Command(name="ping", pattern=Pattern.build(), handler=ping))
        registry.get("ping")
    """

    def __init__(self):
        self._commands: dict[str, Command] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def __iter__(self) -> Iterator[Command]:
        return iter(list(self._commands.values()))

    def __len__(self) -> int:
        return len(self._commands)

    def add(self, command: Command) -> None:
        """
        Add a command.

        Raises:
            ConfigurationError: A command with that name already exists.
        """
        if command.name in self._commands:
            raise ConfigurationError(
                f'A command with the name of "{command.name}" already exists.'
            )
        self._commands[command.name] = command
        logger.success(f'Registered command "{command.name}".')

    def get(self, name: str) -> Command | None:
        return self._commands.get(name)

    def list_commands(self) -> list[Command]:
        """All commands in registration order."""
        return list(self._commands.values())

    def by_category(self) -> dict[str, list[Command]]:
        """Group commands by category, in order of first appearance."""
        groups: dict[str, list[Command]] = {}
        for command in self._commands.values():
            groups.setdefault(command.category, []).append(command)
        return groups
