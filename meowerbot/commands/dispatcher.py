"""
Command dispatcher for meowerbot.

Routes "@bot <command> <args...>" posts to handlers with:
- Ban and admin gates
- Argument validation against the command's pattern
- Per-command error isolation
- A generated help command
"""

import inspect
import json
from typing import Any, Awaitable, Callable, Iterable

from loguru import logger

from meowerbot.commands.patterns import Pattern, parse_arguments
from meowerbot.commands.registry import Command, CommandHandler, CommandRegistry
from meowerbot.config.schema import BotConfig
from meowerbot.errors import ArgumentError
from meowerbot.models.post import Post
from meowerbot.session import Session

Reply = Callable[..., Awaitable[Any]]


class CommandDispatcher:
    """
    Dispatches posts that mention the bot to registered commands.

    Every command gets its own subscriber on the session's post event, so
    commands run independently of each other; a failing handler only
    produces an error reply to its own post.
    """

    def __init__(self, session: Session, config: BotConfig | None = None):
        self.session = session
        self.config = config or session.config
        self.messages = self.config.messages
        self.admins = frozenset(self.config.admins)
        self.banned = frozenset(self.config.banned)
        self.registry = CommandRegistry()

        if self.config.help:
            self.register(
                "help",
                self._help,
                description=self.messages.help_description,
            )

    @property
    def commands(self) -> list[Command]:
        return self.registry.list_commands()

    def register(
        self,
        name: str,
        handler: CommandHandler,
        *,
        args: Iterable[Any] = (),
        description: str | None = None,
        category: str = "None",
        admin: bool = False,
    ) -> Command:
        """
        Register a command.

        Args:
            name: Word following the mention; matched case-sensitively.
            handler: Called as handler(reply, args, post); may be async.
            args: Argument pattern, see meowerbot.commands.patterns.
            description: Shown in the help listing.
            category: Help listing group.
            admin: Restrict the command to configured admins.

        Raises:
            ConfigurationError: Duplicate name or malformed pattern.
        """
        command = Command(
            name=name,
            pattern=Pattern.build(args),
            handler=handler,
            description=description,
            category=category,
            admin=admin,
        )
        self.registry.add(command)

        async def on_post(reply: Reply, post: Post) -> None:
            await self._dispatch(command, reply, post)

        self.session.on("post", on_post)
        if self.config.dispatch_edits:
            self.session.on("update_post", on_post)
        return command

    def command(
        self,
        name: str,
        *,
        args: Iterable[Any] = (),
        description: str | None = None,
        category: str = "None",
        admin: bool = False,
    ) -> Callable[[CommandHandler], CommandHandler]:
        """
        Decorator form of register().

        Example:
            @dispatcher.command("add", args=["number", "number"])
            async def add(reply, args, post):
                await reply(str(args[0] + args[1]))
        """
        def decorator(handler: CommandHandler) -> CommandHandler:
            self.register(
                name,
                handler,
                args=args,
                description=description,
                category=category,
                admin=admin,
            )
            return handler

        return decorator

    def match(self, command: Command, content: str) -> list[str] | None:
        """
        Check whether a post invokes a command.

        Returns:
            The argument tokens, or None if the post is not for this command.
        """
        username = self.session.username
        if not username:
            return None

        split = content.split(" ")
        if split[0].lower() != f"@{username}".lower():
            return None
        if len(split) < 2 or split[1] != command.name:
            return None
        return split[2:]

    async def _dispatch(self, command: Command, reply: Reply, post: Post) -> None:
        tokens = self.match(command, post.content)
        if tokens is None:
            return

        description = f"{json.dumps(post.content)} by {post.username} in {post.origin}"
        logger.info(f"Running {description}...")

        async def banned() -> bool:
            if post.username in self.banned:
                logger.error(f"Refused running {description} as the user is banned.")
                await reply(self.messages.banned)
                return True
            return False

        async def admin_locked() -> bool:
            if command.admin and post.username not in self.admins:
                logger.error(f"Refused running {description} as the user is not an admin.")
                await reply(self.messages.admin_locked)
                return True
            return False

        for gate in (banned, admin_locked):
            refused = await self._isolated(gate, reply, description)
            if refused is not False:
                return

        async def run() -> None:
            try:
                args = parse_arguments(command.pattern, tokens)
            except ArgumentError as e:
                message = e.format(self.messages)
                logger.error(f"Couldn't run {description} because {message}")
                await reply(message)
                return

            result = command.handler(reply, args, post)
            if inspect.isawaitable(result):
                await result
            logger.success(f"Successfully ran {description}.")

        await self._isolated(run, reply, description)

    async def _isolated(
        self,
        step: Callable[[], Awaitable[Any]],
        reply: Reply,
        description: str,
    ) -> Any:
        """
        Run one step of a command, containing any failure.

        Returns:
            The step's result, or None if it raised.
        """
        try:
            return await step()
        except Exception:
            logger.exception(f"Couldn't run {description} because an error occurred.")
            try:
                await reply(self.messages.error)
            except Exception:
                logger.exception("Another error occurred trying to send the error.")
            return None

    def render_help(self) -> str:
        """Build the help listing for all registered commands."""
        username = self.session.username
        sections = []
        for category, commands in self.registry.by_category().items():
            entries = []
            for command in commands:
                entry = ("🔒 " if command.admin else "") + command.usage(username)
                if command.description:
                    entry += f"\n_{command.description}_"
                entries.append(entry + "\n")
            sections.append(f"### {category}\n" + "\n".join(entries))
        return f"{self.messages.help_commands}\n" + "\n".join(sections)

    async def _help(self, reply: Reply, args: tuple, post: Post) -> None:
        await reply(self.render_help())
