"""
The MeowerBot facade.

Bundles one Session and one CommandDispatcher behind a single object and
loads command modules ("extensions") that expose setup(bot).
"""

import importlib
from pathlib import Path
from typing import Any, Callable, Iterable

from loguru import logger

from meowerbot.api.client import MeowerAPI
from meowerbot.api.types import AccountSettings, UploadsAttachment, User
from meowerbot.commands.dispatcher import CommandDispatcher
from meowerbot.commands.registry import Command, CommandHandler
from meowerbot.config.schema import BotConfig
from meowerbot.errors import ConfigurationError
from meowerbot.events import Subscription
from meowerbot.models.post import Post
from meowerbot.session import Session, StreamFactory


class MeowerBot:
    """
    A bot connecting to Meower.

    Example:
        bot = MeowerBot(BotConfig(admins=["Josh"]))

        @bot.command("ping")
        async def ping(reply, args, post):
            await reply("Pong")

        await bot.start("BearBot", password)
    """

    def __init__(
        self,
        config: BotConfig | None = None,
        *,
        api: MeowerAPI | None = None,
        stream_factory: StreamFactory | None = None,
    ):
        self.config = config or BotConfig()

        if self.config.logging_level == "none":
            logger.disable("meowerbot")
        else:
            logger.enable("meowerbot")

        self.session = Session(self.config, api=api, stream_factory=stream_factory)
        self.dispatcher = CommandDispatcher(self.session, self.config)
        self._extensions: list[str] = []

    @property
    def username(self) -> str | None:
        return self.session.username

    @property
    def token(self) -> str | None:
        return self.session.token

    @property
    def commands(self) -> list[Command]:
        """Registered commands, in registration order."""
        return self.dispatcher.commands

    @property
    def extensions(self) -> list[str]:
        return list(self._extensions)

    def on(self, event: str, callback: Callable[..., Any]) -> Subscription:
        """Subscribe to a session event (login, post, update_post, delete_post, close)."""
        return self.session.on(event, callback)

    def register(self, name: str, handler: CommandHandler, **options: Any) -> Command:
        """Register a command; see CommandDispatcher.register()."""
        return self.dispatcher.register(name, handler, **options)

    def command(self, name: str, **options: Any) -> Callable[[CommandHandler], CommandHandler]:
        """Decorator registering a command; see CommandDispatcher.register()."""
        return self.dispatcher.command(name, **options)

    def load_extension(self, module_path: str) -> None:
        """
        Import a module and pass the bot to its setup() function.

        Args:
            module_path: Dotted module path, e.g. "mybot.commands.add".

        Raises:
            ConfigurationError: The module has no setup(bot) function.
        """
        module = importlib.import_module(module_path)
        setup = getattr(module, "setup", None)
        if not callable(setup):
            raise ConfigurationError(
                f"Extension {module_path!r} has no setup(bot) function"
            )
        setup(self)
        self._extensions.append(module_path)
        logger.info(f"Loaded extension {module_path}")

    def load_extensions(self, module_paths: Iterable[str]) -> None:
        for module_path in module_paths:
            self.load_extension(module_path)

    async def login(self, username: str, password: str) -> None:
        await self.session.login(username, password)

    async def start(self, username: str | None = None, password: str | None = None) -> None:
        """
        Log in and serve commands until the stream closes.

        Credentials default to the configured username and password.
        """
        await self.login(
            username or self.config.username,
            password or self.config.password,
        )
        try:
            await self.session.wait_closed()
        finally:
            await self.session.wait_idle()

    async def close(self) -> None:
        await self.session.close()

    async def post(self, content: str, **options: Any) -> Post:
        """Create a post; see Session.post()."""
        return await self.session.post(content, **options)

    async def user(self, username: str) -> User:
        return await self.session.user(username)

    async def upload(self, data: bytes | Path, filename: str | None = None) -> UploadsAttachment:
        return await self.session.upload(data, filename)

    async def set_account_settings(
        self,
        settings: AccountSettings | None = None,
        **fields: Any,
    ) -> None:
        await self.session.set_account_settings(settings, **fields)
