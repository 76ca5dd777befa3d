"""
Session with the Meower server.

Owns:
- Login (one-shot per instance)
- The persistent stream and its reader task
- Translation of stream frames into events
- Authenticated operations (post, upload, settings)
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable

import aiohttp
from loguru import logger

from meowerbot.api.client import MeowerAPI
from meowerbot.api.frames import (
    AuthFrame,
    DeletePostFrame,
    PostFrame,
    UpdatePostFrame,
    decode_frame,
)
from meowerbot.api.stream import MeowerStream
from meowerbot.api.types import AccountSettings, UploadsAttachment, User
from meowerbot.config.schema import BotConfig
from meowerbot.errors import AlreadyLoggedInError, NotLoggedInError, RemoteServiceError
from meowerbot.events import EventChannel, Subscription
from meowerbot.models.post import Post, PostStore

# stream_factory(token) -> MeowerStream-like object
StreamFactory = Callable[[str], Any]

EVENTS = ("login", "post", "update_post", "delete_post", "close")


class Session:
    """
    A logged in (or not yet logged in) connection to Meower.

    Events (subscribe with on()):
    - login(token): the stream confirmed our identity
    - post(reply, post): a new post arrived
    - update_post(reply, post): a post was edited
    - delete_post(post_id): a post was deleted
    - close(): the stream closed
    """

    def __init__(
        self,
        config: BotConfig | None = None,
        api: MeowerAPI | None = None,
        stream_factory: StreamFactory | None = None,
    ):
        """
        Initialize the session.

        Args:
            config: Bot configuration (endpoints, logging level).
            api: REST client; built from config.endpoints if omitted.
            stream_factory: Builds the stream for a token; defaults to MeowerStream.
        """
        self.config = config or BotConfig()
        self.api = api or MeowerAPI(self.config.endpoints)
        self._stream_factory = stream_factory or self._default_stream

        self.posts = PostStore(self)
        self._channels = {name: EventChannel(name) for name in EVENTS}

        self._username: str | None = None
        self._pending_username: str | None = None
        self._token: str | None = None
        self._stream: Any | None = None
        self._reader: asyncio.Task | None = None

    def _default_stream(self, token: str) -> MeowerStream:
        return MeowerStream(self.config.endpoints.stream_url, token)

    @property
    def username(self) -> str | None:
        """The logged in account, or None before login completes."""
        return self._username

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def stream(self) -> Any | None:
        return self._stream

    def on(self, event: str, callback: Callable[..., Any]) -> Subscription:
        """
        Subscribe to a session event.

        Args:
            event: One of login, post, update_post, delete_post, close.
            callback: Sync function or coroutine function.

        Returns:
            A Subscription whose dispose() detaches the callback.
        """
        channel = self._channels.get(event)
        if channel is None:
            raise ValueError(
                f"Unknown event {event!r}; expected one of {', '.join(EVENTS)}"
            )
        return channel.subscribe(callback)

    async def login(self, username: str, password: str) -> None:
        """
        Log into an account and open the stream.

        Args:
            username: Account to log into.
            password: Password, or a token that gets invalidated on success.

        Raises:
            AlreadyLoggedInError: This session logged in before.
            LoginError: Meower rejected the credentials.
            RemoteServiceError: The stream could not be opened. The session
                stays logged out and login() may be retried.
        """
        logger.info(f"Trying to log into {username}...")
        if self._token or self._stream is not None:
            raise AlreadyLoggedInError("This bot is already logged in.")

        initial_token = await self.api.authenticate(username, password)
        logger.success("Received initial token.")
        logger.info("Connecting to Meower...")

        stream = self._stream_factory(initial_token)
        try:
            await stream.connect()
        except aiohttp.ClientError as e:
            await stream.close()
            raise RemoteServiceError(f"Couldn't connect to the stream: {e}") from e

        self._pending_username = username
        self._stream = stream
        self._reader = asyncio.create_task(self._read_loop(stream))

    async def _read_loop(self, stream: Any) -> None:
        try:
            async for data in stream.frames():
                self.handle_frame(data)
        finally:
            logger.warning(f"Connection closed (code {getattr(stream, 'close_code', None)}).")
            self._channels["close"].emit()

    def handle_frame(self, data: str | bytes | dict[str, Any]) -> None:
        """
        Process one frame from the stream.

        Unknown or malformed frames are ignored.
        """
        if self.config.logging_level == "ws":
            logger.debug(f"Frame: {data if not isinstance(data, dict) else json.dumps(data)}")

        frame = decode_frame(data)
        if frame is None:
            logger.debug("Ignoring unrecognized frame")
            return

        if isinstance(frame, AuthFrame):
            self._username = self._pending_username or self._username
            self._token = frame.val.token
            logger.success("Received token. Logged in successfully!")
            self._channels["login"].emit(self._token)

        elif isinstance(frame, PostFrame):
            post = Post(frame.val, self)
            self._channels["post"].emit(post.reply, post)

        elif isinstance(frame, UpdatePostFrame):
            self.posts.apply_update(frame.val)
            post = Post(frame.val, self)
            self._channels["update_post"].emit(post.reply, post)

        elif isinstance(frame, DeletePostFrame):
            self.posts.mark_deleted(frame.val.post_id)
            self._channels["delete_post"].emit(frame.val.post_id)

    async def wait_idle(self) -> None:
        """
        Wait for every callback task started by past frames.

        Covers session event subscribers and the update/delete listeners
        of live posts.
        """
        while True:
            channels = [*self._channels.values(), *self.posts.channels()]
            busy = [channel for channel in channels if channel.busy]
            if not busy:
                return
            for channel in busy:
                await channel.drain()

    async def wait_closed(self) -> None:
        """Wait until the stream closes."""
        if self._reader:
            await self._reader

    async def close(self) -> None:
        """Close the stream and the HTTP client."""
        if self._stream is not None:
            await self._stream.close()
        if self._reader:
            await asyncio.gather(self._reader, return_exceptions=True)
        await self.api.close()

    def _require_token(self) -> str:
        if not self._token:
            raise NotLoggedInError()
        return self._token

    async def post(
        self,
        content: str,
        *,
        replies: list[str] | None = None,
        attachments: list[str | bytes | Path] | None = None,
        chat: str | None = None,
    ) -> Post:
        """
        Create a new post.

        Args:
            content: Text of the post.
            replies: Ids of posts this one replies to.
            attachments: Attachment ids, or bytes / paths to upload first.
            chat: Chat id, "home" or "livechat". Defaults to home.

        Returns:
            The new post. It may also arrive over the stream, possibly earlier.
        """
        token = self._require_token()

        attachment_ids = await asyncio.gather(
            *(self._attachment_id(attachment) for attachment in attachments or [])
        )
        raw = await self.api.create_post(
            token,
            content,
            replies=replies,
            attachments=list(attachment_ids),
            chat=chat,
        )
        return Post(raw, self)

    async def _attachment_id(self, attachment: str | bytes | Path) -> str:
        if isinstance(attachment, str):
            return attachment
        return (await self.upload(attachment)).id

    async def user(self, username: str) -> User:
        """Get the profile of a user."""
        return await self.api.fetch_user(username)

    async def upload(
        self,
        data: bytes | Path,
        filename: str | None = None,
    ) -> UploadsAttachment:
        """
        Upload an attachment for use in posts.

        Args:
            data: File contents or a path to read.
            filename: Name to upload under; defaults to the path's name.
        """
        token = self._require_token()

        if isinstance(data, Path):
            filename = filename or data.name
            data = data.read_bytes()

        return await self.api.upload_attachment(token, data, filename or "file")

    async def set_account_settings(
        self,
        settings: AccountSettings | None = None,
        **fields: Any,
    ) -> None:
        """
        Change settings of the logged in account.

        Either pass an AccountSettings or keyword fields of it, e.g.
        set_account_settings(quote="meow", avatar_color="ff0000").
        """
        token = self._require_token()
        settings = settings or AccountSettings(**fields)
        await self.api.update_account_settings(token, settings)

    async def delete_post(self, post_id: str) -> None:
        """Delete a post by id without ownership checks; Meower enforces them."""
        token = self._require_token()
        await self.api.delete_post(token, post_id)
