"""
Pytest configuration and shared fixtures for meowerbot tests.
"""

import asyncio
import itertools
import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from meowerbot.api.client import MeowerAPI
from meowerbot.api.types import RawPost
from meowerbot.config.schema import BotConfig

BOT_USERNAME = "BearBot"

_post_ids = itertools.count(1)


def make_raw_post(**overrides) -> dict:
    """Build a raw post payload as the server sends it."""
    data = {
        "attachments": [],
        "isDeleted": False,
        "p": "hello",
        "post_id": f"post-{next(_post_ids)}",
        "post_origin": "home",
        "t": {"e": 1700000000},
        "type": 1,
        "u": "Josh",
        "reactions": [],
        "reply_to": [],
    }
    data.update(overrides)
    return data


class FakeStream:
    """In-memory stand-in for MeowerStream."""

    def __init__(self, token: str):
        self.token = token
        self.connected = False
        self.closed = False
        self.close_code = None
        self._queue: asyncio.Queue = asyncio.Queue()

    async def connect(self) -> None:
        self.connected = True

    async def frames(self):
        while True:
            item = await self._queue.get()
            if item is None:
                return
            yield item

    def push(self, frame) -> None:
        self._queue.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def finish(self) -> None:
        self._queue.put_nowait(None)

    async def close(self) -> None:
        self.closed = True
        self.finish()


def _created_post(token, content, replies=None, attachments=None, chat=None):
    return RawPost.model_validate(make_raw_post(
        p=content,
        u=BOT_USERNAME,
        post_origin=chat or "home",
    ))


@pytest.fixture
def config():
    """Bot configuration with one admin and one banned user."""
    return BotConfig(admins=["Admin"], banned=["Troll"])


@pytest.fixture
def api():
    """A MeowerAPI double whose create_post echoes a bot post."""
    api = MagicMock(spec=MeowerAPI)
    api.authenticate = AsyncMock(return_value="initial-token")
    api.create_post = AsyncMock(side_effect=_created_post)
    api.delete_post = AsyncMock(return_value=None)
    api.fetch_user = AsyncMock()
    api.upload_attachment = AsyncMock()
    api.update_account_settings = AsyncMock(return_value=None)
    api.close = AsyncMock(return_value=None)
    return api


@pytest.fixture
def streams():
    """Collects the FakeStreams created by a session."""
    return []


@pytest.fixture
def stream_factory(streams):
    def factory(token: str) -> FakeStream:
        stream = FakeStream(token)
        streams.append(stream)
        return stream
    return factory


async def log_in(session, username: str = BOT_USERNAME, token: str = "session-token"):
    """Log a session in and confirm it with an auth frame."""
    await session.login(username, "hunter2")
    session.handle_frame({"cmd": "auth", "val": {"token": token}})
    return session
