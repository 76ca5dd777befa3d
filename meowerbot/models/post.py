"""
Live post objects.

A PostStore maps post ids to one shared PostState. Post handles are thin
views over that state, so every handle for the same id sees edits and
deletions pushed by the stream without fetching anything again.
"""

import weakref
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Literal

from meowerbot.api.types import Attachment, RawPost
from meowerbot.errors import NotLoggedInError, PostOwnershipError
from meowerbot.events import EventChannel, Subscription

if TYPE_CHECKING:
    from meowerbot.session import Session


@dataclass(frozen=True)
class Reaction:
    """A reaction on a post."""
    emoji: str
    count: int
    user_reacted: bool  # Whether the logged in account reacted with it


class PostState:
    """The authoritative state of one post id, shared by all its handles."""

    def __init__(self, store: "PostStore", raw: RawPost):
        self._store = store
        self.id = raw.post_id
        self.raw = raw
        self.deleted = raw.isDeleted
        self.reply_to: list["Post | None"] = []
        self.updated = EventChannel(f"post:{self.id}:update")
        self.removed = EventChannel(f"post:{self.id}:delete")
        self._link_replies()

    def _link_replies(self) -> None:
        # Handles keep the ancestors' states alive for as long as this one lives
        self.reply_to = [
            Post(parent, self._store.session) if parent is not None else None
            for parent in self.raw.reply_to
        ]

    def replace(self, raw: RawPost) -> None:
        """Swap in a newer payload for the same id."""
        self.raw = raw
        self.deleted = self.deleted or raw.isDeleted
        self._link_replies()


class PostStore:
    """
    Identity map from post id to PostState.

    States are held weakly: once no Post handle refers to an id, its state
    is dropped.
    """

    def __init__(self, session: "Session"):
        self.session = session
        self._states: "weakref.WeakValueDictionary[str, PostState]" = (
            weakref.WeakValueDictionary()
        )

    def __contains__(self, post_id: str) -> bool:
        return post_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, post_id: str) -> PostState | None:
        return self._states.get(post_id)

    def channels(self) -> list[EventChannel]:
        """Update and delete channels of every live post."""
        channels = []
        for state in list(self._states.values()):
            channels.extend((state.updated, state.removed))
        return channels

    def ingest(self, raw: RawPost) -> PostState:
        """Return the state for raw.post_id, creating it from raw if unknown."""
        state = self._states.get(raw.post_id)
        if state is None:
            state = PostState(self, raw)
            self._states[raw.post_id] = state
        return state

    def apply_update(self, raw: RawPost) -> PostState:
        """
        Apply an update_post payload.

        Known posts get their fields replaced and their update listeners
        notified; unknown posts are simply ingested.
        """
        state = self._states.get(raw.post_id)
        if state is None:
            return self.ingest(raw)

        state.replace(raw)
        state.updated.emit()
        return state

    def mark_deleted(self, post_id: str) -> bool:
        """
        Apply a delete_post notification.

        Returns:
            True if a live post with that id was marked deleted.
        """
        state = self._states.get(post_id)
        if state is None:
            return False

        state.deleted = True
        state.removed.emit()
        return True


class Post:
    """
    A post on Meower.

    Attributes read through to the shared PostState, so they always reflect
    the latest update received for this id.
    """

    def __init__(self, raw: RawPost, session: "Session"):
        self._session = session
        self._state = session.posts.ingest(raw)

    def __repr__(self) -> str:
        return f"Post(id={self.id!r}, username={self.username!r}, origin={self.origin!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Post):
            return NotImplemented
        return self._state is other._state

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def raw(self) -> RawPost:
        """The latest wire payload."""
        return self._state.raw

    @property
    def id(self) -> str:
        return self._state.id

    @property
    def username(self) -> str:
        """Author of the post."""
        return self._state.raw.u

    @property
    def content(self) -> str:
        return self._state.raw.p

    @property
    def origin(self) -> str:
        """Chat id, or one of "home", "livechat" and "inbox"."""
        return self._state.raw.post_origin

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self._state.raw.t.e, tz=timezone.utc)

    @property
    def edited_at(self) -> datetime | None:
        edited = self._state.raw.edited_at
        return datetime.fromtimestamp(edited, tz=timezone.utc) if edited else None

    @property
    def reactions(self) -> list[Reaction]:
        return [
            Reaction(emoji=r.emoji, count=r.count, user_reacted=r.user_reacted)
            for r in self._state.raw.reactions
        ]

    @property
    def reply_to(self) -> list["Post | None"]:
        """Posts this one replies to; None marks a deleted or omitted post."""
        return list(self._state.reply_to)

    @property
    def attachments(self) -> list[Attachment]:
        return list(self._state.raw.attachments)

    @property
    def is_deleted(self) -> bool:
        return self._state.deleted

    def on(
        self,
        event: Literal["update", "delete"],
        callback: Callable[[], Any],
    ) -> Subscription:
        """
        Listen for changes to this post.

        Args:
            event: "update" after an edit, "delete" after deletion.
            callback: Called without arguments; may be a coroutine function.
        """
        if event == "update":
            return self._state.updated.subscribe(callback)
        if event == "delete":
            return self._state.removed.subscribe(callback)
        raise ValueError(f"Unknown post event: {event!r}")

    async def reply(
        self,
        content: str,
        *,
        attachments: list[str | bytes | Path] | None = None,
    ) -> "Post":
        """
        Reply to this post in the chat it was made in.

        Args:
            content: Text of the reply.
            attachments: Attachment ids, raw bytes or file paths.

        Returns:
            The new reply.
        """
        return await self._session.post(
            content,
            replies=[self.id],
            chat=self.origin,
            attachments=attachments,
        )

    async def delete(self) -> None:
        """
        Delete this post.

        Raises:
            NotLoggedInError: The session is not logged in.
            PostOwnershipError: The post was not made by the bot.
            RemoteServiceError: The API refused the deletion.
        """
        token = self._session.token
        if not token:
            raise NotLoggedInError()
        if (self._session.username or "").lower() != self.username.lower():
            raise PostOwnershipError(self.id)

        await self._session.api.delete_post(token, self.id)
