"""
Tests for live Post handles.

Tests:
- Friendly accessors over raw payloads
- Update/delete propagation to every handle of an id
- Reply chains
- reply() and delete()
"""

import gc
from datetime import datetime, timezone

import pytest

from meowerbot.api.types import RawPost
from meowerbot.errors import NotLoggedInError, PostOwnershipError, RemoteServiceError
from meowerbot.models.post import Post, Reaction
from meowerbot.session import Session

from conftest import BOT_USERNAME, log_in, make_raw_post


def raw(**overrides) -> RawPost:
    return RawPost.model_validate(make_raw_post(**overrides))


@pytest.fixture
def session(config, api, stream_factory):
    return Session(config, api=api, stream_factory=stream_factory)


class TestAccessors:
    """Tests for Post accessors."""

    def test_friendly_names(self, session):
        post = Post(raw(
            p="meow",
            u="Josh",
            post_origin="livechat",
            t={"e": 1700000000},
            edited_at=1700000060,
            reactions=[{"count": 3, "emoji": "🐱", "user_reacted": True}],
        ), session)

        assert post.content == "meow"
        assert post.username == "Josh"
        assert post.origin == "livechat"
        assert post.created_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
        assert post.edited_at == datetime.fromtimestamp(1700000060, tz=timezone.utc)
        assert post.reactions == [Reaction(emoji="🐱", count=3, user_reacted=True)]
        assert post.is_deleted is False

    def test_unedited_post(self, session):
        post = Post(raw(), session)
        assert post.edited_at is None

    def test_reply_chain_is_wrapped(self, session):
        parent = make_raw_post(p="parent", post_id="p1")
        post = Post(raw(p="child", reply_to=[parent, None]), session)

        first, second = post.reply_to
        assert isinstance(first, Post)
        assert first.content == "parent"
        assert second is None

    def test_nested_reply_chain(self, session):
        grandparent = make_raw_post(p="grandparent", post_id="g1")
        parent = make_raw_post(p="parent", post_id="p1", reply_to=[grandparent])
        post = Post(raw(reply_to=[parent]), session)

        assert post.reply_to[0].reply_to[0].content == "grandparent"


class TestPropagation:
    """Tests for update/delete propagation through the PostStore."""

    def test_handles_share_state(self, session):
        payload = raw(post_id="same", p="old")
        first = Post(payload, session)
        second = Post(payload, session)

        session.posts.apply_update(raw(post_id="same", p="new", reactions=[
            {"count": 1, "emoji": "👍", "user_reacted": False},
        ]))

        assert first.content == second.content == "new"
        assert first.reactions == second.reactions == [
            Reaction(emoji="👍", count=1, user_reacted=False),
        ]
        assert first == second

    def test_update_frame_updates_existing_handles(self, session):
        post = Post(raw(post_id="abc", p="before"), session)

        session.handle_frame({
            "cmd": "update_post",
            "val": make_raw_post(post_id="abc", p="after"),
        })

        assert post.content == "after"

    def test_update_listeners(self, session):
        post = Post(raw(post_id="abc"), session)
        calls = []
        post.on("update", lambda: calls.append(post.content))

        session.posts.apply_update(raw(post_id="abc", p="edited"))

        assert calls == ["edited"]

    def test_delete_frame_marks_handles(self, session):
        post = Post(raw(post_id="gone"), session)
        deleted = []
        post.on("delete", lambda: deleted.append(True))

        session.handle_frame({"cmd": "delete_post", "val": {"post_id": "gone"}})

        assert post.is_deleted is True
        assert deleted == [True]

    def test_deletion_is_sticky(self, session):
        post = Post(raw(post_id="gone"), session)
        session.posts.mark_deleted("gone")

        session.posts.apply_update(raw(post_id="gone", p="zombie"))

        assert post.is_deleted is True

    def test_other_ids_are_untouched(self, session):
        post = Post(raw(post_id="one", p="keep"), session)

        session.posts.apply_update(raw(post_id="two", p="changed"))
        session.posts.mark_deleted("two")

        assert post.content == "keep"
        assert post.is_deleted is False

    def test_disposed_listener_is_not_called(self, session):
        post = Post(raw(post_id="abc"), session)
        calls = []
        subscription = post.on("update", lambda: calls.append(1))
        subscription.dispose()

        session.posts.apply_update(raw(post_id="abc", p="edited"))

        assert calls == []

    def test_unknown_event(self, session):
        post = Post(raw(), session)
        with pytest.raises(ValueError):
            post.on("edit", lambda: None)

    def test_state_is_released_with_last_handle(self, session):
        post = Post(raw(post_id="temp"), session)
        assert "temp" in session.posts

        del post
        gc.collect()

        assert "temp" not in session.posts


class TestReplyAndDelete:
    """Tests for Post.reply() and Post.delete()."""

    @pytest.mark.asyncio
    async def test_reply_targets_post_and_chat(self, session, api):
        await log_in(session)
        post = Post(raw(post_id="q1", post_origin="chat-42"), session)

        reply = await post.reply("answer")

        api.create_post.assert_awaited_once_with(
            "session-token",
            "answer",
            replies=["q1"],
            attachments=[],
            chat="chat-42",
        )
        assert isinstance(reply, Post)
        assert reply.content == "answer"

    @pytest.mark.asyncio
    async def test_reply_cannot_override_chat(self, session):
        await log_in(session)
        post = Post(raw(), session)

        with pytest.raises(TypeError):
            await post.reply("answer", chat="home")

    @pytest.mark.asyncio
    async def test_reply_requires_login(self, session, api):
        post = Post(raw(), session)

        with pytest.raises(NotLoggedInError):
            await post.reply("answer")
        api.create_post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_own_post(self, session, api):
        await log_in(session)
        post = Post(raw(post_id="mine", u=BOT_USERNAME.lower()), session)

        await post.delete()

        api.delete_post.assert_awaited_once_with("session-token", "mine")

    @pytest.mark.asyncio
    async def test_delete_foreign_post(self, session, api):
        await log_in(session)
        post = Post(raw(u="Josh"), session)

        with pytest.raises(PostOwnershipError):
            await post.delete()
        api.delete_post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_requires_login(self, session, api):
        post = Post(raw(u=BOT_USERNAME), session)

        with pytest.raises(NotLoggedInError):
            await post.delete()
        api.delete_post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_remote_failure(self, session, api):
        await log_in(session)
        api.delete_post.side_effect = RemoteServiceError("nope", status_code=403)
        post = Post(raw(u=BOT_USERNAME), session)

        with pytest.raises(RemoteServiceError) as exc_info:
            await post.delete()
        assert exc_info.value.status_code == 403
