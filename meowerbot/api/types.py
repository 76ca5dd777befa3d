"""
Payload models for the Meower API.

Field names follow the wire format (p, u, t, post_origin, ...); the
friendlier names live on meowerbot.models.post.Post.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Attachment(BaseModel):
    """An attachment as embedded in a post."""
    filename: str
    height: int
    id: str
    mime: str
    size: int
    width: int


class RawReaction(BaseModel):
    """A reaction entry as sent by the server."""
    count: int
    emoji: str
    user_reacted: bool


class PostTimestamp(BaseModel):
    e: float  # Epoch seconds


class RawPost(BaseModel):
    """A post exactly as returned by the API or pushed over the stream."""
    model_config = ConfigDict(extra="ignore")

    attachments: list[Attachment] = Field(default_factory=list)
    edited_at: float | None = None
    isDeleted: bool = False
    p: str
    post_id: str
    post_origin: str
    t: PostTimestamp
    type: int = 1
    u: str
    reactions: list[RawReaction] = Field(default_factory=list)
    reply_to: list[RawPost | None] = Field(default_factory=list)


class UploadsAttachment(BaseModel):
    """An attachment record returned by the uploads service."""
    bucket: str
    claimed: bool
    filename: str
    hash: str
    id: str
    uploaded_at: float
    uploaded_by: str


class User(BaseModel):
    """A user profile."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(alias="_id")
    avatar: str
    avatar_color: str
    banned: bool
    created: int | None
    flags: int
    last_seen: int | None
    lower_username: str
    lvl: int
    permissions: int | None
    pfp_data: int | None
    quote: str | None
    uuid: str | None


class AccountSettings(BaseModel):
    """
    Partial account settings for PATCH /me/config.

    Only fields that are set get sent.
    """
    pfp: int | None = None  # A default profile picture
    avatar: str | None = None  # An uploaded profile picture id
    avatar_color: str | None = None
    quote: str | None = None
    unread_inbox: bool | None = None
    theme: str | None = None
    layout: str | None = None
    sfx: bool | None = None
    bgm: bool | None = None
    bgm_song: int | None = None
    debug: bool | None = None
    hide_blocked_users: bool | None = None  # Takes effect on next login
    favorited_chats: list[str] | None = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


RawPost.model_rebuild()
