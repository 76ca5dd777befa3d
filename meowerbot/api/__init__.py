"""Remote service access for meowerbot: REST client, stream and payloads."""

from meowerbot.api.client import ATTACHMENT_MAX_SIZE, MeowerAPI
from meowerbot.api.frames import (
    AuthFrame,
    DeletePostFrame,
    PostFrame,
    UpdatePostFrame,
    decode_frame,
)
from meowerbot.api.stream import MeowerStream
from meowerbot.api.types import (
    AccountSettings,
    Attachment,
    RawPost,
    RawReaction,
    UploadsAttachment,
    User,
)

__all__ = [
    "ATTACHMENT_MAX_SIZE",
    "MeowerAPI",
    "MeowerStream",
    "AuthFrame",
    "PostFrame",
    "UpdatePostFrame",
    "DeletePostFrame",
    "decode_frame",
    "AccountSettings",
    "Attachment",
    "RawPost",
    "RawReaction",
    "UploadsAttachment",
    "User",
]
