"""
Stream frame decoding.

Every frame is a JSON object tagged with "cmd". Only four kinds matter to
the bot; everything else decodes to None and is dropped.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from meowerbot.api.types import RawPost


class AuthPayload(BaseModel):
    token: str


class AuthFrame(BaseModel):
    """Sent once the stream accepted our token."""
    cmd: Literal["auth"]
    val: AuthPayload


class PostFrame(BaseModel):
    """A new post."""
    cmd: Literal["post"]
    val: RawPost


class UpdatePostFrame(BaseModel):
    """A post was edited or its reactions changed."""
    cmd: Literal["update_post"]
    val: RawPost


class DeletedPost(BaseModel):
    post_id: str


class DeletePostFrame(BaseModel):
    """A post was deleted."""
    cmd: Literal["delete_post"]
    val: DeletedPost


Frame = Annotated[
    Union[AuthFrame, PostFrame, UpdatePostFrame, DeletePostFrame],
    Field(discriminator="cmd"),
]

_frame_adapter: TypeAdapter = TypeAdapter(Frame)


def decode_frame(data: str | bytes | dict[str, Any]) -> Any | None:
    """
    Decode one stream frame.

    Args:
        data: Raw text from the socket or an already parsed mapping.

    Returns:
        One of the frame models, or None for invalid JSON and unknown
        or malformed frames.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError:  # Invalid JSON or undecodable bytes
            return None

    if not isinstance(data, dict):
        return None

    try:
        return _frame_adapter.validate_python(data)
    except ValidationError:
        return None
