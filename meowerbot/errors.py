"""
Exceptions raised by meowerbot.

Hierarchy:
- ConfigurationError: bad command setup, fatal at registration time
- ArgumentError: a user typed invalid arguments, reported back to them
- AuthorizationError: not logged in, or acting on someone else's post
- RemoteServiceError: Meower answered with an error
"""

import json
from typing import Any


class MeowerBotError(Exception):
    """Base class for all meowerbot errors."""


class ConfigurationError(MeowerBotError):
    """A command or pattern was declared incorrectly."""


class AlreadyLoggedInError(MeowerBotError):
    """login() was called on a session that already logged in."""


class ArgumentError(MeowerBotError):
    """
    A command's arguments did not match its pattern.

    Subclasses render a user-facing message through format(), using the
    templates of a MessagesConfig.
    """

    def format(self, messages: Any) -> str:
        raise NotImplementedError


class MissingArgument(ArgumentError):
    def __init__(self, argument: str):
        super().__init__(f"Missing argument: {argument}")
        self.argument = argument

    def format(self, messages: Any) -> str:
        return messages.args_missing.format(name=self.argument)


class NotInSet(ArgumentError):
    def __init__(self, value: str, choices: tuple[str, ...]):
        super().__init__(f"{value!r} is not one of {choices!r}")
        self.value = value
        self.choices = choices

    def format(self, messages: Any) -> str:
        return messages.args_not_in_set.format(
            value=json.dumps(self.value),
            options=", ".join(json.dumps(choice) for choice in self.choices),
        )


class NotANumber(ArgumentError):
    def __init__(self, value: str):
        super().__init__(f"{value!r} is not a number")
        self.value = value

    def format(self, messages: Any) -> str:
        return messages.arg_nan.format(value=json.dumps(self.value))


class TooManyArguments(ArgumentError):
    def __init__(self, expected: int, received: int):
        super().__init__(f"Expected at most {expected} arguments, got {received}")
        self.expected = expected
        self.received = received

    def format(self, messages: Any) -> str:
        return messages.too_many_args


class AuthorizationError(MeowerBotError):
    """The bot is not allowed to perform an operation."""


class NotLoggedInError(AuthorizationError):
    def __init__(self, message: str = "The bot is not logged in."):
        super().__init__(message)


class PostOwnershipError(AuthorizationError):
    def __init__(self, post_id: str):
        super().__init__(f"Post {post_id} is not made by the bot.")
        self.post_id = post_id


class RemoteServiceError(MeowerBotError):
    """
    Meower rejected a request.

    Attributes:
        status_code: HTTP status code, when the failure came with one.
        reason: Error type reported by the API body, when present.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class LoginError(RemoteServiceError):
    """Credentials were rejected."""


class AttachmentTooLargeError(RemoteServiceError):
    """An upload exceeded the attachment size ceiling."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"The file is too large ({size}B). Keep it at or under {limit}B"
        )
        self.size = size
        self.limit = limit
