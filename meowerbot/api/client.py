"""
HTTP client for the Meower REST API.

Covers the operations a bot needs:
- Password login
- Creating and deleting posts
- Fetching user profiles
- Uploading attachments
- Updating account settings
"""

from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import ValidationError

from meowerbot.api.types import AccountSettings, RawPost, UploadsAttachment, User
from meowerbot.config.schema import EndpointsConfig
from meowerbot.errors import (
    AttachmentTooLargeError,
    LoginError,
    RemoteServiceError,
)

ATTACHMENT_MAX_SIZE = 25 << 20


class MeowerAPI:
    """
    Thin async wrapper around the Meower HTTP endpoints.

    Every failed call raises RemoteServiceError (or a subclass), never
    returns an error value.
    """

    def __init__(
        self,
        endpoints: EndpointsConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the API client.

        Args:
            endpoints: Service URLs and timeout.
            client: Pre-built httpx client (tests pass one with a mock transport).
        """
        self.endpoints = endpoints or EndpointsConfig()
        self._client = client or httpx.AsyncClient(
            timeout=self.endpoints.timeout_seconds
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"Request to {url} failed: {e}") from e

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteServiceError(
                f"Invalid JSON from {response.request.url}",
                status_code=response.status_code,
            ) from e
        if not isinstance(body, dict):
            raise RemoteServiceError(
                f"Unexpected response from {response.request.url}",
                status_code=response.status_code,
            )
        return body

    async def authenticate(self, username: str, password: str) -> str:
        """
        Exchange credentials for a short-lived token.

        Args:
            username: Account name.
            password: Password, or a token that gets invalidated on success.

        Returns:
            The token used to open the stream.
        """
        response = await self._request(
            "POST",
            f"{self.endpoints.api_url}/auth/login",
            json={"username": username, "password": password},
        )
        body = self._json(response)

        if body.get("error") or "token" not in body:
            reason = body.get("type", f"HTTP {response.status_code}")
            raise LoginError(
                f"Couldn't log in: {reason}. Ensure that you have the correct password!",
                status_code=response.status_code,
                reason=reason,
            )
        return body["token"]

    async def create_post(
        self,
        token: str,
        content: str,
        replies: list[str] | None = None,
        attachments: list[str] | None = None,
        chat: str | None = None,
    ) -> RawPost:
        """
        Create a post.

        Args:
            token: Session token.
            content: Post text.
            replies: Ids of posts this one replies to.
            attachments: Ids of already uploaded attachments.
            chat: Chat id, or None / "home" for home.

        Returns:
            The created post payload.
        """
        path = "home" if not chat or chat == "home" else f"posts/{chat}"
        response = await self._request(
            "POST",
            f"{self.endpoints.api_url}/{path}",
            headers={"Token": token},
            json={
                "content": content,
                "reply_to": replies or [],
                "attachments": attachments or [],
            },
        )
        body = self._json(response)

        if body.get("error"):
            reason = body.get("type", "unknown")
            raise RemoteServiceError(
                f"Couldn't post: {reason}",
                status_code=response.status_code,
                reason=reason,
            )
        try:
            return RawPost.model_validate(body)
        except ValidationError as e:
            raise RemoteServiceError(
                f"Couldn't post: malformed response ({e.error_count()} errors)",
                status_code=response.status_code,
            ) from e

    async def delete_post(self, token: str, post_id: str) -> None:
        """Delete a post by id."""
        response = await self._request(
            "DELETE",
            f"{self.endpoints.api_url}/posts",
            params={"id": post_id},
            headers={"Token": token},
        )
        if not response.is_success:
            raise RemoteServiceError(
                f"Couldn't delete post. The API returned {response.status_code}",
                status_code=response.status_code,
            )

    async def fetch_user(self, username: str) -> User:
        """Get the public profile of a user."""
        response = await self._request(
            "GET",
            f"{self.endpoints.api_url}/users/{quote(username, safe='')}",
        )
        body = self._json(response)

        if body.get("error"):
            reason = body.get("type", "unknown")
            raise RemoteServiceError(
                f"Couldn't get user. Error: {reason}",
                status_code=response.status_code,
                reason=reason,
            )
        try:
            return User.model_validate(body)
        except ValidationError as e:
            raise RemoteServiceError(
                f"Couldn't get user: malformed response ({e.error_count()} errors)",
                status_code=response.status_code,
            ) from e

    async def upload_attachment(
        self,
        token: str,
        data: bytes,
        filename: str = "file",
    ) -> UploadsAttachment:
        """
        Upload a file for use in posts.

        Args:
            token: Session token.
            data: File contents, at most ATTACHMENT_MAX_SIZE bytes.
            filename: Name shown to other users.

        Returns:
            The stored attachment record.
        """
        if len(data) > ATTACHMENT_MAX_SIZE:
            raise AttachmentTooLargeError(len(data), ATTACHMENT_MAX_SIZE)

        logger.debug(f"Uploading {filename} ({len(data)}B)")
        response = await self._request(
            "POST",
            f"{self.endpoints.uploads_url}/attachments",
            headers={"Authorization": token},
            files={"file": (filename, data)},
        )
        if not response.is_success:
            raise RemoteServiceError(
                f"Couldn't upload {filename}. The server responded with {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return UploadsAttachment.model_validate(self._json(response))
        except ValidationError as e:
            raise RemoteServiceError(
                f"Couldn't upload {filename}: malformed response",
                status_code=response.status_code,
            ) from e

    async def update_account_settings(
        self,
        token: str,
        settings: AccountSettings,
    ) -> None:
        """Apply a partial settings update to the logged in account."""
        response = await self._request(
            "PATCH",
            f"{self.endpoints.api_url}/me/config",
            headers={"Token": token},
            json=settings.to_payload(),
        )
        if not response.is_success:
            raise RemoteServiceError(
                "Failed to set account settings. "
                f"The server responded with {response.status_code}",
                status_code=response.status_code,
            )
