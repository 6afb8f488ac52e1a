# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Google Drive v3 client for post attachments.

Attachments are Drive files owned by whoever posted them. Before a post is
stored, each file is shared with the application's service account (using
the poster's own access token). From then on the service account shares
files with viewers on demand, or makes per-user copies of them.

Example:
    >>> drive = DriveClient(http_client, credentials, settings.google.drive_api_url)
    >>> await drive.prepare_attachments(user_token, post.attachments)
    >>> link = await drive.get_file_link(file_id, "Worksheet", "kid@school.org",
    ...                                  "Kid", has_edit_access=False,
    ...                                  should_create_copy=False)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from refine.infrastructure.google.errors import AttachmentPreparationError, DriveError
from refine.infrastructure.google.service_account import ServiceAccountCredentials
from refine.models.post import AttachmentTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileLink:
    """A browser link to a Drive file and the id of that file."""

    link: str
    file_id: str


class DriveClient:
    """Drive operations used by the post service.

    Attributes:
        _http: Shared async HTTP client.
        _credentials: Service account token source.
        _api_url: Drive v3 base URL.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        credentials: ServiceAccountCredentials,
        api_url: str = "https://www.googleapis.com/drive/v3",
        timeout: float = 30.0,
    ) -> None:
        self._http = http
        self._credentials = credentials
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    async def prepare_attachments(
        self,
        user_access_token: str,
        attachments: Sequence[AttachmentTemplate],
    ) -> None:
        """Share every attachment with the service account as a writer.

        Shares run concurrently.

        Args:
            user_access_token: The poster's Google access token.
            attachments: Attachments about to be stored.

        Raises:
            AttachmentPreparationError: For the first attachment that failed.
        """
        service_email = self._credentials.client_email

        async def share(attachment: AttachmentTemplate) -> AttachmentPreparationError | None:
            if attachment.host != "google":
                return None
            try:
                await self._create_permission(
                    attachment.google_file_id,
                    role="writer",
                    email=service_email,
                    token=user_access_token,
                )
            except DriveError:
                return AttachmentPreparationError(attachment.title, attachment.google_file_id)
            return None

        results = await asyncio.gather(*(share(attachment) for attachment in attachments))
        for error in results:
            if error is not None:
                raise error

    async def get_file_link(
        self,
        file_id: str,
        file_name: str,
        user_email: str,
        user_name: str,
        has_edit_access: bool,
        should_create_copy: bool,
    ) -> FileLink:
        """Give a user access to a file and return its link.

        Args:
            file_id: Drive file id, already shared with the service account.
            file_name: Title used when naming a copy.
            user_email: Who will open the link.
            user_name: Owner name used when naming a copy.
            has_edit_access: Grant writer instead of commenter.
            should_create_copy: Make a personal copy instead of sharing.

        Returns:
            Link and the id of the file it points to.

        Raises:
            DriveError: If sharing or copying fails.
        """
        if should_create_copy:
            return await self.create_copy_and_get_link(file_id, file_name, user_email, user_name)

        token = await self._credentials.get_access_token()
        await self._create_permission(
            file_id,
            role="writer" if has_edit_access else "commenter",
            email=user_email,
            token=token,
        )
        data = await self._request(
            "GET",
            f"/files/{file_id}",
            token=token,
            params={"fields": "webViewLink"},
        )
        link = data.get("webViewLink")
        if not link:
            raise DriveError(f"Drive returned no link for file {file_id}")
        return FileLink(link=link, file_id=file_id)

    async def create_copy_and_get_link(
        self,
        file_id: str,
        file_name: str,
        user_email: str,
        user_name: str,
    ) -> FileLink:
        """Copy a file as "<user name> - <file name>" and share it with the user."""
        token = await self._credentials.get_access_token()
        copy = await self._request(
            "POST",
            f"/files/{file_id}/copy",
            token=token,
            params={"fields": "id,webViewLink"},
            json={"name": f"{user_name} - {file_name}"},
        )
        if not copy.get("id") or not copy.get("webViewLink"):
            raise DriveError(f"Drive returned an incomplete copy of file {file_id}")

        await self._create_permission(copy["id"], role="writer", email=user_email, token=token)
        return FileLink(link=copy["webViewLink"], file_id=copy["id"])

    async def create_copy(self, file_id: str, new_file_name: str) -> str:
        """Copy a file without sharing it.

        Returns:
            The id of the copy.
        """
        token = await self._credentials.get_access_token()
        copy = await self._request(
            "POST",
            f"/files/{file_id}/copy",
            token=token,
            params={"fields": "id"},
            json={"name": new_file_name},
        )
        if not copy.get("id"):
            raise DriveError(f"Drive returned no id when copying file {file_id}")
        return copy["id"]

    async def _create_permission(self, file_id: str, role: str, email: str, token: str) -> None:
        await self._request(
            "POST",
            f"/files/{file_id}/permissions",
            token=token,
            json={"role": role, "type": "user", "emailAddress": email},
        )

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method,
                f"{self._api_url}{path}",
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
        except httpx.RequestError as e:
            logger.error("Drive request %s %s failed: %s", method, path, e)
            raise DriveError(f"Drive request failed: {e}") from e

        if response.status_code >= 400:
            logger.warning("Drive %s %s returned %s", method, path, response.status_code)
            raise DriveError("Drive request failed", status_code=response.status_code)
        return response.json() if response.content else {}
