"""
File storage client.

The storage service keeps the original upload of every quiz, keyed by the
quiz identifier:

    POST {base}/files            multipart: id_file=<id>, file=<upload>
    GET  {base}/files/{id}       raw bytes with their Content-Type
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
from loguru import logger

from ..errors import UpstreamError

if TYPE_CHECKING:
    from config import Settings

DEFAULT_CONTENT_TYPE = "application/pdf"


def guess_content_type(filename: str) -> str:
    """Content type for an upload, from its declared name."""
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


@dataclass
class StoredFile:
    """A file fetched back from storage."""

    data: bytes
    content_type: str


class FileStorageClient:
    """HTTP client for the file storage service."""

    def __init__(self, http_client: httpx.Client, base_url: str):
        """
        Initialize storage client.

        Args:
            http_client: Shared HTTP client; its timeout bounds every request
            base_url: Base URL of the storage API
        """
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.Client) -> FileStorageClient:
        return cls(http_client=http_client, base_url=settings.file_storage_url)

    def save(self, file_id: str, filename: str, data: bytes, content_type: str | None = None) -> None:
        """
        Archive a file under ``file_id``.

        Raises:
            UpstreamError: Transport failure or status >= 300
        """
        content_type = content_type or guess_content_type(filename)
        try:
            response = self.http_client.post(
                f"{self.base_url}/files",
                data={"id_file": file_id},
                files={"file": (filename, data, content_type)},
            )
        except httpx.TransportError as e:
            logger.error(f"Upload of {filename!r} failed: {e}")
            raise UpstreamError(f"file storage unreachable: {e}", retryable=True) from e

        if response.status_code >= 300:
            logger.error(f"Upload endpoint returned status {response.status_code}: {response.text[:500]}")
            raise UpstreamError(
                f"upload failed: status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
                retryable=response.status_code >= 500,
            )

        logger.info(f"Archived {filename!r} as {file_id} ({len(data)} bytes)")

    def fetch(self, file_id: str) -> StoredFile:
        """
        Retrieve an archived file.

        Raises:
            UpstreamError: Transport failure or status >= 300
        """
        try:
            response = self.http_client.get(f"{self.base_url}/files/{file_id}")
        except httpx.TransportError as e:
            logger.error(f"Fetch of {file_id} failed: {e}")
            raise UpstreamError(f"file storage unreachable: {e}", retryable=True) from e

        if response.status_code >= 300:
            logger.error(f"Fetch endpoint returned status {response.status_code}: {response.text[:500]}")
            raise UpstreamError(
                f"failed to fetch file: status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
                retryable=response.status_code >= 500,
            )

        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        return StoredFile(data=response.content, content_type=content_type)
