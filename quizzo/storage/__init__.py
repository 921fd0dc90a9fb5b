"""Archival of uploaded source files in the external file storage service."""

from .file_storage import FileStorageClient, StoredFile, guess_content_type

__all__ = ["FileStorageClient", "StoredFile", "guess_content_type"]
