"""Dispatch an upload to the extractor registered for its extension."""

from __future__ import annotations

from pathlib import PurePath
from typing import BinaryIO

from loguru import logger

from ..errors import ExtractionError
from .extractors import ExtractionConfig, ExtractorRegistry


class ContentExtractor:
    """
    Convert an uploaded blob and its declared filename into plain text.

    The extension (case-insensitive) selects the extractor; unknown
    extensions are read as plain text. The caller's buffer is never modified.
    """

    def __init__(self, config: ExtractionConfig | None = None):
        self.config = config or ExtractionConfig()

    def extract(self, file_data: bytes | bytearray | memoryview | BinaryIO, declared_filename: str) -> str:
        """
        Extract text from an upload.

        Raises:
            ExtractionError: The input stream could not be read
        """
        data = self._read_input(file_data)
        extension = PurePath(declared_filename or "").suffix.lower()

        extractor = ExtractorRegistry.for_extension(extension)(self.config)
        text = extractor.extract(data)

        logger.info(
            f"Extracted {len(text)} chars from {declared_filename!r} "
            f"({extractor.source_type}, {len(data)} bytes)"
        )
        return text

    @staticmethod
    def _read_input(file_data: bytes | bytearray | memoryview | BinaryIO) -> bytes:
        if isinstance(file_data, (bytes, bytearray, memoryview)):
            return bytes(file_data)

        read = getattr(file_data, "read", None)
        if read is None:
            raise ExtractionError(f"unreadable upload of type {type(file_data).__name__}")
        try:
            data = read()
        except (OSError, ValueError) as e:
            raise ExtractionError(f"failed to read uploaded file: {e}") from e

        if not isinstance(data, (bytes, bytearray)):
            raise ExtractionError("uploaded file must be opened in binary mode")
        return bytes(data)
