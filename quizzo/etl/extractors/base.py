"""
Base Extractor Class.

Provides the abstract base for all content extractors.
Uses a registry pattern for plugin discovery.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from loguru import logger

if TYPE_CHECKING:
    from config import Settings


# =============================================================================
# Extractor Registry (Plugin Pattern)
# =============================================================================


class ExtractorRegistry:
    """
    Registry for extractor plugins.

    Maps source types to extractor classes and file extensions to source
    types, so the content extractor can dispatch on a declared filename.

    Example:
        @ExtractorRegistry.register("pdf", extensions=[".pdf"])
        class PDFExtractor(BaseExtractor):
            ...

        extractor_class = ExtractorRegistry.for_extension(".PDF")
    """

    DEFAULT_SOURCE_TYPE: ClassVar[str] = "text"

    _extractors: ClassVar[dict[str, type[BaseExtractor]]] = {}
    _extension_map: ClassVar[dict[str, str]] = {}

    @classmethod
    def register(
        cls,
        source_type: str,
        extensions: list[str] | None = None,
    ):
        """
        Decorator to register an extractor class.

        Args:
            source_type: Unique identifier for this source type
            extensions: File extensions this extractor handles
        """

        def decorator(extractor_class: type[BaseExtractor]):
            cls._extractors[source_type] = extractor_class
            extractor_class.source_type = source_type

            if extensions:
                for ext in extensions:
                    cls._extension_map[ext.lower()] = source_type

            logger.debug(f"Registered extractor: {source_type} -> {extractor_class.__name__}")
            return extractor_class

        return decorator

    @classmethod
    def get(cls, source_type: str) -> type[BaseExtractor]:
        """Get extractor class by source type."""
        if source_type not in cls._extractors:
            raise KeyError(f"No extractor registered for source type: {source_type}")
        return cls._extractors[source_type]

    @classmethod
    def for_extension(cls, extension: str) -> type[BaseExtractor]:
        """Get the extractor for an extension, falling back to plain text."""
        source_type = cls._extension_map.get(extension.lower(), cls.DEFAULT_SOURCE_TYPE)
        return cls.get(source_type)

    @classmethod
    def list_extensions(cls) -> dict[str, str]:
        """List all registered extensions and their source types."""
        return dict(cls._extension_map)


# =============================================================================
# Base Extractor
# =============================================================================


@dataclass
class ExtractionConfig:
    """Configuration for extraction."""

    # Only the first pages of a PDF are read, to bound latency and prompt cost
    max_pdf_pages: int = 10
    # Byte cap for plain-text uploads
    max_text_bytes: int = 50_000

    @classmethod
    def from_settings(cls, settings: Settings) -> ExtractionConfig:
        return cls(
            max_pdf_pages=settings.pdf_max_pages,
            max_text_bytes=settings.text_max_bytes,
        )


class BaseExtractor(ABC):
    """
    Abstract base class for content extractors.

    An extractor receives the complete upload as bytes and returns plain
    text. Malformed input degrades to partial or raw text instead of raising,
    because the generation step tolerates imperfect text.
    """

    source_type: ClassVar[str] = "unknown"

    def __init__(self, config: ExtractionConfig | None = None):
        self.config = config or ExtractionConfig()

    @abstractmethod
    def extract(self, data: bytes) -> str:
        """
        Extract plain text from the upload.

        Args:
            data: Complete upload contents

        Returns:
            Extracted text (possibly empty)
        """
        ...

    @staticmethod
    def _decode(data: bytes) -> str:
        """Decode bytes as UTF-8, replacing undecodable sequences."""
        return data.decode("utf-8", errors="replace")
