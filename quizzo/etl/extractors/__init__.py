"""
Content Extractors.

Plugins for extracting plain text from different upload formats.
Importing this package registers every built-in extractor.
"""

from .base import BaseExtractor, ExtractionConfig, ExtractorRegistry
from .html_extractor import HTMLExtractor
from .pdf_extractor import PDFExtractor
from .text_extractor import JSONExtractor, TextExtractor

__all__ = [
    "BaseExtractor",
    "ExtractionConfig",
    "ExtractorRegistry",
    "HTMLExtractor",
    "JSONExtractor",
    "PDFExtractor",
    "TextExtractor",
]
