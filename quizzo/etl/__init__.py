"""
Content extraction.

Turns an uploaded blob plus its declared filename into plain text for the
generation prompt. Format handlers live in ``extractors`` and are looked up
by file extension.
"""

from .content_extractor import ContentExtractor
from .extractors import ExtractionConfig, ExtractorRegistry

__all__ = [
    "ContentExtractor",
    "ExtractionConfig",
    "ExtractorRegistry",
]
