"""
HTML Content Extractor.

Walks the document and keeps every non-blank text node, trimmed and joined
with single spaces.
"""

from __future__ import annotations

from html.parser import HTMLParser
from typing import ClassVar

from .base import BaseExtractor, ExtractorRegistry


class _TextNodeCollector(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []

    def handle_data(self, data: str) -> None:
        text = data.strip()
        if text:
            self.parts.append(text)


@ExtractorRegistry.register("html", extensions=[".html", ".htm"])
class HTMLExtractor(BaseExtractor):
    """Extract the text content of an HTML page."""

    source_type: ClassVar[str] = "html"

    def extract(self, data: bytes) -> str:
        collector = _TextNodeCollector()
        collector.feed(self._decode(data))
        collector.close()
        return " ".join(collector.parts)
