"""
Plain text and JSON extractors.

Plain text is the fallback for every extension without a dedicated
extractor, ``.txt`` included.
"""

from __future__ import annotations

import json
from typing import ClassVar

from loguru import logger

from .base import BaseExtractor, ExtractorRegistry


@ExtractorRegistry.register("text", extensions=[".txt"])
class TextExtractor(BaseExtractor):
    """Read up to ``max_text_bytes`` of the upload as text."""

    source_type: ClassVar[str] = "text"

    def extract(self, data: bytes) -> str:
        return self._decode(data[: self.config.max_text_bytes])


@ExtractorRegistry.register("json", extensions=[".json"])
class JSONExtractor(BaseExtractor):
    """Pretty-print a JSON document; unparseable JSON is passed through raw."""

    source_type: ClassVar[str] = "json"

    def extract(self, data: bytes) -> str:
        try:
            value = json.loads(data)
        except (ValueError, RecursionError) as e:
            logger.warning(f"Upload is not valid JSON, using raw content: {e}")
            return self._decode(data)

        return json.dumps(value, indent=2, ensure_ascii=False)
