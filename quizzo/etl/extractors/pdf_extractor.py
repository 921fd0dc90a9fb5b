"""
PDF Content Extractor.

Extracts plain text from the first pages of a PDF using PyMuPDF.
"""

from __future__ import annotations

from typing import ClassVar

import fitz  # PyMuPDF
from loguru import logger

from .base import BaseExtractor, ExtractorRegistry
from .text_extractor import TextExtractor


@ExtractorRegistry.register("pdf", extensions=[".pdf"])
class PDFExtractor(BaseExtractor):
    """
    Extract text from up to ``max_pdf_pages`` pages.

    Each page's text is followed by a newline. Pages that fail to decode are
    skipped; a document that cannot be opened at all falls back to the
    plain-text reading of its bytes.
    """

    source_type: ClassVar[str] = "pdf"

    def extract(self, data: bytes) -> str:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:  # Intentionally broad - PyMuPDF raises several unrelated types
            logger.warning(f"PDF could not be opened, using raw content: {e}")
            return TextExtractor(self.config).extract(data)

        if doc.page_count == 0:
            doc.close()
            logger.warning("PDF has no readable pages, using raw content")
            return TextExtractor(self.config).extract(data)

        pages: list[str] = []
        with doc:
            page_count = min(doc.page_count, self.config.max_pdf_pages)
            for page_num in range(page_count):
                try:
                    pages.append(doc.load_page(page_num).get_text())
                except Exception as e:  # Intentionally broad - skip the page, keep the rest
                    logger.warning(f"Skipping undecodable PDF page {page_num + 1}: {e}")

        logger.debug(f"Extracted {len(pages)}/{page_count} PDF pages")
        return "".join(f"{text}\n" for text in pages)
