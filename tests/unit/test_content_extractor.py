"""
Unit tests for content extraction.
"""

import io
import json

import pytest

from quizzo.errors import ExtractionError
from quizzo.etl import ContentExtractor, ExtractionConfig, ExtractorRegistry


@pytest.fixture
def extractor():
    return ContentExtractor()


class TestDispatch:
    """Extension-based dispatch."""

    def test_known_extensions_registered(self):
        extensions = ExtractorRegistry.list_extensions()
        assert extensions[".pdf"] == "pdf"
        assert extensions[".html"] == "html"
        assert extensions[".htm"] == "html"
        assert extensions[".json"] == "json"
        assert extensions[".txt"] == "text"

    def test_extension_is_case_insensitive(self, extractor):
        text = extractor.extract(b"<p>Hello</p>", "PAGE.HTML")
        assert text == "Hello"

    def test_unknown_extension_read_as_text(self, extractor):
        assert extractor.extract(b"plain notes", "notes.md") == "plain notes"

    def test_no_extension_read_as_text(self, extractor):
        assert extractor.extract(b"README body", "README") == "README body"


class TestPDF:
    def test_pages_joined_with_newlines(self, extractor, make_pdf):
        data = make_pdf("First page about routers", "Second page about switches")

        text = extractor.extract(data, "slides.pdf")

        assert "First page about routers" in text
        assert "Second page about switches" in text
        assert text.index("routers") < text.index("switches")
        assert text.endswith("\n")

    def test_page_cap(self, make_pdf):
        data = make_pdf("page one", "page two", "page three")
        extractor = ContentExtractor(ExtractionConfig(max_pdf_pages=2))

        text = extractor.extract(data, "doc.pdf")

        assert "page two" in text
        assert "page three" not in text

    def test_malformed_pdf_falls_back_to_raw_text(self, extractor):
        text = extractor.extract(b"this is not really a pdf", "broken.pdf")
        assert text == "this is not really a pdf"


class TestHTML:
    def test_text_nodes_trimmed_and_space_joined(self, extractor):
        html = b"<html><body><h1>  Title </h1>\n<p>First\n</p><div><span>Second</span></div></body></html>"
        assert extractor.extract(html, "page.htm") == "Title First Second"

    def test_broken_markup_degrades(self, extractor):
        assert extractor.extract(b"<div><p>unclosed <b>bold", "x.html") == "unclosed bold"


class TestJSON:
    def test_pretty_printed(self, extractor):
        text = extractor.extract(b'{"topic":"OSI","layers":7}', "data.json")
        assert text == json.dumps({"topic": "OSI", "layers": 7}, indent=2)

    def test_invalid_json_returns_raw(self, extractor):
        assert extractor.extract(b"{not json", "data.json") == "{not json"

    def test_deeply_nested_json_returns_raw(self, extractor):
        data = b"[" * 100_000
        assert extractor.extract(data, "data.json") == data.decode()


class TestText:
    def test_byte_cap(self):
        extractor = ContentExtractor(ExtractionConfig(max_text_bytes=5))
        assert extractor.extract(b"0123456789", "a.txt") == "01234"

    def test_invalid_utf8_replaced(self, extractor):
        assert extractor.extract(b"caf\xff", "a.txt") == "caf\ufffd"


class TestInput:
    def test_buffer_not_mutated(self, extractor):
        buffer = bytearray(b"keep me")
        extractor.extract(buffer, "a.txt")
        assert buffer == bytearray(b"keep me")

    def test_file_like_input(self, extractor):
        assert extractor.extract(io.BytesIO(b"streamed"), "a.txt") == "streamed"

    def test_unreadable_stream(self, extractor):
        class Broken:
            def read(self):
                raise OSError("device gone")

        with pytest.raises(ExtractionError, match="device gone"):
            extractor.extract(Broken(), "a.txt")

    def test_text_mode_stream_rejected(self, extractor):
        with pytest.raises(ExtractionError):
            extractor.extract(io.StringIO("text"), "a.txt")

    def test_non_stream_rejected(self, extractor):
        with pytest.raises(ExtractionError):
            extractor.extract(42, "a.txt")
