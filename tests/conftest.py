"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.

Database fixtures run against in-memory SQLite through the same models used
in production. The generation and file-storage services are replaced by
httpx.MockTransport handlers, so the real clients are exercised end to end.
"""
import json
import re
import sys
from pathlib import Path
from uuid import uuid4

import fitz
import httpx
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from quizzo.db.database import create_db_engine, create_session_factory, init_db  # noqa: E402
from quizzo.generation import QuizGenerationClient, QuizResponseParser  # noqa: E402
from quizzo.quiz import QuizPersistenceCoordinator, SourceFile  # noqa: E402
from quizzo.storage import FileStorageClient  # noqa: E402

STORAGE_URL = "http://storage.test/filesystem"
GEMINI_URL = "http://gemini.test/v1beta"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Fake collaborating services
# ========================================


class FakeStorageService:
    """In-memory stand-in for the file storage HTTP API."""

    def __init__(self):
        self.files: dict[str, tuple[bytes, str]] = {}
        self.fail_uploads = False
        self.upload_requests = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path.endswith("/files"):
            self.upload_requests += 1
            if self.fail_uploads:
                return httpx.Response(500, text="disk full")
            fields = self._parse_multipart(request)
            file_id = fields["id_file"][0].decode()
            data, content_type = fields["file"]
            self.files[file_id] = (data, content_type or "application/octet-stream")
            return httpx.Response(201, json={"id": file_id})

        if request.method == "GET":
            file_id = request.url.path.rsplit("/", 1)[-1]
            if file_id not in self.files:
                return httpx.Response(404, text="not found")
            data, content_type = self.files[file_id]
            return httpx.Response(200, content=data, headers={"content-type": content_type})

        return httpx.Response(405)

    @staticmethod
    def _parse_multipart(request: httpx.Request) -> dict[str, tuple[bytes, str | None]]:
        body = request.read()
        boundary = request.headers["content-type"].split("boundary=", 1)[1].encode()
        fields = {}
        for part in body.split(b"--" + boundary):
            head, sep, content = part.partition(b"\r\n\r\n")
            if not sep:
                continue
            name = re.search(rb'name="([^"]+)"', head)
            if name is None:
                continue
            content_type = re.search(rb"content-type: *([^\r\n]+)", head, re.IGNORECASE)
            if content.endswith(b"\r\n"):
                content = content[:-2]
            fields[name.group(1).decode()] = (
                content,
                content_type.group(1).decode() if content_type else None,
            )
        return fields


class FakeGeminiService:
    """Stand-in for the generateContent endpoint, answering with canned text."""

    def __init__(self):
        self.reply_text = ""
        self.status_code = 200
        self.requests: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.read()))
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="upstream failure")
        return httpx.Response(200, json=gemini_envelope(self.reply_text))


def gemini_envelope(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def storage_service():
    return FakeStorageService()


@pytest.fixture
def storage_client(storage_service):
    http = httpx.Client(transport=httpx.MockTransport(storage_service.handler))
    yield FileStorageClient(http, STORAGE_URL)
    http.close()


@pytest.fixture
def gemini_service():
    return FakeGeminiService()


@pytest.fixture
def generation_client(gemini_service):
    http = httpx.Client(transport=httpx.MockTransport(gemini_service.handler))
    yield QuizGenerationClient(http, api_key="test-key", model_name="gemini-test", api_url=GEMINI_URL)
    http.close()


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def learner_id():
    return uuid4()


@pytest.fixture
def make_pdf():
    """Build an in-memory PDF with one text line per page."""

    def _make(*pages: str) -> bytes:
        doc = fitz.open()
        for text in pages:
            page = doc.new_page()
            page.insert_text((72, 72), text)
        data = doc.tobytes()
        doc.close()
        return data

    return _make


@pytest.fixture
def sample_quiz_response():
    """A well-formed model answer with three questions, fenced as the model tends to."""
    payload = {
        "title": "The OSI Reference Model",
        "questions": [
            {
                "question": "Which layer of the OSI model handles routing?",
                "options": ["A. Physical", "B. Data Link", "C. Network", "D. Transport"],
                "correct_answer": "C",
                "explanation": "Routing between networks happens at layer 3.",
            },
            {
                "question": "How many layers does the OSI model have?",
                "options": ["5", "7", "4"],
                "correct_answer": "7",
                "explanation": "Physical through Application.",
            },
            {
                "question": "Which layer provides reliable delivery?",
                "options": ["a) Session", "b) Transport"],
                "correct_answer": "b",
                "explanation": "TCP lives at the transport layer.",
            },
        ],
    }
    return "```json\n" + json.dumps(payload, indent=2) + "\n```"


@pytest.fixture
def sample_draft(sample_quiz_response):
    return QuizResponseParser().parse(sample_quiz_response, "easy")


@pytest.fixture
def coordinator(session_factory, storage_client):
    return QuizPersistenceCoordinator(session_factory, storage_client)


@pytest.fixture
def persisted_quiz(coordinator, sample_draft, owner_id):
    """Identifier of the sample quiz after a successful persist."""
    return coordinator.persist(
        sample_draft,
        owner_user_id=owner_id,
        source=SourceFile(filename="osi.txt", data=b"The OSI model has seven layers."),
    )
