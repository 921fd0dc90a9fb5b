"""
Integration tests for the document-to-quiz pipeline.

Only the HTTP services are faked; extraction, parsing and persistence run
for real against SQLite.
"""

import base64
import io
import zipfile
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from quizzo.auth import AuthContext
from quizzo.db.models import Quiz
from quizzo.errors import InputError, QuizValidationError, UnsupportedFormatError, UpstreamError
from quizzo.etl import ContentExtractor
from quizzo.generation import QuizResponseParser
from quizzo.pipeline import IngestionRequest, QuizIngestionPipeline
from quizzo.quiz import QuizRepository


@pytest.fixture
def auth():
    return AuthContext(user_id=uuid4())


def build_pipeline(generation_client, coordinator, payload_mode="text"):
    return QuizIngestionPipeline(
        extractor=ContentExtractor(),
        generator=generation_client,
        parser=QuizResponseParser(),
        coordinator=coordinator,
        payload_mode=payload_mode,
    )


@pytest.fixture
def pipeline(generation_client, coordinator):
    return build_pipeline(generation_client, coordinator)


def docx_bytes():
    """A minimal word-processing container, zipped the way office suites do."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        archive.writestr("word/document.xml", "<w:document>Layer 3 routes packets.</w:document>")
    return buffer.getvalue()


def quiz_count(session_factory):
    with session_factory() as session:
        return session.scalar(select(func.count()).select_from(Quiz))


class TestScenarios:
    def test_two_page_pdf_to_persisted_quiz(
        self, pipeline, gemini_service, storage_service, session_factory, sample_quiz_response, make_pdf, auth
    ):
        gemini_service.reply_text = sample_quiz_response
        pdf = make_pdf("Layer 3 routes packets between networks.", "Layer 4 provides reliable delivery.")

        result = pipeline.ingest(
            IngestionRequest(filename="osi.pdf", data=pdf, question_count=3, difficulty="easy"), auth
        )

        prompt = gemini_service.requests[0]["contents"][0]["parts"][0]["text"]
        assert "Layer 3 routes packets" in prompt
        assert "Layer 4 provides reliable delivery" in prompt

        quiz = QuizRepository(session_factory).get_quiz(result.quiz_id)
        assert quiz.created_by == auth.user_id
        assert quiz.difficulty_level == "easy"
        assert len(quiz.questions) == 3
        for question in quiz.questions:
            assert len(question.options) >= 2
            assert [o.is_correct for o in question.options].count(True) == 1

        assert storage_service.files[str(result.quiz_id)][0] == pdf

    def test_prose_response_writes_nothing(
        self, pipeline, gemini_service, storage_service, session_factory, auth
    ):
        gemini_service.reply_text = "I'm sorry, I can only answer questions about cooking."

        with pytest.raises(QuizValidationError) as exc_info:
            pipeline.ingest(
                IngestionRequest(filename="notes.txt", data=b"notes", question_count=3, difficulty="easy"), auth
            )

        assert exc_info.value.raw_text == gemini_service.reply_text
        assert quiz_count(session_factory) == 0
        assert storage_service.upload_requests == 0

    def test_file_mode_sends_upload_inline(
        self, generation_client, coordinator, gemini_service, sample_quiz_response, make_pdf, auth
    ):
        gemini_service.reply_text = sample_quiz_response
        pdf = make_pdf("only page")

        build_pipeline(generation_client, coordinator, payload_mode="file").ingest(
            IngestionRequest(filename="osi.pdf", data=pdf, question_count=3, difficulty="medium"), auth
        )

        inline = gemini_service.requests[0]["contents"][0]["parts"][1]["inline_data"]
        assert inline["mime_type"] == "application/pdf"
        assert base64.b64decode(inline["data"]) == pdf

    def test_missing_title_falls_back_to_filename(self, pipeline, gemini_service, auth):
        gemini_service.reply_text = (
            '{"questions": [{"question": "Q", "options": ["A. x", "B. y"], "correct_answer": "A"}]}'
        )

        result = pipeline.ingest(
            IngestionRequest(filename="chapter-1.txt", data=b"text", question_count=1, difficulty="easy"), auth
        )

        assert result.draft.title == "chapter-1"

    def test_null_title_falls_back_to_filename(self, pipeline, gemini_service, auth):
        gemini_service.reply_text = (
            '{"title": null, "questions": [{"question": "Q", "options": ["A. x", "B. y"], "correct_answer": "A"}]}'
        )

        result = pipeline.ingest(
            IngestionRequest(filename="chapter-2.txt", data=b"text", question_count=1, difficulty="easy"), auth
        )

        assert result.draft.title == "chapter-2"

    def test_upstream_failure_writes_nothing(self, pipeline, gemini_service, session_factory, auth):
        gemini_service.status_code = 503

        with pytest.raises(UpstreamError) as exc_info:
            pipeline.ingest(
                IngestionRequest(filename="notes.txt", data=b"notes", question_count=3, difficulty="easy"), auth
            )

        assert exc_info.value.retryable is True
        assert quiz_count(session_factory) == 0


class TestRequestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"question_count": 0},
            {"difficulty": "impossible"},
            {"time_limit": -5},
            {"data": b""},
            {"filename": ""},
        ],
    )
    def test_rejected_before_generation(self, pipeline, gemini_service, auth, overrides):
        fields = {"filename": "a.txt", "data": b"text", "question_count": 3, "difficulty": "easy"}
        fields.update(overrides)

        with pytest.raises(InputError):
            pipeline.ingest(IngestionRequest(**fields), auth)

        assert gemini_service.requests == []

    @pytest.mark.parametrize("payload_mode", ["text", "file"])
    def test_office_container_rejected(
        self, generation_client, coordinator, gemini_service, storage_service, auth, payload_mode
    ):
        pipeline = build_pipeline(generation_client, coordinator, payload_mode=payload_mode)

        with pytest.raises(UnsupportedFormatError, match="not supported"):
            pipeline.ingest(
                IngestionRequest(filename="notes.docx", data=docx_bytes(), question_count=3, difficulty="easy"),
                auth,
            )

        assert gemini_service.requests == []
        assert storage_service.upload_requests == 0

    def test_unknown_payload_mode(self, generation_client, coordinator):
        with pytest.raises(ValueError):
            build_pipeline(generation_client, coordinator, payload_mode="carrier-pigeon")
