"""
Document-to-quiz ingestion.

One upload in, one persisted quiz out:

    extract -> generate -> parse -> persist (+ archive)

Each stage is a collaborator handed in at construction. A failure in any
stage aborts the run; nothing is written unless parsing produced a valid
draft, and the persistence stage is all-or-nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Literal
from uuid import UUID

from loguru import logger

from .auth import AuthContext
from .errors import InputError
from .etl import ContentExtractor
from .generation import (
    Difficulty,
    GeneratedQuizDraft,
    QuizGenerationClient,
    QuizResponseParser,
    ensure_supported_upload,
)
from .quiz import QuizPersistenceCoordinator, SourceFile

PayloadMode = Literal["text", "file"]


@dataclass
class IngestionRequest:
    """An upload plus the generation parameters chosen by the user."""

    filename: str
    data: bytes
    question_count: int
    difficulty: Difficulty | str
    description: str = ""
    time_limit: int | None = None


@dataclass
class IngestionResult:
    quiz_id: UUID
    draft: GeneratedQuizDraft


class QuizIngestionPipeline:
    """Runs an upload through every stage up to a committed quiz."""

    def __init__(
        self,
        extractor: ContentExtractor,
        generator: QuizGenerationClient,
        parser: QuizResponseParser,
        coordinator: QuizPersistenceCoordinator,
        payload_mode: PayloadMode = "text",
    ):
        """
        Initialize pipeline.

        Args:
            extractor: Upload to text
            generator: Text (or raw bytes) to model output
            parser: Model output to validated draft
            coordinator: Draft to committed quiz
            payload_mode: "text" sends extracted text, "file" sends the upload inline
        """
        if payload_mode not in ("text", "file"):
            raise ValueError(f"unknown payload mode: {payload_mode}")
        self.extractor = extractor
        self.generator = generator
        self.parser = parser
        self.coordinator = coordinator
        self.payload_mode = payload_mode

    def ingest(self, request: IngestionRequest, auth: AuthContext) -> IngestionResult:
        """
        Generate and persist a quiz from an upload.

        Raises:
            InputError: Bad parameters, empty or unreadable upload
            UnsupportedFormatError: zip, office or msword container
            UpstreamError: Generation or storage failure
            QuizValidationError: The model answer is not a valid quiz
        """
        difficulty = self._validate(request)

        if self.payload_mode == "text":
            payload: str | bytes = self.extractor.extract(request.data, request.filename)
        else:
            payload = bytes(request.data)

        raw_text = self.generator.generate(
            payload,
            question_count=request.question_count,
            difficulty=difficulty,
            filename=request.filename,
        )
        draft = self.parser.parse(raw_text, difficulty)
        if not draft.title:
            draft.title = PurePath(request.filename).stem or "Untitled quiz"

        if draft.question_count != request.question_count:
            logger.warning(
                f"Requested {request.question_count} questions, model returned {draft.question_count}"
            )

        quiz_id = self.coordinator.persist(
            draft,
            owner_user_id=auth.user_id,
            source=SourceFile(filename=request.filename, data=bytes(request.data)),
            description=request.description,
            time_limit=request.time_limit,
        )
        return IngestionResult(quiz_id=quiz_id, draft=draft)

    @staticmethod
    def _validate(request: IngestionRequest) -> Difficulty:
        if not request.filename:
            raise InputError("file is required")
        if not request.data:
            raise InputError("uploaded file is empty")
        # Containers are refused in both payload modes, before any extraction
        ensure_supported_upload(bytes(request.data), request.filename)
        if request.question_count < 1:
            raise InputError("question_count must be at least 1")
        if request.time_limit is not None and request.time_limit <= 0:
            raise InputError("invalid time_limit")
        return Difficulty.parse(request.difficulty)
