"""
Quiz Persistence Coordinator.

Writes a validated draft in one transaction:

1. quiz row
2. question rows (bulk, identifiers returned in input order)
3. option rows (bulk, attached to question identifiers by position)
4. archival of the original upload under the new quiz identifier
5. commit

A failure at any step, archival included, rolls everything back so readers
never see a partial quiz.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from loguru import logger
from sqlalchemy import insert
from sqlalchemy.orm import Session, sessionmaker

from ..db.database import session_scope
from ..db.models import Quiz, QuizOption, QuizQuestion
from ..errors import ConsistencyError, InputError, QuizValidationError
from ..generation.models import DraftQuestion, GeneratedQuizDraft
from ..storage import FileStorageClient


@dataclass
class SourceFile:
    """The original upload a quiz was generated from."""

    filename: str
    data: bytes
    content_type: str | None = None


class QuizPersistenceCoordinator:
    """All-or-nothing persistence of generated quizzes."""

    def __init__(self, session_factory: sessionmaker[Session], file_storage: FileStorageClient):
        self.session_factory = session_factory
        self.file_storage = file_storage

    def persist(
        self,
        draft: GeneratedQuizDraft,
        owner_user_id: UUID,
        source: SourceFile,
        description: str = "",
        time_limit: int | None = None,
    ) -> UUID:
        """
        Persist a draft and archive its source file.

        Args:
            draft: Parsed quiz; every question needs exactly one correct option
            owner_user_id: Creator of the quiz
            source: Original upload, archived under the new quiz id
            description: Free-text description
            time_limit: Optional limit in minutes

        Returns:
            Identifier of the new quiz

        Raises:
            QuizValidationError: Empty draft or ambiguous questions (nothing written)
            InputError: Non-positive time limit
            UpstreamError: Archival failed (transaction rolled back)
            ConsistencyError: Identifier bookkeeping mismatch (transaction rolled back)
        """
        if not draft.questions:
            raise QuizValidationError("quiz draft has no questions")
        failures = draft.validation_failures()
        if failures:
            raise QuizValidationError("quiz draft failed validation", failures=failures)
        if time_limit is not None and time_limit <= 0:
            raise InputError("invalid time_limit")

        with session_scope(self.session_factory) as session:
            quiz = Quiz(
                title=draft.title,
                description=description,
                difficulty_level=draft.difficulty.value,
                time_limit=time_limit,
                created_by=owner_user_id,
            )
            session.add(quiz)
            session.flush()
            quiz_id = quiz.id
            logger.info(f"Quiz inserted: {quiz_id}")

            question_ids = self._insert_questions(session, quiz_id, draft.questions)
            logger.info(f"Questions inserted: {len(question_ids)}")

            option_count = self._insert_options(session, question_ids, draft.questions)
            logger.info(f"Options inserted: {option_count}")

            self.file_storage.save(str(quiz_id), source.filename, source.data, source.content_type)

        logger.info(f"Transaction committed, quiz {quiz_id} complete")
        return quiz_id

    @staticmethod
    def _insert_questions(session: Session, quiz_id: UUID, questions: list[DraftQuestion]) -> list[UUID]:
        """Bulk insert questions; identifiers come back in input order."""
        rows = [
            {
                "quiz_id": quiz_id,
                "position": position,
                "question_text": question.text,
                "explanation": question.explanation,
            }
            for position, question in enumerate(questions)
        ]
        result = session.execute(
            insert(QuizQuestion).returning(QuizQuestion.id, sort_by_parameter_order=True),
            rows,
        )
        question_ids = list(result.scalars().all())
        if len(question_ids) != len(questions):
            raise ConsistencyError(
                f"inserted {len(questions)} questions but got {len(question_ids)} identifiers"
            )
        return question_ids

    @staticmethod
    def _insert_options(session: Session, question_ids: list[UUID], questions: list[DraftQuestion]) -> int:
        """Bulk insert options, attaching question N's options to identifier N."""
        if len(question_ids) != len(questions):
            raise ConsistencyError("question identifier count does not match question count")

        rows = [
            {
                "question_id": question_id,
                "position": position,
                "content": option.content,
                "is_correct": option.is_correct,
            }
            for question_id, question in zip(question_ids, questions)
            for position, option in enumerate(question.options)
        ]
        if rows:
            session.execute(insert(QuizOption), rows)
        return len(rows)
