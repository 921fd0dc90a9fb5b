"""
Read-back of persisted quizzes and attempts.

Everything returned here is fully loaded before the session closes, so the
objects can be used after the call without touching the database again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from ..auth import AuthContext
from ..db.database import session_scope
from ..db.models import AttemptAnswer, Quiz, QuizAttempt, QuizOption, QuizQuestion
from ..errors import AccessDeniedError, AttemptNotFoundError, QuizNotFoundError
from ..storage import FileStorageClient, StoredFile
from .grading import as_uuid


@dataclass
class AttemptQuestionReview:
    """One question of a graded attempt, as shown to the learner."""

    question_id: UUID
    question_text: str
    my_answer: str | None
    correct_answer: str | None
    explanation: str
    is_correct: bool = False


@dataclass
class AttemptDetail:
    """A graded attempt with per-question review."""

    attempt_id: UUID
    quiz_id: UUID
    title: str
    time_limit: int | None
    submitted_at: datetime | None
    total_correct: int
    total_questions: int
    questions: list[AttemptQuestionReview] = field(default_factory=list)


class QuizRepository:
    """Queries over quizzes, attempts and archived source files."""

    def __init__(self, session_factory: sessionmaker[Session], file_storage: FileStorageClient | None = None):
        self.session_factory = session_factory
        self.file_storage = file_storage

    # =========================================================================
    # Quizzes
    # =========================================================================

    def get_quiz(self, quiz_id: UUID | str) -> Quiz:
        """Load a quiz with its questions and options in stored order."""
        quiz_id = as_uuid(quiz_id, "quiz id")
        with session_scope(self.session_factory) as session:
            quiz = session.scalar(
                select(Quiz)
                .where(Quiz.id == quiz_id)
                .options(selectinload(Quiz.questions).selectinload(QuizQuestion.options))
            )
            if quiz is None:
                raise QuizNotFoundError(f"quiz {quiz_id} not found")
            return quiz

    def list_quizzes_by_owner(self, user_id: UUID | str) -> list[Quiz]:
        user_id = as_uuid(user_id, "user id")
        with session_scope(self.session_factory) as session:
            return list(
                session.scalars(
                    select(Quiz).where(Quiz.created_by == user_id).order_by(Quiz.created_at.desc())
                ).all()
            )

    def fetch_source_file(self, quiz_id: UUID | str) -> StoredFile:
        """Retrieve the upload a quiz was generated from."""
        if self.file_storage is None:
            raise RuntimeError("file storage client not configured")
        quiz_id = as_uuid(quiz_id, "quiz id")
        logger.debug(f"Fetching source file for quiz {quiz_id}")
        return self.file_storage.fetch(str(quiz_id))

    # =========================================================================
    # Attempts
    # =========================================================================

    def list_attempts(
        self,
        user_id: UUID | str,
        quiz_id: UUID | str | None = None,
        limit: int = 50,
    ) -> list[QuizAttempt]:
        """A learner's attempts, newest first."""
        user_id = as_uuid(user_id, "user id")
        stmt = select(QuizAttempt).where(QuizAttempt.user_id == user_id)
        if quiz_id is not None:
            stmt = stmt.where(QuizAttempt.quiz_id == as_uuid(quiz_id, "quiz id"))
        stmt = stmt.order_by(QuizAttempt.submitted_at.desc()).limit(limit)
        with session_scope(self.session_factory) as session:
            return list(session.scalars(stmt).all())

    def get_attempt_detail(self, attempt_id: UUID | str, auth: AuthContext) -> AttemptDetail:
        """
        Review of one attempt for its owner.

        Raises:
            AttemptNotFoundError: Unknown attempt
            AccessDeniedError: The attempt belongs to someone else
        """
        attempt_id = as_uuid(attempt_id, "attempt id")
        with session_scope(self.session_factory) as session:
            attempt = session.scalar(
                select(QuizAttempt)
                .where(QuizAttempt.id == attempt_id)
                .options(selectinload(QuizAttempt.answers))
            )
            if attempt is None:
                raise AttemptNotFoundError(f"attempt {attempt_id} not found")
            if attempt.user_id != auth.user_id:
                raise AccessDeniedError("attempt belongs to another user")

            quiz = session.scalar(
                select(Quiz)
                .where(Quiz.id == attempt.quiz_id)
                .options(selectinload(Quiz.questions).selectinload(QuizQuestion.options))
            )
            if quiz is None:
                raise QuizNotFoundError(f"quiz {attempt.quiz_id} not found")

            total_questions = attempt.total_questions or self._count_questions(session, quiz.id)
            return AttemptDetail(
                attempt_id=attempt.id,
                quiz_id=quiz.id,
                title=quiz.title,
                time_limit=quiz.time_limit,
                submitted_at=attempt.submitted_at,
                total_correct=sum(1 for a in attempt.answers if a.is_correct),
                total_questions=total_questions,
                questions=self._review(quiz, attempt.answers),
            )

    @staticmethod
    def _count_questions(session: Session, quiz_id: UUID) -> int:
        return session.scalar(
            select(func.count()).select_from(QuizQuestion).where(QuizQuestion.quiz_id == quiz_id)
        ) or 0

    @staticmethod
    def _review(quiz: Quiz, answers: list[AttemptAnswer]) -> list[AttemptQuestionReview]:
        by_question = {a.question_id: a for a in answers}
        reviews = []
        for question in quiz.questions:
            options: dict[UUID, QuizOption] = {o.id: o for o in question.options}
            answer = by_question.get(question.id)
            selected = options.get(answer.selected_option_id) if answer else None
            correct = question.correct_option
            reviews.append(
                AttemptQuestionReview(
                    question_id=question.id,
                    question_text=question.question_text,
                    my_answer=selected.content if selected else None,
                    correct_answer=correct.content if correct else None,
                    explanation=question.explanation,
                    is_correct=bool(answer and answer.is_correct),
                )
            )
        return reviews
