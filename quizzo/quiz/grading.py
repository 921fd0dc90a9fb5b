"""
Attempt Grading Engine.

A learner gets one graded attempt per quiz:

    NoAttempt --submit--> Attempted --submit--> rejected

The existence check runs first to skip scoring work for obvious duplicates.
The unique constraint on (quiz_id, user_id) is the real serialization point:
when two submissions race past the check, the losing INSERT fails and is
reported as the same conflict.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from uuid import UUID

from loguru import logger
from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..db.database import session_scope
from ..db.models import AttemptAnswer, Quiz, QuizAttempt, QuizOption, QuizQuestion
from ..errors import AttemptConflictError, EvaluationError, InputError, QuizNotFoundError


def as_uuid(value: UUID | str, what: str) -> UUID:
    """Parse an identifier supplied by a caller."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InputError(f"invalid {what}: {value!r}") from None


@dataclass
class GradedAnswer:
    """One answer that referenced a real question and option of the quiz."""

    question_id: UUID
    option_id: UUID
    is_correct: bool


class AttemptGradingEngine:
    """Scores and records one-shot quiz attempts."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def submit_attempt(
        self,
        quiz_id: UUID | str,
        user_id: UUID | str,
        answers: Mapping[UUID | str, UUID | str | None],
    ) -> QuizAttempt:
        """
        Grade and record an attempt.

        Args:
            quiz_id: Quiz being attempted
            user_id: Learner submitting
            answers: question id -> selected option id; skipped questions may
                be absent or map to None

        Returns:
            The recorded attempt with its answers

        Raises:
            InputError: Malformed identifiers
            QuizNotFoundError: Unknown quiz
            AttemptConflictError: The learner already attempted this quiz
            EvaluationError: The store failed while looking up the quiz
        """
        quiz_id = as_uuid(quiz_id, "quiz id")
        user_id = as_uuid(user_id, "user id")
        selections = self._normalize_answers(answers)

        with session_scope(self.session_factory) as session:
            try:
                already_attempted = self._has_attempted(session, quiz_id, user_id)
            except SQLAlchemyError as e:
                raise EvaluationError("failed to check previous attempts") from e
            if already_attempted:
                logger.info(f"User {user_id} already attempted quiz {quiz_id}")
                raise AttemptConflictError(quiz_id, user_id)

            try:
                total_questions, graded = self._evaluate(session, quiz_id, selections)
            except SQLAlchemyError as e:
                raise EvaluationError("failed to evaluate attempt") from e

            attempt = QuizAttempt(
                quiz_id=quiz_id,
                user_id=user_id,
                score=sum(1 for g in graded if g.is_correct),
                total_questions=total_questions,
                is_completed=True,
            )
            attempt.answers = [
                AttemptAnswer(question_id=g.question_id, selected_option_id=g.option_id, is_correct=g.is_correct)
                for g in graded
            ]
            session.add(attempt)
            try:
                session.flush()
            except IntegrityError as e:
                logger.warning(f"Concurrent attempt for quiz {quiz_id} by user {user_id} lost the insert")
                raise AttemptConflictError(quiz_id, user_id) from e
            session.refresh(attempt, ["submitted_at"])

        logger.info(f"Attempt recorded for quiz {quiz_id}: {attempt.score}/{attempt.total_questions}")
        return attempt

    @staticmethod
    def _normalize_answers(answers: Mapping[UUID | str, UUID | str | None]) -> dict[UUID, UUID]:
        selections = {}
        for question_id, option_id in answers.items():
            if option_id is None:
                continue
            selections[as_uuid(question_id, "question id")] = as_uuid(option_id, "option id")
        return selections

    @staticmethod
    def _has_attempted(session: Session, quiz_id: UUID, user_id: UUID) -> bool:
        stmt = select(
            exists().where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.user_id == user_id)
        )
        return bool(session.scalar(stmt))

    @staticmethod
    def _evaluate(
        session: Session, quiz_id: UUID, selections: dict[UUID, UUID]
    ) -> tuple[int, list[GradedAnswer]]:
        """
        Count the quiz's questions and grade the selections against it.

        An option only counts when it belongs to the question it was submitted
        for and that question belongs to this quiz. Anything else scores 0 and
        is not recorded.
        """
        if session.get(Quiz, quiz_id) is None:
            raise QuizNotFoundError(f"quiz {quiz_id} not found")

        total_questions = session.scalar(
            select(func.count()).select_from(QuizQuestion).where(QuizQuestion.quiz_id == quiz_id)
        ) or 0

        if not selections:
            return total_questions, []

        rows = session.execute(
            select(QuizOption.id, QuizOption.question_id, QuizOption.is_correct)
            .join(QuizQuestion, QuizOption.question_id == QuizQuestion.id)
            .where(QuizQuestion.quiz_id == quiz_id, QuizOption.id.in_(list(selections.values())))
        ).all()
        options = {row.id: row for row in rows}

        graded = []
        for question_id, option_id in selections.items():
            option = options.get(option_id)
            if option is None or option.question_id != question_id:
                logger.debug(f"Ignoring option {option_id} submitted for question {question_id}")
                continue
            graded.append(GradedAnswer(question_id, option_id, option.is_correct))
        return total_questions, graded
