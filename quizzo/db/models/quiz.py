"""
Quiz models.

Implements:
- Quiz: title, difficulty, owner and optional time limit
- QuizQuestion: question text and explanation, ordered by position
- QuizOption: option content with its correctness flag, ordered by position

A quiz owns its questions and a question owns its options; deletes cascade
downwards. Rows are only ever created together inside one persistence
transaction and are not updated afterwards.

Primary keys are UUIDs generated client-side, which lets bulk
INSERT ... RETURNING hand identifiers back in parameter order.
"""
from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Integer, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Quiz(Base):
    """A generated multiple-choice quiz."""

    __tablename__ = "quizzes"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    difficulty_level: Mapped[str] = mapped_column(Text, nullable=False)
    time_limit: Mapped[int | None] = mapped_column(Integer)  # minutes
    created_by: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(default=func.now())

    # Relationships
    questions: Mapped[list[QuizQuestion]] = relationship(
        back_populates="quiz",
        order_by="QuizQuestion.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Quiz(id={self.id}, title={self.title!r}, difficulty={self.difficulty_level})>"


class QuizQuestion(Base):
    """A single question of a quiz."""

    __tablename__ = "quiz_questions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    quiz_id: Mapped[UUID] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")

    quiz: Mapped[Quiz] = relationship(back_populates="questions")
    options: Mapped[list[QuizOption]] = relationship(
        back_populates="question",
        order_by="QuizOption.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def correct_option(self) -> QuizOption | None:
        """The option flagged correct, if any."""
        return next((o for o in self.options if o.is_correct), None)

    def __repr__(self) -> str:
        return f"<QuizQuestion(position={self.position}, quiz_id={self.quiz_id})>"


class QuizOption(Base):
    """One answer option of a question."""

    __tablename__ = "quiz_options"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("quiz_questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    question: Mapped[QuizQuestion] = relationship(back_populates="options")

    def __repr__(self) -> str:
        return f"<QuizOption(position={self.position}, correct={self.is_correct})>"
