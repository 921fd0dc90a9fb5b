"""
In-memory quiz draft produced by the response parser.

A draft has the same shape as a persisted quiz but no identifiers. It only
reaches the store after every question has exactly one correct option.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..errors import InputError, QuestionFailure


class Difficulty(str, Enum):
    """Requested difficulty of a generated quiz."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: str | Difficulty) -> Difficulty:
        """Parse a user-supplied label (case-insensitive)."""
        if isinstance(value, Difficulty):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(d.value for d in cls)
            raise InputError(f"invalid difficulty {value!r}, expected one of: {allowed}") from None


@dataclass
class DraftOption:
    """One answer option. ``label`` is the letter the model prefixed, if any."""

    content: str
    is_correct: bool = False
    label: str | None = None


@dataclass
class DraftQuestion:
    """A generated question with its ordered options."""

    text: str
    explanation: str = ""
    options: list[DraftOption] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return sum(1 for o in self.options if o.is_correct)

    def validation_problem(self) -> str | None:
        """Describe why this question cannot be persisted, or None if it can."""
        if not self.options:
            return "has no options"
        if self.correct_count == 0:
            return "no option is marked correct"
        if self.correct_count > 1:
            return f"{self.correct_count} options are marked correct"
        return None


@dataclass
class GeneratedQuizDraft:
    """A parsed, not yet persisted quiz."""

    title: str
    difficulty: Difficulty
    questions: list[DraftQuestion] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def option_count(self) -> int:
        return sum(len(q.options) for q in self.questions)

    def validation_failures(self) -> list[QuestionFailure]:
        """All questions that break the exactly-one-correct-option rule."""
        failures = []
        for index, question in enumerate(self.questions):
            problem = question.validation_problem()
            if problem:
                failures.append(QuestionFailure(index=index, question=question.text, reason=problem))
        return failures
