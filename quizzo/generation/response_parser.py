"""
Quiz Response Parser.

Turns the generation service's free-form answer into a GeneratedQuizDraft.
The upstream text is untrusted: it may be fenced in markdown, may reference
the correct option by its letter or by echoing its text, and may be plain
prose. Anything that does not resolve to exactly one correct option per
question is rejected with the raw text attached.
"""

from __future__ import annotations

import json
import re
from enum import Enum

from loguru import logger
from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from ..errors import QuestionFailure, QuizValidationError
from .models import Difficulty, DraftOption, DraftQuestion, GeneratedQuizDraft

CODE_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)

# "A. Paris", "b) Rome": one letter, then "." or ")", then the content
OPTION_LABEL_PATTERN = re.compile(r"^([A-Za-z])[.)](.*)$", re.DOTALL)


# =============================================================================
# Upstream response schema
# =============================================================================


class RawQuestion(BaseModel):
    """One question exactly as the model wrote it."""

    model_config = ConfigDict(extra="ignore")

    question: StrictStr
    options: list[StrictStr]
    correct_answer: StrictStr
    explanation: StrictStr | None = None


class RawQuizPayload(BaseModel):
    """Top-level object the prompt asks for."""

    model_config = ConfigDict(extra="ignore")

    title: StrictStr | None = None
    questions: list[RawQuestion]


# =============================================================================
# Option resolution
# =============================================================================


class OptionMatch(str, Enum):
    """How an option was matched against ``correct_answer``."""

    LABEL = "label"  # correct_answer is the option's letter
    CONTENT = "content"  # correct_answer repeats the option's text
    NONE = "none"


def strip_code_fences(raw_text: str) -> str:
    """Remove ```json / ``` markers and surrounding whitespace."""
    return CODE_FENCE_PATTERN.sub("", raw_text).strip()


def split_option_label(option: str) -> tuple[str | None, str]:
    """
    Split "A. Paris" into ("A", "Paris").

    Options without a letter prefix come back as (None, trimmed text).
    """
    text = option.strip()
    match = OPTION_LABEL_PATTERN.match(text)
    if match is None:
        return None, text
    return match.group(1).upper(), match.group(2).strip()


def resolve_option(label: str | None, content: str, correct_answer: str) -> OptionMatch:
    """Label match first, then case-insensitive content match."""
    answer = correct_answer.strip()
    if label is not None and answer.upper() == label:
        return OptionMatch.LABEL
    if answer and answer.casefold() == content.casefold():
        return OptionMatch.CONTENT
    return OptionMatch.NONE


# =============================================================================
# Parser
# =============================================================================


class QuizResponseParser:
    """Parse and validate raw generation output into a quiz draft."""

    def parse(self, raw_text: str, fallback_difficulty: Difficulty | str) -> GeneratedQuizDraft:
        """
        Parse generated text.

        Args:
            raw_text: Model output, possibly fenced in markdown
            fallback_difficulty: Difficulty recorded on the draft

        Raises:
            QuizValidationError: Undecodable JSON, wrong shape, or a question
                without exactly one correct option. ``raw_text`` is attached.
        """
        difficulty = Difficulty.parse(fallback_difficulty)
        payload = self._decode(raw_text)

        draft = GeneratedQuizDraft(title=(payload.title or "").strip(), difficulty=difficulty)
        failures: list[QuestionFailure] = []

        for index, raw_question in enumerate(payload.questions):
            question = self._build_question(raw_question)
            problem = question.validation_problem()
            if problem:
                failures.append(
                    QuestionFailure(
                        index=index,
                        question=question.text,
                        reason=f"{problem} (correct_answer={raw_question.correct_answer!r})",
                    )
                )
            draft.questions.append(question)

        if failures:
            logger.warning(f"Rejected generated quiz: {len(failures)} invalid question(s)")
            raise QuizValidationError(
                "generated quiz failed validation",
                raw_text=raw_text,
                failures=failures,
            )

        logger.info(
            f"Parsed quiz {draft.title!r}: {draft.question_count} questions, "
            f"{draft.option_count} options"
        )
        return draft

    def _decode(self, raw_text: str) -> RawQuizPayload:
        cleaned = strip_code_fences(raw_text)
        try:
            data = json.loads(cleaned)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.warning(f"Generated text is not JSON: {e}")
            raise QuizValidationError(f"failed to parse generated JSON: {e}", raw_text=raw_text) from e

        if not isinstance(data, dict):
            raise QuizValidationError("generated JSON is not an object", raw_text=raw_text)

        try:
            return RawQuizPayload.model_validate(data)
        except ValidationError as e:
            raise QuizValidationError(
                "generated JSON does not match the quiz schema",
                raw_text=raw_text,
                failures=self._schema_failures(e, data),
            ) from e

    @staticmethod
    def _build_question(raw: RawQuestion) -> DraftQuestion:
        question = DraftQuestion(
            text=raw.question.strip(),
            explanation=(raw.explanation or "").strip(),
        )
        for option_text in raw.options:
            label, content = split_option_label(option_text)
            match = resolve_option(label, content, raw.correct_answer)
            question.options.append(
                DraftOption(content=content, is_correct=match is not OptionMatch.NONE, label=label)
            )
        return question

    @staticmethod
    def _schema_failures(error: ValidationError, data: dict) -> list[QuestionFailure]:
        """Map pydantic errors onto the questions they belong to."""
        failures = []
        raw_questions = data.get("questions")
        for detail in error.errors():
            loc = detail["loc"]
            field_path = ".".join(str(part) for part in loc)
            if len(loc) >= 2 and loc[0] == "questions" and isinstance(loc[1], int):
                index = loc[1]
                question_text = ""
                if isinstance(raw_questions, list) and index < len(raw_questions):
                    item = raw_questions[index]
                    if isinstance(item, dict) and isinstance(item.get("question"), str):
                        question_text = item["question"]
                failures.append(
                    QuestionFailure(index=index, question=question_text, reason=f"{field_path}: {detail['msg']}")
                )
            else:
                failures.append(QuestionFailure(index=-1, question="", reason=f"{field_path}: {detail['msg']}"))
        return failures
