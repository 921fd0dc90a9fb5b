"""
Error taxonomy for the quizzo core.

Every public operation either returns its typed result or raises one of
these. Callers map them onto their own surface (HTTP status, CLI exit code):

- InputError: bad or unsupported input, always user-visible, never retried
- UpstreamError: generation or storage service failure
- QuizValidationError: upstream text that cannot become a valid quiz
- AttemptConflictError: the learner already attempted this quiz
- ConsistencyError: internal identifier bookkeeping went wrong
"""

from __future__ import annotations

from dataclasses import dataclass


class QuizzoError(Exception):
    """Base class for all quizzo errors."""

    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# =============================================================================
# Input errors
# =============================================================================


class InputError(QuizzoError):
    """Bad or unsupported input supplied by the caller."""


class UnsupportedFormatError(InputError):
    """The upload format cannot be consumed by the generation service."""


class ExtractionError(InputError):
    """The upload could not be read at all."""


class QuizNotFoundError(InputError):
    """No quiz exists with the requested identifier."""


class AttemptNotFoundError(InputError):
    """No attempt exists with the requested identifier."""


class AccessDeniedError(QuizzoError):
    """The caller does not own the requested resource."""


# =============================================================================
# Upstream errors
# =============================================================================


class UpstreamError(QuizzoError):
    """
    A collaborating HTTP service failed.

    Attributes:
        status_code: HTTP status when the service answered, None on transport failure
        body: Raw response body for diagnostics
        retryable: Whether the caller may retry (this core never retries itself)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.retryable = retryable


class MissingCredentialError(UpstreamError):
    """The generation service credential is not configured. Never retryable."""

    def __init__(self, message: str = "GEMINI_API_KEY not set"):
        super().__init__(message, retryable=False)


# =============================================================================
# Validation, conflict and consistency errors
# =============================================================================


@dataclass(frozen=True)
class QuestionFailure:
    """One question that failed structural validation."""

    index: int
    question: str
    reason: str

    def __str__(self) -> str:
        if self.index < 0:
            return self.reason
        return f"question {self.index + 1}: {self.reason}"


class QuizValidationError(QuizzoError):
    """
    Generated output could not be turned into a valid quiz.

    Carries the raw upstream text and the list of failing questions so the
    caller can show or log exactly what was rejected.
    """

    def __init__(
        self,
        message: str,
        raw_text: str | None = None,
        failures: list[QuestionFailure] | None = None,
    ):
        self.raw_text = raw_text
        self.failures = list(failures or [])
        if self.failures:
            message = f"{message}: " + "; ".join(str(f) for f in self.failures)
        super().__init__(message)


class AttemptConflictError(QuizzoError):
    """The (quiz, user) pair already has an attempt."""

    def __init__(self, quiz_id: object, user_id: object):
        super().__init__("user already attempted this quiz")
        self.quiz_id = quiz_id
        self.user_id = user_id


class ConsistencyError(QuizzoError):
    """Internal identifier bookkeeping mismatch. A programming fault."""


class EvaluationError(QuizzoError):
    """The store failed while an attempt was being evaluated."""
