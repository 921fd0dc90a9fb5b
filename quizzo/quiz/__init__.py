"""
Quiz lifecycle services.

- QuizPersistenceCoordinator: atomic write of a validated draft plus archival
- AttemptGradingEngine: one graded attempt per (quiz, user)
- QuizRepository: read-back of quizzes, attempts and archived sources
"""

from .grading import AttemptGradingEngine
from .persistence import QuizPersistenceCoordinator, SourceFile
from .repository import AttemptDetail, AttemptQuestionReview, QuizRepository

__all__ = [
    "AttemptGradingEngine",
    "QuizPersistenceCoordinator",
    "SourceFile",
    "QuizRepository",
    "AttemptDetail",
    "AttemptQuestionReview",
]
