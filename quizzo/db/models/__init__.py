# SQLAlchemy models
from .attempt import AttemptAnswer, QuizAttempt
from .base import Base
from .quiz import Quiz, QuizOption, QuizQuestion

__all__ = [
    # Base
    "Base",
    # Quiz
    "Quiz",
    "QuizQuestion",
    "QuizOption",
    # Attempts
    "QuizAttempt",
    "AttemptAnswer",
]
