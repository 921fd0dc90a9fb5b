"""LLM-based quiz generation.

Pipeline:
1. QuizGenerationClient sends source material to Gemini
2. QuizResponseParser validates the answer into a GeneratedQuizDraft

Usage:
    from quizzo.generation import QuizGenerationClient, QuizResponseParser

    raw = client.generate(text, question_count=5, difficulty="easy")
    draft = QuizResponseParser().parse(raw, "easy")
"""
from quizzo.generation.gemini_client import QuizGenerationClient, detect_mime_type, ensure_supported_upload
from quizzo.generation.models import Difficulty, DraftOption, DraftQuestion, GeneratedQuizDraft
from quizzo.generation.response_parser import OptionMatch, QuizResponseParser

__all__ = [
    "QuizGenerationClient",
    "QuizResponseParser",
    "GeneratedQuizDraft",
    "DraftQuestion",
    "DraftOption",
    "Difficulty",
    "OptionMatch",
    "detect_mime_type",
    "ensure_supported_upload",
]
