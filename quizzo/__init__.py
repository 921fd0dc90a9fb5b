"""Quizzo core: document ingestion, quiz generation, persistence and grading."""

__version__ = "1.0.0"
