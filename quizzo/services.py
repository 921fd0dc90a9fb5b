"""
Service wiring.

Builds every collaborator once from Settings and hands them out explicitly.
The caller owns the returned container and must close it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
from loguru import logger
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.database import create_db_engine, create_session_factory
from .etl import ContentExtractor, ExtractionConfig
from .generation import QuizGenerationClient, QuizResponseParser
from .pipeline import QuizIngestionPipeline
from .quiz import AttemptGradingEngine, QuizPersistenceCoordinator, QuizRepository
from .storage import FileStorageClient

if TYPE_CHECKING:
    from config import Settings


@dataclass
class Services:
    engine: Engine
    session_factory: sessionmaker[Session]
    generation_http: httpx.Client
    storage_http: httpx.Client
    pipeline: QuizIngestionPipeline
    grading: AttemptGradingEngine
    repository: QuizRepository

    def close(self) -> None:
        self.generation_http.close()
        self.storage_http.close()
        self.engine.dispose()


def create_services(settings: Settings) -> Services:
    """Create the engine, HTTP clients and core components."""
    engine = create_db_engine(settings.database_url)
    session_factory = create_session_factory(engine)

    generation_http = httpx.Client(timeout=settings.generation_timeout_seconds)
    storage_http = httpx.Client(timeout=settings.file_storage_timeout_seconds)

    storage = FileStorageClient.from_settings(settings, storage_http)
    generator = QuizGenerationClient.from_settings(settings, generation_http)
    if not settings.has_ai_configured():
        logger.warning("GEMINI_API_KEY not set; quiz generation will fail")

    pipeline = QuizIngestionPipeline(
        extractor=ContentExtractor(ExtractionConfig.from_settings(settings)),
        generator=generator,
        parser=QuizResponseParser(),
        coordinator=QuizPersistenceCoordinator(session_factory, storage),
        payload_mode=settings.generation_payload_mode,
    )
    return Services(
        engine=engine,
        session_factory=session_factory,
        generation_http=generation_http,
        storage_http=storage_http,
        pipeline=pipeline,
        grading=AttemptGradingEngine(session_factory),
        repository=QuizRepository(session_factory, storage),
    )
