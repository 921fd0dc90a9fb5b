"""
Integration tests for atomic quiz persistence.
"""

import pytest
from sqlalchemy import func, select

from quizzo.db.models import Quiz, QuizOption, QuizQuestion
from quizzo.errors import ConsistencyError, InputError, QuizValidationError, UpstreamError
from quizzo.generation import Difficulty, DraftOption, DraftQuestion, GeneratedQuizDraft
from quizzo.quiz import QuizPersistenceCoordinator, QuizRepository, SourceFile

SOURCE = SourceFile(filename="notes.txt", data=b"source material")


def row_counts(session_factory):
    with session_factory() as session:
        return tuple(
            session.scalar(select(func.count()).select_from(model))
            for model in (Quiz, QuizQuestion, QuizOption)
        )


def large_draft(question_total=12):
    questions = []
    for n in range(question_total):
        options = [DraftOption(f"q{n}-opt{m}", is_correct=(m == n % 4)) for m in range(4)]
        questions.append(DraftQuestion(f"question {n}", explanation=f"explanation {n}", options=options))
    return GeneratedQuizDraft(title="Ordering", difficulty=Difficulty.MEDIUM, questions=questions)


class TestPersist:
    def test_read_back_matches_input_order(self, coordinator, session_factory, owner_id):
        draft = large_draft()

        quiz_id = coordinator.persist(draft, owner_user_id=owner_id, source=SOURCE)
        quiz = QuizRepository(session_factory).get_quiz(quiz_id)

        assert [q.question_text for q in quiz.questions] == [q.text for q in draft.questions]
        for stored, original in zip(quiz.questions, draft.questions):
            assert [o.content for o in stored.options] == [o.content for o in original.options]
            assert [o.is_correct for o in stored.options] == [o.is_correct for o in original.options]
            assert stored.explanation == original.explanation

    def test_quiz_fields(self, coordinator, session_factory, owner_id, sample_draft):
        quiz_id = coordinator.persist(
            sample_draft,
            owner_user_id=owner_id,
            source=SOURCE,
            description="Layer basics",
            time_limit=15,
        )

        quiz = QuizRepository(session_factory).get_quiz(quiz_id)

        assert quiz.title == "The OSI Reference Model"
        assert quiz.description == "Layer basics"
        assert quiz.difficulty_level == "easy"
        assert quiz.time_limit == 15
        assert quiz.created_by == owner_id
        assert quiz.created_at is not None

    def test_source_archived_under_quiz_id(self, coordinator, storage_service, owner_id, sample_draft):
        quiz_id = coordinator.persist(sample_draft, owner_user_id=owner_id, source=SOURCE)

        assert storage_service.files[str(quiz_id)] == (b"source material", "text/plain")


class TestRollback:
    def test_archive_failure_rolls_back_everything(
        self, coordinator, storage_service, session_factory, owner_id, sample_draft
    ):
        storage_service.fail_uploads = True

        with pytest.raises(UpstreamError):
            coordinator.persist(sample_draft, owner_user_id=owner_id, source=SOURCE)

        assert storage_service.upload_requests == 1
        assert row_counts(session_factory) == (0, 0, 0)

    def test_identifier_mismatch_rolls_back(
        self, coordinator, session_factory, owner_id, sample_draft, monkeypatch
    ):
        original = QuizPersistenceCoordinator._insert_questions

        def drop_one(session, quiz_id, questions):
            return original(session, quiz_id, questions)[:-1]

        monkeypatch.setattr(QuizPersistenceCoordinator, "_insert_questions", staticmethod(drop_one))

        with pytest.raises(ConsistencyError):
            coordinator.persist(sample_draft, owner_user_id=owner_id, source=SOURCE)

        assert row_counts(session_factory) == (0, 0, 0)


class TestRejectedBeforeWrite:
    def test_empty_draft(self, coordinator, storage_service, session_factory, owner_id):
        draft = GeneratedQuizDraft(title="empty", difficulty=Difficulty.EASY)

        with pytest.raises(QuizValidationError, match="no questions"):
            coordinator.persist(draft, owner_user_id=owner_id, source=SOURCE)

        assert storage_service.upload_requests == 0
        assert row_counts(session_factory) == (0, 0, 0)

    def test_ambiguous_question(self, coordinator, session_factory, owner_id):
        draft = GeneratedQuizDraft(
            title="bad",
            difficulty=Difficulty.EASY,
            questions=[DraftQuestion("q", options=[DraftOption("a", True), DraftOption("b", True)])],
        )

        with pytest.raises(QuizValidationError) as exc_info:
            coordinator.persist(draft, owner_user_id=owner_id, source=SOURCE)

        assert exc_info.value.failures[0].index == 0
        assert row_counts(session_factory) == (0, 0, 0)

    def test_non_positive_time_limit(self, coordinator, owner_id, sample_draft):
        with pytest.raises(InputError):
            coordinator.persist(sample_draft, owner_user_id=owner_id, source=SOURCE, time_limit=0)
