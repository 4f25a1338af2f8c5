from __future__ import annotations

import random

import pytest

from fixtures import LONG_CONTENT, SAMPLE_CONTENT, FailingQuestionStore
from study_notes.identity import StaticIdentityProvider
from study_notes.quizzer.session import SessionNotCompletedError
from study_notes.services import (
    EmptyQuizError,
    NoteService,
    NotAuthenticatedError,
    NoteValidationError,
    QuizService,
)
from study_notes.store import RecordKind, RecordNotFoundError, StoreError


def _answer(session, choices):
    for choice in choices:
        session.select_answer(choice)
        session.advance()
    return session


def test_save_note_inserts_for_current_user(note_service, store):
    note = note_service.save_note("  Cells ", " Mitochondria matter. ", "biology")

    assert note.user_id == "alice"
    assert note.title == "Cells"
    assert note.content == "Mitochondria matter."
    assert store.select(RecordKind.NOTES)[0]["subject"] == "biology"


@pytest.mark.parametrize("title, content", [("", "body"), ("Title", "   ")])
def test_save_note_requires_title_and_content(note_service, title, content):
    with pytest.raises(NoteValidationError):
        note_service.save_note(title, content)


def test_save_note_with_id_updates_existing(note_service):
    original = note_service.save_note("Cells", "First draft")

    updated = note_service.save_note(
        "Cells v2", "Second draft", "bio", note_id=original.id
    )

    assert updated.id == original.id
    assert updated.content == "Second draft"
    assert [n.title for n in note_service.list_notes()] == ["Cells v2"]


def test_notes_are_scoped_to_their_owner(store, note_service):
    mine = note_service.save_note("Mine", "alice's text")
    bob = NoteService(store, StaticIdentityProvider("bob"))
    bob.save_note("Theirs", "bob's text")

    assert [n.title for n in note_service.list_notes()] == ["Mine"]
    with pytest.raises(RecordNotFoundError):
        bob.get_note(mine.id)
    with pytest.raises(RecordNotFoundError):
        bob.delete_note(mine.id)


def test_list_notes_filters_by_subject(note_service):
    note_service.save_note("A", "alpha", "math")
    note_service.save_note("B", "beta", "bio")

    assert [n.title for n in note_service.list_notes(subject="bio")] == ["B"]


def test_delete_note_removes_record(note_service):
    note = note_service.save_note("Gone", "soon")

    assert note_service.delete_note(note.id) is True
    assert note_service.list_notes() == []


def test_signed_out_user_is_rejected(store):
    notes = NoteService(store, StaticIdentityProvider(None))
    quizzes = QuizService(store, StaticIdentityProvider(""))

    with pytest.raises(NotAuthenticatedError):
        notes.save_note("t", "c")
    with pytest.raises(NotAuthenticatedError):
        quizzes.list_quizzes()


def test_generate_quiz_persists_quiz_and_ordered_questions(
    note_service, quiz_service, store
):
    note = note_service.save_note("Cell Biology", SAMPLE_CONTENT)

    result = quiz_service.generate_quiz(note, 3, rng=random.Random(2))

    assert result.quiz.title == "Cell Biology - Quiz"
    assert result.quiz.note_id == note.id
    assert result.quiz.user_id == "alice"
    assert len(result.questions) == 2
    assert [q.order for q in result.questions] == [0, 1]
    assert all(q.quiz_id == result.quiz.id for q in result.questions)
    assert quiz_service.load_questions(result.quiz.id) == result.questions


def test_generate_quiz_uses_configured_default_count(note_service, quiz_service):
    note = note_service.save_note("Biology", LONG_CONTENT)

    result = quiz_service.generate_quiz(note, rng=random.Random(0))

    assert len(result.questions) == quiz_service.quiz_config.default_questions


@pytest.mark.parametrize("count", [2, 21])
def test_generate_quiz_rejects_out_of_bounds_counts(note_service, quiz_service, count):
    note = note_service.save_note("Biology", LONG_CONTENT)

    with pytest.raises(ValueError, match="between 3 and 20"):
        quiz_service.generate_quiz(note, count)


def test_generate_quiz_without_material_writes_nothing(
    note_service, quiz_service, store
):
    note = note_service.save_note("Short", "Too brief. Really.")

    with pytest.raises(EmptyQuizError):
        quiz_service.generate_quiz(note, 3)

    assert store.select(RecordKind.QUIZZES) == []
    assert store.select(RecordKind.QUIZ_QUESTIONS) == []


def test_generate_quiz_removes_quiz_when_questions_fail(tmp_path, identity):
    store = FailingQuestionStore(tmp_path / "records")
    note = NoteService(store, identity).save_note("Cells", SAMPLE_CONTENT)
    quizzes = QuizService(store, identity)

    with pytest.raises(StoreError):
        quizzes.generate_quiz(note, 3)

    assert store.select(RecordKind.QUIZZES) == []


def test_start_session_and_record_attempt(note_service, quiz_service, store):
    note = note_service.save_note("Biology", LONG_CONTENT)
    generated = quiz_service.generate_quiz(note, 3, rng=random.Random(4))
    session = quiz_service.start_session(generated.quiz.id)
    correct = [q.correct_answer for q in session.questions]

    with pytest.raises(SessionNotCompletedError):
        quiz_service.record_attempt(generated.quiz, session)
    _answer(session, correct)
    attempt = quiz_service.record_attempt(generated.quiz, session)

    assert attempt.score == attempt.total_questions == 3
    assert attempt.answers == {str(i): c for i, c in enumerate(correct)}
    assert attempt.completed_at
    assert quiz_service.list_attempts(generated.quiz.id) == [attempt]


def test_start_session_for_foreign_quiz_is_not_found(
    store, note_service, quiz_service
):
    note = note_service.save_note("Biology", LONG_CONTENT)
    generated = quiz_service.generate_quiz(note, 3)
    stranger = QuizService(store, StaticIdentityProvider("mallory"))

    with pytest.raises(RecordNotFoundError):
        stranger.start_session(generated.quiz.id)


def test_best_attempt_picks_highest_ratio(note_service, quiz_service):
    note = note_service.save_note("Biology", LONG_CONTENT)
    generated = quiz_service.generate_quiz(note, 3, rng=random.Random(8))
    assert quiz_service.best_attempt(generated.quiz.id) is None

    scores = []
    for wrong_count in (2, 0, 1):
        session = quiz_service.start_session(generated.quiz.id)
        choices = [
            (q.correct_answer + 1) % len(q.options) if i < wrong_count else q.correct_answer
            for i, q in enumerate(session.questions)
        ]
        _answer(session, choices)
        scores.append(quiz_service.record_attempt(generated.quiz, session).score)

    best = quiz_service.best_attempt(generated.quiz.id)
    assert scores == [1, 3, 2]
    assert best is not None and best.score == 3
    assert len(quiz_service.list_attempts()) == 3


def test_list_quizzes_returns_only_current_users(store, note_service, quiz_service):
    note = note_service.save_note("Biology", LONG_CONTENT)
    quiz_service.generate_quiz(note, 3)
    quiz_service.generate_quiz(note, 4)

    assert len(quiz_service.list_quizzes()) == 2
    assert QuizService(store, StaticIdentityProvider("bob")).list_quizzes() == []
