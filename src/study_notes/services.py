"""Note and quiz workflows over a record store and an identity provider.

The services own no state of their own: every read and write goes to the
record store, scoped to the user reported by the identity provider. Store
errors are not retried; they propagate to the caller.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional

from .core.logging import get_logger
from .identity import IdentityProvider
from .models import Note, Quiz, QuizAttempt, QuizQuestion
from .quizzer.generator import generate_questions_from_content
from .quizzer.session import EmptyQuizError, QuizSession, SessionNotCompletedError
from .settings import QuizConfig, Settings, default_settings
from .store import Order, RecordKind, RecordNotFoundError, RecordStore, StoreError

__all__ = [
    "ServiceError",
    "NotAuthenticatedError",
    "NoteValidationError",
    "EmptyQuizError",
    "GeneratedQuiz",
    "NoteService",
    "QuizService",
]

logger = get_logger("services")


class ServiceError(RuntimeError):
    """Base class for workflow failures reported to the user."""


class NotAuthenticatedError(ServiceError):
    """Raised when no user is signed in."""


class NoteValidationError(ServiceError):
    """Raised when a note is saved without a title or content."""


@dataclass(frozen=True)
class GeneratedQuiz:
    quiz: Quiz
    questions: List[QuizQuestion]


class _UserScoped:
    def __init__(self, store: RecordStore, identity: IdentityProvider) -> None:
        self._store = store
        self._identity = identity

    def _require_user(self) -> str:
        user = self._identity.current_user()
        if not user:
            raise NotAuthenticatedError(
                "No user is signed in. Set STUDY_NOTES_USER or "
                "[identity].user in the config."
            )
        return user


class NoteService(_UserScoped):
    """Create, edit, list and delete the current user's notes."""

    def save_note(
        self,
        title: str,
        content: str,
        subject: str = "",
        *,
        note_id: Optional[str] = None,
    ) -> Note:
        """Insert a new note, or update ``note_id`` when given."""

        user = self._require_user()
        title, content = (title or "").strip(), (content or "").strip()
        if not title or not content:
            raise NoteValidationError("A note needs both a title and content.")
        fields = {
            "title": title,
            "content": content,
            "subject": (subject or "").strip(),
        }
        if note_id is None:
            record = self._store.insert(
                RecordKind.NOTES, {**fields, "user_id": user}
            )
            logger.info("Created note", extra={"note_id": record["id"]})
        else:
            self.get_note(note_id)
            record = self._store.update(RecordKind.NOTES, note_id, fields)
            logger.info("Updated note", extra={"note_id": note_id})
        return Note.from_dict(record)

    def list_notes(self, subject: Optional[str] = None) -> List[Note]:
        user = self._require_user()
        filters = {"user_id": user}
        if subject:
            filters["subject"] = subject
        records = self._store.select(
            RecordKind.NOTES,
            filters,
            [Order("updated_at", descending=True)],
        )
        return [Note.from_dict(r) for r in records]

    def get_note(self, note_id: str) -> Note:
        user = self._require_user()
        records = self._store.select(
            RecordKind.NOTES, {"id": note_id, "user_id": user}
        )
        if not records:
            raise RecordNotFoundError(RecordKind.NOTES, note_id)
        return Note.from_dict(records[0])

    def delete_note(self, note_id: str) -> bool:
        self.get_note(note_id)
        deleted = self._store.delete(RecordKind.NOTES, note_id)
        logger.info(
            "Deleted note", extra={"note_id": note_id, "deleted": deleted}
        )
        return deleted


class QuizService(_UserScoped):
    """Generate quizzes from notes, run them and record attempts."""

    def __init__(
        self,
        store: RecordStore,
        identity: IdentityProvider,
        settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(store, identity)
        self._settings = settings or default_settings()

    @property
    def quiz_config(self) -> QuizConfig:
        return self._settings.quiz

    def generate_quiz(
        self,
        note: Note,
        num_questions: Optional[int] = None,
        *,
        rng: Optional[random.Random] = None,
    ) -> GeneratedQuiz:
        """Generate and persist a quiz for ``note``.

        Nothing is written when the note yields no usable questions. If
        storing the questions fails the freshly inserted quiz is removed.
        """

        user = self._require_user()
        count = self.quiz_config.validate_count(num_questions)
        generated = generate_questions_from_content(note.content, count, rng=rng)
        if not generated:
            logger.warning(
                "Quiz generation produced no questions",
                extra={"note_id": note.id, "requested": count},
            )
            raise EmptyQuizError(
                f"Could not generate any questions from '{note.display_title}'. "
                "Add longer sentences to the note and try again."
            )

        quiz_record = self._store.insert(
            RecordKind.QUIZZES,
            {
                "note_id": note.id,
                "user_id": user,
                "title": f"{note.title} - Quiz",
            },
        )
        quiz = Quiz.from_dict(quiz_record)
        try:
            question_records = self._store.insert_many(
                RecordKind.QUIZ_QUESTIONS,
                [q.to_record(quiz.id, index) for index, q in enumerate(generated)],
            )
        except StoreError:
            logger.exception(
                "Failed to store quiz questions", extra={"quiz_id": quiz.id}
            )
            self._store.delete(RecordKind.QUIZZES, quiz.id)
            raise

        questions = [QuizQuestion.from_dict(r) for r in question_records]
        logger.info(
            "Generated quiz",
            extra={
                "quiz_id": quiz.id,
                "note_id": note.id,
                "requested": count,
                "generated": len(questions),
            },
        )
        return GeneratedQuiz(quiz=quiz, questions=questions)

    def list_quizzes(self) -> List[Quiz]:
        user = self._require_user()
        records = self._store.select(
            RecordKind.QUIZZES,
            {"user_id": user},
            [Order("created_at", descending=True)],
        )
        return [Quiz.from_dict(r) for r in records]

    def get_quiz(self, quiz_id: str) -> Quiz:
        user = self._require_user()
        records = self._store.select(
            RecordKind.QUIZZES, {"id": quiz_id, "user_id": user}
        )
        if not records:
            raise RecordNotFoundError(RecordKind.QUIZZES, quiz_id)
        return Quiz.from_dict(records[0])

    def load_questions(self, quiz_id: str) -> List[QuizQuestion]:
        records = self._store.select(
            RecordKind.QUIZ_QUESTIONS,
            {"quiz_id": quiz_id},
            [Order("order")],
        )
        return [QuizQuestion.from_dict(r) for r in records]

    def start_session(self, quiz_id: str) -> QuizSession:
        self.get_quiz(quiz_id)
        return QuizSession(self.load_questions(quiz_id))

    def record_attempt(self, quiz: Quiz, session: QuizSession) -> QuizAttempt:
        """Persist the result of a completed session."""

        user = self._require_user()
        if not session.is_completed:
            raise SessionNotCompletedError(
                "Only completed quiz sessions can be recorded."
            )
        score = session.score()
        record = self._store.insert(
            RecordKind.QUIZ_ATTEMPTS,
            {
                "quiz_id": quiz.id,
                "user_id": user,
                "score": score.correct,
                "total_questions": score.total,
                "answers": session.answers_payload(),
            },
        )
        logger.info(
            "Recorded quiz attempt",
            extra={
                "quiz_id": quiz.id,
                "score": score.correct,
                "total": score.total,
            },
        )
        return QuizAttempt.from_dict(record)

    def list_attempts(self, quiz_id: Optional[str] = None) -> List[QuizAttempt]:
        user = self._require_user()
        filters = {"user_id": user}
        if quiz_id:
            filters["quiz_id"] = quiz_id
        records = self._store.select(
            RecordKind.QUIZ_ATTEMPTS,
            filters,
            [Order("completed_at", descending=True)],
        )
        return [QuizAttempt.from_dict(r) for r in records]

    def best_attempt(self, quiz_id: str) -> Optional[QuizAttempt]:
        attempts = self.list_attempts(quiz_id)
        if not attempts:
            return None
        return max(
            attempts,
            key=lambda a: (a.score / a.total_questions if a.total_questions else 0.0),
        )
