"""Record types persisted through the record store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping

__all__ = [
    "ModelError",
    "Note",
    "Quiz",
    "QuizQuestion",
    "QuizAttempt",
]


class ModelError(ValueError):
    """Raised when a record payload violates a model invariant."""


def _require(payload: Mapping[str, Any], key: str) -> Any:
    try:
        return payload[key]
    except KeyError as exc:
        raise ModelError(f"Record payload missing required field: {key}") from exc


@dataclass(frozen=True)
class Note:
    """A user-authored block of study text with a subject tag."""

    id: str
    user_id: str
    title: str
    content: str
    subject: str = ""
    created_at: str = ""
    updated_at: str = ""

    @property
    def display_title(self) -> str:
        return self.title or "Untitled"

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "subject": self.subject,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Note":
        return cls(
            id=str(_require(payload, "id")),
            user_id=str(_require(payload, "user_id")),
            title=str(payload.get("title") or ""),
            content=str(payload.get("content") or ""),
            subject=str(payload.get("subject") or ""),
            created_at=str(payload.get("created_at") or ""),
            updated_at=str(payload.get("updated_at") or ""),
        )


@dataclass(frozen=True)
class Quiz:
    """A generated set of questions derived from exactly one note."""

    id: str
    note_id: str
    user_id: str
    title: str
    created_at: str = ""

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "note_id": self.note_id,
            "user_id": self.user_id,
            "title": self.title,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Quiz":
        return cls(
            id=str(_require(payload, "id")),
            note_id=str(_require(payload, "note_id")),
            user_id=str(_require(payload, "user_id")),
            title=str(payload.get("title") or ""),
            created_at=str(payload.get("created_at") or ""),
        )


@dataclass(frozen=True)
class QuizQuestion:
    """One multiple-choice question of a quiz.

    ``correct_answer`` indexes into ``options``; ``order`` fixes the
    question's position inside its quiz.
    """

    id: str
    quiz_id: str
    question: str
    options: tuple[str, ...]
    correct_answer: int
    order: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))
        if not self.options:
            raise ModelError("A question needs at least one option.")
        if not (0 <= self.correct_answer < len(self.options)):
            raise ModelError(
                f"correct_answer {self.correct_answer} is out of range for "
                f"{len(self.options)} options."
            )
        if self.order < 0:
            raise ModelError("order must be non-negative.")

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_answer]

    def option_text(self, index: int | None) -> str | None:
        if index is None or not (0 <= index < len(self.options)):
            return None
        return self.options[index]

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizQuestion":
        options = _require(payload, "options")
        if isinstance(options, (str, bytes)) or not isinstance(
            options, (list, tuple)
        ):
            raise ModelError("options must be a list of strings.")
        try:
            correct = int(_require(payload, "correct_answer"))
            order = int(payload.get("order", 0))
        except (TypeError, ValueError) as exc:
            raise ModelError(
                "correct_answer and order must be integers."
            ) from exc
        return cls(
            id=str(_require(payload, "id")),
            quiz_id=str(_require(payload, "quiz_id")),
            question=str(_require(payload, "question")),
            options=tuple(str(option) for option in options),
            correct_answer=correct,
            order=order,
        )


@dataclass(frozen=True)
class QuizAttempt:
    """A record of one completed run through a quiz."""

    id: str
    quiz_id: str
    user_id: str
    score: int
    total_questions: int
    answers: Mapping[str, int] = field(default_factory=dict)
    completed_at: str = ""

    def __post_init__(self) -> None:
        if self.total_questions < 0:
            raise ModelError("total_questions must be non-negative.")
        if not (0 <= self.score <= self.total_questions):
            raise ModelError(
                f"score {self.score} must lie between 0 and "
                f"{self.total_questions}."
            )

    @property
    def percent(self) -> int:
        if not self.total_questions:
            return 0
        return round(self.score / self.total_questions * 100)

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "user_id": self.user_id,
            "score": self.score,
            "total_questions": self.total_questions,
            "answers": {str(k): int(v) for k, v in self.answers.items()},
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizAttempt":
        answers = payload.get("answers") or {}
        if not isinstance(answers, Mapping):
            raise ModelError("answers must be a mapping when present.")
        score = _require(payload, "score")
        total = _require(payload, "total_questions")
        try:
            score, total = int(score), int(total)
            parsed = {str(k): int(v) for k, v in answers.items()}
        except (TypeError, ValueError) as exc:
            raise ModelError(f"Invalid attempt payload: {exc}") from exc
        return cls(
            id=str(_require(payload, "id")),
            quiz_id=str(_require(payload, "quiz_id")),
            user_id=str(_require(payload, "user_id")),
            score=score,
            total_questions=total,
            answers=parsed,
            completed_at=str(payload.get("completed_at") or ""),
        )
