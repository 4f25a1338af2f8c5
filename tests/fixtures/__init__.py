"""Shared testing helpers for the study_notes test suite."""

from .records import (  # noqa: F401
    LONG_CONTENT,
    SAMPLE_CONTENT,
    FailingQuestionStore,
    make_question,
    make_questions,
)

__all__ = [
    "LONG_CONTENT",
    "SAMPLE_CONTENT",
    "FailingQuestionStore",
    "make_question",
    "make_questions",
]
