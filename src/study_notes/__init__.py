"""Study notes with auto-generated fill-in-the-blank quizzes."""

from .models import Note, Quiz, QuizAttempt, QuizQuestion
from .services import NoteService, QuizService

__all__ = [
    "Note",
    "Quiz",
    "QuizAttempt",
    "QuizQuestion",
    "NoteService",
    "QuizService",
]
