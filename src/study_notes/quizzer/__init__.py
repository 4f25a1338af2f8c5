from .generator import (
    BLANK,
    GeneratedQuestion,
    generate_questions_from_content,
    split_sentences,
)
from .session import (
    AnswerRequiredError,
    EmptyQuizError,
    QuestionResult,
    QuizScore,
    QuizSession,
    QuizSessionResult,
    SessionCompletedError,
    SessionError,
    SessionNotCompletedError,
    parse_session_command,
    run_quiz_session,
)

__all__ = [
    "BLANK",
    "GeneratedQuestion",
    "generate_questions_from_content",
    "split_sentences",
    "AnswerRequiredError",
    "EmptyQuizError",
    "QuestionResult",
    "QuizScore",
    "QuizSession",
    "QuizSessionResult",
    "SessionCompletedError",
    "SessionError",
    "SessionNotCompletedError",
    "parse_session_command",
    "run_quiz_session",
]
