"""Quiz session controller and its Rich console front end.

``QuizSession`` is a small state machine over a fixed, ordered list of
questions: it is *in progress* (a current position plus the answers
recorded so far) until the last question is advanced past, at which
point it is *completed* and carries a final score. ``run_quiz_session``
drives a session from console input and renders it with Rich; the state
machine itself has no I/O so other front ends (the Textual app) reuse it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.logging import get_logger
from ..models import QuizQuestion

InputProvider = Callable[[], str]
SessionStatus = Literal["in_progress", "completed"]
ExitAction = Literal["completed", "quit"]

logger = get_logger("quizzer.session")


class SessionError(RuntimeError):
    """Base class for quiz session contract violations."""


class EmptyQuizError(SessionError):
    """Raised when a quiz has no questions to ask."""


class AnswerRequiredError(SessionError):
    """Raised when advancing past a question that has no answer yet."""


class SessionCompletedError(SessionError):
    """Raised when mutating a session that has already completed."""


class SessionNotCompletedError(SessionError):
    """Raised when asking for the score of an unfinished session."""


@dataclass(frozen=True)
class QuizScore:
    """Final tally of a completed session."""

    correct: int
    total: int

    @property
    def accuracy(self) -> float:
        if self.total == 0:
            return 0.0
        return self.correct / self.total

    @property
    def percent(self) -> int:
        return round(self.accuracy * 100)


@dataclass(frozen=True)
class QuestionResult:
    """Outcome of one question, used by the review screen."""

    position: int
    question: str
    selected: Optional[int]
    selected_text: Optional[str]
    correct_answer: int
    correct_text: str
    is_correct: bool


@dataclass
class QuizSession:
    """In-memory state of one run through a quiz."""

    questions: List[QuizQuestion]
    position: int = 0
    answers: Dict[int, int] = field(default_factory=dict)
    _score: Optional[QuizScore] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.questions:
            raise EmptyQuizError("Quiz has no questions.")
        self.questions = sorted(self.questions, key=lambda q: q.order)
        if not (0 <= self.position < len(self.questions)):
            raise SessionError(f"Position {self.position} is out of range.")

    @property
    def status(self) -> SessionStatus:
        return "completed" if self._score is not None else "in_progress"

    @property
    def is_completed(self) -> bool:
        return self._score is not None

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> QuizQuestion:
        return self.questions[self.position]

    @property
    def is_last(self) -> bool:
        return self.position == len(self.questions) - 1

    def answered_count(self) -> int:
        return len(self.answers)

    def selected_for(self, position: Optional[int] = None) -> Optional[int]:
        target = self.position if position is None else position
        return self.answers.get(target)

    def select_answer(self, option_index: int) -> bool:
        """Record (or overwrite) the answer for the current question.

        Returns ``False`` without changing state when ``option_index`` does
        not name one of the current question's options.
        """

        self._ensure_in_progress()
        if not (0 <= option_index < len(self.current.options)):
            return False
        self.answers[self.position] = option_index
        return True

    def advance(self) -> Optional[QuizScore]:
        """Move to the next question, completing the session after the last.

        Returns the final score when this call completed the session.
        """

        self._ensure_in_progress()
        if self.position not in self.answers:
            raise AnswerRequiredError(
                f"Select an answer for question {self.position + 1} first."
            )
        if not self.is_last:
            self.position += 1
            return None
        correct = sum(
            1
            for index, question in enumerate(self.questions)
            if self.answers.get(index) == question.correct_answer
        )
        self._score = QuizScore(correct=correct, total=len(self.questions))
        logger.info(
            "Quiz session completed",
            extra={"correct": correct, "total": len(self.questions)},
        )
        return self._score

    def score(self) -> QuizScore:
        if self._score is None:
            raise SessionNotCompletedError(
                "The quiz has not been completed yet."
            )
        return self._score

    def results(self) -> List[QuestionResult]:
        out: List[QuestionResult] = []
        for index, question in enumerate(self.questions):
            selected = self.answers.get(index)
            out.append(
                QuestionResult(
                    position=index,
                    question=question.question,
                    selected=selected,
                    selected_text=question.option_text(selected),
                    correct_answer=question.correct_answer,
                    correct_text=question.correct_option,
                    is_correct=selected == question.correct_answer,
                )
            )
        return out

    def answers_payload(self) -> Dict[str, int]:
        """Answers keyed by stringified position, as stored on attempts."""

        return {str(index): choice for index, choice in sorted(self.answers.items())}

    def _ensure_in_progress(self) -> None:
        if self._score is not None:
            raise SessionCompletedError("The quiz has already been completed.")


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["next", "quit", "select"]
    choice: Optional[int] = None


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from ``run_quiz_session``."""

    session: QuizSession
    exit_action: ExitAction

    @property
    def score(self) -> Optional[QuizScore]:
        return self.session.score() if self.session.is_completed else None


def option_label(index: int) -> str:
    return chr(ord("A") + index)


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Parse raw input: a letter or 1-based number selects, n advances."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next", "submit"}:
        return SessionCommand("next")
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if len(text) == 1 and text.isalpha():
        return SessionCommand("select", ord(text.upper()) - ord("A"))
    if text.isdigit() and int(text) > 0:
        return SessionCommand("select", int(text) - 1)
    return None


def run_quiz_session(
    questions: Sequence[QuizQuestion] | QuizSession,
    console: Console,
    input_provider: InputProvider,
    *,
    title: Optional[str] = None,
) -> QuizSessionResult:
    """Run an interactive quiz session using Rich-rendered prompts."""

    session = (
        questions
        if isinstance(questions, QuizSession)
        else QuizSession(list(questions))
    )

    while not session.is_completed:
        _render_question(console, session, title)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return QuizSessionResult(session, "quit")
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending quiz without submitting.[/]")
            return QuizSessionResult(session, "quit")
        _apply_command(command, session, console)

    render_summary(console, session)
    return QuizSessionResult(session, "completed")


def _apply_command(
    command: SessionCommand,
    session: QuizSession,
    console: Console,
) -> None:
    if command.type == "select" and command.choice is not None:
        if session.select_answer(command.choice):
            console.print(
                f"Selected [bold]{option_label(command.choice)}[/]."
            )
        else:
            console.print(
                "[red]That is not a valid choice for this question.[/red]"
            )
        return
    if command.type == "next":
        try:
            session.advance()
        except AnswerRequiredError as exc:
            console.print(f"[red]{exc}[/red]")


def _render_question(
    console: Console, session: QuizSession, title: Optional[str]
) -> None:
    question = session.current
    header = Text.assemble(
        (f"Question {session.position + 1}", "bold cyan"),
        (f" of {session.total_questions}", "dim"),
    )
    console.print()
    if title:
        console.print(Text(title, style="bold magenta"))
    console.rule(header)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")

    selected = session.selected_for()
    for index, option in enumerate(question.options):
        indicator = "•" if index == selected else " "
        choice_text = Text(option)
        if index == selected:
            choice_text.stylize("bold green")
        row_text = Text(indicator + " ")
        row_text += choice_text
        table.add_row(option_label(index), row_text)

    console.print(table)
    keys = ", ".join(option_label(i) for i in range(len(question.options)))
    action = "submit" if session.is_last else "next"
    console.print(
        Text(
            f"Answered {session.answered_count()}/{session.total_questions} | "
            f"Commands: choices [{keys}], n ({action}), quit",
            style="dim",
        )
    )


def render_summary(console: Console, session: QuizSession) -> None:
    """Print the final score and a per-question review."""

    score = session.score()
    console.print()
    console.rule(Text("Quiz Complete!", style="bold magenta"))
    console.print(
        Panel(
            Text.assemble(
                (f"{score.correct} / {score.total}", "bold blue"),
                (f"\n{score.percent}% correct", "dim"),
            ),
            title="Score",
            border_style="green" if score.correct == score.total else "yellow",
            expand=False,
        )
    )

    review = Table(title="Review", box=box.SIMPLE, expand=True)
    review.add_column("#", justify="right")
    review.add_column("Question", overflow="fold")
    review.add_column("Your answer")
    review.add_column("Correct answer")
    review.add_column("Result", justify="center")
    for result in session.results():
        review.add_row(
            str(result.position + 1),
            result.question,
            result.selected_text or "—",
            "" if result.is_correct else result.correct_text,
            "✅" if result.is_correct else "❌",
        )
    console.print(review)
