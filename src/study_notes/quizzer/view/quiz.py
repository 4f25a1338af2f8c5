from typing import List, Optional

from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.widget import Widget
from textual.widgets import Button, Static

from ...models import QuizQuestion
from ..session import (
    AnswerRequiredError,
    QuestionResult,
    QuizSession,
    option_label,
)


def summary_lines(session: QuizSession) -> List[str]:
    """Plain-text review lines for a completed session."""

    score = session.score()
    lines = [
        "Quiz Complete!",
        f"{score.correct} / {score.total}",
        f"{score.percent}% correct",
        "",
    ]
    for result in session.results():
        lines.append(_result_line(result))
    return lines


def _result_line(result: QuestionResult) -> str:
    mark = "✔" if result.is_correct else "✘"
    line = (
        f"{mark} {result.position + 1}. {result.question}\n"
        f"    Your answer: {result.selected_text or '—'}"
    )
    if not result.is_correct:
        line += f"\n    Correct answer: {result.correct_text}"
    return line


class QuizApp(App):
    CSS_PATH = None
    CSS = """
#choices Button.selected { background: $accent; color: black; }
#feedback { color: $warning; }
"""
    BINDINGS = [
        ("n", "next", "Next"),
        ("a", "select(0)", "Select A"),
        ("b", "select(1)", "Select B"),
        ("c", "select(2)", "Select C"),
        ("d", "select(3)", "Select D"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: QuizSession,
        *,
        title: str = "",
    ):
        super().__init__()
        self.session = session
        self.quiz_title = title

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield from self._stage_widgets()
        with Container(id="footer"):
            yield Button(self._next_label(), id="next")
            yield Static(self._answered_text(), id="answered")
            yield Static("", id="feedback")

    def _stage_widgets(self) -> List[Widget]:
        if self.session.is_completed:
            return [Static("\n".join(summary_lines(self.session)), id="summary")]
        return [
            QuestionView(
                self.session.current,
                index=self.session.position + 1,
                total=self.session.total_questions,
                title=self.quiz_title,
                selected=self.session.selected_for(),
            )
        ]

    # Pure helpers for navigation and selection (testable without running App)
    def select_answer(self, index: int) -> bool:
        if self.session.is_completed:
            return False
        ok = self.session.select_answer(index)
        self._set_feedback("" if ok else "Not a valid choice.")
        self._update_stage()
        return ok

    def next_question(self) -> bool:
        """Advance the session; returns ``True`` once it has completed."""

        if self.session.is_completed:
            return True
        try:
            self.session.advance()
        except AnswerRequiredError as exc:
            self._set_feedback(str(exc))
            return False
        self._set_feedback("")
        self._update_stage()
        return self.session.is_completed

    def _update_stage(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except Exception:
            return
        stage.remove_children()
        stage.mount(*self._stage_widgets())
        try:
            self.query_one("#answered", Static).update(self._answered_text())
            self.query_one("#next", Button).label = self._next_label()
        except Exception:
            pass

    def _set_feedback(self, text: str) -> None:
        try:
            self.query_one("#feedback", Static).update(text)
        except Exception:
            pass

    def action_next(self) -> None:
        if self.session.is_completed:
            self.exit(self.session)
            return
        self.next_question()

    def action_select(self, index: int) -> None:
        self.select_answer(index)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("choice-"):
            self.select_answer(int(bid.split("-", 1)[1]))
        elif bid == "next":
            self.action_next()

    def _next_label(self) -> str:
        if self.session.is_completed:
            return "Close"
        return "Submit Quiz" if self.session.is_last else "Next Question"

    def _answered_text(self) -> str:
        return (
            f"Answered: {self.session.answered_count()}"
            f"/{self.session.total_questions}"
        )


class QuestionView(Widget):
    """Renders a single question with its options and progress."""

    def __init__(
        self,
        question: QuizQuestion,
        index: int,
        total: int,
        *,
        title: str = "",
        selected: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.quiz_title = title
        self.selected = selected

    def compose(self) -> ComposeResult:
        if self.quiz_title:
            yield Static(self.quiz_title, id="title")
        yield Static(f"Question {self.index} of {self.total}", id="progress")
        yield Static(self.question.question, id="stem")
        with Vertical(id="choices"):
            for i, option in enumerate(self.question.options):
                btn = Button(f"{option_label(i)}. {option}", id=f"choice-{i}")
                if i == self.selected:
                    btn.add_class("selected")
                yield btn
