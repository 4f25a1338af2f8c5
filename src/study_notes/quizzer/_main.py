import argparse
import random
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from ..core.workspace import WorkspaceError
from ..models import ModelError
from ..runtime import AppContext, build_context
from ..services import NotAuthenticatedError, ServiceError
from ..settings import ConfigError, QuestionCountError
from ..store import StoreError
from .session import (
    EmptyQuizError,
    SessionError,
    render_summary,
    run_quiz_session,
)
from .view.quiz import QuizApp


def _cmd_generate(
    args: argparse.Namespace, ctx: AppContext, console: Console
) -> int:
    note = ctx.notes.get_note(args.note_id)
    rng = random.Random(args.seed) if args.seed is not None else None
    try:
        result = ctx.quizzes.generate_quiz(note, args.num, rng=rng)
    except QuestionCountError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 2
    except EmptyQuizError as exc:
        console.print(f"[yellow]{exc}[/]")
        return 1
    console.print(
        f"Created quiz [bold]{result.quiz.title}[/] ({result.quiz.id}) with "
        f"{len(result.questions)} question(s)."
    )
    return 0


def _cmd_list(args: argparse.Namespace, ctx: AppContext, console: Console) -> int:
    quizzes = ctx.quizzes.list_quizzes()
    if not quizzes:
        console.print("No quizzes yet. Run 'study-notes quiz generate <note>'.")
        return 1
    table = Table(title="My Quizzes", box=box.SIMPLE)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Created")
    table.add_column("Best", justify="right")
    for quiz in quizzes:
        best = ctx.quizzes.best_attempt(quiz.id)
        table.add_row(
            quiz.id,
            quiz.title,
            quiz.created_at[:10],
            f"{best.score}/{best.total_questions}" if best else "—",
        )
    console.print(table)
    return 0


def _cmd_questions(
    args: argparse.Namespace, ctx: AppContext, console: Console
) -> int:
    quiz = ctx.quizzes.get_quiz(args.quiz_id)
    questions = ctx.quizzes.load_questions(quiz.id)
    if not questions:
        console.print("Quiz has no questions.")
        return 1
    console.print(f"[bold]{quiz.title}[/]")
    for q in questions:
        console.print(f"{q.order + 1}. {q.question[:100]}")
    return 0


def _cmd_take(
    args: argparse.Namespace,
    ctx: AppContext,
    console: Console,
    input_provider: Optional[Callable[[], str]] = None,
) -> int:
    quiz = ctx.quizzes.get_quiz(args.quiz_id)
    session = ctx.quizzes.start_session(quiz.id)

    if args.tui:
        QuizApp(session, title=quiz.title).run()
        if not session.is_completed:
            console.print("Quiz closed without submitting.")
            return 1
        attempt = ctx.quizzes.record_attempt(quiz, session)
        render_summary(console, session)
        console.print(f"Saved attempt {attempt.id}.")
        return 0

    provider = input_provider or (lambda: console.input("> "))
    result = run_quiz_session(session, console, provider, title=quiz.title)
    if result.exit_action != "completed":
        return 1
    attempt = ctx.quizzes.record_attempt(quiz, session)
    console.print(f"Saved attempt {attempt.id}.")
    return 0


def _cmd_attempts(
    args: argparse.Namespace, ctx: AppContext, console: Console
) -> int:
    attempts = ctx.quizzes.list_attempts(args.quiz_id)
    if not attempts:
        console.print("No attempts recorded.")
        return 1
    table = Table(title="Attempts", box=box.SIMPLE)
    table.add_column("Quiz", style="cyan", no_wrap=True)
    table.add_column("Score", justify="right")
    table.add_column("Percent", justify="right")
    table.add_column("Completed")
    for attempt in attempts:
        table.add_row(
            attempt.quiz_id,
            f"{attempt.score}/{attempt.total_questions}",
            f"{attempt.percent}%",
            attempt.completed_at,
        )
    console.print(table)
    return 0


_HANDLERS = {
    "generate": _cmd_generate,
    "list": _cmd_list,
    "questions": _cmd_questions,
    "attempts": _cmd_attempts,
}


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="study-notes quiz",
        description="Generate quizzes from notes and take them",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--config", type=Path, help="Path to a TOML config file")
    p.add_argument("--workspace", type=Path, help="Override the workspace root")
    p.add_argument(
        "-v", "--verbose", action="store_true", help="Log to stderr as well"
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_gen = sub.add_parser("generate", help="Generate a quiz from a note")
    sp_gen.add_argument("note_id")
    sp_gen.add_argument(
        "--num",
        type=int,
        help="Number of questions (defaults to [quiz].default_questions)",
    )
    sp_gen.add_argument(
        "--seed", type=int, help="Seed the generator for repeatable output"
    )

    sub.add_parser("list", help="List quizzes, newest first")

    sp_q = sub.add_parser("questions", help="Show a quiz's questions")
    sp_q.add_argument("quiz_id")

    sp_take = sub.add_parser("take", help="Take a quiz")
    sp_take.add_argument("quiz_id")
    sp_take.add_argument(
        "--tui", action="store_true", help="Use the Textual interface"
    )

    sp_att = sub.add_parser("attempts", help="List recorded attempts")
    sp_att.add_argument("quiz_id", nargs="?")
    return p


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    context: Optional[AppContext] = None,
    console: Optional[Console] = None,
    input_provider: Optional[Callable[[], str]] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    console = console or Console()

    try:
        ctx = context or build_context(
            config_path=args.config,
            workspace=args.workspace,
            verbose=args.verbose,
        )
    except (ConfigError, WorkspaceError) as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 2

    ctx.logger.debug("quiz CLI invoked", extra={"command": args.command})
    try:
        if args.command == "take":
            return _cmd_take(args, ctx, console, input_provider)
        return _HANDLERS[args.command](args, ctx, console)
    except NotAuthenticatedError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 2
    except (ServiceError, SessionError, StoreError, ModelError) as exc:
        ctx.logger.error(
            "quiz command failed",
            extra={"command": args.command, "error": str(exc)},
        )
        console.print(f"[red]Error:[/] {exc}")
        return 1


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    sys.exit(main())
