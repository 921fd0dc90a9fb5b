"""
Typer CLI for the quizzo core.

Commands:
    quizzo db init                         - Initialize database tables
    quizzo quiz generate FILE              - Generate and persist a quiz from a document
    quizzo quiz show QUIZ_ID               - Show a quiz with its answers
    quizzo quiz list                       - List quizzes created by a user
    quizzo quiz source QUIZ_ID             - Download the archived source document
    quizzo attempt submit QUIZ_ID ANSWERS  - Submit a one-shot attempt
    quizzo attempt history                 - List a user's attempts
    quizzo attempt show ATTEMPT_ID         - Review a graded attempt

The acting user is taken from --user or QUIZZO_USER_ID.

Usage:
    quizzo --help
    quizzo quiz generate notes.pdf --count 5 --difficulty easy --user <uuid>
    quizzo attempt submit <quiz-uuid> answers.json --user <uuid>
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import Settings, get_settings
from quizzo.auth import AuthContext
from quizzo.db.database import init_db
from quizzo.errors import QuizValidationError, QuizzoError, UpstreamError
from quizzo.logging_setup import configure_logging
from quizzo.pipeline import IngestionRequest
from quizzo.services import Services, create_services

app = typer.Typer(
    help="quizzo: turn documents into quizzes and grade one-shot attempts",
    no_args_is_help=True,
)

console = Console()

USER_OPTION = typer.Option(..., "--user", "-u", envvar="QUIZZO_USER_ID", help="Acting user id (UUID)")


# ========================================
# Context Builder (Dependency Injection)
# ========================================


class CLIContext:
    """
    Dependency container for CLI commands.

    Services are built lazily so --help and argument errors never touch the
    database or open HTTP clients.
    """

    def __init__(self, settings: Settings | None = None, services: Services | None = None):
        self.settings = settings or get_settings()
        self._services = services
        self._owns_services = services is None

    @property
    def services(self) -> Services:
        if self._services is None:
            self._services = create_services(self.settings)
        return self._services

    def close(self) -> None:
        if self._owns_services and self._services is not None:
            self._services.close()
            self._services = None


@app.callback()
def main_callback(ctx: typer.Context):
    """Document-to-quiz generation and grading."""
    if ctx.obj is None:
        ctx.obj = CLIContext()
    configure_logging(ctx.obj.settings.log_level, ctx.obj.settings.log_file)
    ctx.call_on_close(ctx.obj.close)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print core errors and exit with code 1."""
    try:
        yield
    except QuizValidationError as e:
        rprint(f"[red]✗[/red] {e.message}")
        if e.raw_text:
            logger.debug(f"Rejected generation output:\n{e.raw_text}")
        raise typer.Exit(code=1)
    except UpstreamError as e:
        hint = " (retryable)" if e.retryable else ""
        rprint(f"[red]✗[/red] {e.message}{hint}")
        raise typer.Exit(code=1)
    except QuizzoError as e:
        rprint(f"[red]✗[/red] {e.message}")
        raise typer.Exit(code=1)


def _auth(user: str) -> AuthContext:
    return AuthContext.from_claims({"user_id": user})


# ========================================
# Database Commands
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init(ctx: typer.Context) -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    logger.info("Initializing database tables...")
    init_db(ctx.obj.services.engine)
    rprint("[green]✓[/green] Database initialized!")


# ========================================
# Quiz Commands
# ========================================

quiz_app = typer.Typer(help="Generate and inspect quizzes")
app.add_typer(quiz_app, name="quiz")


@quiz_app.command("generate")
def quiz_generate(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Source document"),
    count: int = typer.Option(5, "--count", "-n", help="Number of questions"),
    difficulty: str = typer.Option("medium", "--difficulty", "-d", help="easy | medium | hard"),
    description: str = typer.Option("", "--description", help="Quiz description"),
    time_limit: int | None = typer.Option(None, "--time-limit", help="Time limit in minutes"),
    user: str = USER_OPTION,
) -> None:
    """Generate a quiz from a document and store it."""
    with handle_errors():
        auth = _auth(user)
        request = IngestionRequest(
            filename=file.name,
            data=file.read_bytes(),
            question_count=count,
            difficulty=difficulty,
            description=description,
            time_limit=time_limit,
        )
        rprint(f"\n[bold cyan]Generating {count} {difficulty} questions from {file.name}[/bold cyan]")
        result = ctx.obj.services.pipeline.ingest(request, auth)

    table = Table(title=result.draft.title, show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Answer", style="green")
    for number, question in enumerate(result.draft.questions, start=1):
        correct = next((o.content for o in question.options if o.is_correct), "")
        table.add_row(str(number), question.text, correct)
    console.print(table)
    rprint(f"\n[green]✓[/green] Quiz created: {result.quiz_id}")


@quiz_app.command("show")
def quiz_show(ctx: typer.Context, quiz_id: str = typer.Argument(..., help="Quiz id")) -> None:
    """Show a quiz with its options, correct answers marked."""
    with handle_errors():
        quiz = ctx.obj.services.repository.get_quiz(quiz_id)

    rprint(f"\n[bold cyan]{quiz.title}[/bold cyan] ({quiz.difficulty_level})")
    if quiz.description:
        rprint(f"  {quiz.description}")
    if quiz.time_limit:
        rprint(f"  Time limit: {quiz.time_limit} min")

    for number, question in enumerate(quiz.questions, start=1):
        rprint(f"\n[bold]{number}. {question.question_text}[/bold]  [dim]{question.id}[/dim]")
        for option in question.options:
            mark = "[green]✓[/green]" if option.is_correct else " "
            rprint(f"   {mark} {option.content}  [dim]{option.id}[/dim]")
        if question.explanation:
            rprint(f"   [dim]{question.explanation}[/dim]")


@quiz_app.command("list")
def quiz_list(ctx: typer.Context, user: str = USER_OPTION) -> None:
    """List quizzes created by a user."""
    with handle_errors():
        quizzes = ctx.obj.services.repository.list_quizzes_by_owner(user)

    if not quizzes:
        rprint("[yellow]No quizzes found[/yellow]")
        return

    table = Table(title="Quizzes", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Difficulty")
    table.add_column("Created")
    for quiz in quizzes:
        table.add_row(str(quiz.id), quiz.title, quiz.difficulty_level, f"{quiz.created_at:%Y-%m-%d %H:%M}")
    console.print(table)


@quiz_app.command("source")
def quiz_source(
    ctx: typer.Context,
    quiz_id: str = typer.Argument(..., help="Quiz id"),
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the document"),
) -> None:
    """Download the document a quiz was generated from."""
    with handle_errors():
        stored = ctx.obj.services.repository.fetch_source_file(quiz_id)
    output.write_bytes(stored.data)
    rprint(f"[green]✓[/green] Saved {len(stored.data)} bytes ({stored.content_type}) to {output}")


# ========================================
# Attempt Commands
# ========================================

attempt_app = typer.Typer(help="Submit and review quiz attempts")
app.add_typer(attempt_app, name="attempt")


def _load_answers(answers: str) -> dict[str, Any]:
    """Answers come inline as a JSON object or from a JSON file."""
    path = Path(answers)
    text = path.read_text(encoding="utf-8") if path.is_file() else answers
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        rprint(f"[red]✗[/red] Answers are not valid JSON: {e}")
        raise typer.Exit(code=1)
    if not isinstance(data, dict):
        rprint("[red]✗[/red] Answers must be a JSON object of question id -> option id")
        raise typer.Exit(code=1)
    return data


@attempt_app.command("submit")
def attempt_submit(
    ctx: typer.Context,
    quiz_id: str = typer.Argument(..., help="Quiz id"),
    answers: str = typer.Argument(..., help="JSON object {question_id: option_id}, inline or a file path"),
    user: str = USER_OPTION,
) -> None:
    """Submit a one-shot attempt. A second submission is rejected."""
    selections = _load_answers(answers)
    with handle_errors():
        auth = _auth(user)
        attempt = ctx.obj.services.grading.submit_attempt(quiz_id, auth.user_id, selections)

    rprint(f"\n[green]✓[/green] Score: {attempt.score}/{attempt.total_questions}")
    rprint(f"  Attempt: {attempt.id}")


@attempt_app.command("history")
def attempt_history(
    ctx: typer.Context,
    user: str = USER_OPTION,
    quiz_id: str | None = typer.Option(None, "--quiz", help="Only attempts for this quiz"),
    limit: int = typer.Option(50, "--limit", help="Maximum rows"),
) -> None:
    """List a user's attempts, newest first."""
    with handle_errors():
        attempts = ctx.obj.services.repository.list_attempts(user, quiz_id=quiz_id, limit=limit)

    if not attempts:
        rprint("[yellow]No attempts found[/yellow]")
        return

    table = Table(title="Attempts", show_header=True)
    table.add_column("Attempt", style="dim")
    table.add_column("Quiz", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Submitted")
    for attempt in attempts:
        table.add_row(
            str(attempt.id),
            str(attempt.quiz_id),
            f"{attempt.score}/{attempt.total_questions}",
            f"{attempt.submitted_at:%Y-%m-%d %H:%M}",
        )
    console.print(table)


@attempt_app.command("show")
def attempt_show(
    ctx: typer.Context,
    attempt_id: str = typer.Argument(..., help="Attempt id"),
    user: str = USER_OPTION,
) -> None:
    """Review a graded attempt question by question."""
    with handle_errors():
        detail = ctx.obj.services.repository.get_attempt_detail(attempt_id, _auth(user))

    rprint(f"\n[bold cyan]{detail.title}[/bold cyan]")
    rprint(f"  Score: {detail.total_correct}/{detail.total_questions}")

    table = Table(show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Your answer")
    table.add_column("Correct answer", style="green")
    for number, review in enumerate(detail.questions, start=1):
        mine = review.my_answer or "[dim]-[/dim]"
        if review.my_answer and not review.is_correct:
            mine = f"[red]{review.my_answer}[/red]"
        table.add_row(str(number), review.question_text, mine, review.correct_answer or "")
    console.print(table)


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
