"""CLI commands for quiztrack.

Commands:
- init, add-book, add-chapter, add-section, set-round, set-sections,
  delete-book: setup
- list, show: browse quiz books
- answer, undo, clear, confirm, memo: attempt history
- rate, analytics, round-questions, recent: progress

The database location comes from QUIZTRACK_DB_PATH or the config file; the
owner from QUIZTRACK_OWNER or the config file.
Log events go to stderr, warnings only unless --verbose is passed.
"""

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import structlog
import typer
from rich.console import Console
from rich.table import Table

from quiztrack.config.app_config import get_database_path, get_owner_id
from quiztrack.core.engine import QuizTrackEngine, container_ref
from quiztrack.core.errors import QuizTrackError
from quiztrack.core.mastery import MasteryColor
from quiztrack.core.models import AttemptResult, ContainerRef, SectionMode
from quiztrack.core.progress import chapter_rate
from quiztrack.db.database import init_db
from quiztrack.db import quiz_books_repository as books_repo

app = typer.Typer(
    name="quiztrack",
    help="Track quiz book answers round by round and see your progress.",
    no_args_is_help=True,
)

console = Console()

COLOR_STYLES = {
    MasteryColor.GOLD: "bold yellow",
    MasteryColor.SILVER: "white",
    MasteryColor.GREEN: "green",
    MasteryColor.RED: "red",
    MasteryColor.GRAY: "dim",
}

SECTION_MODES = {
    "undecided": SectionMode.NOT_DECIDED,
    "with": SectionMode.WITH_SECTIONS,
    "without": SectionMode.WITHOUT_SECTIONS,
}


def _stderr_logger(*args) -> structlog.PrintLogger:
    return structlog.PrintLogger(sys.stderr)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show log events on stderr"),
) -> None:
    """Track quiz book answers round by round and see your progress."""
    # stdout carries command output only (rate values, --json)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.INFO if verbose else logging.WARNING
        ),
        logger_factory=_stderr_logger,
    )


def _db_path() -> Path:
    """Resolve and initialize the database for this invocation."""
    return init_db(get_database_path())


def _engine() -> QuizTrackEngine:
    return QuizTrackEngine(db_path=_db_path())


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


def _container_or_exit(chapter: str | None, section: str | None) -> ContainerRef:
    """Build the --chapter/--section target, or exit with a helpful error."""
    try:
        return container_ref(chapter_id=chapter, section_id=section)
    except QuizTrackError as e:
        console.print(f"[red]✗ {e}[/red]")
        console.print("  Use exactly one of --chapter or --section")
        raise typer.Exit(code=1)


def _result_style(result: AttemptResult) -> str:
    return "green" if result.is_correct else "red"


ChapterOpt = typer.Option(None, "--chapter", "-c", help="Chapter ID")
SectionOpt = typer.Option(None, "--section", "-s", help="Section ID")


# =============================================================================
# SETUP
# =============================================================================


@app.command()
def init() -> None:
    """Create the database if it does not exist."""
    path = _db_path()
    console.print(f"[green]✓ Database ready[/green]  [dim]{path}[/dim]")


@app.command(name="add-book")
def add_book(
    title: str = typer.Argument(..., help="Quiz book title"),
    sections: bool | None = typer.Option(
        None, "--sections/--no-sections", help="Split chapters into sections"
    ),
    current_round: int = typer.Option(0, "--round", "-r", min=0, help="Completed rounds"),
) -> None:
    """Register a new quiz book."""
    book = books_repo.create_quiz_book(
        title=title,
        owner_id=get_owner_id(),
        use_sections=SectionMode.from_flag(sections),
        current_round=current_round,
        db_path=_db_path(),
    )
    console.print("[green]✓ Quiz book created[/green]")
    console.print(f"  [dim]id:[/dim]       {book.quiz_book_id}")
    console.print(f"  [dim]sections:[/dim] {book.use_sections.value}")


@app.command(name="add-chapter")
def add_chapter(
    quiz_book_id: str = typer.Argument(..., help="Quiz book ID"),
    number: int = typer.Argument(..., min=1, max=1000, help="Chapter number"),
    title: str | None = typer.Option(None, "--title", "-t", help="Chapter title"),
    questions: int | None = typer.Option(
        None, "--questions", "-q", min=0, max=10000, help="Number of questions"
    ),
) -> None:
    """Add a chapter to a quiz book."""
    try:
        chapter = books_repo.add_chapter(
            quiz_book_id, number, title=title, question_count=questions, db_path=_db_path()
        )
    except QuizTrackError as e:
        _fail(e)
    console.print(f"[green]✓ Chapter {number} added[/green]  [dim]id:[/dim] {chapter.chapter_id}")


@app.command(name="add-section")
def add_section(
    chapter_id: str = typer.Argument(..., help="Chapter ID"),
    number: int = typer.Argument(..., min=1, max=1000, help="Section number"),
    title: str | None = typer.Option(None, "--title", "-t", help="Section title"),
    questions: int = typer.Option(
        0, "--questions", "-q", min=0, max=10000, help="Number of questions"
    ),
) -> None:
    """Add a section to a chapter."""
    try:
        section = books_repo.add_section(
            chapter_id, number, title=title, question_count=questions, db_path=_db_path()
        )
    except QuizTrackError as e:
        _fail(e)
    console.print(f"[green]✓ Section {number} added[/green]  [dim]id:[/dim] {section.section_id}")


@app.command(name="set-round")
def set_round(
    quiz_book_id: str = typer.Argument(..., help="Quiz book ID"),
    completed: int = typer.Argument(..., min=0, help="Last completed round"),
) -> None:
    """Set the last completed round of a quiz book."""
    try:
        books_repo.update_quiz_book(
            quiz_book_id, get_owner_id(), current_round=completed, db_path=_db_path()
        )
    except QuizTrackError as e:
        _fail(e)
    console.print(f"[green]✓ Completed rounds: {completed}[/green]  (now on round {completed + 1})")


@app.command(name="set-sections")
def set_sections(
    quiz_book_id: str = typer.Argument(..., help="Quiz book ID"),
    mode: str = typer.Argument(..., help="with | without | undecided"),
) -> None:
    """Decide whether a quiz book uses sections."""
    section_mode = SECTION_MODES.get(mode.lower())
    if section_mode is None:
        console.print(f"[red]✗ Unknown mode: {mode}[/red]")
        console.print(f"  Choose one of: {', '.join(SECTION_MODES)}")
        raise typer.Exit(code=1)
    try:
        books_repo.update_quiz_book(
            quiz_book_id, get_owner_id(), use_sections=section_mode, db_path=_db_path()
        )
    except QuizTrackError as e:
        _fail(e)
    console.print(f"[green]✓ Sections: {section_mode.value}[/green]")


@app.command(name="delete-book")
def delete_book(
    quiz_book_id: str = typer.Argument(..., help="Quiz book ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a quiz book with all its chapters, sections and answers."""
    if not yes:
        typer.confirm(f"Delete quiz book {quiz_book_id} and all its answers?", abort=True)
    if not books_repo.delete_quiz_book(quiz_book_id, get_owner_id(), db_path=_db_path()):
        console.print(f"[red]✗ Quiz book not found: {quiz_book_id}[/red]")
        raise typer.Exit(code=1)
    console.print("[green]✓ Quiz book deleted[/green]")


# =============================================================================
# BROWSE
# =============================================================================


@app.command(name="list")
def list_books() -> None:
    """List quiz books."""
    engine = _engine()
    books = engine.store.load_trees(get_owner_id())

    if not books:
        console.print("[yellow]No quiz books yet[/yellow]")
        console.print("  Use: quiztrack add-book <title>")
        return

    console.print(f"\n[bold]Quiz books ({len(books)}):[/bold]\n")
    for book in books:
        console.print(f"  [bold]{book.title}[/bold]")
        console.print(f"    [dim]id:[/dim]       {book.quiz_book_id}")
        console.print(f"    [dim]round:[/dim]    {book.display_round}")
        console.print(f"    [dim]chapters:[/dim] {len(book.chapters)}")
        console.print()


@app.command()
def show(quiz_book_id: str = typer.Argument(..., help="Quiz book ID")) -> None:
    """Show chapters and sections with the rate of the round in progress."""
    engine = _engine()
    try:
        book = engine.get_quiz_book(quiz_book_id, get_owner_id())

        round_number = book.display_round
        table = Table(title=f"{book.title} · round {round_number}")
        table.add_column("Chapter", justify="right")
        table.add_column("Section", justify="right")
        table.add_column("ID", style="dim")
        table.add_column("Answered", justify="right")
        table.add_column("Rate", justify="right")

        for chapter in book.chapters:
            table.add_row(
                str(chapter.chapter_number),
                "",
                chapter.chapter_id,
                str(len(chapter.questions)),
                f"{chapter_rate(chapter, round_number)}%",
            )
            for section in chapter.sections:
                table.add_row(
                    "",
                    str(section.section_number),
                    section.section_id,
                    str(len(section.questions)),
                    "",
                )
    except QuizTrackError as e:
        _fail(e)

    console.print(table)


# =============================================================================
# ATTEMPTS
# =============================================================================


@app.command()
def answer(
    question: int = typer.Argument(..., min=1, help="Question number"),
    result: str = typer.Argument(..., help="○/o/correct or ×/x/incorrect"),
    chapter: str | None = ChapterOpt,
    section: str | None = SectionOpt,
) -> None:
    """Record an answer for a question."""
    target = _container_or_exit(chapter, section)
    try:
        parsed = AttemptResult.parse(result)
    except ValueError as e:
        _fail(e)

    try:
        attempt = _engine().record_attempt(target, question, parsed)
    except QuizTrackError as e:
        _fail(e)

    style = _result_style(attempt.result)
    console.print(
        f"[{style}]{attempt.result.value}[/{style}] Question {question}  "
        f"[dim]round {attempt.round}[/dim]"
    )


@app.command()
def undo(
    question: int = typer.Argument(..., min=1, help="Question number"),
    chapter: str | None = ChapterOpt,
    section: str | None = SectionOpt,
) -> None:
    """Retract the latest answer of a question."""
    target = _container_or_exit(chapter, section)
    try:
        removed = _engine().retract_latest_attempt(target, question)
    except QuizTrackError as e:
        _fail(e)
    console.print(
        f"[green]✓ Retracted round {removed.round} of question {question}[/green]"
    )


@app.command()
def clear(
    question: int = typer.Argument(..., min=1, help="Question number"),
    chapter: str | None = ChapterOpt,
    section: str | None = SectionOpt,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete every answer of a question."""
    target = _container_or_exit(chapter, section)
    if not yes:
        typer.confirm(f"Delete all answers of question {question}?", abort=True)
    try:
        deleted = _engine().delete_question(target, question)
    except QuizTrackError as e:
        _fail(e)
    console.print(f"[green]✓ Question {question} cleared ({deleted} answers)[/green]")


@app.command()
def confirm(
    question: int = typer.Argument(..., min=1, help="Question number"),
    round_number: int = typer.Argument(..., min=1, help="Round of the draft answer"),
    chapter: str | None = ChapterOpt,
    section: str | None = SectionOpt,
) -> None:
    """Confirm a draft answer."""
    target = _container_or_exit(chapter, section)
    try:
        _engine().confirm_attempt(target, question, round_number)
    except QuizTrackError as e:
        _fail(e)
    console.print(f"[green]✓ Round {round_number} of question {question} confirmed[/green]")


@app.command()
def memo(
    question: int = typer.Argument(..., min=1, help="Question number"),
    text: str | None = typer.Option(None, "--text", "-m", help="Memo text"),
    bookmark: bool | None = typer.Option(None, "--bookmark/--no-bookmark", help="Bookmark"),
    chapter: str | None = ChapterOpt,
    section: str | None = SectionOpt,
) -> None:
    """Edit the memo or bookmark of an answered question."""
    target = _container_or_exit(chapter, section)
    try:
        record = _engine().update_question_notes(target, question, memo=text, bookmarked=bookmark)
    except QuizTrackError as e:
        _fail(e)
    console.print(f"[green]✓ Question {question} updated[/green]")
    if record.memo:
        console.print(f"  [dim]memo:[/dim]     {record.memo}")
    console.print(f"  [dim]bookmark:[/dim] {'yes' if record.bookmarked else 'no'}")


# =============================================================================
# PROGRESS
# =============================================================================


@app.command()
def rate(
    quiz_book_id: str = typer.Argument(..., help="Quiz book ID"),
    chapter_id: str = typer.Argument(..., help="Chapter ID"),
    round_number: int | None = typer.Option(
        None, "--round", "-r", min=1, help="Round (default: round in progress)"
    ),
) -> None:
    """Show a chapter's correct rate for one round."""
    try:
        value = _engine().get_chapter_rate(
            quiz_book_id, get_owner_id(), chapter_id, round_number=round_number
        )
    except QuizTrackError as e:
        _fail(e)
    console.print(f"{value}%")


@app.command()
def analytics(
    quiz_book_id: str = typer.Argument(..., help="Quiz book ID"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """Show per-round, per-chapter and per-section statistics."""
    try:
        result = _engine().get_analytics(quiz_book_id, get_owner_id())
    except QuizTrackError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    if result.total_rounds == 0:
        console.print("[yellow]No answers recorded yet[/yellow]")
        return

    rounds = Table(title=f"Rounds ({result.total_rounds})")
    rounds.add_column("Round", justify="right")
    rounds.add_column("Answered", justify="right")
    rounds.add_column("Correct", justify="right")
    rounds.add_column("Rate", justify="right")
    for stat in result.round_stats:
        rounds.add_row(
            str(stat.round),
            str(stat.total_questions),
            str(stat.correct_answers),
            f"{stat.correct_rate:.1f}%",
        )
    console.print(rounds)

    chapters = Table(title="Chapters")
    chapters.add_column("Round", justify="right")
    chapters.add_column("Chapter", justify="right")
    chapters.add_column("Answered", justify="right")
    chapters.add_column("Correct", justify="right")
    chapters.add_column("Rate", justify="right")
    for stat in result.chapter_stats:
        chapters.add_row(
            str(stat.round),
            str(stat.chapter_number),
            str(stat.total_questions),
            str(stat.correct_answers),
            f"{stat.correct_rate:.1f}%",
        )
    console.print(chapters)

    if result.section_stats:
        sections = Table(title="Sections")
        sections.add_column("Round", justify="right")
        sections.add_column("Section", justify="right")
        sections.add_column("Answered", justify="right")
        sections.add_column("Correct", justify="right")
        sections.add_column("Rate", justify="right")
        for stat in result.section_stats:
            sections.add_row(
                str(stat.round),
                str(stat.section_number),
                str(stat.total_questions),
                str(stat.correct_answers),
                f"{stat.correct_rate:.1f}%",
            )
        console.print(sections)


@app.command(name="round-questions")
def round_questions(
    quiz_book_id: str = typer.Argument(..., help="Quiz book ID"),
    round_number: int = typer.Option(1, "--round", "-r", min=1, help="Round"),
    chapter: str | None = ChapterOpt,
    section: str | None = SectionOpt,
) -> None:
    """List the questions answered in one round, with mastery colours."""
    target = _container_or_exit(chapter, section)
    engine = _engine()
    owner_id = get_owner_id()
    try:
        listing = engine.get_round_questions(quiz_book_id, owner_id, target, round_number)
        colors = engine.get_question_colors(quiz_book_id, owner_id, target)
    except QuizTrackError as e:
        _fail(e)

    console.print(
        f"\n[bold]Round {round_number}[/bold]  "
        f"{listing.correct}/{listing.total} correct  [bold]{listing.rate}%[/bold]\n"
    )
    if not listing.questions:
        console.print("[yellow]No answers in this round[/yellow]")
        return

    table = Table()
    table.add_column("Question", justify="right")
    table.add_column("Result", justify="center")
    table.add_column("Mastery")
    table.add_column("Answered at", style="dim")
    for row in listing.questions:
        color = colors.get(row.question_number, MasteryColor.GRAY)
        style = _result_style(row.result)
        table.add_row(
            str(row.question_number),
            f"[{style}]{row.result.value}[/{style}]",
            f"[{COLOR_STYLES[color]}]{color.value}[/{COLOR_STYLES[color]}]",
            row.answered_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def recent(
    limit: int | None = typer.Option(None, "--limit", "-n", min=1, help="How many"),
) -> None:
    """Show the chapters and sections studied most recently."""
    items = _engine().get_recent_study_items(get_owner_id(), limit=limit)

    if not items:
        console.print("[yellow]Nothing studied yet[/yellow]")
        return

    for item in items:
        place = f"Chapter {item.chapter_number}"
        if item.section_number is not None:
            place += f" · Section {item.section_number}"
        style = _result_style(item.last_result)
        console.print(f"  [bold]{item.quiz_book_title}[/bold]  {place}")
        console.print(
            f"    [dim]last:[/dim] Q{item.last_question_number} "
            f"[{style}]{item.last_result.value}[/{style}]  "
            f"[dim]{item.last_answered_at.strftime('%Y-%m-%d %H:%M')}[/dim]"
        )
