"""CLI for the ``finance_tracker`` package.

Command handlers (``cmd_*``) return a process exit code and print errors to
stderr; the Typer commands below are thin wrappers around them. The root
callback loads a local ``.env`` with ``python-dotenv`` (without overriding
the environment) and configures logging before any command runs. Business
logic lives in ``finance_tracker.api`` and the modules it uses.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from typer.models import OptionInfo

from .errors import ImportParseError, UnknownImporterError
from .logging_setup import configure_logging

# Errors a command reports as "Error: ..." with exit code 1.
_EXPECTED_ERRORS = (
    ImportParseError,
    UnknownImporterError,
    SQLAlchemyError,
    ValidationError,
    ValueError,
    RuntimeError,
    OSError,
)


def _fail(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


# ---- Command handlers --------------------------------------------------------


def cmd_init_db(*, database_url: str | None = None) -> int:
    from .categories import initialize_database

    try:
        seeded = initialize_database(database_url=database_url)
    except _EXPECTED_ERRORS as e:
        return _fail(f"database initialization failed: {e}")
    print(f"Database initialized ({seeded} categories seeded)")
    return 0


def cmd_import(
    path: str,
    *,
    importer_code: str | None = None,
    auto_apply_categories: bool = True,
    database_url: str | None = None,
) -> int:
    """Import one bank export and print the added/duplicate summary."""

    from .api import import_file_from_path

    p = Path(path)
    if not p.is_file():
        return _fail(f"file not found: {path}")
    try:
        outcome = import_file_from_path(
            p,
            importer_code=importer_code,
            auto_apply_categories=auto_apply_categories,
            database_url=database_url,
        )
    except _EXPECTED_ERRORS as e:
        return _fail(str(e))

    if outcome.parsed == 0:
        return _fail("No transactions found in the file")
    result = outcome.result
    print(
        f"Successfully imported {result.added} transactions. "
        f"{result.duplicates} duplicates were skipped. (importer: {outcome.importer.code})"
    )
    return 0


def cmd_list_importers() -> int:
    from .api import list_importers
    from .importers import build_default_registry

    for meta in list_importers(build_default_registry()):
        types = ",".join(meta["supported_file_types"])
        print(f"{meta['code']}\t{meta['name']}\t{types}\t{meta['description']}")
    return 0


def cmd_auto_categorize(*, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .batch import auto_categorize_uncategorized

    try:
        with session_scope(database_url=database_url) as session:
            result = auto_categorize_uncategorized(session)
    except _EXPECTED_ERRORS as e:
        return _fail(f"auto-categorization failed: {e}")
    print(f"Auto-categorized {result.categorized} of {result.total} transactions")
    return 0


def cmd_add_pattern(
    *,
    pattern_type: str,
    pattern_value: str,
    category: str | None,
    confidence: float,
    database_url: str | None = None,
    interactive: bool | None = None,
) -> int:
    """Create a similarity pattern targeting the category named ``category``.

    When ``category`` is omitted on an interactive terminal the user picks one
    from the stored categories.
    """

    from db.client import session_scope

    from .categories import get_category_by_name, list_categories
    from .models import PatternSpec
    from .patterns import create_pattern

    if interactive is None:
        interactive = sys.stdin.isatty()

    try:
        with session_scope(database_url=database_url) as session:
            if category is None:
                if not interactive:
                    return _fail("--category is required when not running interactively")
                from .term_ui import select_category

                category = select_category([c.name for c in list_categories(session)])

            target = get_category_by_name(session, category)
            if target is None:
                return _fail(f"unknown category: {category}")
            spec = PatternSpec(
                pattern_type=pattern_type,
                pattern_value=pattern_value,
                category_id=target.id,
                parent_category_id=target.parent_id,
                confidence_score=confidence,
            )
            pattern = create_pattern(session, spec)
            pattern_id = pattern.id
    except _EXPECTED_ERRORS as e:
        return _fail(f"could not create pattern: {e}")
    print(
        f"Created pattern {pattern_id}: {spec.pattern_type} {spec.pattern_value!r} -> {target.name}"
    )
    return 0


def cmd_list_patterns(*, database_url: str | None = None) -> int:
    from db.client import session_scope
    from rich.console import Console
    from rich.table import Table

    from .categories import list_categories
    from .patterns import list_patterns

    try:
        with session_scope(database_url=database_url) as session:
            names = {c.id: c.name for c in list_categories(session)}
            rows = [
                (
                    str(p.id),
                    p.pattern_type,
                    p.pattern_value,
                    names.get(p.category_id, "") if p.category_id is not None else "",
                    f"{p.confidence_score:.2f}",
                    str(p.usage_count),
                )
                for p in list_patterns(session)
            ]
    except _EXPECTED_ERRORS as e:
        return _fail(str(e))

    table = Table(title="Similarity patterns")
    for column in ("ID", "Type", "Value", "Category", "Confidence", "Uses"):
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    Console().print(table)
    return 0


def cmd_maintenance(operation: str, *, database_url: str | None = None) -> int:
    """Run one maintenance operation by name and print the affected row count."""

    from db.client import session_scope

    from . import maintenance

    actions = {
        "standardize-dates": (maintenance.standardize_stored_dates, "Updated {} transaction dates"),
        "clean-dummy": (maintenance.delete_dummy_transactions, "Deleted {} dummy transactions"),
        "delete-uncategorized": (
            maintenance.delete_uncategorized_transactions,
            "Deleted {} uncategorized transactions",
        ),
        "delete-without-description": (
            maintenance.delete_transactions_without_description,
            "Deleted {} transactions without a description",
        ),
    }
    func, template = actions[operation]
    try:
        with session_scope(database_url=database_url) as session:
            count = func(session)
    except _EXPECTED_ERRORS as e:
        return _fail(f"{operation} failed: {e}")
    print(template.format(count))
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Import bank CSV exports and auto-categorize transactions.",
)
patterns_app = typer.Typer(no_args_is_help=True, help="Manage similarity patterns.")
app.add_typer(patterns_app, name="patterns")

# Shared option metadata; defaults are set with `=` at each use.
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
YES_OPTION: OptionInfo = typer.Option("--yes", "-y", help="Skip the confirmation prompt.")


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


def _confirm(what: str, yes: bool) -> None:
    if not yes and not typer.confirm(f"{what}. Continue?"):
        raise typer.Exit(1)


@app.command("init-db")
def init_db_cmd(database_url: Annotated[str | None, DATABASE_URL_OPTION] = None) -> None:
    """Create tables and seed the default categories."""

    _exit(cmd_init_db(database_url=database_url))


@app.command("import")
def import_cmd(
    path: Annotated[Path, typer.Argument(help="CSV export to import", dir_okay=False)],
    importer: Annotated[
        str | None,
        typer.Option("--importer", help="Importer code (auto-detected when omitted)."),
    ] = None,
    auto_categorize: Annotated[
        bool,
        typer.Option(
            "--auto-categorize/--no-auto-categorize",
            help="Apply similarity patterns to newly imported transactions.",
        ),
    ] = True,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Import a bank CSV export."""

    _exit(
        cmd_import(
            str(path),
            importer_code=importer,
            auto_apply_categories=auto_categorize,
            database_url=database_url,
        )
    )


@app.command("importers")
def importers_cmd() -> None:
    """List the available importers."""

    _exit(cmd_list_importers())


@app.command("auto-categorize")
def auto_categorize_cmd(database_url: Annotated[str | None, DATABASE_URL_OPTION] = None) -> None:
    """Categorize every stored transaction that has no category yet."""

    _exit(cmd_auto_categorize(database_url=database_url))


@patterns_app.command("add")
def patterns_add_cmd(
    value: Annotated[str, typer.Option("--value", help="Text or regex to match.")],
    pattern_type: Annotated[
        str, typer.Option("--type", help="exact, contains, starts_with or regex.")
    ] = "contains",
    category: Annotated[
        str | None, typer.Option("--category", help="Category name (prompted when omitted).")
    ] = None,
    confidence: Annotated[
        float, typer.Option("--confidence", help="Ranking weight in [0, 1].")
    ] = 1.0,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Add a similarity pattern."""

    _exit(
        cmd_add_pattern(
            pattern_type=pattern_type,
            pattern_value=value,
            category=category,
            confidence=confidence,
            database_url=database_url,
        )
    )


@patterns_app.command("list")
def patterns_list_cmd(database_url: Annotated[str | None, DATABASE_URL_OPTION] = None) -> None:
    """Show stored patterns, strongest first."""

    _exit(cmd_list_patterns(database_url=database_url))


@app.command("standardize-dates")
def standardize_dates_cmd(database_url: Annotated[str | None, DATABASE_URL_OPTION] = None) -> None:
    """Rewrite stored transaction dates as YYYY-MM-DD."""

    _exit(cmd_maintenance("standardize-dates", database_url=database_url))


@app.command("clean-dummy")
def clean_dummy_cmd(
    yes: Annotated[bool, YES_OPTION] = False,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Delete dummy/test transactions."""

    _confirm("This deletes every dummy/test transaction", yes)
    _exit(cmd_maintenance("clean-dummy", database_url=database_url))


@app.command("delete-uncategorized")
def delete_uncategorized_cmd(
    yes: Annotated[bool, YES_OPTION] = False,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Delete transactions without a category assignment."""

    _confirm("This deletes every uncategorized transaction", yes)
    _exit(cmd_maintenance("delete-uncategorized", database_url=database_url))


@app.command("delete-without-description")
def delete_without_description_cmd(
    yes: Annotated[bool, YES_OPTION] = False,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Delete transactions with an empty primary description."""

    _confirm("This deletes every transaction without a description", yes)
    _exit(cmd_maintenance("delete-without-description", database_url=database_url))


@app.command("serve")
def serve_cmd(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Bind port.")] = 8000,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Run the HTTP import API with uvicorn."""

    import uvicorn

    from .web import create_app

    uvicorn.run(create_app(database_url=database_url), host=host, port=port)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    # One CLI invocation owns the process; rebind to the current stderr.
    configure_logging(force=True)


if __name__ == "__main__":  # pragma: no cover
    app()
