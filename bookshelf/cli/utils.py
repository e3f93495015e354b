"""Shared utilities for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.table import Table

from bookshelf.api.errors import error_detail, exit_code_for
from bookshelf.core.errors import DataAccessError, RecordValidationError
from bookshelf.core.services import DataContext, DbSessionService
from bookshelf.entities._base import Entity

# Initialize Rich console for colored output
console = Console()

CONNECTION_OPTION = typer.Option(
    None,
    "--connection",
    "-c",
    envvar="BOOKSHELF_CONNECTION",
    help="Connection string; defaults to the configured database",
    show_default=False,
)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Print data-access errors and exit with the matching code."""
    try:
        yield
    except RecordValidationError as e:
        for err in e.errors:
            field = ".".join(str(part) for part in err["loc"])
            console.print(f"[red]❌ {field}: {err['msg']}[/red]")
        raise typer.Exit(code=exit_code_for(e)) from e
    except DataAccessError as e:
        console.print(f"[red]❌ {error_detail(e)}[/red]")
        raise typer.Exit(code=exit_code_for(e)) from e
    except ValueError as e:
        # connection string parse errors
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=2) from e


@contextmanager
def open_cli_context(connection: str | None) -> Iterator[DataContext]:
    """Data-access context for one command, released on exit."""
    with cli_errors():
        service = DbSessionService(connection)
        try:
            service.ping()
        except Exception:
            service.dispose()
            raise
        with DataContext(service.get_session(), owner=service) as context:
            yield context


def render_records(title: str, records: list[Entity]) -> None:
    """Print records as a table, one column per field."""
    if not records:
        console.print(f"[yellow]No {title.lower()} found[/yellow]")
        return

    fields = list(type(records[0]).model_fields)
    table = Table(title=title)
    for field in fields:
        table.add_column(field, style="cyan" if field == "id" else None)
    for record in records:
        values = (getattr(record, field) for field in fields)
        table.add_row(*("" if value is None else str(value) for value in values))
    console.print(table)


def render_record(record: Entity) -> None:
    render_records(type(record).__name__, [record])
