"""Database CLI commands."""

import typer
from rich.panel import Panel

from bookshelf.api.errors import exit_code_for
from bookshelf.core.errors import SchemaMismatchError
from bookshelf.core.services import DbManageService, DbSessionService
from bookshelf.core.services.database import schema_problems

from .utils import CONNECTION_OPTION, cli_errors, console

db_app = typer.Typer(help="🗄️  Database commands", no_args_is_help=True)


@db_app.command("check")
def check(connection: str | None = CONNECTION_OPTION) -> None:
    """Check connectivity and compare the declared tables with the live schema."""
    with cli_errors():
        service = DbSessionService(connection)
        try:
            service.ping()
            console.print(f"[green]✓[/green] Connected to {service.settings.describe()}")
            problems = schema_problems(service.engine)
        finally:
            service.dispose()

    if problems:
        console.print(
            Panel("\n".join(problems), title="Schema mismatch", border_style="red")
        )
        raise typer.Exit(code=exit_code_for(SchemaMismatchError(problems)))
    console.print("[green]✓[/green] Schema matches the declared tables")


@db_app.command("init")
def init(connection: str | None = CONNECTION_OPTION) -> None:
    """Create missing tables (development and test only)."""
    with cli_errors():
        service = DbSessionService(connection)
        try:
            service.ping()
            DbManageService(service.engine).create_all()
        except RuntimeError as e:
            console.print(f"[red]❌ {e}[/red]")
            raise typer.Exit(code=1) from e
        finally:
            service.dispose()
    console.print("[green]✓[/green] Tables created")
