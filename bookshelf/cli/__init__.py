"""`bookshelf` command line: record commands, database checks and `serve`."""

import sys

import typer
from loguru import logger

from .book_commands import books_app
from .category_commands import categories_app
from .db_commands import db_app

app = typer.Typer(
    help="📚 Bookshelf CLI - manage books and categories",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(books_app, name="books")
app.add_typer(categories_app, name="categories")
app.add_typer(db_app, name="db")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """Keep log output out of the way of command output unless asked for."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from bookshelf.api.http.app import app as http_app
    from bookshelf.runtime.context import get_config

    settings = get_config().app
    # the request middleware writes its own access lines
    uvicorn.run(
        http_app,
        host=host or settings.host,
        port=port or settings.port,
        access_log=False,
    )


def main() -> None:
    app()
