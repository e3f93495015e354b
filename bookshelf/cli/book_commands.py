"""Book CLI commands."""

import typer

from bookshelf.entities import Book

from .utils import (
    CONNECTION_OPTION,
    console,
    open_cli_context,
    render_record,
    render_records,
)

books_app = typer.Typer(help="📚 Manage books", no_args_is_help=True)


@books_app.command("list")
def list_books(
    order_by: str | None = typer.Option(None, "--order-by", "-o", help="Field to sort by"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    limit: int | None = typer.Option(None, "--limit", "-l", min=0, help="Maximum rows"),
    offset: int = typer.Option(0, "--offset", min=0, help="Rows to skip"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """List books."""
    with open_cli_context(connection) as context:
        query = context.list(Book, order_by=order_by, descending=desc).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        render_records("Books", list(query))


@books_app.command("get")
def get_book(
    item_id: int = typer.Argument(..., help="Book ID"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """Show one book."""
    with open_cli_context(connection) as context:
        render_record(context.get_by_id(Book, item_id))


@books_app.command("add")
def add_book(
    title: str = typer.Option(..., "--title", "-t", help="Title"),
    author: str | None = typer.Option(None, "--author", "-a", help="Author"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """Insert a book."""
    with open_cli_context(connection) as context:
        book = context.insert(Book, {"title": title, "author": author})
        console.print(f"[green]✓[/green] Created book {book.id}")
        render_record(book)


@books_app.command("update")
def update_book(
    item_id: int = typer.Argument(..., help="Book ID"),
    title: str | None = typer.Option(None, "--title", "-t", help="New title"),
    author: str | None = typer.Option(None, "--author", "-a", help="New author"),
    clear_author: bool = typer.Option(False, "--clear-author", help="Set author to empty"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """Update the given fields of a book."""
    changes: dict[str, str | None] = {}
    if title is not None:
        changes["title"] = title
    if author is not None:
        changes["author"] = author
    if clear_author:
        changes["author"] = None

    with open_cli_context(connection) as context:
        book = context.update(Book, item_id, changes)
        console.print(f"[green]✓[/green] Updated book {book.id}")
        render_record(book)


@books_app.command("delete")
def delete_book(
    item_id: int = typer.Argument(..., help="Book ID"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """Delete a book."""
    with open_cli_context(connection) as context:
        context.delete(Book, item_id)
    console.print(f"[green]✓[/green] Deleted book {item_id}")
