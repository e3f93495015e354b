"""Category CLI commands."""

import typer

from bookshelf.entities import Category

from .utils import (
    CONNECTION_OPTION,
    console,
    open_cli_context,
    render_record,
    render_records,
)

categories_app = typer.Typer(help="🏷️  Manage categories", no_args_is_help=True)


@categories_app.command("list")
def list_categories(
    order_by: str | None = typer.Option(None, "--order-by", "-o", help="Field to sort by"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    limit: int | None = typer.Option(None, "--limit", "-l", min=0, help="Maximum rows"),
    offset: int = typer.Option(0, "--offset", min=0, help="Rows to skip"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """List categories."""
    with open_cli_context(connection) as context:
        query = context.list(Category, order_by=order_by, descending=desc).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        render_records("Categories", list(query))


@categories_app.command("get")
def get_category(
    item_id: int = typer.Argument(..., help="Category ID"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """Show one category."""
    with open_cli_context(connection) as context:
        render_record(context.get_by_id(Category, item_id))


@categories_app.command("add")
def add_category(
    name: str | None = typer.Option(None, "--name", "-n", help="Name"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """Insert a category."""
    with open_cli_context(connection) as context:
        category = context.insert(Category, {"name": name})
        console.print(f"[green]✓[/green] Created category {category.id}")
        render_record(category)


@categories_app.command("update")
def update_category(
    item_id: int = typer.Argument(..., help="Category ID"),
    name: str | None = typer.Option(None, "--name", "-n", help="New name"),
    clear_name: bool = typer.Option(False, "--clear-name", help="Set name to empty"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """Update the name of a category."""
    changes: dict[str, str | None] = {}
    if name is not None:
        changes["name"] = name
    if clear_name:
        changes["name"] = None

    with open_cli_context(connection) as context:
        category = context.update(Category, item_id, changes)
        console.print(f"[green]✓[/green] Updated category {category.id}")
        render_record(category)


@categories_app.command("delete")
def delete_category(
    item_id: int = typer.Argument(..., help="Category ID"),
    connection: str | None = CONNECTION_OPTION,
) -> None:
    """Delete a category."""
    with open_cli_context(connection) as context:
        context.delete(Category, item_id)
    console.print(f"[green]✓[/green] Deleted category {item_id}")
