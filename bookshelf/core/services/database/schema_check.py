"""Start-up check of the declared tables against the live schema.

Migrations are applied outside this service, so the declarations in the
entity table models are compared with what the store actually has and the
service refuses to start on any disagreement.
"""

from __future__ import annotations

from loguru import logger
from sqlalchemy import Engine, Table, inspect
from sqlalchemy import exc as sa_exc

from bookshelf.core.errors import SchemaMismatchError, StoreConnectionError
from bookshelf.entities import ENTITY_REPOSITORIES


def declared_tables() -> list[Table]:
    return [repository.table.__table__ for repository in ENTITY_REPOSITORIES]


def schema_problems(engine: Engine, tables: list[Table] | None = None) -> list[str]:
    """List every difference between the declared and the live tables.

    Checked per table: existence, each declared column's presence,
    nullability and primary-key membership. Extra live columns are allowed
    as long as they are nullable or have a default.
    """
    tables = declared_tables() if tables is None else tables
    try:
        inspector = inspect(engine)
        live_tables = {name.lower(): name for name in inspector.get_table_names()}
    except sa_exc.DBAPIError as e:
        raise StoreConnectionError("Cannot read the live schema") from e

    problems: list[str] = []
    for table in tables:
        live_name = live_tables.get(table.name.lower())
        if live_name is None:
            problems.append(f"table {table.name} is missing")
            continue

        live_columns = {
            column["name"].lower(): column for column in inspector.get_columns(live_name)
        }
        live_pk = {
            name.lower()
            for name in inspector.get_pk_constraint(live_name).get("constrained_columns", [])
        }

        for column in table.columns:
            key = column.name.lower()
            live = live_columns.pop(key, None)
            if live is None:
                problems.append(f"column {table.name}.{column.name} is missing")
                continue
            if column.primary_key != (key in live_pk):
                expected = "a" if column.primary_key else "not a"
                problems.append(
                    f"column {table.name}.{column.name} should be {expected} primary key"
                )
            elif not column.primary_key and column.nullable != live["nullable"]:
                expected = "NULL" if column.nullable else "NOT NULL"
                problems.append(f"column {table.name}.{column.name} should be {expected}")

        for live in live_columns.values():
            if not live["nullable"] and live.get("default") is None and not live.get(
                "autoincrement"
            ):
                problems.append(
                    f"column {table.name}.{live['name']} is NOT NULL without a default "
                    "and is not declared"
                )
    return problems


def verify_schema(engine: Engine, tables: list[Table] | None = None) -> None:
    """Raise SchemaMismatchError when `schema_problems` finds anything."""
    problems = schema_problems(engine, tables)
    if problems:
        for problem in problems:
            logger.error("Schema check: {}", problem)
        raise SchemaMismatchError(problems)
    logger.info(
        "Schema check passed for {}",
        ", ".join(table.name for table in (tables or declared_tables())),
    )
