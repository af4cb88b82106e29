"""Row-level write primitives that rely on the database for atomicity.

- ``compare_and_set``: conditional UPDATE on a single-writer-wins field.
- ``insert_ignoring_conflict``: INSERT ... ON CONFLICT DO NOTHING.
- ``transient_store_errors``: turn driver failures into ``TransientStoreError``.
"""

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Sequence

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import ColumnElement

from libs.common.errors import TransientStoreError

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


async def compare_and_set(
    db: AsyncSession,
    model: type,
    *,
    criteria: Iterable[ColumnElement[bool]],
    guard: InstrumentedAttribute,
    values: dict[str, Any],
    expected: Any = None,
) -> bool:
    """Update the matching row only while ``guard`` still holds ``expected``.

    With the default ``expected=None`` the update applies only if the guard
    column is still NULL, so among concurrent writers exactly one wins.
    Returns True when this call changed a row.
    """
    condition = guard.is_(None) if expected is None else guard == expected
    stmt = (
        update(model)
        .where(*criteria, condition)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def insert_ignoring_conflict(
    db: AsyncSession,
    model: type,
    values: dict[str, Any],
    *,
    conflict_columns: Sequence[str],
) -> bool:
    """Insert a row, treating a uniqueness conflict on ``conflict_columns`` as success.

    Returns True when a new row was written, False when it already existed.
    """
    dialect = db.get_bind().dialect.name
    try:
        insert_fn = _DIALECT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Conflict-ignoring insert not supported on {dialect}")

    stmt = (
        insert_fn(model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(conflict_columns))
    )
    result = await db.execute(stmt)
    return bool(result.rowcount)


@contextmanager
def transient_store_errors(message: str, *, resumable: bool = False) -> Iterator[None]:
    """Re-raise driver/connection failures as ``TransientStoreError``.

    Integrity violations are not transient and propagate unchanged.
    """
    try:
        yield
    except IntegrityError:
        raise
    except DBAPIError as exc:
        raise TransientStoreError(message, resumable=resumable) from exc
