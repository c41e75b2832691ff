# eduops/core/transactions.py
"""Transaction scopes and row locking for the operations layer.

Every operation that reads a row and then writes derived state runs inside
``atomic()`` and takes its locks with ``lock_row()``/``lock_row_by()``.
Locks are released by the commit or rollback that ends the scope. The wait
for a lock is bounded by the connection's lock timeout; running out of time
surfaces as ``ContentionError``.

Lock order, used by every operation that takes more than one lock:
payment -> installment -> payment plan -> debt ledger, and
student -> course for enrollments.
"""
import contextlib
import logging
from typing import Any, AsyncIterator, Dict, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from .database import WRITE_LOCK_OPTION
from .exceptions import ContentionError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# lock_not_available, deadlock_detected, serialization_failure
CONTENTION_SQLSTATES = {"55P03", "40P01", "40001"}
UNIQUE_VIOLATION = "23505"


class Rejected(Exception):
    """Business-rule rejection raised inside a transaction scope.

    The scope rolls back and the service turns it into an unsuccessful
    OperationResult; it never reaches API callers as an exception.
    """
    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.message = message
        self.data = data
        super().__init__(message)


def is_contention(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in CONTENTION_SQLSTATES:
        return True
    # SQLite busy timeout
    return "database is locked" in str(orig).lower()


def is_unique_violation(exc: DBAPIError) -> bool:
    """True for a duplicate key; False for foreign key, check and not-null failures."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == UNIQUE_VIOLATION
    return "unique constraint failed" in str(orig).lower()


@contextlib.asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """All-or-nothing scope: commit on success, roll back on any exception."""
    if session.in_transaction():
        # Close out the implicit transaction left by earlier reads
        await session.commit()
    try:
        async with session.begin():
            # Procure the connection now so SQLite begins with the write lock
            await session.connection(execution_options={WRITE_LOCK_OPTION: True})
            yield session
    except DBAPIError as exc:
        if is_contention(exc):
            logger.warning(f"Lock wait exceeded: {exc.orig}")
            raise ContentionError() from exc
        raise


async def lock_row(session: AsyncSession, model: Type[T], id: Any) -> Optional[T]:
    """SELECT ... FOR UPDATE on a single row by primary key."""
    return await lock_row_by(session, model, id=id)


async def lock_row_by(session: AsyncSession, model: Type[T], **criteria) -> Optional[T]:
    stmt = select(model).filter_by(**criteria).with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def ensure_row(session: AsyncSession, model: Type[T], key: str, value: Any, **defaults) -> None:
    """Insert the row keyed by ``key`` unless it already exists.

    Used before locking per-aggregate rows (ledger, academic status) that are
    created lazily, so concurrent first writers do not race on the insert.
    """
    dialect = session.get_bind().dialect.name
    insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
    values = {key: value, **defaults}
    stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=[key])
    await session.execute(stmt)
