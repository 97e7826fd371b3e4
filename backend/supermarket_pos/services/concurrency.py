# Overview: Locking helpers shared by the catalog and sale workflow.

from __future__ import annotations

from sqlalchemy import text


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write(session) -> None:
    """
    Open the write transaction before reading the rows it will change.

    SQLite has no row locks, so BEGIN IMMEDIATE takes the database write lock
    up front; a second writer blocks until the first commits or rolls back.
    Other backends rely on lock_for_update inside the normal transaction.

    The session must not hold uncommitted writes when this is called.
    """
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))
