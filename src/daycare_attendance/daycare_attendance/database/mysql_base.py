from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector

from ..core.exceptions import StoreError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)``; commit on success, rollback on error.

    Driver errors are re-raised as ``StoreError`` so services can tell a store
    outage apart from a domain rule violation.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise StoreError(f"Database unavailable: {e}") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise StoreError(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def call_procedure(cur, name: str, args: Sequence[Any]) -> List[Dict[str, Any]]:
    """Run a stored procedure and return its first result set as dicts.

    ``stored_results()`` cursors ignore the ``dictionary`` flag of the parent
    cursor, so rows are zipped with the column names here.
    """

    cur.callproc(name, tuple(args))
    for result in cur.stored_results():
        columns = list(result.column_names)
        return [dict(zip(columns, row)) for row in result.fetchall()]
    return []


def split_csv(value: Any) -> tuple[str, ...]:
    """MySQL SET / comma separated column -> tuple of names."""

    if not value:
        return ()
    if isinstance(value, (set, frozenset, list, tuple)):
        return tuple(sorted(str(v) for v in value))
    return tuple(p.strip() for p in str(value).split(",") if p.strip())


def join_csv(values: Sequence[str]) -> Optional[str]:
    return ",".join(values) if values else None
