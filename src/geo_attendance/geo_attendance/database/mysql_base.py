from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import InfrastructureError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction.

    Commits when the block exits cleanly, rolls back otherwise. Driver errors surface as
    InfrastructureError so callers can tell "try again later" from a domain rejection.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise InfrastructureError("Database unavailable") from exc
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        raise InfrastructureError("Database operation failed") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def is_duplicate_key(exc: mysql.connector.Error) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetime -> naive UTC for DATETIME columns."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC DATETIME value -> aware datetime."""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def in_clause(values) -> str:
    return ", ".join(["%s"] * len(values))
