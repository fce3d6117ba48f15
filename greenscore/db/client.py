"""DoltDB / MySQL client.

One PyMySQL connection per thread, pinged before reuse and reopened when dead.
Plain statements autocommit. The vote path needs several statements under one
row lock, so it goes through transaction().
"""

import logging
import threading
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Any, Generator, Literal

import pymysql
from pymysql.cursors import DictCursor

from greenscore.config import get_db_settings

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

_local = threading.local()


@lru_cache(maxsize=1)
def _connect_kwargs() -> dict:
    """pymysql.connect() arguments: GREENSCORE_DB_* settings plus fixed session options."""
    return dict(get_db_settings(), autocommit=True, charset="utf8mb4", cursorclass=DictCursor)


def _drop_connection() -> None:
    conn = getattr(_local, "conn", None)
    _local.conn = None
    if conn is not None:
        try:
            conn.close()
        except pymysql.Error:
            # Already broken; a fresh connection replaces it
            pass


def get_connection() -> pymysql.Connection:
    """This thread's connection, reopened if the server dropped it."""
    conn = getattr(_local, "conn", None)
    if conn is not None:
        try:
            conn.ping(reconnect=False)
            return conn
        except pymysql.Error:
            _drop_connection()
    _local.conn = pymysql.connect(**_connect_kwargs())
    return _local.conn


@contextmanager
def get_cursor() -> Generator[Any, None, None]:
    """Dict cursor on this thread's connection (autocommit).

    An OperationalError discards the connection before propagating, so the
    next call starts on a fresh one.
    """
    conn = get_connection()
    try:
        with conn.cursor() as cursor:
            yield cursor
    except pymysql.OperationalError:
        _drop_connection()
        raise


@contextmanager
def transaction() -> Generator[Any, None, None]:
    """Dict cursor inside BEGIN ... COMMIT.

    Any exception rolls back and propagates unchanged. If the rollback itself
    fails, or the error was an OperationalError, the connection is discarded.
    Locks from SELECT ... FOR UPDATE are held until the block exits.

    Example:
        with transaction() as cursor:
            cursor.execute("SELECT id FROM shops WHERE id = %s FOR UPDATE", (shop_id,))
            cursor.execute("UPDATE shops SET green_score = %s WHERE id = %s", (score, shop_id))
    """
    conn = get_connection()
    conn.begin()
    try:
        with conn.cursor() as cursor:
            yield cursor
        conn.commit()
    except BaseException as e:
        try:
            conn.rollback()
        except pymysql.Error as rollback_error:
            logger.warning(f"Rollback failed, discarding connection: {rollback_error}")
            _drop_connection()
        else:
            if isinstance(e, pymysql.OperationalError):
                _drop_connection()
        raise


def execute_query(
    sql: str, params: tuple | None = None, fetch: Literal["all", "one", "none"] = "all"
) -> list[dict] | dict | None:
    """Run one autocommitted statement.

    fetch='all' returns every row, 'one' the first row or None, 'none' nothing.
    """
    with get_cursor() as cursor:
        cursor.execute(sql, params or ())
        if fetch == "none":
            return None
        return cursor.fetchone() if fetch == "one" else cursor.fetchall()


def execute_many(sql: str, params_list: list[tuple]) -> int:
    """executemany() in one call. Returns the affected row count."""
    with get_cursor() as cursor:
        cursor.executemany(sql, params_list)
        return cursor.rowcount


def check_connection() -> bool:
    """True if the database answers SELECT 1."""
    try:
        with get_cursor() as cursor:
            cursor.execute("SELECT 1")
    except pymysql.Error:
        return False
    return True


def _split_statements(text: str) -> list[str]:
    body = "\n".join(line.split("--", 1)[0] for line in text.splitlines())
    return [stmt.strip() for stmt in body.split(";") if stmt.strip()]


def apply_schema(schema_path: Path | None = None) -> int:
    """Create missing tables from schema.sql. Returns the number of statements run."""
    statements = _split_statements((schema_path or SCHEMA_PATH).read_text(encoding="utf-8"))
    with get_cursor() as cursor:
        for statement in statements:
            cursor.execute(statement)
    return len(statements)
