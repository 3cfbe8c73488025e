from __future__ import annotations

import contextlib
import datetime
import logging
import sqlite3
import threading
import time
from typing import Any, Iterator, Mapping, Optional, Sequence, TypeVar, Union

from blogcms import errors
from blogcms.core import parse
from blogcms.core.drivers import base

_T = TypeVar("_T")

__all__ = ("SQLiteQueryExecutor", "get_options", "is_memory")

logger = logging.getLogger(__name__)

# How many SQLite VM instructions run between checks for a deadline or cancellation.
PROGRESS_INTERVAL = 1_000


class SQLiteQueryExecutor(base.BaseQueryExecutor[sqlite3.Connection]):
    """A blocking query executor for sqlite3.

    A fresh connection is opened for every operation, unless the caller passes one in,
    so a single executor may be shared freely between threads.

    In-memory databases only live as long as a connection to them is open, so one
    connection is held from :py:meth:`initialize` until :py:meth:`teardown`, and
    operations take turns using it.
    """

    __driver__: str = "sqlite"
    __slots__ = ("_memory", "_memory_lock")

    def __init__(self, database: str = None, **options):
        super().__init__(**get_options(database=database, **options))
        self._memory: Optional[sqlite3.Connection] = None
        self._memory_lock = threading.RLock()

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.teardown()

    @property
    def database(self) -> str:
        return self.options["database"]

    @property
    def in_memory(self) -> bool:
        return is_memory(self.database)

    def initialize(self):
        if self.initialized:
            return
        with self._lock:
            if self.initialized:
                return
            logger.debug("Opening SQLite database %r.", self.database)
            with _translate_errors("initialize", unavailable=True):
                conn = sqlite3.connect(**self.options)
                try:
                    conn.execute("SELECT 1;").close()
                except sqlite3.Error:
                    conn.close()
                    raise
            if self.in_memory:
                self._memory = conn
            else:
                conn.close()
            self.initialized = True

    def teardown(self, *, timeout: int = 10):
        with self._lock:
            if self._memory is not None:
                with self._memory_lock:
                    self._memory.close()
                    self._memory = None
            self.initialized = False

    @contextlib.contextmanager
    def connection(
        self, *, timeout: float = 10, connection: sqlite3.Connection = None
    ) -> Iterator[sqlite3.Connection]:
        self.initialize()
        if connection:
            yield connection
            return

        if self.in_memory:
            with self._shared(timeout=timeout) as conn:
                yield conn
            return

        options = {**self.options, "timeout": max(timeout, 0)}
        with _translate_errors("connect", unavailable=True):
            conn = sqlite3.connect(**options)
        try:
            yield conn
        finally:
            if conn.in_transaction:
                conn.rollback()
            conn.close()

    @contextlib.contextmanager
    def _shared(self, *, timeout: float) -> Iterator[sqlite3.Connection]:
        if not self._memory_lock.acquire(timeout=max(timeout, 0)):
            raise errors.DeadlineExceeded(operation="connect")
        try:
            conn = self._memory
            if conn is None:
                raise errors.StoreUnavailable(
                    "in-memory database was torn down", operation="connect"
                )
            # An enclosing transaction is left for its owner to end.
            outer = conn.in_transaction
            try:
                yield conn
            finally:
                if conn.in_transaction and not outer:
                    conn.rollback()
        finally:
            self._memory_lock.release()

    @contextlib.contextmanager
    def transaction(
        self,
        *,
        timeout: float = 10,
        connection: sqlite3.Connection = None,
        rollback: bool = False,
    ) -> Iterator[sqlite3.Connection]:
        owned = connection is None
        conn: sqlite3.Connection
        with self.connection(timeout=timeout, connection=connection) as conn:
            yield conn
            # A caller-provided connection is committed by the caller.
            if not owned:
                return
            if rollback:
                conn.rollback()
            else:
                conn.commit()

    def many(
        self,
        query: parse.QueryDatum,
        *args,
        connection: sqlite3.Connection = None,
        timeout: float = 10,
        transaction: bool = True,
        rollback: bool = False,
        cancel: Optional[threading.Event] = None,
        deserializer: base.DeserializerT[_T] | None = None,
        **params,
    ):
        if transaction:
            ctx = self.transaction(
                timeout=timeout, connection=connection, rollback=rollback
            )
        else:
            ctx = self.connection(timeout=timeout, connection=connection)
        c: sqlite3.Connection
        with _translate_errors(query.name), ctx as c:
            with _guard(c, timeout=timeout, cancel=cancel):
                cursor = _execute(c, query, args or params)
                results = cursor.fetchall()
                cursor.close()
        if results and deserializer:
            return deserializer(results)
        return results

    def one(
        self,
        query: parse.QueryDatum,
        *args,
        connection: sqlite3.Connection = None,
        timeout: float = 10,
        transaction: bool = True,
        rollback: bool = False,
        cancel: Optional[threading.Event] = None,
        deserializer: base.DeserializerT[_T] | None = None,
        **params,
    ):
        if transaction:
            ctx = self.transaction(
                timeout=timeout, connection=connection, rollback=rollback
            )
        else:
            ctx = self.connection(timeout=timeout, connection=connection)
        c: sqlite3.Connection
        with _translate_errors(query.name), ctx as c:
            with _guard(c, timeout=timeout, cancel=cancel):
                cursor = _execute(c, query, args or params)
                # Drain the cursor so that RETURNING statements are fully stepped
                #   before we commit.
                rows = cursor.fetchall()
                cursor.close()
        result = rows[0] if rows else None
        if result and deserializer:
            return deserializer(result)
        return result

    def scalar(
        self,
        query: parse.QueryDatum,
        *args,
        connection: sqlite3.Connection = None,
        timeout: float = 10,
        transaction: bool = True,
        rollback: bool = False,
        cancel: Optional[threading.Event] = None,
        **params,
    ):
        if transaction:
            ctx = self.transaction(
                timeout=timeout, connection=connection, rollback=rollback
            )
        else:
            ctx = self.connection(timeout=timeout, connection=connection)
        c: sqlite3.Connection
        with _translate_errors(query.name), ctx as c:
            with _guard(c, timeout=timeout, cancel=cancel):
                cursor = _execute(c, query, args or params)
                rows = cursor.fetchall()
                cursor.close()
        if rows:
            return next(iter(rows[0].values()))
        return None

    def affected(
        self,
        query: parse.QueryDatum,
        *args,
        connection: sqlite3.Connection = None,
        timeout: float = 10,
        transaction: bool = True,
        rollback: bool = False,
        cancel: Optional[threading.Event] = None,
        **params,
    ) -> int:
        if transaction:
            ctx = self.transaction(
                timeout=timeout, connection=connection, rollback=rollback
            )
        else:
            ctx = self.connection(timeout=timeout, connection=connection)
        c: sqlite3.Connection
        with _translate_errors(query.name), ctx as c:
            with _guard(c, timeout=timeout, cancel=cancel):
                cursor = _execute(c, query, args or params)
                count = cursor.rowcount
                cursor.close()
        return count

    def script(
        self, sql: str, *, connection: sqlite3.Connection = None, timeout: float = 10
    ):
        """Run a multi-statement SQL script, such as a schema definition."""
        with _translate_errors("script", unavailable=True):
            with self.connection(timeout=timeout, connection=connection) as c:
                c.executescript(sql)


def get_options(**overrides) -> dict:
    """Build the keyword arguments for :py:func:`sqlite3.connect`."""
    options = {k: v for k, v in overrides.items() if v is not None}
    database = options.setdefault("database", ":memory:")
    options.setdefault("uri", str(database).startswith("file:"))
    options.setdefault("detect_types", sqlite3.PARSE_DECLTYPES)
    options.setdefault("check_same_thread", False)
    return options


def is_memory(database: str) -> bool:
    """Whether this database disappears once its last connection is closed.

    Examples:
        >>> is_memory(":memory:")
        True
        >>> is_memory("file:blog?mode=memory&cache=shared")
        True
        >>> is_memory("blog.db")
        False
    """
    database = str(database)
    return (
        database in ("", ":memory:")
        or database.startswith("file::memory:")
        or "mode=memory" in database
    )


def _execute(
    conn: sqlite3.Connection,
    query: parse.QueryDatum,
    params: Union[Sequence, Mapping[str, Any]],
) -> sqlite3.Cursor:
    logger.debug("Executing %r.", query.name)
    cursor = conn.cursor()
    cursor.row_factory = _dict_row
    return cursor.execute(query.sql, params)


@contextlib.contextmanager
def _guard(
    conn: sqlite3.Connection,
    *,
    timeout: float,
    cancel: Optional[threading.Event] = None,
) -> Iterator[None]:
    """Abort the statement(s) run in this context on a deadline or cancellation."""
    if cancel is not None and cancel.is_set():
        raise errors.Cancelled()
    if timeout <= 0:
        raise errors.DeadlineExceeded()

    deadline = time.monotonic() + timeout
    reason: list[type[errors.StoreError]] = []

    def _check() -> int:
        if cancel is not None and cancel.is_set():
            reason.append(errors.Cancelled)
            return 1
        if time.monotonic() >= deadline:
            reason.append(errors.DeadlineExceeded)
            return 1
        return 0

    conn.set_progress_handler(_check, PROGRESS_INTERVAL)
    try:
        yield
    except sqlite3.OperationalError as e:
        if reason:
            raise reason[0]() from e
        raise
    finally:
        conn.set_progress_handler(None, PROGRESS_INTERVAL)


@contextlib.contextmanager
def _translate_errors(operation: str, *, unavailable: bool = False) -> Iterator[None]:
    """Map sqlite3 exceptions onto our own error hierarchy."""
    try:
        yield
    except errors.BlogCMSError as e:
        e.with_operation(operation)
        raise
    except sqlite3.IntegrityError as e:
        raise errors.ConstraintViolation(str(e), operation=operation) from e
    except sqlite3.OperationalError as e:
        raise errors.StoreUnavailable(str(e), operation=operation) from e
    except sqlite3.Error as e:
        if unavailable:
            raise errors.StoreUnavailable(str(e), operation=operation) from e
        raise errors.StoreError(str(e), operation=operation) from e


def _dict_row(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: value for col, value in zip(cursor.description, row)}


def _adapt_datetime(value: datetime.datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _convert_timestamp(value: bytes) -> datetime.datetime:
    parsed = datetime.datetime.fromisoformat(value.decode())
    if parsed.tzinfo is None:
        # CURRENT_TIMESTAMP defaults are UTC, but carry no offset.
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _init_sqlite():
    sqlite3.register_adapter(datetime.datetime, _adapt_datetime)
    sqlite3.register_converter("TIMESTAMP", _convert_timestamp)


_init_sqlite()
