from __future__ import annotations

import abc
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

from blogcms.core import parse

_T = TypeVar("_T")
_CT = TypeVar("_CT")

__all__ = ("BaseQueryExecutor", "DeserializerT")


class BaseQueryExecutor(abc.ABC, Generic[_CT]):
    """The interface every query executor must provide.

    All execution methods share the same keyword arguments:

    Keyword Args:
        connection:
            Run against this connection instead of acquiring a new one. The caller
            owns the connection and is responsible for committing it.
        timeout:
            How long (in seconds) the operation may run before it is aborted.
        transaction:
            Whether to wrap the execution in a transaction.
        rollback:
            Roll back the transaction instead of committing it.
        cancel:
            An event which, once set, aborts the running operation.
    """

    __driver__: str
    __slots__ = ("options", "initialized", "_lock")

    def __init__(self, **options):
        self.options = options
        self.initialized = False
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            "<"
            f"{self.__class__.__name__} "
            f"initialized={self.initialized}"
            ">"
        )

    @abc.abstractmethod
    def connection(self, *, timeout: float = 10, connection: _CT | None = None):
        ...

    @abc.abstractmethod
    def transaction(
        self,
        *,
        timeout: float = 10,
        connection: _CT | None = None,
        rollback: bool = False,
    ):
        ...

    @abc.abstractmethod
    def initialize(self):
        ...

    @abc.abstractmethod
    def teardown(self, *, timeout: int = 10):
        ...

    @abc.abstractmethod
    def many(
        self,
        query: parse.QueryDatum,
        *args,
        connection: _CT = None,
        timeout: float = 10,
        transaction: bool = True,
        rollback: bool = False,
        cancel: Optional[threading.Event] = None,
        deserializer: DeserializerT[_T] | None = None,
        **kwargs,
    ):
        ...

    @abc.abstractmethod
    def one(
        self,
        query: parse.QueryDatum,
        *args,
        connection: _CT = None,
        timeout: float = 10,
        transaction: bool = True,
        rollback: bool = False,
        cancel: Optional[threading.Event] = None,
        deserializer: DeserializerT[_T] | None = None,
        **kwargs,
    ):
        ...

    @abc.abstractmethod
    def scalar(
        self,
        query: parse.QueryDatum,
        *args,
        connection: _CT = None,
        timeout: float = 10,
        transaction: bool = True,
        rollback: bool = False,
        cancel: Optional[threading.Event] = None,
        **kwargs,
    ):
        ...

    @abc.abstractmethod
    def affected(
        self,
        query: parse.QueryDatum,
        *args,
        connection: _CT = None,
        timeout: float = 10,
        transaction: bool = True,
        rollback: bool = False,
        cancel: Optional[threading.Event] = None,
        **kwargs,
    ):
        ...

    @abc.abstractmethod
    def script(self, sql: str, *, connection: _CT = None, timeout: float = 10):
        ...


DeserializerT = Callable[[Any], _T]
