from __future__ import annotations

from typing import Literal, NamedTuple

from blogcms.core.drivers import sqlite
from blogcms.core.drivers.base import BaseQueryExecutor


def get_driver(*, dialect: SupportedDialectsT = "sqlite") -> Driver:
    """Get the driver configuration for the given dialect.

    Args:
        dialect: The SQL dialect for the driver.

    Raises:
        RuntimeError: If the dialect is not supported.
    """
    if dialect not in _DIALECT_TO_EXECUTOR:
        raise RuntimeError(
            f"{dialect!r} is not supported. "
            f"Supported dialects are: {(*_DIALECT_TO_EXECUTOR,)}."
        )
    return Driver(executor=_DIALECT_TO_EXECUTOR[dialect])


class Driver(NamedTuple):
    executor: type[BaseQueryExecutor]


SupportedDialectsT = Literal["sqlite"]

_DIALECT_TO_EXECUTOR: dict[SupportedDialectsT, type[BaseQueryExecutor]] = {
    "sqlite": sqlite.SQLiteQueryExecutor,
}
