from __future__ import annotations

import dataclasses
import logging
import pathlib
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Generic,
    List,
    Optional,
    Type,
    TypeVar,
    Union,
)

import inflection
import pydantic

from blogcms.core import drivers, parse, types

__all__ = (
    "BaseQueryRepository",
    "QUERIES",
    "QueryMetadata",
)

logger = logging.getLogger(__name__)

QUERIES = pathlib.Path(__file__).resolve().parent / "queries"

_MT = TypeVar("_MT")

# Keyword arguments consumed by the executor rather than bound into the query.
_EXECUTOR_OPTIONS = frozenset(
    ("connection", "timeout", "transaction", "rollback", "cancel", "deserializer")
)


class QueryMetadata(types.MetadataT):
    """Default metadata for the query repository.

    Query Metadata provides simple configuration for binding a parsed query library,
    a database schema, and a repository's data model.
    """

    __slots__ = ()
    __dialect__: ClassVar[drivers.SupportedDialectsT] = "sqlite"
    __exclude_fields__: ClassVar[FrozenSet[str]] = frozenset(
        ("id", "created_at", "updated_at")
    )
    __querylib__: ClassVar[Union[str, pathlib.Path]] = QUERIES
    __schema__: ClassVar[Optional[pathlib.Path]] = None


class BaseQueryRepository(Generic[_MT]):
    """The base class for a 'repository'.

    A 'repository' is responsible for querying a specific table.
    It also is semi-aware of in-memory dataclass representing the table data.

    Query results are coerced to the bound model with a pydantic ``TypeAdapter``.
    """

    # User-defined class attributes
    model: ClassVar[Type[_MT]] = Any  # type: ignore
    metadata: ClassVar[Type[QueryMetadata]] = QueryMetadata
    # Generated attributes
    queries: ClassVar[parse.QueryPackage]
    driver: ClassVar[drivers.Driver]
    # Initialized attributes
    executor: drivers.BaseQueryExecutor
    # Private attributes.
    _protocol: ClassVar[pydantic.TypeAdapter]
    _bulk_protocol: ClassVar[pydantic.TypeAdapter]

    def __init__(
        self,
        database: str = None,
        *,
        executor: drivers.BaseQueryExecutor = None,
        **connect_kwargs,
    ):
        self.executor = executor or self.driver.executor(database, **connect_kwargs)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} executor={self.executor!r}>"

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.teardown()

    def initialize(self):
        """Connect to the underlying database and make sure our schema exists."""
        self.executor.initialize()
        schema = self.metadata.__schema__
        if schema is not None:
            logger.debug("Applying schema from %s.", schema)
            self.executor.script(schema.read_text())

    def teardown(self, *, timeout: int = 10):
        """Tear down the query executor's connection to the underlying database."""
        return self.executor.teardown(timeout=timeout)

    def __init_subclass__(cls, **kwargs):
        if not hasattr(cls.metadata, "__tablename__"):
            cls.metadata.__tablename__ = cls._get_table_name()

        cls._protocol = pydantic.TypeAdapter(Optional[cls.model])  # type: ignore
        cls._bulk_protocol = pydantic.TypeAdapter(List[cls.model])  # type: ignore
        cls.driver = drivers.get_driver(dialect=cls.metadata.__dialect__)
        cls.queries = cls._get_query_library()
        return super().__init_subclass__(**kwargs)

    @classmethod
    def get_kvs(cls, model: _MT) -> Dict[str, Any]:
        """Get a mapping of key-value pairs for your model without excluded fields."""
        return {
            field: value
            for field, value in cls._protocol.dump_python(model).items()
            if field not in cls.metadata.__exclude_fields__
        }

    @classmethod
    def deserialize(cls, row: Any) -> Optional[_MT]:
        return cls._protocol.validate_python(row)

    @classmethod
    def deserialize_many(cls, rows: Any) -> List[_MT]:
        return cls._bulk_protocol.validate_python(rows)

    @classmethod
    def _get_table_name(cls) -> str:
        """Get the name of the table for this query lib

        Notes:
            This is run if Metadata.__tablename__ is not set by the user.
        """
        return inflection.pluralize(inflection.underscore(cls.model.__name__))

    @classmethod
    def _get_query_library(cls) -> parse.QueryPackage:
        """Load the query library from disk into memory.

        Notes:
            By default, this will join `Metadata.__querylib__` &
            `Metadata.__tablename__` as a path and attempt to load all sql files found.
        """
        if isinstance(cls.metadata.__querylib__, str):
            cls.metadata.__querylib__ = pathlib.Path(
                cls.metadata.__querylib__
            ).resolve()
        path = cls.metadata.__querylib__ / cls.metadata.__tablename__
        return parse.parse(path, driver=cls.driver.executor.__driver__)

    def execute(self, query: Union[str, parse.QueryDatum], *args, **kwargs) -> Any:
        """Run a query with the executor method its modifier names.

        ``:many`` returns a list of rows, ``:one`` a single row (or ``None``),
        ``:scalar`` the first column of the first row and ``:affected`` a row count.

        Args:
            query:
                Either the parsed query, or the name of a query in your library.
            *args:
                Any positional arguments which the query requires.
            **kwargs:
                The query's parameters, plus any options for the executor.

        Raises:
            TypeError: If the parameters don't match those named in the query.
        """
        if isinstance(query, str):
            query = self._find_query(query)
        params = {k: v for k, v in kwargs.items() if k not in _EXECUTOR_OPTIONS}
        query.signature.bind(*args, **params)
        method = getattr(self.executor, query.modifier)
        return method(query, *args, **kwargs)

    def count(self, query: Union[str, parse.QueryDatum], *args, **kwargs) -> int:
        """Get the number of rows returned by this query.

        Args:
            query:
                Either the parsed query, or the name of a query in your library.
            *args:
                Any positional arguments which the query requires.
            **kwargs:
                Any keyword-arguments you'll pass on to the query.

        Returns:
            The number of rows.
        """
        if isinstance(query, str):
            query = self._find_query(query)
        sql = f"SELECT count(*) FROM ({query.sql.rstrip(';')}\n) AS q;"
        stat = dataclasses.replace(
            query, name=f"{query.name}_count", sql=sql, modifier=parse.SCALAR
        )
        return self.execute(stat, *args, **kwargs)

    def _find_query(self, name: str) -> parse.QueryDatum:
        for module in self.queries.modules.values():
            if name in module.queries:
                return module.queries[name]
        raise AttributeError(f"{self.__class__.__name__} has no query {name!r}")
