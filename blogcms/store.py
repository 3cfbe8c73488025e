from __future__ import annotations

import datetime
import logging
import pathlib
import sqlite3
import threading
from typing import Callable, List, Optional

from blogcms import errors
from blogcms.model import Post
from blogcms.repository import BaseQueryRepository, QueryMetadata

__all__ = ("MAX_ID", "MIN_ID", "PostStore", "SCHEMA", "utcnow")

logger = logging.getLogger(__name__)

SCHEMA = pathlib.Path(__file__).resolve().parent / "schema.sql"

ClockT = Callable[[], datetime.datetime]

# SQLite stores integers as signed 64-bit values; no row can have an id outside this.
MIN_ID, MAX_ID = -(2**63), 2**63 - 1


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class PostStore(BaseQueryRepository[Post]):
    """Durable CRUD for blog posts, backed by SQLite.

    A post may be addressed either by its numeric ``id`` or by its unique ``slug``.
    Every operation accepts the following keyword arguments, which are passed on to
    the query executor:

    Keyword Args:
        connection: Run within a caller-managed connection/transaction.
        timeout: Abort the operation if it hasn't finished after this many seconds.
            Defaults to the timeout the store was created with.
        cancel: Abort the operation once this event is set.

    Notes:
        Deleting a post which doesn't exist is not an error; the affected row count
        is returned instead.
    """

    model = Post

    class metadata(QueryMetadata):
        __tablename__ = "posts"
        __schema__ = SCHEMA

    def __init__(
        self,
        database: str = None,
        *,
        clock: ClockT = utcnow,
        timeout: float = 10,
        **kwargs,
    ):
        super().__init__(database, **kwargs)
        self.clock = clock
        self.timeout = timeout

    def now(self) -> datetime.datetime:
        return self.clock().astimezone(datetime.timezone.utc)

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.timeout if timeout is None else timeout

    def create(
        self,
        post: Post,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> Post:
        """Persist a new post, returning it with its id and timestamps assigned."""
        timeout = self._timeout(timeout)
        now = self.now()
        params = self.get_kvs(post)
        params.update(created_at=now, updated_at=now)
        with self.executor.transaction(timeout=timeout, connection=connection) as c:
            id = self.execute(
                self.queries.mutate.create,
                connection=c,
                timeout=timeout,
                cancel=cancel,
                **params,
            )
            created = self._get(
                "get_by_id", id=id, connection=c, timeout=timeout, cancel=cancel
            )
        logger.debug("Created post %s.", created.id)
        return created

    def get_by_id(
        self,
        id: int,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> Post:
        if not _storable(id):
            raise errors.NotFound(operation="get_by_id")
        return self._get(
            "get_by_id",
            id=id,
            connection=connection,
            timeout=self._timeout(timeout),
            cancel=cancel,
        )

    def get_by_slug(
        self,
        slug: str,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> Post:
        if not slug:
            raise errors.NotFound(operation="get_by_slug")
        return self._get(
            "get_by_slug",
            slug=slug,
            connection=connection,
            timeout=self._timeout(timeout),
            cancel=cancel,
        )

    def update_by_id(
        self,
        id: int,
        post: Post,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> Post:
        """Overwrite the title, content and author of the post with this id.

        The slug and creation time are never changed.
        """
        if not _storable(id):
            raise errors.NotFound(operation="update_by_id")
        return self._update(
            "update_by_id",
            post,
            connection=connection,
            timeout=timeout,
            cancel=cancel,
            id=id,
        )

    def update_by_slug(
        self,
        slug: str,
        post: Post,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> Post:
        """Overwrite the title, content and author of the post with this slug.

        The post is located and updated in a single statement.
        """
        if not slug:
            raise errors.NotFound(operation="update_by_slug")
        return self._update(
            "update_by_slug",
            post,
            connection=connection,
            timeout=timeout,
            cancel=cancel,
            slug=slug,
        )

    def delete_by_id(
        self,
        id: int,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> int:
        if not _storable(id):
            return 0
        return self.execute(
            self.queries.mutate.delete_by_id,
            connection=connection,
            timeout=self._timeout(timeout),
            cancel=cancel,
            id=id,
        )

    def delete_by_slug(
        self,
        slug: str,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> int:
        if not slug:
            return 0
        return self.execute(
            self.queries.mutate.delete_by_slug,
            connection=connection,
            timeout=self._timeout(timeout),
            cancel=cancel,
            slug=slug,
        )

    def list(
        self,
        limit: int = 0,
        offset: int = 0,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[Post]:
        """List posts.

        With a positive ``limit``, return a page of the most recently created posts
        first. Otherwise, return every post in ascending id order; ``offset`` is
        ignored in that case.
        """
        if limit > 0:
            query, params = self.queries.query.page, {"limit": limit, "offset": offset}
        else:
            query, params = self.queries.query.all, {}
        return self.execute(
            query,
            connection=connection,
            timeout=self._timeout(timeout),
            cancel=cancel,
            deserializer=self.deserialize_many,
            **params,
        )

    def count(  # type: ignore[override]
        self,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
    ) -> int:
        """The total number of stored posts."""
        return super().count(
            self.queries.query.all,
            connection=connection,
            timeout=self._timeout(timeout),
            cancel=cancel,
        )

    def _get(self, name: str, **kwargs) -> Post:
        post = self.execute(
            getattr(self.queries.query, name),
            deserializer=self.deserialize,
            **kwargs,
        )
        if post is None:
            raise errors.NotFound(operation=name)
        return post

    def _update(
        self,
        name: str,
        post: Post,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = None,
        cancel: Optional[threading.Event] = None,
        **identifier,
    ) -> Post:
        timeout = self._timeout(timeout)
        params = {
            "title": post.title,
            "content": post.content,
            "author": post.author,
            "updated_at": self.now(),
            **identifier,
        }
        with self.executor.transaction(timeout=timeout, connection=connection) as c:
            id = self.execute(
                getattr(self.queries.mutate, name),
                connection=c,
                timeout=timeout,
                cancel=cancel,
                **params,
            )
            if id is None:
                raise errors.NotFound(operation=name)
            updated = self._get(
                "get_by_id", id=id, connection=c, timeout=timeout, cancel=cancel
            )
        logger.debug("Updated post %s.", updated.id)
        return updated


def _storable(id: int) -> bool:
    return MIN_ID <= id <= MAX_ID
