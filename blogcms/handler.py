from __future__ import annotations

import contextlib
import logging
from typing import Iterator, List, NamedTuple, Optional

from blogcms import assembly, errors
from blogcms.core import types
from blogcms.model import Post
from blogcms.store import PostStore

__all__ = ("Identifier", "Posts")

logger = logging.getLogger(__name__)


class Identifier(NamedTuple):
    """A resolved reference to a single post, by exactly one of id or slug."""

    id: Optional[int] = None
    slug: Optional[str] = None

    @property
    def by_id(self) -> bool:
        return self.id is not None

    def __str__(self) -> str:
        return f"id={self.id}" if self.by_id else f"slug={self.slug!r}"


class Posts:
    """The post workflows which back each CLI command.

    Args:
        store: The store posts are persisted to.
        editor: Used to write post content when ``use_editor`` is requested.
        form: Used to collect a whole new post interactively.
    """

    __slots__ = ("store", "editor", "form")

    def __init__(
        self,
        store: PostStore,
        *,
        editor: types.EditorProtocolT = None,
        form: types.FormProtocolT = None,
    ):
        if editor is None:
            from blogcms.editor import Editor

            editor = Editor()
        if form is None:
            from blogcms.forms import PostForm

            form = PostForm(editor=editor)
        self.store = store
        self.editor = editor
        self.form = form

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} store={self.store!r}>"

    @staticmethod
    def resolve_identifier(id: int = None, slug: str = None) -> Identifier:
        """Check that exactly one of ``id`` or ``slug`` was provided.

        Raises:
            IdentifierError: If neither or both were provided.
        """
        has_id, has_slug = id is not None, bool(slug)
        if has_id == has_slug:
            raise errors.IdentifierError(operation="resolve_identifier")
        identifier = Identifier(id=id) if has_id else Identifier(slug=slug)
        logger.debug("Resolved post identifier %s.", identifier)
        return identifier

    def create_post(
        self,
        title: str,
        author: str = "",
        slug: str = "",
        *,
        use_editor: bool = False,
        auto_slug: bool = True,
    ) -> Post:
        """Create a post, optionally writing its content in the user's editor."""
        content = ""
        if use_editor:
            content = self._edit(title, author or "", "", is_update=False)
        return self.create_post_with_content(
            title, content, author, slug, auto_slug=auto_slug
        )

    def create_post_with_content(
        self,
        title: str,
        content: str = "",
        author: str = "",
        slug: str = "",
        *,
        auto_slug: bool = True,
    ) -> Post:
        post = assembly.build_from_input(title, content, author, slug)
        if auto_slug:
            post = assembly.ensure_slug(post)
        with _operation("create_post"):
            return self.store.create(post)

    def create_post_from_form(self, use_editor: bool = False) -> Optional[Post]:
        """Collect a new post with the interactive form and save it.

        Returns:
            The created post, or ``None`` if the user cancelled the form.
        """
        try:
            data = self.form.run(use_editor=use_editor)
        except errors.FormCancelled:
            logger.debug("Form cancelled, nothing created.")
            return None
        with _operation("create_post"):
            return self.store.create(data.to_post())

    def get_post(self, id: int = None, slug: str = None) -> Post:
        identifier = self.resolve_identifier(id, slug)
        with _operation("get_post"):
            if identifier.by_id:
                return self.store.get_by_id(identifier.id)
            return self.store.get_by_slug(identifier.slug)

    def update_post(
        self,
        id: int = None,
        slug: str = None,
        *,
        title: assembly.OverrideT = assembly.UNSET,
        content: assembly.OverrideT = assembly.UNSET,
        author: assembly.OverrideT = assembly.UNSET,
        use_editor: bool = False,
    ) -> Post:
        """Apply the given field overrides to an existing post.

        Only the fields which are passed are changed. With ``use_editor``, the content
        is replaced by whatever the user writes in their editor.

        Raises:
            IdentifierError: If not exactly one of ``id`` or ``slug`` was provided.
            ValidationError: If there's nothing to update.
            NotFound: If no post matches the identifier.
        """
        identifier = self.resolve_identifier(id, slug)
        supplied = [f for f in (title, content, author) if f is not assembly.UNSET]
        if not supplied and not use_editor:
            raise errors.ValidationError(
                "at least one field must be provided for update",
                operation="update_post",
            )
        with _operation("update_post"):
            if identifier.by_id:
                existing = self.store.get_by_id(identifier.id)
            else:
                existing = self.store.get_by_slug(identifier.slug)
        if use_editor:
            merged = assembly.merge_update(existing, title=title, author=author)
            content = self._edit(
                merged.title,
                merged.author or "",
                existing.content or "",
                is_update=True,
            )
        updated = assembly.merge_update(
            existing, title=title, content=content, author=author
        )
        with _operation("update_post"):
            if identifier.by_id:
                return self.store.update_by_id(identifier.id, updated)
            return self.store.update_by_slug(identifier.slug, updated)

    def delete_post(self, id: int = None, slug: str = None) -> int:
        """Delete a post, returning the number of rows removed (0 if none matched)."""
        identifier = self.resolve_identifier(id, slug)
        with _operation("delete_post"):
            if identifier.by_id:
                return self.store.delete_by_id(identifier.id)
            return self.store.delete_by_slug(identifier.slug)

    def list_posts(self, limit: int = 0, offset: int = 0) -> List[Post]:
        with _operation("list_posts"):
            return self.store.list(limit=limit, offset=offset)

    def _edit(self, title: str, author: str, existing: str, *, is_update: bool) -> str:
        operation = "update_post" if is_update else "create_post"
        if not self.editor.is_available():
            raise errors.EditorUnavailable(
                f"editor not available: {self.editor.describe()}",
                operation=operation,
            )
        with _operation(operation):
            content = self.editor.edit_content(title, author, existing, is_update)
        if not content:
            raise errors.ContentEmpty(operation=operation)
        return content


@contextlib.contextmanager
def _operation(name: str) -> Iterator[None]:
    """Record the workflow which was running on any error raised in this context."""
    try:
        yield
    except errors.BlogCMSError as e:
        e.operation = name
        raise
