"""Pure helpers for turning raw user input into :py:class:`~blogcms.model.Post`.

Nothing in here touches the database. Uniqueness and existence are the store's
problem; these functions only decide which values a post should carry.
"""
from __future__ import annotations

import dataclasses
import re
from typing import Optional, Union

from blogcms.model import Post

__all__ = (
    "UNSET",
    "UnsetType",
    "build_from_input",
    "ensure_slug",
    "generate_slug",
    "merge_update",
    "nullable",
)


class UnsetType:
    """The type of :py:data:`UNSET`, a marker for "the caller didn't pass this"."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = UnsetType()

OverrideT = Union[str, None, UnsetType]


def nullable(value: Optional[str]) -> Optional[str]:
    """Map an empty (or missing) input string to ``None``."""
    if not value:
        return None
    return value


def build_from_input(
    title: str, content: str = "", author: str = "", slug: str = ""
) -> Post:
    """Build a new, unsaved Post from raw string input.

    The title is kept verbatim, even when empty. Empty content, author or slug are
    stored as ``None``.
    """
    return Post(
        title=title or "",
        content=nullable(content),
        author=nullable(author),
        slug=nullable(slug),
    )


def merge_update(
    existing: Post,
    *,
    title: OverrideT = UNSET,
    content: OverrideT = UNSET,
    author: OverrideT = UNSET,
) -> Post:
    """Apply the supplied overrides on top of an existing Post.

    Only overrides which were explicitly passed replace the existing value. An
    explicit empty string clears a nullable field. The slug is never changed.
    """
    changes = {}
    if title is not UNSET:
        changes["title"] = title or ""
    if content is not UNSET:
        changes["content"] = nullable(content)  # type: ignore[arg-type]
    if author is not UNSET:
        changes["author"] = nullable(author)  # type: ignore[arg-type]
    return dataclasses.replace(existing, **changes)


def generate_slug(title: str) -> str:
    """Create a URL-friendly slug from a title.

    Examples:
        >>> generate_slug("Hello, World! & More #stuff")
        'hello-world-more-stuff'
        >>> generate_slug("!@#$%^&*()")
        ''
    """
    if not title:
        return ""
    slug = _WHITESPACE.sub("-", title.lower())
    slug = _INELIGIBLE.sub("", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def ensure_slug(post: Post) -> Post:
    """Fill in a missing slug from the post's title, if the title produces one."""
    if post.slug:
        return post
    return dataclasses.replace(post, slug=nullable(generate_slug(post.title)))


_WHITESPACE = re.compile(r"\s+")
# ASCII-only: anything outside of this class is dropped, not transliterated.
_INELIGIBLE = re.compile(r"[^a-z0-9-]")
_HYPHENS = re.compile(r"-{2,}")
