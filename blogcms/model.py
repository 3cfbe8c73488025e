from __future__ import annotations

import dataclasses
import datetime
from typing import Optional

__all__ = ("Post",)


@dataclasses.dataclass(slots=True)
class Post:
    """A single blog post, as persisted in the ``posts`` table.

    ``content``, ``author`` and ``slug`` are nullable; ``None`` means the field was
    never provided. ``id`` and the timestamps are assigned by the store.
    """

    id: Optional[int] = None
    title: str = ""
    content: Optional[str] = None
    author: Optional[str] = None
    slug: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
