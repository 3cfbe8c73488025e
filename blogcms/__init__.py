from __future__ import annotations

from .core import drivers, parse, support, types
from .errors import *
from .handler import Identifier, Posts
from .model import Post
from .repository import BaseQueryRepository, QueryMetadata
from .store import PostStore

__all__ = (
    "BaseQueryRepository",
    "BlogCMSError",
    "drivers",
    "Identifier",
    "parse",
    "Post",
    "Posts",
    "PostStore",
    "QueryMetadata",
    "support",
    "types",
)
