"""Console output for the CLI: coloured status lines and post rendering."""
from __future__ import annotations

import os
import sys
from typing import Any, Iterable, Optional, TextIO

from blogcms.core import support
from blogcms.model import Post

__all__ = ("Console",)

_RESET = "\033[0m"
_STYLES = {
    "success": "\033[1;32m",
    "error": "\033[1;31m",
    "warning": "\033[1;33m",
    "info": "\033[34m",
    "highlight": "\033[1;36m",
    "subtle": "\033[2;37m",
}

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class Console:
    """Write user-facing output, coloured only when writing to a terminal.

    Colour is disabled when ``NO_COLOR`` is set in the environment.
    """

    __slots__ = ("out", "err", "color")

    def __init__(
        self,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
        *,
        color: Optional[bool] = None,
    ):
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        if color is None:
            color = "NO_COLOR" not in os.environ and _isatty(self.out)
        self.color = color

    def style(self, text: str, style: str) -> str:
        if not self.color:
            return text
        return f"{_STYLES[style]}{text}{_RESET}"

    def print(self, text: str = "", style: str = None):
        print(self.style(text, style) if style else text, file=self.out)

    def success(self, text: str):
        self.print(f"✅ {text}", "success")

    def warning(self, text: str):
        self.print(f"⚠️  {text}", "warning")

    def info(self, text: str):
        self.print(text, "info")

    def error(self, text: str):
        message = f"error: {text}"
        if self.color and _isatty(self.err):
            message = f"{_STYLES['error']}{message}{_RESET}"
        print(message, file=self.err)

    def header(self, text: str):
        self.print()
        self.print(f"=== {text} ===", "highlight")
        self.print()

    def field(self, label: str, value: Any):
        self.print(f"{self.style(label, 'highlight')}: {value}")

    def field_if_set(self, label: str, value: Optional[str]):
        if value:
            self.field(label, value)

    def post(self, post: Post):
        """Render a single post, one field per line."""
        self.field("ID", post.id)
        self.field("Title", post.title)
        self.field_if_set("Slug", post.slug)
        self.field_if_set("Author", post.author)
        self.field("Created", _timestamp(post.created_at))
        self.field("Updated", _timestamp(post.updated_at))
        if post.content:
            self.print()
            self.print(post.content)

    def posts(self, posts: Iterable[Post]):
        """Render a summary line for each post."""
        count = 0
        for post in posts:
            count += 1
            slug = self.style(f"[{post.slug}]", "subtle") if post.slug else ""
            author = f" by {post.author}" if post.author else ""
            line = f"{self.style(str(post.id), 'highlight')}  {post.title}{author}"
            self.print(f"{line} {slug}".rstrip())
        if not count:
            self.info("No posts found.")

    def json(self, obj: Any):
        self.print(support.dumps(obj, indent=True))


def _timestamp(value) -> str:
    return value.strftime(TIME_FORMAT) if value else ""


def _isatty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())
