from __future__ import annotations

import builtins
import dataclasses
import logging
from typing import Callable, Optional

from blogcms import assembly, errors
from blogcms.core import types
from blogcms.model import Post

__all__ = ("PostForm", "PostFormData")

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class PostFormData:
    """The raw values collected by a :py:class:`PostForm`."""

    title: str = ""
    content: str = ""
    author: str = ""
    slug: str = ""
    confirm: bool = False

    def to_post(self) -> Post:
        return assembly.build_from_input(
            self.title, self.content, self.author, self.slug
        )


class PostForm:
    """A line-based interactive form for creating a post.

    Args:
        input:
            Reads a line of input after showing a prompt. Defaults to :py:func:`input`.
        output: Writes a line of output. Defaults to :py:func:`print`.
        editor: The editor to use when content should be written in an editor.
    """

    def __init__(
        self,
        *,
        input: Optional[Callable[[str], str]] = None,
        output: Optional[Callable[[str], None]] = None,
        editor: types.EditorProtocolT = None,
    ):
        self.input = input or builtins.input
        self.output = output or builtins.print
        self.editor = editor

    def run(
        self, initial: Optional[PostFormData] = None, *, use_editor: bool = False
    ) -> PostFormData:
        """Collect a new post from the user.

        Raises:
            FormCancelled: If the user declines to confirm, or interrupts the form.
            EditorUnavailable: If ``use_editor`` is set and no editor can be found.
            ContentEmpty: If the editor returned no content.
        """
        data = dataclasses.replace(initial) if initial else PostFormData()
        try:
            self._collect(data, use_editor=use_editor)
        except (EOFError, KeyboardInterrupt) as e:
            raise errors.FormCancelled(operation="form") from e
        if not data.confirm:
            raise errors.FormCancelled(operation="form")

        if use_editor:
            editor = self._get_editor()
            if not editor.is_available():
                raise errors.EditorUnavailable(
                    f"editor not available: {editor.describe()}", operation="form"
                )
            data.content = editor.edit_content(
                data.title, data.author, data.content, False
            )
            if not data.content:
                raise errors.ContentEmpty("content cannot be empty", operation="form")

        if not data.slug.strip():
            data.slug = assembly.generate_slug(data.title)
        return data

    def _collect(self, data: PostFormData, *, use_editor: bool):
        self.output("Create a new blog post")
        data.title = self._ask("Post Title", data.title)
        while not data.title.strip():
            self.output("title is required")
            data.title = self._ask("Post Title", data.title)
        if not use_editor:
            data.content = self._ask("Post Content", data.content)
        data.author = self._ask("Author", data.author)
        data.slug = self._ask("URL Slug (optional)", data.slug)
        answer = self._ask("Create this blog post? [y/N]", "")
        data.confirm = answer.strip().lower() in {"y", "yes"}

    def _ask(self, label: str, default: str) -> str:
        prompt = f"{label} [{default}]: " if default else f"{label}: "
        return self.input(prompt) or default

    def _get_editor(self) -> types.EditorProtocolT:
        if self.editor is None:
            from blogcms.editor import Editor

            self.editor = Editor()
        return self.editor
