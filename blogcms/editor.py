from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import sys
import tempfile

from blogcms import errors

__all__ = ("Editor", "build_template", "filter_comments")

logger = logging.getLogger(__name__)


class Editor:
    """Hand post content off to the user's text editor.

    The editor command is taken from ``$EDITOR`` (which may include arguments, e.g.
    ``code --wait``), falling back to a platform default.
    """

    __slots__ = ("command", "args", "from_env")

    def __init__(self, command: str = None):
        configured = command or os.environ.get("EDITOR", "").strip()
        self.from_env = bool(configured)
        parts = shlex.split(configured or _default_editor()) or ["nano"]
        self.command, self.args = parts[0], parts[1:]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.describe()!r}>"

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    def describe(self) -> str:
        if self.from_env:
            return f"{shlex.join([self.command, *self.args])} (from EDITOR env var)"
        return f"{self.command} (default fallback)"

    def edit(self, initial: str = "") -> str:
        """Open the editor on a temporary file seeded with ``initial``.

        Returns:
            The saved file contents, with surrounding whitespace stripped.

        Raises:
            EditorError: If the editor can't be started or exits with an error.
        """
        fd, path = tempfile.mkstemp(prefix="cms-edit-", suffix=".md")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file:
                file.write(initial)
            logger.debug("Running %s on %s.", self.command, path)
            try:
                subprocess.run([self.command, *self.args, path], check=True)
            except (OSError, subprocess.CalledProcessError) as e:
                raise errors.EditorError(
                    f"editor command failed: {e}", operation="edit"
                ) from e
            with open(path, encoding="utf-8") as file:
                return file.read().strip()
        finally:
            os.unlink(path)

    def edit_content(
        self, title: str, author: str, existing_content: str, is_update: bool
    ) -> str:
        """Edit post content under a commented header describing the post."""
        template = build_template(title, author, existing_content, is_update)
        return filter_comments(self.edit(template))


def build_template(
    title: str, author: str, existing_content: str = "", is_update: bool = False
) -> str:
    lines = ["# Editing Post" if is_update else "# Creating New Post", "#"]
    if title:
        lines.append(f"# Title: {title}")
    if author:
        lines.append(f"# Author: {author}")
    lines.extend(
        (
            "#",
            "# Write your post content below this line.",
            "# Lines starting with '#' are comments and will be ignored.",
            "#",
            "",
            "",
        )
    )
    return "\n".join(lines) + (existing_content or "")


def filter_comments(content: str) -> str:
    """Drop comment lines (starting with ``#``) and blank lines from edited content."""
    kept = [
        line
        for line in content.splitlines()
        if (stripped := line.strip()) and not stripped.startswith("#")
    ]
    return "\n".join(kept).strip()


def _default_editor() -> str:
    return "notepad" if sys.platform.startswith("win") else "nano"
