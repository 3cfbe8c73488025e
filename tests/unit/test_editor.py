from __future__ import annotations

import pathlib
import subprocess
from unittest import mock

import pytest

from blogcms import editor, errors


@pytest.fixture
def environ(monkeypatch):
    monkeypatch.delenv("EDITOR", raising=False)
    return monkeypatch


def _writes(content: str):
    def run(args, check):
        pathlib.Path(args[-1]).write_text(content)
        return subprocess.CompletedProcess(args, 0)

    return run


class TestEditor:
    @staticmethod
    def test_from_env(environ):
        # Given
        environ.setenv("EDITOR", "code --wait")
        # When
        ed = editor.Editor()
        # Then
        assert (ed.command, ed.args) == ("code", ["--wait"])
        assert ed.describe() == "code --wait (from EDITOR env var)"

    @staticmethod
    def test_default_fallback(environ):
        # Given
        environ.setattr(editor.sys, "platform", "linux")
        # When
        ed = editor.Editor()
        # Then
        assert ed.command == "nano"
        assert ed.describe() == "nano (default fallback)"

    @staticmethod
    def test_windows_fallback(environ):
        # Given
        environ.setattr(editor.sys, "platform", "win32")
        # When
        ed = editor.Editor()
        # Then
        assert ed.command == "notepad"

    @staticmethod
    @pytest.mark.parametrize(
        argnames="which,expected",
        argvalues=[("/usr/bin/vim", True), (None, False)],
        ids=["found", "missing"],
    )
    def test_is_available(which, expected):
        # Given
        ed = editor.Editor("vim")
        # When
        with mock.patch.object(editor.shutil, "which", return_value=which):
            available = ed.is_available()
        # Then
        assert available is expected

    @staticmethod
    def test_edit():
        # Given
        ed = editor.Editor("vim -n")
        with mock.patch.object(
            editor.subprocess, "run", side_effect=_writes("  edited  \n")
        ) as run:
            # When
            result = ed.edit("initial")
        # Then
        assert result == "edited"
        (args,), kwargs = run.call_args
        assert args[:2] == ["vim", "-n"]
        assert args[-1].endswith(".md")
        assert kwargs == {"check": True}
        assert not pathlib.Path(args[-1]).exists()

    @staticmethod
    def test_edit_seeds_file():
        # Given
        ed = editor.Editor("vim")
        seen = []

        def run(args, check):
            seen.append(pathlib.Path(args[-1]).read_text())
            return subprocess.CompletedProcess(args, 0)

        # When
        with mock.patch.object(editor.subprocess, "run", side_effect=run):
            result = ed.edit("initial content")
        # Then
        assert seen == ["initial content"]
        assert result == "initial content"

    @staticmethod
    @pytest.mark.parametrize(
        argnames="error",
        argvalues=[
            subprocess.CalledProcessError(1, ["vim"]),
            FileNotFoundError("vim"),
        ],
        ids=["exit-status", "not-found"],
    )
    def test_edit_failure(error):
        # Given
        ed = editor.Editor("vim")
        # When
        with mock.patch.object(editor.subprocess, "run", side_effect=error):
            with pytest.raises(errors.EditorError) as e:
                ed.edit()
        # Then
        assert e.value.operation == "edit"
        assert e.value.__cause__ is error

    @staticmethod
    def test_edit_content():
        # Given
        ed = editor.Editor("vim")
        written = "# Creating New Post\n#\n\nFirst line\n\n# a note\nSecond line\n"
        # When
        with mock.patch.object(editor.subprocess, "run", side_effect=_writes(written)):
            content = ed.edit_content("Title", "Ann", "", False)
        # Then
        assert content == "First line\nSecond line"


class TestBuildTemplate:
    @staticmethod
    def test_create():
        # When
        template = editor.build_template("My Title", "Ann")
        # Then
        assert template.startswith("# Creating New Post\n#\n# Title: My Title\n")
        assert "# Author: Ann\n" in template
        assert template.endswith("#\n\n")

    @staticmethod
    def test_update_with_content():
        # When
        template = editor.build_template("", "", "Existing body", True)
        # Then
        assert template.startswith("# Editing Post\n")
        assert "# Title:" not in template
        assert "# Author:" not in template
        assert template.endswith("#\n\nExisting body")

    @staticmethod
    def test_template_filters_to_content():
        # Given
        template = editor.build_template("T", "A", "Existing body", True)
        # When
        filtered = editor.filter_comments(template)
        # Then
        assert filtered == "Existing body"


@pytest.mark.parametrize(
    argnames="content,expected",
    argvalues=[
        ("# only comments\n#\n", ""),
        ("a\n\n\nb", "a\nb"),
        ("  # indented comment\ntext", "text"),
        ("keep this # trailing hash", "keep this # trailing hash"),
    ],
    ids=["comments", "blank-lines", "indented-comment", "inline-hash"],
)
def test_filter_comments(content, expected):
    # When
    filtered = editor.filter_comments(content)
    # Then
    assert filtered == expected
