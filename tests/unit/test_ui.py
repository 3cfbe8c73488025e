from __future__ import annotations

import datetime
import io

import pytest

from blogcms import model
from blogcms.ui import Console


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()


@pytest.fixture
def console(streams) -> Console:
    return Console(*streams, color=False)


@pytest.fixture
def post() -> model.Post:
    stamp = datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)
    return model.Post(
        id=1,
        title="Hello",
        content="The body",
        author="Ann",
        slug="hello",
        created_at=stamp,
        updated_at=stamp,
    )


def test_post(console, streams, post):
    # When
    console.post(post)
    # Then
    assert streams[0].getvalue().splitlines() == [
        "ID: 1",
        "Title: Hello",
        "Slug: hello",
        "Author: Ann",
        "Created: 2024-01-02 03:04:05",
        "Updated: 2024-01-02 03:04:05",
        "",
        "The body",
    ]


def test_post_skips_unset_fields(console, streams, post):
    # Given
    post.author = post.slug = post.content = None
    # When
    console.post(post)
    # Then
    out = streams[0].getvalue()
    assert "Slug" not in out
    assert "Author" not in out
    assert out.endswith("Updated: 2024-01-02 03:04:05\n")


def test_posts(console, streams, post):
    # Given
    anonymous = model.Post(id=2, title="Untitled")
    # When
    console.posts([post, anonymous])
    # Then
    assert streams[0].getvalue().splitlines() == [
        "1  Hello by Ann [hello]",
        "2  Untitled",
    ]


def test_no_posts(console, streams):
    # When
    console.posts([])
    # Then
    assert streams[0].getvalue() == "No posts found.\n"


def test_error_goes_to_err(console, streams):
    # When
    console.error("boom")
    # Then
    assert streams[0].getvalue() == ""
    assert streams[1].getvalue() == "error: boom\n"


def test_color(streams):
    # Given
    console = Console(*streams, color=True)
    # When
    console.success("done")
    # Then
    assert streams[0].getvalue() == "\033[1;32m✅ done\033[0m\n"


def test_no_color_env(monkeypatch, streams):
    # Given
    monkeypatch.setenv("NO_COLOR", "1")
    # When
    console = Console(*streams)
    # Then
    assert console.color is False


def test_json(console, streams, post):
    # When
    console.json(post)
    # Then
    out = streams[0].getvalue()
    assert '"title": "Hello"' in out
    assert '"created_at": "2024-01-02T03:04:05+00:00"' in out
