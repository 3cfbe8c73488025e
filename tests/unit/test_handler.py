from __future__ import annotations

from unittest import mock

import pytest

from blogcms import errors, forms, handler


@pytest.fixture
def editor():
    ed = mock.MagicMock()
    ed.is_available.return_value = True
    ed.describe.return_value = "nano (default fallback)"
    ed.edit_content.return_value = "Written in the editor"
    return ed


@pytest.fixture
def form():
    return mock.MagicMock()


@pytest.fixture
def posts(post_store, editor, form) -> handler.Posts:
    return handler.Posts(post_store, editor=editor, form=form)


@pytest.mark.parametrize(
    argnames="id,slug,expected",
    argvalues=[
        (1, None, handler.Identifier(id=1)),
        (0, None, handler.Identifier(id=0)),
        (None, "a-slug", handler.Identifier(slug="a-slug")),
        (1, "", handler.Identifier(id=1)),
    ],
    ids=["id", "zero-id", "slug", "empty-slug-ignored"],
)
def test_resolve_identifier(id, slug, expected):
    # When
    identifier = handler.Posts.resolve_identifier(id, slug)
    # Then
    assert identifier == expected


@pytest.mark.parametrize(
    argnames="id,slug",
    argvalues=[(None, None), (None, ""), (1, "a-slug")],
    ids=["neither", "empty-slug", "both"],
)
def test_resolve_identifier_invalid(id, slug):
    # When/Then
    with pytest.raises(errors.IdentifierError) as e:
        handler.Posts.resolve_identifier(id, slug)
    assert isinstance(e.value, errors.ValidationError)


class TestCreate:
    @staticmethod
    def test_with_content(posts):
        # When
        post = posts.create_post_with_content("Hello World", "Body", "Ann", "")
        # Then
        assert post.id
        assert (post.title, post.content, post.author, post.slug) == (
            "Hello World",
            "Body",
            "Ann",
            "hello-world",
        )

    @staticmethod
    def test_without_auto_slug(posts):
        # When
        post = posts.create_post_with_content("Hello World", auto_slug=False)
        # Then
        assert post.slug is None
        assert post.content is None
        assert post.author is None

    @staticmethod
    def test_duplicate_slug(posts):
        # Given
        posts.create_post_with_content("Hello World")
        # When
        with pytest.raises(errors.ConstraintViolation) as e:
            posts.create_post_with_content("Hello, World!")
        # Then
        assert e.value.operation == "create_post"

    @staticmethod
    def test_with_editor(posts, editor):
        # When
        post = posts.create_post("Title", "Ann", use_editor=True)
        # Then
        editor.edit_content.assert_called_once_with("Title", "Ann", "", False)
        assert post.content == "Written in the editor"
        assert post.slug == "title"

    @staticmethod
    def test_without_editor(posts, editor):
        # When
        post = posts.create_post("Title")
        # Then
        editor.edit_content.assert_not_called()
        assert post.content is None

    @staticmethod
    def test_editor_unavailable(posts, editor):
        # Given
        editor.is_available.return_value = False
        # When
        with pytest.raises(errors.EditorUnavailable) as e:
            posts.create_post("Title", use_editor=True)
        # Then
        assert "nano (default fallback)" in str(e.value)
        assert posts.list_posts() == []

    @staticmethod
    def test_editor_empty(posts, editor):
        # Given
        editor.edit_content.return_value = ""
        # When
        with pytest.raises(errors.ContentEmpty) as e:
            posts.create_post("Title", use_editor=True)
        # Then
        assert str(e.value) == "create_post: content cannot be empty when using editor"
        assert posts.list_posts() == []


class TestCreateFromForm:
    @staticmethod
    def test_created(posts, form):
        # Given
        form.run.return_value = forms.PostFormData(
            title="From a Form", author="Ann", slug="from-a-form", confirm=True
        )
        # When
        post = posts.create_post_from_form(use_editor=True)
        # Then
        form.run.assert_called_once_with(use_editor=True)
        assert (post.title, post.author, post.slug) == (
            "From a Form",
            "Ann",
            "from-a-form",
        )

    @staticmethod
    def test_cancelled(posts, form):
        # Given
        form.run.side_effect = errors.FormCancelled()
        # When
        post = posts.create_post_from_form()
        # Then
        assert post is None
        assert posts.list_posts() == []


class TestGet:
    @staticmethod
    def test_by_id_and_slug(posts):
        # Given
        created = posts.create_post_with_content("Hello")
        # When
        by_id = posts.get_post(id=created.id)
        by_slug = posts.get_post(slug="hello")
        # Then
        assert by_id == by_slug == created

    @staticmethod
    def test_not_found(posts):
        # When
        with pytest.raises(errors.NotFound) as e:
            posts.get_post(id=999)
        # Then
        assert str(e.value) == "get_post: post not found"

    @staticmethod
    def test_needs_identifier(posts):
        # When/Then
        with pytest.raises(errors.IdentifierError):
            posts.get_post()


class TestUpdate:
    @staticmethod
    def test_no_fields(posts):
        # Given
        created = posts.create_post_with_content("Hello")
        # When
        with pytest.raises(errors.ValidationError) as e:
            posts.update_post(id=created.id)
        # Then
        assert not isinstance(e.value, errors.IdentifierError)

    @staticmethod
    def test_identifier_checked_first(posts):
        # When/Then
        with pytest.raises(errors.IdentifierError):
            posts.update_post(title="New")

    @staticmethod
    def test_by_id(posts):
        # Given
        created = posts.create_post_with_content("Hello", "Body", "Ann")
        # When
        updated = posts.update_post(id=created.id, title="Goodbye")
        # Then
        assert (updated.title, updated.content, updated.author, updated.slug) == (
            "Goodbye",
            "Body",
            "Ann",
            "hello",
        )
        assert updated.updated_at > created.updated_at
        assert updated.created_at == created.created_at

    @staticmethod
    def test_by_slug_clears_field(posts):
        # Given
        posts.create_post_with_content("Hello", "Body", "Ann")
        # When
        updated = posts.update_post(slug="hello", author="")
        # Then
        assert updated.author is None
        assert updated.content == "Body"

    @staticmethod
    def test_not_found(posts):
        # When
        with pytest.raises(errors.NotFound) as e:
            posts.update_post(slug="missing", title="New")
        # Then
        assert e.value.operation == "update_post"

    @staticmethod
    def test_with_editor(posts, editor):
        # Given
        created = posts.create_post_with_content("Hello", "Old body", "Ann")
        # When
        updated = posts.update_post(id=created.id, title="New", use_editor=True)
        # Then
        editor.edit_content.assert_called_once_with("New", "Ann", "Old body", True)
        assert (updated.title, updated.content) == ("New", "Written in the editor")

    @staticmethod
    def test_editor_alone_is_enough(posts, editor):
        # Given
        created = posts.create_post_with_content("Hello", "Old body")
        # When
        updated = posts.update_post(id=created.id, use_editor=True)
        # Then
        editor.edit_content.assert_called_once_with("Hello", "", "Old body", True)
        assert updated.content == "Written in the editor"

    @staticmethod
    def test_editor_empty_leaves_post(posts, editor):
        # Given
        editor.edit_content.return_value = ""
        created = posts.create_post_with_content("Hello", "Old body")
        # When
        with pytest.raises(errors.ContentEmpty):
            posts.update_post(id=created.id, use_editor=True)
        # Then
        assert posts.get_post(id=created.id) == created


class TestDelete:
    @staticmethod
    def test_by_id(posts):
        # Given
        created = posts.create_post_with_content("Hello")
        # When
        deleted = posts.delete_post(id=created.id)
        # Then
        assert deleted == 1
        with pytest.raises(errors.NotFound):
            posts.get_post(id=created.id)

    @staticmethod
    def test_missing_is_noop(posts):
        # When
        deleted = posts.delete_post(slug="missing")
        # Then
        assert deleted == 0

    @staticmethod
    def test_needs_identifier(posts):
        # When/Then
        with pytest.raises(errors.IdentifierError):
            posts.delete_post(id=1, slug="both")


def test_list_posts(posts):
    # Given
    created = [posts.create_post_with_content(f"Post {i}") for i in range(3)]
    # When
    listed = posts.list_posts()
    page = posts.list_posts(limit=2)
    # Then
    assert listed == created
    assert page == created[:0:-1]


def test_store_errors_keep_their_type(posts, post_store):
    # Given
    with mock.patch.object(
        post_store, "list", side_effect=errors.StoreUnavailable(operation="page")
    ):
        # When
        with pytest.raises(errors.StoreUnavailable) as e:
            posts.list_posts()
    # Then
    assert e.value.operation == "list_posts"
