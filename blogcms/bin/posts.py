"""Create, read, update, delete and list blog posts."""
from __future__ import annotations

import argparse
import logging

from blogcms import editor, forms, handler, store
from blogcms.ui import Console

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace, *, console: Console) -> int:
    posts = get_handler(args, console=console)
    with posts.store:
        return args.command(posts, args, console=console)


def get_handler(args: argparse.Namespace, *, console: Console) -> handler.Posts:
    settings = args.settings
    ed = editor.Editor()
    return handler.Posts(
        store.PostStore(settings.database, timeout=settings.timeout),
        editor=ed,
        form=forms.PostForm(output=console.print, editor=ed),
    )


def create(posts: handler.Posts, args: argparse.Namespace, *, console: Console) -> int:
    if args.form:
        post = posts.create_post_from_form(use_editor=args.editor)
        if post is None:
            console.warning("Post creation cancelled.")
            return 0
    elif args.editor:
        console.info("Opening editor for content...")
        post = posts.create_post(args.title, args.author, args.slug, use_editor=True)
    else:
        post = posts.create_post_with_content(
            args.title, args.content, args.author, args.slug
        )
    console.success("Post created successfully!")
    console.post(post)
    return 0


def get(posts: handler.Posts, args: argparse.Namespace, *, console: Console) -> int:
    post = posts.get_post(id=args.id, slug=args.slug)
    if args.json:
        console.json(post)
    else:
        console.header(post.title or "(untitled)")
        console.post(post)
    return 0


def update(posts: handler.Posts, args: argparse.Namespace, *, console: Console) -> int:
    overrides = {
        field: value
        for field in _FIELDS
        if (value := getattr(args, field)) is not None
    }
    if args.editor:
        console.info("Opening editor for content editing...")
        overrides.pop("content", None)
    identifier = posts.resolve_identifier(args.id, args.slug)
    console.info(f"Updating post with {identifier}")
    post = posts.update_post(
        id=args.id, slug=args.slug, use_editor=args.editor, **overrides
    )
    console.success("Post updated successfully!")
    console.post(post)
    return 0


def delete(posts: handler.Posts, args: argparse.Namespace, *, console: Console) -> int:
    identifier = posts.resolve_identifier(args.id, args.slug)
    if not args.force:
        console.warning(
            f"Are you sure you want to delete the post with {identifier}? "
            "Use --force to skip this confirmation."
        )
        return 0
    deleted = posts.delete_post(id=args.id, slug=args.slug)
    if deleted:
        console.success(f"Post with {identifier} deleted successfully!")
    else:
        console.warning(f"No post with {identifier} to delete.")
    return 0


def list_(posts: handler.Posts, args: argparse.Namespace, *, console: Console) -> int:
    found = posts.list_posts(limit=args.limit, offset=args.offset)
    if args.json:
        console.json(found)
    else:
        console.posts(found)
    return 0


def configure_parser(
    parser: argparse.ArgumentParser | None = None,
) -> argparse.ArgumentParser:
    parse = parser or argparse.ArgumentParser(prog="cms posts")
    parse.set_defaults(validate=_validate)
    commands = parse.add_subparsers(title="commands")

    creator = commands.add_parser("create", aliases=["add"], help="Create a post.")
    creator.set_defaults(run=run, command=create)
    creator.add_argument("-t", "--title", help="The post title.")
    creator.add_argument("-c", "--content", default="", help="The post content.")
    creator.add_argument("-a", "--author", default="", help="The post author.")
    creator.add_argument(
        "-s",
        "--slug",
        default="",
        help="A URL slug. Generated from the title if not provided.",
    )
    creator.add_argument(
        "-e", "--editor", action="store_true", help="Write the content in $EDITOR."
    )
    creator.add_argument(
        "-f", "--form", action="store_true", help="Fill in the post interactively."
    )

    getter = commands.add_parser("get", help="Show a single post.")
    getter.set_defaults(run=run, command=get)
    _add_identifier(getter)
    getter.add_argument("--json", action="store_true", help="Output as JSON.")

    updater = commands.add_parser("update", aliases=["edit"], help="Update a post.")
    updater.set_defaults(run=run, command=update)
    _add_identifier(updater)
    updater.add_argument("-t", "--title", help="A new title.")
    updater.add_argument("-c", "--content", help="New content.")
    updater.add_argument("-a", "--author", help="A new author.")
    updater.add_argument(
        "-e", "--editor", action="store_true", help="Edit the content in $EDITOR."
    )

    deleter = commands.add_parser("delete", aliases=["remove"], help="Delete a post.")
    deleter.set_defaults(run=run, command=delete)
    _add_identifier(deleter)
    deleter.add_argument(
        "-f", "--force", action="store_true", help="Skip the confirmation."
    )

    lister = commands.add_parser("list", help="List posts.")
    lister.set_defaults(run=run, command=list_)
    lister.add_argument(
        "-l",
        "--limit",
        type=int,
        default=0,
        help="The maximum number of posts to show, most recent first.",
    )
    lister.add_argument(
        "-o", "--offset", type=int, default=0, help="The number of posts to skip."
    )
    lister.add_argument("--json", action="store_true", help="Output as JSON.")

    return parse


def _add_identifier(parser: argparse.ArgumentParser):
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("-i", "--id", type=int, help="The post ID.")
    group.add_argument("-s", "--slug", help="The post slug.")


def _validate(parser: argparse.ArgumentParser, args: argparse.Namespace):
    if args.command is create and not (args.form or args.title):
        parser.error("the following arguments are required: -t/--title")
    if args.command is update and not (
        args.editor or any(getattr(args, f) is not None for f in _FIELDS)
    ):
        parser.error(
            "at least one of -t/--title, -c/--content, -a/--author "
            "or -e/--editor is required"
        )


_FIELDS = ("title", "content", "author")
