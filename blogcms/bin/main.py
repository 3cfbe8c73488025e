#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
import types

from blogcms import errors, settings
from blogcms.bin import posts
from blogcms.ui import Console

logger = logging.getLogger(__name__)


def get_parser():
    parser = argparse.ArgumentParser(
        prog="cms", description="Manage blog posts stored in a SQLite database."
    )
    parser.add_argument(
        "-d",
        "--database-url",
        dest="database_url",
        default=None,
        help="Database URL (e.g., sqlite://./blog.db). "
        "Defaults to $CMS_DATABASE, $DATABASE_URL or ./cms.db.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable verbose output.",
    )
    subparsers = parser.add_subparsers()
    for name, module in SUB_COMMANDS.items():
        # https://docs.python.org/3/library/argparse.html#sub-commands
        sub_parser = subparsers.add_parser(name, help=module.__doc__)
        module.configure_parser(sub_parser)
    return parser


SUB_COMMANDS: dict[str, types.ModuleType] = {
    "posts": posts,
}


def run(argv: list[str] | None = None, *, console: Console = None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)
    if "run" not in vars(args):
        parser.print_help(sys.stderr)
        parser.exit(2)
    validate = vars(args).get("validate")
    if validate:
        validate(parser, args)

    console = console or Console()
    try:
        args.settings = settings.get_settings(
            database=args.database_url, verbose=args.verbose or None
        )
        configure_logging(verbose=args.settings.verbose)
        logger.debug("Using database %r.", args.settings.database)
        return args.run(args, console=console) or 0
    except errors.BlogCMSError as e:
        console.error(str(e))
        return 1


def configure_logging(*, verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
