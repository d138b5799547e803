"""Application entry point for the postrank command line."""

from __future__ import annotations

import argparse
import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint

import settings
from adapters.json_storage import JsonFileStorage
from adapters.sqlite_storage import SQLiteStorage
from core.errors import DuplicatePostError, PersistenceError, ValidationError
from core.models import NewPost, post_to_record
from core.ports import PostRepository
from core.queries import PERIODS, SORT_KEYS, PostQueries
from core.store import PostStore
from core.urls import canonicalize_url

NAME = "POSTRANK"
FONT = "tarty-1"

EXIT_OK = 0
EXIT_FAULT = 1
EXIT_REJECTED = 2


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    # Rotating file log is opt-in; relative paths live under the project root.
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/postrank.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if handlers:
        logging.basicConfig(level=level, handlers=handlers)


def _build_repository() -> PostRepository:
    # The backend is picked from config so the core store never knows which
    # durable format sits behind it.
    storage = settings.STORAGE
    if storage.backend == "sqlite":
        return SQLiteStorage(storage.path)
    return JsonFileStorage(storage.path, retries=storage.write_retries)


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _cmd_add(store: PostStore, queries: PostQueries, args: argparse.Namespace) -> int:
    url = canonicalize_url(args.url)
    existing = store.find_by_url(url)
    if existing:
        raise DuplicatePostError(existing)
    post = store.add(NewPost(url=url, language=args.language, title=args.title, author=args.author))
    _emit(post_to_record(post))
    return EXIT_OK


def _cmd_vote(store: PostStore, queries: PostQueries, args: argparse.Namespace) -> int:
    vote = store.upvote if args.command == "upvote" else store.downvote
    post = vote(args.post_id)
    if post is None:
        print(f"Post not found: {args.post_id}")
        return EXIT_REJECTED
    _emit(post_to_record(post))
    return EXIT_OK


def _cmd_show(store: PostStore, queries: PostQueries, args: argparse.Namespace) -> int:
    if args.url:
        post = store.find_by_url(canonicalize_url(args.url))
        key = args.url
    elif args.post_id:
        post = store.find_by_id(args.post_id)
        key = args.post_id
    else:
        raise ValidationError("show needs a post id or --url")
    if post is None:
        print(f"Post not found: {key}")
        return EXIT_REJECTED
    _emit(post_to_record(post))
    return EXIT_OK


def _cmd_list(store: PostStore, queries: PostQueries, args: argparse.Namespace) -> int:
    limit = args.limit if args.limit is not None else settings.LISTING.default_limit
    sort_by = args.sort or settings.LISTING.default_sort
    page = queries.paginated(args.page, limit, sort_by)
    _emit(
        {
            "posts": [post_to_record(post) for post in page.items],
            "totalPosts": page.total_count,
            "page": page.page,
            "limit": page.limit,
            "hasMore": page.has_more,
        }
    )
    return EXIT_OK


def _cmd_top(store: PostStore, queries: PostQueries, args: argparse.Namespace) -> int:
    post = queries.top_in_window(args.period)
    if post is None:
        print(f"No posts found for the period: {args.period}")
        return EXIT_REJECTED
    _emit(post_to_record(post))
    return EXIT_OK


_COMMANDS = {
    "add": _cmd_add,
    "upvote": _cmd_vote,
    "downvote": _cmd_vote,
    "show": _cmd_show,
    "list": _cmd_list,
    "top": _cmd_top,
}


# Commands that change the collection and get a final flush before exit.
MUTATING_COMMANDS = frozenset({"add", "upvote", "downvote"})


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="postrank")
    parser.add_argument("--quiet", action="store_true", help="Skip the banner")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Submit a new post")
    add.add_argument("url")
    add.add_argument("--title", default=None)
    add.add_argument("--author", default=None)
    add.add_argument("--language", default="en", help="ISO 639-1 code (default: en)")

    for name in ("upvote", "downvote"):
        vote = subparsers.add_parser(name, help=f"{name.capitalize()} a post by id")
        vote.add_argument("post_id")

    show = subparsers.add_parser("show", help="Show one post by id or URL")
    show.add_argument("post_id", nargs="?")
    show.add_argument("--url", default=None)

    listing = subparsers.add_parser("list", help="List posts page by page")
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--limit", type=int, default=None)
    listing.add_argument("--sort", choices=SORT_KEYS, default=None)

    top = subparsers.add_parser("top", help="Show the top post of a trailing window")
    top.add_argument("--period", choices=PERIODS, default="day")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if not args.quiet:
        _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    try:
        store = PostStore.open(_build_repository())
    except PersistenceError:
        logger.exception("Could not load posts from %s", settings.STORAGE.path)
        return EXIT_FAULT
    if store.degraded:
        logger.warning("Started with an empty collection: %s", store.load_warning)

    queries = PostQueries(store)
    try:
        return _COMMANDS[args.command](store, queries, args)
    except DuplicatePostError as exc:
        print(f"This post has already been submitted (id={exc.existing.id}).")
        return EXIT_REJECTED
    except ValidationError as exc:
        print(f"Invalid request: {exc}")
        return EXIT_REJECTED
    except PersistenceError:
        logger.exception("Failed to persist changes to %s", settings.STORAGE.path)
        return EXIT_FAULT
    finally:
        # Read-only commands leave the durable record untouched.
        if args.command in MUTATING_COMMANDS:
            try:
                store.close()
            except PersistenceError:
                logger.exception("Final flush to %s failed", settings.STORAGE.path)


if __name__ == "__main__":
    raise SystemExit(main())
