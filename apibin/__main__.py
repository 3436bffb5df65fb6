#!/usr/bin/env python3

import os
import sys
import json
import logging
import argparse
from typing import List, Optional

import pydantic
import uvicorn

from apibin import settings as _settings
from apibin.api.api import create_app
from apibin.storage import BaselineError, OrderedBoundedStore, load_baseline


def get_parser(program: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=program)

    commands = parser.add_subparsers(
        description="Available sub-commands: init, books, openapi, run",
        dest="command",
        required=True,
        metavar="<command>",
        help="the sub-command to be executed"
    )

    parser_init = commands.add_parser(
        "init",
        description="Initialize the project by creating a config file with default values"
    )

    parser_books = commands.add_parser(
        "books",
        description="Show the baseline dataset of the books collection together with the books' versions"
    )

    parser_openapi = commands.add_parser(
        "openapi",
        description="Print the OpenAPI definition of the REST API"
    )

    parser_run = commands.add_parser(
        "run",
        description="Run 'uvicorn' ASGI server to serve the apibin REST API"
    )

    parser_init.add_argument(
        "--path",
        type=str,
        metavar="p",
        help=f"Path to the newly created config file (default: '{_settings.CONFIG_PATHS[0]}')"
    )
    parser_init.add_argument(
        "--force",
        action="store_true",
        help="Allow overwriting an existing config file"
    )

    parser_books.add_argument(
        "--baseline",
        type=str,
        metavar="p",
        help="Path to a baseline file to be shown instead of the configured one"
    )
    parser_books.add_argument(
        "--json",
        action="store_true",
        help="Print the books as JSON array instead of a table"
    )
    parser_books.add_argument(
        "--indent",
        type=int,
        metavar="n",
        help="Indent the JSON array with n spaces (only with --json)"
    )

    parser_openapi.add_argument(
        "--indent",
        type=int,
        default=2,
        metavar="n",
        help="Indent the JSON document with n spaces (default: 2)"
    )

    parser_run.add_argument(
        "--host",
        type=str,
        metavar="host",
        help="Host address to listen on (default from config: server.host)"
    )
    parser_run.add_argument(
        "--port",
        type=int,
        metavar="port",
        help="TCP port to listen on (default from config: server.port)"
    )
    parser_run.add_argument(
        "--config",
        type=str,
        metavar="config",
        default="config.json",
        help="Config file searched before the default locations (default: 'config.json')"
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable full debug logging (probably very verbose)"
    )
    parser_run.add_argument(
        "--no-background-tasks",
        action="store_true",
        help="Neither reset the books periodically nor simulate server-side updates"
    )
    parser_run.add_argument(
        "--no-access-log",
        action="store_true",
        help="Don't log every incoming request"
    )
    parser_run.add_argument(
        "--use-colors",
        action="store_true",
        help="Colorize the uvicorn log output"
    )
    parser_run.add_argument(
        "--root-path",
        type=str,
        default="",
        metavar="p",
        help="ASGI root path when served behind a proxy below a sub-path"
    )

    return parser


def init_project(args: argparse.Namespace) -> int:
    path = args.path or _settings.CONFIG_PATHS[0]
    if os.path.exists(path) and not args.force:
        print(
            f"A config file has been found at {path!r}. If you want a fresh configuration, "
            f"remove the config file or use the '--force' flag, then run this command again.",
            file=sys.stderr
        )
        return 1
    _settings.store_configuration(path=path)
    print(f"Successfully created the new config file {path!r}.")
    return 0


def print_table(rows: List[dict], columns: List[str]):
    widths = [max([len(column)] + [len(str(row.get(column, ""))) for row in rows]) for column in columns]
    print(" | ".join(column.ljust(width) for column, width in zip(columns, widths)))
    print("-+-".join("-" * width for width in widths))
    for row in rows:
        print(" | ".join(str(row.get(column, "")).ljust(width) for column, width in zip(columns, widths)))


def show_books(args: argparse.Namespace) -> int:
    path = args.baseline
    if path is None:
        path = _settings.Settings().store.baseline
    try:
        baseline = load_baseline(path)
    except BaselineError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    store = OrderedBoundedStore(max(len(baseline), 1))
    store.reload(baseline)
    books = []
    for key, version, _ in store.list():
        book = store.get(key).payload
        books.append({"id": key, "version": version, **book})

    if args.json:
        print(json.dumps(books, indent=args.indent))
        return 0
    print_table(books, ["id", "version", "title", "author", "ratings", "rating_average"])
    return 0


def print_openapi(args: argparse.Namespace) -> int:
    app = create_app(configure_logging=False, start_background_tasks=False)
    print(json.dumps(app.openapi(), indent=args.indent))
    return 0


def run_server(args: argparse.Namespace) -> int:
    _settings.CONFIG_PATHS.insert(0, args.config)
    try:
        settings = _settings.Settings()
    except pydantic.ValidationError as exc:
        print(f"Invalid configuration, please fix the config file or environment:\n{exc}", file=sys.stderr)
        return 1

    if args.debug:
        settings.logging.root["level"] = "DEBUG"
        for handler in settings.logging.handlers.values():
            handler["level"] = "DEBUG"
    host = settings.server.host if args.host is None else args.host
    port = settings.server.port if args.port is None else args.port

    try:
        app = create_app(settings=settings, start_background_tasks=not args.no_background_tasks)
    except BaselineError as exc:
        print(f"Failed to load the books baseline: {exc}", file=sys.stderr)
        return 1

    logging.getLogger("apibin").info(f"Serving {settings.store.max_size} books at most on {host}:{port}")
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_config=settings.logging.model_dump(),
        log_level=logging.DEBUG if args.debug else logging.INFO,
        access_log=not args.no_access_log,
        use_colors=args.use_colors,
        proxy_headers=True,
        root_path=args.root_path
    )
    return 0


def main(argv: Optional[List[str]] = None, program_name: str = "apibin") -> int:
    namespace = get_parser(program_name).parse_args(argv)

    command_functions = {
        "init": init_project,
        "books": show_books,
        "openapi": print_openapi,
        "run": run_server
    }
    return command_functions[namespace.command](namespace)


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:], sys.argv[0] if not sys.argv[0].endswith("__main__.py") else "apibin"))
