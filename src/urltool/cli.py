"""urltool: parse, resolve, trim, rewrite and query URLs from the command line.

Every command prints its result to stdout and exits 0, or prints
"*** <message>" and exits 1. A URL argument that is left out is read from stdin.
"""

import argparse
import logging
import sys
from typing import Callable

from rich.console import Console

from . import __version__
from .edit import render, rewrite, trim
from .errors import IOFailure, URLSyntaxError, URLToolError
from .parse import parse, resolve
from .query import decode, encode, format_listing, merge_params

logger = logging.getLogger(__name__)

console = Console(soft_wrap=True, highlight=False, markup=False, emoji=False)


def read_stdin() -> str:
    try:
        return sys.stdin.read()
    except (OSError, UnicodeDecodeError) as e:
        raise IOFailure(f"could not read standard input: {e}") from e


def _input(value: str | None) -> str:
    """The argument if it was given, otherwise all of stdin."""
    if value is not None:
        return value
    logger.debug("no argument given, reading standard input")
    return read_stdin()


def cmd_normalize(args: argparse.Namespace) -> list[str]:
    return [parse(_input(args.url)).serialize()]


def cmd_resolve(args: argparse.Namespace) -> list[str]:
    base = parse(_input(args.base))
    return [resolve(base, args.url).serialize()]


def cmd_trim(args: argparse.Namespace) -> list[str]:
    url = parse(_input(args.url))
    return [trim(url, args.count).serialize()]


def cmd_set(args: argparse.Namespace) -> list[str]:
    url = parse(_input(args.url))
    result = rewrite(
        url,
        scheme=args.scheme,
        host=args.host,
        username=args.username,
        password=args.password,
        path=args.path,
        query=args.query,
        fragment=args.fragment,
    )
    return [result.serialize()]


def _query_string(text: str) -> str:
    """The query of text if it is a URL, otherwise text itself minus any leading "?".
    Text like "q:1=2&a=b" parses as an opaque URL without a query, so that counts as a bare query too.
    """
    try:
        url = parse(text)
    except URLSyntaxError:
        return text.strip().removeprefix("?")
    if url.host is None and url.query is None:
        return text.strip()
    return url.query or ""


def cmd_query(args: argparse.Namespace) -> list[str]:
    query = _query_string(_input(args.input))
    if args.select:
        return [value or "" for _, value in decode(query, set(args.select))]
    return format_listing(decode(query))


def cmd_encode(args: argparse.Namespace) -> list[str]:
    return [encode(merge_params(args.tokens, args.key, args.value))]


def cmd_format(args: argparse.Namespace) -> list[str]:
    url = parse(_input(args.url))
    return [render(args.template, url)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="urltool", description="Parse and manipulate URLs")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Log debugging information to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("normalize", help="Print a URL in canonical form")
    p.add_argument("url", nargs="?", help="URL (default: read stdin)")
    p.set_defaults(handler=cmd_normalize)

    p = sub.add_parser("resolve", help="Resolve a relative URL against an absolute base")
    p.add_argument("--base", help="Absolute base URL (default: read stdin)")
    p.add_argument("url", help="Reference to resolve")
    p.set_defaults(handler=cmd_resolve)

    p = sub.add_parser("trim", help="Trim components from the end of a URL's path")
    p.add_argument("-n", "--count", type=int, required=True, help="Number of path segments to remove")
    p.add_argument("url", nargs="?", help="URL (default: read stdin)")
    p.set_defaults(handler=cmd_trim)

    p = sub.add_parser("set", help="Replace components of a URL")
    for name in ("scheme", "host", "username", "password", "path", "query", "fragment"):
        p.add_argument(f"--{name}", help=f"New {name}")
    p.add_argument("url", nargs="?", help="URL (default: read stdin)")
    p.set_defaults(handler=cmd_set)

    p = sub.add_parser("query", help="Decode the query parameters of a URL or query string")
    p.add_argument("-s", "--select", action="append", metavar="KEY", help="Print only the values of KEY (repeatable)")
    p.add_argument("input", nargs="?", help="URL or query string (default: read stdin)")
    p.set_defaults(handler=cmd_query)

    p = sub.add_parser("encode", help="Encode parameters as a query string")
    p.add_argument("tokens", nargs="*", metavar="KEY[=VALUE]", help="Parameters, in order")
    p.add_argument("-k", "--key", action="append", default=[], help="Parameter name, paired with --value in order")
    p.add_argument("-v", "--value", action="append", default=[], help="Parameter value for the matching --key")
    p.set_defaults(handler=cmd_encode)

    p = sub.add_parser("format", help="Render URL components through a template ($scheme, $host, $path, ...)")
    p.add_argument("template", help="Template text")
    p.add_argument("url", nargs="?", help="URL (default: read stdin)")
    p.set_defaults(handler=cmd_format)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    handler: Callable[[argparse.Namespace], list[str]] = args.handler
    try:
        lines = handler(args)
    except URLToolError as err:
        console.print(f"*** {err}")
        return 1

    # Verbatim: tabs and control characters in decoded values are kept.
    for line in lines:
        console.file.write(f"{line}\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
