"""urltool.query
application/x-www-form-urlencoded query strings.

A parameter list is a list of (key, value) pairs. A value of None is a bare
key ("flag"), which is not the same thing as an empty value ("flag=").
Order and duplicate keys are preserved.
"""

import logging

from typing import Collection, Iterable, Sequence
from urllib.parse import quote_plus, unquote_plus

from .errors import InvalidArgument, UnbalancedArguments

logger = logging.getLogger(__name__)

Param = tuple[str, str | None]


def decode(query: str, select: Collection[str] | None = None) -> list[Param]:
    """Splits query into its parameters, decoding "+" and percent-encodings.
    If select is given, only parameters whose key is in it are kept.
    e.g. decode("a=1&b=2&a=3", {"a"}) == [("a", "1"), ("a", "3")]
    """
    result: list[Param] = []
    for piece in query.split("&"):
        if len(piece) == 0:
            continue
        raw_key, eq, raw_value = piece.partition("=")
        key: str = unquote_plus(raw_key)
        if select is not None and key not in select:
            continue
        result.append((key, unquote_plus(raw_value) if len(eq) > 0 else None))
    return result


def encode(params: Iterable[Param]) -> str:
    """Inverse of decode(). Spaces become "+"; "&", "=", "%" and "+" are always escaped.
    e.g. encode([("q", "hello world"), ("flag", None)]) == "q=hello+world&flag"
    A bare key must not be empty: it would encode to nothing.
    """
    pieces: list[str] = []
    for key, value in params:
        if value is None:
            if len(key) == 0:
                raise InvalidArgument("a parameter without a value needs a name")
            pieces.append(_quote(key))
        else:
            pieces.append(f"{_quote(key)}={_quote(value)}")
    return "&".join(pieces)


def _quote(text: str) -> str:
    return quote_plus(text, safe="", errors="surrogateescape")


def parse_token(token: str) -> Param:
    """KEY=VALUE -> (KEY, VALUE); KEY -> (KEY, None)"""
    key, eq, value = token.partition("=")
    return key, value if len(eq) > 0 else None


def merge_params(tokens: Sequence[str], keys: Sequence[str], values: Sequence[str]) -> list[Param]:
    """Combines positional KEY[=VALUE] tokens with explicit key/value pairs.

    Parameters are keyed by name, so a later assignment replaces an earlier one
    and explicit pairs (applied after the tokens) win. A key keeps the position
    where it first appeared.
    """
    if len(keys) != len(values):
        raise UnbalancedArguments(f"got {len(keys)} key(s) but {len(values)} value(s)")
    merged: dict[str, str | None] = {}
    for key, value in map(parse_token, tokens):
        merged[key] = value
    for key, value in zip(keys, values):
        if key in merged:
            logger.debug("explicit value for %r replaces %r", key, merged[key])
        merged[key] = value
    return list(merged.items())


def format_listing(params: Sequence[Param]) -> list[str]:
    """One "key  value" line per parameter, keys padded to the widest one. Valueless keys stand alone."""
    if len(params) == 0:
        return []
    widest: int = max(len(key) for key, _ in params)
    return [f"{key.ljust(widest)}  {value}" if value else key for key, value in params]
