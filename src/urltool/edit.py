"""urltool.edit
Operations that derive a new URL from an existing one.
None of these modify their argument.
"""

import dataclasses
import logging
import string

from .errors import InvalidArgument, InvalidHost, InvalidScheme, MissingAuthority, NoPath, TemplateError, URLSyntaxError
from .parse import (
    URL,
    drop_default_port,
    is_scheme,
    normalize_fragment,
    normalize_password,
    normalize_path,
    normalize_query,
    normalize_username,
    parse_host,
    remove_dot_segments,
)

logger = logging.getLogger(__name__)


def trim(url: URL, count: int) -> URL:
    """Removes the last count segments from the path of url.
    Trimming more segments than there are leaves the root path "/".
    e.g. trim(parse("https://example.com/a/b/c"), 2) == parse("https://example.com/a")
    """
    if count < 0:
        raise InvalidArgument(f"segment count must not be negative: {count}")
    segments: list[str] | None = url.segments
    if segments is None:
        raise NoPath(f"URL has no path: {url}")
    kept: list[str] = segments[: max(len(segments) - count, 0)]
    logger.debug("trimming %d of %d segments from %s", len(segments) - len(kept), len(segments), url)
    return dataclasses.replace(url, path="/" + "/".join(kept))


def _absolute_path(url: URL, path: str) -> str:
    if url.host is not None and not path.startswith("/"):
        path = f"/{path}"
    if url.scheme is not None and path.startswith("/"):
        path = remove_dot_segments(path)
    return path


def rewrite(
    url: URL,
    *,
    scheme: str | None = None,
    host: str | None = None,
    username: str | None = None,
    password: str | None = None,
    path: str | None = None,
    query: str | None = None,
    fragment: str | None = None,
) -> URL:
    """Returns a copy of url with the given components replaced. None means "leave it alone".

    Overrides are applied in the order of the parameters, so a host given here
    is in place before username and password are checked against it.
    Raises InvalidScheme (including a non-file scheme on a URL with an empty host),
    InvalidHost, or MissingAuthority (for userinfo on a URL without a host).
    """
    result: URL = dataclasses.replace(url)

    if scheme is not None:
        if not is_scheme(scheme):
            raise InvalidScheme(f"not a valid scheme: {scheme!r}")
        result.scheme = scheme.lower()

    if host is not None:
        if len(host) == 0:
            raise InvalidHost("host must not be empty")
        try:
            result.host = parse_host(host)
        except URLSyntaxError as e:
            raise InvalidHost(e.detail) from e
        result.path = _absolute_path(result, result.path)

    if username is not None:
        if result.host is None:
            raise MissingAuthority(f"cannot set a username on a URL without a host: {url}")
        result.username = normalize_username(username) or None

    if password is not None:
        if result.host is None:
            raise MissingAuthority(f"cannot set a password on a URL without a host: {url}")
        result.password = normalize_password(password) or None

    if path is not None:
        result.path = _absolute_path(result, normalize_path(path))

    if query is not None:
        result.query = normalize_query(query)

    if fragment is not None:
        result.fragment = normalize_fragment(fragment)

    if result.host == "" and result.scheme != "file":
        raise InvalidScheme(f"only file URLs may have an empty host, not {result.scheme}: {url}")

    result.port = drop_default_port(result.scheme, result.port)
    logger.debug("rewrote %s as %s", url, result)
    return result


def template_fields(url: URL) -> dict[str, str]:
    """The flat field mapping handed to the format template. Missing components are empty strings."""
    return {
        "scheme": url.scheme or "",
        "host": url.host or "",
        "port": str(url.port) if url.port is not None else "",
        "username": url.username or "",
        "password": url.password or "",
        "path": url.path,
        "query": url.query or "",
        "fragment": url.fragment or "",
    }


def render(template: str, url: URL) -> str:
    """Substitutes the fields of url into a string.Template, e.g. "$scheme://$host"."""
    try:
        return string.Template(template).substitute(template_fields(url))
    except KeyError as e:
        raise TemplateError(f"unknown field {e.args[0]!r} in template: {template}") from e
    except ValueError as e:
        raise TemplateError(f"{e}: {template}") from e
