"""urltool.parse
URL parsing, serialization and reference resolution.
Shooting for compatibility with RFC 3986, but lenient: characters a component
may not contain are percent-encoded instead of rejected.
"""

import dataclasses
import logging
import re

from typing import Self
from urllib.parse import quote

from .errors import MissingAuthority, URLSyntaxError

logger = logging.getLogger(__name__)

# Each of these ABNF rules is from RFC 3986 or 5234.

# ALPHA = %x41-5A / %x61-7A
_ALPHA: str = r"[A-Za-z]"

# DIGIT = %x30-39
_DIGIT: str = r"[0-9]"

# HEXDIG = DIGIT / "A" / "B" / "C" / "D" / "E" / "F"
_HEXDIG: str = rf"(?:{_DIGIT}|[A-Fa-f])"

# unreserved = ALPHA / DIGIT / "-" / "." / "_" / "~"
_UNRESERVED: str = rf"(?:{_ALPHA}|{_DIGIT}|[-._~])"

# pct-encoded = "%" HEXDIG HEXDIG
_PCT_ENCODED: str = rf"%{_HEXDIG}{_HEXDIG}"
_PCT_ENCODED_PAT: re.Pattern[str] = re.compile(_PCT_ENCODED)

# sub-delims = "!" / "$" / "&" / "'" / "(" / ")" / "*" / "+" / "," / ";" / "="
_SUB_DELIMS_CHARS: str = "!$&'()*+,;="
_SUB_DELIMS: str = r"[!$&'()*+,;=]"

# scheme = ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
_SCHEME: str = rf"{_ALPHA}(?:{_ALPHA}|{_DIGIT}|[+\-.])*"
_SCHEME_PAT: re.Pattern[str] = re.compile(_SCHEME)

# dec-octet = DIGIT / %x31-39 DIGIT / "1" 2DIGIT / "2" %x30-34 DIGIT / "25" %x30-35
_DEC_OCTET: str = rf"(?:{_DIGIT}|[1-9]{_DIGIT}|1{_DIGIT}{{2}}|2[0-4]{_DIGIT}|25[0-5])"

# IPv4address = dec-octet "." dec-octet "." dec-octet "." dec-octet
_IPV4ADDRESS: str = rf"{_DEC_OCTET}\.{_DEC_OCTET}\.{_DEC_OCTET}\.{_DEC_OCTET}"

# h16 = 1*4HEXDIG
_H16: str = rf"(?:{_HEXDIG}{{1,4}})"

# ls32 = ( h16 ":" h16 ) / IPv4address
_LS32: str = rf"(?:{_H16}:{_H16}|{_IPV4ADDRESS})"

# IPv6address =                                      6( h16 ":" ) ls32
#                       /                       "::" 5( h16 ":" ) ls32
#                       / [               h16 ] "::" 4( h16 ":" ) ls32
#                       / [ *1( h16 ":" ) h16 ] "::" 3( h16 ":" ) ls32
#                       / [ *2( h16 ":" ) h16 ] "::" 2( h16 ":" ) ls32
#                       / [ *3( h16 ":" ) h16 ] "::"    h16 ":"   ls32
#                       / [ *4( h16 ":" ) h16 ] "::"              ls32
#                       / [ *5( h16 ":" ) h16 ] "::"              h16
#                       / [ *6( h16 ":" ) h16 ] "::"
_IPV6ADDRESS: str = (
    "(?:"
    + r"|".join(
        (
                                           rf"(?:{_H16}:){{6}}{_LS32}",
                                         rf"::(?:{_H16}:){{5}}{_LS32}",
                              rf"(?:{_H16})?::(?:{_H16}:){{4}}{_LS32}",
            rf"(?:(?:{_H16}:){{0,1}}{_H16})?::(?:{_H16}:){{3}}{_LS32}",
            rf"(?:(?:{_H16}:){{0,2}}{_H16})?::(?:{_H16}:){{2}}{_LS32}",
            rf"(?:(?:{_H16}:){{0,3}}{_H16})?::(?:{_H16}:){_LS32}",
            rf"(?:(?:{_H16}:){{0,4}}{_H16})?::{_LS32}",
            rf"(?:(?:{_H16}:){{0,5}}{_H16})?::{_H16}",
            rf"(?:(?:{_H16}:){{0,6}}{_H16})?::",
        )
    )
    + ")"
)

# IPvFuture = "v" 1*HEXDIG "." 1*( unreserved / sub-delims / ":" )
_IPVFUTURE: str = rf"v{_HEXDIG}+\.(?:{_UNRESERVED}|{_SUB_DELIMS}|:)+"

# IP-literal = "[" ( IPv6address / IPvFuture ) "]"
_IP_LITERAL: str = rf"\[(?:{_IPV6ADDRESS}|{_IPVFUTURE})\]"
_IP_LITERAL_PAT: re.Pattern[str] = re.compile(_IP_LITERAL)

# Component splitter from RFC 3986 appendix B. It matches every string.
_SPLIT_PAT: re.Pattern[str] = re.compile(
    r"\A(?:(?P<scheme>[^:/?#]+):)?(?://(?P<authority>[^/?#]*))?(?P<path>[^?#]*)(?:\?(?P<query>[^#]*))?(?:#(?P<fragment>.*))?\Z",
    re.DOTALL,
)

# The same, for strings whose leading "token:" turned out not to be a scheme.
_SCHEMELESS_SPLIT_PAT: re.Pattern[str] = re.compile(
    r"\A(?://(?P<authority>[^/?#]*))?(?P<path>[^?#]*)(?:\?(?P<query>[^#]*))?(?:#(?P<fragment>.*))?\Z",
    re.DOTALL,
)

# Characters left alone by percent-normalization, per component.
# (quote() never encodes unreserved characters, so only the extras are listed.)
_PATH_SAFE: str = _SUB_DELIMS_CHARS + ":@/"
_QUERY_SAFE: str = _SUB_DELIMS_CHARS + ":@/?"
_FRAGMENT_SAFE: str = _QUERY_SAFE
_USERNAME_SAFE: str = _SUB_DELIMS_CHARS
_PASSWORD_SAFE: str = _SUB_DELIMS_CHARS + ":"
_HOST_SAFE: str = _SUB_DELIMS_CHARS

# Leading and trailing C0 controls and space are stripped from input.
_C0_CONTROL_OR_SPACE: str = "".join(chr(i) for i in range(0x21))

DEFAULT_PORTS: dict[str, int] = {
    "ftp": 21,
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
}


@dataclasses.dataclass
class URL:
    """A parsed, normalized URL. Build these with parse() or parse_reference()."""

    scheme: str | None
    username: str | None
    password: str | None
    host: str | None
    port: int | None
    path: str
    query: str | None
    fragment: str | None

    @property
    def userinfo(self: Self) -> str | None:
        """username[:password]"""
        if self.username is None and self.password is None:
            return None
        result: str = self.username or ""
        if self.password is not None:
            result += f":{self.password}"
        return result

    @property
    def authority(self: Self) -> str | None:
        """userinfo@host:port"""
        if self.host is None:
            return None
        result: str = ""
        if self.userinfo is not None:
            result += f"{self.userinfo}@"
        result += self.host
        if self.port is not None:
            result += f":{self.port}"
        return result

    @property
    def segments(self: Self) -> list[str] | None:
        """The path split on "/", or None when the path is not absolute (e.g. mailto:user@example.com)"""
        if not self.path.startswith("/"):
            return None
        return self.path[1:].split("/")

    def serialize(self: Self) -> str:
        """RFC 3986 section 5.3"""
        result: str = ""
        if self.scheme is not None:
            result += f"{self.scheme}:"
        if self.authority is not None:
            result += f"//{self.authority}"
        elif self.path.startswith("//"):
            # Keep the path from being read back as an authority.
            result += "/."
        result += self.path
        if self.query is not None:
            result += f"?{self.query}"
        if self.fragment is not None:
            result += f"#{self.fragment}"
        return result

    def __str__(self: Self) -> str:
        return self.serialize()

    def join(self: Self, r: Self) -> Self:
        """The "Transform References" algorithm from RFC 3986 section 5.2.2,
        except that an empty reference does not inherit the base's query.
        """

        scheme: str | None
        username: str | None
        password: str | None
        host: str | None
        port: int | None
        path: str
        query: str | None

        if r.scheme is not None:
            scheme = r.scheme
            username = r.username
            password = r.password
            host = r.host
            port = r.port
            path = r.path
        else:
            if r.host is not None:
                username = r.username
                password = r.password
                host = r.host
                port = r.port
                path = remove_dot_segments(r.path)
            else:
                if len(r.path) == 0:
                    path = self.path
                elif r.path.startswith("/"):
                    path = remove_dot_segments(r.path)
                else:
                    path = remove_dot_segments(_merge_paths(self, r))
                username = self.username
                password = self.password
                host = self.host
                port = self.port
            scheme = self.scheme
        query = r.query

        if host is not None and len(path) == 0:
            path = "/"

        return self.__class__(
            scheme=scheme,
            username=username,
            password=password,
            host=host,
            port=drop_default_port(scheme, port),
            path=path,
            query=query,
            fragment=r.fragment,
        )


def normalize(text: str, safe: str) -> str:
    """Percent-encodes every character of text outside unreserved + safe.
    Well-formed percent-encodings are kept (and capitalized); a stray "%" becomes "%25".
    Undecodable input bytes (surrogate-escaped by the OS layer) are encoded as themselves.
    e.g. normalize("a b%2fc%", "/") == "a%20b%2Fc%25"
    """
    result: str = ""
    pos: int = 0
    for m in _PCT_ENCODED_PAT.finditer(text):
        result += quote(text[pos : m.start()], safe=safe, errors="surrogateescape") + m[0].upper()
        pos = m.end()
    return result + quote(text[pos:], safe=safe, errors="surrogateescape")


def normalize_path(path: str) -> str:
    return normalize(path, _PATH_SAFE)


def normalize_query(query: str) -> str:
    return normalize(query, _QUERY_SAFE)


def normalize_fragment(fragment: str) -> str:
    return normalize(fragment, _FRAGMENT_SAFE)


def normalize_username(username: str) -> str:
    return normalize(username, _USERNAME_SAFE)


def normalize_password(password: str) -> str:
    return normalize(password, _PASSWORD_SAFE)


def is_scheme(scheme: str) -> bool:
    return _SCHEME_PAT.fullmatch(scheme) is not None


def drop_default_port(scheme: str | None, port: int | None) -> int | None:
    if port is not None and scheme is not None and DEFAULT_PORTS.get(scheme) == port:
        return None
    return port


def parse_host(host: str) -> str:
    """Validates and normalizes a host: a reg-name, an IPv4 address, or a bracketed IP-literal."""
    if host.startswith("["):
        if _IP_LITERAL_PAT.fullmatch(host) is None:
            raise URLSyntaxError(f"invalid IPv6 address: {host}")
        return host.lower()
    bad: list[str] = [c for c in "/?#@:[]" if c in host]
    if len(bad) > 0:
        raise URLSyntaxError(f"invalid character {bad[0]!r} in host: {host}")
    return normalize(host.lower(), _HOST_SAFE)


def _parse_port(port: str) -> int:
    if re.fullmatch(rf"{_DIGIT}+", port) is None:
        raise URLSyntaxError(f"invalid port number: {port}")
    result: int = int(port, base=10)
    if result > 65535:
        raise URLSyntaxError(f"port number out of range: {port}")
    return result


def _parse_authority(authority: str, scheme: str | None) -> tuple[str | None, str | None, str, int | None]:
    """Splits userinfo@host:port. The userinfo ends at the last "@"."""
    userinfo, at, hostport = authority.rpartition("@")
    username: str | None = None
    password: str | None = None
    if len(at) > 0:
        raw_username, colon, raw_password = userinfo.partition(":")
        username = normalize_username(raw_username) or None
        if len(colon) > 0:
            password = normalize_password(raw_password) or None

    raw_host: str
    raw_port: str
    if hostport.startswith("["):
        end: int = hostport.find("]")
        if end == -1:
            raise URLSyntaxError(f"unterminated IPv6 address: {hostport}")
        raw_host, rest = hostport[: end + 1], hostport[end + 1 :]
        if len(rest) > 0 and not rest.startswith(":"):
            raise URLSyntaxError(f"invalid character after IPv6 address: {hostport}")
        raw_port = rest[1:]
    else:
        raw_host, _, raw_port = hostport.partition(":")

    if len(raw_host) == 0 and scheme != "file":
        raise URLSyntaxError(f"empty host: {authority!r}")
    host: str = parse_host(raw_host) if len(raw_host) > 0 else ""
    port: int | None = _parse_port(raw_port) if len(raw_port) > 0 else None
    return username, password, host, drop_default_port(scheme, port)


def _clean(data: str) -> str:
    data = data.strip(_C0_CONTROL_OR_SPACE)
    return re.sub(r"[\r\n\t]", "", data)


def _parse(data: str, absolute: bool, base_scheme: str | None = None) -> URL:
    data = _clean(data)
    m: re.Match[str] | None = _SPLIT_PAT.match(data)
    if m is None:
        raise URLSyntaxError(f"parse failed: {data}")

    scheme: str | None = m["scheme"]
    if scheme is not None and not is_scheme(scheme):
        if absolute:
            raise URLSyntaxError(f"invalid scheme: {scheme}")
        # Not a scheme after all, so "token:" is the start of a relative path.
        scheme = None
        m = _SCHEMELESS_SPLIT_PAT.match(data)
        if m is None:
            raise URLSyntaxError(f"parse failed: {data}")
    if scheme is None and absolute:
        raise URLSyntaxError(f"relative URL without a base: {data}")
    if scheme is not None:
        scheme = scheme.lower()

    username: str | None = None
    password: str | None = None
    host: str | None = None
    port: int | None = None
    if m["authority"] is not None:
        username, password, host, port = _parse_authority(m["authority"], scheme or base_scheme)

    path: str = normalize_path(m["path"])
    if host is not None and len(path) == 0:
        path = "/"
    if scheme is not None and path.startswith("/"):
        path = remove_dot_segments(path)

    query: str | None = m["query"]
    if query is not None:
        query = normalize_query(query)

    fragment: str | None = m["fragment"]
    if fragment is not None:
        fragment = normalize_fragment(fragment)

    return URL(
        scheme=scheme,
        username=username,
        password=password,
        host=host,
        port=port,
        path=path,
        query=query,
        fragment=fragment,
    )


def parse(data: str) -> URL:
    """Parses an absolute URL (e.g. "http://example.org/path?query#fragment").
    Raises URLSyntaxError if data is empty, has no valid scheme, or has a malformed authority.
    """
    if len(data.strip()) == 0:
        raise URLSyntaxError("empty URL")
    result: URL = _parse(data, absolute=True)
    logger.debug("parsed %r as %r", data, result)
    return result


def parse_reference(data: str, base_scheme: str | None = None) -> URL:
    """Parses a URL or a relative reference (e.g. "../path?query"). The empty string is a valid reference.
    A reference without a scheme has its authority checked against base_scheme, so "///c" is fine for file URLs.
    """
    return _parse(data, absolute=False, base_scheme=base_scheme)


def serialize(url: URL) -> str:
    return url.serialize()


def resolve(base: URL, reference: str) -> URL:
    """Resolves reference against base, which must have a scheme and an authority."""
    if base.scheme is None or base.host is None:
        raise MissingAuthority(f"cannot resolve a reference against {base.serialize()}")
    result: URL = base.join(parse_reference(reference, base_scheme=base.scheme))
    logger.debug("resolved %r against %s: %s", reference, base, result)
    return result


def remove_dot_segments(path: str) -> str:
    """Implementation of the "remove_dot_segments" routine from RFC 3986 section 5.2.4"""
    result: str = ""
    while len(path) > 0:
        if path.startswith("./") or path.startswith("../"):
            _, _, path = path.partition("/")
        elif path.startswith("/./") or path == "/.":
            path = f"/{path[len('/./') :]}"
        elif path.startswith("/../") or path == "/..":
            path = f"/{path[len('/../') :]}"
            result, _, _ = result.rpartition("/")
        elif path in (".", ".."):
            path = ""
        else:
            if path.startswith("/"):
                _, _, path = path.partition("/")
                result += "/"
            first_seg, slash, rest = path.partition("/")
            path = slash + rest
            result += first_seg
    return result


def _merge_paths(base: URL, r: URL) -> str:
    """Implementation of the "merge" routine defined in RFC 3986 section 5.2.3"""
    if base.host is not None and len(base.path) == 0:
        return f"/{r.path}"
    dirname, slash, _ = base.path.rpartition("/")
    return dirname + slash + r.path
