"""URL parsing and formatting used by the DSN layer.

The standard library's ``urlsplit`` accepts malformed percent-escapes and
defers port validation; both are checked eagerly here so that a bad DSN is
reported before anything else happens.
"""

from __future__ import annotations

import re
from typing import NamedTuple
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from couchctl.exceptions import UsageError

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_PATH_SAFE = "/:@!$&'()*+,;=~"


class URLParts(NamedTuple):
    scheme: str
    user: str
    password: str
    host: str
    path: str
    query: dict[str, str]


def parse_url(raw: str) -> URLParts:
    """Parse ``raw`` into its components, percent-decoding user info and path.

    Repeated query parameters keep their last value.

    Raises:
        UsageError: If the URL is malformed
    """
    if match := _BAD_ESCAPE.search(raw):
        escape = raw[match.start() : match.start() + 3]
        raise UsageError(f'parse "{raw}": invalid URL escape "{escape}"', {"dsn": raw})
    try:
        parts = urlsplit(raw)
        parts.port  # noqa: B018 - validates the port
    except ValueError as e:
        raise UsageError(f'parse "{raw}": {e}', {"dsn": raw}) from e

    userinfo, _, host = parts.netloc.rpartition("@")
    user, _, password = userinfo.partition(":")
    return URLParts(
        scheme=parts.scheme,
        user=unquote(user),
        password=unquote(password),
        host=host,
        path=unquote(parts.path),
        query=dict(parse_qsl(parts.query, keep_blank_values=True)),
    )


def format_url(scheme: str, user: str, password: str, host: str, path: str) -> str:
    """Build a URL string, escaping user info and path."""
    out = f"{scheme}:" if scheme else ""
    if (scheme or host or user or password) and (host or path or user or password):
        out += "//"
        if user or password:
            out += quote(user, safe="")
            if password:
                out += ":" + quote(password, safe="")
            out += "@"
        out += host
    if path and host and not path.startswith("/"):
        path = "/" + path
    return out + quote(path, safe=_PATH_SAFE)
