"""Database clients and the factory that picks one for a context."""

from __future__ import annotations

import logging
from urllib.parse import unquote, urlsplit

from couchctl.client.base import Client, Document, Params
from couchctl.client.fs import FSClient
from couchctl.client.http import HTTPClient
from couchctl.dsn.context import FILE_SCHEME, Context
from couchctl.dsn.url import format_url
from couchctl.exceptions import UsageError

logger = logging.getLogger(__name__)

# Scheme aliases accepted in DSNs, mapped to the protocol actually spoken
HTTP_SCHEMES = {
    "http": "http",
    "https": "https",
    "couch": "http",
    "couchs": "https",
    "couchdb": "http",
    "couchdbs": "https",
}


def connect(
    context: Context,
    connect_timeout: float | None = None,
    request_timeout: float | None = None,
) -> Client:
    """Build a client for the server addressed by ``context``.

    Raises:
        UsageError: If the context has no server, or its scheme is unsupported
    """
    scheme, server_dsn = context.client_info()
    if scheme == FILE_SCHEME:
        root = unquote(urlsplit(server_dsn).path) or "/"
        logger.debug(f"using filesystem backend rooted at {root}")
        return FSClient(root)

    protocol = HTTP_SCHEMES.get(scheme)
    if protocol is None:
        raise UsageError(f"unsupported URL scheme: {scheme}", {"dsn": context.dsn()})
    href = format_url(protocol, "", "", context.host, context.root)
    logger.debug(f"connecting to {href}")
    return HTTPClient(
        href,
        username=context.user,
        password=context.password,
        connect_timeout=connect_timeout,
        request_timeout=request_timeout,
    )


__all__ = [
    "Client",
    "Document",
    "FSClient",
    "HTTPClient",
    "HTTP_SCHEMES",
    "Params",
    "connect",
]
