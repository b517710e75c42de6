"""Path splitting and reserved-path classification.

A resource path has up to four parts: the server root (for servers mounted
under a URL subdirectory), the database, the document ID and the attachment
filename. A literal ``//`` ends the server root when it cannot be inferred::

    split_path("/db/doc/file.txt")     -> ("", "db", "doc", "file.txt")
    split_path("couchdb//db")          -> ("couchdb/", "db", "", "")
    split_path("/db/_design/foo")      -> ("", "db", "_design/foo", "")

The classifiers recognise the reserved endpoints of the server API. They
return ``None`` when a path is not of their shape, so callers can try them in
sequence and fall through to plain database/document addressing.
"""

from __future__ import annotations

import posixpath
from typing import NamedTuple

ROOT_BOUNDARY = "//"
DESIGN_PREFIX = "_design"

VIEW_CLEANUP = "_view_cleanup"
ENSURE_FULL_COMMIT = "_ensure_full_commit"
COMPACT = "_compact"
PURGE = "_purge"

DB_COMMANDS = frozenset({VIEW_CLEANUP, ENSURE_FULL_COMMIT, COMPACT, PURGE})

ALL_DBS_PATH = "/_all_dbs"
CLUSTER_SETUP_PATH = "/_cluster_setup"
REPLICATE_PATH = "/_replicate"


class PathParts(NamedTuple):
    """The four addressable parts of a resource path."""

    root: str
    database: str
    document: str
    filename: str


class ConfigLocator(NamedTuple):
    node: str
    key: str


class DBCommandLocator(NamedTuple):
    command: str
    database: str


class CompactViewLocator(NamedTuple):
    database: str
    design_doc: str


def split_path(path: str) -> PathParts:
    """Split ``path`` into root, database, document and filename.

    At most three trailing segments are peeled off, filename first. Whatever
    is left is the root. Everything before a ``//`` is a fixed root prefix.
    """
    head, boundary, tail = path.partition(ROOT_BOUNDARY)
    if boundary:
        parts = split_path(tail)
        return parts._replace(root=f"{head}/{parts.root}")

    rest = path.rstrip("/")
    segments: list[str] = []
    while rest and rest != "/" and len(segments) < 3:
        segments.insert(0, posixpath.basename(rest))
        rest = posixpath.dirname(rest)
    if rest == "/":
        rest = ""

    segments += [""] * (3 - len(segments))
    database, document, filename = segments

    if document == DESIGN_PREFIX and filename:
        document, filename = f"{DESIGN_PREFIX}/{filename}", ""
    elif database == DESIGN_PREFIX and rest:
        document = f"{DESIGN_PREFIX}/{document}"
        database = posixpath.basename(rest)
        rest = posixpath.dirname(rest)
        if rest == "/":
            rest = ""

    return PathParts(rest, database, document, filename)


def strip_root(path: str) -> str:
    """Return the part of ``path`` after the server-root boundary, if any."""
    _, boundary, tail = path.partition(ROOT_BOUNDARY)
    return tail if boundary else path


def _segments(path: str) -> list[str]:
    if not path.startswith("/"):
        path = "/" + path
    return path.split("/")


def config_locator(path: str) -> ConfigLocator | None:
    """Match ``/_node/<node>/_config[/<section>[/<key>]]``."""
    parts = _segments(path)
    if len(parts) < 4 or parts[1] != "_node" or parts[3] != "_config":
        return None
    return ConfigLocator(parts[2], "/".join(parts[4:]))


def security_locator(path: str) -> str | None:
    """Match ``/<db>/_security`` and return the database name."""
    parts = _segments(path)
    if len(parts) != 3 or parts[2] != "_security":
        return None
    return parts[1]


def db_command_locator(path: str) -> DBCommandLocator | None:
    """Match ``/<db>/<command>`` for the database maintenance endpoints."""
    parts = _segments(path)
    if len(parts) != 3 or parts[2] not in DB_COMMANDS:
        return None
    return DBCommandLocator(parts[2], parts[1])


def compact_view_locator(path: str) -> CompactViewLocator | None:
    """Match ``/<db>/_compact/<design-doc>``."""
    parts = _segments(path)
    if len(parts) != 4 or parts[2] != COMPACT:
        return None
    return CompactViewLocator(parts[1], parts[3])
