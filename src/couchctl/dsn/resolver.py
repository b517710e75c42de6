"""Resolution of a command-line DSN into an addressable resource.

Resolution is linear: parse the DSN, merge it with the current context,
classify the resulting path, and hand the result to a command. Any failure is
final for the invocation; nothing here is retried.

The ``Resolved`` value marks the boundary between the two error phases of a
command: failures before it exists are command-line usage problems, failures
after it are operational.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from couchctl.dsn.config import Config
from couchctl.dsn.context import Context
from couchctl.dsn.options import OptionValue, Options, merge_options
from couchctl.dsn.parser import parse_dsn
from couchctl.dsn.paths import (
    ALL_DBS_PATH,
    CLUSTER_SETUP_PATH,
    COMPACT,
    ENSURE_FULL_COMMIT,
    PURGE,
    REPLICATE_PATH,
    VIEW_CLEANUP,
    compact_view_locator,
    config_locator,
    db_command_locator,
    security_locator,
)

logger = logging.getLogger(__name__)


class ResourceKind(StrEnum):
    """The kinds of resource a DSN can address."""

    SERVER = "server"
    DATABASE = "database"
    DOCUMENT = "document"
    ATTACHMENT = "attachment"
    CONFIG = "config"
    SECURITY = "security"
    CLUSTER_SETUP = "cluster-setup"
    ALL_DBS = "all-dbs"
    REPLICATE = "replicate"
    VIEW_CLEANUP = "view-cleanup"
    FLUSH = "flush"
    COMPACT = "compact"
    COMPACT_VIEWS = "compact-views"
    PURGE = "purge"


_DB_COMMAND_KINDS = {
    VIEW_CLEANUP: ResourceKind.VIEW_CLEANUP,
    ENSURE_FULL_COMMIT: ResourceKind.FLUSH,
    COMPACT: ResourceKind.COMPACT,
    PURGE: ResourceKind.PURGE,
}

_SERVER_PATH_KINDS = {
    ALL_DBS_PATH: ResourceKind.ALL_DBS,
    CLUSTER_SETUP_PATH: ResourceKind.CLUSTER_SETUP,
    REPLICATE_PATH: ResourceKind.REPLICATE,
}


def classify(context: Context) -> ResourceKind:
    """Classify the resource addressed by ``context``.

    Reserved endpoints are recognised first; otherwise the most specific of
    attachment, document, database and server wins.
    """
    path = context.resource_path
    if config_locator(path):
        return ResourceKind.CONFIG
    if compact_view_locator(path):
        return ResourceKind.COMPACT_VIEWS
    if security_locator(path):
        return ResourceKind.SECURITY
    if command := db_command_locator(path):
        return _DB_COMMAND_KINDS[command.command]
    if kind := _SERVER_PATH_KINDS.get(path):
        return kind
    if context.has_attachment():
        return ResourceKind.ATTACHMENT
    if context.has_doc():
        return ResourceKind.DOCUMENT
    if context.has_db():
        return ResourceKind.DATABASE
    return ResourceKind.SERVER


@dataclass(frozen=True)
class Resolved:
    """A fully resolved command target."""

    context: Context
    options: Options = field(default_factory=dict)
    kind: ResourceKind = ResourceKind.SERVER

    @property
    def path(self) -> str:
        return self.context.resource_path


def resolve(
    config: Config,
    dsn: str | None,
    *option_sources: Mapping[str, OptionValue],
) -> Resolved:
    """Resolve ``dsn`` against the current context of ``config``.

    Without a DSN the current context is used as is. Query-string options
    come first in the option precedence, followed by ``option_sources``.

    Raises:
        UsageError: If the DSN is malformed, or there is neither a DSN nor a
            current context
    """
    if dsn:
        parsed, query = parse_dsn(dsn)
        current = config.current_or_none()
        context = parsed.merge(current)
        if context is not parsed:
            logger.debug(f"incomplete DSN provided: {dsn!r}, merged with current context")
    else:
        context, query = config.current(), {}

    options = merge_options(query, *option_sources)
    if options:
        logger.debug(f"request options: {options}")
    kind = classify(context)
    logger.debug(f"resolved {context.dsn()!r} as {kind}")
    return Resolved(context=context, options=options, kind=kind)
