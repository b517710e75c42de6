"""DSN resolution: parse, merge with the current context, classify."""

from couchctl.dsn.config import ADHOC_CONTEXT, DEFAULT_CONFIG_FILE, ENV_DSN, Config
from couchctl.dsn.context import Context
from couchctl.dsn.options import OptionValue, Options, merge_options, parse_bool
from couchctl.dsn.parser import parse_dsn
from couchctl.dsn.paths import (
    PathParts,
    compact_view_locator,
    config_locator,
    db_command_locator,
    security_locator,
    split_path,
)
from couchctl.dsn.resolver import Resolved, ResourceKind, classify, resolve

__all__ = [
    "ADHOC_CONTEXT",
    "Config",
    "Context",
    "DEFAULT_CONFIG_FILE",
    "ENV_DSN",
    "OptionValue",
    "Options",
    "PathParts",
    "Resolved",
    "ResourceKind",
    "classify",
    "compact_view_locator",
    "config_locator",
    "db_command_locator",
    "merge_options",
    "parse_bool",
    "parse_dsn",
    "resolve",
    "security_locator",
    "split_path",
]
