"""Request options gathered from the DSN query string and the command line."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from couchctl.exceptions import UsageError

OptionValue = str | bool
Options = dict[str, OptionValue]

_TRUE = ("true", "t")
_FALSE = ("false", "f")


def parse_bool(value: str) -> bool:
    """Parse a boolean option value.

    Raises:
        UsageError: If value is not one of true, t, false, f
    """
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise UsageError(f"invalid boolean value: {value}", {"value": value})


def parse_key_values(pairs: Iterable[str]) -> dict[str, str]:
    """Parse repeated ``key=value`` arguments.

    Later repetitions of a key replace earlier ones.

    Raises:
        UsageError: If an argument has no ``=``
    """
    result: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise UsageError(f"option must be specified as key=value: {pair}", {"option": pair})
        result[key] = value
    return result


def parse_bool_options(raw: Mapping[str, str]) -> dict[str, bool]:
    """Convert ``key=value`` strings into boolean options."""
    return {key: parse_bool(value) for key, value in raw.items()}


def merge_options(*sources: Mapping[str, OptionValue]) -> Options:
    """Merge option sources in order; the first source to set a key wins."""
    merged: Options = {}
    for source in sources:
        for key, value in source.items():
            merged.setdefault(key, value)
    return merged


def to_query_params(options: Mapping[str, object]) -> dict[str, str]:
    """Render options as HTTP query parameters."""
    params: dict[str, str] = {}
    for key, value in options.items():
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        else:
            params[key] = str(value)
    return params
