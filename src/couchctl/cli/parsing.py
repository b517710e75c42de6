"""Input parsing utilities for CLI commands."""

import json
import re
import sys
from pathlib import Path
from typing import Any

import yaml

from couchctl.exceptions import DataError, LocalIOError, NoInputError, UsageError

STDIN = "-"
YAML_SUFFIXES = (".yaml", ".yml")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str, flag: str = "duration") -> float:
    """Parse a duration into seconds.

    Accepts plain seconds ("1.5") or Go-style durations ("250ms", "1m30s").

    Raises:
        UsageError: If the value is malformed or negative
    """
    text = value.strip()
    try:
        seconds = float(text)
    except ValueError:
        seconds = _parse_unit_duration(text, flag)
    if seconds < 0:
        raise UsageError(f"invalid {flag}: must not be negative: {value}", {flag: value})
    return seconds


def _parse_unit_duration(text: str, flag: str) -> float:
    sign = 1.0
    if text[:1] in ("-", "+"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    pos, total = 0, 0.0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if not text or pos != len(text):
        raise UsageError(f"invalid {flag}: {text!r}", {flag: text})
    return sign * total


def fmt_duration(seconds: float) -> str:
    """Format seconds the way Go prints a duration, e.g. 500ms or 1m30s."""
    if seconds < 1:
        return f"{round(seconds * 1000, 3):g}ms"
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    out = ""
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return out + f"{round(secs, 3):g}s"


def has_input(data: str | None, data_file: str | None) -> bool:
    return bool(data) or bool(data_file)


def read_raw(data: str | None, data_file: str | None) -> bytes:
    """Read raw input from --data or --data-file.

    Raises:
        UsageError: If both or neither are given
        NoInputError: If the data file does not exist
        LocalIOError: If the data file cannot be read
    """
    if data and data_file:
        raise UsageError("only one of --data and --data-file may be specified")
    if data:
        return data.encode()
    if not data_file:
        raise UsageError("no document data provided")
    if data_file == STDIN:
        return sys.stdin.buffer.read()
    path = Path(data_file)
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise NoInputError(f"File not found: {data_file}", {"file": data_file}) from e
    except OSError as e:
        raise LocalIOError(str(e), {"file": data_file}) from e


def is_yaml(data_file: str | None, yaml_flag: bool = False) -> bool:
    return yaml_flag or (data_file or "").lower().endswith(YAML_SUFFIXES)


def parse_data(raw: bytes, as_yaml: bool = False) -> Any:
    """Decode JSON (or YAML) input.

    Raises:
        DataError: If the input cannot be parsed
    """
    try:
        if as_yaml:
            return yaml.safe_load(raw)
        return json.loads(raw)
    except (yaml.YAMLError, ValueError) as e:
        kind = "YAML" if as_yaml else "JSON"
        raise DataError(f"invalid {kind} input: {e}") from e


def read_data(data: str | None, data_file: str | None, yaml_flag: bool = False) -> Any:
    """Read and decode input from --data or --data-file."""
    return parse_data(read_raw(data, data_file), is_yaml(data_file, yaml_flag))


def read_document(
    data: str | None, data_file: str | None, yaml_flag: bool = False
) -> dict[str, Any]:
    """Read input that must be a single JSON object.

    Raises:
        DataError: If the input is not an object
    """
    doc = read_data(data, data_file, yaml_flag)
    if not isinstance(doc, dict):
        raise DataError("input must be a JSON object")
    return doc
