"""Tests for CLI input and duration parsing."""

import io
import sys

import pytest

from couchctl.cli.parsing import (
    fmt_duration,
    is_yaml,
    parse_data,
    parse_duration,
    read_data,
    read_document,
    read_raw,
)
from couchctl.exceptions import DataError, NoInputError, UsageError


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        ("value", "seconds"),
        [
            ("1.5", 1.5),
            ("30", 30.0),
            ("250ms", 0.25),
            ("1m30s", 90.0),
            ("2h", 7200.0),
            ("1.5s", 1.5),
            ("100us", 0.0001),
            ("0", 0.0),
        ],
    )
    def test_valid(self, value, seconds):
        assert parse_duration(value) == pytest.approx(seconds)

    @pytest.mark.parametrize("value", ["-1", "-5s", "abc", "5x", "", "1m-3s"])
    def test_invalid(self, value):
        with pytest.raises(UsageError):
            parse_duration(value)

    def test_flag_in_message(self):
        with pytest.raises(UsageError, match="retry-delay"):
            parse_duration("-1", "retry-delay")


class TestFmtDuration:
    """Tests for fmt_duration."""

    @pytest.mark.parametrize(
        ("seconds", "text"),
        [(0.5, "500ms"), (0.75, "750ms"), (1.5, "1.5s"), (90, "1m30s"), (3600, "1h0m0s")],
    )
    def test_format(self, seconds, text):
        assert fmt_duration(seconds) == text


class TestReadInput:
    """Tests for reading --data and --data-file input."""

    def test_inline(self):
        assert read_raw('{"a": 1}', None) == b'{"a": 1}'

    def test_file(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text('{"a": 1}')
        assert read_data(None, str(path)) == {"a": 1}

    def test_stdin(self, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b'{"a": 1}')))
        assert read_data(None, "-") == {"a": 1}

    def test_missing_file(self, tmp_path):
        with pytest.raises(NoInputError) as exc_info:
            read_raw(None, str(tmp_path / "nope.json"))
        assert exc_info.value.exit_code == 66

    def test_no_input(self):
        with pytest.raises(UsageError, match="no document data provided"):
            read_raw(None, None)

    def test_both(self, tmp_path):
        with pytest.raises(UsageError, match="only one of"):
            read_raw("{}", str(tmp_path / "doc.json"))

    def test_yaml_by_extension(self, tmp_path):
        path = tmp_path / "doc.yaml"
        path.write_text("a: 1\nb: [x, y]\n")
        assert read_document(None, str(path)) == {"a": 1, "b": ["x", "y"]}

    def test_yaml_flag(self):
        assert read_document("a: 1", None, yaml_flag=True) == {"a": 1}

    def test_is_yaml(self):
        assert is_yaml("doc.yml")
        assert is_yaml("DOC.YAML")
        assert not is_yaml("doc.json")
        assert is_yaml(None, True)

    def test_invalid_json(self):
        with pytest.raises(DataError) as exc_info:
            parse_data(b"{not json")
        assert exc_info.value.exit_code == 65

    def test_invalid_yaml(self):
        with pytest.raises(DataError):
            parse_data(b"a: [unclosed", as_yaml=True)

    def test_document_must_be_object(self):
        with pytest.raises(DataError, match="JSON object"):
            read_document("[1, 2]", None)
