"""Tests for request option parsing and precedence."""

import pytest

from couchctl.dsn.options import (
    merge_options,
    parse_bool,
    parse_bool_options,
    parse_key_values,
    to_query_params,
)
from couchctl.exceptions import UsageError


class TestParseBool:
    """Tests for parse_bool."""

    @pytest.mark.parametrize("value", ["true", "t", "TRUE", "T"])
    def test_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "f", "False"])
    def test_false(self, value):
        assert parse_bool(value) is False

    @pytest.mark.parametrize("value", ["yes", "1", ""])
    def test_invalid(self, value):
        with pytest.raises(UsageError, match="invalid boolean value"):
            parse_bool(value)


class TestParseKeyValues:
    """Tests for parse_key_values."""

    def test_pairs(self):
        assert parse_key_values(["rev=1-abc", "q=a=b"]) == {"rev": "1-abc", "q": "a=b"}

    def test_later_repetition_wins(self):
        assert parse_key_values(["rev=1", "rev=2"]) == {"rev": "2"}

    def test_empty_value(self):
        assert parse_key_values(["rev="]) == {"rev": ""}

    @pytest.mark.parametrize("pair", ["rev", "=1"])
    def test_malformed(self, pair):
        with pytest.raises(UsageError, match="key=value"):
            parse_key_values([pair])

    def test_bool_options(self):
        assert parse_bool_options({"conflicts": "t", "meta": "false"}) == {
            "conflicts": True,
            "meta": False,
        }


class TestMergeOptions:
    """Tests for merge_options precedence."""

    def test_first_source_wins(self):
        """Query options beat -O options, which beat -B options."""
        query = {"rev": "1-abc"}
        string_opts = {"rev": "2-def", "conflicts": "yes"}
        bool_opts = {"conflicts": True, "meta": True}
        assert merge_options(query, string_opts, bool_opts) == {
            "rev": "1-abc",
            "conflicts": "yes",
            "meta": True,
        }

    def test_no_sources(self):
        assert merge_options() == {}

    def test_query_params(self):
        assert to_query_params({"conflicts": True, "meta": False, "rev": "1"}) == {
            "conflicts": "true",
            "meta": "false",
            "rev": "1",
        }
