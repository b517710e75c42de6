"""Tests for output formatting."""

import json

import pytest
import yaml

from couchctl.cli.output import OutputFormat, OutputFormatter
from couchctl.core.types import Attachment, Description, UpdateResult
from couchctl.exceptions import HTTPStatusError, UsageError


class TestDataOutput:
    """Tests for printing documents and results."""

    def test_json(self, capsys):
        OutputFormatter(OutputFormat.JSON).print_data({"_id": "doc", "n": 1})
        assert json.loads(capsys.readouterr().out) == {"_id": "doc", "n": 1}

    def test_raw_is_compact(self, capsys):
        OutputFormatter(OutputFormat.RAW).print_data({"a": 1})
        assert capsys.readouterr().out == '{"a": 1}\n'

    def test_yaml(self, capsys):
        OutputFormatter(OutputFormat.YAML).print_data({"a": [1, 2]})
        assert yaml.safe_load(capsys.readouterr().out) == {"a": [1, 2]}

    def test_friendly(self, capsys):
        OutputFormatter().print_data({"name": "value"})
        out = capsys.readouterr().out
        assert '"name"' in out
        assert '"value"' in out

    def test_ok(self, capsys):
        OutputFormatter(OutputFormat.JSON).print_ok()
        assert json.loads(capsys.readouterr().out) == {"ok": True}

    def test_update_result(self, capsys):
        OutputFormatter(OutputFormat.JSON).print_update_result(UpdateResult(id="doc", rev="1-a"))
        assert json.loads(capsys.readouterr().out) == {"id": "doc", "rev": "1-a"}

    def test_update_result_friendly(self, capsys):
        OutputFormatter().print_update_result(UpdateResult(id="doc", rev="1-a"))
        out = capsys.readouterr().out
        assert "doc" in out
        assert "1-a" in out


class TestDescriptionOutput:
    """Tests for printing HEAD results."""

    def test_raw_headers(self, capsys):
        description = Description(url="http://h/db", status=200, headers={"ETag": '"1-a"'})
        OutputFormatter(OutputFormat.RAW).print_description(description)
        assert capsys.readouterr().out == 'ETag: "1-a"\n'

    def test_json(self, capsys):
        description = Description(url="http://h/db", status=200, headers={"ETag": '"1-a"'})
        OutputFormatter(OutputFormat.JSON).print_description(description)
        assert json.loads(capsys.readouterr().out)["headers"] == {"ETag": '"1-a"'}


class TestAttachmentOutput:
    """Tests for printing attachments."""

    @pytest.mark.parametrize("fmt", [OutputFormat.FRIENDLY, OutputFormat.RAW])
    def test_content(self, capsysbinary, fmt):
        attachment = Attachment(filename="a.bin", content=b"\x00\xffdata")
        OutputFormatter(fmt).print_attachment(attachment)
        assert capsysbinary.readouterr().out == b"\x00\xffdata"

    def test_metadata(self, capsys):
        attachment = Attachment(
            filename="a.txt", content_type="text/plain", length=4, content=b"data"
        )
        OutputFormatter(OutputFormat.JSON).print_attachment(attachment)
        out = json.loads(capsys.readouterr().out)
        assert out["filename"] == "a.txt"
        assert "content" not in out


class TestErrorOutput:
    """Tests for printing errors."""

    def test_json_error(self, capsys):
        OutputFormatter(OutputFormat.JSON).print_error(HTTPStatusError(404, "not_found", "missing"))
        captured = capsys.readouterr()
        assert captured.out == ""
        error = json.loads(captured.err)
        assert error["exit_code"] == 14
        assert error["context"]["reason"] == "missing"

    def test_friendly_error_with_hint(self, capsys):
        OutputFormatter().print_error(UsageError("bad DSN"), usage_hint="Run 'x --help'")
        err = capsys.readouterr().err
        assert "bad DSN" in err
        assert "Run 'x --help'" in err

    def test_plain_exception(self, capsys):
        OutputFormatter(OutputFormat.YAML).print_error(ValueError("boom"))
        assert json.loads(capsys.readouterr().err) == {"error": "ValueError", "message": "boom"}
