"""Integration tests for the full couchctl workflow on a local data directory."""

import json
from pathlib import Path

from typer.testing import CliRunner

from couchctl.cli.main import app

runner = CliRunner()


def couchctl(*args: str):
    return runner.invoke(app, ["--format", "json", *args])


class TestFilesystemWorkflow:
    """End-to-end tests against a filesystem DSN."""

    def test_document_lifecycle(self, data_root: Path):
        """Create, read, update, copy and delete documents as a user would."""
        db = f"{data_root}//mydb"

        # 1. Create the database
        result = couchctl("put", db)
        assert result.exit_code == 0, result.output
        assert (data_root / "mydb").is_dir()

        # 2. Creating it twice fails with a precondition error
        result = couchctl("put", db)
        assert result.exit_code == 22

        # 3. It shows up in the database list
        result = couchctl("get", f"{data_root}//_all_dbs")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == ["mydb"]

        # 4. Create a document
        result = couchctl("put", f"{db}/doc", "-d", '{"name": "Ada"}')
        assert result.exit_code == 0, result.output
        rev1 = json.loads(result.stdout)["rev"]
        assert rev1.startswith("1-")

        # 5. Read it back
        result = couchctl("get", f"{db}/doc")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"_id": "doc", "_rev": rev1, "name": "Ada"}

        # 6. Writing without the current revision conflicts
        result = couchctl("put", f"{db}/doc", "-d", '{"name": "Grace"}')
        assert result.exit_code == 19

        # 7. Update with the revision given as an option
        result = couchctl("put", f"{db}/doc", "-d", '{"name": "Grace"}', "-O", f"rev={rev1}")
        assert result.exit_code == 0, result.output
        rev2 = json.loads(result.stdout)["rev"]
        assert rev2.startswith("2-")

        # 8. Describe reports the revision as the ETag
        result = couchctl("describe", f"{db}/doc")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["headers"]["ETag"] == f'"{rev2}"'

        # 9. Copy within the database, then to another one
        result = couchctl("copy", f"{db}/doc", "doc2")
        assert result.exit_code == 0, result.output
        assert couchctl("put", f"{data_root}//other").exit_code == 0
        result = couchctl("copy", f"{db}/doc", f"{data_root}//other/doc")
        assert result.exit_code == 0, result.output
        result = couchctl("get", f"{data_root}//other/doc")
        assert json.loads(result.stdout)["name"] == "Grace"

        # 10. Database info counts documents
        result = couchctl("get", db)
        assert json.loads(result.stdout)["doc_count"] == 2

        # 11. Delete the document with its current revision
        result = couchctl("delete", f"{db}/doc", "-O", f"rev={rev2}")
        assert result.exit_code == 0, result.output
        result = couchctl("get", f"{db}/doc")
        assert result.exit_code == 14

        # 12. Drop the database
        result = couchctl("delete", db)
        assert result.exit_code == 0, result.output
        assert not (data_root / "mydb").exists()
        assert couchctl("get", db).exit_code == 14

    def test_attachment_lifecycle(self, data_root: Path, tmp_path: Path):
        """Attach a file to a document, fetch it and remove it."""
        db = f"{data_root}//mydb"
        assert couchctl("put", db).exit_code == 0
        rev1 = json.loads(couchctl("put", f"{db}/doc", "-d", "{}").stdout)["rev"]

        source = tmp_path / "note.txt"
        source.write_bytes(b"hello world")
        result = couchctl("put", f"{db}/doc/note.txt", "-D", str(source), "-O", f"rev={rev1}")
        assert result.exit_code == 0, result.output
        rev2 = json.loads(result.stdout)["rev"]

        # Raw output is the attachment content itself
        result = runner.invoke(app, ["--format", "raw", "get", f"{db}/doc/note.txt"])
        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == b"hello world"

        # JSON output is its metadata
        result = couchctl("get", f"{db}/doc/note.txt")
        meta = json.loads(result.stdout)
        assert meta["content_type"] == "text/plain"
        assert meta["length"] == 11

        doc = json.loads(couchctl("get", f"{db}/doc").stdout)
        assert doc["_rev"] == rev2
        assert doc["_attachments"]["note.txt"]["stub"] is True

        result = couchctl("delete", f"{db}/doc/note.txt", "-O", f"rev={rev2}")
        assert result.exit_code == 0, result.output
        assert couchctl("get", f"{db}/doc/note.txt").exit_code == 14

    def test_design_document(self, data_root: Path):
        """Design document IDs keep their _design prefix."""
        db = f"{data_root}//mydb"
        assert couchctl("put", db).exit_code == 0
        result = couchctl("put", f"{db}/_design/views", "-d", '{"views": {}}')
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["id"] == "_design/views"
        assert (data_root / "mydb" / "_design" / "views.json").is_file()

    def test_environment_context(self, data_root: Path, monkeypatch):
        """COUCHCTL_DSN supplies the target, and completes bare document IDs."""
        assert couchctl("put", f"{data_root}//mydb").exit_code == 0
        monkeypatch.setenv("COUCHCTL_DSN", f"{data_root}//mydb/doc")
        result = couchctl("put", "-d", '{"a": 1}')
        assert result.exit_code == 0, result.output
        result = couchctl("get")
        assert json.loads(result.stdout)["a"] == 1
        assert couchctl("get", "doc2").exit_code == 14
        assert couchctl("put", "doc2", "-d", "{}").exit_code == 0
        assert (data_root / "mydb" / "doc2.json").is_file()
