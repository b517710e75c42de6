"""Filesystem backend: databases are directories, documents are JSON files.

Layout under the root directory::

    <db>/<doc_id>.json              document body, including _id and _rev
    <db>/<doc_id>/<filename>        attachment content

Revisions follow the server format ``<generation>-<md5 of the body>`` and
writes are checked against the current revision, so conflicting updates fail
the same way they would against a server.
"""

from __future__ import annotations

import hashlib
import json
import logging
import mimetypes
import shutil
import uuid
from base64 import b64encode
from pathlib import Path
from typing import Any

from couchctl import __version__
from couchctl.client.base import Client, Document, Params
from couchctl.core.types import Attachment, Description, UpdateResult
from couchctl.dsn.paths import DESIGN_PREFIX
from couchctl.exceptions import CantCreateError, HTTPStatusError, LocalIOError, UsageError

logger = logging.getLogger(__name__)

DOC_SUFFIX = ".json"


def _not_found(reason: str = "missing") -> HTTPStatusError:
    return HTTPStatusError(404, "not_found", reason)


def _conflict() -> HTTPStatusError:
    return HTTPStatusError(409, "conflict", "Document update conflict.")


def next_rev(current: str, body: Document) -> str:
    """Return the revision following ``current`` for ``body``."""
    generation = int(current.split("-", 1)[0]) if current else 0
    digest = hashlib.md5(json.dumps(body, sort_keys=True).encode()).hexdigest()
    return f"{generation + 1}-{digest}"


class FSClient(Client):
    """Reads and writes databases in a local directory tree."""

    backend = "filesystem"

    def __init__(self, root: str | Path = "/") -> None:
        self.root = Path(root)

    @property
    def dsn(self) -> str:
        return self.root.as_uri()

    def _db_dir(self, db: str) -> Path:
        if not db:
            raise UsageError("database name required")
        return self.root / db.strip("/")

    def _existing_db(self, db: str) -> Path:
        path = self._db_dir(db)
        if not path.is_dir():
            raise _not_found("Database does not exist.")
        return path

    def _doc_file(self, db: str, doc_id: str) -> Path:
        if not doc_id:
            raise UsageError("document ID required")
        return self._existing_db(db) / f"{doc_id}{DOC_SUFFIX}"

    def _att_dir(self, db: str, doc_id: str) -> Path:
        return self._existing_db(db) / doc_id

    def _read_doc(self, path: Path) -> Document:
        if not path.is_file():
            raise _not_found()
        try:
            return json.loads(path.read_text())
        except OSError as e:
            raise LocalIOError(str(e), {"path": str(path)}) from e
        except ValueError as e:
            raise HTTPStatusError(500, "invalid_document", f"{path}: {e}") from e

    def _write_doc(self, path: Path, doc: Document) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(doc, indent=2))
        except OSError as e:
            raise LocalIOError(str(e), {"path": str(path)}) from e

    def _current_rev(self, path: Path) -> str:
        return self._read_doc(path).get("_rev", "") if path.is_file() else ""

    @staticmethod
    def _requested_rev(doc: Document | None, params: Params | None) -> str:
        rev = (params or {}).get("rev") or (doc or {}).get("_rev") or ""
        return str(rev)

    def _store(self, db: str, doc_id: str, doc: Document, params: Params | None) -> UpdateResult:
        path = self._doc_file(db, doc_id)
        current = self._current_rev(path)
        if self._requested_rev(doc, params) != current:
            raise _conflict()
        body = {k: v for k, v in doc.items() if k not in ("_id", "_rev")}
        rev = next_rev(current, body)
        self._write_doc(path, {"_id": doc_id, "_rev": rev, **body})
        logger.debug(f"stored {path} at rev {rev}")
        return UpdateResult(id=doc_id, rev=rev)

    def _describe_file(self, path: Path, rev: str = "", content_type: str = "") -> Description:
        headers = {"Content-Length": str(path.stat().st_size)}
        if rev:
            headers["ETag"] = f'"{rev}"'
        if content_type:
            headers["Content-Type"] = content_type
        return Description(url=path.as_uri(), status=200, headers=headers)

    # Server

    def ping(self) -> bool:
        return self.root.is_dir()

    def server_info(self) -> Document:
        return {"couchdb": "Welcome", "version": __version__, "vendor": {"name": self.backend}}

    def describe_server(self) -> Description:
        if not self.root.is_dir():
            raise _not_found("Root directory does not exist.")
        return Description(url=self.dsn, status=200)

    def all_dbs(self, params: Params | None = None) -> list[str]:
        if not self.root.is_dir():
            raise _not_found("Root directory does not exist.")
        return sorted(
            p.name for p in self.root.iterdir() if p.is_dir() and not p.name.startswith(".")
        )

    # Databases

    def db_info(self, db: str) -> Document:
        path = self._existing_db(db)
        pattern = f"*{DOC_SUFFIX}"
        docs = [*path.glob(pattern), *(path / DESIGN_PREFIX).glob(pattern)]
        doc_count = sum(1 for p in docs if p.is_file())
        return {"db_name": db, "doc_count": doc_count}

    def create_db(self, db: str, params: Params | None = None) -> None:
        path = self._db_dir(db)
        if path.exists():
            raise HTTPStatusError(412, "file_exists", "The database could not be created.")
        try:
            path.mkdir(parents=True)
        except OSError as e:
            raise CantCreateError(str(e), {"path": str(path)}) from e

    def destroy_db(self, db: str) -> None:
        shutil.rmtree(self._existing_db(db))

    def describe_db(self, db: str) -> Description:
        return Description(url=self._existing_db(db).as_uri(), status=200)

    # Documents

    def get_doc(self, db: str, doc_id: str, params: Params | None = None) -> Document:
        doc = self._read_doc(self._doc_file(db, doc_id))
        rev = (params or {}).get("rev")
        if rev and rev != doc.get("_rev"):
            raise _not_found()
        return doc

    def put_doc(
        self, db: str, doc_id: str, doc: Document, params: Params | None = None
    ) -> UpdateResult:
        return self._store(db, doc_id, doc, params)

    def post_doc(self, db: str, doc: Document, params: Params | None = None) -> UpdateResult:
        doc_id = str(doc.get("_id") or uuid.uuid4().hex)
        return self._store(db, doc_id, doc, params)

    def delete_doc(self, db: str, doc_id: str, params: Params | None = None) -> UpdateResult:
        path = self._doc_file(db, doc_id)
        current = self._current_rev(path)
        if not current:
            raise _not_found()
        if self._requested_rev(None, params) != current:
            raise _conflict()
        path.unlink()
        shutil.rmtree(self._att_dir(db, doc_id), ignore_errors=True)
        return UpdateResult(id=doc_id, rev=next_rev(current, {"_deleted": True}))

    def describe_doc(self, db: str, doc_id: str, params: Params | None = None) -> Description:
        path = self._doc_file(db, doc_id)
        doc = self._read_doc(path)
        return self._describe_file(path, rev=doc.get("_rev", ""))

    # Attachments

    def get_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> Attachment:
        path = self._att_dir(db, doc_id) / filename
        if not path.is_file():
            raise _not_found("Document is missing attachment")
        content = path.read_bytes()
        content_type, _ = mimetypes.guess_type(filename)
        return Attachment(
            filename=filename,
            content_type=content_type or "application/octet-stream",
            length=len(content),
            digest="md5-" + b64encode(hashlib.md5(content).digest()).decode(),
            content=content,
        )

    def put_attachment(
        self,
        db: str,
        doc_id: str,
        attachment: Attachment,
        params: Params | None = None,
    ) -> UpdateResult:
        doc_file = self._doc_file(db, doc_id)
        doc: Document = self._read_doc(doc_file) if doc_file.is_file() else {}
        digest = "md5-" + b64encode(hashlib.md5(attachment.content).digest()).decode()
        stubs: dict[str, Any] = dict(doc.get("_attachments", {}))
        stubs[attachment.filename] = {
            "content_type": attachment.content_type,
            "length": len(attachment.content),
            "digest": digest,
            "stub": True,
        }
        rev = self._requested_rev(None, params)
        result = self._store(db, doc_id, {**doc, "_rev": rev, "_attachments": stubs}, None)
        path = self._att_dir(db, doc_id) / attachment.filename
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(attachment.content)
        except OSError as e:
            raise LocalIOError(str(e), {"path": str(path)}) from e
        return result

    def delete_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> UpdateResult:
        doc = self._read_doc(self._doc_file(db, doc_id))
        stubs = dict(doc.get("_attachments", {}))
        path = self._att_dir(db, doc_id) / filename
        if filename not in stubs or not path.is_file():
            raise _not_found("Document is missing attachment")
        del stubs[filename]
        doc["_rev"] = self._requested_rev(None, params)
        if stubs:
            doc["_attachments"] = stubs
        else:
            doc.pop("_attachments", None)
        result = self._store(db, doc_id, doc, None)
        path.unlink()
        return result

    def describe_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> Description:
        path = self._att_dir(db, doc_id) / filename
        if not path.is_file():
            raise _not_found("Document is missing attachment")
        content_type, _ = mimetypes.guess_type(filename)
        return self._describe_file(path, content_type=content_type or "application/octet-stream")
