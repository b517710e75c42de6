"""Resource descriptor: a complete or partial server/database/document address."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from couchctl.dsn.paths import DESIGN_PREFIX, ROOT_BOUNDARY, split_path, strip_root
from couchctl.dsn.url import format_url, parse_url
from couchctl.exceptions import UsageError

FILE_SCHEME = "file"
DEFAULT_SCHEME = "http"

_FIELDS = ("scheme", "host", "user", "password", "database", "doc_id")


def join_path(database: str, doc_id: str) -> str:
    """Join a database path and a document ID, keeping a ``//`` root boundary."""
    if not doc_id:
        return database
    if not database:
        return doc_id
    if database.endswith(ROOT_BOUNDARY):
        return database + doc_id
    return f"{database.rstrip('/')}/{doc_id}"


class Context(BaseModel):
    """A complete or partial DSN context.

    A context without a host is partial: it has to be merged with another
    context before it can be used to reach a server. Contexts are immutable;
    merging returns a new one.

    When loaded from a config file, a context is given either field by field
    or as a single ``dsn`` URL, in which case the whole URL path is taken as
    the database.
    """

    model_config = ConfigDict(frozen=True)

    scheme: str = ""
    host: str = ""
    user: str = ""
    password: str = ""
    database: str = ""
    doc_id: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if dsn := data.pop("dsn", None):
            url = parse_url(str(dsn))
            data.update(
                scheme=url.scheme,
                host=url.host,
                user=url.user,
                password=url.password,
                database=url.path,
            )
        for name in _FIELDS:
            if data.get(name) is None:
                data.pop(name, None)
            else:
                data[name] = str(data[name])
        if data.get("host") and not data.get("scheme"):
            data["scheme"] = DEFAULT_SCHEME
        return data

    def __str__(self) -> str:
        return self.dsn()

    @property
    def is_file(self) -> bool:
        return self.scheme == FILE_SCHEME

    @property
    def path(self) -> str:
        """The URL path addressed by this context."""
        return join_path(self.database, self.doc_id)

    @property
    def root(self) -> str:
        """Server root prefix, set only when the path carries a ``//`` boundary."""
        head, boundary, _ = self.path.partition(ROOT_BOUNDARY)
        return f"{head}/" if boundary else ""

    @property
    def resource_path(self) -> str:
        """The path relative to the server root, always starting with a slash."""
        return "/" + strip_root(self.path).lstrip("/")

    @property
    def filename(self) -> str:
        return split_path(self.path).filename

    def dsn(self) -> str:
        return format_url(self.scheme, self.user, self.password, self.host, self.path)

    def server_dsn(self) -> str:
        """Return just the server DSN, with no database or document."""
        return format_url(self.scheme, self.user, self.password, self.host, self.root)

    def client_info(self) -> tuple[str, str]:
        """Return the URL scheme and server DSN used to build a client.

        Raises:
            UsageError: If there is no server to connect to
        """
        if not self.host and not self.is_file:
            raise UsageError("server hostname required", {"dsn": self.dsn()})
        return self.scheme or DEFAULT_SCHEME, self.server_dsn()

    def merge(self, current: Context | None) -> Context:
        """Complete a partial context with the connection details of ``current``.

        A context with a host (or a local file context) is returned unchanged.
        Otherwise scheme, host and credentials come from ``current``, and the
        database too unless this context names one.
        """
        if current is None or self.host or self.is_file:
            return self
        update = {
            "scheme": current.scheme,
            "host": current.host,
            "user": current.user,
            "password": current.password,
        }
        if not self.database:
            update["database"] = current.database
        return self.model_copy(update=update)

    def db(self) -> str:
        """Return the database name.

        Raises:
            UsageError: If the DSN also addresses a document
        """
        parts = split_path(self.path)
        if parts.document:
            raise UsageError("DSN expected to contain only the database", {"dsn": self.dsn()})
        return parts.database

    def db_doc(self) -> tuple[str, str]:
        """Return the database name and document ID.

        A single path segment is the database. A ``.../_design`` database is
        folded into a ``_design/<name>`` document ID.

        Raises:
            UsageError: If neither a database nor a document is given
        """
        if not self.database and not self.doc_id:
            raise UsageError("document ID required", {"dsn": self.dsn()})
        db, _, doc = strip_root(self.path).strip("/").rpartition("/")
        suffix = "/" + DESIGN_PREFIX
        if db.endswith(suffix):
            db = db[: -len(suffix)]
            doc = f"{DESIGN_PREFIX}/{doc}"
        if not db:
            db, doc = doc, ""
        return db, doc

    def db_doc_filename(self) -> tuple[str, str, str]:
        """Return database, document ID and attachment filename.

        Raises:
            UsageError: If no attachment filename is given
        """
        parts = split_path(self.path)
        if not parts.filename:
            raise UsageError("attachment filename required", {"dsn": self.dsn()})
        return parts.database, parts.document, parts.filename

    def has_db(self) -> bool:
        try:
            db, _ = self.db_doc()
        except UsageError:
            return False
        return db != ""

    def has_doc(self) -> bool:
        try:
            _, doc = self.db_doc()
        except UsageError:
            return False
        return doc != ""

    def has_attachment(self) -> bool:
        return self.filename != ""
