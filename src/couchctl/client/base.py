"""Database client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from couchctl.core.types import Attachment, Description, UpdateResult
from couchctl.exceptions import UsageError

Document = dict[str, Any]
Params = Mapping[str, object]


class Client(ABC):
    """Interface implemented by every backend.

    Document and attachment operations are required. Server administration
    endpoints (config, security, cluster setup, maintenance) only exist on a
    real server; backends that cannot provide them inherit implementations
    that raise ``UsageError``.
    """

    #: Human-readable backend name, used in error messages
    backend = "client"

    @property
    @abstractmethod
    def dsn(self) -> str:
        """The server address this client talks to."""
        ...

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the server is up and ready."""
        ...

    @abstractmethod
    def server_info(self) -> Document:
        """Return the server welcome document."""
        ...

    def version(self) -> str:
        return str(self.server_info().get("version", ""))

    @abstractmethod
    def all_dbs(self, params: Params | None = None) -> list[str]: ...

    @abstractmethod
    def db_info(self, db: str) -> Document: ...

    @abstractmethod
    def create_db(self, db: str, params: Params | None = None) -> None: ...

    @abstractmethod
    def destroy_db(self, db: str) -> None: ...

    @abstractmethod
    def describe_db(self, db: str) -> Description: ...

    @abstractmethod
    def get_doc(self, db: str, doc_id: str, params: Params | None = None) -> Document: ...

    @abstractmethod
    def put_doc(
        self, db: str, doc_id: str, doc: Document, params: Params | None = None
    ) -> UpdateResult: ...

    @abstractmethod
    def post_doc(self, db: str, doc: Document, params: Params | None = None) -> UpdateResult: ...

    @abstractmethod
    def delete_doc(self, db: str, doc_id: str, params: Params | None = None) -> UpdateResult: ...

    @abstractmethod
    def describe_doc(self, db: str, doc_id: str, params: Params | None = None) -> Description: ...

    @abstractmethod
    def get_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> Attachment: ...

    @abstractmethod
    def put_attachment(
        self,
        db: str,
        doc_id: str,
        attachment: Attachment,
        params: Params | None = None,
    ) -> UpdateResult: ...

    @abstractmethod
    def delete_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> UpdateResult: ...

    @abstractmethod
    def describe_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> Description: ...

    def describe_server(self) -> Description:
        self._unsupported("describe server")

    def copy_doc(
        self, db: str, source_id: str, target_id: str, target_rev: str = ""
    ) -> UpdateResult:
        """Copy a document within one database."""
        doc = self.get_doc(db, source_id)
        for field in ("_id", "_rev", "_attachments"):
            doc.pop(field, None)
        params = {"rev": target_rev} if target_rev else None
        return self.put_doc(db, target_id, doc, params)

    # Server administration

    def get_config(self, node: str, section: str = "", key: str = "") -> Any:
        self._unsupported("server config")

    def set_config(self, node: str, section: str, key: str, value: str) -> str:
        self._unsupported("server config")

    def delete_config(self, node: str, section: str, key: str) -> str:
        self._unsupported("server config")

    def get_security(self, db: str) -> Document:
        self._unsupported("security objects")

    def set_security(self, db: str, security: Document) -> None:
        self._unsupported("security objects")

    def cluster_setup(self, params: Params | None = None) -> Document:
        self._unsupported("cluster setup")

    def cluster_setup_action(self, action: Document) -> Document:
        self._unsupported("cluster setup")

    def view_cleanup(self, db: str) -> None:
        self._unsupported("view cleanup")

    def ensure_full_commit(self, db: str) -> None:
        self._unsupported("flush")

    def compact(self, db: str) -> None:
        self._unsupported("compaction")

    def compact_views(self, db: str, design_doc: str) -> None:
        self._unsupported("view compaction")

    def purge(self, db: str, doc_revs: Mapping[str, list[str]]) -> Document:
        self._unsupported("purge")

    def replicate(self, source: Any, target: Any, params: Params | None = None) -> Document:
        self._unsupported("replication")

    def close(self) -> None:  # noqa: B027 - optional hook
        """Release any resources held by the client."""

    def _unsupported(self, feature: str) -> Any:
        raise UsageError(
            f"{feature} not supported by the {self.backend} backend",
            {"backend": self.backend, "dsn": self.dsn},
        )
