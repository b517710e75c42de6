"""HTTP client for a CouchDB-compatible server.

Relies on 'requests': https://requests.readthedocs.io/
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import requests

from couchctl.client.base import Client, Document, Params
from couchctl.core.types import Attachment, Description, UpdateResult
from couchctl.dsn.options import to_query_params
from couchctl.exceptions import HTTPStatusError, ProtocolError, UnavailableError

logger = logging.getLogger(__name__)

JSON_MIME = "application/json"
BIN_MIME = "application/octet-stream"

_RESERVED_DOC_PREFIXES = ("_design/", "_local/")


def db_path(db: str) -> str:
    return quote(db, safe="")


def doc_path(doc_id: str) -> str:
    """Escape a document ID for use in a URL path.

    The slash after ``_design`` or ``_local`` is kept literal.
    """
    for prefix in _RESERVED_DOC_PREFIXES:
        if doc_id.startswith(prefix):
            return prefix + quote(doc_id[len(prefix) :], safe="")
    return quote(doc_id, safe="")


class HTTPClient(Client):
    """Talks to the server over HTTP."""

    backend = "http"

    def __init__(
        self,
        href: str,
        username: str = "",
        password: str = "",
        connect_timeout: float | None = None,
        request_timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize client.

        Args:
            href: Server root URL, without credentials
            username: User name for basic authentication
            password: Password for basic authentication
            connect_timeout: Seconds allowed to establish a connection
            request_timeout: Seconds allowed for the server to answer
            session: Session to use instead of a new one
        """
        self.href = href.rstrip("/") + "/"
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": JSON_MIME})
        if username or password:
            self._session.auth = (username, password)
        self._timeout = (connect_timeout, request_timeout)

    @property
    def dsn(self) -> str:
        return self.href

    def close(self) -> None:
        self._session.close()

    def _request(
        self,
        method: str,
        *segments: str,
        params: Params | None = None,
        json_body: Any = None,
        data: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        url = self.href + "/".join(segments)
        logger.debug(f"{method} {url}")
        try:
            response = self._session.request(
                method,
                url,
                params=to_query_params(params or {}),
                json=json_body,
                data=data,
                headers=dict(headers or {}),
                timeout=self._timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise UnavailableError(str(e), {"url": url}) from e
        logger.debug(f"{method} {url} -> {response.status_code}")
        if response.status_code >= 400:
            raise self._status_error(method, response)
        return response

    @staticmethod
    def _status_error(method: str, response: requests.Response) -> HTTPStatusError:
        error, reason = "", ""
        if method != "HEAD":
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                error = str(body.get("error", ""))
                reason = str(body.get("reason", ""))
        return HTTPStatusError(response.status_code, error or response.reason or "", reason)

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(f"invalid JSON response: {e}", {"url": response.url}) from e

    def _describe(self, response: requests.Response) -> Description:
        return Description(
            url=response.url,
            status=response.status_code,
            headers=dict(response.headers),
        )

    def _update_result(self, response: requests.Response, doc_id: str = "") -> UpdateResult:
        body = self._json(response)
        return UpdateResult(id=body.get("id", doc_id), rev=body.get("rev", ""))

    # Server

    def ping(self) -> bool:
        try:
            self._request("GET", "_up")
        except HTTPStatusError as e:
            if e.status != 404:
                return False
            # Servers older than 2.0 have no /_up endpoint
            self._request("HEAD")
        return True

    def server_info(self) -> Document:
        return self._json(self._request("GET"))

    def describe_server(self) -> Description:
        return self._describe(self._request("HEAD"))

    def all_dbs(self, params: Params | None = None) -> list[str]:
        return self._json(self._request("GET", "_all_dbs", params=params))

    # Databases

    def db_info(self, db: str) -> Document:
        return self._json(self._request("GET", db_path(db)))

    def create_db(self, db: str, params: Params | None = None) -> None:
        self._request("PUT", db_path(db), params=params)

    def destroy_db(self, db: str) -> None:
        self._request("DELETE", db_path(db))

    def describe_db(self, db: str) -> Description:
        return self._describe(self._request("HEAD", db_path(db)))

    # Documents

    def get_doc(self, db: str, doc_id: str, params: Params | None = None) -> Document:
        return self._json(self._request("GET", db_path(db), doc_path(doc_id), params=params))

    def put_doc(
        self, db: str, doc_id: str, doc: Document, params: Params | None = None
    ) -> UpdateResult:
        response = self._request(
            "PUT", db_path(db), doc_path(doc_id), params=params, json_body=doc
        )
        return self._update_result(response, doc_id)

    def post_doc(self, db: str, doc: Document, params: Params | None = None) -> UpdateResult:
        response = self._request("POST", db_path(db), params=params, json_body=doc)
        return self._update_result(response)

    def delete_doc(self, db: str, doc_id: str, params: Params | None = None) -> UpdateResult:
        response = self._request("DELETE", db_path(db), doc_path(doc_id), params=params)
        return self._update_result(response, doc_id)

    def describe_doc(self, db: str, doc_id: str, params: Params | None = None) -> Description:
        return self._describe(
            self._request("HEAD", db_path(db), doc_path(doc_id), params=params)
        )

    def copy_doc(
        self, db: str, source_id: str, target_id: str, target_rev: str = ""
    ) -> UpdateResult:
        destination = doc_path(target_id)
        if target_rev:
            destination += f"?rev={quote(target_rev, safe='')}"
        response = self._request(
            "COPY", db_path(db), doc_path(source_id), headers={"Destination": destination}
        )
        return self._update_result(response, target_id)

    # Attachments

    def get_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> Attachment:
        response = self._request(
            "GET", db_path(db), doc_path(doc_id), quote(filename, safe=""), params=params
        )
        return Attachment(
            filename=filename,
            content_type=response.headers.get("Content-Type", BIN_MIME),
            length=len(response.content),
            digest=response.headers.get("Content-MD5", ""),
            content=response.content,
        )

    def put_attachment(
        self,
        db: str,
        doc_id: str,
        attachment: Attachment,
        params: Params | None = None,
    ) -> UpdateResult:
        response = self._request(
            "PUT",
            db_path(db),
            doc_path(doc_id),
            quote(attachment.filename, safe=""),
            params=params,
            data=attachment.content,
            headers={"Content-Type": attachment.content_type},
        )
        return self._update_result(response, doc_id)

    def delete_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> UpdateResult:
        response = self._request(
            "DELETE", db_path(db), doc_path(doc_id), quote(filename, safe=""), params=params
        )
        return self._update_result(response, doc_id)

    def describe_attachment(
        self, db: str, doc_id: str, filename: str, params: Params | None = None
    ) -> Description:
        return self._describe(
            self._request(
                "HEAD", db_path(db), doc_path(doc_id), quote(filename, safe=""), params=params
            )
        )

    # Server administration

    def _config_segments(self, node: str, section: str = "", key: str = "") -> list[str]:
        segments = ["_node", quote(node, safe=""), "_config"]
        if section:
            segments.append(quote(section, safe=""))
            if key:
                segments.append(quote(key, safe=""))
        return segments

    def get_config(self, node: str, section: str = "", key: str = "") -> Any:
        return self._json(self._request("GET", *self._config_segments(node, section, key)))

    def set_config(self, node: str, section: str, key: str, value: str) -> str:
        response = self._request(
            "PUT", *self._config_segments(node, section, key), json_body=value
        )
        return self._json(response)

    def delete_config(self, node: str, section: str, key: str) -> str:
        return self._json(self._request("DELETE", *self._config_segments(node, section, key)))

    def get_security(self, db: str) -> Document:
        return self._json(self._request("GET", db_path(db), "_security"))

    def set_security(self, db: str, security: Document) -> None:
        self._request("PUT", db_path(db), "_security", json_body=security)

    def cluster_setup(self, params: Params | None = None) -> Document:
        return self._json(self._request("GET", "_cluster_setup", params=params))

    def cluster_setup_action(self, action: Document) -> Document:
        return self._json(self._request("POST", "_cluster_setup", json_body=action))

    def view_cleanup(self, db: str) -> None:
        self._request("POST", db_path(db), "_view_cleanup", json_body={})

    def ensure_full_commit(self, db: str) -> None:
        self._request("POST", db_path(db), "_ensure_full_commit", json_body={})

    def compact(self, db: str) -> None:
        self._request("POST", db_path(db), "_compact", json_body={})

    def compact_views(self, db: str, design_doc: str) -> None:
        self._request("POST", db_path(db), "_compact", quote(design_doc, safe=""), json_body={})

    def purge(self, db: str, doc_revs: Mapping[str, list[str]]) -> Document:
        return self._json(self._request("POST", db_path(db), "_purge", json_body=dict(doc_revs)))

    def replicate(self, source: Any, target: Any, params: Params | None = None) -> Document:
        body: dict[str, Any] = dict(params or {})
        body["source"] = source
        body["target"] = target
        return self._json(self._request("POST", "_replicate", json_body=body))

