"""Result types returned by the database clients.

All types are JSON-serializable so they can be rendered by any output format.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class UpdateResult(BaseModel):
    """Result of a document write."""

    id: str = Field(..., description="Document ID")
    rev: str = Field(..., description="New revision")


class Attachment(BaseModel):
    """An attachment and its metadata."""

    filename: str
    content_type: str = "application/octet-stream"
    length: int = 0
    digest: str = ""
    content: bytes = Field(default=b"", exclude=True)


class Description(BaseModel):
    """Metadata of a resource, as returned by a HEAD request."""

    url: str
    status: int
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def rev(self) -> str:
        """Revision taken from the ETag header, if present."""
        etag = next((v for k, v in self.headers.items() if k.lower() == "etag"), "")
        return etag.strip('"')
