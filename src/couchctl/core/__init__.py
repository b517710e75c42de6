"""Core types for couchctl."""

from couchctl.core.types import Attachment, Description, UpdateResult

__all__ = [
    "Attachment",
    "Description",
    "UpdateResult",
]
