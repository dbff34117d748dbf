"""Typed commands produced by the decoder."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Operation(Enum):
    """Every operation the format knows, valued by its wire keyword."""

    ID = "id"
    LAST_MODIFIED = "last-modified"
    CRAWL_IMMEDIATELY = "crawl-immediately"
    CRAWL_ONCE = "crawl-once"
    LOCK = "lock"
    DELETE = "delete"
    UP_TO_DATE = "up-to-date"
    NOT_FOUND = "not-found"
    MIME_TYPE = "mime-type"
    META_NAME = "meta-name"
    META_VALUE = "meta-value"
    CONTENT = "content"

    @property
    def keyword(self) -> str:
        return self.value

    @classmethod
    def from_keyword(cls, keyword: str) -> Operation | None:
        """Look up an operation by keyword. Unknown keywords return None."""
        try:
            return cls(keyword)
        except ValueError:
            return None


@dataclass(frozen=True)
class Command:
    """One decoded command.

    ``payload`` is only set for CONTENT; every other operation carries at
    most an ``argument``.
    """

    operation: Operation
    argument: str | None = None
    payload: bytes | None = None

    def __repr__(self) -> str:
        if self.payload is not None:
            return f"Command({self.operation.keyword}, {len(self.payload)} bytes)"
        if self.argument is None:
            return f"Command({self.operation.keyword})"
        return f"Command({self.operation.keyword}={self.argument!r})"
