"""
Value types produced by the lister and retriever interpreters.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class DocId:
    """Identifier of a document in the source repository."""

    unique_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.unique_id, str):
            raise TypeError(f"Document id must be a string, got {type(self.unique_id).__name__}")

    def __str__(self) -> str:
        return self.unique_id


class Metadata(Mapping[str, str]):
    """Immutable name -> value mapping of document metadata."""

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(items or {})

    @staticmethod
    def builder() -> MetadataBuilder:
        return MetadataBuilder()

    def __getitem__(self, name: str) -> str:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        return f"Metadata({self._items!r})"


class MetadataBuilder:
    """Collects raw (name, value) pairs; a repeated name keeps the last value."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def add(self, name: str, value: str) -> MetadataBuilder:
        if not name:
            raise ValueError("Metadata name cannot be empty")
        if value is None:
            raise ValueError(f"Metadata value for {name!r} cannot be None")
        self._items[name] = value
        return self

    def build(self) -> Metadata:
        return Metadata(self._items)


@dataclass(frozen=True)
class ListerDirective:
    """Crawl instructions for one document, as sent by a lister.

    ``crawl_immediately`` is advisory priority for the scheduler; nothing
    here acts on it.
    """

    doc_id: DocId
    last_modified: str | None = None
    crawl_immediately: bool = False
    crawl_once: bool = False
    lock: bool = False
    delete: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.doc_id.unique_id,
            "last_modified": self.last_modified,
            "crawl_immediately": self.crawl_immediately,
            "crawl_once": self.crawl_once,
            "lock": self.lock,
            "delete": self.delete,
        }


@dataclass(frozen=True)
class RetrieverResult:
    """Everything a retriever reported about one document.

    ``up_to_date``, ``not_found`` and ``content`` are independent; a result
    may set more than one of them and the consumer decides what wins.
    """

    doc_id: DocId
    metadata: Metadata = field(default_factory=Metadata)
    content: bytes | None = None
    up_to_date: bool = False
    not_found: bool = False
    mime_type: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.doc_id.unique_id,
            "metadata": dict(self.metadata),
            "content_length": None if self.content is None else len(self.content),
            "up_to_date": self.up_to_date,
            "not_found": self.not_found,
            "mime_type": self.mime_type,
        }
