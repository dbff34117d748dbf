"""
Adaptor data reader - incremental decoder for adaptor data streams.

Layers, bottom up:
  - scan()            bytes -> tokens, split on the session delimiter
  - ensure_header()   reads "GSA Adaptor Data Version N [<delimiter>]" once
  - next_line()       tokens -> lines, tracks id-list mode
  - next_command()    lines -> typed Commands, reads the content payload
  - parse_lister()    Commands -> list of ListerDirective
  - parse_retriever() Commands -> one RetrieverResult

All per-stream state lives in a Session that is passed through every call.
Nothing is read ahead: the source is consumed one byte at a time until the
"content" command, which takes every remaining byte.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, TypeVar

from adsp.commands import Command, Operation
from adsp.documents import DocId, ListerDirective, Metadata, RetrieverResult
from adsp.errors import (
    AdaptorDataError,
    FormatError,
    HeaderError,
    RepositoryUnavailableError,
    SequenceError,
)
from adsp.scanner import Marker, scan_text
from adsp.spec import (
    ARGUMENT_SEPARATOR,
    HEADER_CLOSE,
    HEADER_OPEN,
    HEADER_PREFIX,
    ID_LIST,
    REPOSITORY_UNAVAILABLE,
    RESERVED_DELIMITER_CHARS,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_HEADER_OPEN = Marker(HEADER_OPEN)
_HEADER_CLOSE = Marker(HEADER_CLOSE)
_VERSION_PATTERN = re.compile(r"[+-]?[0-9]+")
# Versions are 32-bit signed integers on the wire
_MIN_VERSION = -(2 ** 31)
_MAX_VERSION = 2 ** 31 - 1
_CONTENT_CHUNK_SIZE = 64 * 1024

_LISTER_FLAGS = {
    Operation.CRAWL_IMMEDIATELY: "crawl_immediately",
    Operation.CRAWL_ONCE: "crawl_once",
    Operation.LOCK: "lock",
    Operation.DELETE: "delete",
}


class Stage(Enum):
    """Where a session is in the stream."""

    UNINITIALIZED = "uninitialized"
    HEADER_READ = "header-read"
    NORMAL = "normal"
    ID_LIST = "id-list"
    CONTENT = "content"
    CLOSED = "closed"


@dataclass
class Session:
    """Mutable decoding state for one byte source.

    ``marker`` and ``version`` are set once, by ensure_header().
    """

    marker: Marker | None = None
    version: int | None = None
    stage: Stage = Stage.UNINITIALIZED
    max_content_size: int | None = None

    @property
    def in_id_list(self) -> bool:
        return self.stage is Stage.ID_LIST


# =============================================================================
# Header
# =============================================================================

def check_delimiter(delimiter: str | None) -> None:
    """Raise HeaderError unless ``delimiter`` is non-empty and free of reserved characters."""
    if not delimiter:
        raise HeaderError("Delimiter must be at least one character long")
    reserved = sorted(set(delimiter) & RESERVED_DELIMITER_CHARS)
    if reserved:
        raise HeaderError(f"Invalid character in delimiter: {''.join(reserved)!r}")


def ensure_header(session: Session, source: BinaryIO) -> None:
    """Read and validate the stream header unless it was already read."""
    if session.marker is not None:
        return
    if session.stage is Stage.CLOSED:
        raise RuntimeError("Session was aborted before its header was read")

    line = scan_text(source, _HEADER_OPEN)
    if line is None or not line.startswith(HEADER_PREFIX):
        raise HeaderError(f"Adaptor data must begin with '{HEADER_PREFIX}'")

    version_text = line[len(HEADER_PREFIX):]
    if len(version_text) < 3:
        raise HeaderError(
            f"Format version '{version_text}' is invalid. The version must be at least "
            "one digit with one leading space and one trailing space."
        )

    delimiter = scan_text(source, _HEADER_CLOSE)
    check_delimiter(delimiter)

    version_text = version_text.strip()
    if not _VERSION_PATTERN.fullmatch(version_text):
        raise HeaderError(f"Format version '{version_text}' is invalid")
    version = int(version_text)
    if not _MIN_VERSION <= version <= _MAX_VERSION:
        raise HeaderError(f"Format version '{version_text}' is out of range")

    session.version = version
    session.marker = Marker(delimiter)
    session.stage = Stage.HEADER_READ
    logger.debug("Adaptor data version %d, %d byte delimiter", session.version, len(session.marker))


# =============================================================================
# Lines and commands
# =============================================================================

def next_line(session: Session, source: BinaryIO) -> list[str] | None:
    """
    Return the next non-empty line as [keyword] or [keyword, argument].

    Inside an id-list every line is returned as ["id", line]. An empty line
    closes the id-list; outside one, empty lines are skipped. Returns None
    at end of stream.
    """
    ensure_header(session, source)
    if session.stage in (Stage.CONTENT, Stage.CLOSED):
        return None

    while True:
        line = scan_text(source, session.marker)
        if line is None:
            session.stage = Stage.CLOSED
            return None

        if session.in_id_list:
            if not line:
                session.stage = Stage.NORMAL
                continue
            return [Operation.ID.keyword, line]

        if not line:
            continue
        if line == ID_LIST:
            session.stage = Stage.ID_LIST
            continue
        session.stage = Stage.NORMAL
        return line.split(ARGUMENT_SEPARATOR, 1)


def next_command(session: Session, source: BinaryIO) -> Command | None:
    """
    Return the next recognized Command, or None at end of stream.

    Unrecognized keywords are logged and skipped. "content" reads the rest
    of the source as its payload and ends the session.
    """
    while True:
        tokens = next_line(session, source)
        if tokens is None:
            return None

        keyword = tokens[0]
        argument = tokens[1] if len(tokens) > 1 else None

        if keyword == REPOSITORY_UNAVAILABLE:
            raise RepositoryUnavailableError(argument or "")

        operation = Operation.from_keyword(keyword)
        if operation is None:
            logger.warning("Skipping unrecognized command '%s'", keyword)
            continue

        if operation is Operation.CONTENT:
            return Command(operation, argument, _read_content(session, source))
        return Command(operation, argument)


def _read_content(session: Session, source: BinaryIO) -> bytes:
    session.stage = Stage.CONTENT
    limit = session.max_content_size
    logger.debug("Reading content to end of stream")

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = source.read(_CONTENT_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if limit is not None and total > limit:
            raise FormatError(f"Content exceeds maximum size of {limit} bytes")
        chunks.append(chunk)

    session.stage = Stage.CLOSED
    return b"".join(chunks)


def _doc_id(command: Command) -> DocId:
    if command.argument is None:
        raise SequenceError("'id' requires a document identifier", command.operation.keyword)
    return DocId(command.argument)


# =============================================================================
# Interpreters
# =============================================================================

def parse_lister(source: BinaryIO, session: Session | None = None) -> list[ListerDirective]:
    """
    Fold a lister stream into one ListerDirective per document id.

    An empty body is a valid empty listing. The first command must be an id;
    every other command applies to the most recent id.
    """
    if session is None:
        session = Session()
    directives: list[ListerDirective] = []

    command = next_command(session, source)
    if command is None:
        return directives
    if command.operation is not Operation.ID:
        raise SequenceError(
            "Lister error: the first operation must be a document id. "
            f"Instead encountered '{command.operation.keyword}'.",
            command.operation.keyword,
        )

    current: ListerDirective | None = None
    while command is not None:
        operation = command.operation
        if operation is Operation.ID:
            if current is not None:
                directives.append(current)
            current = ListerDirective(_doc_id(command))
        elif operation is Operation.LAST_MODIFIED:
            current = replace(current, last_modified=command.argument)
        elif operation in _LISTER_FLAGS:
            current = replace(current, **{_LISTER_FLAGS[operation]: True})
        else:
            raise SequenceError(
                f"Lister error: invalid operation '{operation.keyword}'", operation.keyword
            )
        command = next_command(session, source)

    directives.append(current)
    return directives


def parse_retriever(source: BinaryIO, session: Session | None = None) -> RetrieverResult:
    """
    Fold a retriever stream into a RetrieverResult for its single document.

    Flags are not checked against each other: a result may be both
    not-found and carry content.
    """
    if session is None:
        session = Session()

    command = next_command(session, source)
    if command is None:
        raise SequenceError("Invalid or missing retriever data")
    if command.operation is not Operation.ID:
        raise SequenceError(
            "Retriever error: the first operation must be a document id. "
            f"Instead encountered '{command.operation.keyword}'.",
            command.operation.keyword,
        )

    doc_id = _doc_id(command)
    metadata = Metadata.builder()
    content: bytes | None = None
    up_to_date = False
    not_found = False
    mime_type: str | None = None

    command = next_command(session, source)
    while command is not None:
        operation = command.operation
        if operation is Operation.ID:
            raise SequenceError(
                "Only one document id can be specified in a retriever message",
                operation.keyword,
            )
        elif operation is Operation.CONTENT:
            content = command.payload
        elif operation is Operation.META_NAME:
            name = command.argument
            if not name:
                raise SequenceError("meta-name requires a name", operation.keyword)
            command = next_command(session, source)
            if command is None or command.operation is not Operation.META_VALUE:
                raise SequenceError(
                    "meta-name must be immediately followed by meta-value", operation.keyword
                )
            metadata.add(name, command.argument or "")
        elif operation is Operation.UP_TO_DATE:
            up_to_date = True
        elif operation is Operation.NOT_FOUND:
            not_found = True
        elif operation is Operation.MIME_TYPE:
            mime_type = command.argument
        else:
            raise SequenceError(
                f"Retriever error: invalid operation '{operation.keyword}'", operation.keyword
            )
        command = next_command(session, source)

    return RetrieverResult(
        doc_id=doc_id,
        metadata=metadata.build(),
        content=content,
        up_to_date=up_to_date,
        not_found=not_found,
        mime_type=mime_type,
    )


# =============================================================================
# Reader facade
# =============================================================================

class AdaptorDataReader:
    """
    Reads one adaptor data stream, as either a lister or a retriever.

    Usage:
        # From a pipe or any binary file object
        reader = AdaptorDataReader(process.stdout)
        directives = reader.read_from_lister()

        # From a file
        with AdaptorDataReader.open("listing.dat") as reader:
            version = reader.get_version_number()
            directives = reader.read_from_lister()

        # From bytes
        result = AdaptorDataReader.from_bytes(data).read_from_retriever()
    """

    def __init__(self, handle: BinaryIO, *, max_content_size: int | None = None) -> None:
        self._handle = handle
        self.session = Session(max_content_size=max_content_size)
        self._role: str | None = None

    @classmethod
    def from_bytes(cls, data: bytes, **kwargs) -> AdaptorDataReader:
        return cls(io.BytesIO(data), **kwargs)

    @classmethod
    def open(cls, path: str | Path, **kwargs) -> AdaptorDataReader:
        return cls(open(path, "rb"), **kwargs)

    def get_version_number(self) -> int:
        """Format version from the header. Reads the header on first call."""
        self._run(ensure_header, self.session, self._handle)
        return self.session.version

    def read_from_lister(self) -> list[ListerDirective]:
        self._claim("lister")
        return self._run(parse_lister, self._handle, self.session)

    def read_from_retriever(self) -> RetrieverResult:
        self._claim("retriever")
        return self._run(parse_retriever, self._handle, self.session)

    def _claim(self, role: str) -> None:
        if self._role is not None:
            raise RuntimeError(f"Stream was already read as {self._role} data")
        self._role = role

    def _run(self, func: Callable[..., T], *args) -> T:
        try:
            return func(*args)
        except AdaptorDataError:
            self.session.stage = Stage.CLOSED
            raise

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> AdaptorDataReader:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def read_lister(data: bytes) -> list[ListerDirective]:
    """Parse a complete lister stream held in memory."""
    return AdaptorDataReader.from_bytes(data).read_from_lister()


def read_retriever(data: bytes) -> RetrieverResult:
    """Parse a complete retriever stream held in memory."""
    return AdaptorDataReader.from_bytes(data).read_from_retriever()
