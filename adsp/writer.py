"""
Adaptor data writer - produces streams the reader understands.

Commands are written as soon as they are added, so a writer attached to a
pipe streams to the consumer incrementally.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import BinaryIO

from adsp.commands import Operation
from adsp.documents import DocId, ListerDirective, RetrieverResult
from adsp.reader import check_delimiter
from adsp.spec import (
    ARGUMENT_SEPARATOR,
    ENCODING,
    FORMAT_VERSION,
    HEADER_CLOSE,
    HEADER_OPEN,
    HEADER_PREFIX,
    ID_LIST,
    REPOSITORY_UNAVAILABLE,
)

DEFAULT_DELIMITER = "\0"


class AdaptorDataWriter:
    """
    Incremental writer for adaptor data streams.

    Usage:
        with AdaptorDataWriter.open("listing.dat", delimiter="\\n") as w:
            w.write_id_list(["/docs/a", "/docs/b"])
            w.write_id("/docs/c")
            w.write_command(Operation.LOCK)

        data = AdaptorDataWriter.serialize_retriever(result)
    """

    def __init__(self, handle: BinaryIO, delimiter: str = DEFAULT_DELIMITER, version: int = FORMAT_VERSION) -> None:
        check_delimiter(delimiter)
        self._handle = handle
        self.delimiter = delimiter
        self._closed = False
        self._content_written = False
        self.commands_written = 0
        header = f"{HEADER_PREFIX} {version} {HEADER_OPEN}{delimiter}{HEADER_CLOSE}"
        self._handle.write(header.encode(ENCODING))

    @classmethod
    def open(cls, path: str | Path, **kwargs) -> AdaptorDataWriter:
        return cls(open(path, "wb"), **kwargs)

    # -- low level --------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Cannot write to a closed writer")
        if self._content_written:
            raise RuntimeError("Nothing can be written after content")

    def _check_text(self, text: str) -> None:
        # The reader must find the first delimiter exactly where the line ends.
        if (text + self.delimiter).find(self.delimiter) != len(text):
            raise ValueError(f"Text {text!r} contains or runs into the delimiter")

    def _write_line(self, line: str) -> None:
        self._check_text(line)
        self._handle.write((line + self.delimiter).encode(ENCODING))

    def write_command(self, operation: Operation, argument: str | None = None) -> None:
        """Write one command line. Use write_content() for CONTENT."""
        self._check_open()
        if operation is Operation.CONTENT:
            raise ValueError("Use write_content() to write document content")
        line = operation.keyword
        if argument is not None:
            line = f"{line}{ARGUMENT_SEPARATOR}{argument}"
        self._write_line(line)
        self.commands_written += 1

    def write_id(self, doc_id: DocId | str) -> None:
        self.write_command(Operation.ID, str(doc_id))

    def write_id_list(self, doc_ids: Iterable[DocId | str]) -> None:
        """Write bare ids as an id-list, closed by an empty line."""
        self._check_open()
        lines = [str(doc_id) for doc_id in doc_ids]
        for line in lines:
            if not line:
                raise ValueError("Document ids in an id-list cannot be empty")
            self._check_text(line)
        self._write_line(ID_LIST)
        for line in lines:
            self._write_line(line)
        self._handle.write(self.delimiter.encode(ENCODING))
        self.commands_written += len(lines)

    def write_metadata(self, metadata: Mapping[str, str]) -> None:
        for name, value in metadata.items():
            self.write_command(Operation.META_NAME, name)
            self.write_command(Operation.META_VALUE, value)

    def write_repository_unavailable(self, detail: str = "") -> None:
        self._check_open()
        self._write_line(f"{REPOSITORY_UNAVAILABLE}{ARGUMENT_SEPARATOR}{detail}")

    def write_content(self, content: bytes) -> None:
        """Write the content payload. This is always the last thing in a stream."""
        self._check_open()
        self._write_line(Operation.CONTENT.keyword)
        self._handle.write(content)
        self._content_written = True
        self.commands_written += 1

    # -- protocol level ---------------------------------------------------

    def write_directive(self, directive: ListerDirective) -> None:
        self.write_id(directive.doc_id)
        if directive.last_modified is not None:
            self.write_command(Operation.LAST_MODIFIED, directive.last_modified)
        if directive.crawl_immediately:
            self.write_command(Operation.CRAWL_IMMEDIATELY)
        if directive.crawl_once:
            self.write_command(Operation.CRAWL_ONCE)
        if directive.lock:
            self.write_command(Operation.LOCK)
        if directive.delete:
            self.write_command(Operation.DELETE)

    def write_retriever_result(self, result: RetrieverResult) -> None:
        self.write_id(result.doc_id)
        if result.up_to_date:
            self.write_command(Operation.UP_TO_DATE)
        if result.not_found:
            self.write_command(Operation.NOT_FOUND)
        if result.mime_type is not None:
            self.write_command(Operation.MIME_TYPE, result.mime_type)
        self.write_metadata(result.metadata)
        if result.content is not None:
            self.write_content(result.content)

    @classmethod
    def serialize_lister(cls, directives: Iterable[ListerDirective], delimiter: str = DEFAULT_DELIMITER) -> bytes:
        buffer = io.BytesIO()
        writer = cls(buffer, delimiter)
        for directive in directives:
            writer.write_directive(directive)
        return buffer.getvalue()

    @classmethod
    def serialize_retriever(cls, result: RetrieverResult, delimiter: str = DEFAULT_DELIMITER) -> bytes:
        buffer = io.BytesIO()
        cls(buffer, delimiter).write_retriever_result(result)
        return buffer.getvalue()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._handle.flush()
        self._handle.close()

    def __enter__(self) -> AdaptorDataWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()
