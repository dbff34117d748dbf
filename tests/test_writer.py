"""
Writer Tests - Produce streams and read them back.
"""

import io

import pytest

from adsp.commands import Operation
from adsp.documents import DocId, ListerDirective, Metadata, RetrieverResult
from adsp.errors import RepositoryUnavailableError
from adsp.reader import AdaptorDataReader, Session, next_line, read_lister, read_retriever
from adsp.writer import AdaptorDataWriter


class TestWriter:

    def test_header(self):
        buffer = io.BytesIO()
        AdaptorDataWriter(buffer, "\n")
        assert buffer.getvalue() == b"GSA Adaptor Data Version 1 [\n]"

    def test_default_delimiter_is_null(self):
        buffer = io.BytesIO()
        AdaptorDataWriter(buffer).write_id("a")
        assert buffer.getvalue() == b"GSA Adaptor Data Version 1 [\0]id=a\0"

    def test_rejects_reserved_delimiter(self):
        with pytest.raises(ValueError, match="Invalid character"):
            AdaptorDataWriter(io.BytesIO(), "/")

    def test_rejects_text_containing_delimiter(self):
        writer = AdaptorDataWriter(io.BytesIO(), "\n")
        with pytest.raises(ValueError, match="contains or runs into the delimiter"):
            writer.write_id("bad\nid")

    def test_rejects_text_running_into_overlapping_delimiter(self):
        writer = AdaptorDataWriter(io.BytesIO(), "\n\n")
        with pytest.raises(ValueError, match="runs into the delimiter"):
            writer.write_id("a\n")

    def test_commands(self):
        buffer = io.BytesIO()
        writer = AdaptorDataWriter(buffer, "\n")
        writer.write_id("/a")
        writer.write_command(Operation.LAST_MODIFIED, "2011")
        writer.write_command(Operation.LOCK)
        assert buffer.getvalue().endswith(b"]id=/a\nlast-modified=2011\nlock\n")
        assert writer.commands_written == 3

    def test_id_list(self):
        buffer = io.BytesIO()
        writer = AdaptorDataWriter(buffer, "\n")
        writer.write_id_list(["/a", DocId("/b")])
        writer.write_id("/c")
        writer.write_command(Operation.LOCK)
        assert buffer.getvalue().endswith(b"]id-list\n/a\n/b\n\nid=/c\nlock\n")
        assert read_lister(buffer.getvalue()) == [
            ListerDirective(DocId("/a")),
            ListerDirective(DocId("/b")),
            ListerDirective(DocId("/c"), lock=True),
        ]

    def test_id_list_rejects_empty_id(self):
        writer = AdaptorDataWriter(io.BytesIO(), "\n")
        with pytest.raises(ValueError, match="cannot be empty"):
            writer.write_id_list(["/a", ""])

    def test_content_must_use_write_content(self):
        writer = AdaptorDataWriter(io.BytesIO())
        with pytest.raises(ValueError, match="write_content"):
            writer.write_command(Operation.CONTENT)

    def test_nothing_after_content(self):
        writer = AdaptorDataWriter(io.BytesIO())
        writer.write_id("a")
        writer.write_content(b"data")
        with pytest.raises(RuntimeError, match="after content"):
            writer.write_command(Operation.LOCK)

    def test_write_after_close_raises(self):
        writer = AdaptorDataWriter(io.BytesIO())
        writer.close()
        with pytest.raises(RuntimeError, match="closed"):
            writer.write_id("a")

    def test_repository_unavailable(self):
        buffer = io.BytesIO()
        AdaptorDataWriter(buffer).write_repository_unavailable("offline for backup")
        with pytest.raises(RepositoryUnavailableError) as excinfo:
            read_retriever(buffer.getvalue())
        assert excinfo.value.detail == "offline for backup"

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "doc.dat"
        with AdaptorDataWriter.open(path, delimiter="\r\n") as writer:
            writer.write_id("doc1")
            writer.write_command(Operation.MIME_TYPE, "application/pdf")
            writer.write_content(b"%PDF-1.4\r\n...")

        with AdaptorDataReader.open(path) as reader:
            result = reader.read_from_retriever()
        assert result.mime_type == "application/pdf"
        assert result.content == b"%PDF-1.4\r\n..."


# =============================================================================
# Round trips
# =============================================================================

class TestRoundTrip:

    @pytest.mark.parametrize("delimiter", ["\n", "\0", "\r\n", "||", "#@!", "§"])
    def test_tokens(self, delimiter):
        tokens = ["id=/docs/a", "last-modified=2011-08-03", "crawl-once", "meta-value=x=y", "not-found"]
        raw = f"GSA Adaptor Data Version 1 [{delimiter}]{delimiter.join(tokens)}".encode("utf-8")

        session, source = Session(), io.BytesIO(raw)
        parsed = []
        while (line := next_line(session, source)) is not None:
            parsed.append("=".join(line))
        assert parsed == tokens

    def test_lister(self):
        directives = [
            ListerDirective(DocId("/docs/file1")),
            ListerDirective(DocId("/docs/file2"), last_modified="1312387643000", crawl_immediately=True),
            ListerDirective(DocId("/docs/file3"), crawl_once=True, lock=True, delete=True),
        ]
        assert read_lister(AdaptorDataWriter.serialize_lister(directives)) == directives

    def test_empty_lister(self):
        assert read_lister(AdaptorDataWriter.serialize_lister([])) == []

    def test_lister_with_overlapping_delimiter(self):
        directives = [
            ListerDirective(DocId("a\rb"), lock=True),
            ListerDirective(DocId("c")),
        ]
        raw = AdaptorDataWriter.serialize_lister(directives, "\n\n")
        assert read_lister(raw) == directives

    def test_overlapping_delimiter_never_truncates(self):
        with pytest.raises(ValueError, match="runs into the delimiter"):
            AdaptorDataWriter.serialize_lister(
                [ListerDirective(DocId("a\n")), ListerDirective(DocId("b"))], "\n\n"
            )

    def test_retriever(self):
        result = RetrieverResult(
            DocId("doc1"),
            Metadata({"Department": "Engineering", "Creator": "howardhawks"}),
            content=b"\0binary\0with delimiters\0",
            mime_type="application/octet-stream",
        )
        assert read_retriever(AdaptorDataWriter.serialize_retriever(result)) == result

    def test_retriever_flags(self):
        result = RetrieverResult(DocId("doc1"), up_to_date=True, not_found=True)
        assert read_retriever(AdaptorDataWriter.serialize_retriever(result, "\n")) == result
