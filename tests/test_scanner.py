"""
Scanner Tests - Marker matching over byte streams.
"""

import io

import pytest

from adsp.errors import EncodingError
from adsp.scanner import Marker, decode_token, scan, scan_text


def tokens(data: bytes, marker: bytes) -> list[bytes]:
    source = io.BytesIO(data)
    result = []
    while (token := scan(source, Marker(marker))) is not None:
        result.append(token)
    return result


# =============================================================================
# Marker
# =============================================================================

class TestMarker:

    def test_from_str(self):
        assert Marker("\n") == Marker(b"\n")
        assert Marker("§").value == "§".encode("utf-8")

    def test_rejects_empty(self):
        with pytest.raises(ValueError, match="at least one byte"):
            Marker(b"")

    def test_len(self):
        assert len(Marker(b"\r\n")) == 2

    def test_advance_falls_back_to_prefix(self):
        marker = Marker(b"aab")
        cursor = 0
        for byte in b"aaa":
            cursor = marker.advance(cursor, byte)
        assert cursor == 2


# =============================================================================
# scan
# =============================================================================

class TestScan:

    def test_single_byte_marker(self):
        assert tokens(b"one\ntwo\nthree", b"\n") == [b"one", b"two", b"three"]

    def test_partial_match_is_kept(self):
        """The lone 'a' before the real 'ab' belongs to the token."""
        assert tokens(b"xaxaby", b"ab") == [b"xax", b"y"]

    def test_mismatch_can_start_new_match(self):
        assert tokens(b"xaab", b"ab") == [b"xa"]

    def test_overlapping_prefix(self):
        assert tokens(b"aaab", b"aab") == [b"a"]
        assert tokens(b"abababc-", b"ababc") == [b"ab", b"-"]

    def test_partial_match_at_end_of_stream(self):
        assert tokens(b"xyza", b"ab") == [b"xyza"]

    def test_empty_token_between_markers(self):
        assert tokens(b"a\n\nb", b"\n") == [b"a", b"", b"b"]

    def test_trailing_marker_is_not_an_empty_token(self):
        assert tokens(b"a\n", b"\n") == [b"a"]

    def test_end_of_stream(self):
        assert scan(io.BytesIO(b""), Marker(b"\n")) is None

    def test_empty_token_before_end_of_stream(self):
        source = io.BytesIO(b"\n")
        assert scan(source, Marker(b"\n")) == b""
        assert scan(source, Marker(b"\n")) is None

    def test_does_not_read_past_marker(self):
        source = io.BytesIO(b"line\x00\xff\xfe binary")
        assert scan(source, Marker(b"\x00")) == b"line"
        assert source.read() == b"\xff\xfe binary"

    def test_multibyte_marker(self):
        assert tokens(b"a\r\nb\rc\r\n", b"\r\n") == [b"a", b"b\rc"]

    def test_long_run_of_partial_matches(self):
        data = b"\r" * 10_000 + b"\r\n" + b"tail"
        assert tokens(data, b"\r\n") == [b"\r" * 10_000, b"tail"]


# =============================================================================
# Decoding
# =============================================================================

class TestDecode:

    def test_utf8(self):
        assert decode_token("café".encode("utf-8")) == "café"

    def test_invalid_utf8(self):
        with pytest.raises(EncodingError, match="Invalid utf-8"):
            decode_token(b"\xff\xfe")

    def test_scan_text(self):
        source = io.BytesIO("日本\n".encode("utf-8"))
        assert scan_text(source, Marker(b"\n")) == "日本"
        assert scan_text(source, Marker(b"\n")) is None
