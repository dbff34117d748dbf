"""
Marker scanner - splits a byte source into tokens separated by a marker.

The source is read one byte at a time so that nothing past the marker is
consumed; whatever follows (more tokens, or a raw binary payload) stays in
the source for the next reader.
"""

from __future__ import annotations

from typing import BinaryIO

from adsp.errors import EncodingError
from adsp.spec import ENCODING


class Marker:
    """Immutable, non-empty byte sequence that separates tokens.

    Keeps a prefix table so a failed partial match falls back to the
    longest prefix that is still matching instead of starting over.
    """

    __slots__ = ("_value", "_fallback")

    def __init__(self, value: bytes | str) -> None:
        if isinstance(value, str):
            value = value.encode(ENCODING)
        if not value:
            raise ValueError("Marker must be at least one byte long")
        self._value = bytes(value)
        self._fallback = _prefix_table(self._value)

    @property
    def value(self) -> bytes:
        return self._value

    def __len__(self) -> int:
        return len(self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Marker):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"Marker({self._value!r})"

    def advance(self, cursor: int, byte: int) -> int:
        """Return the new match cursor after seeing ``byte`` at ``cursor``."""
        value = self._value
        while cursor > 0 and value[cursor] != byte:
            cursor = self._fallback[cursor - 1]
        if value[cursor] == byte:
            cursor += 1
        return cursor


def _prefix_table(value: bytes) -> tuple[int, ...]:
    # table[i]: length of the longest proper prefix of value[:i + 1] that is also its suffix
    table = [0] * len(value)
    length = 0
    for i in range(1, len(value)):
        while length > 0 and value[i] != value[length]:
            length = table[length - 1]
        if value[i] == value[length]:
            length += 1
        table[i] = length
    return tuple(table)


def scan(source: BinaryIO, marker: Marker) -> bytes | None:
    """
    Read the bytes preceding the next occurrence of ``marker``.

    Returns the token with the marker consumed but not included. At end of
    stream, returns whatever was buffered (a trailing partial match is data,
    not a marker), or None when nothing at all was read. The difference
    between None and b"" matters: b"" is an empty line, None is the end.
    """
    buffer = bytearray()
    cursor = 0
    size = len(marker)
    while True:
        byte = source.read(1)
        if not byte:
            break
        buffer += byte
        cursor = marker.advance(cursor, byte[0])
        if cursor == size:
            del buffer[-size:]
            return bytes(buffer)
    if not buffer:
        return None
    return bytes(buffer)


def decode_token(token: bytes) -> str:
    """Strict UTF-8 decode; malformed input is an error, never replaced."""
    try:
        return token.decode(ENCODING)
    except UnicodeDecodeError as exc:
        raise EncodingError(f"Invalid {ENCODING} in token: {exc.reason}") from exc


def scan_text(source: BinaryIO, marker: Marker) -> str | None:
    """Like scan(), decoded to text."""
    token = scan(source, marker)
    if token is None:
        return None
    return decode_token(token)
