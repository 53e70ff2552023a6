"""Lexical scanner turning raw PDF bytes into tokens.

Patterns overlap (``3.`` is a prefix of ``3.14``, ``<`` opens both hex
strings and dictionaries), so they are tried in a fixed order at the cursor
and the first match wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Union

from .errors import ErrorKind, ParseError
from .primitives import (
    NULL,
    PDFBoolean,
    PDFHexString,
    PDFLiteralString,
    PDFName,
    PDFNumber,
    PDFStream,
    Value,
)
from .xref import XRefSection, read_xref

logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(rb"[\x00\t\n\x0c\r ]*")
_COMMENT = re.compile(rb"%[^\r\n]*")
_NUMBER_FRACTION = re.compile(rb"[+\-]?\d*\.\d+")
_NUMBER_INTEGER = re.compile(rb"[+\-]?\d+\.?")
_HEX_STRING = re.compile(rb"<([0-9A-Fa-f\x00\t\n\x0c\r ]*)>")
_NAME = re.compile(rb"/([^\x00\t\n\x0c\r ()<>\[\]{}/%]*)")
_STREAM = re.compile(rb"stream.+?endstream", re.S)
_STREAM_EOL = re.compile(rb"\r\n|\n|\r")
_ENDSTREAM = re.compile(rb"[\x00\t\n\x0c\r ]*endstream")


class TokenKind(Enum):
    COMMENT = "comment"
    BOOLEAN = "boolean"
    NUMBER = "number"
    LITERAL_STRING = "literal_string"
    HEX_STRING = "hex_string"
    NAME = "name"
    ARRAY_BEGIN = "["
    ARRAY_END = "]"
    DICT_BEGIN = "<<"
    DICT_END = ">>"
    STREAM = "stream"
    NULL = "null"
    OBJ = "obj"
    ENDOBJ = "endobj"
    REF = "R"
    XREF = "xref"
    TRAILER = "trailer"
    STARTXREF = "startxref"


# Tried in this order after the value patterns.
_DELIMITER_TOKENS = (
    (b"[", TokenKind.ARRAY_BEGIN),
    (b"]", TokenKind.ARRAY_END),
    (b"<<", TokenKind.DICT_BEGIN),
    (b">>", TokenKind.DICT_END),
)
_KEYWORD_TOKENS = (
    (b"endobj", TokenKind.ENDOBJ),
    (b"obj", TokenKind.OBJ),
    (b"R", TokenKind.REF),
    (b"xref", TokenKind.XREF),
    (b"trailer", TokenKind.TRAILER),
    (b"startxref", TokenKind.STARTXREF),
)


@dataclass(frozen=True)
class Token:
    """One scanned token; an ``XREF`` token carries its whole table."""

    kind: TokenKind
    offset: int
    value: Union[Value, XRefSection, None] = None


def _literal_string_end(data: bytes, index: int) -> Optional[int]:
    """Return the offset just past the ``)`` balancing the ``(`` at ``index``."""

    index += 1  # skip opening '('
    depth = 1
    length = len(data)
    while index < length:
        byte = data[index]
        if byte == 0x5C:  # backslash escapes the next byte
            index += 2
            continue
        if byte == 0x28:
            depth += 1
        elif byte == 0x29:
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return None


class Tokenizer:
    """Scanner over an in-memory buffer with a movable cursor."""

    def __init__(self, data: bytes, pos: int = 0):
        self.data = data
        self.pos = pos
        self.length = len(data)

    def at_end(self) -> bool:
        return self.pos >= self.length

    def skip_whitespace(self) -> None:
        self.pos = _WHITESPACE_RUN.match(self.data, self.pos).end()

    def error(self, message: str) -> ParseError:
        return ParseError.at(ErrorKind.UNRECOGNIZED_TOKEN, message, self.data, self.pos)

    def next_token(self, stream_length: Optional[int] = None) -> Optional[Token]:
        """Scan one token at the cursor, then skip trailing whitespace.

        ``stream_length`` is the declared length of a stream that may start
        here; without it a stream ends at the first ``endstream``.  The
        entry lines after ``xref`` are consumed with the keyword.
        """

        if self.at_end():
            return None
        token = self._scan(stream_length)
        if token is None:
            raise self.error("no token matches input")
        if token.kind is TokenKind.XREF:
            section, self.pos = read_xref(self.data, self.pos)
            token = Token(TokenKind.XREF, token.offset, section)
        logger.debug("%s at %d: %r", token.kind.name, token.offset, token.value)
        self.skip_whitespace()
        return token

    def _scan(self, stream_length: Optional[int]) -> Optional[Token]:
        data = self.data
        start = self.pos

        match = _COMMENT.match(data, start)
        if match:
            return self._emit(TokenKind.COMMENT, match.end())
        if data.startswith(b"true", start):
            return self._emit(TokenKind.BOOLEAN, start + 4, PDFBoolean(True))
        if data.startswith(b"false", start):
            return self._emit(TokenKind.BOOLEAN, start + 5, PDFBoolean(False))

        match = _NUMBER_FRACTION.match(data, start) or _NUMBER_INTEGER.match(data, start)
        if match:
            return self._emit(TokenKind.NUMBER, match.end(), PDFNumber(match.group().decode("ascii")))

        if data.startswith(b"(", start):
            end = _literal_string_end(data, start)
            if end is None:
                return None
            return self._emit(TokenKind.LITERAL_STRING, end, PDFLiteralString(data[start + 1 : end - 1]))

        match = _HEX_STRING.match(data, start)
        if match:
            return self._emit(TokenKind.HEX_STRING, match.end(), PDFHexString(match.group(1)))

        match = _NAME.match(data, start)
        if match:
            return self._emit(TokenKind.NAME, match.end(), PDFName(match.group(1).decode("latin-1")))

        for literal, kind in _DELIMITER_TOKENS:
            if data.startswith(literal, start):
                return self._emit(kind, start + len(literal))

        if data.startswith(b"stream", start):
            stream = self._scan_stream(stream_length)
            if stream is not None:
                return self._emit(TokenKind.STREAM, start + len(stream.raw), stream)

        if data.startswith(b"null", start):
            return self._emit(TokenKind.NULL, start + 4, NULL)

        for literal, kind in _KEYWORD_TOKENS:
            if data.startswith(literal, start):
                return self._emit(kind, start + len(literal))
        return None

    def _scan_stream(self, stream_length: Optional[int]) -> Optional[PDFStream]:
        start = self.pos
        if stream_length is not None:
            body = start + len(b"stream")
            eol = _STREAM_EOL.match(self.data, body)
            if eol:
                body = eol.end()
            tail = _ENDSTREAM.match(self.data, body + stream_length) if stream_length >= 0 else None
            if tail and body + stream_length <= self.length:
                return PDFStream(self.data[start : tail.end()], stream_length)
            logger.warning(
                "stream at %d does not end after its declared /Length %d; "
                "falling back to the first endstream",
                start,
                stream_length,
            )
        match = _STREAM.match(self.data, start)
        if match is None:
            return None
        return PDFStream(match.group())

    def _emit(self, kind: TokenKind, end: int, value: Optional[Value] = None) -> Token:
        token = Token(kind, self.pos, value)
        self.pos = end
        return token


def tokenize(data: bytes, start: int = 0) -> Iterator[Token]:
    """Yield every token of ``data`` from ``start``."""

    tokenizer = Tokenizer(data, start)
    tokenizer.skip_whitespace()
    while True:
        token = tokenizer.next_token()
        if token is None:
            return
        yield token
