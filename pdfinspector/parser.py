"""Stack-machine parser building a :class:`ParsedDocument` from PDF bytes.

Tokens are pushed onto a single operand stack.  Opening delimiters push a
marker; the matching closer pops everything down to that marker and pushes
the assembled value.  ``obj`` registers its object before the body is
parsed, so an object may refer to itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from .document import ObjectTable, ParsedDocument
from .errors import ErrorKind, ParseError
from .primitives import (
    PDFArray,
    PDFDictionary,
    PDFIndirectObject,
    PDFName,
    PDFNumber,
    PDFReference,
    Value,
)
from .tokenizer import Token, TokenKind, Tokenizer
from .xref import XRefSection

logger = logging.getLogger(__name__)

_HEADER = re.compile(rb"%PDF-(\d+\.\d+)[ \t]*(?:\r\n|\n|\r)")
_STARTXREF_OFFSET = re.compile(rb"\d+")
_LENGTH = PDFName("Length")

_VALUE_KINDS = frozenset(
    {
        TokenKind.BOOLEAN,
        TokenKind.NUMBER,
        TokenKind.LITERAL_STRING,
        TokenKind.HEX_STRING,
        TokenKind.NAME,
        TokenKind.STREAM,
        TokenKind.NULL,
    }
)


class Marker(Enum):
    BEGIN_ARRAY = "["
    BEGIN_DICT = "<<"
    TRAILER = "trailer"


@dataclass(frozen=True)
class ObjPlaceholder:
    """Scope marker for an object whose ``endobj`` has not been seen yet."""

    obj: PDFIndirectObject


StackEntry = Union[Value, Marker, ObjPlaceholder]


def _describe(entry: StackEntry) -> str:
    if isinstance(entry, ObjPlaceholder):
        return f"'{entry.obj.obj_id} {entry.obj.generation} obj'"
    return f"'{entry.value}'"


class Parser:
    """Single-use parser; create one per document."""

    def __init__(self, data: bytes, *, stream_length_aware: bool = False):
        self.data = data
        self.stream_length_aware = stream_length_aware
        self.tokenizer = Tokenizer(data)
        self.stack: List[StackEntry] = []
        self.objects = ObjectTable()
        self.trailer: Optional[PDFDictionary] = None
        self.trailer_sections = 0
        self.xref_sections: List[XRefSection] = []
        self.startxref: Optional[int] = None
        self._handlers: Dict[TokenKind, Callable[[Token], None]] = {
            TokenKind.COMMENT: lambda token: None,
            TokenKind.ARRAY_BEGIN: self._begin_array,
            TokenKind.ARRAY_END: self._end_array,
            TokenKind.DICT_BEGIN: self._begin_dict,
            TokenKind.DICT_END: self._end_dict,
            TokenKind.OBJ: self._begin_obj,
            TokenKind.ENDOBJ: self._end_obj,
            TokenKind.REF: self._reference,
            TokenKind.XREF: self._xref,
            TokenKind.TRAILER: self._trailer,
            TokenKind.STARTXREF: self._startxref,
        }

    def run(self) -> ParsedDocument:
        version = self._read_header()
        while True:
            token = self.tokenizer.next_token(self._declared_stream_length())
            if token is None:
                break
            if token.kind in _VALUE_KINDS:
                self.stack.append(token.value)
            else:
                self._handlers[token.kind](token)

        for entry in self.stack:
            if isinstance(entry, (Marker, ObjPlaceholder)):
                raise ParseError.at(
                    ErrorKind.UNBALANCED_DELIMITER,
                    f"{_describe(entry)} is never closed",
                    self.data,
                    len(self.data),
                )

        self.objects.freeze()
        document = ParsedDocument(
            version=version,
            objects=self.objects,
            trailer=self.trailer if self.trailer is not None else PDFDictionary(),
            xref_sections=tuple(self.xref_sections),
            body=tuple(self.stack),
            startxref=self.startxref,
        )
        logger.info(
            "parsed PDF %s: %d objects, %d trailer sections, %d xref sections",
            version,
            len(self.objects),
            self.trailer_sections,
            len(self.xref_sections),
        )
        return document

    def _read_header(self) -> str:
        match = _HEADER.match(self.data)
        if match is None:
            raise ParseError.at(
                ErrorKind.INVALID_FORMAT, "missing %PDF-<major>.<minor> header", self.data, 0
            )
        self.tokenizer.pos = match.end()
        self.tokenizer.skip_whitespace()
        return match.group(1).decode("ascii")

    def _error(self, kind: ErrorKind, message: str, token: Token) -> ParseError:
        return ParseError.at(kind, message, self.data, token.offset)

    def _pop_until(self, opener: Callable[[StackEntry], bool], token: Token) -> Tuple[StackEntry, List[Value]]:
        """Pop values down to the nearest entry accepted by ``opener``.

        Returns that entry and the popped values in source order.
        """

        values: List[Value] = []
        while self.stack:
            entry = self.stack.pop()
            if opener(entry):
                values.reverse()
                return entry, values
            if isinstance(entry, (Marker, ObjPlaceholder)):
                raise self._error(
                    ErrorKind.UNBALANCED_DELIMITER,
                    f"'{token.kind.value}' cannot close {_describe(entry)}",
                    token,
                )
            values.append(entry)
        raise self._error(
            ErrorKind.UNBALANCED_DELIMITER, f"'{token.kind.value}' has no opening marker", token
        )

    def _pop_object_key(self, token: Token) -> Tuple[int, int]:
        operands = []
        for _ in range(2):
            top = self.stack[-1] if self.stack else None
            if not isinstance(top, PDFNumber) or not top.is_integer:
                raise self._error(
                    ErrorKind.INVALID_OPERAND,
                    f"'{token.kind.value}' expects an object number and a generation, got {top!r}",
                    token,
                )
            operands.append(self.stack.pop())
        generation, obj_id = operands
        return int(obj_id), int(generation)

    def _begin_array(self, token: Token) -> None:
        self.stack.append(Marker.BEGIN_ARRAY)

    def _end_array(self, token: Token) -> None:
        _, values = self._pop_until(lambda entry: entry is Marker.BEGIN_ARRAY, token)
        self.stack.append(PDFArray(tuple(values)))

    def _begin_dict(self, token: Token) -> None:
        self.stack.append(Marker.BEGIN_DICT)

    def _end_dict(self, token: Token) -> None:
        _, values = self._pop_until(lambda entry: entry is Marker.BEGIN_DICT, token)
        if len(values) % 2:
            raise self._error(
                ErrorKind.MALFORMED_DICTIONARY,
                f"dictionary holds an odd number of entries ({len(values)})",
                token,
            )
        keys = values[0::2]
        for key in keys:
            if not isinstance(key, PDFName):
                raise self._error(
                    ErrorKind.MALFORMED_DICTIONARY, f"dictionary key {key!r} is not a name", token
                )
        self.stack.append(PDFDictionary(zip(keys, values[1::2])))

    def _begin_obj(self, token: Token) -> None:
        obj_id, generation = self._pop_object_key(token)
        obj = PDFIndirectObject(obj_id, generation)
        self.objects.register(obj)
        self.stack.append(ObjPlaceholder(obj))
        logger.debug("object %d %d opened at %d", obj_id, generation, token.offset)

    def _end_obj(self, token: Token) -> None:
        placeholder, values = self._pop_until(lambda entry: isinstance(entry, ObjPlaceholder), token)
        obj = placeholder.obj
        obj.complete(values)
        self.stack.append(obj)

    def _reference(self, token: Token) -> None:
        obj_id, generation = self._pop_object_key(token)
        self.stack.append(PDFReference(obj_id, generation))

    def _xref(self, token: Token) -> None:
        self.xref_sections.append(token.value)

    def _trailer(self, token: Token) -> None:
        self.stack.append(Marker.TRAILER)

    def _startxref(self, token: Token) -> None:
        if not self.stack or not isinstance(self.stack[-1], PDFDictionary):
            raise self._error(
                ErrorKind.MISSING_TRAILER_MARKER, "startxref must follow a trailer dictionary", token
            )
        dictionary = self.stack.pop()
        if not self.stack or self.stack[-1] is not Marker.TRAILER:
            raise self._error(
                ErrorKind.MISSING_TRAILER_MARKER,
                "dictionary before startxref is not preceded by 'trailer'",
                token,
            )
        self.stack.pop()
        if self.trailer is None:
            self.trailer = dictionary
        else:
            self.trailer = self.trailer.merged(dictionary)
        self.trailer_sections += 1

        match = _STARTXREF_OFFSET.match(self.data, self.tokenizer.pos)
        if match:
            self.startxref = int(match.group())
            self.tokenizer.pos = match.end()
            self.tokenizer.skip_whitespace()
        logger.debug("trailer section %d merged at %d", self.trailer_sections, token.offset)

    def _declared_stream_length(self) -> Optional[int]:
        if not self.stream_length_aware:
            return None
        if not self.data.startswith(b"stream", self.tokenizer.pos):
            return None
        top = self.stack[-1] if self.stack else None
        if not isinstance(top, PDFDictionary):
            return None
        length = top.get(_LENGTH)
        if isinstance(length, PDFReference):
            target = self.objects.lookup(length.obj_id, length.generation)
            if target is None or len(target.contents) != 1:
                return None
            length = target.contents[0]
        if isinstance(length, PDFNumber) and length.is_integer:
            return int(length)
        return None


def parse(data: bytes, *, stream_length_aware: bool = False) -> Union[ParsedDocument, ParseError]:
    """Parse ``data`` and return the document, or the error that stopped it.

    Structural errors are fatal for the parse and are returned rather than
    raised.  ``stream_length_aware`` cuts streams at their declared
    ``/Length`` instead of the first ``endstream``.
    """

    try:
        return Parser(data, stream_length_aware=stream_length_aware).run()
    except ParseError as exc:
        logger.debug("parse aborted: %s", exc)
        return exc


def parse_file(path: Union[str, Path], *, stream_length_aware: bool = False) -> Union[ParsedDocument, ParseError]:
    with open(path, "rb") as handle:
        data = handle.read()
    return parse(data, stream_length_aware=stream_length_aware)
