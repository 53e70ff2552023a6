"""Error taxonomy shared by the tokenizer, xref reader and parser."""

from __future__ import annotations

from enum import Enum
from typing import Optional

_CONTEXT_RADIUS = 20


class ErrorKind(Enum):
    INVALID_FORMAT = "InvalidFormat"
    UNRECOGNIZED_TOKEN = "UnrecognizedToken"
    UNBALANCED_DELIMITER = "UnbalancedDelimiter"
    MALFORMED_DICTIONARY = "MalformedDictionary"
    MISSING_TRAILER_MARKER = "MissingTrailerMarker"
    MALFORMED_XREF_SUBSECTION = "MalformedXrefSubsection"
    INVALID_OPERAND = "InvalidOperand"


class ParseError(RuntimeError):
    """Structural failure that aborts the current parse.

    ``offset`` is the byte position where the problem was detected and
    ``context`` the bytes surrounding it.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        offset: Optional[int] = None,
        context: bytes = b"",
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.offset = offset
        self.context = context

    @classmethod
    def at(cls, kind: ErrorKind, message: str, data: bytes, offset: int) -> "ParseError":
        start = max(0, offset - _CONTEXT_RADIUS)
        return cls(kind, message, offset, data[start : offset + _CONTEXT_RADIUS])

    def __str__(self) -> str:
        if self.offset is None:
            return f"{self.kind.value}: {self.message}"
        return f"{self.kind.value} at offset {self.offset}: {self.message} (near {self.context!r})"


class StructureError(RuntimeError):
    """Raised when the trailer or catalog does not have the expected shape."""
