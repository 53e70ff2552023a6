"""Value model for parsed PDF syntax.

Every value produced by the parser is one of the classes in this module.
Scalars keep the exact bytes they were written with so a presentation layer
can show the document as it appears on disk: numbers are never converted to
``int``/``float`` and string escapes are left undecoded until asked for.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Tuple, Union

_OCTAL_DIGITS = b"01234567"
_ESCAPES = {
    b"n": b"\n",
    b"r": b"\r",
    b"t": b"\t",
    b"b": b"\b",
    b"f": b"\f",
    b"(": b"(",
    b")": b")",
    b"\\": b"\\",
}
_HEX_WHITESPACE = re.compile(rb"\s+")


@dataclass(frozen=True)
class PDFNull:
    """The ``null`` object."""

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return "NULL"


NULL = PDFNull()


@dataclass(frozen=True)
class PDFBoolean:
    value: bool

    def __bool__(self) -> bool:
        return self.value


@dataclass(frozen=True)
class PDFNumber:
    """Numeric literal kept in its source form (``3``, ``3.``, ``-3.14``)."""

    text: str

    @property
    def is_integer(self) -> bool:
        return "." not in self.text

    @property
    def value(self) -> int | float:
        return int(self.text) if self.is_integer else float(self.text)

    def __int__(self) -> int:
        return int(self.value)

    def __float__(self) -> float:
        return float(self.text)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class PDFLiteralString:
    """Literal string ``(...)``; ``raw`` excludes the outer parentheses."""

    raw: bytes

    def decode(self) -> bytes:
        """Return the string contents with escape sequences processed."""

        data = self.raw
        result = bytearray()
        index = 0
        while index < len(data):
            byte = data[index : index + 1]
            if byte != b"\\":
                result += byte
                index += 1
                continue
            index += 1
            if index >= len(data):
                break
            byte = data[index : index + 1]
            if byte in _ESCAPES:
                result += _ESCAPES[byte]
                index += 1
            elif byte in b"\r\n":
                # line continuation
                index += 1
                if byte == b"\r" and data[index : index + 1] == b"\n":
                    index += 1
            elif byte in _OCTAL_DIGITS:
                end = index
                while end < len(data) and end - index < 3 and data[end : end + 1] in _OCTAL_DIGITS:
                    end += 1
                result.append(int(data[index:end], 8) & 0xFF)
                index = end
            else:
                result += byte
                index += 1
        return bytes(result)


@dataclass(frozen=True)
class PDFHexString:
    """Hexadecimal string ``<...>``; ``raw`` excludes the angle brackets."""

    raw: bytes

    def to_bytes(self) -> bytes:
        digits = _HEX_WHITESPACE.sub(b"", self.raw)
        if len(digits) % 2:
            digits += b"0"
        return bytes.fromhex(digits.decode("ascii"))


@dataclass(frozen=True)
class PDFName:
    """Represents a PDF name object (e.g. ``/Page``).

    The value is stored without the leading slash to make it easier to work
    with inside Python code.  ``str(name)`` reintroduces the slash.
    """

    value: str

    @classmethod
    def coerce(cls, key: Union["PDFName", str]) -> "PDFName":
        """Accept ``PDFName("Type")``, ``"/Type"`` or ``"Type"``."""

        if isinstance(key, PDFName):
            return key
        return cls(key[1:] if key.startswith("/") else key)

    def __str__(self) -> str:
        return f"/{self.value}"

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"PDFName({self.value!r})"


@dataclass(frozen=True)
class PDFReference:
    """Object reference (``12 0 R``)."""

    obj_id: int
    generation: int = 0

    @property
    def key(self) -> Tuple[int, int]:
        return (self.obj_id, self.generation)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"PDFReference({self.obj_id}, {self.generation})"


@dataclass(frozen=True)
class PDFArray(Sequence):
    items: Tuple["Value", ...] = ()

    def __getitem__(self, index):
        return self.items[index]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)


class PDFDictionary(Mapping):
    """Read-only mapping of :class:`PDFName` to values.

    Insertion order follows the source.  When a key repeats, the last
    occurrence wins but keeps the position of the first.
    """

    __slots__ = ("_entries",)

    def __init__(self, pairs: Iterable[Tuple[PDFName, "Value"]] = ()):
        entries: dict = {}
        for key, value in pairs:
            entries[PDFName.coerce(key)] = value
        self._entries = entries

    def __getitem__(self, key: Union[PDFName, str]) -> "Value":
        if not isinstance(key, (PDFName, str)):
            raise KeyError(key)
        return self._entries[PDFName.coerce(key)]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (PDFName, str)):
            return False
        return PDFName.coerce(key) in self._entries

    def __iter__(self) -> Iterator[PDFName]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        body = ", ".join(f"{key}: {value!r}" for key, value in self._entries.items())
        return f"PDFDictionary({{{body}}})"

    def merged(self, other: "PDFDictionary") -> "PDFDictionary":
        """Return a copy where every key of ``other`` overrides ours."""

        return PDFDictionary(list(self._entries.items()) + list(other.items()))


@dataclass(frozen=True)
class PDFStream:
    """Raw ``stream ... endstream`` span, undecoded.

    ``length`` is set only when the span was cut using the declared
    ``/Length`` of the stream dictionary.
    """

    raw: bytes
    length: Optional[int] = None

    def raw_bytes(self) -> bytes:
        return self.raw

    @property
    def payload(self) -> bytes:
        data = self.raw[len(b"stream") :]
        if data.startswith(b"\r\n"):
            data = data[2:]
        elif data[:1] in (b"\n", b"\r"):
            data = data[1:]
        if self.length is not None:
            return data[: self.length]
        data = data[: -len(b"endstream")]
        if data.endswith(b"\r\n"):
            return data[:-2]
        if data[-1:] in (b"\n", b"\r"):
            return data[:-1]
        return data

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<PDFStream bytesize={len(self.raw)}>"


@dataclass(frozen=True, eq=False)
class PDFIndirectObject:
    """Object defined between ``obj`` and ``endobj``.

    Attributes
    ----------
    obj_id:
        Integer identifier of the object.
    generation:
        Generation number.
    contents:
        Every value parsed between the markers, in order.  A plain object
        holds a single dictionary; a stream object holds the dictionary
        followed by its :class:`PDFStream`.

    The parser registers the object when it reads ``obj`` and fills
    ``contents`` once, through :meth:`complete`, at ``endobj``.
    """

    obj_id: int
    generation: int
    contents: Tuple["Value", ...] = field(default=())
    _completed: bool = field(default=False, init=False, repr=False)

    @property
    def key(self) -> Tuple[int, int]:
        return (self.obj_id, self.generation)

    @property
    def reference(self) -> PDFReference:
        return PDFReference(self.obj_id, self.generation)

    def complete(self, contents: Iterable["Value"]) -> None:
        if self._completed:
            raise RuntimeError(f"object {self.obj_id} {self.generation} is already complete")
        object.__setattr__(self, "contents", tuple(contents))
        object.__setattr__(self, "_completed", True)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"PDFIndirectObject({self.obj_id}, {self.generation}, {len(self.contents)} values)"


Value = Union[
    PDFNull,
    PDFBoolean,
    PDFNumber,
    PDFLiteralString,
    PDFHexString,
    PDFName,
    PDFArray,
    PDFDictionary,
    PDFStream,
    PDFReference,
    PDFIndirectObject,
]
