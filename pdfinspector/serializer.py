"""Helpers for rendering parsed values back into PDF syntax.

:func:`serialize` is the display path.  :func:`write_pdf` and
:func:`append_update` produce complete documents and incremental updates,
mainly for building test inputs.
"""

from __future__ import annotations

import io
import re
from typing import Dict, Iterable, List, Mapping, Tuple

from .primitives import (
    PDFArray,
    PDFBoolean,
    PDFDictionary,
    PDFHexString,
    PDFIndirectObject,
    PDFLiteralString,
    PDFName,
    PDFNull,
    PDFNumber,
    PDFReference,
    PDFStream,
    Value,
)

_STARTXREF_RE = re.compile(rb"startxref\s*(\d+)")
_SIZE = PDFName("Size")
_PREV = PDFName("Prev")


def serialize(value: Value) -> bytes:
    """Render ``value`` using the text it was parsed from where possible."""

    if isinstance(value, PDFNull):
        return b"null"
    if isinstance(value, PDFBoolean):
        return b"true" if value.value else b"false"
    if isinstance(value, PDFNumber):
        return value.text.encode("ascii")
    if isinstance(value, PDFLiteralString):
        return b"(" + value.raw + b")"
    if isinstance(value, PDFHexString):
        return b"<" + value.raw + b">"
    if isinstance(value, PDFName):
        return str(value).encode("latin-1")
    if isinstance(value, PDFReference):
        return f"{value.obj_id} {value.generation} R".encode("ascii")
    if isinstance(value, PDFArray):
        return b"[" + b" ".join(serialize(item) for item in value) + b"]"
    if isinstance(value, PDFDictionary):
        parts = [b"<<"]
        for key, item in value.items():
            parts.append(serialize(key) + b" " + serialize(item))
        parts.append(b">>")
        return b"\n".join(parts)
    if isinstance(value, PDFStream):
        return value.raw_bytes()
    if isinstance(value, PDFIndirectObject):
        header = f"{value.obj_id} {value.generation} obj".encode("ascii")
        return b"\n".join([header, *(serialize(item) for item in value.contents), b"endobj"])
    raise TypeError(f"Unsupported value type: {type(value)!r}")


def make_stream(payload: bytes) -> PDFStream:
    """Wrap ``payload`` in ``stream``/``endstream`` keywords."""

    return PDFStream(b"stream\n" + payload + b"\nendstream", len(payload))


def _xref_subsections(entries: Dict[int, bytes]) -> List[Tuple[int, List[bytes]]]:
    """Group entry lines into runs of consecutive object ids."""

    runs: List[Tuple[int, List[bytes]]] = []
    for obj_id in sorted(entries):
        if runs and runs[-1][0] + len(runs[-1][1]) == obj_id:
            runs[-1][1].append(entries[obj_id])
        else:
            runs.append((obj_id, [entries[obj_id]]))
    return runs


def _write_objects(buffer: io.BytesIO, objects: Iterable[PDFIndirectObject], base: int) -> Dict[int, bytes]:
    entries: Dict[int, bytes] = {}
    for obj in sorted(objects, key=lambda item: item.key):
        entries[obj.obj_id] = f"{base + buffer.tell():010d} {obj.generation:05d} n \n".encode("ascii")
        buffer.write(serialize(obj))
        buffer.write(b"\n")
    return entries


def _write_tail(buffer: io.BytesIO, entries: Dict[int, bytes], trailer: PDFDictionary, base: int) -> None:
    xref_position = base + buffer.tell()
    buffer.write(b"xref\n")
    for start, lines in _xref_subsections(entries):
        buffer.write(f"{start} {len(lines)}\n".encode("ascii"))
        buffer.write(b"".join(lines))
    buffer.write(b"trailer\n")
    buffer.write(serialize(trailer))
    buffer.write(b"\nstartxref\n")
    buffer.write(str(xref_position).encode("ascii") + b"\n%%EOF\n")


def _as_dictionary(trailer: Mapping) -> PDFDictionary:
    if isinstance(trailer, PDFDictionary):
        return trailer
    return PDFDictionary(trailer.items())


def write_pdf(
    objects: Iterable[PDFIndirectObject], trailer: Mapping, version: str = "1.4"
) -> bytes:
    """Write a complete classic-syntax document with a valid xref table."""

    buffer = io.BytesIO()
    buffer.write(f"%PDF-{version}\n".encode("ascii"))
    entries = _write_objects(buffer, objects, 0)
    size = max(entries, default=0) + 1
    for obj_id in range(size):
        entries.setdefault(obj_id, b"0000000000 65535 f \n" if obj_id == 0 else b"0000000000 00000 f \n")
    trailer_dict = _as_dictionary(trailer).merged(PDFDictionary([(_SIZE, PDFNumber(str(size)))]))
    _write_tail(buffer, entries, trailer_dict, 0)
    return buffer.getvalue()


def append_update(data: bytes, objects: Iterable[PDFIndirectObject], trailer: Mapping) -> bytes:
    """Append an incremental-update revision to an existing document.

    The new trailer points back at the previous xref table through ``/Prev``.
    """

    matches = list(_STARTXREF_RE.finditer(data))
    if not matches:
        raise ValueError("document has no startxref to chain the update to")
    previous = int(matches[-1].group(1))
    if not data.endswith(b"\n"):
        data += b"\n"

    buffer = io.BytesIO()
    entries = _write_objects(buffer, objects, len(data))
    trailer_dict = _as_dictionary(trailer)
    size = max(max(entries, default=0) + 1, int(trailer_dict.get(_SIZE, PDFNumber("0"))))
    trailer_dict = trailer_dict.merged(
        PDFDictionary([(_SIZE, PDFNumber(str(size))), (_PREV, PDFNumber(str(previous)))])
    )
    _write_tail(buffer, entries, trailer_dict, len(data))
    return data + buffer.getvalue()
