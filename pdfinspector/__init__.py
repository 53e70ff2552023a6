"""Public interface for the pdfinspector package."""

from .document import ObjectTable, ParsedDocument, UnresolvedReference
from .errors import ErrorKind, ParseError, StructureError
from .parser import parse, parse_file
from .primitives import (
    NULL,
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
from .serializer import append_update, make_stream, serialize, write_pdf

__all__ = [
    "NULL",
    "ErrorKind",
    "ObjectTable",
    "PDFArray",
    "PDFBoolean",
    "PDFDictionary",
    "PDFHexString",
    "PDFIndirectObject",
    "PDFLiteralString",
    "PDFName",
    "PDFNull",
    "PDFNumber",
    "PDFReference",
    "PDFStream",
    "ParseError",
    "ParsedDocument",
    "StructureError",
    "UnresolvedReference",
    "Value",
    "append_update",
    "make_stream",
    "parse",
    "parse_file",
    "serialize",
    "write_pdf",
]
