"""Command line driver printing the structure of a PDF file."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .document import ParsedDocument, UnresolvedReference
from .errors import ParseError, StructureError
from .parser import parse_file
from .primitives import PDFIndirectObject, PDFReference, PDFStream
from .serializer import serialize


def render(value) -> str:
    """Printable form of a value; stream payloads are summarised."""

    if isinstance(value, UnresolvedReference):
        return str(value)
    if isinstance(value, PDFStream):
        return f"stream <{len(value.payload)} bytes> endstream"
    if isinstance(value, PDFIndirectObject):
        lines = [f"{value.obj_id} {value.generation} obj"]
        lines.extend(render(item) for item in value.contents)
        lines.append("endobj")
        return "\n".join(lines)
    return serialize(value).decode("latin-1")


def _print_section(title: str, text: str) -> None:
    print(f"{title}:")
    print(text)
    print()


def show_document(document: ParsedDocument, show_xref: bool = False) -> None:
    print(f"PDF-{document.version} ({len(document.objects)} objects)")
    print()
    _print_section("trailer", render(document.trailer))
    if show_xref:
        for section in document.xref_sections:
            _print_section(f"xref at {section.offset}", section.raw.decode("latin-1").rstrip())
    try:
        _print_section("catalog", render(document.catalog()))
        _print_section("pages", render(document.pages()))
    except StructureError as exc:
        print(f"error: {exc}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect the object structure of a PDF file")
    parser.add_argument("path", help="PDF file to inspect")
    parser.add_argument("--object", type=int, metavar="ID", help="Print a single object")
    parser.add_argument(
        "--generation",
        type=int,
        default=0,
        metavar="GEN",
        help="Generation of the object printed by --object (default 0)",
    )
    parser.add_argument("--xref", action="store_true", help="Print the raw xref tables")
    parser.add_argument(
        "--length-aware-streams",
        action="store_true",
        help="Cut streams at their declared /Length instead of the first endstream",
    )
    parser.add_argument("--debug", action="store_true", help="Trace every token on stderr")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = parse_file(args.path, stream_length_aware=args.length_aware_streams)
    except OSError as exc:
        print(f"error: cannot read {args.path}: {exc}", file=sys.stderr)
        return 1
    if isinstance(result, ParseError):
        print(f"error: {result}", file=sys.stderr)
        return 1

    if args.object is not None:
        print(render(result.resolve(PDFReference(args.object, args.generation))))
        return 0

    show_document(result, show_xref=args.xref)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
