"""Reader for classic ``xref`` tables.

The table is kept for display only; navigation goes through the trailer's
``/Root`` reference, never through byte offsets.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Tuple

from .errors import ErrorKind, ParseError

logger = logging.getLogger(__name__)

_HEADER = re.compile(rb"[ \t]*(\d+)[ \t]+(\d+)[ \t]*(?:\r\n|\n|\r)")
_ENTRY = re.compile(rb"[ \t]*(\d+)[ \t]+(\d+)[ \t]+([nf])[ \t]*(?:\r\n|\n|\r)")
_LEADING_EOL = re.compile(rb"[ \t]*(?:\r\n|\n|\r)")


@dataclass(frozen=True)
class XRefEntry:
    offset: int
    generation: int
    in_use: bool


@dataclass(frozen=True)
class XRefSubsection:
    start: int
    count: int
    entries: Tuple[XRefEntry, ...]

    def object_ids(self) -> range:
        return range(self.start, self.start + self.count)


@dataclass(frozen=True)
class XRefSection:
    """One ``xref`` keyword and the subsections that follow it."""

    offset: int
    raw: bytes
    subsections: Tuple[XRefSubsection, ...]

    def entries(self) -> List[Tuple[int, XRefEntry]]:
        """Return ``(object id, entry)`` pairs across every subsection."""

        return [
            (obj_id, entry)
            for subsection in self.subsections
            for obj_id, entry in zip(subsection.object_ids(), subsection.entries)
        ]


def read_xref(data: bytes, pos: int) -> Tuple[XRefSection, int]:
    """Read the subsections following an ``xref`` keyword.

    ``pos`` points just past the keyword.  Returns the section and the
    offset of the first byte after its last entry line.
    """

    keyword_offset = pos - len(b"xref")
    eol = _LEADING_EOL.match(data, pos)
    if eol is None:
        raise ParseError.at(
            ErrorKind.MALFORMED_XREF_SUBSECTION, "xref keyword must end its line", data, pos
        )
    cursor = eol.end()
    subsections: List[XRefSubsection] = []

    header = _HEADER.match(data, cursor)
    if header is None:
        raise ParseError.at(
            ErrorKind.MALFORMED_XREF_SUBSECTION, "missing subsection header", data, cursor
        )
    while header is not None:
        start, count = int(header.group(1)), int(header.group(2))
        cursor = header.end()
        entries = []
        for index in range(count):
            entry = _ENTRY.match(data, cursor)
            if entry is None:
                raise ParseError.at(
                    ErrorKind.MALFORMED_XREF_SUBSECTION,
                    f"subsection {start} {count} declares {count} entries, found {index}",
                    data,
                    cursor,
                )
            entries.append(
                XRefEntry(int(entry.group(1)), int(entry.group(2)), entry.group(3) == b"n")
            )
            cursor = entry.end()
        subsections.append(XRefSubsection(start, count, tuple(entries)))
        logger.debug("xref subsection %d %d at %d", start, count, header.start())
        header = _HEADER.match(data, cursor)
        if header is None and _ENTRY.match(data, cursor):
            raise ParseError.at(
                ErrorKind.MALFORMED_XREF_SUBSECTION,
                f"subsection {start} {count} has more than {count} entries",
                data,
                cursor,
            )

    section = XRefSection(keyword_offset, data[keyword_offset:cursor], tuple(subsections))
    return section, cursor
