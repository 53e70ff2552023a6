"""Parsed document model: object table, trailer and reference resolution."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple, Union

from .errors import StructureError
from .primitives import (
    PDFDictionary,
    PDFIndirectObject,
    PDFName,
    PDFReference,
    Value,
)
from .xref import XRefSection

ROOT = PDFName("Root")
PAGES = PDFName("Pages")

ObjectKey = Tuple[int, int]


class ObjectTable(Mapping):
    """Indirect objects keyed by ``(obj_id, generation)``.

    Filled while parsing, then frozen.  A later registration of the same key
    replaces the earlier object, which is how incremental updates redefine
    objects.
    """

    def __init__(self) -> None:
        self._objects: Dict[ObjectKey, PDFIndirectObject] = {}
        self._frozen = False

    def register(self, obj: PDFIndirectObject) -> None:
        if self._frozen:
            raise RuntimeError("object table is read-only once parsing has finished")
        self._objects[obj.key] = obj

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, obj_id: int, generation: int = 0) -> Optional[PDFIndirectObject]:
        return self._objects.get((obj_id, generation))

    def __getitem__(self, key: ObjectKey) -> PDFIndirectObject:
        return self._objects[key]

    def __iter__(self) -> Iterator[ObjectKey]:
        return iter(self._objects)

    def __len__(self) -> int:
        return len(self._objects)


@dataclass(frozen=True)
class UnresolvedReference:
    """Result of resolving a reference with no matching object.

    Falsy, so callers can write ``obj = doc.resolve(ref)`` then ``if obj:``.
    """

    reference: PDFReference

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"{self.reference.obj_id} {self.reference.generation} R (missing)"


Resolved = Union[PDFIndirectObject, UnresolvedReference]


@dataclass(frozen=True)
class ParsedDocument:
    """Result of one parse.

    Attributes
    ----------
    version:
        Header version, e.g. ``"1.4"``.
    objects:
        Every indirect object seen, last definition winning.
    xref_sections:
        ``xref`` tables in file order, kept for display.
    body:
        Top-level values left on the operand stack, in file order.
    startxref:
        Byte offset written after the last ``startxref`` keyword.
    """

    version: str
    objects: ObjectTable
    trailer: PDFDictionary = field(default_factory=PDFDictionary)
    xref_sections: Tuple[XRefSection, ...] = ()
    body: Tuple[Value, ...] = ()
    startxref: Optional[int] = None

    def resolve(self, ref: PDFReference) -> Resolved:
        obj = self.objects.lookup(ref.obj_id, ref.generation)
        if obj is None:
            return UnresolvedReference(ref)
        return obj

    def deref(self, value: Value) -> Union[Value, UnresolvedReference]:
        if isinstance(value, PDFReference):
            return self.resolve(value)
        return value

    def root(self) -> PDFReference:
        value = self.trailer.get(ROOT)
        if not isinstance(value, PDFReference):
            raise StructureError(f"trailer /Root must be a reference, got {value!r}")
        return value

    def catalog(self) -> Resolved:
        return self.resolve(self.root())

    def pages(self) -> Resolved:
        catalog = self.catalog()
        if isinstance(catalog, UnresolvedReference):
            return catalog
        if not catalog.contents or not isinstance(catalog.contents[0], PDFDictionary):
            raise StructureError(
                f"catalog {catalog.obj_id} {catalog.generation} does not start with a dictionary"
            )
        pages_ref = catalog.contents[0].get(PAGES)
        if not isinstance(pages_ref, PDFReference):
            raise StructureError(f"catalog /Pages must be a reference, got {pages_ref!r}")
        return self.resolve(pages_ref)
