from __future__ import annotations

from pdfinspector import (
    NULL,
    ParsedDocument,
    PDFArray,
    PDFBoolean,
    PDFDictionary,
    PDFHexString,
    PDFIndirectObject,
    PDFLiteralString,
    PDFName,
    PDFNumber,
    PDFReference,
    append_update,
    make_stream,
    parse,
    serialize,
    write_pdf,
)


def name(value: str) -> PDFName:
    return PDFName(value)


def sample_objects() -> list[PDFIndirectObject]:
    catalog = PDFDictionary([(name("Type"), name("Catalog")), (name("Pages"), PDFReference(2))])
    pages = PDFDictionary(
        [
            (name("Type"), name("Pages")),
            (name("Kids"), PDFArray((PDFReference(3),))),
            (name("Count"), PDFNumber("1")),
        ]
    )
    page = PDFDictionary(
        [
            (name("Type"), name("Page")),
            (name("Parent"), PDFReference(2)),
            (name("Contents"), PDFReference(4)),
        ]
    )
    payload = b"BT /F1 12 Tf (Hi) Tj ET"
    content = make_stream(payload)
    return [
        PDFIndirectObject(1, 0, (catalog,)),
        PDFIndirectObject(2, 0, (pages,)),
        PDFIndirectObject(3, 0, (page,)),
        PDFIndirectObject(4, 0, (PDFDictionary([(name("Length"), PDFNumber(str(len(payload))))]), content)),
    ]


def test_serialize_uses_source_forms() -> None:
    value = PDFArray(
        (
            PDFNumber("3."),
            PDFNumber("-0.50"),
            PDFLiteralString(b"a(b)c"),
            PDFHexString(b"4F"),
            PDFBoolean(False),
            NULL,
            PDFReference(12, 1),
        )
    )
    assert serialize(value) == b"[3. -0.50 (a(b)c) <4F> false null 12 1 R]"


def test_serialize_dictionary_and_object() -> None:
    dictionary = PDFDictionary([(name("Type"), name("Catalog"))])
    assert serialize(dictionary) == b"<<\n/Type /Catalog\n>>"
    obj = PDFIndirectObject(1, 0, (dictionary,))
    assert serialize(obj) == b"1 0 obj\n<<\n/Type /Catalog\n>>\nendobj"


def test_written_document_parses_back() -> None:
    data = write_pdf(sample_objects(), {name("Root"): PDFReference(1)})
    document = parse(data)
    assert isinstance(document, ParsedDocument)
    assert document.trailer["/Size"] == PDFNumber("5")
    assert document.pages().contents[0]["/Count"] == PDFNumber("1")
    stream = document.objects[(4, 0)].contents[1]
    assert stream.payload == b"BT /F1 12 Tf (Hi) Tj ET"


def test_written_xref_offsets_point_at_objects() -> None:
    data = write_pdf(sample_objects(), {name("Root"): PDFReference(1)})
    document = parse(data)
    (section,) = document.xref_sections
    for obj_id, entry in section.entries():
        if entry.in_use:
            assert data[entry.offset :].startswith(f"{obj_id} 0 obj".encode("ascii"))
    assert data[document.startxref :].startswith(b"xref")


def test_append_update_adds_revision() -> None:
    original = write_pdf(sample_objects(), {name("Root"): PDFReference(1)})
    first_xref = parse(original).startxref
    pages = PDFDictionary(
        [
            (name("Type"), name("Pages")),
            (name("Kids"), PDFArray(())),
            (name("Count"), PDFNumber("0")),
        ]
    )
    updated = append_update(
        original,
        [PDFIndirectObject(2, 0, (pages,))],
        PDFDictionary([(name("Root"), PDFReference(1)), (name("Size"), PDFNumber("5"))]),
    )
    document = parse(updated)
    assert isinstance(document, ParsedDocument)
    assert len(document.xref_sections) == 2
    assert document.trailer["/Prev"] == PDFNumber(str(first_xref))
    assert document.pages().contents[0]["/Count"] == PDFNumber("0")
    (subsection,) = document.xref_sections[1].subsections
    assert subsection.start == 2
    assert updated[subsection.entries[0].offset :].startswith(b"2 0 obj")
