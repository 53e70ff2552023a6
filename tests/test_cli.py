from __future__ import annotations

from pathlib import Path

from pdfinspector.cli import main

DOCUMENT = b"""%PDF-1.4
1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj
2 0 obj << /Type /Pages /Kids [] /Count 0 >> endobj
3 0 obj << /Length 15 >>
stream
abc endstream x
endstream
endobj
xref
0 1
0000000000 65535 f
trailer << /Root 1 0 R /Size 4 >>
startxref
0
%%EOF
"""


def write(tmp_path: Path, data: bytes) -> str:
    path = tmp_path / "doc.pdf"
    path.write_bytes(data)
    return str(path)


def test_prints_trailer_catalog_and_pages(tmp_path: Path, capsys) -> None:
    path = write(tmp_path, DOCUMENT)
    assert main([path, "--length-aware-streams", "--xref"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("PDF-1.4 (3 objects)")
    assert "trailer:\n<<\n/Root 1 0 R\n/Size 4\n>>" in out
    assert "catalog:\n1 0 obj\n<<\n/Type /Catalog\n/Pages 2 0 R\n>>\nendobj" in out
    assert "pages:\n2 0 obj" in out
    assert "xref at" in out and "0000000000 65535 f" in out


def test_prints_single_object_with_stream_summary(tmp_path: Path, capsys) -> None:
    path = write(tmp_path, DOCUMENT)
    assert main([path, "--length-aware-streams", "--object", "3", "--generation", "0"]) == 0
    out = capsys.readouterr().out
    assert "stream <15 bytes> endstream" in out


def test_missing_object_prints_absence_marker(tmp_path: Path, capsys) -> None:
    path = write(tmp_path, DOCUMENT)
    assert main([path, "--length-aware-streams", "--object", "9"]) == 0
    assert capsys.readouterr().out.strip() == "9 0 R (missing)"


def test_object_option_before_path(tmp_path: Path, capsys) -> None:
    path = write(tmp_path, DOCUMENT)
    assert main(["--object", "1", "--generation", "0", "--length-aware-streams", path]) == 0
    assert capsys.readouterr().out.startswith("1 0 obj\n<<\n/Type /Catalog")


def test_generation_selects_object_revision(tmp_path: Path, capsys) -> None:
    path = write(tmp_path, DOCUMENT)
    assert main(["--object", "1", "--generation", "2", "--length-aware-streams", path]) == 0
    assert capsys.readouterr().out.strip() == "1 2 R (missing)"


def test_parse_error_exits_with_status_one(tmp_path: Path, capsys) -> None:
    # without the length-aware flag the stream is cut at the inner endstream
    path = write(tmp_path, DOCUMENT)
    assert main([path]) == 1
    assert "UnrecognizedToken" in capsys.readouterr().err


def test_not_a_pdf(tmp_path: Path, capsys) -> None:
    path = write(tmp_path, b"hello")
    assert main([path]) == 1
    assert "InvalidFormat" in capsys.readouterr().err


def test_unreadable_file(tmp_path: Path, capsys) -> None:
    assert main([str(tmp_path / "absent.pdf")]) == 1
    assert "cannot read" in capsys.readouterr().err
