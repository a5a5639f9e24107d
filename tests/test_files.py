from __future__ import annotations

from core.services.files import (
    MB,
    FileInfo,
    format_file_size,
    get_file_info,
    guess_mime_type,
    is_file_type_allowed,
    validate_file,
)


def test_known_type_within_limits_is_valid():
    result = validate_file(FileInfo(name="productos.csv", size=2048, type="text/csv"))
    assert result.is_valid
    assert result.warnings == []


def test_unknown_type_is_rejected_without_allow_list():
    result = validate_file(FileInfo(name="setup.exe", size=10, type="application/x-msdownload"))
    assert not result.is_valid
    assert result.error == "Tipo de archivo no permitido"


def test_wildcards_in_allow_list():
    assert is_file_type_allowed("image/png", ["image/*"])
    assert not is_file_type_allowed("text/csv", ["image/*"])
    assert is_file_type_allowed("application/x-anything", ["*/*"])


def test_star_slash_star_accepts_unknown_type_with_warning():
    result = validate_file(
        FileInfo(name="dump.bin", size=10, type="application/octet-stream"),
        allowed_types=["*/*"],
    )
    assert result.is_valid
    assert "Tipo de archivo no reconocido" in result.warnings


def test_explicit_size_limit_wins():
    result = validate_file(FileInfo(name="a.csv", size=3 * MB, type="text/csv"), max_size_mb=2)
    assert not result.is_valid
    assert result.error == "El archivo excede el tamaño máximo de 2MB"


def test_category_size_limit():
    result = validate_file(FileInfo(name="foto.png", size=11 * MB, type="image/png"))
    assert not result.is_valid
    assert result.error == "El archivo excede el tamaño máximo permitido de 10 MB"


def test_large_file_warning():
    result = validate_file(FileInfo(name="big.csv", size=20 * MB, type="text/csv"))
    assert result.is_valid
    assert "El archivo es pesado y podría tardar en subir" in result.warnings


def test_validate_from_path(tmp_path):
    path = tmp_path / "stock.csv"
    path.write_text("sku,name\nA1,Tornillo\n", encoding="utf-8")
    assert validate_file(path).is_valid


def test_format_file_size():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(500) == "500 Bytes"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(10 * MB) == "10 MB"
    assert format_file_size(1152) == "1.13 KB"


def test_mime_guess_and_file_info():
    assert guess_mime_type("libro.XLSX") == (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    info = get_file_info(FileInfo(name="informe.pdf", size=1024, type="application/pdf"))
    assert info["category"] == "document"
    assert info["extension"] == "pdf"
    assert info["size"] == "1 KB"
