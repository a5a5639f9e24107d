"""Validación de archivos antes de subirlos.

Se aplica en la consola antes de cada upload (importación de productos,
validación de jobs de importación). El servidor vuelve a validar; esto solo
evita subir algo que seguro será rechazado.
"""

from __future__ import annotations

import math
import mimetypes
import re
from dataclasses import dataclass, field
from pathlib import Path

from core.services.rounding import round_half_up

MB = 1024 * 1024

FILE_SIZE_LIMITS: dict[str, int] = {
    "image": 10 * MB,
    "document": 50 * MB,
    "video": 500 * MB,
    "audio": 100 * MB,
    "archive": 100 * MB,
    "default": 20 * MB,
}

ALLOWED_FILE_TYPES: dict[str, tuple[str, ...]] = {
    "image": (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
    ),
    "document": (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "text/csv",
        "application/rtf",
    ),
    "video": (
        "video/mp4",
        "video/webm",
        "video/ogg",
        "video/quicktime",
        "video/x-msvideo",
    ),
    "audio": (
        "audio/mpeg",
        "audio/wav",
        "audio/ogg",
        "audio/mp3",
        "audio/webm",
    ),
    "archive": (
        "application/zip",
        "application/x-rar-compressed",
        "application/x-7z-compressed",
        "application/gzip",
    ),
}

LARGE_FILE_WARNING_BYTES = 10 * MB

# `mimetypes` no conoce algunos tipos comunes en todas las plataformas.
_EXTRA_TYPES = {
    ".csv": "text/csv",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".7z": "application/x-7z-compressed",
    ".rar": "application/x-rar-compressed",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class FileInfo:
    name: str
    size: int
    type: str

    @classmethod
    def from_path(cls, path: Path) -> "FileInfo":
        return cls(name=path.name, size=path.stat().st_size, type=guess_mime_type(path.name))


@dataclass
class FileValidationResult:
    is_valid: bool
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SizeValidation:
    is_valid: bool
    max_size: int
    error: str | None = None


def guess_mime_type(file_name: str) -> str:
    suffix = Path(file_name).suffix.lower()
    if suffix in _EXTRA_TYPES:
        return _EXTRA_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or "application/octet-stream"


def get_file_category(mime_type: str) -> str | None:
    for category, types in ALLOWED_FILE_TYPES.items():
        if mime_type in types:
            return category
    return None


def is_file_type_allowed(mime_type: str, allowed_types: list[str] | None = None) -> bool:
    """Sin lista: cualquier tipo conocido. `*/*` primero: cualquier tipo.

    Acepta comodines tipo `image/*`.
    """

    if not allowed_types:
        return get_file_category(mime_type) is not None

    if allowed_types[0] == "*/*":
        return True

    for allowed in allowed_types:
        if "*" in allowed:
            pattern = ".*".join(re.escape(part) for part in allowed.split("*"))
            if re.fullmatch(pattern, mime_type):
                return True
        elif mime_type == allowed:
            return True
    return False


def format_file_size(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB")
    index = min(int(math.floor(math.log(size) / math.log(1024))), len(units) - 1)
    value = round_half_up(size / (1024**index), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[index]}"


def validate_file_size(info: FileInfo) -> SizeValidation:
    category = get_file_category(info.type)
    max_size = FILE_SIZE_LIMITS[category] if category else FILE_SIZE_LIMITS["default"]
    if info.size > max_size:
        return SizeValidation(
            is_valid=False,
            max_size=max_size,
            error=f"El archivo excede el tamaño máximo permitido de {format_file_size(max_size)}",
        )
    return SizeValidation(is_valid=True, max_size=max_size)


def validate_file(
    file: FileInfo | Path,
    *,
    max_size_mb: int | None = None,
    allowed_types: list[str] | None = None,
) -> FileValidationResult:
    info = FileInfo.from_path(file) if isinstance(file, Path) else file

    if not is_file_type_allowed(info.type, allowed_types):
        return FileValidationResult(is_valid=False, error="Tipo de archivo no permitido")

    size = validate_file_size(info)
    over_explicit_limit = bool(max_size_mb) and info.size > max_size_mb * MB
    if over_explicit_limit or not size.is_valid:
        return FileValidationResult(
            is_valid=False,
            error=(
                f"El archivo excede el tamaño máximo de {max_size_mb}MB"
                if max_size_mb
                else size.error
            ),
        )

    warnings: list[str] = []
    if get_file_category(info.type) is None:
        warnings.append("Tipo de archivo no reconocido")
    if info.size > LARGE_FILE_WARNING_BYTES:
        warnings.append("El archivo es pesado y podría tardar en subir")
    return FileValidationResult(is_valid=True, warnings=warnings)


def get_file_info(info: FileInfo) -> dict[str, str | None]:
    extension = info.name.rsplit(".", 1)[-1].lower() if "." in info.name else ""
    return {
        "name": info.name,
        "size": format_file_size(info.size),
        "type": info.type,
        "category": get_file_category(info.type),
        "extension": extension,
    }
