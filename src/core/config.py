"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que el cliente HTTP y los comandos lean la config de forma consistente.
- Los tokens de sesión viven en el `.env` del usuario: `auth login` los escribe
  y `auth logout` (o un refresh fallido) los borra.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.language import Language

APP_DIR_NAME = "aiutox-console"

TOKEN_ENV_KEYS = ("AIUTOX_ACCESS_TOKEN", "AIUTOX_REFRESH_TOKEN")


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    override = (os.environ.get("AIUTOX_CONFIG_DIR") or "").strip()
    if override:
        return Path(override)

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def read_user_env_vars() -> dict[str, str]:
    env_path = get_user_env_file()
    if not env_path.exists():
        return {}
    return _parse_env_lines(env_path.read_text(encoding="utf-8"))


def _write_env_file(values: dict[str, str]) -> Path:
    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    lines = ["# aiutox-console user config (.env)"]
    for key in sorted(values.keys()):
        lines.append(f"{key}={values[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario.

    Los valores `None` se ignoran (no borran la clave existente).
    """

    existing = read_user_env_vars()
    existing.update({k: v for k, v in values.items() if v is not None})
    return _write_env_file(existing)


def clear_user_env_vars(keys: tuple[str, ...] = TOKEN_ENV_KEYS) -> Path:
    """Elimina claves del .env del usuario (por defecto, los tokens de sesión)."""

    existing = read_user_env_vars()
    for key in keys:
        existing.pop(key, None)
    return _write_env_file(existing)


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="AIUTOX_",
        extra="ignore",
        case_sensitive=False,
        # `env_file` se resuelve en __init__: el directorio de usuario puede
        # cambiar (AIUTOX_CONFIG_DIR) después de importar el módulo.
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="http://localhost:8000",
        min_length=8,
        description="URL base del backend (sin el prefijo /api/v1).",
    )
    api_prefix: str = Field(
        default="/api/v1",
        description="Prefijo común de la API REST.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    http_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Reintentos máximos para GET ante fallos transitorios (red, 502/503/504).",
    )
    user_agent: str = Field(
        default="aiutox-console/0.1",
        min_length=1,
        description="User-Agent enviado al backend.",
    )

    access_token: str | None = Field(
        default=None,
        description="Access token (Bearer). Lo escribe `aiutox auth login`.",
    )
    refresh_token: str | None = Field(
        default=None,
        description="Refresh token usado para renovar el access token ante un 401.",
    )

    default_page_size: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Tamaño de página por defecto en listados.",
    )
    job_poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Intervalo de polling para jobs de import/export en curso.",
    )
    job_poll_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Tiempo máximo esperando a que un job termine.",
    )

    default_language: Language = Field(
        default=Language.default(),
        description="Idioma por defecto para etiquetas y mensajes (en/es).",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging de la consola.",
    )

    def __init__(self, **values: object) -> None:
        # Orden: proyecto primero (dev), luego config global de usuario.
        values.setdefault("_env_file", (".env", str(get_user_env_file())))
        super().__init__(**values)

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper() or "WARNING"

    @property
    def api_root(self) -> str:
        prefix = "/" + self.api_prefix.strip("/") if self.api_prefix.strip("/") else ""
        return f"{self.api_base_url}{prefix}"
