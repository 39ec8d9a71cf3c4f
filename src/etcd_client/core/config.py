"""Configuración del cliente.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que el transporte y la CLI lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_DIR_NAME = "etcd-v2-client"


def get_user_config_dir() -> Path:
    """Carpeta donde `etcdv2 doctor configure` guarda el endpoint por usuario."""

    if sys.platform.startswith("win"):
        return Path(os.environ.get("APPDATA", str(Path.home()))) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    return Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config") / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def read_env_file(env_path: Path) -> dict[str, str]:
    """Lee las asignaciones `CLAVE=valor` de un .env; ignora comentarios y ruido."""

    if not env_path.exists():
        return {}
    entries: dict[str, str] = {}
    for line in env_path.read_text(encoding="utf-8").splitlines():
        name, sep, raw_value = line.strip().partition("=")
        name = name.strip()
        if not sep or not name or name.startswith("#"):
            continue
        entries[name] = raw_value.strip().strip("\"'")
    return entries


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Fusiona `values` en el .env del usuario y devuelve su ruta.

    Las claves existentes que no aparecen en `values` se conservan; el
    archivo se reescribe ordenado para que `ClientSettings` lo lea estable.
    """

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    merged = read_env_file(env_path)
    merged.update((name, value) for name, value in values.items() if value is not None)

    body = "".join(f"{name}={merged[name]}\n" for name in sorted(merged))
    env_path.write_text(f"# {APP_DIR_NAME}: ETCD_CLIENT_* overrides\n{body}", encoding="utf-8")
    return env_path


class ClientSettings(BaseSettings):
    """Configuración central del cliente.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para transporte y CLI.
    """

    model_config = SettingsConfigDict(
        env_prefix="ETCD_CLIENT_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    base_url: str = Field(
        default="http://127.0.0.1:2379/",
        min_length=8,
        description="Endpoint base del servicio (se normaliza con '/' final).",
    )
    connect_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout de conexión TCP (segundos).",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos). No aplica a watch.",
    )
    user_agent: str = Field(
        default="etcd-v2-client/0.1",
        min_length=1,
        description="User-Agent enviado al servicio.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging usado por la CLI.",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value!r}")
        return level
