"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (GraphQL/drafts) y servicios lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "community-feed"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "community-feed"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "community-feed"
    return Path.home() / ".config" / "community-feed"


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


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# community-feed user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters/servicios.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMMUNITY_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    graphql_url: str = Field(
        default="http://localhost:20002/graphql",
        min_length=8,
        description="Endpoint GraphQL del backend de la comunidad.",
    )
    api_name: str | None = Field(
        default=None,
        description="Nombre de la API forzada (solo diagnóstico cuando hay varias APIs).",
    )
    public_api_key: str | None = Field(
        default=None,
        description="Credencial del tier primario (lecturas públicas, header x-api-key).",
    )
    user_pool_token: str | None = Field(
        default=None,
        description="Credencial del tier secundario (token de usuario, header Authorization).",
    )
    user_id: str | None = Field(
        default=None,
        description="Identidad del usuario autenticado (owner de los posts creados).",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="community-feed/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para peticiones al backend.",
    )

    page_size: int = Field(
        default=40,
        ge=1,
        le=1000,
        description="Items por página en el scroll infinito.",
    )
    seed_page_limit: int = Field(
        default=200,
        ge=1,
        le=1000,
        description="Items por página en escaneos completos (seed del lado servidor).",
    )
    seed_max_pages: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Tope duro de páginas en escaneos completos.",
    )
    answers_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Respuestas leídas por post en la vista de detalle.",
    )
    scroll_margin_px: int = Field(
        default=1200,
        ge=0,
        description="Margen de anticipación del sentinel (px lógicos).",
    )
    search_debounce_seconds: float = Field(
        default=0.25,
        ge=0,
        description="Ventana de debounce para la búsqueda local (segundos).",
    )

    create_mutation_key: str | None = Field(
        default=None,
        description="Mutación de creación fijada externamente (p.ej. 'createCommunityPost').",
    )
    create_content_field: str = Field(
        default="contentMD",
        min_length=1,
        description="Campo de contenido para la mutación fijada.",
    )
    slug_lookup_query: str | None = Field(
        default=None,
        description="Query de búsqueda por slug (p.ej. 'postBySlug'); sin ella el slug lleva timestamp.",
    )

    drafts_dir: Path | None = Field(
        default=None,
        description="Directorio de borradores locales (por defecto en la config de usuario).",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG/INFO/WARNING/ERROR).",
    )

    def resolved_drafts_dir(self) -> Path:
        return self.drafts_dir or (get_user_config_dir() / "drafts")
