"""Exportación JSON de posts y del leaderboard.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines.
- Permite guardar un snapshot del feed sin depender del render en terminal.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from core.domain.models import Leaderboard, Post


def export_posts_json(*, posts: Iterable[Post], output_path: Path) -> Path:
    """Exporta los posts a JSON UTF-8 con formato estable (claves del backend)."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [p.model_dump(mode="json", by_alias=True) for p in posts]
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path


def export_leaderboard_json(*, board: Leaderboard, output_path: Path) -> Path:
    """Exporta el ranking (filas ya ordenadas) a JSON UTF-8."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(board.model_dump(mode="json"), ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
