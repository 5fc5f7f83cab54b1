"""Persistencia local de borradores (JSON).

Por qué JSON en disco:
- Un archivo por content id: sobrescribir en cada edición es trivial y atómico
  a nivel de archivo.
- El formato es legible y sobrevive a reinicios de la CLI.
"""

from __future__ import annotations

import re
from pathlib import Path

from core.domain.models import Draft

_KEY_RE = re.compile(r"[^A-Za-z0-9._-]+")


class JsonDraftStore:
    """`DraftStore` sobre un fichero `<directory>/<key>.json` por clave."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def path_for(self, key: str) -> Path:
        safe = _KEY_RE.sub("_", key).strip("._") or "draft"
        return self._directory / f"{safe}.json"

    def load(self, key: str) -> Draft | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return Draft.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, key: str, draft: Draft) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(draft.model_dump_json(indent=2) + "\n", encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
