"""Configuración de logging compartida por la CLI.

Los módulos registran con `logging.getLogger(__name__)`; aquí solo se decide
adónde van los registros (un handler de Rich en stderr) y con qué nivel.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str | int = "WARNING", *, console: Console | None = None) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # httpx registra cada request en INFO.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
