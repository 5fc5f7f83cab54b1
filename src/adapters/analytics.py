"""Sink de analítica que registra los eventos vía logging.

Por qué:
- La CLI no tiene tracker real; los eventos quedan en el log.
- Se guardan también en memoria para poder inspeccionar qué se envió.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class LoggingAnalyticsSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def track(self, event: str, properties: Mapping[str, Any] | None = None) -> None:
        props = dict(properties or {})
        self.events.append((event, props))
        logger.info("analytics event %s %s", event, props)
