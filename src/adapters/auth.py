"""Resultado de autenticación derivado de la configuración.

Al flujo de creación solo le importa pasa/no pasa: un user id si hay token
de usuario e identidad configurados, None en otro caso.
"""

from __future__ import annotations

from core.config import AppSettings


class SettingsAuthProvider:
    def __init__(self, settings: AppSettings) -> None:
        self._settings = settings

    async def current_user_id(self) -> str | None:
        if not self._settings.user_pool_token:
            return None
        user_id = (self._settings.user_id or "").strip()
        return user_id or None
