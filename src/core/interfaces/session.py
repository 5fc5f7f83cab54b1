"""Contratos de capacidades de sesión del cliente (auth, borradores, analítica)."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from core.domain.models import Draft


@runtime_checkable
class AuthProvider(Protocol):
    """Solo importa el resultado: un user id, o None sin sesión."""

    async def current_user_id(self) -> str | None:
        ...


@runtime_checkable
class DraftStore(Protocol):
    def load(self, key: str) -> Draft | None:
        ...

    def save(self, key: str, draft: Draft) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


@runtime_checkable
class AnalyticsSink(Protocol):
    def track(self, event: str, properties: Mapping[str, Any] | None = None) -> None:
        ...
