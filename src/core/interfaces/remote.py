"""Contratos de los colaboradores remotos (GraphQL).

Por qué Protocol:
- Los servicios dependen de contratos estructurales, no de httpx/GraphQL.
- Los tests sustituyen fakes en memoria sin parches globales.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from core.domain.models import CredentialTier, OperationCandidate, PageResult


@runtime_checkable
class ListQuery(Protocol):
    """Query de lista paginada por cursor, ejecutable bajo cualquier tier."""

    async def fetch_page(
        self,
        *,
        tier: CredentialTier,
        limit: int,
        cursor: str | None,
        filter: Mapping[str, Any] | None = None,
    ) -> PageResult[Any]:
        ...


@runtime_checkable
class UniqueKeyLookup(Protocol):
    """Capacidad opcional: un registro por clave única (slug)."""

    async def fetch_by_unique_key(self, key: str) -> Any | None:
        ...


@runtime_checkable
class MutationTransport(Protocol):
    """Ejecuta un candidato de mutación de creación y devuelve el registro creado."""

    async def execute(
        self,
        candidate: OperationCandidate,
        variables: Mapping[str, Any],
    ) -> Mapping[str, Any] | None:
        ...


@runtime_checkable
class PostBySlugQuery(Protocol):
    """Lectura de un post por slug, bajo cualquier tier."""

    async def fetch_post_by_slug(self, *, tier: CredentialTier, slug: str) -> Any | None:
        ...


@runtime_checkable
class AnswersQuery(Protocol):
    """Respuestas de un post. Se llama con el mismo tier que encontró el post."""

    async def fetch_answers_for_post(
        self,
        *,
        tier: CredentialTier,
        post_id: str,
        limit: int,
    ) -> list[Any]:
        ...
