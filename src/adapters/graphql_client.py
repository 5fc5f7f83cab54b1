"""Transporte GraphQL sobre HTTP con tier de credenciales por llamada.

- Tier primario: API key pública (`x-api-key`), lecturas anónimas.
- Tier secundario: token del usuario autenticado (`Authorization`).
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import GraphQLRequestError, MissingCredentialError
from core.domain.models import CredentialTier

logger = logging.getLogger(__name__)


class GraphQLClient:
    """Envía documentos GraphQL al endpoint configurado.

    Por qué inyectar el cliente:
    - Quien llama (y los tests) decide su ciclo de vida.
    - Si se omite, se construye desde settings y `aclose()` lo cierra.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._owns_client = client is None
        self._client = client or build_async_client(self._settings)

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def tier_headers(self, tier: CredentialTier) -> dict[str, str]:
        if tier is CredentialTier.PRIMARY:
            if not self._settings.public_api_key:
                raise MissingCredentialError("no public API key configured (COMMUNITY_PUBLIC_API_KEY)")
            return {"x-api-key": self._settings.public_api_key}
        if not self._settings.user_pool_token:
            raise MissingCredentialError("no user token configured (COMMUNITY_USER_POOL_TOKEN)")
        return {"Authorization": self._settings.user_pool_token}

    async def execute(
        self,
        query: str,
        variables: Mapping[str, Any] | None = None,
        *,
        tier: CredentialTier,
    ) -> dict[str, Any]:
        """Ejecuta un documento y devuelve su mapping `data`."""

        headers = self.tier_headers(tier)
        body = {"query": query, "variables": dict(variables or {})}
        try:
            resp = await self._client.post(self._settings.graphql_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise GraphQLRequestError(f"request failed: {exc}") from exc

        payload: Any = None
        try:
            payload = resp.json()
        except ValueError:
            payload = None

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if resp.status_code >= 400:
            raise GraphQLRequestError(
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                errors=errors if isinstance(errors, list) else None,
            )
        if not isinstance(payload, dict):
            raise GraphQLRequestError("response is not a JSON object", status_code=resp.status_code)
        if errors:
            err_list = errors if isinstance(errors, list) else [{"message": str(errors)}]
            first = err_list[0].get("message") if isinstance(err_list[0], dict) else str(err_list[0])
            raise GraphQLRequestError(
                f"GraphQL error: {first}",
                status_code=resp.status_code,
                errors=err_list,
            )

        data = payload.get("data")
        logger.debug("graphql ok under %s tier (%d bytes)", tier.value, len(resp.content))
        return data if isinstance(data, dict) else {}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
