"""Taxonomía de errores de la capa de acceso a la comunidad.

Por qué tipos propios:
- Las lecturas se reintentan entre tiers de credenciales; las escrituras nunca.
- Cada tipo se traduce a un único tratamiento visible en la CLI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence
from urllib.parse import quote

if TYPE_CHECKING:
    from core.domain.models import AttemptTrail, CredentialTier


class CommunityError(Exception):
    """Base de todos los errores de este paquete."""


class GraphQLRequestError(CommunityError):
    """Una llamada GraphQL falló a nivel HTTP o devolvió `errors`."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        errors: Sequence[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = list(errors or [])

    @property
    def first_message(self) -> str:
        for err in self.errors:
            msg = err.get("message") if isinstance(err, dict) else None
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        return str(self)


class MissingCredentialError(GraphQLRequestError):
    """El tier pedido no tiene credencial configurada."""


class TransientReadError(CommunityError):
    """Una lectura falló bajo un tier de credenciales."""

    def __init__(self, tier: "CredentialTier", cause: BaseException) -> None:
        super().__init__(f"{tier.value} read failed: {cause}")
        self.tier = tier
        self.cause = cause


class ExhaustedCredentialsError(CommunityError):
    """Todos los tiers fallaron para una lectura."""

    def __init__(self, failures: Sequence[TransientReadError]) -> None:
        tiers = ", ".join(f.tier.value for f in failures) or "none"
        super().__init__(f"couldn't load (tiers tried: {tiers})")
        self.failures = list(failures)


class ValidationError(CommunityError):
    """Validación local, previa a la red. Nunca llega al negociador."""


class SchemaNegotiationExhausted(CommunityError):
    """Fallaron todos los candidatos de mutación de creación."""

    def __init__(self, trail: "AttemptTrail", *, hint: str = "") -> None:
        super().__init__("Setup needed: community GraphQL create mutation not configured.")
        self.trail = trail
        self.hint = hint

    def diagnostics(self) -> str:
        parts = [self.hint.rstrip()] if self.hint else []
        parts.append("Attempts:")
        parts.append(self.trail.render())
        return "\n".join(parts)


class UnauthenticatedWriteAttempt(CommunityError):
    """Intento de escritura sin usuario autenticado."""

    def __init__(self, next_path: str, *, signin_path: str = "/signin") -> None:
        super().__init__("Please sign in to post.")
        self.next_path = next_path
        self.signin_path = signin_path

    @property
    def redirect_url(self) -> str:
        return f"{self.signin_path}?next={quote(self.next_path, safe='')}"


class SlugLookupUnavailable(CommunityError):
    """El lookup de slug no existe o falló; no es fatal."""
