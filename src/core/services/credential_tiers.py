"""Two-tier credential fallback for reads.

The public credential (primary) is tried first. A thrown error, or an empty
but error-free result, sends the same read to the secondary credential. An
empty result from the last tier is a valid answer ("no matching items"),
not a failure.
"""

from __future__ import annotations

import logging
from collections.abc import Sized
from typing import Awaitable, Callable, Sequence, TypeVar

from core.domain.errors import ExhaustedCredentialsError, TransientReadError
from core.domain.models import CredentialTier

logger = logging.getLogger(__name__)

R = TypeVar("R")

_MISSING = object()


def default_is_empty(result: object) -> bool:
    """None, an empty collection, or an object whose `items` is empty."""

    if result is None:
        return True
    items = getattr(result, "items", _MISSING)
    if items is not _MISSING and not callable(items):
        return isinstance(items, Sized) and len(items) == 0
    if isinstance(result, Sized) and not isinstance(result, (str, bytes)):
        return len(result) == 0
    return False


class CredentialTierResolver:
    """Runs a read under an ordered list of credential tiers."""

    def __init__(
        self,
        tiers: Sequence[CredentialTier] | None = None,
        *,
        is_empty: Callable[[object], bool] = default_is_empty,
    ) -> None:
        self._tiers = tuple(tiers) if tiers is not None else CredentialTier.read_order()
        if not self._tiers:
            raise ValueError("at least one credential tier is required")
        self._is_empty = is_empty

    @property
    def tiers(self) -> tuple[CredentialTier, ...]:
        return self._tiers

    async def execute_with_fallback(
        self,
        op: Callable[[CredentialTier], Awaitable[R]],
        *,
        tiers: Sequence[CredentialTier] | None = None,
        is_empty: Callable[[object], bool] | None = None,
        label: str = "read",
    ) -> R:
        tiers = tuple(tiers) if tiers is not None else self._tiers
        if not tiers:
            raise ValueError("at least one credential tier is required")
        check_empty = is_empty or self._is_empty

        failures: list[TransientReadError] = []
        empty_result: object = _MISSING

        for index, tier in enumerate(tiers):
            is_last = index == len(tiers) - 1
            try:
                result = await op(tier)
            except Exception as exc:
                failure = TransientReadError(tier, exc)
                failures.append(failure)
                if not is_last:
                    logger.warning("%s failed under %s tier; retrying with next tier: %s", label, tier.value, exc)
                    continue
                if empty_result is not _MISSING:
                    # The earlier tier answered without error; the later attempt was speculative.
                    logger.warning(
                        "%s retry under %s tier failed; keeping the empty result: %s", label, tier.value, exc
                    )
                    return empty_result  # type: ignore[return-value]
                logger.error("%s failed under every tier (%d)", label, len(failures))
                raise ExhaustedCredentialsError(failures) from exc

            if not is_last and check_empty(result):
                logger.info("%s returned no items under %s tier; trying next tier", label, tier.value)
                empty_result = result
                continue

            if failures:
                logger.info("%s recovered under %s tier", label, tier.value)
            return result

        # Unreachable: the last tier either returns or raises.
        raise ExhaustedCredentialsError(failures)
