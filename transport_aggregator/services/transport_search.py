"""Transport search service - The aggregation facade.

Validates caller parameters, dispatches to exactly one provider adapter
based on the requested mode, and guarantees that every failure leaving
this service is a typed TransportError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..domain.errors import (
    FailureKind,
    TransportError,
    api_failure,
    validation_failure,
)
from ..domain.models import SearchParams, TransportMode, TransportResult
from ..ports.transport import TransportProviderPort


def _mode_label(mode: object) -> str:
    if isinstance(mode, TransportMode):
        return mode.value
    return str(mode)


def _is_filled(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


@dataclass
class TransportSearchService:
    """Single entry point for transport searches.

    Attributes:
        providers: Adapter for each supported mode
    """

    providers: Mapping[TransportMode, TransportProviderPort]

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def _validate(self, params: SearchParams) -> TransportMode:
        if not (
            _is_filled(params.departure)
            and _is_filled(params.arrival)
            and _is_filled(params.date)
        ):
            raise validation_failure("incomplete search parameters")

        passengers = params.passengers
        if isinstance(passengers, bool) or not isinstance(passengers, int) or passengers < 1:
            raise validation_failure("passenger count must be positive")

        try:
            mode = TransportMode(params.mode)
        except ValueError:
            raise validation_failure(
                f"unsupported transport mode: {_mode_label(params.mode)}"
            ) from None

        if mode not in self.providers:
            raise validation_failure(f"unsupported transport mode: {mode.value}")
        return mode

    async def search_transports(self, params: SearchParams) -> list[TransportResult]:
        """Search one provider and return canonical results.

        Args:
            params: The search request.

        Returns:
            Canonical results from the provider serving ``params.mode``.

        Raises:
            ValidationFailure: For incomplete parameters, a non-positive
                passenger count, an unsupported mode or a malformed payload.
            UpstreamApiFailure: If the provider answered with an error.
            NetworkFailure: If the provider did not answer.
            UnknownFailure: For anything else.
        """
        label = _mode_label(params.mode)
        try:
            mode = self._validate(params)
            results = await self.providers[mode].search(params)
        except TransportError as exc:
            if exc.kind is not FailureKind.VALIDATION:
                self._logger.warning(
                    "Transport search failed",
                    extra={
                        "mode": label,
                        "provider": exc.provider,
                        "kind": exc.kind.value,
                        "cause": repr(exc.cause),
                    },
                )
            raise
        except Exception as exc:
            failure = api_failure(exc, label)
            self._logger.warning(
                "Transport search failed with an unclassified error",
                extra={"mode": label, "kind": failure.kind.value, "cause": repr(exc)},
            )
            raise failure from exc

        self._logger.info(
            "Transport search completed",
            extra={"mode": mode.value, "results": len(results)},
        )
        return results

    async def search_transports_safe(
        self, params: SearchParams
    ) -> tuple[Optional[list[TransportResult]], Optional[str]]:
        """Search, returning a user-facing message instead of raising.

        Validation failures keep their message so the user can fix the
        input; every other kind becomes a generic "search unavailable".

        Returns:
            Tuple of (results or None, error message or None).
        """
        try:
            return await self.search_transports(params), None
        except TransportError as exc:
            return None, exc.user_message
