"""Transport provider ports - Contracts for the provider adapters.

Every provider adapter (rail, air, coach) implements TransportProviderPort
so the aggregation facade can treat them interchangeably. The air adapter
additionally depends on a TokenProviderPort for its bearer token.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..domain.models import SearchParams, TransportResult


class TransportProviderPort(Protocol):
    """Port for one upstream transport provider.

    Implementations:
    - adapters/providers/rail_adapter.py (RailProviderAdapter)
    - adapters/providers/air_adapter.py (AirProviderAdapter)
    - adapters/providers/coach_adapter.py (CoachProviderAdapter)
    """

    async def search(self, params: SearchParams) -> list[TransportResult]:
        """Query the provider and return canonical results.

        Args:
            params: The validated search request.

        Returns:
            Canonical results, possibly empty.

        Raises:
            TransportError: Any of the four failure kinds.
        """
        ...

    def normalize(self, raw: Any) -> list[TransportResult]:
        """Transform the provider's raw JSON payload into canonical results.

        Args:
            raw: Decoded JSON body as returned by the provider.

        Returns:
            Canonical results.

        Raises:
            ValidationFailure: If the payload does not have the expected shape.
        """
        ...


class TokenProviderPort(Protocol):
    """Port for bearer-token acquisition.

    Implementation: adapters/auth/token_cache.py
    """

    async def get_token(self) -> str:
        """Return a bearer token that is valid right now."""
        ...
