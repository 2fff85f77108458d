"""Rail provider adapter.

Queries the rail journey planner (Navitia-style ``journeys`` endpoint,
static bearer key) and normalizes each journey into a TransportResult.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ...config import RailProviderConfig, get_config
from ...domain.errors import api_failure, unknown_failure
from ...domain.models import (
    Endpoint,
    Price,
    SearchParams,
    TransportMode,
    TransportResult,
    TripDetails,
)
from ..http import build_client, current_loop, get_json
from ._normalize import (
    calendar_date,
    count_or_zero,
    duration_between,
    normalize_each,
    require_collection,
)


@dataclass
class RailProviderAdapter:
    """Rail adapter implementing TransportProviderPort.

    Attributes:
        config: Rail provider configuration
        client: Optional pre-built HTTP client (built from config otherwise)
    """

    config: RailProviderConfig = field(default_factory=lambda: get_config().rail)
    client: Optional[httpx.AsyncClient] = field(default=None, repr=False)

    _owns_client: bool = field(default=False, init=False, repr=False)
    _client_loop: Optional[asyncio.AbstractEventLoop] = field(
        default=None, init=False, repr=False
    )
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def _get_client(self) -> httpx.AsyncClient:
        loop = current_loop()
        if self._owns_client and self._client_loop is not loop:
            self._release_stale_client()

        if self.client is not None:
            return self.client

        if not self.config.base_url or not self.config.api_key:
            raise unknown_failure(
                ValueError("rail provider base_url and api_key are required"),
                self.config.name,
            )

        self.client = build_client(
            self.config.base_url,
            timeout=self.config.timeout_seconds,
            bearer_token=self.config.api_key,
        )
        self._owns_client = True
        self._client_loop = loop
        return self.client

    async def search(self, params: SearchParams) -> list[TransportResult]:
        """Search rail journeys.

        Args:
            params: The validated search request.

        Returns:
            Canonical rail results.
        """
        client = self._get_client()
        query = {
            "from": params.departure,
            "to": params.arrival,
            "datetime": params.date,
            "count": self.config.result_limit,
        }

        self._logger.debug(
            "Searching rail journeys",
            extra={"departure": params.departure, "arrival": params.arrival},
        )

        try:
            raw = await get_json(client, self.config.journeys_path, params=query)
        except (httpx.HTTPError, ValueError) as exc:
            raise api_failure(exc, self.config.name) from exc

        results = self.normalize(raw)
        self._logger.info(
            "Rail search completed",
            extra={"provider": self.config.name, "results": len(results)},
        )
        return results

    def normalize(self, raw: Any) -> list[TransportResult]:
        """Normalize a rail response.

        Raises:
            ValidationFailure: If ``journeys`` is missing or malformed.
        """
        journeys = require_collection(raw, "journeys", "rail", self.config.name)
        return normalize_each(journeys, self._to_result, "rail", self.config.name)

    def _to_result(self, journey: dict[str, Any]) -> TransportResult:
        departs_at = journey["departure_date_time"]
        arrives_at = journey["arrival_date_time"]
        operator = journey.get("train_operator") or self.config.default_operator

        transfers = journey.get("nb_transfers")
        stops = count_or_zero(transfers)
        if transfers is not None and stops != transfers:
            self._logger.debug(
                "Non-numeric transfer count, defaulting to 0",
                extra={"journey_id": journey.get("id"), "nb_transfers": transfers},
            )

        return TransportResult(
            id=str(journey["id"]),
            mode=TransportMode.RAIL,
            provider=operator,
            departure=Endpoint(
                station=journey["from"]["name"],
                time=departs_at,
                date=calendar_date(departs_at),
            ),
            arrival=Endpoint(
                station=journey["to"]["name"],
                time=arrives_at,
                date=calendar_date(arrives_at),
            ),
            duration=duration_between(departs_at, arrives_at) or "",
            price=Price(
                amount=float(journey["fare"]["total"]),
                currency=self.config.currency,
            ),
            details=TripDetails(
                stops=stops,
                number=str(journey.get("train_number") or ""),
                operator=operator,
                booking_url=journey.get("booking_url") or "",
                travel_class=journey.get("comfort_class"),
            ),
        )

    def _release_stale_client(self) -> None:
        # A client cannot outlive the event loop it was first used on.
        self._logger.debug("Rebuilding client for a new event loop")
        self.client = None
        self._owns_client = False

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
            self._owns_client = False
