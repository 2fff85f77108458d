"""Coach provider adapter."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ...config import CoachProviderConfig, get_config
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
    duration_between,
    minutes_duration,
    normalize_each,
    require_collection,
)


@dataclass
class CoachProviderAdapter:
    """Coach adapter implementing TransportProviderPort.

    The coach provider already splits date and time, so endpoints are copied
    as-is. Its ``stops`` list holds intermediate stops; anything other than a
    list counts as no stops.
    """

    config: CoachProviderConfig = field(default_factory=lambda: get_config().coach)
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
                ValueError("coach provider base_url and api_key are required"),
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
        client = self._get_client()
        query = {
            "from": params.departure,
            "to": params.arrival,
            "date": params.date,
            "passengers": params.passengers,
        }

        self._logger.debug(
            "Searching coach trips",
            extra={"departure": params.departure, "arrival": params.arrival},
        )

        try:
            raw = await get_json(client, self.config.search_path, params=query)
        except (httpx.HTTPError, ValueError) as exc:
            raise api_failure(exc, self.config.name) from exc

        results = self.normalize(raw)
        self._logger.info(
            "Coach search completed",
            extra={"provider": self.config.name, "results": len(results)},
        )
        return results

    def normalize(self, raw: Any) -> list[TransportResult]:
        """Normalize a coach response.

        Raises:
            ValidationFailure: If ``trips`` is missing or malformed.
        """
        trips = require_collection(raw, "trips", "coach", self.config.name)
        return normalize_each(trips, self._to_result, "coach", self.config.name)

    @staticmethod
    def _duration(trip: dict[str, Any]) -> str:
        value = trip.get("duration")
        if isinstance(value, str) and value:
            return value
        return (
            minutes_duration(value)
            or duration_between(trip["departure"]["time"], trip["arrival"]["time"])
            or ""
        )

    def _to_result(self, trip: dict[str, Any]) -> TransportResult:
        departure = trip["departure"]
        arrival = trip["arrival"]
        stops = trip.get("stops")

        return TransportResult(
            id=str(trip["id"]),
            mode=TransportMode.COACH,
            provider=trip["operator"],
            departure=Endpoint(
                station=departure["station"],
                time=departure["time"],
                date=departure["date"],
            ),
            arrival=Endpoint(
                station=arrival["station"],
                time=arrival["time"],
                date=arrival["date"],
            ),
            duration=self._duration(trip),
            price=Price(
                amount=float(trip["price"]["amount"]),
                currency=trip["price"]["currency"],
            ),
            details=TripDetails(
                stops=len(stops) if isinstance(stops, (list, tuple)) else 0,
                number=str(trip.get("bus_number") or ""),
                operator=trip["operator"],
                booking_url=trip.get("booking_url") or "",
            ),
        )

    def _release_stale_client(self) -> None:
        # A client cannot outlive the event loop it was first used on.
        self._logger.debug("Rebuilding client for a new event loop")
        self.client = None
        self._owns_client = False

    async def aclose(self) -> None:
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
            self._owns_client = False
