"""Air provider adapter.

Flight offers require a bearer token obtained through a client-credentials
exchange. The token comes from a TokenProviderPort shared process-wide;
this adapter never stores tokens itself.

Only the first itinerary and its first segment are surfaced for each
offer; the segment count still drives ``stops``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ...config import AirProviderConfig, get_config
from ...domain.errors import api_failure, unknown_failure
from ...domain.models import (
    Endpoint,
    Price,
    SearchParams,
    TransportMode,
    TransportResult,
    TripDetails,
)
from ...ports.transport import TokenProviderPort
from ..auth.token_cache import ClientCredentialsTokenCache
from ..http import build_client, current_loop, get_json
from ._normalize import (
    calendar_date,
    duration_between,
    iso_duration,
    normalize_each,
    require_collection,
)


@dataclass
class AirProviderAdapter:
    """Air adapter implementing TransportProviderPort.

    Attributes:
        config: Air provider configuration
        token_provider: Source of bearer tokens; a token cache sharing this
            adapter's client is created when omitted
        client: Optional pre-built HTTP client (built from config otherwise)
    """

    config: AirProviderConfig = field(default_factory=lambda: get_config().air)
    token_provider: Optional[TokenProviderPort] = None
    client: Optional[httpx.AsyncClient] = field(default=None, repr=False)

    _owns_client: bool = field(default=False, init=False, repr=False)
    _client_loop: Optional[asyncio.AbstractEventLoop] = field(
        default=None, init=False, repr=False
    )
    _owns_token_provider: bool = field(default=False, init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def _get_client(self) -> httpx.AsyncClient:
        loop = current_loop()
        if self._owns_client and self._client_loop is not loop:
            self._release_stale_client()

        if self.client is not None:
            return self.client

        if not self.config.base_url:
            raise unknown_failure(
                ValueError("air provider base_url is required"), self.config.name
            )

        self.client = build_client(
            self.config.base_url, timeout=self.config.timeout_seconds
        )
        self._owns_client = True
        self._client_loop = loop
        return self.client

    def _get_token_provider(self) -> TokenProviderPort:
        if self.token_provider is None:
            self.token_provider = ClientCredentialsTokenCache(
                config=self.config, client=self._get_client()
            )
            self._owns_token_provider = True
        return self.token_provider

    async def search(self, params: SearchParams) -> list[TransportResult]:
        """Search flight offers.

        Args:
            params: The validated search request.

        Returns:
            Canonical air results.
        """
        client = self._get_client()
        token = await self._get_token_provider().get_token()

        query = {
            "originLocationCode": params.departure,
            "destinationLocationCode": params.arrival,
            "departureDate": params.date,
            "adults": params.passengers,
            "max": self.config.result_limit,
        }

        self._logger.debug(
            "Searching flight offers",
            extra={"departure": params.departure, "arrival": params.arrival},
        )

        try:
            raw = await get_json(
                client,
                self.config.offers_path,
                params=query,
                headers={"Authorization": f"Bearer {token}"},
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise api_failure(exc, self.config.name) from exc

        results = self.normalize(raw)
        self._logger.info(
            "Air search completed",
            extra={"provider": self.config.name, "results": len(results)},
        )
        return results

    def normalize(self, raw: Any) -> list[TransportResult]:
        """Normalize a flight-offers response.

        Raises:
            ValidationFailure: If ``data`` is missing or malformed.
        """
        offers = require_collection(raw, "data", "air", self.config.name)
        return normalize_each(offers, self._to_result, "air", self.config.name)

    @staticmethod
    def _cabin(offer: dict[str, Any]) -> Optional[str]:
        pricings = offer.get("travelerPricings") or []
        if not pricings:
            return None
        fare_details = pricings[0].get("fareDetailsBySegment") or []
        if not fare_details:
            return None
        return fare_details[0].get("cabin")

    def _to_result(self, offer: dict[str, Any]) -> TransportResult:
        itinerary = offer["itineraries"][0]
        segments = itinerary["segments"]
        segment = segments[0]

        departs_at = segment["departure"]["at"]
        arrives_at = segment["arrival"]["at"]
        carrier = segment["carrierCode"]
        duration = (
            iso_duration(itinerary.get("duration"))
            or duration_between(departs_at, arrives_at)
            or ""
        )

        return TransportResult(
            id=str(offer["id"]),
            mode=TransportMode.AIR,
            provider=carrier,
            departure=Endpoint(
                station=segment["departure"]["iataCode"],
                time=departs_at,
                date=calendar_date(departs_at),
            ),
            arrival=Endpoint(
                station=segment["arrival"]["iataCode"],
                time=arrives_at,
                date=calendar_date(arrives_at),
            ),
            duration=duration,
            price=Price(
                amount=float(offer["price"]["total"]),
                currency=offer["price"]["currency"],
            ),
            details=TripDetails(
                stops=len(segments) - 1,
                number=str(segment.get("number") or ""),
                operator=carrier,
                booking_url=offer.get("bookingUrl") or "",
                travel_class=self._cabin(offer),
            ),
        )

    def _release_stale_client(self) -> None:
        # A client cannot outlive the event loop it was first used on. A token
        # cache built around it goes too; an injected one manages its own.
        self._logger.debug("Rebuilding client for a new event loop")
        self.client = None
        self._owns_client = False
        if self._owns_token_provider:
            self.token_provider = None
            self._owns_token_provider = False

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
            self._owns_client = False
