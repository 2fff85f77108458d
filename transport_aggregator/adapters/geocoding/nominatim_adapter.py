"""Nominatim geocoder adapter.

Resolves place names through geopy's Nominatim geocoder running on the
aiohttp adapter, throttled with AsyncRateLimiter to respect the public
instance's usage policy. geopy exceptions are classified into the
transport failure taxonomy; nothing is swallowed or retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from geopy.adapters import AioHTTPAdapter
from geopy.exc import (
    GeocoderRateLimited,
    GeocoderServiceError,
    GeocoderTimedOut,
    GeocoderUnavailable,
    GeopyError,
)
from geopy.extra.rate_limiter import AsyncRateLimiter
from geopy.geocoders import Nominatim

from ...config import GeocodingConfig, get_config
from ...domain.errors import (
    TransportError,
    UpstreamApiFailure,
    ValidationFailure,
    network_failure,
    unknown_failure,
)
from ...domain.models import Coordinates
from ..http import current_loop


@dataclass
class NominatimGeocoderAdapter:
    """Nominatim geocoder implementing GeocoderPort.

    Attributes:
        config: Geocoding configuration
    """

    config: GeocodingConfig = field(default_factory=lambda: get_config().geocoding)

    _geolocator: Optional[Any] = field(default=None, repr=False)
    _geocode_fn: Optional[Any] = field(default=None, init=False, repr=False)
    _owns_geolocator: bool = field(default=False, init=False, repr=False)
    _geocoder_loop: Optional[asyncio.AbstractEventLoop] = field(
        default=None, init=False, repr=False
    )
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def _get_geocoder(self) -> Any:
        """Get or initialize the rate-limited geocode coroutine function."""
        loop = current_loop()
        if self._geocode_fn is not None and self._geocoder_loop is not loop:
            # The limiter lock and the aiohttp session belong to a previous loop.
            self._geocode_fn = None
            if self._owns_geolocator:
                self._geolocator = None
                self._owns_geolocator = False

        if self._geocode_fn is not None:
            return self._geocode_fn

        if self._geolocator is None:
            self._logger.debug(
                "Initializing Nominatim geocoder",
                extra={
                    "user_agent": self.config.user_agent,
                    "domain": self.config.domain,
                },
            )
            self._geolocator = Nominatim(
                user_agent=self.config.user_agent,
                domain=self.config.domain,
                scheme=self.config.scheme,
                timeout=self.config.timeout_seconds,
                adapter_factory=AioHTTPAdapter,
            )
            self._owns_geolocator = True

        self._geocode_fn = AsyncRateLimiter(
            self._geolocator.geocode,
            min_delay_seconds=self.config.rate_limit_delay,
            max_retries=0,
            swallow_exceptions=False,
        )
        self._geocoder_loop = loop
        return self._geocode_fn

    def _classify(self, exc: GeopyError) -> TransportError:
        provider = self.config.name
        if isinstance(exc, (GeocoderTimedOut, GeocoderUnavailable)):
            return network_failure(exc, provider)
        if isinstance(exc, GeocoderServiceError):
            return UpstreamApiFailure(
                str(exc) or f"error from {provider}",
                provider=provider,
                cause=exc,
                status_code=429 if isinstance(exc, GeocoderRateLimited) else None,
            )
        return unknown_failure(exc, provider)

    async def resolve_place(self, name: str) -> Coordinates:
        """Resolve a place name to coordinates.

        Args:
            name: The place name to geocode.

        Returns:
            Coordinates of the first match.

        Raises:
            ValidationFailure: If nothing matches the name.
            TransportError: For provider or network failures.
        """
        query = (name or "").strip()
        if not query:
            raise ValidationFailure(
                f"no coordinates found for place: {name}", provider=self.config.name
            )

        geocode = self._get_geocoder()
        kwargs: dict[str, Any] = {"exactly_one": True}
        if self.config.language:
            kwargs["language"] = self.config.language

        try:
            location = await geocode(query, **kwargs)
        except GeopyError as exc:
            failure = self._classify(exc)
            self._logger.warning(
                "Geocode failed",
                extra={"query": query, "kind": failure.kind.value, "error": str(exc)},
            )
            raise failure from exc

        if location is None:
            self._logger.debug("Geocode returned no result", extra={"query": query})
            raise ValidationFailure(
                f"no coordinates found for place: {name}", provider=self.config.name
            )

        coordinates = Coordinates(
            lat=float(location.latitude), lon=float(location.longitude)
        )
        self._logger.debug(
            "Geocode success",
            extra={"query": query, "lat": coordinates.lat, "lon": coordinates.lon},
        )
        return coordinates

    async def aclose(self) -> None:
        """Close the aiohttp session of a geocoder this adapter created."""
        if self._geolocator is not None and self._owns_geolocator:
            await self._geolocator.__aexit__(None, None, None)
            self._geolocator = None
            self._geocode_fn = None
            self._owns_geolocator = False
