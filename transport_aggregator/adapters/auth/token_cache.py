"""Client-credentials token cache for the air provider.

The cache is a two-state cell: absent, or holding a token with its
expiry. Reads of a still-valid token take no lock. Renewal is serialized
by an asyncio.Lock, and callers that queued behind an in-flight exchange
re-check the cell before exchanging again, so overlapping callers share
one exchange.

One instance is built per process (see Container.create_default) and
injected into the air adapter. The lock, and a client the cache built
itself, belong to one event loop; both are recreated when get_token()
runs on a different loop, while the cached token carries over.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx

from ...config import AirProviderConfig, get_config
from ...domain.errors import UpstreamApiFailure, api_failure, unknown_failure
from ...domain.models import CachedToken
from ..http import build_client, current_loop


@dataclass
class ClientCredentialsTokenCache:
    """Caches the bearer token returned by a client-credentials exchange.

    Implements TokenProviderPort.

    Attributes:
        config: Air provider configuration (credentials and token path)
        client: Optional pre-built HTTP client bound to the provider base URL
        clock: Returns the current time in seconds since the epoch
    """

    config: AirProviderConfig = field(default_factory=lambda: get_config().air)
    client: Optional[httpx.AsyncClient] = field(default=None, repr=False)
    clock: Callable[[], float] = field(default=time.time, repr=False)

    _token: Optional[CachedToken] = field(default=None, init=False, repr=False)
    _lock: Optional[asyncio.Lock] = field(default=None, init=False, repr=False)
    _lock_loop: Optional[asyncio.AbstractEventLoop] = field(
        default=None, init=False, repr=False
    )
    _client_loop: Optional[asyncio.AbstractEventLoop] = field(
        default=None, init=False, repr=False
    )
    _exchange_count: int = field(default=0, init=False, repr=False)
    _owns_client: bool = field(default=False, init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @property
    def exchange_count(self) -> int:
        """Number of completed exchanges since creation."""
        return self._exchange_count

    def _now_millis(self) -> int:
        return int(self.clock() * 1000)

    def _valid_token(self) -> Optional[str]:
        token = self._token
        if token is not None and token.is_valid(self._now_millis()):
            return token.value
        return None

    async def get_token(self) -> str:
        """Return a valid bearer token, exchanging credentials only when needed.

        Raises:
            TransportError: If the exchange fails.
        """
        cached = self._valid_token()
        if cached is not None:
            return cached

        async with self._get_lock():
            # Another caller may have renewed while we waited.
            cached = self._valid_token()
            if cached is not None:
                self._logger.debug("Token renewed by a concurrent caller")
                return cached

            self._token = await self._exchange()
            return self._token.value

    def invalidate(self) -> None:
        """Drop the cached token; the next get_token() exchanges again."""
        self._token = None

    def _get_lock(self) -> asyncio.Lock:
        loop = current_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    def _get_client(self) -> httpx.AsyncClient:
        loop = current_loop()
        if self._owns_client and self._client_loop is not loop:
            # Its connection pool is tied to a previous loop.
            self._logger.debug("Rebuilding token client for a new event loop")
            self.client = None
            self._owns_client = False

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

    async def _exchange(self) -> CachedToken:
        if not self.config.client_id or not self.config.client_secret:
            raise unknown_failure(
                ValueError("air provider client_id and client_secret are required"),
                self.config.name,
            )

        client = self._get_client()
        form = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }

        self._logger.debug("Exchanging client credentials for a token")
        try:
            response = await client.post(self.config.token_path, data=form)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise api_failure(exc, self.config.name) from exc

        value, expires_in = self._read_token(payload)

        token = CachedToken(
            value=value,
            expires_at_epoch_millis=self._now_millis() + int(expires_in * 1000),
        )
        self._exchange_count += 1
        self._logger.info(
            "Token exchanged",
            extra={"provider": self.config.name, "expires_in": expires_in},
        )
        return token

    def _read_token(self, payload: Any) -> tuple[str, float]:
        """Return the access token and its lifetime in seconds.

        Raises:
            UpstreamApiFailure: Unless the token is a non-empty string and
                expires_in a finite, non-negative number.
        """
        value = payload.get("access_token") if isinstance(payload, dict) else None
        expires_in = payload.get("expires_in") if isinstance(payload, dict) else None
        if (
            not isinstance(value, str)
            or not value
            or isinstance(expires_in, bool)
            or not isinstance(expires_in, (int, float))
            or not math.isfinite(expires_in)
            or expires_in < 0
        ):
            raise UpstreamApiFailure(
                f"invalid token response from {self.config.name}",
                provider=self.config.name,
            )
        return value, float(expires_in)

    async def aclose(self) -> None:
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
            self._owns_client = False
