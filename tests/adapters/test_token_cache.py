"""Tests for the client-credentials token cache."""

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from transport_aggregator.adapters.auth import ClientCredentialsTokenCache
from transport_aggregator.config import AirProviderConfig
from transport_aggregator.domain.errors import (
    NetworkFailure,
    UnknownFailure,
    UpstreamApiFailure,
)


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def config():
    return AirProviderConfig(
        base_url="https://air.test", client_id="my-id", client_secret="my-secret"
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def exchanges():
    return []


@pytest.fixture
def token_client(make_client, exchanges):
    def handler(request):
        exchanges.append(request)
        return httpx.Response(
            200,
            json={"access_token": f"token-{len(exchanges)}", "expires_in": 1800},
        )

    return make_client(handler, "https://air.test")


class TestCaching:
    @pytest.mark.asyncio
    async def test_exchange_sends_client_credentials(self, config, clock, token_client, exchanges):
        cache = ClientCredentialsTokenCache(config=config, client=token_client, clock=clock)

        assert await cache.get_token() == "token-1"

        [request] = exchanges
        assert request.method == "POST"
        assert request.url.path == "/v1/security/oauth2/token"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        form = parse_qs(request.content.decode())
        assert form == {
            "grant_type": ["client_credentials"],
            "client_id": ["my-id"],
            "client_secret": ["my-secret"],
        }

    @pytest.mark.asyncio
    async def test_valid_token_is_reused(self, config, clock, token_client, exchanges):
        cache = ClientCredentialsTokenCache(config=config, client=token_client, clock=clock)

        first = await cache.get_token()
        clock.now += 1_799
        second = await cache.get_token()

        assert first == second == "token-1"
        assert len(exchanges) == 1
        assert cache.exchange_count == 1

    @pytest.mark.asyncio
    async def test_expired_token_triggers_one_new_exchange(
        self, config, clock, token_client, exchanges
    ):
        cache = ClientCredentialsTokenCache(config=config, client=token_client, clock=clock)

        await cache.get_token()
        clock.now += 1_800
        renewed = await cache.get_token()
        again = await cache.get_token()

        assert renewed == again == "token-2"
        assert len(exchanges) == 2

    @pytest.mark.asyncio
    async def test_invalidate_forces_exchange(self, config, clock, token_client, exchanges):
        cache = ClientCredentialsTokenCache(config=config, client=token_client, clock=clock)

        await cache.get_token()
        cache.invalidate()

        assert await cache.get_token() == "token-2"

    @pytest.mark.asyncio
    async def test_overlapping_callers_share_one_exchange(self, config, clock, make_client):
        exchanges = []

        async def handler(request):
            exchanges.append(request)
            await asyncio.sleep(0.01)
            return httpx.Response(200, json={"access_token": "shared", "expires_in": 60})

        cache = ClientCredentialsTokenCache(
            config=config, client=make_client(handler), clock=clock
        )
        tokens = await asyncio.gather(*(cache.get_token() for _ in range(5)))

        assert tokens == ["shared"] * 5
        assert len(exchanges) == 1


class TestFailures:
    @pytest.mark.asyncio
    async def test_rejected_credentials(self, config, clock, make_client):
        client = make_client(
            lambda request: httpx.Response(401, json={"error_description": "bad secret"})
        )
        cache = ClientCredentialsTokenCache(config=config, client=client, clock=clock)

        with pytest.raises(UpstreamApiFailure) as excinfo:
            await cache.get_token()

        assert excinfo.value.provider == "air-provider"
        assert excinfo.value.status_code == 401
        assert excinfo.value.message == "bad secret"
        assert cache.exchange_count == 0

    @pytest.mark.asyncio
    async def test_timeout(self, config, clock, make_client):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        cache = ClientCredentialsTokenCache(
            config=config, client=make_client(handler), clock=clock
        )
        with pytest.raises(NetworkFailure) as excinfo:
            await cache.get_token()
        assert excinfo.value.provider == "air-provider"

    @pytest.mark.asyncio
    async def test_token_response_without_token(self, config, clock, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"state": "ok"}))
        cache = ClientCredentialsTokenCache(config=config, client=client, clock=clock)

        with pytest.raises(UpstreamApiFailure) as excinfo:
            await cache.get_token()
        assert excinfo.value.message == "invalid token response from air-provider"

    @pytest.mark.asyncio
    async def test_failed_exchange_is_retried_by_next_caller(self, config, clock, make_client):
        responses = [
            httpx.Response(500),
            httpx.Response(200, json={"access_token": "late", "expires_in": 60}),
        ]
        client = make_client(lambda request: responses.pop(0))
        cache = ClientCredentialsTokenCache(config=config, client=client, clock=clock)

        with pytest.raises(UpstreamApiFailure):
            await cache.get_token()
        assert await cache.get_token() == "late"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, clock, make_client):
        calls = []
        client = make_client(lambda request: calls.append(request) or httpx.Response(200))
        cache = ClientCredentialsTokenCache(
            config=AirProviderConfig(base_url="https://air.test"), client=client, clock=clock
        )

        with pytest.raises(UnknownFailure):
            await cache.get_token()
        assert calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"access_token": None, "expires_in": 60},
            {"access_token": "", "expires_in": 60},
            {"access_token": 12345, "expires_in": 60},
            {"access_token": "tok", "expires_in": None},
            {"access_token": "tok", "expires_in": "60"},
            {"access_token": "tok", "expires_in": -1},
            {"access_token": "tok", "expires_in": True},
        ],
    )
    async def test_unusable_token_is_not_cached(self, config, clock, make_client, payload):
        responses = [
            httpx.Response(200, json=payload),
            httpx.Response(200, json={"access_token": "good", "expires_in": 60}),
        ]
        client = make_client(lambda request: responses.pop(0))
        cache = ClientCredentialsTokenCache(config=config, client=client, clock=clock)

        with pytest.raises(UpstreamApiFailure) as excinfo:
            await cache.get_token()
        assert excinfo.value.message == "invalid token response from air-provider"
        assert cache.exchange_count == 0

        assert await cache.get_token() == "good"

    def test_infinite_lifetime_is_rejected(self, config):
        cache = ClientCredentialsTokenCache(config=config)
        with pytest.raises(UpstreamApiFailure):
            cache._read_token({"access_token": "tok", "expires_in": float("inf")})


class TestEventLoops:
    """The cache is a process-wide singleton used from successive loops."""

    def test_overlapping_callers_on_successive_loops(self, config, clock, make_client):
        exchanges = []

        async def handler(request):
            exchanges.append(request)
            await asyncio.sleep(0.01)
            return httpx.Response(
                200, json={"access_token": f"token-{len(exchanges)}", "expires_in": 0}
            )

        cache = ClientCredentialsTokenCache(
            config=config, client=make_client(handler), clock=clock
        )

        async def overlapping():
            return await asyncio.gather(*(cache.get_token() for _ in range(3)))

        first = asyncio.run(overlapping())
        second = asyncio.run(overlapping())

        # expires_in=0 means every caller renews, so each run contends for the lock.
        assert len(first) == len(second) == 3
        assert len(exchanges) == 6

    def test_valid_token_carries_over_to_a_new_loop(self, config, clock, token_client, exchanges):
        cache = ClientCredentialsTokenCache(config=config, client=token_client, clock=clock)

        assert asyncio.run(cache.get_token()) == "token-1"
        assert asyncio.run(cache.get_token()) == "token-1"
        assert len(exchanges) == 1

    def test_own_client_is_rebuilt_on_a_new_loop(self, config):
        cache = ClientCredentialsTokenCache(config=config)

        async def client():
            return cache._get_client()

        first = asyncio.run(client())
        second = asyncio.run(client())

        assert first is not second
        assert str(second.base_url).startswith("https://air.test")
