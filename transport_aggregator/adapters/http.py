"""Shared httpx plumbing for provider adapters.

All outbound HTTP goes through clients built here so that timeouts and
authentication headers are set in one place.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional

import httpx


def current_loop() -> Optional[asyncio.AbstractEventLoop]:
    """Return the running event loop, or None when called outside one.

    Clients and locks created under one loop cannot be used from another,
    so adapters record the loop they built their client on and rebuild it
    when a later call runs on a different loop (e.g. successive
    ``asyncio.run`` calls).
    """
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def build_client(
    base_url: str,
    *,
    timeout: float,
    bearer_token: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient bound to a provider base URL.

    Args:
        base_url: Provider endpoint root.
        timeout: Timeout in seconds applied to every phase of a request.
        bearer_token: Static API key sent as ``Authorization: Bearer``.
        headers: Extra default headers.

    Returns:
        A client the caller is responsible for closing.
    """
    default_headers: Dict[str, str] = {"Accept": "application/json"}
    if headers:
        default_headers.update(headers)
    if bearer_token:
        default_headers["Authorization"] = f"Bearer {bearer_token}"

    return httpx.AsyncClient(
        base_url=base_url,
        headers=default_headers,
        timeout=httpx.Timeout(timeout),
    )


async def get_json(
    client: httpx.AsyncClient,
    path: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Any:
    """GET a path and decode the JSON body.

    Raises:
        httpx.HTTPStatusError: For 4xx/5xx responses.
        httpx.RequestError: When no response was received.
        ValueError: When the body is not valid JSON.
    """
    response = await client.get(path, params=params, headers=headers)
    response.raise_for_status()
    return response.json()
