"""Shared fixtures: environment isolation and mocked HTTP clients."""

from __future__ import annotations

import os
from typing import Callable

import httpx
import pytest

from transport_aggregator.config import reset_config


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Drop TA_* variables so tests never pick up real credentials."""
    for name in list(os.environ):
        if name.startswith("TA_"):
            monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def _make(handler, base_url: str = "https://provider.test") -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url=base_url
        )

    return _make
