"""Typed failures for the Transport Aggregation Service.

Every failure that reaches a caller is one of four kinds: validation,
upstream_api, network or unknown. Each carries the originating provider
name when there is one, and the underlying exception as ``cause`` so the
boundary can log it and decide on a retry policy.

Use the constructor functions rather than instantiating the classes:
``api_failure`` in particular classifies an arbitrary exception raised
while talking to a provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional

import httpx

GENERIC_USER_MESSAGE = "search unavailable"

# Raised after the request left the process but before a response arrived.
_NO_RESPONSE_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    TimeoutError,
    ConnectionError,
)


class FailureKind(str, Enum):
    """Closed set of failure kinds."""

    VALIDATION = "validation"
    UPSTREAM_API = "upstream_api"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclass
class TransportError(Exception):
    """Base error for the transport aggregation domain.

    Attributes:
        message: Human-readable error description
        provider: Name of the provider involved, if any
        cause: Optional underlying exception that caused this error
    """

    kind: ClassVar[FailureKind] = FailureKind.UNKNOWN

    message: str
    provider: Optional[str] = None
    cause: Optional[BaseException] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def is_retryable(self) -> bool:
        """Whether a caller may reasonably retry the same request."""
        return False

    @property
    def user_message(self) -> str:
        """Message suitable for end users.

        Only validation failures are actionable by the user; everything else
        collapses to a generic message.
        """
        if self.kind is FailureKind.VALIDATION:
            return self.message
        return GENERIC_USER_MESSAGE


@dataclass
class ValidationFailure(TransportError):
    """Caller input or provider payload did not have the expected shape."""

    kind: ClassVar[FailureKind] = FailureKind.VALIDATION


@dataclass
class UpstreamApiFailure(TransportError):
    """The provider answered with an error.

    Attributes:
        status_code: HTTP status of the provider response, when available
    """

    kind: ClassVar[FailureKind] = FailureKind.UPSTREAM_API

    status_code: Optional[int] = None

    @property
    def is_retryable(self) -> bool:
        if self.status_code is None:
            return False
        return self.status_code >= 500 or self.status_code == 429


@dataclass
class NetworkFailure(TransportError):
    """The request was sent but no response arrived."""

    kind: ClassVar[FailureKind] = FailureKind.NETWORK

    @property
    def is_retryable(self) -> bool:
        return True


@dataclass
class UnknownFailure(TransportError):
    """Anything else, e.g. the request could not even be built."""

    kind: ClassVar[FailureKind] = FailureKind.UNKNOWN


def validation_failure(
    message: str, provider: Optional[str] = None
) -> ValidationFailure:
    """Build a validation failure. Never retryable."""
    return ValidationFailure(message, provider=provider)


def network_failure(cause: BaseException, provider: str) -> NetworkFailure:
    """Build a failure for a request that got no response."""
    return NetworkFailure(f"no response from {provider}", provider=provider, cause=cause)


def unknown_failure(cause: BaseException, provider: str) -> UnknownFailure:
    """Build a failure for anything that is neither upstream nor network."""
    return UnknownFailure(
        f"request to {provider} could not be completed",
        provider=provider,
        cause=cause,
    )


def _provider_message(response: Any) -> Optional[str]:
    try:
        payload = response.json()
    except (AttributeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    for key in ("message", "error_description"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def api_failure(cause: BaseException, provider: str) -> TransportError:
    """Classify an exception raised while calling a provider.

    Args:
        cause: The exception raised by the HTTP layer or below.
        provider: Provider name used in the message and on the failure.

    Returns:
        An UpstreamApiFailure when the cause carries a response with a status
        code, a NetworkFailure when no response arrived, an UnknownFailure
        otherwise. Typed failures are returned unchanged.
    """
    if isinstance(cause, TransportError):
        return cause

    response = getattr(cause, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        message = _provider_message(response) or f"{status} error from {provider}"
        return UpstreamApiFailure(
            message, provider=provider, cause=cause, status_code=status
        )

    if isinstance(cause, _NO_RESPONSE_ERRORS):
        return network_failure(cause, provider)

    return unknown_failure(cause, provider)
