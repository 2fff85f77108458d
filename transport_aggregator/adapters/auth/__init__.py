"""Authentication adapters - Implementations of TokenProviderPort."""

from .token_cache import ClientCredentialsTokenCache

__all__ = ["ClientCredentialsTokenCache"]
