"""Typed failures raised by repository data sources."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base class for repository data source errors."""


class NotConfiguredError(RepositoryError):
    """Raised before any request when no API token has been configured."""


class AuthenticationError(RepositoryError):
    """Raised when the API rejects the configured token."""


class TransientFetchError(RepositoryError):
    """Failures expected to clear up on a later poll."""


class RateLimitedError(TransientFetchError):
    """Raised when the API reports the rate limit was exceeded."""


class NetworkError(TransientFetchError):
    """Raised on transport failures, timeouts and server-side errors."""


class InvalidResponseError(RepositoryError):
    """Raised when a response has an unexpected status or cannot be decoded."""


__all__ = [
    "AuthenticationError",
    "InvalidResponseError",
    "NetworkError",
    "NotConfiguredError",
    "RateLimitedError",
    "RepositoryError",
    "TransientFetchError",
]
