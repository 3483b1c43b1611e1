from __future__ import annotations

from dataclasses import dataclass


class ProviderError(RuntimeError):
    """Base exception for upstream-service failures."""


class ProviderRequestError(ProviderError):
    """HTTP/network/transport layer failures (timeouts, connection errors, non-2xx, etc.)."""


class ProviderNotFound(ProviderRequestError):
    """Upstream answered 404 for a single-resource lookup."""


class ProviderRateLimited(ProviderRequestError):
    """Upstream kept throttling the request (HTTP 429) after retries."""


class ProviderAuthError(ProviderRequestError):
    """Every available API key was rejected (expired, revoked or exhausted)."""


class ProviderCapabilityError(ProviderError):
    """Adapter does not support a requested operation."""


class UnknownProgramFamily(ProviderError):
    """A program's family tag matches no known upstream service."""


@dataclass(eq=False)
class ProviderMappingError(ProviderError):
    """Mapping/extraction failed due to unexpected schema or values."""
    message: str
    context: dict[str, object] | None = None

    def __str__(self) -> str:  # pragma: no cover
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"
