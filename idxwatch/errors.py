"""Error taxonomy shared by providers, storage and the app facade."""

from dataclasses import dataclass
from typing import Optional


class IdxWatchError(Exception):
    """Base class for all errors raised by idxwatch."""


@dataclass
class ProviderError(IdxWatchError):
    """Failure talking to the upstream quote provider."""
    provider: str
    message: str
    status: Optional[int] = None

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.provider}: {self.message} (HTTP {self.status})"
        return f"{self.provider}: {self.message}"


class AuthError(ProviderError):
    """Handshake failed, or the credential was rejected twice in a row."""


class NetworkError(ProviderError):
    """Transport failure or unusable upstream response."""


class InvariantViolation(IdxWatchError):
    """A collection mutation would break a CollectionSet invariant."""


class MigrationError(IdxWatchError):
    """Persisted record matches neither the current nor the legacy schema."""
