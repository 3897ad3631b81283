"""Upstream quote provider access."""

from .session import AuthState, SessionAuthenticator
from .symbols import (
    COMPOSITE_ALIAS,
    COMPOSITE_INDEX,
    display_symbol,
    from_provider,
    is_composite,
    normalize_symbol,
    to_provider,
)
from .yahoo import QuoteClient

__all__ = [
    "AuthState",
    "SessionAuthenticator",
    "QuoteClient",
    "COMPOSITE_ALIAS",
    "COMPOSITE_INDEX",
    "display_symbol",
    "from_provider",
    "is_composite",
    "normalize_symbol",
    "to_provider",
]
