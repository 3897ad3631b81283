"""Translation between IDX stock codes and Yahoo Finance symbols."""

import re

MARKET_SUFFIX = ".JK"
INDEX_MARKER = "^"

# Jakarta Composite Index, always fetched alongside user symbols
COMPOSITE_INDEX = "^JKSE"
COMPOSITE_ALIAS = "IHSG"

_DISPLAY_ALIASES = {COMPOSITE_INDEX: COMPOSITE_ALIAS}


def normalize_symbol(raw: str) -> str:
    """
    Normalize user input into a canonical symbol.
    - Strip whitespace
    - Convert to uppercase
    - Remove characters that cannot appear in a code
    - Drop the market suffix (bbca.jk -> BBCA)
    """
    if not raw:
        return ""
    symbol = re.sub(r"[^A-Z0-9\.\^]", "", raw.strip().upper())
    if not is_composite(symbol) and symbol.endswith(MARKET_SUFFIX):
        symbol = symbol[: -len(MARKET_SUFFIX)]
    return symbol


def is_composite(symbol: str) -> bool:
    return symbol.startswith(INDEX_MARKER)


def to_provider(symbol: str) -> str:
    """BBCA -> BBCA.JK; index symbols such as ^JKSE pass through."""
    if is_composite(symbol):
        return symbol
    code = symbol.upper()
    if code.endswith(MARKET_SUFFIX):
        return code
    return f"{code}{MARKET_SUFFIX}"


def from_provider(provider_symbol: str) -> str:
    """BBCA.JK -> BBCA; index symbols pass through."""
    if is_composite(provider_symbol):
        return provider_symbol
    if provider_symbol.endswith(MARKET_SUFFIX):
        return provider_symbol[: -len(MARKET_SUFFIX)]
    return provider_symbol


def display_symbol(symbol: str) -> str:
    """Presentation-only alias (^JKSE renders as IHSG). Never use for lookups."""
    return _DISPLAY_ALIASES.get(symbol, symbol)
