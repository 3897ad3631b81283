"""Process-lifetime quote cache."""

import logging
import time
from typing import Dict, Iterable, Mapping, Optional

from .domain.models import Quote
from .providers.symbols import COMPOSITE_INDEX

logger = logging.getLogger(__name__)


class QuoteCache:
    """
    Most recent quote per symbol.

    A refresh batch is applied as one swap of the underlying dict, so readers
    never see a half-applied batch. A symbol the provider left out keeps its
    last known quote, except for symbols in `unavailable_on_absent` (the
    composite index by default) which are recorded as "no data".
    No eviction: entries for symbols no longer tracked stay until overwritten.
    """

    def __init__(self, unavailable_on_absent: Iterable[str] = (COMPOSITE_INDEX,)):
        self._quotes: Dict[str, Optional[Quote]] = {}
        self.unavailable_on_absent = frozenset(unavailable_on_absent)
        self.last_updated: Optional[float] = None

    def update(self, results: Mapping[str, Optional[Quote]]) -> None:
        merged = dict(self._quotes)
        replaced = 0
        for symbol, quote in results.items():
            if quote is not None:
                merged[symbol] = quote
                replaced += 1
            elif symbol in self.unavailable_on_absent or merged.get(symbol) is None:
                merged[symbol] = None
        self._quotes = merged
        self.last_updated = time.time()
        logger.debug("Cache update: %d replaced, %d absent", replaced, len(results) - replaced)

    def get(self, symbol: str) -> Optional[Quote]:
        return self._quotes.get(symbol)

    def __contains__(self, symbol: str) -> bool:
        return self._quotes.get(symbol) is not None

    def invalidate(self, symbol: str) -> None:
        """Forget symbol so it renders as unavailable instead of stale."""
        if self._quotes.get(symbol) is not None:
            merged = dict(self._quotes)
            merged[symbol] = None
            self._quotes = merged
            logger.debug("Cache invalidated: %s", symbol)

    def snapshot(self) -> Dict[str, Quote]:
        return {s: q for s, q in self._quotes.items() if q is not None}

    def clear(self) -> None:
        count = len(self._quotes)
        self._quotes = {}
        logger.info("Cache cleared: %d items removed", count)

    def stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        with_data = sum(1 for q in self._quotes.values() if q is not None)
        return {"size": len(self._quotes), "with_data": with_data}
