"""Named collections (watchlists, portfolios) and the ordered set holding them."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, TypeVar

from ..errors import InvariantViolation
from .models import LOT_SIZE, Holding

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_NAME = "Default"


@dataclass
class Watchlist:
    name: str
    symbols: List[str] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return list(self.symbols)

    def add_symbol(self, symbol: str) -> bool:
        """Append symbol. Returns False if it is already present."""
        symbol = symbol.upper()
        if symbol in self.symbols:
            return False
        self.symbols.append(symbol)
        return True

    def remove_symbol(self, symbol: str) -> bool:
        if symbol not in self.symbols:
            return False
        self.symbols.remove(symbol)
        return True

    def to_dict(self) -> dict:
        return {"name": self.name, "symbols": list(self.symbols)}


@dataclass
class Portfolio:
    name: str
    holdings: List[Holding] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return [h.symbol for h in self.holdings]

    @property
    def symbols(self) -> List[str]:
        return self.keys

    def find(self, symbol: str) -> Optional[Holding]:
        for holding in self.holdings:
            if holding.symbol == symbol:
                return holding
        return None

    def add_holding(self, symbol: str, lots: int, avg_price: float) -> Holding:
        """
        Add a new holding or merge into an existing one.

        Merging keeps the weighted average acquisition price over all shares.
        """
        if lots <= 0:
            raise ValueError("Lots must be greater than 0")
        if avg_price <= 0:
            raise ValueError("Price must be greater than 0")
        symbol = symbol.upper()
        holding = self.find(symbol)
        if holding is None:
            holding = Holding(symbol=symbol, lots=lots, avg_price=float(avg_price))
            self.holdings.append(holding)
            return holding

        total_lots = holding.lots + lots
        total_cost = holding.cost_basis + lots * LOT_SIZE * avg_price
        holding.avg_price = total_cost / (total_lots * LOT_SIZE)
        holding.lots = total_lots
        return holding

    def update_holding(self, symbol: str, lots: int, avg_price: float) -> bool:
        if lots <= 0:
            raise ValueError("Lots must be greater than 0")
        if avg_price <= 0:
            raise ValueError("Price must be greater than 0")
        holding = self.find(symbol)
        if holding is None:
            return False
        holding.lots = lots
        holding.avg_price = float(avg_price)
        return True

    def remove_holding(self, symbol: str) -> bool:
        holding = self.find(symbol)
        if holding is None:
            return False
        self.holdings.remove(holding)
        return True

    def to_dict(self) -> dict:
        return {"name": self.name, "holdings": [h.to_dict() for h in self.holdings]}


C = TypeVar("C", Watchlist, Portfolio)


class CollectionSet(Generic[C]):
    """
    Ordered, never-empty sequence of collections of one kind plus an active index.

    The active index is always a valid offset; the last collection cannot be
    removed.
    """

    def __init__(self, kind: str, collections: List[C], factory: Callable[[str], C], active: int = 0):
        if not collections:
            collections = [factory(DEFAULT_COLLECTION_NAME)]
        self.kind = kind
        self.collections = collections
        self._factory = factory
        self.active = active if 0 <= active < len(collections) else 0

    def __len__(self) -> int:
        return len(self.collections)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.collections]

    def current(self) -> C:
        return self.collections[self.active]

    def indicator(self) -> str:
        """Header label such as 'Banking (1/3)'."""
        return f"{self.current().name} ({self.active + 1}/{len(self)})"

    def next(self) -> C:
        self.active = (self.active + 1) % len(self.collections)
        return self.current()

    def prev(self) -> C:
        self.active = (self.active - 1) % len(self.collections)
        return self.current()

    def add(self, name: str) -> C:
        collection = self._factory(name)
        self.collections.append(collection)
        self.active = len(self.collections) - 1
        logger.debug("Added %s '%s' at %d", self.kind, name, self.active)
        return collection

    def remove(self) -> C:
        if len(self.collections) <= 1:
            raise InvariantViolation(f"Cannot remove the last {self.kind}")
        removed = self.collections.pop(self.active)
        self.active = min(self.active, len(self.collections) - 1)
        logger.debug("Removed %s '%s'", self.kind, removed.name)
        return removed

    def rename(self, name: str) -> None:
        self.current().name = name

    def to_list(self) -> List[dict]:
        return [c.to_dict() for c in self.collections]
