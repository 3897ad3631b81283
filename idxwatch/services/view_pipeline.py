"""Filtered and sorted projections of a collection's items."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..cache import QuoteCache
from ..domain.collections import Portfolio, Watchlist
from ..domain.models import Holding, Quote
from ..providers.symbols import display_symbol

logger = logging.getLogger(__name__)


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    def toggled(self) -> "SortDirection":
        if self == SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING

    @property
    def indicator(self) -> str:
        return "▲" if self == SortDirection.ASCENDING else "▼"


class ColumnKind(Enum):
    TEXT = "text"
    NUMERIC = "numeric"

    def sort_key(self, value: Any) -> Any:
        if self == ColumnKind.NUMERIC:
            return float(value)
        return str(value)


@dataclass(frozen=True)
class Column:
    """
    A sortable column. `value` returns None when the item has no data for the
    column (typically no quote yet); such items sort last in either direction.
    """
    title: str
    kind: ColumnKind
    value: Callable[[Any, Optional[Quote]], Any]


def _quote_attr(name: str) -> Callable[[Any, Optional[Quote]], Any]:
    return lambda item, quote: getattr(quote, name) if quote is not None else None


def _with_price(metric: Callable[[Holding, float], float]) -> Callable[[Holding, Optional[Quote]], Any]:
    return lambda holding, quote: metric(holding, quote.price) if quote is not None else None


WATCHLIST_COLUMNS: Tuple[Column, ...] = (
    Column("Symbol", ColumnKind.TEXT, lambda symbol, quote: display_symbol(symbol)),
    Column("Name", ColumnKind.TEXT, _quote_attr("short_name")),
    Column("Price", ColumnKind.NUMERIC, _quote_attr("price")),
    Column("Change", ColumnKind.NUMERIC, _quote_attr("change")),
    Column("Change %", ColumnKind.NUMERIC, _quote_attr("change_percent")),
    Column("Open", ColumnKind.NUMERIC, _quote_attr("open")),
    Column("High", ColumnKind.NUMERIC, _quote_attr("high")),
    Column("Low", ColumnKind.NUMERIC, _quote_attr("low")),
    Column("Volume", ColumnKind.NUMERIC, _quote_attr("volume")),
    Column("Value", ColumnKind.NUMERIC, _quote_attr("turnover")),
)

PORTFOLIO_COLUMNS: Tuple[Column, ...] = (
    Column("Symbol", ColumnKind.TEXT, lambda holding, quote: holding.symbol),
    Column("Name", ColumnKind.TEXT, _quote_attr("short_name")),
    Column("Lots", ColumnKind.NUMERIC, lambda holding, quote: holding.lots),
    Column("Avg Price", ColumnKind.NUMERIC, lambda holding, quote: holding.avg_price),
    Column("Last", ColumnKind.NUMERIC, _quote_attr("price")),
    Column("Value", ColumnKind.NUMERIC, _with_price(Holding.value)),
    Column("Cost", ColumnKind.NUMERIC, lambda holding, quote: holding.cost_basis),
    Column("P&L", ColumnKind.NUMERIC, _with_price(Holding.pl)),
    Column("P&L %", ColumnKind.NUMERIC, _with_price(Holding.pl_pct)),
)


@dataclass
class ViewState:
    """Per-kind search and sort choice. Survives refreshes."""
    search_term: str = ""
    sort_column: Optional[int] = None
    direction: SortDirection = SortDirection.ASCENDING

    def cycle_sort_column(self, column_count: int) -> None:
        """None -> 0 -> 1 -> ... -> last -> None."""
        if self.sort_column is None:
            self.sort_column = 0
        elif self.sort_column + 1 >= column_count:
            self.sort_column = None
        else:
            self.sort_column += 1

    def toggle_direction(self) -> None:
        self.direction = self.direction.toggled()

    def clear_search(self) -> None:
        self.search_term = ""


def matches(text: str, search_term: str) -> bool:
    if not search_term:
        return True
    return search_term.upper() in text.upper()


def sort_positions(
    keyed: Sequence[Tuple[int, Any]],
    kind: ColumnKind,
    direction: SortDirection,
) -> List[int]:
    """
    Stable sort of (position, value) pairs.

    Equal values keep their input order in both directions; None values go
    last, also in input order.
    """
    present = [(pos, kind.sort_key(value)) for pos, value in keyed if value is not None]
    missing = [pos for pos, value in keyed if value is None]
    present.sort(key=lambda pair: pair[1], reverse=direction == SortDirection.DESCENDING)
    return [pos for pos, _ in present] + missing


class ViewPipeline:
    """Derives ordered positions into a collection for one collection kind."""

    def __init__(
        self,
        columns: Sequence[Column],
        items_of: Callable[[Any], Sequence[Any]],
        search_text: Callable[[Any], str],
        symbol_of: Callable[[Any], str],
    ):
        self.columns = tuple(columns)
        self.items_of = items_of
        self.search_text = search_text
        self.symbol_of = symbol_of

    def compute(self, collection: Any, state: ViewState, cache: QuoteCache) -> List[int]:
        """Positions into the unfiltered collection, in display order."""
        items = self.items_of(collection)
        positions = [
            pos for pos, item in enumerate(items)
            if matches(self.search_text(item), state.search_term)
        ]
        if state.sort_column is None:
            return positions
        if not 0 <= state.sort_column < len(self.columns):
            logger.warning("Ignoring out-of-range sort column %s", state.sort_column)
            return positions

        column = self.columns[state.sort_column]
        keyed = [
            (pos, column.value(items[pos], cache.get(self.symbol_of(items[pos]))))
            for pos in positions
        ]
        return sort_positions(keyed, column.kind, state.direction)

    def keys(self, collection: Any, view: Sequence[int]) -> List[str]:
        """Item identities (symbols) for each row of a computed view."""
        items = self.items_of(collection)
        return [self.symbol_of(items[pos]) for pos in view]


def _watchlist_items(watchlist: Watchlist) -> Sequence[str]:
    return watchlist.symbols


def _portfolio_items(portfolio: Portfolio) -> Sequence[Holding]:
    return portfolio.holdings


WATCHLIST_PIPELINE = ViewPipeline(
    WATCHLIST_COLUMNS,
    items_of=_watchlist_items,
    search_text=display_symbol,
    symbol_of=lambda symbol: symbol,
)

PORTFOLIO_PIPELINE = ViewPipeline(
    PORTFOLIO_COLUMNS,
    items_of=_portfolio_items,
    search_text=lambda holding: holding.symbol,
    symbol_of=lambda holding: holding.symbol,
)
