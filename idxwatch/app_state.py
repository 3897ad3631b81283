"""Application state shared by the rendering layer and the background refresher."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .alerts.rules import AlertEvent, evaluate_alerts
from .cache import QuoteCache
from .config import Config
from .domain.models import ChartData, Holding, Quote
from .errors import InvariantViolation, ProviderError
from .providers.symbols import COMPOSITE_INDEX, normalize_symbol
from .providers.yahoo import QuoteClient, build_http_client
from .services.refresh import PeriodicRefresher
from .services.selection import SelectionTracker
from .services.view_pipeline import PORTFOLIO_PIPELINE, WATCHLIST_PIPELINE, ViewPipeline, ViewState
from .storage.config_repo import PORTFOLIO, WATCHLIST, AppConfig, ConfigRepo

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    WATCHLIST = WATCHLIST
    PORTFOLIO = PORTFOLIO


@dataclass
class PortfolioSummary:
    total_value: float = 0.0
    total_cost: float = 0.0
    total_pl: float = 0.0
    total_pl_pct: float = 0.0
    # (symbol, value, pct of total), value descending
    allocation: List[Tuple[str, float, float]] = field(default_factory=list)


class WatchApp:
    """
    Single mutator of the persisted collections.

    The background refresher only reads collections; every mutation goes
    through this object, is persisted immediately and re-anchors the
    selection of the affected view.
    """

    def __init__(
        self,
        settings: Config,
        repo: ConfigRepo,
        client: QuoteClient,
        config: Optional[AppConfig] = None,
        cache: Optional[QuoteCache] = None,
    ):
        self.settings = settings
        self.repo = repo
        self.client = client
        self.config = config if config is not None else repo.load()
        self.cache = cache if cache is not None else QuoteCache()
        self.view_mode = ViewMode.WATCHLIST
        self.status_message: Optional[str] = None
        self.alert_events: List[AlertEvent] = []
        self.listeners: List[Callable[["WatchApp"], None]] = []
        self.views: Dict[ViewMode, ViewState] = {mode: ViewState() for mode in ViewMode}
        self.selections: Dict[ViewMode, SelectionTracker] = {mode: SelectionTracker() for mode in ViewMode}
        self.pipelines: Dict[ViewMode, ViewPipeline] = {
            ViewMode.WATCHLIST: WATCHLIST_PIPELINE,
            ViewMode.PORTFOLIO: PORTFOLIO_PIPELINE,
        }
        interval = settings.refresh_interval_secs or self.config.refresh_interval_secs
        self.quote_refresher = PeriodicRefresher("quotes", self.refresh, interval)

    @classmethod
    def create(cls, settings: Config) -> "WatchApp":
        http_client = build_http_client(settings.http_timeout, settings.user_agent)
        client = QuoteClient(
            http_client,
            max_retries=settings.max_retries,
            retry_backoff_factor=settings.retry_backoff_factor,
        )
        return cls(settings, ConfigRepo(settings.config_path), client)

    async def aclose(self) -> None:
        await self.quote_refresher.stop()
        await self.client.aclose()

    # -------------------------
    # quotes
    # -------------------------
    def refresh_symbols(self) -> List[str]:
        """Symbols of the active collection in the current view, plus the composite index."""
        collection = self.collection()
        return self.client.request_symbols(collection.symbols)

    async def refresh(self) -> None:
        """One refresh cycle. Provider errors leave the cache untouched and are re-raised."""
        symbols = self.refresh_symbols()
        try:
            results = await self.client.fetch(symbols)
        except ProviderError as exc:
            self.status_message = f"Error: {exc}"
            raise
        self.cache.update(results)
        self.status_message = None

        self.alert_events = evaluate_alerts(self.config.alerts, self.cache)
        if self.alert_events:
            self._persist()
        for mode in ViewMode:
            self._recompute(mode)
        for listener in self.listeners:
            listener(self)

    def composite_quote(self) -> Optional[Quote]:
        return self.cache.get(COMPOSITE_INDEX)

    async def load_chart(self, symbol: str) -> Optional[ChartData]:
        try:
            return await self.client.fetch_chart(symbol)
        except ProviderError as exc:
            logger.warning("Chart unavailable for %s: %s", symbol, exc)
            self.status_message = f"Chart error: {exc}"
            return None

    # -------------------------
    # views and selection
    # -------------------------
    def _mode(self, mode: Optional[ViewMode]) -> ViewMode:
        return self.view_mode if mode is None else ViewMode(mode)

    def collection(self, mode: Optional[ViewMode] = None) -> Any:
        return self.config.collections(self._mode(mode).value).current()

    def _recompute(self, mode: ViewMode) -> Tuple[List[int], List[str]]:
        pipeline = self.pipelines[mode]
        collection = self.collection(mode)
        view = pipeline.compute(collection, self.views[mode], self.cache)
        keys = pipeline.keys(collection, view)
        self.selections[mode].reconcile(keys)
        return view, keys

    def view(self, mode: Optional[ViewMode] = None) -> List[int]:
        return self._recompute(self._mode(mode))[0]

    def rows(self, mode: Optional[ViewMode] = None) -> List[Tuple[Any, Optional[Quote]]]:
        """(item, quote) pairs in display order."""
        mode = self._mode(mode)
        view, keys = self._recompute(mode)
        items = self.pipelines[mode].items_of(self.collection(mode))
        return [(items[pos], self.cache.get(key)) for pos, key in zip(view, keys)]

    def cursor(self, mode: Optional[ViewMode] = None) -> Optional[int]:
        mode = self._mode(mode)
        self._recompute(mode)
        return self.selections[mode].cursor

    def selected_position(self, mode: Optional[ViewMode] = None) -> Optional[int]:
        """Position of the selected item in the unfiltered active collection."""
        mode = self._mode(mode)
        view, _ = self._recompute(mode)
        cursor = self.selections[mode].cursor
        return view[cursor] if cursor is not None else None

    def selected_symbol(self, mode: Optional[ViewMode] = None) -> Optional[str]:
        mode = self._mode(mode)
        self._recompute(mode)
        return self.selections[mode].selected_key()

    def move_up(self) -> None:
        _, keys = self._recompute(self.view_mode)
        self.selections[self.view_mode].move_up(keys)

    def move_down(self) -> None:
        _, keys = self._recompute(self.view_mode)
        self.selections[self.view_mode].move_down(keys)

    def set_search(self, term: str) -> None:
        self.views[self.view_mode].search_term = term.strip()
        self._recompute(self.view_mode)

    def clear_search(self) -> None:
        self.views[self.view_mode].clear_search()
        self._recompute(self.view_mode)

    def cycle_sort_column(self) -> None:
        state = self.views[self.view_mode]
        state.cycle_sort_column(len(self.pipelines[self.view_mode].columns))
        self._recompute(self.view_mode)

    def toggle_sort_direction(self) -> None:
        self.views[self.view_mode].toggle_direction()
        self._recompute(self.view_mode)

    def toggle_view(self) -> None:
        self.view_mode = ViewMode.PORTFOLIO if self.view_mode == ViewMode.WATCHLIST else ViewMode.WATCHLIST
        self._recompute(self.view_mode)
        self.quote_refresher.request_refresh()

    # -------------------------
    # collections
    # -------------------------
    def collection_indicator(self) -> str:
        return self.config.collections(self.view_mode.value).indicator()

    def _switched(self) -> None:
        """Active collection changed: new search scope, cursor back to the top."""
        self.views[self.view_mode].clear_search()
        _, keys = self._recompute(self.view_mode)
        self.selections[self.view_mode].reset(keys)
        self.quote_refresher.request_refresh()

    def next_collection(self) -> None:
        self.config.collections(self.view_mode.value).next()
        self._persist()
        self._switched()

    def prev_collection(self) -> None:
        self.config.collections(self.view_mode.value).prev()
        self._persist()
        self._switched()

    def add_collection(self, name: str) -> bool:
        name = name.strip()
        if not name:
            self.status_message = "Name cannot be empty"
            return False
        self.config.collections(self.view_mode.value).add(name)
        self._persist()
        self._switched()
        self.status_message = f"Created {self.view_mode.value} '{name}'"
        return True

    def remove_collection(self) -> bool:
        collections = self.config.collections(self.view_mode.value)
        try:
            removed = collections.remove()
        except InvariantViolation as exc:
            self.status_message = str(exc)
            return False
        self._persist()
        self._switched()
        self.status_message = f"Removed {self.view_mode.value} '{removed.name}'"
        return True

    def rename_collection(self, name: str) -> bool:
        name = name.strip()
        if not name:
            self.status_message = "Name cannot be empty"
            return False
        collections = self.config.collections(self.view_mode.value)
        old_name = collections.current().name
        collections.rename(name)
        self._persist()
        self.status_message = f"Renamed '{old_name}' to '{name}'"
        return True

    # -------------------------
    # members
    # -------------------------
    def add_symbol(self, raw: str) -> bool:
        symbol = normalize_symbol(raw)
        if not symbol:
            self.status_message = "Symbol cannot be empty"
            return False
        if not self.config.watchlists.current().add_symbol(symbol):
            self.status_message = f"{symbol} is already in the watchlist"
            return False
        self.cache.invalidate(symbol)
        self._persist()
        self._recompute(ViewMode.WATCHLIST)
        self.status_message = f"Added {symbol}"
        self.quote_refresher.request_refresh()
        return True

    def add_holding(self, raw_symbol: str, lots: int, avg_price: float) -> bool:
        symbol = normalize_symbol(raw_symbol)
        if not symbol:
            self.status_message = "Symbol cannot be empty"
            return False
        portfolio = self.config.portfolios.current()
        is_new = portfolio.find(symbol) is None
        try:
            portfolio.add_holding(symbol, lots, avg_price)
        except ValueError as exc:
            self.status_message = str(exc)
            return False
        if is_new:
            self.cache.invalidate(symbol)
        self._persist()
        self._recompute(ViewMode.PORTFOLIO)
        self.status_message = f"Added {lots} lots of {symbol} @ {avg_price:g}"
        self.quote_refresher.request_refresh()
        return True

    def selected_holding(self) -> Optional[Holding]:
        symbol = self.selected_symbol(ViewMode.PORTFOLIO)
        return self.config.portfolios.current().find(symbol) if symbol else None

    def update_selected_holding(self, lots: int, avg_price: float) -> bool:
        symbol = self.selected_symbol(ViewMode.PORTFOLIO)
        if symbol is None:
            self.status_message = "No holding selected"
            return False
        try:
            self.config.portfolios.current().update_holding(symbol, lots, avg_price)
        except ValueError as exc:
            self.status_message = str(exc)
            return False
        self._persist()
        self._recompute(ViewMode.PORTFOLIO)
        self.status_message = f"Updated {symbol} → {lots} lots @ {avg_price:g}"
        return True

    def remove_selected(self) -> Optional[str]:
        """Remove the selected item of the current view; returns its symbol."""
        mode = self.view_mode
        symbol = self.selected_symbol(mode)
        if symbol is None:
            self.status_message = "Nothing selected"
            return None
        if mode == ViewMode.WATCHLIST:
            self.config.watchlists.current().remove_symbol(symbol)
        else:
            self.config.portfolios.current().remove_holding(symbol)
        self._persist()
        self._recompute(mode)
        self.status_message = f"Removed {symbol}"
        return symbol

    def portfolio_summary(self) -> PortfolioSummary:
        """
        Totals over holdings that have a quote. Holdings without a quote show
        in the allocation with zero value but are left out of the totals.
        """
        summary = PortfolioSummary()
        values: List[Tuple[str, float]] = []
        for holding in self.config.portfolios.current().holdings:
            quote = self.cache.get(holding.symbol)
            if quote is None:
                values.append((holding.symbol, 0.0))
                continue
            value = holding.value(quote.price)
            values.append((holding.symbol, value))
            summary.total_value += value
            summary.total_cost += holding.cost_basis

        summary.total_pl = summary.total_value - summary.total_cost
        if summary.total_cost > 0:
            summary.total_pl_pct = summary.total_pl / summary.total_cost * 100
        values.sort(key=lambda pair: pair[1], reverse=True)
        total = sum(v for _, v in values)
        summary.allocation = [(s, v, v / total * 100 if total > 0 else 0.0) for s, v in values]
        return summary

    def _persist(self) -> None:
        self.repo.save(self.config)
