"""Unit tests for filtering and sorting collection views."""

import pytest

from idxwatch.cache import QuoteCache
from idxwatch.domain.collections import Portfolio, Watchlist
from idxwatch.domain.models import Holding, Quote
from idxwatch.providers.symbols import COMPOSITE_INDEX
from idxwatch.services.view_pipeline import (
    PORTFOLIO_COLUMNS,
    PORTFOLIO_PIPELINE,
    WATCHLIST_COLUMNS,
    WATCHLIST_PIPELINE,
    ColumnKind,
    SortDirection,
    ViewState,
    sort_positions,
)

SYMBOL = 0
PRICE = 2


def make_quote(symbol, price, change_pct=0.0, volume=0):
    return Quote(
        symbol=symbol, short_name=symbol, price=price,
        change=0.0, change_percent=change_pct, volume=volume,
    )


def symbols_of(watchlist, view):
    return WATCHLIST_PIPELINE.keys(watchlist, view)


class TestWatchlistView:
    """Search and sort over a watchlist."""

    def setup_method(self):
        self.watchlist = Watchlist("W", ["AAA", "BBCA", "BBRI", "CCC"])
        self.cache = QuoteCache()

    def test_no_search_no_sort_is_identity(self):
        view = WATCHLIST_PIPELINE.compute(self.watchlist, ViewState(), self.cache)
        assert view == [0, 1, 2, 3]

    def test_search_preserves_relative_order(self):
        state = ViewState(search_term="BB")
        view = WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache)
        assert view == [1, 2]
        assert symbols_of(self.watchlist, view) == ["BBCA", "BBRI"]

    def test_search_then_sort_descending_by_symbol(self):
        state = ViewState(search_term="BB", sort_column=SYMBOL, direction=SortDirection.DESCENDING)
        view = WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache)
        assert symbols_of(self.watchlist, view) == ["BBRI", "BBCA"]

    def test_search_is_case_insensitive(self):
        state = ViewState(search_term="bb")
        assert WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache) == [1, 2]

    def test_no_match_is_empty(self):
        state = ViewState(search_term="ZZZ")
        assert WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache) == []

    def test_composite_matched_by_alias(self):
        watchlist = Watchlist("W", ["BBCA", COMPOSITE_INDEX])
        state = ViewState(search_term="ihsg")
        assert WATCHLIST_PIPELINE.compute(watchlist, state, self.cache) == [1]

    def test_numeric_sort(self):
        self.cache.update({
            "AAA": make_quote("AAA", 500),
            "BBCA": make_quote("BBCA", 9000),
            "BBRI": make_quote("BBRI", 4500),
            "CCC": make_quote("CCC", 50),
        })
        state = ViewState(sort_column=PRICE)
        view = WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache)
        assert symbols_of(self.watchlist, view) == ["CCC", "AAA", "BBRI", "BBCA"]

        state.toggle_direction()
        view = WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache)
        assert symbols_of(self.watchlist, view) == ["BBCA", "BBRI", "AAA", "CCC"]

    @pytest.mark.parametrize("direction", list(SortDirection))
    def test_missing_quotes_sort_last(self, direction):
        self.cache.update({"BBCA": make_quote("BBCA", 9000), "CCC": make_quote("CCC", 50)})
        state = ViewState(sort_column=PRICE, direction=direction)
        view = WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache)
        assert symbols_of(self.watchlist, view)[2:] == ["AAA", "BBRI"]

    def test_view_is_a_pure_projection(self):
        state = ViewState(search_term="BB", sort_column=SYMBOL, direction=SortDirection.DESCENDING)
        WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache)
        assert self.watchlist.symbols == ["AAA", "BBCA", "BBRI", "CCC"]

    def test_out_of_range_sort_column_ignored(self):
        state = ViewState(sort_column=99)
        assert WATCHLIST_PIPELINE.compute(self.watchlist, state, self.cache) == [0, 1, 2, 3]


class TestSortPositions:
    @pytest.mark.parametrize("direction", list(SortDirection))
    def test_stable_for_equal_keys(self, direction):
        keyed = [(0, 5.0), (1, 3.0), (2, 5.0), (3, 3.0)]
        result = sort_positions(keyed, ColumnKind.NUMERIC, direction)
        if direction == SortDirection.ASCENDING:
            assert result == [1, 3, 0, 2]
        else:
            assert result == [0, 2, 1, 3]

    def test_text_sort(self):
        keyed = [(0, "TLKM"), (1, "ASII"), (2, "BBCA")]
        assert sort_positions(keyed, ColumnKind.TEXT, SortDirection.ASCENDING) == [1, 2, 0]


class TestViewState:
    def test_cycle_sort_column(self):
        state = ViewState()
        seen = []
        for _ in range(len(WATCHLIST_COLUMNS) + 1):
            state.cycle_sort_column(len(WATCHLIST_COLUMNS))
            seen.append(state.sort_column)
        assert seen == list(range(len(WATCHLIST_COLUMNS))) + [None]

    def test_toggle_direction(self):
        state = ViewState()
        state.toggle_direction()
        assert state.direction == SortDirection.DESCENDING
        assert state.direction.indicator == "▼"


class TestPortfolioView:
    def setup_method(self):
        self.portfolio = Portfolio("P", [
            Holding("BBCA", 10, 9000),
            Holding("TLKM", 50, 4000),
            Holding("ASII", 20, 5000),
        ])
        self.cache = QuoteCache()
        self.cache.update({
            "BBCA": make_quote("BBCA", 9900),
            "TLKM": make_quote("TLKM", 3000),
        })

    def column(self, title):
        return [c.title for c in PORTFOLIO_COLUMNS].index(title)

    def test_sort_by_lots(self):
        state = ViewState(sort_column=self.column("Lots"), direction=SortDirection.DESCENDING)
        view = PORTFOLIO_PIPELINE.compute(self.portfolio, state, self.cache)
        assert PORTFOLIO_PIPELINE.keys(self.portfolio, view) == ["TLKM", "ASII", "BBCA"]

    def test_sort_by_pl_puts_unquoted_last(self):
        state = ViewState(sort_column=self.column("P&L %"), direction=SortDirection.DESCENDING)
        view = PORTFOLIO_PIPELINE.compute(self.portfolio, state, self.cache)
        assert PORTFOLIO_PIPELINE.keys(self.portfolio, view) == ["BBCA", "TLKM", "ASII"]

    def test_search_by_symbol(self):
        state = ViewState(search_term="tl")
        assert PORTFOLIO_PIPELINE.compute(self.portfolio, state, self.cache) == [1]
