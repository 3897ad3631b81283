"""Domain models for quotes and holdings."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import pandas as pd

# IDX trading unit: 1 lot = 100 shares
LOT_SIZE = 100


def _float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Quote:
    """Latest market snapshot for one symbol (canonical form, no suffix)."""
    symbol: str
    short_name: str
    price: float
    change: float
    change_percent: float
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: int = 0
    prev_close: float = 0.0
    # Company classification
    long_name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    # Fundamentals
    market_cap: Optional[int] = None
    trailing_pe: Optional[float] = None
    dividend_yield: Optional[float] = None
    fifty_two_week_high: Optional[float] = None
    fifty_two_week_low: Optional[float] = None
    # Risk & liquidity
    beta: Optional[float] = None
    average_volume: Optional[int] = None

    @property
    def turnover(self) -> float:
        """Traded value for the session (price x volume)."""
        return self.price * self.volume

    @classmethod
    def from_payload(cls, symbol: str, data: Dict[str, Any]) -> "Quote":
        """Build from one entry of the provider's quoteResponse.result list."""
        return cls(
            symbol=symbol,
            short_name=data.get("shortName") or "N/A",
            price=_float(data.get("regularMarketPrice"), 0.0),
            change=_float(data.get("regularMarketChange"), 0.0),
            change_percent=_float(data.get("regularMarketChangePercent"), 0.0),
            open=_float(data.get("regularMarketOpen"), 0.0),
            high=_float(data.get("regularMarketDayHigh"), 0.0),
            low=_float(data.get("regularMarketDayLow"), 0.0),
            volume=_int(data.get("regularMarketVolume"), 0),
            prev_close=_float(data.get("regularMarketPreviousClose"), 0.0),
            long_name=data.get("longName"),
            sector=data.get("sector"),
            industry=data.get("industry"),
            market_cap=_int(data.get("marketCap")),
            trailing_pe=_float(data.get("trailingPE")),
            dividend_yield=_float(data.get("dividendYield")),
            fifty_two_week_high=_float(data.get("fiftyTwoWeekHigh")),
            fifty_two_week_low=_float(data.get("fiftyTwoWeekLow")),
            beta=_float(data.get("beta")),
            average_volume=_int(data.get("averageVolume")),
        )


@dataclass
class ChartData:
    """Trailing daily closes used for the sparkline."""
    closes: pd.Series
    high: float
    low: float

    @classmethod
    def from_closes(cls, closes: pd.Series) -> Optional["ChartData"]:
        closes = closes.dropna()
        if closes.empty:
            return None
        return cls(closes=closes, high=float(closes.max()), low=float(closes.min()))


@dataclass
class Holding:
    """Portfolio position. Value and P&L are derived from the last price."""
    symbol: str
    lots: int
    avg_price: float

    @property
    def shares(self) -> int:
        return self.lots * LOT_SIZE

    @property
    def cost_basis(self) -> float:
        return self.shares * self.avg_price

    def value(self, price: float) -> float:
        return self.shares * price

    def pl(self, price: float) -> float:
        return self.value(price) - self.cost_basis

    def pl_pct(self, price: float) -> float:
        cost = self.cost_basis
        if cost <= 0:
            return 0.0
        return self.pl(price) / cost * 100

    def to_dict(self) -> Dict[str, Any]:
        return {"symbol": self.symbol, "lots": self.lots, "avg_price": self.avg_price}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Holding":
        """Strict parse; raises ValueError on anything malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"holding must be an object, got {type(data).__name__}")
        symbol = data.get("symbol")
        if not isinstance(symbol, str) or not symbol.strip():
            raise ValueError(f"holding has no symbol: {data!r}")
        lots = data.get("lots")
        if isinstance(lots, bool) or not isinstance(lots, int) or lots < 0:
            raise ValueError(f"invalid lots for {symbol}: {lots!r}")
        avg_price = data.get("avg_price")
        if isinstance(avg_price, bool) or not isinstance(avg_price, (int, float)) or avg_price < 0:
            raise ValueError(f"invalid avg_price for {symbol}: {avg_price!r}")
        return cls(symbol=symbol, lots=lots, avg_price=float(avg_price))
