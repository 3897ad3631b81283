"""JSON-file persistence of collections, settings and alerts, with legacy migration."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ..alerts.rules import Alert
from ..domain.collections import DEFAULT_COLLECTION_NAME, CollectionSet, Portfolio, Watchlist
from ..domain.models import Holding
from ..errors import MigrationError
from ..providers.symbols import normalize_symbol

logger = logging.getLogger(__name__)

WATCHLIST = "watchlist"
PORTFOLIO = "portfolio"

DEFAULT_REFRESH_INTERVAL_SECS = 1
DEFAULT_NEWS_SOURCES = [
    "https://www.cnbcindonesia.com/market/rss",
    "https://www.cnbcindonesia.com/news/rss",
    "https://www.idxchannel.com/rss",
    "https://rss.tempo.co/bisnis",
]
DEAD_NEWS_SOURCES = {"https://www.kontan.co.id/rss/investasi"}


def default_watchlists() -> List[Watchlist]:
    return [
        Watchlist("Banking", ["BBCA", "BBRI", "BMRI", "BBNI"]),
        Watchlist("Tech", ["TLKM", "GOTO", "BUKA"]),
        Watchlist("Mining", ["ADRO", "ANTM", "INCO", "PTBA"]),
    ]


def watchlist_set(collections: List[Watchlist], active: int = 0) -> CollectionSet:
    return CollectionSet(WATCHLIST, collections, lambda name: Watchlist(name), active)


def portfolio_set(collections: List[Portfolio], active: int = 0) -> CollectionSet:
    return CollectionSet(PORTFOLIO, collections, lambda name: Portfolio(name), active)


@dataclass
class AppConfig:
    """Persisted user state: both collection sets plus ancillary settings."""
    watchlists: CollectionSet = field(default_factory=lambda: watchlist_set(default_watchlists()))
    portfolios: CollectionSet = field(default_factory=lambda: portfolio_set([]))
    refresh_interval_secs: int = DEFAULT_REFRESH_INTERVAL_SECS
    news_sources: List[str] = field(default_factory=lambda: list(DEFAULT_NEWS_SOURCES))
    alerts: List[Alert] = field(default_factory=list)

    def collections(self, kind: str) -> CollectionSet:
        if kind == WATCHLIST:
            return self.watchlists
        if kind == PORTFOLIO:
            return self.portfolios
        raise ValueError(f"Unknown collection kind: {kind}")

    # -------------------------
    # alerts
    # -------------------------
    def add_alert(self, alert: Alert) -> None:
        self.alerts.append(alert)

    def remove_alert(self, alert_id: str) -> bool:
        before = len(self.alerts)
        self.alerts = [a for a in self.alerts if a.id != alert_id]
        return len(self.alerts) < before

    def toggle_alert(self, alert_id: str) -> bool:
        for alert in self.alerts:
            if alert.id == alert_id:
                alert.enabled = not alert.enabled
                return True
        return False

    def alerts_for_symbol(self, symbol: str) -> List[Alert]:
        return [a for a in self.alerts if a.symbol == symbol]

    def has_active_alerts(self, symbol: str) -> bool:
        return any(a.enabled for a in self.alerts_for_symbol(symbol))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "watchlists": self.watchlists.to_list(),
            "active_watchlist": self.watchlists.active,
            "portfolios": self.portfolios.to_list(),
            "active_portfolio": self.portfolios.active,
            "refresh_interval_secs": self.refresh_interval_secs,
            "news_sources": list(self.news_sources),
            "alerts": [a.to_dict() for a in self.alerts],
        }


# -------------------------
# parsing
# -------------------------
def _active_index(data: Dict[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MigrationError(f"'{key}' must be an integer, got {value!r}")
    return value


def _symbol_list(value: Any, where: str) -> Tuple[List[str], bool]:
    """Normalized, de-duplicated symbols, and whether that changed the stored list."""
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        raise MigrationError(f"{where} must be a list of symbols")
    symbols = list(dict.fromkeys(s for s in (normalize_symbol(v) for v in value) if s))
    if symbols != value:
        logger.info("Normalized %s: %d -> %d symbols", where, len(value), len(symbols))
    return symbols, symbols != value


def _holding_list(value: Any, where: str) -> List[Holding]:
    if not isinstance(value, list):
        raise MigrationError(f"{where} must be a list of holdings")
    try:
        holdings = [Holding.from_dict(item) for item in value]
    except ValueError as exc:
        raise MigrationError(f"{where}: {exc}") from exc
    seen = set()
    for holding in holdings:
        if holding.symbol in seen:
            raise MigrationError(f"{where}: duplicate holding {holding.symbol}")
        seen.add(holding.symbol)
    return holdings


def _named(item: Any, where: str) -> str:
    if not isinstance(item, dict) or not isinstance(item.get("name"), str):
        raise MigrationError(f"{where} entries must be objects with a name")
    return item["name"]


def _parse_watchlists(data: Dict[str, Any]) -> Tuple[CollectionSet, bool]:
    if "watchlists" in data:
        raw = data["watchlists"]
        if not isinstance(raw, list):
            raise MigrationError("'watchlists' must be a list")
        for legacy_key in ("symbols", "watchlist"):
            if data.get(legacy_key):
                raise MigrationError(f"record has both 'watchlists' and a non-empty legacy '{legacy_key}'")
        dirty = "symbols" in data or "watchlist" in data
        collections = []
        for item in raw:
            name = _named(item, "watchlists")
            symbols, changed = _symbol_list(item.get("symbols", []), f"watchlist '{name}' symbols")
            collections.append(Watchlist(name, symbols))
            dirty = dirty or changed
        if not collections:
            collections = [Watchlist(DEFAULT_COLLECTION_NAME, ["BBCA", "BBRI", "TLKM", "ASII"])]
            dirty = True
        active = _active_index(data, "active_watchlist")
        if not 0 <= active < len(collections):
            active, dirty = 0, True
        return watchlist_set(collections, active), dirty

    for legacy_key in ("symbols", "watchlist"):
        if legacy_key in data:
            symbols, _ = _symbol_list(data[legacy_key], f"legacy '{legacy_key}'")
            logger.info("Migrating flat '%s' list into watchlist '%s'", legacy_key, DEFAULT_COLLECTION_NAME)
            return watchlist_set([Watchlist(DEFAULT_COLLECTION_NAME, symbols)]), True

    return watchlist_set(default_watchlists()), True


def _parse_portfolios(data: Dict[str, Any]) -> Tuple[CollectionSet, bool]:
    if "portfolios" in data:
        raw = data["portfolios"]
        if not isinstance(raw, list):
            raise MigrationError("'portfolios' must be a list")
        legacy = data.get("portfolio")
        if legacy:
            raise MigrationError("record has both 'portfolios' and a non-empty legacy 'portfolio'")
        collections = [
            Portfolio(_named(item, "portfolios"), _holding_list(item.get("holdings", []), "portfolio holdings"))
            for item in raw
        ]
        dirty = "portfolio" in data or not collections
        active = _active_index(data, "active_portfolio")
        if not 0 <= active < max(len(collections), 1):
            active, dirty = 0, True
        return portfolio_set(collections, active), dirty

    if "portfolio" in data:
        holdings = _holding_list(data["portfolio"], "legacy 'portfolio'")
        logger.info(
            "Migrating flat portfolio (%d holdings) into portfolio '%s'",
            len(holdings), DEFAULT_COLLECTION_NAME,
        )
        return portfolio_set([Portfolio(DEFAULT_COLLECTION_NAME, holdings)]), True

    return portfolio_set([]), True


def _parse_news_sources(data: Dict[str, Any]) -> Tuple[List[str], bool]:
    """Drop dead feeds and append any missing defaults."""
    if "news_sources" not in data:
        return list(DEFAULT_NEWS_SOURCES), True
    sources = data["news_sources"]
    if not isinstance(sources, list) or not all(isinstance(s, str) for s in sources):
        raise MigrationError("'news_sources' must be a list of URLs")
    kept = [s for s in sources if s not in DEAD_NEWS_SOURCES]
    changed = len(kept) != len(sources)
    for url in DEFAULT_NEWS_SOURCES:
        if url not in kept:
            kept.append(url)
            changed = True
    return kept, changed


def parse_record(data: Any) -> Tuple[AppConfig, bool]:
    """
    Parse a persisted record, migrating legacy shapes.

    Returns:
        (config, dirty) where dirty means the record must be saved again
        because it was migrated or normalized.

    Raises:
        MigrationError: the record is malformed in either schema
    """
    if not isinstance(data, dict):
        raise MigrationError(f"config root must be an object, got {type(data).__name__}")

    watchlists, wl_dirty = _parse_watchlists(data)
    portfolios, pf_dirty = _parse_portfolios(data)
    news_sources, news_dirty = _parse_news_sources(data)

    interval = data.get("refresh_interval_secs", DEFAULT_REFRESH_INTERVAL_SECS)
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        raise MigrationError(f"'refresh_interval_secs' must be a positive integer, got {interval!r}")

    raw_alerts = data.get("alerts", [])
    if not isinstance(raw_alerts, list):
        raise MigrationError("'alerts' must be a list")
    try:
        alerts = [Alert.from_dict(item) for item in raw_alerts]
    except ValueError as exc:
        raise MigrationError(str(exc)) from exc

    config = AppConfig(
        watchlists=watchlists,
        portfolios=portfolios,
        refresh_interval_secs=interval,
        news_sources=news_sources,
        alerts=alerts,
    )
    return config, wl_dirty or pf_dirty or news_dirty


class ConfigRepo:
    """File-based source of truth for the persisted record."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> AppConfig:
        if not self.path.exists():
            logger.info("No config at %s, writing defaults", self.path)
            config = AppConfig()
            self.save(config)
            return config

        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise MigrationError(f"{self.path} is not valid JSON: {exc}") from exc

        config, dirty = parse_record(data)
        if dirty:
            logger.info("Config at %s migrated, saving current schema", self.path)
            self.save(config)
        return config

    def save(self, config: AppConfig) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(config.to_dict(), fh, ensure_ascii=True, indent=2)
        tmp_path.replace(self.path)
        logger.debug("Config saved to %s", self.path)
