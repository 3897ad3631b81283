"""Domain models: quotes, holdings and named collections."""

from .collections import CollectionSet, Portfolio, Watchlist
from .models import LOT_SIZE, ChartData, Holding, Quote

__all__ = [
    "LOT_SIZE",
    "ChartData",
    "CollectionSet",
    "Holding",
    "Portfolio",
    "Quote",
    "Watchlist",
]
