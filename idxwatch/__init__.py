"""Market data tracking core for IDX watchlists and portfolios."""

__version__ = "0.4.0"
