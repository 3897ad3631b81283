"""Batched Yahoo Finance quote client with transparent crumb renewal."""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx
import pandas as pd

from ..domain.models import ChartData, Quote
from ..errors import AuthError, NetworkError
from .session import PROVIDER_NAME, SessionAuthenticator
from .symbols import COMPOSITE_INDEX, from_provider, to_provider

logger = logging.getLogger(__name__)

YAHOO_QUOTE_URL = "https://query1.finance.yahoo.com/v7/finance/quote"
YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
JSON_HEADERS = {"Accept": "application/json", "Referer": "https://finance.yahoo.com/"}


def build_http_client(timeout: float = 15, user_agent: str = USER_AGENT) -> httpx.AsyncClient:
    """Shared client: one cookie jar for the handshake and every quote request."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": user_agent},
        follow_redirects=True,
        limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
    )


class QuoteClient:
    """
    Fetches quotes for a set of IDX symbols in one batched request.

    The composite index is always part of the batch. A 401 from the quote
    endpoint expires the credential and the request is replayed exactly once.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        authenticator: Optional[SessionAuthenticator] = None,
        max_retries: int = 2,
        retry_backoff_factor: float = 0.5,
    ):
        self.http_client = http_client
        self.authenticator = authenticator or SessionAuthenticator(http_client)
        self.max_retries = max_retries
        self.retry_backoff_factor = retry_backoff_factor

    async def aclose(self) -> None:
        await self.http_client.aclose()

    @staticmethod
    def request_symbols(symbols: Iterable[str]) -> List[str]:
        """User symbols in input order plus the composite index, deduplicated."""
        return list(dict.fromkeys([*symbols, COMPOSITE_INDEX]))

    async def fetch(self, symbols: Iterable[str]) -> Dict[str, Optional[Quote]]:
        """
        Fetch quotes for symbols.

        Returns:
            Mapping of every requested canonical symbol to its Quote, or None
            when the provider did not return it.

        Raises:
            NetworkError: transport failure or unusable response
            AuthError: handshake failed, or the credential was rejected twice
        """
        requested = self.request_symbols(symbols)
        params = {"symbols": ",".join(to_provider(s) for s in requested)}

        crumb = await self.authenticator.ensure_valid()
        response = await self._send(YAHOO_QUOTE_URL, {**params, "crumb": crumb})
        if response.status_code == 401:
            self.authenticator.mark_expired()
            crumb = await self.authenticator.ensure_valid()
            response = await self._send(YAHOO_QUOTE_URL, {**params, "crumb": crumb})
            if response.status_code == 401:
                self.authenticator.mark_expired()
                raise AuthError(PROVIDER_NAME, "credential rejected after re-authentication", 401)

        if not response.is_success:
            raise NetworkError(PROVIDER_NAME, "quote request failed", response.status_code)

        quotes = self._parse_quotes(self._json(response))
        results = {symbol: quotes.get(symbol) for symbol in requested}
        missing = [s for s, q in results.items() if q is None]
        logger.info("Fetched %d/%d quotes", len(requested) - len(missing), len(requested))
        if missing:
            logger.debug("No quote returned for: %s", ", ".join(missing))
        return results

    async def fetch_chart(self, symbol: str, range_: str = "3mo") -> Optional[ChartData]:
        """Daily closes for the sparkline, or None when the provider has none."""
        url = f"{YAHOO_CHART_URL}/{to_provider(symbol)}"
        response = await self._send(url, {"interval": "1d", "range": range_})
        if not response.is_success:
            raise NetworkError(PROVIDER_NAME, f"chart request failed for {symbol}", response.status_code)

        chart = self._json(response).get("chart") or {}
        if chart.get("error"):
            raise NetworkError(PROVIDER_NAME, f"chart error for {symbol}: {chart['error']}")
        results = chart.get("result") or []
        if not results:
            logger.debug("No chart data for %s", symbol)
            return None

        item = results[0]
        quote_blocks = (item.get("indicators") or {}).get("quote") or [{}]
        closes = quote_blocks[0].get("close") or []
        timestamps = item.get("timestamp") or []
        if len(timestamps) == len(closes):
            index = pd.to_datetime(timestamps, unit="s", utc=True)
        else:
            index = None
        series = pd.Series(closes, index=index, dtype="float64", name=symbol)
        return ChartData.from_closes(series)

    async def _send(self, url: str, params: Dict[str, Any]) -> httpx.Response:
        """GET with retry on timeouts, connect errors and 5xx."""
        last_exception: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.http_client.get(url, params=params, headers=JSON_HEADERS)
            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_exception = exc
                if attempt < self.max_retries:
                    backoff = self.retry_backoff_factor * (2 ** attempt)
                    logger.warning(
                        "HTTP error on attempt %d: %s. Retrying in %.2f seconds...",
                        attempt + 1, exc, backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                break
            except httpx.HTTPError as exc:
                raise NetworkError(PROVIDER_NAME, f"request failed: {exc}") from exc

            if response.status_code >= 500 and attempt < self.max_retries:
                backoff = self.retry_backoff_factor * (2 ** attempt)
                logger.warning(
                    "Server error (%d). Retrying in %.2f seconds...",
                    response.status_code, backoff,
                )
                await asyncio.sleep(backoff)
                continue
            return response

        raise NetworkError(
            PROVIDER_NAME, f"request failed after {self.max_retries + 1} attempts: {last_exception}"
        ) from last_exception

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(PROVIDER_NAME, "provider returned non-JSON content", response.status_code) from exc
        if not isinstance(data, dict):
            raise NetworkError(PROVIDER_NAME, "unexpected response shape", response.status_code)
        return data

    @staticmethod
    def _parse_quotes(data: Dict[str, Any]) -> Dict[str, Quote]:
        body = data.get("quoteResponse")
        if not isinstance(body, dict):
            raise NetworkError(PROVIDER_NAME, "response has no quoteResponse")
        if body.get("error"):
            raise NetworkError(PROVIDER_NAME, f"provider error: {body['error']}")

        quotes: Dict[str, Quote] = {}
        for item in body.get("result") or []:
            provider_symbol = item.get("symbol") if isinstance(item, dict) else None
            if not isinstance(provider_symbol, str):
                continue
            symbol = from_provider(provider_symbol)
            quotes[symbol] = Quote.from_payload(symbol, item)
        return quotes
