"""Mock Yahoo endpoints for httpx.MockTransport."""

import httpx

LANDING_PAGE = '<html><script>window.x = {"CrumbStore":{"crumb":"abc\\u002Fdef"}};</script></html>'


def quote_payload(*items):
    return {"quoteResponse": {"result": list(items), "error": None}}


def quote_item(provider_symbol, price, change_pct=0.0, volume=1000, name=None):
    return {
        "symbol": provider_symbol,
        "shortName": name or provider_symbol,
        "regularMarketPrice": price,
        "regularMarketChange": price * change_pct / 100,
        "regularMarketChangePercent": change_pct,
        "regularMarketOpen": price,
        "regularMarketDayHigh": price,
        "regularMarketDayLow": price,
        "regularMarketVolume": volume,
        "regularMarketPreviousClose": price,
    }


class FakeYahoo:
    """
    Minimal Yahoo Finance stand-in.

    `quote_statuses` is consumed one status per quote request; when empty,
    requests succeed with `quote_items`.
    """

    def __init__(self):
        self.landing_page = LANDING_PAGE
        self.landing_status = 200
        self.crumb_text = "fallback-crumb"
        self.quote_items = []
        self.quote_statuses = []
        self.chart_payload = None
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "finance.yahoo.com":
            return httpx.Response(self.landing_status, text=self.landing_page)
        if request.url.path.endswith("/getcrumb"):
            return httpx.Response(200, text=self.crumb_text)
        if request.url.path.startswith("/v7/finance/quote"):
            status = self.quote_statuses.pop(0) if self.quote_statuses else 200
            if status != 200:
                return httpx.Response(status, json={"finance": {"error": "Unauthorized"}})
            return httpx.Response(200, json=quote_payload(*self.quote_items))
        if request.url.path.startswith("/v8/finance/chart"):
            return httpx.Response(200, json=self.chart_payload)
        return httpx.Response(404)

    def quote_requests(self):
        return [r for r in self.requests if r.url.path.startswith("/v7/finance/quote")]

    def handshakes(self):
        return [r for r in self.requests if r.url.host == "finance.yahoo.com"]


