import time
from threading import Lock
from typing import Any, Dict, List, Optional

import requests

from app.core.logging_config import get_logger
from app.core.secure_logging import log_api_call

from .exceptions import MarketDataConfigError, MarketDataError, ProviderRejectedRequest

logger = get_logger(__name__)


class AlphaVantageService:
    """
    Alpha Vantage API client for equity quotes and daily closes.

    Free tier: 25 requests/day, 5 requests/minute. Requests are spaced by
    a minimum delay so a batch of quotes doesn't trip the burst limit.
    """

    BASE_URL = "https://www.alphavantage.co/query"

    def __init__(
        self,
        api_key: Optional[str] = None,
        min_delay: float = 0.3,
        timeout: float = 30,
    ):
        self.api_key = api_key
        if not self.api_key:
            raise MarketDataConfigError("Alpha Vantage API key not configured")

        self._min_delay = min_delay
        self._timeout = timeout
        self._last_request_time: Optional[float] = None
        self._lock = Lock()

    def _wait_for_rate_limit(self):
        """Sleep if the previous request was less than min_delay ago."""
        with self._lock:
            now = time.monotonic()
            if self._last_request_time is not None:
                elapsed = now - self._last_request_time
                if elapsed < self._min_delay:
                    time.sleep(self._min_delay - elapsed)
                    now = time.monotonic()
            self._last_request_time = now

    def _make_request(self, params: Dict[str, str]) -> Dict[str, Any]:
        """Make an API request and surface provider-level errors."""
        params = dict(params, apikey=self.api_key)
        function = params.get("function", "")

        self._wait_for_rate_limit()
        start = time.monotonic()
        try:
            response = requests.get(self.BASE_URL, params=params, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            log_api_call(logger, "AlphaVantage", function, False,
                         (time.monotonic() - start) * 1000, e)
            raise MarketDataError(f"Alpha Vantage request failed: {type(e).__name__}") from e

        log_api_call(logger, "AlphaVantage", function, True, (time.monotonic() - start) * 1000)

        # Check for API error messages
        if "Error Message" in data:
            raise ProviderRejectedRequest(f"API error: {data['Error Message']}")
        if "Note" in data:
            raise MarketDataError(f"API note: {data['Note']}")
        if "Information" in data:
            # Usually indicates rate limit or invalid request
            raise MarketDataError(f"API info: {data['Information']}")

        return data

    def get_quote(self, symbol: str) -> Optional[Dict[str, Any]]:
        """
        Get the current quote for a symbol.
        Returns dict with price, change, change_percent and symbol,
        or None if Alpha Vantage has no quote for it.
        """
        data = self._make_request({
            "function": "GLOBAL_QUOTE",
            "symbol": symbol,
        })
        quote = data.get("Global Quote") or {}
        if not quote:
            return None

        try:
            return {
                "symbol": quote.get("01. symbol", symbol),
                "price": float(quote.get("05. price") or 0),
                "change": float(quote.get("09. change") or 0),
                "change_percent": float((quote.get("10. change percent") or "0").rstrip("%")),
            }
        except (TypeError, ValueError) as e:
            logger.warning("Error parsing quote data: %s", type(e).__name__, extra={"symbol": symbol})
            return None

    def get_daily_series(self, symbol: str) -> Optional[List[Dict[str, Any]]]:
        """
        Get daily closing prices (compact output, ~100 trading days).

        Returns:
            List of dicts with 'date' (YYYY-MM-DD) and 'close' keys,
            sorted oldest first, or None if there is no series.
        """
        try:
            data = self._make_request({
                "function": "TIME_SERIES_DAILY",
                "symbol": symbol,
                "outputsize": "compact",
            })
        except ProviderRejectedRequest:
            # Alpha Vantage answers unknown symbols with an error message
            return None

        time_series = data.get("Time Series (Daily)")
        if not time_series:
            return None

        result = []
        for date_str, values in time_series.items():
            try:
                result.append({"date": date_str, "close": float(values["4. close"])})
            except (KeyError, TypeError, ValueError):
                continue

        result.sort(key=lambda x: x["date"])
        return result if result else None
