import time
from typing import Any, Dict, List, Sequence

import requests

from app.core.logging_config import get_logger
from app.core.secure_logging import log_api_call

from .exceptions import MarketDataError, ProviderRejectedRequest, SeriesNotFound

logger = get_logger(__name__)


class CoinGeckoService:
    """
    CoinGecko public API client (no key required).

    Coins are addressed by CoinGecko id ("bitcoin", "ethereum", ...),
    which is also the symbol used for crypto holdings.
    """

    def __init__(self, base_url: str = "https://api.coingecko.com/api/v3", timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _make_request(self, endpoint: str, params: Dict[str, str]) -> Any:
        url = f"{self.base_url}/{endpoint}"
        start = time.monotonic()
        try:
            response = requests.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            if response.status_code == 404:
                log_api_call(logger, "CoinGecko", endpoint, False, (time.monotonic() - start) * 1000)
                raise ProviderRejectedRequest(f"CoinGecko has no resource at {endpoint}")
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            log_api_call(logger, "CoinGecko", endpoint, False, (time.monotonic() - start) * 1000, e)
            raise MarketDataError(f"CoinGecko request failed: {type(e).__name__}") from e

        log_api_call(logger, "CoinGecko", endpoint, True, (time.monotonic() - start) * 1000)
        return data

    def get_prices(self, ids: Sequence[str]) -> Dict[str, Dict[str, float]]:
        """
        Get USD prices and 24h change for coin ids.

        Returns the upstream shape: {id: {"usd": ..., "usd_24h_change": ...}}.
        Unknown ids are simply absent.
        """
        data = self._make_request("simple/price", {
            "ids": ",".join(ids),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        })
        if not isinstance(data, dict):
            raise MarketDataError("Unexpected CoinGecko price payload")
        prices = {coin_id: values for coin_id, values in data.items() if isinstance(values, dict)}
        if data and not prices:
            # e.g. {"error": "..."} with a 200 status
            raise MarketDataError("CoinGecko returned no price entries")
        return prices

    def get_market_chart(self, coin_id: str, days: int) -> List[List[float]]:
        """
        Get the price history for a coin over the last `days` days.

        Returns a list of [timestamp_ms, price] pairs, oldest first.
        """
        try:
            data = self._make_request(f"coins/{coin_id}/market_chart", {
                "vs_currency": "usd",
                "days": str(days),
            })
        except ProviderRejectedRequest:
            raise SeriesNotFound(f"Unknown coin: {coin_id}")
        prices = data.get("prices") if isinstance(data, dict) else None
        if prices is None:
            raise MarketDataError(f"No market chart for {coin_id}")
        return prices
