import pytest
from unittest.mock import patch, MagicMock
from types import SimpleNamespace

from app.services.market_data import price_service
from app.services.market_data.exceptions import MarketDataConfigError, MarketDataError, SeriesNotFound
from app.services.market_data.price_service import (
    CRYPTO_FALLBACK_SNAPSHOT,
    build_price_lookup,
    fetch_crypto_prices,
    fetch_crypto_quotes,
    fetch_equity_quotes,
    fetch_portfolio_prices,
    fetch_series,
    parse_symbols,
)
from app.services.valuation_service import PriceQuote


def _av_quote(price, change=1.0, change_percent=0.5):
    return {"symbol": "X", "price": price, "change": change, "change_percent": change_percent}


# --- helpers ---


def test_parse_symbols_uses_default_and_drops_blanks():
    assert parse_symbols(None, "bitcoin,ethereum") == ["bitcoin", "ethereum"]
    assert parse_symbols(" AAPL, ,MSFT ,", "X") == ["AAPL", "MSFT"]


def test_build_price_lookup_lowercases_and_later_wins():
    merged = build_price_lookup(
        {"BTC": PriceQuote(1.0)},
        {"btc": PriceQuote(2.0), "AAPL": PriceQuote(3.0)},
    )
    assert merged == {"btc": PriceQuote(2.0), "aapl": PriceQuote(3.0)}


# --- crypto ---


@patch("app.services.market_data.price_service.get_coingecko_service")
def test_crypto_quotes_pass_through(mock_factory):
    mock_factory.return_value.get_prices.return_value = {"bitcoin": {"usd": 1.0, "usd_24h_change": 0.1}}

    assert fetch_crypto_quotes(["bitcoin"]) == {"bitcoin": {"usd": 1.0, "usd_24h_change": 0.1}}


@patch("app.services.market_data.price_service.get_coingecko_service")
def test_crypto_failure_serves_fallback_snapshot(mock_factory):
    mock_factory.return_value.get_prices.side_effect = MarketDataError("timeout")

    result = fetch_crypto_quotes(["bitcoin"])

    assert result == CRYPTO_FALLBACK_SNAPSHOT
    assert result is not CRYPTO_FALLBACK_SNAPSHOT


@patch("app.services.market_data.price_service.get_coingecko_service")
def test_crypto_prices_lookup_skips_missing_usd(mock_factory):
    mock_factory.return_value.get_prices.return_value = {
        "bitcoin": {"usd": 64000, "usd_24h_change": 2.0},
        "broken": {},
    }

    lookup = fetch_crypto_prices(["bitcoin", "broken"])

    assert lookup == {"bitcoin": PriceQuote(current_price=64000.0, change_percent=2.0)}


def test_crypto_prices_empty_input_makes_no_call():
    with patch("app.services.market_data.price_service.get_coingecko_service") as mock_factory:
        assert fetch_crypto_prices([]) == {}
    mock_factory.assert_not_called()


# --- equities ---


@patch("app.services.market_data.price_service.get_alpha_vantage_service")
def test_equity_failure_on_one_symbol_keeps_the_rest(mock_factory):
    service = MagicMock()
    service.get_quote.side_effect = [
        _av_quote(190.0),
        MarketDataError("rate limited"),
        None,
        _av_quote(410.0),
    ]
    mock_factory.return_value = service

    result = fetch_equity_quotes(["AAPL", "GOOGL", "NOPE", "MSFT"])

    assert list(result) == ["AAPL", "MSFT"]
    assert result["AAPL"] == {"usd": 190.0, "change": 1.0, "changePercent": 0.5, "name": "AAPL"}


@patch("app.services.market_data.price_service.get_alpha_vantage_service")
def test_equity_missing_key_fails_whole_call(mock_factory):
    mock_factory.side_effect = MarketDataConfigError("Alpha Vantage API key not configured")

    with pytest.raises(MarketDataConfigError):
        fetch_equity_quotes(["AAPL"])


# --- combined ---


@patch("app.services.market_data.price_service.fetch_equity_prices")
@patch("app.services.market_data.price_service.fetch_crypto_prices")
def test_portfolio_prices_routes_by_type(mock_crypto, mock_equity):
    mock_crypto.return_value = {"bitcoin": PriceQuote(64000.0)}
    mock_equity.return_value = {"aapl": PriceQuote(190.0)}
    holdings = [
        SimpleNamespace(symbol="bitcoin", type="crypto"),
        SimpleNamespace(symbol="aapl", type="equity"),
        SimpleNamespace(symbol="bitcoin", type="crypto"),
    ]

    lookup = fetch_portfolio_prices(holdings)

    mock_crypto.assert_called_once_with(["bitcoin"])
    mock_equity.assert_called_once_with(["AAPL"])
    assert set(lookup) == {"bitcoin", "aapl"}


@patch("app.services.market_data.price_service.fetch_equity_prices")
@patch("app.services.market_data.price_service.fetch_crypto_prices")
def test_portfolio_prices_degrade_without_equity_key(mock_crypto, mock_equity):
    mock_crypto.return_value = {}
    mock_equity.side_effect = MarketDataConfigError("no key")

    lookup = fetch_portfolio_prices([SimpleNamespace(symbol="aapl", type="equity")])

    assert lookup == {}


# --- series ---


def test_series_rejects_unsupported_range():
    with pytest.raises(ValueError):
        fetch_series("bitcoin", "crypto", 14)


@patch("app.services.market_data.price_service.get_coingecko_service")
def test_crypto_series_points(mock_factory):
    mock_factory.return_value.get_market_chart.return_value = [
        [1704067200000, 42000.0],  # 2024-01-01 UTC
        [1704153600000, 43000.5],
    ]

    points = fetch_series("Bitcoin", "crypto", 7)

    mock_factory.return_value.get_market_chart.assert_called_once_with("bitcoin", 7)
    assert [p.date for p in points] == ["Jan 1", "Jan 2"]
    assert points[0].timestamp == 1704067200000
    assert points[1].price == 43000.5


@patch("app.services.market_data.price_service.get_alpha_vantage_service")
def test_equity_series_keeps_last_range_days(mock_factory):
    closes = [{"date": f"2026-01-{day:02d}", "close": float(day)} for day in range(1, 11)]
    mock_factory.return_value.get_daily_series.return_value = closes

    points = fetch_series("aapl", "equity", 7)

    mock_factory.return_value.get_daily_series.assert_called_once_with("AAPL")
    assert len(points) == 7
    assert points[0].date == "Jan 4"
    assert points[-1].price == 10.0


@patch("app.services.market_data.price_service.get_alpha_vantage_service")
def test_equity_series_unknown_symbol(mock_factory):
    mock_factory.return_value.get_daily_series.return_value = None

    with pytest.raises(SeriesNotFound):
        fetch_series("NOPE", "equity", 30)


def test_series_rejects_unknown_kind():
    with pytest.raises(ValueError):
        fetch_series("gold", "commodity", 7)


def test_crypto_lookup_skips_non_dict_values():
    quotes = {"bitcoin": {"usd": 64000, "usd_24h_change": 2.0}, "error": "rate limited"}

    assert price_service.crypto_quotes_to_lookup(quotes) == {
        "bitcoin": PriceQuote(current_price=64000.0, change_percent=2.0)
    }
