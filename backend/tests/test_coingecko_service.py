import pytest
import requests
import responses

from app.services.market_data.coingecko_service import CoinGeckoService
from app.services.market_data.exceptions import MarketDataError, SeriesNotFound

BASE_URL = "https://api.coingecko.test/api/v3"


@pytest.fixture
def service():
    return CoinGeckoService(base_url=BASE_URL, timeout=1)


@responses.activate
def test_get_prices_returns_upstream_shape(service):
    payload = {
        "bitcoin": {"usd": 64000.0, "usd_24h_change": 1.5},
        "ethereum": {"usd": 3100.0, "usd_24h_change": -0.4},
    }
    responses.add(responses.GET, f"{BASE_URL}/simple/price", json=payload, status=200)

    assert service.get_prices(["bitcoin", "ethereum"]) == payload
    url = responses.calls[0].request.url
    assert "ids=bitcoin%2Cethereum" in url
    assert "include_24hr_change=true" in url


@responses.activate
def test_get_prices_timeout_raises(service):
    responses.add(responses.GET, f"{BASE_URL}/simple/price", body=requests.exceptions.Timeout())

    with pytest.raises(MarketDataError):
        service.get_prices(["bitcoin"])


@responses.activate
def test_get_prices_bad_json_raises(service):
    responses.add(responses.GET, f"{BASE_URL}/simple/price", body="<html>oops</html>", status=200)

    with pytest.raises(MarketDataError):
        service.get_prices(["bitcoin"])


@responses.activate
def test_get_market_chart(service):
    payload = {"prices": [[1704067200000, 42000.0], [1704153600000, 43000.0]]}
    responses.add(responses.GET, f"{BASE_URL}/coins/bitcoin/market_chart", json=payload, status=200)

    assert service.get_market_chart("bitcoin", 7) == payload["prices"]
    assert "days=7" in responses.calls[0].request.url


@responses.activate
def test_get_market_chart_unknown_coin(service):
    responses.add(
        responses.GET, f"{BASE_URL}/coins/notacoin/market_chart",
        json={"error": "coin not found"}, status=404,
    )

    with pytest.raises(SeriesNotFound):
        service.get_market_chart("notacoin", 7)


@responses.activate
def test_get_prices_drops_non_dict_entries(service):
    payload = {"bitcoin": {"usd": 64000.0}, "status": "degraded"}
    responses.add(responses.GET, f"{BASE_URL}/simple/price", json=payload, status=200)

    assert service.get_prices(["bitcoin"]) == {"bitcoin": {"usd": 64000.0}}


@responses.activate
def test_get_prices_error_body_with_200_raises(service):
    responses.add(responses.GET, f"{BASE_URL}/simple/price", json={"error": "rate limited"}, status=200)

    with pytest.raises(MarketDataError):
        service.get_prices(["bitcoin"])
