from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from app.core.logging_config import get_logger
from app.schemas.common import ErrorResponse
from app.schemas.market import ChartResponse, CryptoPriceResponse, CryptoQuote, SeriesPointResponse
from app.services.market_data.exceptions import MarketDataError, SeriesNotFound
from app.services.market_data.price_service import fetch_crypto_quotes, fetch_series, parse_symbols

logger = get_logger(__name__)

DEFAULT_IDS = "bitcoin,ethereum"

router = APIRouter(
    prefix="/crypto",
    tags=["Crypto"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)


@router.get("/price", response_model=CryptoPriceResponse)
def get_crypto_prices(ids: Optional[str] = Query(None, description="Comma-separated CoinGecko ids")):
    """
    Current USD prices and 24h change.

    Always answers with data: when CoinGecko fails, a fixed fallback
    snapshot is served instead of an error.
    """
    quotes = fetch_crypto_quotes(parse_symbols(ids, DEFAULT_IDS))

    data = {}
    for coin_id, values in quotes.items():
        if not isinstance(values, dict) or values.get("usd") is None:
            continue
        data[coin_id] = CryptoQuote(usd=values["usd"], usd_24h_change=values.get("usd_24h_change"))
    return CryptoPriceResponse(data=data)


@router.get("/chart", response_model=ChartResponse, responses={404: {"model": ErrorResponse}})
def get_crypto_chart(
    coin_id: str = Query("bitcoin", alias="id", min_length=1, max_length=64),
    days: int = Query(7, description="7, 30 or 90"),
):
    try:
        points = fetch_series(coin_id, "crypto", days)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SeriesNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No chart data for {coin_id}")
    except MarketDataError as e:
        logger.error("Crypto chart fetch failed: %s", e, extra={"coin_id": coin_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while fetching chart data",
        )

    return ChartResponse(data=[SeriesPointResponse(**vars(p)) for p in points])
