from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from app.core.logging_config import get_logger
from app.schemas.common import ErrorResponse
from app.schemas.market import ChartResponse, SeriesPointResponse, StockPriceResponse, StockQuote
from app.services.market_data.exceptions import MarketDataConfigError, MarketDataError, SeriesNotFound
from app.services.market_data.price_service import fetch_equity_quotes, fetch_series, parse_symbols

logger = get_logger(__name__)

DEFAULT_SYMBOLS = "AAPL,GOOGL,MSFT"

router = APIRouter(
    prefix="/stock",
    tags=["Stocks"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)


def _not_configured() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Stock price service is not configured",
    )


@router.get("/price", response_model=StockPriceResponse)
def get_stock_prices(symbols: Optional[str] = Query(None, description="Comma-separated tickers")):
    """
    Current quotes per ticker. Tickers the provider can't quote are left
    out of the result rather than failing the batch.
    """
    try:
        quotes = fetch_equity_quotes(parse_symbols(symbols, DEFAULT_SYMBOLS))
    except MarketDataConfigError:
        logger.error("Stock price requested but Alpha Vantage is not configured")
        raise _not_configured()

    return StockPriceResponse(data={symbol: StockQuote(**values) for symbol, values in quotes.items()})


@router.get("/chart", response_model=ChartResponse, responses={404: {"model": ErrorResponse}})
def get_stock_chart(
    symbol: str = Query("AAPL", min_length=1, max_length=10, pattern="^[A-Za-z.]{1,10}$"),
    days: int = Query(30, description="7, 30 or 90"),
):
    try:
        points = fetch_series(symbol, "equity", days)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except MarketDataConfigError:
        raise _not_configured()
    except SeriesNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No data for this symbol")
    except MarketDataError as e:
        logger.error("Stock chart fetch failed: %s", e, extra={"symbol": symbol})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while fetching chart data",
        )

    return ChartResponse(data=[SeriesPointResponse(**vars(p)) for p in points])
