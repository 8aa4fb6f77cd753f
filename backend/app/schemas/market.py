from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CryptoQuote(BaseModel):
    usd: float
    usd_24h_change: Optional[float] = None


class CryptoPriceResponse(BaseModel):
    success: bool = True
    data: Dict[str, CryptoQuote]


class StockQuote(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    usd: float
    change: float = 0.0
    change_percent: float = Field(0.0, alias="changePercent")
    name: str


class StockPriceResponse(BaseModel):
    success: bool = True
    data: Dict[str, StockQuote]


class SeriesPointResponse(BaseModel):
    date: str
    timestamp: int
    price: float


class ChartResponse(BaseModel):
    success: bool = True
    data: List[SeriesPointResponse]


class SnapshotQuote(BaseModel):
    current_price: float
    change_percent: Optional[float] = None


class SnapshotResponse(BaseModel):
    success: bool = True
    refreshed_at: Optional[datetime] = None
    data: Dict[str, SnapshotQuote]
