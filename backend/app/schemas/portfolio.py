from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HoldingRequest(BaseModel):
    """Holding fields as sent by the dashboard (camelCase on the wire)."""
    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(..., min_length=1, max_length=64)
    coin_name: str = Field(..., alias="coinName", min_length=1, max_length=100)
    quantity: float = Field(..., ge=0)
    purchase_price: float = Field(..., alias="purchasePrice", ge=0)
    type: Literal["crypto", "equity", "stock"] = "crypto"
    user_id: Optional[str] = Field(None, alias="userId")  # must match the token when sent

    @field_validator("symbol")
    @classmethod
    def symbol_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("symbol must not be blank")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def lower_case_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class HoldingUpdateRequest(HoldingRequest):
    id: str = Field(..., min_length=1)


class HoldingResponse(BaseModel):
    id: str
    user_id: str
    symbol: str
    coin_name: str
    type: str
    quantity: float
    purchase_price: float
    added_at: datetime


class HoldingListResponse(BaseModel):
    success: bool = True
    data: List[HoldingResponse]


class HoldingCreatedResponse(BaseModel):
    success: bool = True
    message: str = "Added to portfolio"
    id: str


class HoldingValuationResponse(BaseModel):
    id: Optional[str] = None
    symbol: str
    coin_name: Optional[str] = None
    quantity: float
    purchase_price: float
    current_price: float
    change_percent: Optional[float] = None
    invested: float
    current_value: float
    profit: float
    profit_percent: Optional[float] = None  # None when indeterminate
    profit_percent_indeterminate: bool = False
    price_source: Literal["live", "cost_basis"]


class PerformerResponse(BaseModel):
    id: Optional[str] = None
    symbol: str
    coin_name: Optional[str] = None
    profit_percent: float


class PortfolioSummaryResponse(BaseModel):
    total_investment: float
    total_current_value: float
    total_profit: float
    total_profit_percent: float
    best_performer: Optional[PerformerResponse] = None
    worst_performer: Optional[PerformerResponse] = None


class PortfolioValuationData(BaseModel):
    holdings: List[HoldingValuationResponse]
    summary: PortfolioSummaryResponse


class PortfolioValuationResponse(BaseModel):
    success: bool = True
    data: PortfolioValuationData
