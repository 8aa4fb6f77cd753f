from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.dependencies import get_current_user, require_same_user
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.portfolio import (
    HoldingCreatedResponse,
    HoldingListResponse,
    HoldingRequest,
    HoldingResponse,
    HoldingUpdateRequest,
    HoldingValuationResponse,
    PerformerResponse,
    PortfolioSummaryResponse,
    PortfolioValuationData,
    PortfolioValuationResponse,
)
from app.services import holdings_service
from app.services.holdings_service import HoldingFields, HoldingNotFound, HoldingStoreError
from app.services.market_data.price_service import fetch_portfolio_prices
from app.services.valuation_service import Percent, value_portfolio


router = APIRouter(
    prefix="/portfolio",
    tags=["Portfolio"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not found"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)


def _to_fields(request: HoldingRequest) -> HoldingFields:
    return HoldingFields(
        symbol=request.symbol,
        coin_name=request.coin_name,
        quantity=request.quantity,
        purchase_price=request.purchase_price,
        type=request.type,
    )


def _to_response(holding) -> HoldingResponse:
    return HoldingResponse(
        id=holding.holding_id,
        user_id=holding.user_id,
        symbol=holding.symbol,
        coin_name=holding.coin_name,
        type=holding.type,
        quantity=float(holding.quantity),
        purchase_price=float(holding.purchase_price),
        added_at=holding.added_at,
    )


def _store_failure(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An error occurred while {action} portfolio",
    )


@router.get("", response_model=HoldingListResponse)
def get_portfolio(
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user: dict = Depends(get_current_user),
):
    owner = require_same_user(user_id, current_user)

    try:
        holdings = holdings_service.list_holdings(owner)
    except HoldingStoreError:
        raise _store_failure("fetching")

    return HoldingListResponse(data=[_to_response(h) for h in holdings])


@router.post("", response_model=HoldingCreatedResponse)
def add_holding(
    request: HoldingRequest,
    current_user: dict = Depends(get_current_user),
):
    owner = require_same_user(request.user_id, current_user)

    try:
        holding = holdings_service.create_holding(owner, _to_fields(request))
    except HoldingStoreError:
        raise _store_failure("saving")

    return HoldingCreatedResponse(id=holding.holding_id)


@router.put("", response_model=MessageResponse)
def update_holding(
    request: HoldingUpdateRequest,
    current_user: dict = Depends(get_current_user),
):
    owner = require_same_user(request.user_id, current_user)

    try:
        holdings_service.update_holding(owner, request.id, _to_fields(request))
    except HoldingNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Holding not found",
        )
    except HoldingStoreError:
        raise _store_failure("updating")

    return MessageResponse(message="Portfolio updated successfully")


@router.delete("", response_model=MessageResponse)
def delete_holding(
    holding_id: str = Query(..., alias="id", min_length=1),
    current_user: dict = Depends(get_current_user),
):
    try:
        holdings_service.delete_holding(current_user["user_id"], holding_id)
    except HoldingNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Holding not found",
        )
    except HoldingStoreError:
        raise _store_failure("removing from")

    return MessageResponse(message="Removed from portfolio")


@router.get("/summary", response_model=PortfolioValuationResponse)
def get_portfolio_summary(current_user: dict = Depends(get_current_user)):
    """Value every holding against current prices and aggregate the results."""
    try:
        holdings = holdings_service.list_holdings(current_user["user_id"])
    except HoldingStoreError:
        raise _store_failure("fetching")

    prices = fetch_portfolio_prices(holdings)
    valuation = value_portfolio(holdings, prices)

    positions = []
    for v in valuation.holdings:
        determinate = isinstance(v.profit_percent, Percent)
        positions.append(
            HoldingValuationResponse(
                id=v.holding_id,
                symbol=v.symbol,
                coin_name=v.coin_name,
                quantity=v.quantity,
                purchase_price=v.purchase_price,
                current_price=v.current_price,
                change_percent=v.change_percent,
                invested=v.invested,
                current_value=v.current_value,
                profit=v.profit,
                profit_percent=v.profit_percent.value if determinate else None,
                profit_percent_indeterminate=not determinate,
                price_source=v.price_source,
            )
        )

    summary = valuation.summary
    return PortfolioValuationResponse(
        data=PortfolioValuationData(
            holdings=positions,
            summary=PortfolioSummaryResponse(
                total_investment=summary.total_investment,
                total_current_value=summary.total_current_value,
                total_profit=summary.total_profit,
                total_profit_percent=summary.total_profit_percent,
                best_performer=_performer(summary.best_performer),
                worst_performer=_performer(summary.worst_performer),
            ),
        )
    )


def _performer(performer) -> Optional[PerformerResponse]:
    if performer is None:
        return None
    return PerformerResponse(
        id=performer.holding_id,
        symbol=performer.symbol,
        coin_name=performer.coin_name,
        profit_percent=performer.profit_percent,
    )
