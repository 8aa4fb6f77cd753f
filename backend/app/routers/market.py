from fastapi import APIRouter, Request

from app.schemas.market import SnapshotQuote, SnapshotResponse

router = APIRouter(
    prefix="/market",
    tags=["Market"],
)


@router.get("/snapshot", response_model=SnapshotResponse)
async def get_market_snapshot(request: Request):
    """Latest watchlist prices kept fresh by the background refresher."""
    refresher = request.app.state.price_refresher
    return SnapshotResponse(
        refreshed_at=refresher.refreshed_at,
        data={
            symbol: SnapshotQuote(current_price=q.current_price, change_percent=q.change_percent)
            for symbol, q in refresher.snapshot.items()
        },
    )
