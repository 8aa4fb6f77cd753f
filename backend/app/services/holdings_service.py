import uuid
from dataclasses import dataclass
from typing import List

from pynamodb.exceptions import DeleteError, DoesNotExist, PynamoDBException

from app.core.logging_config import get_logger
from app.models.holding import Holding, HOLDING_TYPES

logger = get_logger(__name__)

TYPE_ALIASES = {"stock": "equity"}


class HoldingNotFound(Exception):
    """The holding does not exist for this user."""


class HoldingStoreError(Exception):
    """The holdings table could not be read or written."""


@dataclass
class HoldingFields:
    symbol: str
    coin_name: str
    quantity: float
    purchase_price: float
    type: str = "crypto"


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().lower()


def normalize_type(kind: str) -> str:
    kind = (kind or "crypto").strip().lower()
    kind = TYPE_ALIASES.get(kind, kind)
    if kind not in HOLDING_TYPES:
        raise ValueError(f"Invalid holding type: {kind}")
    return kind


def list_holdings(user_id: str) -> List[Holding]:
    """Return the user's holdings, newest first."""
    try:
        holdings = list(Holding.query(user_id))
    except PynamoDBException as e:
        logger.error("Error listing holdings", extra={"user_id": user_id, "error_type": type(e).__name__})
        raise HoldingStoreError("Could not read holdings") from e

    holdings.sort(key=lambda h: h.added_at, reverse=True)
    return holdings


def create_holding(user_id: str, fields: HoldingFields) -> Holding:
    holding = Holding(
        user_id=user_id,
        holding_id=uuid.uuid4().hex,
        symbol=normalize_symbol(fields.symbol),
        coin_name=fields.coin_name,
        type=normalize_type(fields.type),
        quantity=fields.quantity,
        purchase_price=fields.purchase_price,
    )
    try:
        holding.save()
    except PynamoDBException as e:
        logger.error("Error creating holding", extra={"user_id": user_id, "error_type": type(e).__name__})
        raise HoldingStoreError("Could not save holding") from e

    logger.info("Holding created", extra={"user_id": user_id, "holding_id": holding.holding_id})
    return holding


def _get_owned(user_id: str, holding_id: str) -> Holding:
    try:
        return Holding.get(user_id, holding_id)
    except DoesNotExist:
        raise HoldingNotFound(f"Holding {holding_id} not found")
    except PynamoDBException as e:
        logger.error("Error fetching holding", extra={"user_id": user_id, "holding_id": holding_id})
        raise HoldingStoreError("Could not read holding") from e


def update_holding(user_id: str, holding_id: str, fields: HoldingFields) -> Holding:
    """Replace every editable field of an existing holding.

    Concurrent updates are not coordinated; the last save wins.
    """
    holding = _get_owned(user_id, holding_id)

    holding.symbol = normalize_symbol(fields.symbol)
    holding.coin_name = fields.coin_name
    holding.type = normalize_type(fields.type)
    holding.quantity = fields.quantity
    holding.purchase_price = fields.purchase_price

    try:
        holding.save()
    except PynamoDBException as e:
        logger.error("Error updating holding", extra={"user_id": user_id, "holding_id": holding_id})
        raise HoldingStoreError("Could not update holding") from e

    logger.info("Holding updated", extra={"user_id": user_id, "holding_id": holding_id})
    return holding


def delete_holding(user_id: str, holding_id: str) -> None:
    holding = _get_owned(user_id, holding_id)
    try:
        holding.delete()
    except DeleteError as e:
        logger.error("Error deleting holding", extra={"user_id": user_id, "holding_id": holding_id})
        raise HoldingStoreError("Could not delete holding") from e

    logger.info("Holding deleted", extra={"user_id": user_id, "holding_id": holding_id})


def check_connection() -> bool:
    """Probe the holdings table; used by the database health check."""
    try:
        return Holding.exists()
    except PynamoDBException as e:
        logger.error("Holdings table probe failed", extra={"error_type": type(e).__name__})
        raise HoldingStoreError("Database unreachable") from e
