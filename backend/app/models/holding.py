from pynamodb.models import Model
from pynamodb.attributes import (
    UnicodeAttribute,
    NumberAttribute,
    UTCDateTimeAttribute,
)
from datetime import datetime, timezone

from app.core.config import settings


HOLDING_TYPES = ("crypto", "equity")


class Holding(Model):
    """
    One tracked instrument per user.
    Keyed by owner so every read and write is scoped to a single user.
    """
    class Meta:
        table_name = settings.HOLDINGS_TABLE
        region = settings.AWS_REGION
        host = settings.DYNAMODB_ENDPOINT

    user_id = UnicodeAttribute(hash_key=True)
    holding_id = UnicodeAttribute(range_key=True)

    symbol = UnicodeAttribute()  # canonical lower case, join key into price lookups
    coin_name = UnicodeAttribute()
    type = UnicodeAttribute(default="crypto")  # crypto / equity
    quantity = NumberAttribute()
    purchase_price = NumberAttribute()
    added_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Holding(id='{self.holding_id}', symbol='{self.symbol}', quantity={self.quantity})>"
