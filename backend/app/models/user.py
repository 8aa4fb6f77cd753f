from pynamodb.models import Model
from pynamodb.attributes import UnicodeAttribute, UTCDateTimeAttribute
from datetime import datetime, timezone

from app.core.config import settings


class User(Model):
    class Meta:
        table_name = settings.USERS_TABLE
        region = settings.AWS_REGION
        host = settings.DYNAMODB_ENDPOINT

    email = UnicodeAttribute(hash_key=True)  # lower-cased
    user_id = UnicodeAttribute()
    name = UnicodeAttribute()
    password_hash = UnicodeAttribute()
    created_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<User(user_id='{self.user_id}', email='{self.email}')>"
