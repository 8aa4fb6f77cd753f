import uuid

from pynamodb.exceptions import DoesNotExist, PutError

from app.core.logging_config import get_logger
from app.core.security import hash_password, verify_password
from app.models.user import User

logger = get_logger(__name__)


class EmailAlreadyExists(Exception):
    pass


class InvalidCredentials(Exception):
    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


def register_user(email: str, name: str, password: str) -> User:
    """Create a user account; the email is the uniqueness key."""
    user = User(
        email=normalize_email(email),
        user_id=uuid.uuid4().hex,
        name=name.strip(),
        password_hash=hash_password(password),
    )

    try:
        # Conditional put so two concurrent registrations can't both win
        user.save(condition=User.email.does_not_exist())
    except PutError as e:
        if e.cause_response_code == "ConditionalCheckFailedException":
            raise EmailAlreadyExists("Email already exists")
        raise

    logger.info("User registered", extra={"user_id": user.user_id})
    return user


def authenticate(email: str, password: str) -> User:
    """Return the user for valid credentials.

    Unknown emails and wrong passwords raise the same error so the response
    does not reveal which accounts exist.
    """
    try:
        user = User.get(normalize_email(email))
    except DoesNotExist:
        raise InvalidCredentials("Invalid email or password")

    if not verify_password(password, user.password_hash):
        logger.info("Failed login attempt", extra={"user_id": user.user_id})
        raise InvalidCredentials("Invalid email or password")

    return user
