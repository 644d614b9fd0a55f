"""Password hashing and access tokens for floor staff."""

import logging
from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from shopfloor.config import get_settings
from shopfloor.db.models import UserRole

logger = logging.getLogger(__name__)
settings = get_settings()

ACCESS_TOKEN_TYPE = "access"


class TokenData(BaseModel):
    """Claims carried by an access token."""

    user_id: str
    email: str
    role: UserRole


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in the users table
        logger.warning("Stored password hash is not a bcrypt hash")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def create_access_token(
    user_id: str,
    email: str,
    role: UserRole | str,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed access token for a floor user.

    Args:
        user_id: User's UUID, stored as ``sub``.
        email: Login email.
        role: Role at issue time. Permissions are still checked against the
            database on every request.
        expires_delta: Lifetime override, defaults to
            ``ACCESS_TOKEN_EXPIRE_MINUTES``.

    Returns:
        str: Encoded JWT.
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": user_id,
        "email": email,
        "role": UserRole(role).value,
        "exp": datetime.now(UTC) + lifetime,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenData | None:
    """Validate a token and return its claims, or None if it is unusable."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    if claims.get("type") != ACCESS_TOKEN_TYPE or not claims.get("sub"):
        return None

    try:
        return TokenData(
            user_id=claims["sub"],
            email=claims.get("email", ""),
            role=claims.get("role", ""),
        )
    except ValidationError:
        return None
