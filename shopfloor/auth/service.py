"""Authentication service layer."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from shopfloor.auth.schemas import Token, UserLogin
from shopfloor.auth.utils import create_access_token, verify_password
from shopfloor.db.models import User

logger = logging.getLogger(__name__)


class AuthService:
    """Service class for login operations."""

    def __init__(self, db: Session):
        """Initialize auth service.

        Args:
            db: Database session.
        """
        self.db = db

    def authenticate(self, data: UserLogin) -> Token | None:
        """Check credentials and issue an access token.

        Args:
            data: Login credentials.

        Returns:
            Token | None: Access token, or None if the credentials are wrong
            or the account is disabled.
        """
        user = self.db.query(User).filter(User.email == data.email).first()
        if user is None or not verify_password(data.password, user.password_hash):
            logger.info(f"Failed login attempt for {data.email}")
            return None
        if not user.is_active:
            return None

        user.last_login = datetime.now()
        self.db.commit()

        return Token(access_token=create_access_token(user.id, user.email, user.role.value))


def get_auth_service(db: Session) -> AuthService:
    """Factory function for AuthService."""
    return AuthService(db)
