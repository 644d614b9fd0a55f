"""Authentication API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from shopfloor.auth.schemas import Token, UserLogin, UserResponse
from shopfloor.auth.service import AuthService, get_auth_service
from shopfloor.dependencies import CurrentUser, DbSession

router = APIRouter()


def get_service(db: DbSession) -> AuthService:
    """Get auth service dependency."""
    return get_auth_service(db)


@router.post("/login", response_model=Token)
async def login(
    data: UserLogin,
    service: Annotated[AuthService, Depends(get_service)],
):
    """Log in with email and password.

    Returns:
        Token: Bearer access token.

    Raises:
        HTTPException: If the credentials are invalid.
    """
    token = service.authenticate(data)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


@router.get("/me", response_model=UserResponse)
async def me(current_user: CurrentUser):
    """Return the authenticated user."""
    return current_user
