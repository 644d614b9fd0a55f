"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from shopfloor.db.models import UserRole


class UserLogin(BaseModel):
    """Schema for login credentials."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    """Schema for an issued access token."""

    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Schema for the current user."""

    id: str
    email: str
    full_name: str
    employee_code: str | None = None
    role: UserRole

    model_config = ConfigDict(from_attributes=True)
