"""
Authentication Schemas

Request/response models for registration, login and token refresh.
"""
from pydantic import BaseModel, EmailStr, Field
from kite_assets.schemas.user import UserResponse


class Token(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    """Login request body. Emails are unique platform-wide."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(Token):
    """Token plus the user it was issued for."""
    user: UserResponse


class RegisterRequest(BaseModel):
    """Create an organization together with its first user."""
    org_name: str = Field(..., min_length=2, max_length=255)
    user_name: str = Field(..., min_length=2, max_length=255)
    user_email: EmailStr
    user_password: str = Field(..., min_length=8, max_length=72)

    class Config:
        json_schema_extra = {
            "example": {
                "org_name": "Acme Corp",
                "user_name": "Ada Admin",
                "user_email": "ada@acme.example",
                "user_password": "securepassword123"
            }
        }
