"""
User Schemas

Request/response models for user operations.
Responses never include the password hash.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from kite_assets.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema with common fields."""
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr


class UserCreate(UserBase):
    """Schema for an Admin creating a user in their organization."""
    password: str = Field(..., min_length=8, max_length=72)
    role: UserRole = UserRole.STAFF
    department_name: str = Field(..., min_length=1, max_length=255)


class UserUpdate(BaseModel):
    """Schema for an Admin updating a user. All fields optional."""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    role: Optional[UserRole] = None
    department_name: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=8, max_length=72)


class ProfileUpdate(BaseModel):
    """Schema for users editing their own profile."""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    password: Optional[str] = Field(None, min_length=8, max_length=72)


class UserResponse(UserBase):
    """User response schema (excludes sensitive data)."""
    id: str
    organization_id: str
    role: UserRole
    department_name: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True  # Allows creating from ORM models


class UserListResponse(BaseModel):
    """Paginated list of users."""
    users: list[UserResponse]
    total: int
    page: int
    page_size: int


class PasswordResetResponse(BaseModel):
    """Result of a platform password reset. The password is shown once."""
    user_id: str
    email: EmailStr
    temporary_password: str
