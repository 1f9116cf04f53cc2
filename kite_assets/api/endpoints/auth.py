"""
Authentication Endpoints

Registration creates a whole organization; login is by email alone since
emails are unique across the platform. The returned bearer token is what
the client keeps as its session.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kite_assets.database import get_db
from kite_assets.models.user import User
from kite_assets.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, Token
from kite_assets.schemas.user import UserResponse
from kite_assets.core.security import verify_password, create_user_token
from kite_assets.core.exceptions import AuthenticationError
from kite_assets.core.onboarding import create_organization_with_admin, is_platform_admin_email
from kite_assets.api.deps import get_current_user
from kite_assets.utils.logging import log_security_event, get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
def register(
    registration: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new organization and its first user.

    The first user becomes Admin of the new organization, or PlatformAdmin
    when registering with the configured platform admin email.
    """
    _, user = create_organization_with_admin(
        db,
        org_name=registration.org_name,
        user_name=registration.user_name,
        user_email=registration.user_email,
        user_password=registration.user_password,
    )

    return LoginResponse(
        access_token=create_user_token(user),
        user=UserResponse.model_validate(user)
    )


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate by email and password and return a JWT.

    SECURITY: unknown email and wrong password produce the same error.
    """
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user:
        if is_platform_admin_email(credentials.email):
            # First-run setup: the operator has not registered yet
            raise AuthenticationError(
                f"Platform admin account for {credentials.email} does not exist. "
                "Please register it first."
            )
        log_security_event(
            "failed_login",
            {"reason": "user_not_found", "email": credentials.email},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not verify_password(credentials.password, user.hashed_password):
        log_security_event(
            "failed_login",
            {"reason": "invalid_password", "user_id": user.id, "organization_id": user.organization_id},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    logger.info(
        f"Successful login: user={user.id}, organization={user.organization_id}",
        extra={"user_id": user.id, "organization_id": user.organization_id}
    )

    return LoginResponse(
        access_token=create_user_token(user),
        user=UserResponse.model_validate(user)
    )


@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    """Return the user the token belongs to, as currently stored."""
    return current_user


@router.post("/refresh", response_model=Token)
def refresh_token(current_user: User = Depends(get_current_user)):
    """Issue a fresh token reflecting the user's current role and organization."""
    return Token(access_token=create_user_token(current_user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(current_user: User = Depends(get_current_user)):
    """
    Log out.

    Tokens are stateless, so the client discards its token; this endpoint
    exists for the audit trail.
    """
    logger.info(
        f"User logged out: {current_user.id}",
        extra={"user_id": current_user.id, "organization_id": current_user.organization_id}
    )
    return None
