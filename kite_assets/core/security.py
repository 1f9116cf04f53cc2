"""
Security Module

Handles password hashing and JWT access tokens.
Uses passlib with bcrypt and python-jose.

The access token replaces a client-held session blob: it is signed,
expires, and names the user and organization it was issued for. Handlers
still reload the user from the database on every request.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import secrets
import string
from jose import JWTError, jwt
from passlib.context import CryptContext
from kite_assets.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# No look-alike characters (0/O, 1/l/I) in generated passwords
TEMPORARY_PASSWORD_ALPHABET = "".join(
    c for c in string.ascii_letters + string.digits if c not in "0O1lI"
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    NOTE: This is intentionally slow. Don't call it in loops.
    """
    return pwd_context.hash(password)


def generate_temporary_password(length: Optional[int] = None) -> str:
    """Random password for administrative resets."""
    length = length or settings.RESET_PASSWORD_LENGTH
    return "".join(secrets.choice(TEMPORARY_PASSWORD_ALPHABET) for _ in range(length))


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Token payload includes:
    - sub: user_id
    - organization_id: checked against the stored user on every request
    - role: informational; authorization always uses the stored role
    - exp / iat
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow()
    })

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def create_user_token(user) -> str:
    """Issue an access token for a User row."""
    return create_access_token({
        "sub": user.id,
        "organization_id": user.organization_id,
        "role": user.role.value,
    })


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns the payload if valid, None if invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None
