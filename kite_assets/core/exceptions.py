"""
Custom Exceptions

Centralized exception definitions for better error handling.
FastAPI automatically converts these to appropriate HTTP responses;
main.py adds a "type" field to every error body.
"""
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Raised when a row cannot be found in the caller's scope."""

    error_type = "not_found"

    def __init__(self, kind: str = "Item", identifier: str = ""):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{kind} not found: {identifier}" if identifier else f"{kind} not found"
        )


class OrganizationNotFoundError(NotFoundError):
    def __init__(self, organization_id: str = ""):
        super().__init__("Organization", organization_id)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str = ""):
        super().__init__("User", user_id)


class AssetNotFoundError(NotFoundError):
    def __init__(self, asset_id: str = ""):
        super().__init__("Asset", asset_id)


class AuthenticationError(HTTPException):
    """Raised when authentication fails."""

    error_type = "authentication_error"

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDenied(HTTPException):
    """Raised when the caller's role does not allow the action."""

    error_type = "permission_denied"

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class TenantIsolationError(HTTPException):
    """
    Raised when a caller touches a row owned by another organization.

    This is a CRITICAL security error and is always logged as a security event.
    """

    error_type = "tenant_isolation_error"

    def __init__(self, detail: str = "You do not have permission to access this resource"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class DuplicateResourceError(HTTPException):
    """Raised when a uniqueness rule (tag, email, name) would be broken."""

    error_type = "duplicate_resource"

    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class ConflictError(HTTPException):
    """Raised when a mutation would break an invariant (last admin, item in use)."""

    error_type = "conflict"

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class InvalidInputError(HTTPException):
    """Raised when input validation fails."""

    error_type = "invalid_input"

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class DatabaseOperationError(HTTPException):
    """
    Raised when the database fails for a reason the client cannot fix.

    The underlying error is logged server-side; the client gets a generic message.
    """

    error_type = "database_error"

    def __init__(self, action: str = "complete the operation"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"The database failed to {action}. Please try again."
        )
