"""
Organization Context Middleware

Reads the bearer token (if any) and puts organization_id and user_id on
request.state so logging and rate limiting can attribute the request.

This middleware NEVER authorizes anything. A forged or expired token just
leaves the context empty; the dependencies in kite_assets.api.deps reject
it when the route requires authentication.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Optional, Tuple
import logging
import uuid

from kite_assets.core.security import decode_access_token

logger = logging.getLogger(__name__)


class OrganizationContextMiddleware(BaseHTTPMiddleware):
    """Inject organization/user/request ids into request.state."""

    def __init__(self, app):
        super().__init__(app)
        self.excluded_paths = [
            "/docs",
            "/redoc",
            "/openapi.json",
            "/health",
        ]

    async def dispatch(self, request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.organization_id = None
        request.state.user_id = None

        if not any(request.url.path.startswith(path) for path in self.excluded_paths):
            organization_id, user_id = self._extract_identity(request)
            request.state.organization_id = organization_id
            request.state.user_id = user_id
            if organization_id:
                logger.debug(
                    f"Request for organization {organization_id}",
                    extra={"organization_id": organization_id, "request_id": request.state.request_id}
                )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    def _extract_identity(self, request: Request) -> Tuple[Optional[str], Optional[str]]:
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return None, None

        payload = decode_access_token(auth_header[len("Bearer "):])
        if not payload:
            return None, None

        return payload.get("organization_id"), payload.get("sub")
