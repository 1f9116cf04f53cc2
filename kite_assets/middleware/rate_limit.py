"""
Rate Limiting Middleware

Per-organization token bucket stored in Redis. Anonymous requests
(login, register) are bucketed by client address instead.

If Redis is unreachable the limiter lets requests through and logs it.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Tuple
import redis
import time
import logging
from kite_assets.config import get_settings
from kite_assets.utils.logging import log_security_event

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Token bucket rate limiter per organization.

    Each bucket holds up to RATE_LIMIT_BURST tokens and refills at
    RATE_LIMIT_PER_MINUTE tokens per minute. Each request consumes one.
    """

    def __init__(self, app, redis_client=None):
        super().__init__(app)
        self.settings = get_settings()
        self.enabled = self.settings.RATE_LIMIT_ENABLED
        self.redis_client = redis_client
        self.redis_available = redis_client is not None

        if self.enabled and self.redis_client is None:
            try:
                self.redis_client = redis.from_url(
                    self.settings.REDIS_URL,
                    decode_responses=True,
                    socket_connect_timeout=5
                )
                self.redis_client.ping()
                self.redis_available = True
                logger.info("Redis connection established for rate limiting")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.error(f"Redis connection failed: {e}")
                self.redis_available = False

        self.excluded_paths = [
            "/docs",
            "/redoc",
            "/openapi.json",
            "/health",
        ]

    async def dispatch(self, request: Request, call_next):
        if not self.enabled:
            return await call_next(request)

        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        if not self.redis_available:
            logger.warning("Rate limiting disabled - Redis unavailable")
            return await call_next(request)

        identifier = self._get_client_identifier(request)
        allowed, retry_after = self._check_rate_limit(identifier)

        if not allowed:
            log_security_event(
                "rate_limit_exceeded",
                {"bucket": identifier, "path": request.url.path},
                logger
            )
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "type": "rate_limit_exceeded",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )

        return await call_next(request)

    def _check_rate_limit(self, identifier: str) -> Tuple[bool, int]:
        """
        Check if request is allowed under rate limit.

        Returns: (allowed, retry_after_seconds)
        """
        rate_limit = self.settings.RATE_LIMIT_PER_MINUTE
        burst = self.settings.RATE_LIMIT_BURST

        key = f"rate_limit:{identifier}"
        key_timestamp = f"{key}:timestamp"

        try:
            current_tokens = self.redis_client.get(key)
            last_update = self.redis_client.get(key_timestamp)

            now = time.time()

            if current_tokens is None:
                # First request - initialize bucket and consume one token
                self.redis_client.setex(key, 60, burst - 1)
                self.redis_client.setex(key_timestamp, 60, now)
                return True, 0

            current_tokens = float(current_tokens)
            last_update = float(last_update) if last_update else now

            elapsed = now - last_update
            tokens_to_add = elapsed * (rate_limit / 60.0)
            new_tokens = min(burst, current_tokens + tokens_to_add)

            if new_tokens >= 1:
                new_tokens -= 1
                self.redis_client.setex(key, 60, new_tokens)
                self.redis_client.setex(key_timestamp, 60, now)
                return True, 0

            tokens_needed = 1 - new_tokens
            retry_after = int((tokens_needed / (rate_limit / 60.0)) + 1)
            return False, retry_after

        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            return True, 0

    def _get_client_identifier(self, request: Request) -> str:
        organization_id = getattr(request.state, "organization_id", None)
        if organization_id:
            return f"org:{organization_id}"
        client_host = request.client.host if request.client else "unknown"
        return f"ip:{client_host}"
