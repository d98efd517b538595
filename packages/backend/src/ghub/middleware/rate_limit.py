"""Rate limiting middleware — fixed one-minute windows in Redis.

Learn: Each client IP gets one counter per bucket per minute (see
ghub.db.redis.window_key). Credential endpoints (sign-in, sign-up,
registration-code check) share a stricter "auth" bucket so password and
code guessing is throttled hard.

No Redis (tests, single-node dev) means no rate limiting.
"""

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ghub.db.redis import WINDOW_SECONDS, count_hit, get_redis, window_key

logger = structlog.get_logger()

CREDENTIAL_PATHS = ("/auth/v1/token", "/auth/v1/signup", "/api/verify-code")


def is_credential_path(path: str) -> bool:
    # /auth/v1/token/refresh carries a token, not a guessable secret
    return path in CREDENTIAL_PATHS


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP request budget per minute."""

    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        strict = is_credential_path(request.url.path.rstrip("/"))
        rpm = self.auth_rpm if strict else self.default_rpm
        bucket = "auth" if strict else "api"

        try:
            count = await count_hit(redis, window_key(client_ip, bucket))
        except RedisError as e:
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            logger.info("rate_limit.exceeded", client_ip=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
