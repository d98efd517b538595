"""Growth Hub backend — FastAPI application factory.

Learn: create_app() wires the reference backend the ghub clients talk to:
/auth/v1 (accounts and sessions), /rest/v1 (user-scoped records),
/api/verify-code (registration gate) and /api/v1/health.

Run with: uvicorn ghub.main:app
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from ghub import __version__
from ghub.api import api_router
from ghub.config import settings
from ghub.db.engine import engine
from ghub.db.redis import close_redis, init_redis
from ghub.middleware.rate_limit import RateLimitMiddleware
from ghub.middleware.request_id import HEADER as REQUEST_ID_HEADER
from ghub.middleware.request_id import RequestIdMiddleware
from ghub.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()

CORS_HEADERS = ["Authorization", "Content-Type", "apikey", REQUEST_ID_HEADER]
EXPOSED_HEADERS = [REQUEST_ID_HEADER, "X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"]


async def _connect_redis() -> bool:
    try:
        await init_redis()
    except (RedisError, OSError) as e:
        logger.warning("ghub.redis_unavailable", error=str(e), rate_limiting=False)
        return False
    logger.info("ghub.redis_connected")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "ghub.starting",
        version=__version__,
        environment=settings.environment,
        anon_key_required=bool(settings.anon_key),
        registration_open=bool(settings.secret_code),
    )
    await _connect_redis()

    yield

    logger.info("ghub.shutdown")
    await close_redis()
    await engine.dispose()


def _install_middleware(app: FastAPI) -> None:
    # Starlette runs middleware in reverse order of registration:
    # CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=CORS_HEADERS,
        expose_headers=EXPOSED_HEADERS,
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Growth Hub",
        description="Personal wellness tracker: accounts and user-scoped records",
        version=__version__,
        lifespan=lifespan,
    )
    _install_middleware(app)
    app.include_router(api_router)
    return app


app = create_app()
