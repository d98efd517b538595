"""Health check endpoint.

Learn: Reports the server version and whether the database and Redis
answer. Redis being down only degrades the service (no rate limiting).
"""

from fastapi import APIRouter
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ghub import __version__
from ghub.db.engine import engine
from ghub.db.redis import get_redis

router = APIRouter()


@router.get("/health")
async def health_check():
    checks = {"server": "ok", "version": __version__}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        checks["database"] = f"error: {e}"

    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except RuntimeError:
        checks["redis"] = "disabled"
    except (RedisError, OSError) as e:
        checks["redis"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "unhealthy"
    if status == "healthy" and checks["redis"] != "ok":
        status = "degraded"
    return {"status": status, **checks}
