"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: The apikey check is applied at the include_router level, so every
auth and record route requires the project key without touching the
handlers. Health and the registration-code check stay open.

    /api/v1/health        open
    /api/verify-code      open (rate limited)
    /auth/v1/*            apikey
    /rest/v1/*            apikey (+ bearer token for anything private)
"""

from fastapi import APIRouter, Depends

from ghub.api.auth import router as auth_router
from ghub.api.health import router as health_router
from ghub.api.records import router as records_router
from ghub.api.verify_code import router as verify_code_router
from ghub.auth.dependencies import require_api_key

_apikey = [Depends(require_api_key)]

api_router = APIRouter()

# Open routes
api_router.include_router(health_router, prefix="/api/v1", tags=["health"])
api_router.include_router(verify_code_router, prefix="/api", tags=["registration"])

# Project-key routes
api_router.include_router(auth_router, tags=["auth"], dependencies=_apikey)
api_router.include_router(records_router, tags=["records"], dependencies=_apikey)
