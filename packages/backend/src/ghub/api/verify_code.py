"""Registration-code check.

Learn: Sign-up screens ask for a shared secret code before they offer the
form. The code lives only on the server (GHUB_SECRET_CODE); the client
sends its guess and learns nothing but valid/invalid.

- trimmed and case-insensitive on both sides
- compared in constant time (hmac.compare_digest)
- rate limited with the credential bucket
"""

import hmac

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from ghub.config import settings
from ghub.schemas.auth import VerifyCodeRequest

logger = structlog.get_logger()

router = APIRouter()


def _normalize(code: str) -> bytes:
    return code.strip().lower().encode("utf-8")


@router.post("/verify-code")
async def verify_code(body: VerifyCodeRequest):
    expected = (settings.secret_code or "").strip()
    if not expected:
        logger.error("verify_code.not_configured")
        return JSONResponse(
            status_code=500, content={"valid": False, "error": "Server misconfigured"}
        )

    submitted = (body.code or "").strip()
    if not submitted:
        return JSONResponse(
            status_code=400, content={"valid": False, "error": "Code is required"}
        )

    if not hmac.compare_digest(_normalize(submitted), _normalize(expected)):
        logger.info("verify_code.rejected")
        return JSONResponse(
            status_code=401, content={"valid": False, "error": "Invalid secret code"}
        )

    return {"valid": True}
