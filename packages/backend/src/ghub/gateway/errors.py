"""Gateway error taxonomy.

Every failure the gateway reports carries a user-facing message and a
kind the HTTP layer can map to a status code.
"""

from dataclasses import dataclass
from enum import Enum

from ghub.gateway.filters import DataServiceError


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    AUTHORIZATION = "authorization"
    CONSTRAINT = "constraint"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class GatewayError:
    kind: ErrorKind
    message: str
    code: str | None = None


NOT_CONFIGURED = "Database connection not available"

# Postgres SQLSTATE 42501: insufficient privilege (row-level security)
PERMISSION_DENIED_CODE = "42501"

# SQLSTATE 22023: invalid parameter value (a request with nothing usable in it)
INVALID_VALUE_CODE = "22023"


def not_configured() -> GatewayError:
    return GatewayError(ErrorKind.CONFIGURATION, NOT_CONFIGURED)


def login_required(action: str) -> GatewayError:
    return GatewayError(ErrorKind.AUTHORIZATION, f"You must be logged in to {action}")


def not_permitted(label: str) -> GatewayError:
    return GatewayError(
        ErrorKind.AUTHORIZATION,
        f"You do not have permission to change these {label}",
        code=PERMISSION_DENIED_CODE,
    )


def from_data_error(error: DataServiceError, failed: str) -> GatewayError:
    """Translate a data-service failure into something a user can read.

    `failed` completes the sentence "Failed to ...", e.g. "load goals".
    """
    code = error.code or ""
    if code == PERMISSION_DENIED_CODE:
        return GatewayError(ErrorKind.AUTHORIZATION, f"Not permitted to {failed}", code)
    # 22xxx bad value for a column, 23xxx integrity violation, 42703 no such column
    if code.startswith(("22", "23")) or code == "42703":
        return GatewayError(
            ErrorKind.CONSTRAINT, f"Failed to {failed}: {error.message}", code
        )
    return GatewayError(ErrorKind.TRANSIENT, f"Failed to {failed}. Please try again.", code)
