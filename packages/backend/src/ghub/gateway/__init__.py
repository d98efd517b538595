"""Scoped data gateway — every record read and write goes through here.

Learn: The gateway turns "who is calling" into row filters and owner
stamps, so pages never build ownership clauses themselves. It runs the
same way in a client process (identity from the SessionResolver) and in
the API (identity from the request's bearer token).
"""

from ghub.gateway.errors import ErrorKind, GatewayError
from ghub.gateway.filters import NOT_FOUND_CODE, DataService, DataServiceError, Eq, In, Or
from ghub.gateway.scoped import ScopedGateway
from ghub.gateway.tables import TABLES, TableSpec, get_table

__all__ = [
    "DataService",
    "DataServiceError",
    "Eq",
    "ErrorKind",
    "GatewayError",
    "In",
    "NOT_FOUND_CODE",
    "Or",
    "ScopedGateway",
    "TABLES",
    "TableSpec",
    "get_table",
]
