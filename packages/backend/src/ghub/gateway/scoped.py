"""Scoped data gateway — every read and write goes through the caller's identity.

Learn: This is the client-side equivalent of row-level security. Pages
never pass a user_id; the gateway attaches or filters by the identity
source's current identity on every call:

- reads of owned tables:      owner == me            (anonymous → refused)
- reads of shareable tables:  is_public OR owner == me  (anonymous → public only)
- inserts:                    owner column forced to me
- updates / deletes:          id == X AND owner == me; zero rows → refused

Writes without an identity are refused before any data-service call.
Nothing raises for a backend failure — every call returns a Result whose
error carries a message fit for the UI.
"""

from typing import Any, Optional, Protocol

import structlog

from ghub.gateway.errors import (
    INVALID_VALUE_CODE,
    ErrorKind,
    GatewayError,
    from_data_error,
    login_required,
    not_configured,
    not_permitted,
)
from ghub.gateway.filters import (
    NOT_FOUND_CODE,
    DataService,
    DataServiceError,
    Eq,
    In,
    Or,
    Order,
    Predicate,
    Query,
    all_of,
)
from ghub.gateway.tables import TableSpec, get_table
from ghub.results import Result
from ghub.session.state import Identity

logger = structlog.get_logger()


class IdentitySource(Protocol):
    """Anything that can answer "who is calling" right now."""

    def current_identity(self) -> Optional[Identity]: ...


def _caller_filters(filters: Optional[dict[str, Any]]) -> Optional[Predicate]:
    if not filters:
        return None
    parts = []
    for column, value in filters.items():
        if isinstance(value, (list, tuple, set)):
            parts.append(In(column, tuple(value)))
        else:
            parts.append(Eq(column, value))
    return all_of(*parts)


class ScopedGateway:
    def __init__(self, identity: IdentitySource, data: Optional[DataService]):
        self.identity = identity
        self.data = data

    # ─── Scoping rules ──────────────────────────────────

    def read_scope(self, spec: TableSpec, identity: Optional[Identity]) -> Optional[Predicate]:
        """Visibility predicate for a read, or None if the caller may not read."""
        owned = Eq(spec.owner_column, identity.id) if identity else None
        if spec.shareable:
            public = Eq(spec.visibility_column, True)
            return Or((public, owned)) if owned else public
        return owned

    def _fail(self, spec: TableSpec, operation: str, error: DataServiceError, failed: str):
        translated = from_data_error(error, failed)
        log = logger.error if translated.kind is ErrorKind.TRANSIENT else logger.warning
        log(
            "gateway.request_failed",
            table=spec.name,
            operation=operation,
            code=error.code,
            error=error.message,
        )
        return Result.failure(translated)

    # ─── Reads ──────────────────────────────────────────

    async def list(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> Result[list[dict], GatewayError]:
        spec = get_table(table)
        if self.data is None:
            return Result.failure(not_configured())

        identity = self.identity.current_identity()
        scope = self.read_scope(spec, identity)
        if scope is None:
            return Result.failure(login_required(f"view {spec.label}"))

        query = Query(
            table=spec.name,
            where=all_of(scope, _caller_filters(filters)),
            order=(Order(order or spec.order_by, descending),),
            limit=limit,
        )
        try:
            rows = await self.data.select(query)
        except DataServiceError as e:
            return self._fail(spec, "list", e, f"load {spec.label}")
        return Result.success(rows)

    async def get(
        self, table: str, filters: dict[str, Any]
    ) -> Result[Optional[dict], GatewayError]:
        """Fetch exactly one row. No match is a normal outcome (value None)."""
        spec = get_table(table)
        if self.data is None:
            return Result.failure(not_configured())

        identity = self.identity.current_identity()
        scope = self.read_scope(spec, identity)
        if scope is None:
            return Result.failure(login_required(f"view {spec.label}"))

        query = Query(table=spec.name, where=all_of(scope, _caller_filters(filters)))
        try:
            row = await self.data.select_single(query)
        except DataServiceError as e:
            if e.code == NOT_FOUND_CODE:
                return Result.success(None)
            return self._fail(spec, "get", e, f"load {spec.label}")
        return Result.success(row)

    # ─── Writes ─────────────────────────────────────────

    def _writer(self, spec: TableSpec, action: str) -> tuple[Optional[Identity], Optional[GatewayError]]:
        if self.data is None:
            return None, not_configured()
        identity = self.identity.current_identity()
        if identity is None:
            return None, login_required(f"{action} {spec.label}")
        return identity, None

    def _claims_other_owner(self, spec: TableSpec, values: dict, identity: Identity) -> bool:
        owner = values.get(spec.owner_column)
        return owner is not None and str(owner) != identity.id

    async def insert(self, table: str, values: dict[str, Any]) -> Result[dict, GatewayError]:
        spec = get_table(table)
        identity, error = self._writer(spec, "add")
        if error:
            return Result.failure(error)
        if self._claims_other_owner(spec, values, identity):
            return Result.failure(not_permitted(spec.label))

        row = {**values, spec.owner_column: identity.id}
        try:
            created = await self.data.insert(spec.name, row)
        except DataServiceError as e:
            return self._fail(spec, "insert", e, f"save {spec.label}")
        logger.info("gateway.inserted", table=spec.name, user_id=identity.id)
        return Result.success(created)

    async def update(
        self, table: str, record_id: str, values: dict[str, Any]
    ) -> Result[dict, GatewayError]:
        spec = get_table(table)
        identity, error = self._writer(spec, "update")
        if error:
            return Result.failure(error)
        if self._claims_other_owner(spec, values, identity):
            return Result.failure(not_permitted(spec.label))

        changes = {
            k: v for k, v in values.items()
            if k not in (spec.owner_column, spec.primary_key)
        }
        if not changes:
            return Result.failure(
                GatewayError(
                    ErrorKind.CONSTRAINT, f"Nothing to update in {spec.label}", INVALID_VALUE_CODE
                )
            )

        where = all_of(Eq(spec.primary_key, record_id), Eq(spec.owner_column, identity.id))
        try:
            rows = await self.data.update(spec.name, changes, where)
        except DataServiceError as e:
            return self._fail(spec, "update", e, f"update {spec.label}")
        if not rows:
            return Result.failure(not_permitted(spec.label))
        return Result.success(rows[0])

    async def delete(self, table: str, record_id: str) -> Result[None, GatewayError]:
        spec = get_table(table)
        identity, error = self._writer(spec, "delete")
        if error:
            return Result.failure(error)

        where = all_of(Eq(spec.primary_key, record_id), Eq(spec.owner_column, identity.id))
        try:
            deleted = await self.data.delete(spec.name, where)
        except DataServiceError as e:
            return self._fail(spec, "delete", e, f"delete {spec.label}")
        if deleted == 0:
            return Result.failure(not_permitted(spec.label))
        logger.info("gateway.deleted", table=spec.name, user_id=identity.id)
        return Result.success()
