"""Record API — every user-scoped table behind the scoped gateway.

Learn: One router serves all tables in ghub.gateway.tables. The route
layer only does HTTP: validate the body with the table's schema, call the
gateway bound to the request's identity, map gateway errors to status
codes. Ownership and visibility are decided by the gateway alone.

- GET    /rest/v1/{table}             list (public reads allowed anonymously)
- GET    /rest/v1/{table}/{id}        one row, 404 if not visible
- POST   /rest/v1/{table}             insert, owner attached server-side
- PATCH  /rest/v1/{table}/{id}        update own row
- DELETE /rest/v1/{table}/{id}        delete own row

Query parameters other than order/desc/limit are equality filters,
e.g. GET /rest/v1/daily_logs?date=2026-10-16.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ghub.auth.dependencies import RequestIdentity, get_request_identity
from ghub.db.engine import get_db
from ghub.gateway.errors import ErrorKind, GatewayError
from ghub.gateway.scoped import ScopedGateway
from ghub.gateway.sql import SqlDataService
from ghub.gateway.tables import TableSpec, get_table
from ghub.results import Result
from ghub.schemas.records import RECORD_SCHEMAS

router = APIRouter(prefix="/rest/v1")

RESERVED_PARAMS = {"order", "desc", "limit"}

STATUS_BY_KIND = {
    ErrorKind.CONFIGURATION: 503,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.CONSTRAINT: 409,
    ErrorKind.TRANSIENT: 503,
}


def _gateway(
    caller: RequestIdentity = Depends(get_request_identity),
    db: AsyncSession = Depends(get_db),
) -> ScopedGateway:
    return ScopedGateway(caller, SqlDataService(db))


def _table(table: str) -> TableSpec:
    try:
        return get_table(table)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _status_for(error: GatewayError, gateway: ScopedGateway) -> int:
    code = error.code or ""
    if code == "42703" or code.startswith("22"):
        return 400
    if error.kind is ErrorKind.AUTHORIZATION and gateway.identity.current_identity() is None:
        return 401
    return STATUS_BY_KIND[error.kind]


def _unwrap(result: Result, gateway: ScopedGateway) -> Any:
    if result.ok:
        return result.value
    raise HTTPException(status_code=_status_for(result.error, gateway), detail=result.error.message)


def _validate(schema: type[BaseModel], body: dict) -> dict:
    try:
        model = schema.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(e.errors())
    # only top-level fields the caller sent; nested models keep their defaults
    return model.model_dump(include=model.model_fields_set)


# ─── Reads ──────────────────────────────────────────────


@router.get("/{table}")
async def list_records(
    request: Request,
    spec: TableSpec = Depends(_table),
    order: Optional[str] = None,
    desc: bool = True,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    gateway: ScopedGateway = Depends(_gateway),
):
    filters = {
        key: value
        for key, value in request.query_params.items()
        if key not in RESERVED_PARAMS
    }
    result = await gateway.list(
        spec.name, filters=filters, order=order, descending=desc, limit=limit
    )
    return _unwrap(result, gateway)


@router.get("/{table}/{record_id}")
async def get_record(
    record_id: str,
    spec: TableSpec = Depends(_table),
    gateway: ScopedGateway = Depends(_gateway),
):
    row = _unwrap(await gateway.get(spec.name, {spec.primary_key: record_id}), gateway)
    if row is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return row


# ─── Writes ─────────────────────────────────────────────


@router.post("/{table}", status_code=201)
async def create_record(
    body: dict = Body(...),
    spec: TableSpec = Depends(_table),
    gateway: ScopedGateway = Depends(_gateway),
):
    create_schema, _ = RECORD_SCHEMAS[spec.name]
    values = _validate(create_schema, body)
    return _unwrap(await gateway.insert(spec.name, values), gateway)


@router.patch("/{table}/{record_id}")
async def update_record(
    record_id: str,
    body: dict = Body(...),
    spec: TableSpec = Depends(_table),
    gateway: ScopedGateway = Depends(_gateway),
):
    _, update_schema = RECORD_SCHEMAS[spec.name]
    values = _validate(update_schema, body)
    return _unwrap(await gateway.update(spec.name, record_id, values), gateway)


@router.delete("/{table}/{record_id}", status_code=204)
async def delete_record(
    record_id: str,
    spec: TableSpec = Depends(_table),
    gateway: ScopedGateway = Depends(_gateway),
):
    _unwrap(await gateway.delete(spec.name, record_id), gateway)
    return Response(status_code=204)
