"""Tests for the SQLAlchemy data service against a real (SQLite) database."""

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from fakes import StaticIdentity, make_identity
from ghub.db.models import User
from ghub.gateway.errors import ErrorKind
from ghub.gateway.filters import NOT_FOUND_CODE, DataServiceError, Eq, In, Or, Order, Query, all_of
from ghub.gateway.scoped import ScopedGateway
from ghub.gateway.sql import SqlDataService


@pytest_asyncio.fixture()
async def owner(db_session):
    user = User(email="owner@example.com", password_hash="x")
    db_session.add(user)
    await db_session.commit()
    return user.id


@pytest.mark.asyncio
async def test_insert_returns_row_with_defaults(db_session, owner):
    data = SqlDataService(db_session)
    row = await data.insert("workouts", {"user_id": owner, "name": "Run", "date": "2026-10-16"})

    assert row["name"] == "Run"
    assert row["user_id"] == owner
    assert row["date"] == date(2026, 10, 16)
    assert row["type"] == "Strength"
    assert len(row["id"]) == 36


@pytest.mark.asyncio
async def test_select_with_or_order_limit(db_session, owner):
    data = SqlDataService(db_session)
    for name, public in [("a", True), ("b", False), ("c", True)]:
        await data.insert("recipes", {"user_id": owner, "name": name, "is_public": public})

    rows = await data.select(Query(
        table="recipes",
        where=Or((Eq("is_public", True), Eq("name", "b"))),
        order=(Order("name", descending=False),),
        limit=2,
    ))
    assert [r["name"] for r in rows] == ["a", "b"]

    rows = await data.select(Query(table="recipes", where=In("name", ("a", "c"))))
    assert sorted(r["name"] for r in rows) == ["a", "c"]


@pytest.mark.asyncio
async def test_string_filters_are_coerced(db_session, owner):
    data = SqlDataService(db_session)
    await data.insert("blog_posts", {"user_id": owner, "title": "t", "content": "c", "is_public": False})

    rows = await data.select(Query(table="blog_posts", where=Eq("is_public", "false")))
    assert len(rows) == 1

    with pytest.raises(DataServiceError) as exc:
        await data.select(Query(table="blog_posts", where=Eq("is_public", "maybe")))
    assert exc.value.code == "22P02"


@pytest.mark.asyncio
async def test_select_single_not_found(db_session):
    data = SqlDataService(db_session)
    with pytest.raises(DataServiceError) as exc:
        await data.select_single(Query(table="goals", where=Eq("id", "missing")))
    assert exc.value.code == NOT_FOUND_CODE


@pytest.mark.asyncio
async def test_update_and_delete_respect_where(db_session, owner):
    data = SqlDataService(db_session)
    row = await data.insert("goals", {"user_id": owner, "name": "Run", "target": 10})
    mine = all_of(Eq("id", row["id"]), Eq("user_id", owner))
    theirs = all_of(Eq("id", row["id"]), Eq("user_id", "someone-else"))

    assert await data.update("goals", {"current": 3}, theirs) == []
    updated = await data.update("goals", {"current": 3}, mine)
    assert updated[0]["current"] == 3.0

    assert await data.delete("goals", theirs) == 0
    assert await data.delete("goals", mine) == 1


@pytest.mark.asyncio
async def test_unique_violation_maps_to_integrity_code(db_session, owner):
    data = SqlDataService(db_session)
    await data.insert("daily_logs", {"user_id": owner, "date": "2026-10-16"})
    with pytest.raises(DataServiceError) as exc:
        await data.insert("daily_logs", {"user_id": owner, "date": "2026-10-16"})
    assert exc.value.code.startswith("23")


@pytest.mark.asyncio
async def test_unknown_table_and_column(db_session):
    data = SqlDataService(db_session)
    with pytest.raises(DataServiceError) as exc:
        await data.select(Query(table="nope"))
    assert exc.value.code == "42P01"

    with pytest.raises(DataServiceError) as exc:
        await data.select(Query(table="goals", where=Eq("nope", 1)))
    assert exc.value.code == "42703"


@pytest.mark.asyncio
async def test_unreachable_database_is_a_connection_error():
    # nothing listens on port 1
    engine = create_async_engine("postgresql+asyncpg://u:p@127.0.0.1:1/db", poolclass=NullPool)
    try:
        async with async_sessionmaker(engine)() as session:
            data = SqlDataService(session)
            with pytest.raises(DataServiceError) as exc:
                await data.select(Query(table="recipes"))
            assert exc.value.code == "08000"

            gateway = ScopedGateway(StaticIdentity(make_identity("me")), data)
            result = await gateway.list("recipes")
            assert result.error.kind is ErrorKind.TRANSIENT
            assert result.error.message == "Failed to load recipes. Please try again."
    finally:
        await engine.dispose()
