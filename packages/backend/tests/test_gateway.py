"""Tests for the scoped gateway — client-side row-level security.

Learn: FakeDataService records every call, so "refused without touching
the backend" is checked as `data.calls == []`.
"""

import asyncio

import pytest

from fakes import FakeAuthService, FakeDataService, StaticIdentity, make_identity, make_session
from ghub.gateway.errors import NOT_CONFIGURED, ErrorKind
from ghub.gateway.filters import DataServiceError, Eq, Or
from ghub.gateway.scoped import ScopedGateway
from ghub.session.events import SIGNED_IN, SIGNED_OUT
from ghub.session.resolver import SessionResolver

ME = make_identity("me")
OTHER = make_identity("other")


def _recipes():
    return {
        "recipes": [
            {"id": "r1", "user_id": "other", "name": "Public oats", "is_public": True,
             "created_at": "2026-01-01"},
            {"id": "r2", "user_id": "other", "name": "Secret sauce", "is_public": False,
             "created_at": "2026-01-02"},
            {"id": "r3", "user_id": "me", "name": "My private stew", "is_public": False,
             "created_at": "2026-01-03"},
        ]
    }


def _gateway(identity=None, tables=None):
    data = FakeDataService(tables)
    return ScopedGateway(StaticIdentity(identity), data), data


# ═══════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_anonymous_sees_only_public_recipes():
    gateway, data = _gateway(None, {"recipes": _recipes()["recipes"][:2]})
    result = await gateway.list("recipes")

    assert result.ok
    assert [r["id"] for r in result.value] == ["r1"]
    (_, query), = data.calls
    assert query.where == Eq("is_public", True)


@pytest.mark.asyncio
async def test_signed_in_sees_public_and_own_in_one_query():
    gateway, data = _gateway(ME, _recipes())
    result = await gateway.list("recipes")

    assert sorted(r["id"] for r in result.value) == ["r1", "r3"]
    assert len(data.calls) == 1
    (_, query), = data.calls
    assert query.where == Or((Eq("is_public", True), Eq("user_id", "me")))


@pytest.mark.asyncio
async def test_owned_table_filtered_to_owner():
    gateway, _ = _gateway(ME, {
        "goals": [
            {"id": "g1", "user_id": "me", "name": "Run", "created_at": "1"},
            {"id": "g2", "user_id": "other", "name": "Lift", "created_at": "2"},
        ]
    })
    result = await gateway.list("goals")
    assert [g["id"] for g in result.value] == ["g1"]


@pytest.mark.asyncio
async def test_owned_table_refused_for_anonymous():
    gateway, data = _gateway(None, {"goals": [{"id": "g1", "user_id": "me"}]})
    result = await gateway.list("goals")

    assert not result.ok
    assert result.error.kind is ErrorKind.AUTHORIZATION
    assert result.error.message == "You must be logged in to view goals"
    assert data.calls == []


@pytest.mark.asyncio
async def test_list_filters_order_and_limit():
    gateway, _ = _gateway(ME, {
        "daily_logs": [
            {"id": "d1", "user_id": "me", "date": "2026-10-14", "mood": "good"},
            {"id": "d2", "user_id": "me", "date": "2026-10-16", "mood": "good"},
            {"id": "d3", "user_id": "me", "date": "2026-10-15", "mood": "meh"},
        ]
    })
    result = await gateway.list("daily_logs", filters={"mood": "good"}, limit=1)
    assert [d["id"] for d in result.value] == ["d2"]

    result = await gateway.list("daily_logs", order="date", descending=False)
    assert [d["id"] for d in result.value] == ["d1", "d3", "d2"]


@pytest.mark.asyncio
async def test_get_missing_row_is_not_an_error():
    gateway, _ = _gateway(ME, {"daily_logs": []})
    result = await gateway.get("daily_logs", {"date": "2026-10-16"})
    assert result.ok
    assert result.value is None


@pytest.mark.asyncio
async def test_get_cannot_see_other_users_private_row():
    gateway, _ = _gateway(ME, _recipes())
    result = await gateway.get("recipes", {"id": "r2"})
    assert result.ok
    assert result.value is None


@pytest.mark.asyncio
async def test_unknown_table_raises():
    gateway, _ = _gateway(ME)
    with pytest.raises(ValueError, match="Unknown table"):
        await gateway.list("nope")


# ═══════════════════════════════════════════════════════════
# Writes
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call,message",
    [
        (lambda g: g.insert("workouts", {"name": "Run"}), "You must be logged in to add workouts"),
        (lambda g: g.update("workouts", "w1", {"name": "Walk"}),
         "You must be logged in to update workouts"),
        (lambda g: g.delete("workouts", "w1"), "You must be logged in to delete workouts"),
    ],
)
async def test_writes_refused_without_identity(call, message):
    gateway, data = _gateway(None, {"workouts": [{"id": "w1", "user_id": "me"}]})
    result = await call(gateway)

    assert not result.ok
    assert result.error.kind is ErrorKind.AUTHORIZATION
    assert result.error.message == message
    assert data.calls == []


@pytest.mark.asyncio
async def test_insert_stamps_owner():
    gateway, data = _gateway(ME)
    result = await gateway.insert("goals", {"name": "Run 10k", "target": 10})

    assert result.ok
    assert result.value["user_id"] == "me"
    assert data.tables["goals"][0]["user_id"] == "me"


@pytest.mark.asyncio
async def test_insert_for_another_user_is_refused():
    gateway, data = _gateway(ME)
    result = await gateway.insert("goals", {"name": "Run", "user_id": "other"})

    assert not result.ok
    assert result.error.message == "You do not have permission to change these goals"
    assert data.calls == []


@pytest.mark.asyncio
async def test_update_own_row_ignores_owner_and_id_changes():
    gateway, data = _gateway(ME, {"goals": [{"id": "g1", "user_id": "me", "current": 1}]})
    result = await gateway.update("goals", "g1", {"id": "g9", "user_id": "me", "current": 5})

    assert result.ok
    assert result.value == {"id": "g1", "user_id": "me", "current": 5}
    _, _, values, _ = data.calls[0]
    assert values == {"current": 5}


@pytest.mark.asyncio
async def test_update_other_users_row_is_not_permitted():
    gateway, data = _gateway(ME, {"goals": [{"id": "g1", "user_id": "other", "current": 1}]})
    result = await gateway.update("goals", "g1", {"current": 5})

    assert not result.ok
    assert result.error.kind is ErrorKind.AUTHORIZATION
    assert data.tables["goals"][0]["current"] == 1


@pytest.mark.asyncio
async def test_update_with_nothing_to_change():
    gateway, data = _gateway(ME, {"goals": [{"id": "g1", "user_id": "me"}]})
    result = await gateway.update("goals", "g1", {"user_id": "me"})
    assert result.error.kind is ErrorKind.CONSTRAINT
    assert result.error.code == "22023"
    assert data.calls == []


@pytest.mark.asyncio
async def test_delete_only_own_rows():
    gateway, data = _gateway(ME, {
        "workouts": [{"id": "w1", "user_id": "me"}, {"id": "w2", "user_id": "other"}]
    })

    assert (await gateway.delete("workouts", "w1")).ok
    denied = await gateway.delete("workouts", "w2")
    assert denied.error.message == "You do not have permission to change these workouts"
    assert [w["id"] for w in data.tables["workouts"]] == ["w2"]


@pytest.mark.asyncio
async def test_profiles_are_owned_by_their_id():
    gateway, _ = _gateway(ME, {"profiles": [{"id": "me"}, {"id": "other"}]})
    result = await gateway.list("profiles", order="id")
    assert [p["id"] for p in result.value] == ["me"]


# ═══════════════════════════════════════════════════════════
# Failures
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_no_data_service_is_a_configuration_error():
    gateway = ScopedGateway(StaticIdentity(ME), None)
    for result in (
        await gateway.list("recipes"),
        await gateway.insert("goals", {"name": "x"}),
        await gateway.delete("goals", "g1"),
    ):
        assert result.error.kind is ErrorKind.CONFIGURATION
        assert result.error.message == NOT_CONFIGURED


@pytest.mark.asyncio
async def test_constraint_violation_is_reported_with_detail():
    gateway, data = _gateway(ME)
    data.error = DataServiceError("duplicate key value", code="23505")
    result = await gateway.insert("daily_logs", {"date": "2026-10-16"})

    assert result.error.kind is ErrorKind.CONSTRAINT
    assert result.error.message == "Failed to save daily logs: duplicate key value"
    assert result.error.code == "23505"


@pytest.mark.asyncio
async def test_backend_outage_is_transient():
    gateway, data = _gateway(ME)
    data.error = DataServiceError("connection refused", code="08000")
    result = await gateway.list("goals")

    assert result.error.kind is ErrorKind.TRANSIENT
    assert result.error.message == "Failed to load goals. Please try again."


@pytest.mark.asyncio
async def test_insert_then_read_is_scoped_to_owner():
    data = FakeDataService()
    mine = ScopedGateway(StaticIdentity(ME), data)
    theirs = ScopedGateway(StaticIdentity(OTHER), data)

    created = (await mine.insert("measurements", {"date": "2026-10-16", "weight": 70.5})).value

    assert [m["id"] for m in (await mine.list("measurements")).value] == [created["id"]]
    assert (await theirs.list("measurements")).value == []
    assert (await theirs.get("measurements", {"id": created["id"]})).value is None


# ═══════════════════════════════════════════════════════════
# Driven by a live session resolver
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_writes_refused_while_unknown_and_after_sign_out():
    auth = FakeAuthService(session=make_session("me"))
    auth.gate = asyncio.Event()
    data = FakeDataService()
    async with SessionResolver(auth) as resolver:
        gateway = ScopedGateway(resolver, data)
        assert resolver.is_resolving()

        result = await gateway.insert("goals", {"name": "Run"})
        assert result.error.kind is ErrorKind.AUTHORIZATION

        auth.push(SIGNED_IN, make_session("me"))
        auth.push(SIGNED_OUT, None)
        result = await gateway.insert("goals", {"name": "Run"})
        assert result.error.kind is ErrorKind.AUTHORIZATION
        result = await gateway.delete("goals", "g1")
        assert result.error.kind is ErrorKind.AUTHORIZATION
        auth.gate.set()

    assert data.calls == []


@pytest.mark.asyncio
async def test_read_scope_follows_push_events():
    auth = FakeAuthService()
    async with SessionResolver(auth) as resolver:
        await resolver.wait_until_resolved()
        data = FakeDataService(_recipes())
        gateway = ScopedGateway(resolver, data)

        anonymous = await gateway.list("recipes")
        auth.push(SIGNED_IN, make_session("me"))
        signed_in = await gateway.list("recipes")
        auth.push(SIGNED_OUT, None)
        signed_out = await gateway.list("recipes")

    assert {r["id"] for r in anonymous.value} == {"r1"}
    assert {r["id"] for r in signed_in.value} == {"r1", "r3"}
    assert {r["id"] for r in signed_out.value} == {"r1"}
