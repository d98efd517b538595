"""Tests for identity-bound loading."""

import asyncio

import pytest

from fakes import FakeAuthService, make_session
from ghub.session.events import SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED
from ghub.session.resolver import SessionResolver
from ghub.session.watch import IdentityWatcher, load_for_current


@pytest.mark.asyncio
async def test_watcher_fires_only_on_identity_change():
    auth = FakeAuthService()
    async with SessionResolver(auth) as resolver:
        await resolver.wait_until_resolved()
        changes = []
        watcher = IdentityWatcher(resolver, changes.append)

        auth.push(SIGNED_IN, make_session("u1"))
        auth.push(TOKEN_REFRESHED, make_session("u1"))
        auth.push(SIGNED_IN, make_session("u2"))
        auth.push(SIGNED_OUT, None)
        watcher.close()
        auth.push(SIGNED_IN, make_session("u3"))

    assert [i.id if i else None for i in changes] == ["u1", "u2", None]


@pytest.mark.asyncio
async def test_result_for_previous_identity_is_stale():
    auth = FakeAuthService(session=make_session("u1"))
    async with SessionResolver(auth) as resolver:
        await resolver.wait_until_resolved()
        release = asyncio.Event()

        async def slow_fetch(identity):
            await release.wait()
            return [f"rows of {identity.id}"]

        pending = asyncio.create_task(load_for_current(resolver, slow_fetch))
        await asyncio.sleep(0)
        auth.push(SIGNED_IN, make_session("u2"))
        release.set()
        loaded = await pending

    assert loaded.stale
    assert loaded.value is None


@pytest.mark.asyncio
async def test_result_for_current_identity_is_kept():
    auth = FakeAuthService(session=make_session("u1"))
    async with SessionResolver(auth) as resolver:
        await resolver.wait_until_resolved()

        async def fetch(identity):
            return identity.id

        loaded = await load_for_current(resolver, fetch)

    assert not loaded.stale
    assert loaded.value == "u1"


@pytest.mark.asyncio
async def test_watcher_fires_when_session_resolves_anonymous():
    auth = FakeAuthService()
    auth.gate = asyncio.Event()
    async with SessionResolver(auth) as resolver:
        changes = []
        watcher = IdentityWatcher(resolver, changes.append)

        auth.gate.set()
        await resolver.wait_until_resolved()
        auth.push(SIGNED_OUT, None)
        watcher.close()

    assert changes == [None]
