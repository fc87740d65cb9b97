from __future__ import annotations

import asyncio

import pytest

from core.errors import BackendError
from core.sessions import SessionRegistry


def test_same_identity_gets_one_handle_under_concurrency() -> None:
    created: list[int] = []

    async def factory():
        await asyncio.sleep(0.01)
        created.append(1)
        return object()

    async def scenario():
        registry = SessionRegistry()
        return await asyncio.gather(
            *(registry.get_or_create(42, factory) for _ in range(8))
        )

    sessions = asyncio.run(scenario())

    assert len(created) == 1
    assert len({id(session.handle) for session in sessions}) == 1


def test_different_identities_get_different_handles() -> None:
    async def factory():
        return object()

    async def scenario():
        registry = SessionRegistry()
        first = await registry.get_or_create(1, factory)
        second = await registry.get_or_create(2, factory)
        again = await registry.get_or_create(1, factory)
        return first, second, again

    first, second, again = asyncio.run(scenario())

    assert first.handle is not second.handle
    assert first is again


def test_failed_creation_is_not_cached() -> None:
    attempts: list[int] = []

    async def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise BackendError("boom")
        return "chat"

    async def scenario():
        registry = SessionRegistry()
        with pytest.raises(BackendError):
            await registry.get_or_create(42, flaky)
        assert len(attempts) == 1
        return await registry.get_or_create(42, flaky)

    session = asyncio.run(scenario())

    assert session.handle == "chat"
    assert len(attempts) == 2
