"""
Engine helpers.

Verifies:
- standalone_session yields a session from a non-expiring factory
- the engine is disposed on exit, including when the body raises
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from citybasic.db import engine as engine_module
from citybasic.db.engine import standalone_session

pytestmark = pytest.mark.asyncio


class _FakeSessionContext:
    def __init__(self, session):
        self.session = session
        self.closed = False

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False


@pytest.fixture
def fake_engine(monkeypatch):
    engine = MagicMock()
    engine.dispose = AsyncMock()
    session = AsyncMock()
    context = _FakeSessionContext(session)
    factory_calls = []

    def fake_sessionmaker(bind, **kwargs):
        factory_calls.append((bind, kwargs))
        return lambda: context

    monkeypatch.setattr(engine_module, "create_engine", lambda database_url=None: engine)
    monkeypatch.setattr(engine_module, "async_sessionmaker", fake_sessionmaker)
    return engine, session, context, factory_calls


class TestStandaloneSession:
    async def test_yields_session_and_disposes_engine(self, fake_engine):
        engine, session, context, factory_calls = fake_engine

        async with standalone_session() as yielded:
            assert yielded is session
            engine.dispose.assert_not_awaited()

        assert factory_calls == [(engine, {"expire_on_commit": False})]
        assert context.closed
        engine.dispose.assert_awaited_once()

    async def test_disposes_engine_when_body_raises(self, fake_engine):
        engine, _, context, _ = fake_engine

        with pytest.raises(RuntimeError):
            async with standalone_session():
                raise RuntimeError("script failed")

        assert context.closed
        engine.dispose.assert_awaited_once()
