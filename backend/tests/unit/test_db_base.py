"""
Unit Tests for the Database Session Layer

Tests for pool sizing from YAML and the commit/rollback behaviour of the
request-scoped session.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from learnloop.db import base
from learnloop.db.base import POOL_DEFAULTS, get_db, pool_options


class TestPoolOptions:
    """Tests for pool_options."""

    def test_defaults_without_database_section(self) -> None:
        assert pool_options({}) == POOL_DEFAULTS

    def test_overrides_and_ignores_unknown_keys(self) -> None:
        options = pool_options({"database": {"pool_size": "12", "echo": True}})

        assert options == {"pool_size": 12, "max_overflow": 10, "pool_timeout": 30}


def _session_maker(session: AsyncMock) -> MagicMock:
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


class TestGetDb:
    """Tests for the request-scoped session."""

    async def test_commits_when_route_succeeds(self, mock_db_session: AsyncMock) -> None:
        with patch.object(base, "async_session_maker", _session_maker(mock_db_session)):
            sessions = get_db()
            assert await sessions.__anext__() is mock_db_session
            with pytest.raises(StopAsyncIteration):
                await sessions.__anext__()

        mock_db_session.commit.assert_awaited_once()
        mock_db_session.rollback.assert_not_awaited()

    async def test_rolls_back_when_route_raises(self, mock_db_session: AsyncMock) -> None:
        with patch.object(base, "async_session_maker", _session_maker(mock_db_session)):
            sessions = get_db()
            await sessions.__anext__()
            with pytest.raises(RuntimeError):
                await sessions.athrow(RuntimeError("route failed"))

        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.commit.assert_not_awaited()
