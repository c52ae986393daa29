"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any

import pytest

from notchvoice.config import VoiceSettings
from notchvoice.core.session import VoiceSession
from notchvoice.models.session_event import SessionEvent
from notchvoice.transport.mock import MockRoomTransport


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

    Replaces ``await asyncio.sleep(0.05)`` patterns with zero-delay
    event loop yields::

        await advance()       # 5 yields (default)
        await advance(10)     # 10 yields for heavier workloads
    """

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


@pytest.fixture
def transport() -> MockRoomTransport:
    return MockRoomTransport(emit_state_changes=True)


@pytest.fixture
def settings() -> VoiceSettings:
    return VoiceSettings(token="test-token", level_interval=0.001)


@pytest.fixture
async def session(
    transport: MockRoomTransport, settings: VoiceSettings
) -> AsyncIterator[VoiceSession]:
    session = VoiceSession(transport, settings)
    yield session
    await session.close()


@pytest.fixture
def events(session: VoiceSession) -> list[SessionEvent]:
    """Every event the session publishes, in order."""
    received: list[SessionEvent] = []
    session.subscribe(received.append)
    return received

