"""Mock room transport for testing."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from notchvoice.config import ConnectOptions
from notchvoice.core.errors import TransportError, TransportNotConnectedError
from notchvoice.models.enums import ConnectionState, TrackKind
from notchvoice.transport.base import RemoteTrack, RoomTransport


@dataclass
class MockCall:
    """Record of a method call for test assertions."""

    method: str
    args: dict[str, Any] = field(default_factory=dict)


class MockRoomTransport(RoomTransport):
    """Mock room transport for testing.

    Tracks all method calls and provides helpers to simulate room events
    (connection state changes, data messages, remote tracks). Failures can
    be injected through :attr:`connect_error`, :attr:`microphone_error`
    and :attr:`send_error`. Setting :attr:`connect_gate` to an unset
    :class:`asyncio.Event` holds :meth:`connect` in flight until the test
    sets it.

    Example:
        transport = MockRoomTransport()

        await transport.connect("ws://localhost:7880", "token")
        assert transport.calls[-1].method == "connect"

        # Simulate events from the room
        transport.simulate_data(b"hello", "user_transcript")
        transport.simulate_track_subscribed()
    """

    def __init__(self, *, emit_state_changes: bool = False) -> None:
        """Initialize the mock transport.

        Args:
            emit_state_changes: If True, :meth:`connect` and :meth:`disconnect`
                fire connection state callbacks like a real SDK would.
        """
        super().__init__()
        self.calls: list[MockCall] = []
        self.sent_data: list[tuple[str, bytes]] = []
        self.microphone_enabled = False
        self.connect_error: Exception | None = None
        self.microphone_error: Exception | None = None
        self.send_error: Exception | None = None
        self.connect_gate: asyncio.Event | None = None
        self.local_level = 0.0
        self.remote_level = 0.0
        self._emit_state_changes = emit_state_changes
        self._state = ConnectionState.DISCONNECTED

    @property
    def name(self) -> str:
        return "MockRoomTransport"

    @property
    def connection_state(self) -> ConnectionState:
        return self._state

    @property
    def local_audio_level(self) -> float:
        return self.local_level

    @property
    def remote_audio_level(self) -> float:
        return self.remote_level

    async def connect(
        self,
        url: str,
        token: str,
        *,
        options: ConnectOptions | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.calls.append(
            MockCall(
                method="connect",
                args={"url": url, "token": token, "options": options, "metadata": metadata},
            )
        )
        self._set_state(ConnectionState.CONNECTING)
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.connect_error is not None:
            self._set_state(ConnectionState.DISCONNECTED)
            raise self.connect_error
        self._set_state(ConnectionState.CONNECTED)

    async def disconnect(self) -> None:
        self.calls.append(MockCall(method="disconnect"))
        self.microphone_enabled = False
        self._set_state(ConnectionState.DISCONNECTED)

    async def set_microphone_enabled(self, enabled: bool) -> bool:
        self.calls.append(MockCall(method="set_microphone_enabled", args={"enabled": enabled}))
        if self.microphone_error is not None:
            raise self.microphone_error
        self.microphone_enabled = enabled
        return self.microphone_enabled

    async def send_data(self, payload: bytes, *, topic: str) -> None:
        self.calls.append(MockCall(method="send_data", args={"topic": topic, "size": len(payload)}))
        if self.send_error is not None:
            raise self.send_error
        if self._state is not ConnectionState.CONNECTED:
            raise TransportNotConnectedError("Cannot send data: room is not connected")
        self.sent_data.append((topic, payload))

    async def close(self) -> None:
        self.calls.append(MockCall(method="close"))
        self.microphone_enabled = False
        self._state = ConnectionState.DISCONNECTED

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        if self._emit_state_changes:
            self._emit_connection_state(state)

    # -- Test helpers: simulate room events --

    def simulate_connection_state(self, state: ConnectionState) -> None:
        """Simulate the SDK reporting a connection state change."""
        self._state = state
        self._emit_connection_state(state)

    def simulate_data(self, payload: bytes | str, topic: str | None) -> None:
        """Simulate a data channel message from the remote agent."""
        if isinstance(payload, str):
            payload = payload.encode()
        self._emit_data(payload, topic)

    def simulate_track_subscribed(
        self,
        kind: TrackKind = TrackKind.AUDIO,
        *,
        sid: str = "TR_agent",
        participant_identity: str = "agent",
    ) -> RemoteTrack:
        """Simulate a remote participant's track being subscribed."""
        track = RemoteTrack(sid=sid, kind=kind, participant_identity=participant_identity)
        self._emit_track_subscribed(track)
        return track

    def simulate_track_unsubscribed(
        self,
        kind: TrackKind = TrackKind.AUDIO,
        *,
        sid: str = "TR_agent",
        participant_identity: str = "agent",
    ) -> RemoteTrack:
        """Simulate a remote participant's track going away."""
        track = RemoteTrack(sid=sid, kind=kind, participant_identity=participant_identity)
        self._emit_track_unsubscribed(track)
        return track

    def fail_connect(self, message: str = "connection refused") -> None:
        """Make :meth:`connect` raise :class:`TransportError` until reset."""
        self.connect_error = TransportError(message)
