"""Tests for MockRoomTransport and the RoomTransport callback fan-out."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import MagicMock

import pytest

from notchvoice.core.errors import TransportError, TransportNotConnectedError
from notchvoice.models.enums import ConnectionState, TrackKind
from notchvoice.transport.base import RemoteTrack
from notchvoice.transport.mock import MockRoomTransport


class TestMockRoomTransport:
    async def test_connect_records_call(self) -> None:
        transport = MockRoomTransport()

        await transport.connect("ws://localhost:7880", "tok", metadata={"voice": "Eve"})

        assert transport.connection_state is ConnectionState.CONNECTED
        assert transport.calls[0].method == "connect"
        assert transport.calls[0].args["metadata"] == {"voice": "Eve"}

    async def test_state_changes_are_silent_by_default(self) -> None:
        transport = MockRoomTransport()
        states: list[ConnectionState] = []
        transport.on_connection_state(states.append)

        await transport.connect("ws://x", "tok")

        assert states == []

    async def test_emits_state_changes_when_asked(self) -> None:
        transport = MockRoomTransport(emit_state_changes=True)
        states: list[ConnectionState] = []
        transport.on_connection_state(states.append)

        await transport.connect("ws://x", "tok")
        await transport.disconnect()

        assert states == [
            ConnectionState.CONNECTING,
            ConnectionState.CONNECTED,
            ConnectionState.DISCONNECTED,
        ]

    async def test_fail_connect(self) -> None:
        transport = MockRoomTransport()
        transport.fail_connect("nope")

        with pytest.raises(TransportError, match="nope"):
            await transport.connect("ws://x", "tok")
        assert transport.connection_state is ConnectionState.DISCONNECTED

    async def test_connect_gate_holds_connect(self, advance: Any) -> None:
        transport = MockRoomTransport()
        transport.connect_gate = asyncio.Event()

        task = asyncio.create_task(transport.connect("ws://x", "tok"))
        await advance()
        assert transport.connection_state is ConnectionState.CONNECTING

        transport.connect_gate.set()
        await task
        assert transport.connection_state is ConnectionState.CONNECTED

    async def test_send_requires_connection(self) -> None:
        transport = MockRoomTransport()

        with pytest.raises(TransportNotConnectedError):
            await transport.send_data(b"hi", topic="system")

        await transport.connect("ws://x", "tok")
        await transport.send_data(b"hi", topic="system")
        assert transport.sent_data == [("system", b"hi")]

    async def test_microphone(self) -> None:
        transport = MockRoomTransport()

        assert await transport.set_microphone_enabled(True) is True
        assert transport.microphone_enabled is True

        transport.microphone_error = TransportError("busy")
        with pytest.raises(TransportError):
            await transport.set_microphone_enabled(False)
        assert transport.microphone_enabled is True

    async def test_disconnect_unpublishes_microphone(self) -> None:
        transport = MockRoomTransport()
        await transport.connect("ws://x", "tok")
        await transport.set_microphone_enabled(True)

        await transport.disconnect()

        assert transport.microphone_enabled is False
        assert transport.connection_state is ConnectionState.DISCONNECTED

    async def test_close(self) -> None:
        transport = MockRoomTransport()
        await transport.connect("ws://x", "tok")

        await transport.close()

        assert transport.calls[-1].method == "close"
        assert transport.connection_state is ConnectionState.DISCONNECTED

    def test_levels(self) -> None:
        transport = MockRoomTransport()
        transport.local_level = 0.25
        transport.remote_level = 0.75

        assert transport.local_audio_level == 0.25
        assert transport.remote_audio_level == 0.75


class TestSimulatedEvents:
    def test_simulate_data_encodes_text(self) -> None:
        transport = MockRoomTransport()
        received = MagicMock()
        transport.on_data_received(received)

        transport.simulate_data("hello", "user_transcript")
        transport.simulate_data(b"\x00\x01", None)

        assert received.call_args_list[0].args == (b"hello", "user_transcript")
        assert received.call_args_list[1].args == (b"\x00\x01", None)

    def test_simulate_tracks(self) -> None:
        transport = MockRoomTransport()
        subscribed: list[RemoteTrack] = []
        unsubscribed: list[RemoteTrack] = []
        transport.on_track_subscribed(subscribed.append)
        transport.on_track_unsubscribed(unsubscribed.append)

        track = transport.simulate_track_subscribed(TrackKind.VIDEO, sid="TR_cam")
        transport.simulate_track_unsubscribed(TrackKind.VIDEO, sid="TR_cam")

        assert subscribed == [track]
        assert unsubscribed == [RemoteTrack("TR_cam", TrackKind.VIDEO, "agent")]

    def test_failing_callback_does_not_block_others(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        transport = MockRoomTransport()
        states: list[ConnectionState] = []

        def broken(state: ConnectionState) -> None:
            raise RuntimeError("callback bug")

        transport.on_connection_state(broken)
        transport.on_connection_state(states.append)

        transport.simulate_connection_state(ConnectionState.RECONNECTING)

        assert states == [ConnectionState.RECONNECTING]
        assert transport.connection_state is ConnectionState.RECONNECTING
        assert "Transport callback failed" in caplog.text
