"""RoomTransport abstract base class."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from notchvoice.config import ConnectOptions
from notchvoice.models.enums import ConnectionState, TrackKind

logger = logging.getLogger("notchvoice.transport")


@dataclass(frozen=True)
class RemoteTrack:
    """A media track published by another participant in the room."""

    sid: str
    kind: TrackKind
    participant_identity: str


# Callback type aliases
ConnectionStateCallback = Callable[[ConnectionState], Any]
DataReceivedCallback = Callable[[bytes, str | None], Any]
"""Callback for data channel messages: (payload, topic)."""
TrackCallback = Callable[[RemoteTrack], Any]


class RoomTransport(ABC):
    """Abstract base class for real-time audio room transports.

    A transport joins a room on a media server, publishes the local
    microphone, carries data channel messages in both directions and
    meters audio levels. Events are delivered through registered
    callbacks as soon as they occur; audio levels are polled.

    Callbacks are invoked synchronously on the event loop thread.
    Implementations whose SDK fires events from another thread must
    marshal them with ``loop.call_soon_threadsafe`` first.

    Example:
        transport = LiveKitRoomTransport()

        transport.on_connection_state(handle_state)
        transport.on_data_received(handle_data)

        await transport.connect("wss://rooms.example.com", token)
        await transport.set_microphone_enabled(True)
        await transport.send_data(b"hello", topic="system")
        await transport.disconnect()
    """

    def __init__(self) -> None:
        self._connection_state_callbacks: list[ConnectionStateCallback] = []
        self._data_callbacks: list[DataReceivedCallback] = []
        self._track_subscribed_callbacks: list[TrackCallback] = []
        self._track_unsubscribed_callbacks: list[TrackCallback] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport name (e.g. 'livekit', 'mock')."""
        ...

    @abstractmethod
    async def connect(
        self,
        url: str,
        token: str,
        *,
        options: ConnectOptions | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Join the room at *url* using *token*.

        Args:
            url: Media server URL (``ws://`` or ``wss://``).
            token: Access token for the room.
            options: Connection and audio capture options.
            metadata: Extra attributes for the local participant.

        Raises:
            TransportError: On auth or network failure.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the room and unpublish the microphone.

        Safe to call when not connected.
        """
        ...

    @abstractmethod
    async def set_microphone_enabled(self, enabled: bool) -> bool:
        """Publish or unpublish the local microphone.

        Returns:
            The resulting published state.

        Raises:
            TransportError: If the toggle failed.
        """
        ...

    @abstractmethod
    async def send_data(self, payload: bytes, *, topic: str) -> None:
        """Send a reliable data channel message on *topic*.

        Raises:
            TransportNotConnectedError: If no room is connected.
        """
        ...

    @property
    @abstractmethod
    def local_audio_level(self) -> float:
        """Latest local microphone level in [0.0, 1.0]."""
        ...

    @property
    @abstractmethod
    def remote_audio_level(self) -> float:
        """Latest level of the loudest remote participant in [0.0, 1.0]."""
        ...

    @property
    def connection_state(self) -> ConnectionState:
        """Current connection state. Override in transports that track it."""
        return ConnectionState.DISCONNECTED

    # -- Callback registration --

    def on_connection_state(self, callback: ConnectionStateCallback) -> None:
        """Register callback for connection state changes."""
        self._connection_state_callbacks.append(callback)

    def on_data_received(self, callback: DataReceivedCallback) -> None:
        """Register callback for inbound data channel messages."""
        self._data_callbacks.append(callback)

    def on_track_subscribed(self, callback: TrackCallback) -> None:
        """Register callback for remote tracks becoming available."""
        self._track_subscribed_callbacks.append(callback)

    def on_track_unsubscribed(self, callback: TrackCallback) -> None:
        """Register callback for remote tracks going away."""
        self._track_unsubscribed_callbacks.append(callback)

    # -- Event fan-out for subclasses --

    def _emit_connection_state(self, state: ConnectionState) -> None:
        for cb in self._connection_state_callbacks:
            self._invoke(cb, state)

    def _emit_data(self, payload: bytes, topic: str | None) -> None:
        for cb in self._data_callbacks:
            self._invoke(cb, payload, topic)

    def _emit_track_subscribed(self, track: RemoteTrack) -> None:
        for cb in self._track_subscribed_callbacks:
            self._invoke(cb, track)

    def _emit_track_unsubscribed(self, track: RemoteTrack) -> None:
        for cb in self._track_unsubscribed_callbacks:
            self._invoke(cb, track)

    def _invoke(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("Transport callback failed", extra={"transport": self.name})

    async def close(self) -> None:
        """Release all transport resources."""
        await self.disconnect()
