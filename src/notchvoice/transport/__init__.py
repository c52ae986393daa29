"""Room transports.

``LiveKitRoomTransport`` lives in :mod:`notchvoice.transport.livekit` and
is not imported here so that the ``livekit`` extra stays optional.
"""

from notchvoice.transport.base import (
    ConnectionStateCallback,
    DataReceivedCallback,
    RemoteTrack,
    RoomTransport,
    TrackCallback,
)
from notchvoice.transport.mock import MockCall, MockRoomTransport

__all__ = [
    "ConnectionStateCallback",
    "DataReceivedCallback",
    "MockCall",
    "MockRoomTransport",
    "RemoteTrack",
    "RoomTransport",
    "TrackCallback",
]
