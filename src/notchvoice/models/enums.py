"""All string enums for notchvoice."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class ConnectionState(StrEnum):
    """Room connection state as reported by the transport."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    RECONNECTING = "reconnecting"
    CONNECTED = "connected"


@unique
class TranscriptRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_STATUS = "tool_status"


@unique
class DataTopic(StrEnum):
    """Data channel topics exchanged with the remote agent."""

    TRANSCRIPT = "transcript"
    PARTIAL_TRANSCRIPT = "partial_transcript"
    FINAL_TRANSCRIPT = "final_transcript"
    ASSISTANT_RESPONSE = "assistant_response"
    USER_TRANSCRIPT = "user_transcript"
    TOOL_STATUS = "tool_status"
    TOOL_DONE = "tool_done"
    SYSTEM = "system"


@unique
class VoiceIdentity(StrEnum):
    """Voice the remote agent speaks with."""

    ARA = "Ara"
    EVE = "Eve"
    LEO = "Leo"

    @property
    def display_name(self) -> str:
        return self.value


@unique
class TrackKind(StrEnum):
    AUDIO = "audio"
    VIDEO = "video"
