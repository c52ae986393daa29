"""Data models for notchvoice."""

from notchvoice.models.context import ActivationContext
from notchvoice.models.enums import (
    ConnectionState,
    DataTopic,
    TrackKind,
    TranscriptRole,
    VoiceIdentity,
)
from notchvoice.models.phase import (
    Connected,
    Connecting,
    Error,
    Idle,
    Listening,
    Phase,
    Processing,
    Speaking,
    UsingTool,
    is_active,
    phase_name,
    status_text,
)
from notchvoice.models.session_event import (
    AudioLevelChangedEvent,
    ConnectionStateChangedEvent,
    ContextSentEvent,
    PhaseChangedEvent,
    SessionEvent,
    ToolStatusChangedEvent,
    TranscriptChangedEvent,
)
from notchvoice.models.tool import ToolKind, ToolStatus
from notchvoice.models.transcript import TranscriptItem

__all__ = [
    "ActivationContext",
    "AudioLevelChangedEvent",
    "Connected",
    "Connecting",
    "ConnectionState",
    "ConnectionStateChangedEvent",
    "ContextSentEvent",
    "DataTopic",
    "Error",
    "Idle",
    "Listening",
    "Phase",
    "PhaseChangedEvent",
    "Processing",
    "SessionEvent",
    "Speaking",
    "ToolKind",
    "ToolStatus",
    "ToolStatusChangedEvent",
    "TrackKind",
    "TranscriptChangedEvent",
    "TranscriptItem",
    "TranscriptRole",
    "UsingTool",
    "VoiceIdentity",
    "is_active",
    "phase_name",
    "status_text",
]
