"""notchvoice - Voice session state machine for a notch-docked voice assistant."""

from notchvoice._version import __version__
from notchvoice.config import ConnectOptions, VoiceSettings
from notchvoice.core.activation import activate, handle_activation_url, parse_activation_url
from notchvoice.core.errors import (
    ConfigurationError,
    NotchVoiceError,
    TransportError,
    TransportNotConnectedError,
)
from notchvoice.core.meter import AudioLevelMeter, derive_audio_level
from notchvoice.core.router import DataMessageRouter
from notchvoice.core.session import SessionObserver, VoiceSession
from notchvoice.core.transcript import TranscriptStore
from notchvoice.models import (
    ActivationContext,
    AudioLevelChangedEvent,
    Connected,
    Connecting,
    ConnectionState,
    ConnectionStateChangedEvent,
    ContextSentEvent,
    DataTopic,
    Error,
    Idle,
    Listening,
    Phase,
    PhaseChangedEvent,
    Processing,
    SessionEvent,
    Speaking,
    ToolKind,
    ToolStatus,
    ToolStatusChangedEvent,
    TrackKind,
    TranscriptChangedEvent,
    TranscriptItem,
    TranscriptRole,
    UsingTool,
    VoiceIdentity,
    is_active,
    phase_name,
    status_text,
)
from notchvoice.transport import MockCall, MockRoomTransport, RemoteTrack, RoomTransport

__all__ = [
    "__version__",
    # Session
    "VoiceSession",
    "SessionObserver",
    "TranscriptStore",
    "DataMessageRouter",
    "AudioLevelMeter",
    "derive_audio_level",
    # Activation
    "activate",
    "handle_activation_url",
    "parse_activation_url",
    "ActivationContext",
    # Configuration
    "ConnectOptions",
    "VoiceSettings",
    "VoiceIdentity",
    # Errors
    "NotchVoiceError",
    "ConfigurationError",
    "TransportError",
    "TransportNotConnectedError",
    # Phases
    "Phase",
    "Idle",
    "Connecting",
    "Connected",
    "Listening",
    "Processing",
    "Speaking",
    "UsingTool",
    "Error",
    "is_active",
    "phase_name",
    "status_text",
    # Models
    "ConnectionState",
    "DataTopic",
    "ToolKind",
    "ToolStatus",
    "TrackKind",
    "TranscriptItem",
    "TranscriptRole",
    # Events
    "SessionEvent",
    "PhaseChangedEvent",
    "ConnectionStateChangedEvent",
    "TranscriptChangedEvent",
    "ToolStatusChangedEvent",
    "AudioLevelChangedEvent",
    "ContextSentEvent",
    # Transports
    "RoomTransport",
    "RemoteTrack",
    "MockCall",
    "MockRoomTransport",
]
