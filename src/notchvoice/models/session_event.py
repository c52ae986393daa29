"""Events delivered to voice session observers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from notchvoice.models.context import ActivationContext
from notchvoice.models.enums import ConnectionState
from notchvoice.models.phase import Phase
from notchvoice.models.tool import ToolStatus
from notchvoice.models.transcript import TranscriptItem


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class PhaseChangedEvent:
    """The session moved from one phase to another."""

    previous: Phase
    """Phase before the transition."""

    current: Phase
    """Phase after the transition."""

    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ConnectionStateChangedEvent:
    """The transport reported a new connection state."""

    state: ConnectionState
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class TranscriptChangedEvent:
    """The transcript log or the partial utterance changed.

    ``item`` is set when a turn was appended and ``None`` when only the
    partial utterance changed or the log was cleared.
    """

    item: TranscriptItem | None
    """The appended turn, if any."""

    partial: str
    """Current partial utterance (may be empty)."""

    size: int
    """Number of turns in the log after the change."""

    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ToolStatusChangedEvent:
    """A tool started (``status`` set) or finished (``status`` is None)."""

    status: ToolStatus | None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class AudioLevelChangedEvent:
    """The visualizer level changed. ``level`` is in [0.0, 1.0]."""

    level: float
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ContextSentEvent:
    """An activation context prompt was delivered to the remote agent."""

    context: ActivationContext
    prompt: str
    timestamp: datetime = field(default_factory=_utcnow)


type SessionEvent = (
    PhaseChangedEvent
    | ConnectionStateChangedEvent
    | TranscriptChangedEvent
    | ToolStatusChangedEvent
    | AudioLevelChangedEvent
    | ContextSentEvent
)
