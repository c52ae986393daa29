"""Voice session phases.

A phase is one of eight frozen dataclasses joined into the :data:`Phase`
union. Consumers are expected to ``match`` on it and close with
:func:`typing.assert_never` so that adding a phase breaks type checking
everywhere it is not handled.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import assert_never

from notchvoice.models.tool import ToolKind


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Connecting:
    pass


@dataclass(frozen=True)
class Connected:
    pass


@dataclass(frozen=True)
class Listening:
    pass


@dataclass(frozen=True)
class Processing:
    pass


@dataclass(frozen=True)
class Speaking:
    pass


@dataclass(frozen=True)
class UsingTool:
    tool: ToolKind


@dataclass(frozen=True)
class Error:
    message: str


type Phase = Idle | Connecting | Connected | Listening | Processing | Speaking | UsingTool | Error


def is_active(phase: Phase) -> bool:
    """Whether the audio pipeline is engaged in *phase*."""
    match phase:
        case Listening() | Processing() | Speaking() | UsingTool():
            return True
        case Idle() | Connecting() | Connected() | Error():
            return False
        case _:
            assert_never(phase)


def status_text(phase: Phase) -> str:
    """Human-readable caption for *phase*."""
    match phase:
        case Idle():
            return "Tap to start"
        case Connecting():
            return "Connecting..."
        case Connected():
            return "Connected"
        case Listening():
            return "Listening..."
        case Processing():
            return "Thinking..."
        case Speaking():
            return "Speaking..."
        case UsingTool(tool=tool):
            return tool.caption
        case Error(message=message):
            return f"Error: {message}"
        case _:
            assert_never(phase)


def phase_name(phase: Phase) -> str:
    """Lower-case name used in logs and events (``"using_tool"``)."""
    match phase:
        case Idle():
            return "idle"
        case Connecting():
            return "connecting"
        case Connected():
            return "connected"
        case Listening():
            return "listening"
        case Processing():
            return "processing"
        case Speaking():
            return "speaking"
        case UsingTool():
            return "using_tool"
        case Error():
            return "error"
        case _:
            assert_never(phase)
