"""Tool categories and the in-flight tool status record."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum, unique

logger = logging.getLogger("notchvoice.models.tool")


@unique
class ToolKind(StrEnum):
    """Category of tool the remote agent is running."""

    SEARCH = "search"
    CODE = "code"
    API = "api"
    FILE = "file"
    COMPUTE = "compute"
    MEMORY = "memory"
    NETWORK = "network"
    VISION = "vision"
    WRITE = "write"
    CONNECTING = "connecting"
    ANALYZING = "analyzing"
    RESEARCHING = "researching"
    SYNTHESIZING = "synthesizing"
    SUMMARIZING = "summarizing"

    @property
    def label(self) -> str:
        """Short display label (e.g. ``"Searching"``)."""
        return _LABELS[self][0]

    @property
    def caption(self) -> str:
        """Status caption shown while the tool runs."""
        return _LABELS[self][1]

    @classmethod
    def from_tool_name(cls, name: str) -> ToolKind:
        """Classify a free-text tool name.

        Matching is a case-insensitive substring test against
        :data:`_NAME_RULES`; the first rule that matches wins and
        :attr:`COMPUTE` is returned when none do.

        Example:
            >>> ToolKind.from_tool_name("WebFetch")
            <ToolKind.API: 'api'>
        """
        lowered = name.lower()
        for needles, kind in _NAME_RULES:
            if any(needle in lowered for needle in needles):
                return kind
        return cls.COMPUTE


_LABELS: dict[ToolKind, tuple[str, str]] = {
    ToolKind.SEARCH: ("Searching", "Searching the codebase..."),
    ToolKind.CODE: ("Running", "Running a command..."),
    ToolKind.API: ("Fetching", "Calling out to the web..."),
    ToolKind.FILE: ("Reading", "Reading files..."),
    ToolKind.COMPUTE: ("Working", "Working on it..."),
    ToolKind.MEMORY: ("Remembering", "Checking memory..."),
    ToolKind.NETWORK: ("Networking", "Talking to other services..."),
    ToolKind.VISION: ("Looking", "Looking at an image..."),
    ToolKind.WRITE: ("Writing", "Editing files..."),
    ToolKind.CONNECTING: ("Connecting", "Connecting to tools..."),
    ToolKind.ANALYZING: ("Analyzing", "Analyzing results..."),
    ToolKind.RESEARCHING: ("Researching", "Delegating to an agent..."),
    ToolKind.SYNTHESIZING: ("Synthesizing", "Putting it together..."),
    ToolKind.SUMMARIZING: ("Summarizing", "Summarizing..."),
}

# Order matters: "WebSearch" must classify as search before the "web" rule.
_NAME_RULES: tuple[tuple[tuple[str, ...], ToolKind], ...] = (
    (("search", "grep", "glob"), ToolKind.SEARCH),
    (("read", "file"), ToolKind.FILE),
    (("write", "edit"), ToolKind.WRITE),
    (("bash", "code"), ToolKind.CODE),
    (("web", "fetch", "api"), ToolKind.API),
    (("task", "agent"), ToolKind.RESEARCHING),
)


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class ToolStatus:
    """A tool currently running on the remote agent.

    At most one is live at a time; a newer status replaces the older one.
    """

    tool_name: str
    input: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def kind(self) -> ToolKind:
        return ToolKind.from_tool_name(self.tool_name)

    @classmethod
    def from_payload(cls, payload: bytes | str) -> ToolStatus | None:
        """Parse a ``tool_status`` data message.

        The payload is a JSON object ``{"tool": str, "input": str?}``.
        Returns ``None`` for anything malformed.
        """
        try:
            data = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.debug("Ignoring non-JSON tool status payload")
            return None
        if not isinstance(data, dict):
            return None
        tool = data.get("tool")
        if not isinstance(tool, str) or not tool:
            logger.debug("Ignoring tool status without a tool name")
            return None
        raw_input = data.get("input")
        if raw_input is not None and not isinstance(raw_input, str):
            raw_input = json.dumps(raw_input)
        return cls(tool_name=tool, input=raw_input)
