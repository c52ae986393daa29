"""Transcript entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from notchvoice.models.enums import TranscriptRole


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class TranscriptItem:
    """One turn of the conversation. Immutable once appended."""

    role: TranscriptRole
    text: str
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=_utcnow)
