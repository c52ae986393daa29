"""Append-only conversation log with a partial-utterance slot."""

from __future__ import annotations

from notchvoice.models.enums import TranscriptRole
from notchvoice.models.transcript import TranscriptItem


class TranscriptStore:
    """Ordered log of conversation turns plus the current partial utterance.

    Items are never edited or removed individually. :meth:`clear` swaps in
    a fresh empty log in one step, so a reader holding :attr:`items` keeps
    a consistent snapshot.
    """

    def __init__(self) -> None:
        self._items: tuple[TranscriptItem, ...] = ()
        self._partial = ""

    @property
    def items(self) -> tuple[TranscriptItem, ...]:
        return self._items

    @property
    def partial(self) -> str:
        return self._partial

    def __len__(self) -> int:
        return len(self._items)

    def append(self, role: TranscriptRole, text: str) -> TranscriptItem:
        item = TranscriptItem(role=role, text=text)
        self._items = (*self._items, item)
        return item

    def set_partial(self, text: str) -> None:
        self._partial = text

    def clear_partial(self) -> None:
        self._partial = ""

    def clear(self) -> None:
        """Drop every item and the partial utterance."""
        self._items = ()
        self._partial = ""
