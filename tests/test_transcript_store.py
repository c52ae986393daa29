"""Tests for TranscriptStore."""

from __future__ import annotations

from notchvoice.core.transcript import TranscriptStore
from notchvoice.models.enums import TranscriptRole


class TestTranscriptStore:
    def test_starts_empty(self) -> None:
        store = TranscriptStore()

        assert store.items == ()
        assert store.partial == ""
        assert len(store) == 0

    def test_append_keeps_order(self) -> None:
        store = TranscriptStore()

        first = store.append(TranscriptRole.USER, "hi")
        second = store.append(TranscriptRole.ASSISTANT, "hello!")

        assert store.items == (first, second)
        assert first.id != second.id
        assert first.timestamp <= second.timestamp

    def test_partial_is_independent_of_items(self) -> None:
        store = TranscriptStore()
        store.set_partial("typing")

        store.append(TranscriptRole.USER, "done")

        assert store.partial == "typing"
        store.clear_partial()
        assert store.partial == ""
        assert len(store) == 1

    def test_clear_leaves_old_snapshot_intact(self) -> None:
        store = TranscriptStore()
        store.append(TranscriptRole.USER, "one")
        store.set_partial("tw")
        snapshot = store.items

        store.clear()

        assert store.items == ()
        assert store.partial == ""
        assert len(snapshot) == 1
