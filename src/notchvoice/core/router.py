"""Topic-keyed dispatch of inbound data channel messages."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

logger = logging.getLogger("notchvoice.router")

TopicHandler = Callable[[str], Any]
"""Handler for one topic; receives the UTF-8 decoded payload."""


class DataMessageRouter:
    """Routes data channel messages to at most one handler per topic.

    Payloads that are not valid UTF-8 and messages on topics without a
    handler are dropped without raising.

    Example:
        router = DataMessageRouter()
        router.register("user_transcript", store_user_turn)
        router.dispatch(b"hello", "user_transcript")
    """

    def __init__(self) -> None:
        self._handlers: dict[str, TopicHandler] = {}

    def register(self, topics: str | Iterable[str], handler: TopicHandler) -> None:
        """Bind *handler* to one or more topics.

        Raises:
            ValueError: If a topic already has a handler.
        """
        names = [topics] if isinstance(topics, str) else list(topics)
        for topic in names:
            if topic in self._handlers:
                raise ValueError(f"Topic {topic!r} already has a handler")
        for topic in names:
            self._handlers[topic] = handler

    def unregister(self, topic: str) -> bool:
        """Remove the handler for *topic*. Returns True if one existed."""
        return self._handlers.pop(topic, None) is not None

    @property
    def topics(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def dispatch(self, payload: bytes, topic: str | None) -> bool:
        """Deliver *payload* to the handler for *topic*.

        Returns:
            True if a handler ran, False if the message was ignored.
        """
        if topic is None:
            logger.debug("Ignoring data message without topic")
            return False
        handler = self._handlers.get(topic)
        if handler is None:
            logger.debug("Ignoring data message on unrecognized topic %r", topic)
            return False
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Ignoring non-UTF-8 payload on topic %r", topic)
            return False
        handler(text)
        return True
