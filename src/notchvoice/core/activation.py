"""Entry point for external activation requests (URL scheme, wake word)."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from notchvoice.core.session import VoiceSession
from notchvoice.models.context import ActivationContext
from notchvoice.models.phase import Idle

logger = logging.getLogger("notchvoice.activation")

ACTIVATE_HOST = "activate"


def parse_activation_url(url: str) -> ActivationContext | None:
    """Parse ``<scheme>://activate?...`` into an activation context.

    Returns ``None`` for URLs that are not activation requests.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        logger.debug("Ignoring unparseable activation URL")
        return None
    if parts.hostname != ACTIVATE_HOST:
        return None
    return ActivationContext.from_url(url)


async def activate(session: VoiceSession, context: ActivationContext | None = None) -> None:
    """Start a session, or hand a new context to the running one.

    When idle the session connects with *context*. Otherwise a non-empty
    context replaces the current one and is sent to the agent.
    """
    context = context or ActivationContext()
    logger.info(
        "Activating with context: session=%s, url=%s",
        context.session_id or "none",
        context.url or "none",
    )
    if isinstance(session.phase, Idle):
        await session.connect(context)
    elif not context.is_empty:
        await session.set_activation_context(context)


async def handle_activation_url(session: VoiceSession, url: str) -> bool:
    """Activate *session* from a URL event.

    Returns:
        True if the URL was an activation request.
    """
    context = parse_activation_url(url)
    if context is None:
        logger.debug("Ignoring non-activation URL")
        return False
    await activate(session, context)
    return True
