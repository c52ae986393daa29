"""notchvoice -- Live voice session over LiveKit.

Joins a LiveKit room with the local microphone, prints phase changes and
transcript turns, and leaves on Ctrl+C.

Prerequisites:
    pip install notchvoice[livekit,local-audio]

Run with:
    NOTCHVOICE_SERVER_URL=wss://... NOTCHVOICE_TOKEN=... \\
        uv run python examples/livekit_notch.py [activation-url]

Environment variables:
    NOTCHVOICE_SERVER_URL   LiveKit server URL (default: ws://localhost:7880)
    NOTCHVOICE_TOKEN        (required) room access token
    NOTCHVOICE_VOICE        Agent voice: Ara, Eve or Leo (default: Ara)
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from notchvoice import (
    ActivationContext,
    Error,
    PhaseChangedEvent,
    SessionEvent,
    TranscriptChangedEvent,
    VoiceSession,
    VoiceSettings,
    activate,
    parse_activation_url,
)
from notchvoice.transport.livekit import LiveKitRoomTransport

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
)
logger = logging.getLogger("livekit_notch")


def on_event(event: SessionEvent) -> None:
    if isinstance(event, PhaseChangedEvent):
        logger.info("Phase: %s", event.current)
    elif isinstance(event, TranscriptChangedEvent) and event.item is not None:
        logger.info("%s: %s", event.item.role, event.item.text)


async def main() -> None:
    settings = VoiceSettings.from_env()
    context = ActivationContext()
    if len(sys.argv) > 1:
        context = parse_activation_url(sys.argv[1]) or context

    session = VoiceSession(LiveKitRoomTransport(), settings)
    session.subscribe(on_event)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await activate(session, context)
    if isinstance(session.phase, Error):
        logger.error("Could not start session: %s", session.phase.message)
        await session.close()
        return

    logger.info("Talking. Press Ctrl+C to leave.")
    await stop.wait()
    await session.close()
    await session.transport.close()


if __name__ == "__main__":
    asyncio.run(main())
