"""notchvoice -- Scripted voice session against the mock transport.

Walks a VoiceSession through a full conversation without a media server:
an activation URL starts the session, the "agent" streams a transcript,
runs a tool, speaks, and the session is torn down. Every session event
is printed as it happens, and a text meter shows the audio level.

Run with:
    uv run python examples/notch_session.py
"""

from __future__ import annotations

import asyncio
import json
import logging

from notchvoice import (
    AudioLevelChangedEvent,
    ContextSentEvent,
    MockRoomTransport,
    PhaseChangedEvent,
    SessionEvent,
    ToolStatusChangedEvent,
    TranscriptChangedEvent,
    VoiceSession,
    VoiceSettings,
    handle_activation_url,
    phase_name,
    status_text,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-24s %(levelname)-7s %(message)s",
)
logger = logging.getLogger("notch_session")

ACTIVATION_URL = "notchvoice://activate?session=demo-42&file=%2Fsrc%2Fapp.py"


def _level_bar(level: float, width: int = 30) -> str:
    """Render a text bar for a level in [0, 1]."""
    filled = int(level * width)
    return "[" + "#" * filled + "." * (width - filled) + "]"


def on_event(event: SessionEvent) -> None:
    match event:
        case PhaseChangedEvent(previous=previous, current=current):
            arrow = f"{phase_name(previous):>10} -> {phase_name(current):<10}"
            print(f"  phase  {arrow} {status_text(current)}")
        case TranscriptChangedEvent(item=item) if item is not None:
            print(f"  turn   {item.role}: {item.text}")
        case TranscriptChangedEvent(partial=partial) if partial:
            print(f"  ...    {partial}")
        case ToolStatusChangedEvent(status=status) if status is not None:
            print(f"  tool   {status.tool_name} ({status.kind.label})")
        case ContextSentEvent(prompt=prompt):
            print(f"  sent   {prompt!r}")
        case AudioLevelChangedEvent(level=level) if level > 0:
            print(f"  level  {_level_bar(level)}")


async def main() -> None:
    transport = MockRoomTransport(emit_state_changes=True)
    session = VoiceSession(transport, VoiceSettings(token="demo-token", level_interval=0.05))
    session.subscribe(on_event)

    # --- Activation: starts the session and queues the context ---------------
    await handle_activation_url(session, ACTIVATION_URL)

    # --- User speaks --------------------------------------------------------
    transport.local_level = 0.6
    await asyncio.sleep(0.1)
    transport.simulate_data("why does app", "partial_transcript")
    transport.simulate_data("why does app.py crash on startup?", "user_transcript")
    await session.stop_listening()

    # --- Agent runs a tool --------------------------------------------------
    transport.local_level = 0.0
    transport.simulate_data(json.dumps({"tool": "Grep", "input": "def main"}), "tool_status")
    await asyncio.sleep(0.1)
    transport.simulate_data("{}", "tool_done")

    # --- Agent answers ------------------------------------------------------
    transport.remote_level = 0.8
    transport.simulate_track_subscribed()
    transport.simulate_data("It reads a config file that", "partial_transcript")
    transport.simulate_data(
        "It reads a config file that does not exist yet.", "assistant_response"
    )
    await asyncio.sleep(0.1)
    transport.simulate_track_unsubscribed()

    # --- Done ---------------------------------------------------------------
    await session.close()
    logger.info("Transcript has %d turns", len(session.transcript))


if __name__ == "__main__":
    asyncio.run(main())
