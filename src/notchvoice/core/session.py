"""VoiceSession: the voice session state machine."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any
from uuid import uuid4

from notchvoice.config import VoiceSettings
from notchvoice.core.errors import ConfigurationError
from notchvoice.core.meter import AudioLevelMeter, derive_audio_level
from notchvoice.core.router import DataMessageRouter
from notchvoice.core.transcript import TranscriptStore
from notchvoice.models.context import ActivationContext
from notchvoice.models.enums import ConnectionState, DataTopic, TrackKind, TranscriptRole
from notchvoice.models.phase import (
    Connected,
    Connecting,
    Error,
    Idle,
    Listening,
    Phase,
    Processing,
    Speaking,
    UsingTool,
    is_active,
    phase_name,
    status_text,
)
from notchvoice.models.session_event import (
    AudioLevelChangedEvent,
    ConnectionStateChangedEvent,
    ContextSentEvent,
    PhaseChangedEvent,
    SessionEvent,
    ToolStatusChangedEvent,
    TranscriptChangedEvent,
)
from notchvoice.models.tool import ToolStatus
from notchvoice.models.transcript import TranscriptItem
from notchvoice.transport.base import RemoteTrack, RoomTransport

logger = logging.getLogger("notchvoice.session")

SessionObserver = Callable[[SessionEvent], Any]
"""Observer callback. If it returns a coroutine, that runs as a tracked task."""


class VoiceSession:
    """State machine for one voice assistant session.

    Owns the :data:`~notchvoice.models.phase.Phase`, drives the room
    transport (connect, microphone, data channel) and turns transport
    events into phase changes, transcript turns and tool status. The
    presentation layer reads the properties and/or subscribes to
    :data:`~notchvoice.models.session_event.SessionEvent` notifications.

    All methods must be called from the event loop that owns the session.
    Transport events are applied as soon as they arrive, even while a
    :meth:`connect` is awaiting the transport. Each connect and disconnect
    bumps a generation counter so that a connect which completes after
    being superseded is discarded instead of resurrecting the session.

    Example:
        transport = MockRoomTransport()
        session = VoiceSession(transport, VoiceSettings(token="secret"))

        session.subscribe(lambda event: print(event))
        await session.connect(ActivationContext.from_params({"session": "abc"}))
        ...
        await session.disconnect()
    """

    def __init__(self, transport: RoomTransport, settings: VoiceSettings | None = None) -> None:
        self._transport = transport
        self._settings = settings or VoiceSettings()
        self._phase: Phase = Idle()
        self._connection_state = ConnectionState.DISCONNECTED
        self._context: ActivationContext | None = None
        self._tool_status: ToolStatus | None = None
        self._transcript = TranscriptStore()
        self._generation = 0
        self._observers: dict[str, SessionObserver] = {}
        self._scheduled_tasks: set[asyncio.Task[Any]] = set()

        self._meter = AudioLevelMeter(
            self._sample_audio_level,
            self._on_audio_level,
            interval=self._settings.level_interval,
        )

        self._router = DataMessageRouter()
        self._router.register(
            (DataTopic.TRANSCRIPT, DataTopic.PARTIAL_TRANSCRIPT), self._on_partial_transcript
        )
        self._router.register(
            (DataTopic.FINAL_TRANSCRIPT, DataTopic.ASSISTANT_RESPONSE), self._on_assistant_turn
        )
        self._router.register(DataTopic.USER_TRANSCRIPT, self._on_user_turn)
        self._router.register(DataTopic.TOOL_STATUS, self._on_tool_status)
        self._router.register(DataTopic.TOOL_DONE, self._on_tool_done)

        transport.on_connection_state(self._on_connection_state)
        transport.on_data_received(self._router.dispatch)
        transport.on_track_subscribed(self._on_track_subscribed)
        transport.on_track_unsubscribed(self._on_track_unsubscribed)

    # -- State --

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def status_text(self) -> str:
        return status_text(self._phase)

    @property
    def is_active(self) -> bool:
        return is_active(self._phase)

    @property
    def connection_state(self) -> ConnectionState:
        """Last connection state reported by the transport."""
        return self._connection_state

    @property
    def activation_context(self) -> ActivationContext | None:
        return self._context

    @property
    def tool_status(self) -> ToolStatus | None:
        return self._tool_status

    @property
    def audio_level(self) -> float:
        return self._meter.level

    @property
    def transcript(self) -> tuple[TranscriptItem, ...]:
        return self._transcript.items

    @property
    def current_utterance(self) -> str:
        return self._transcript.partial

    @property
    def settings(self) -> VoiceSettings:
        return self._settings

    @property
    def transport(self) -> RoomTransport:
        return self._transport

    # -- Observers --

    def subscribe(self, observer: SessionObserver) -> str:
        """Register *observer* for all session events.

        Returns:
            A subscription ID for :meth:`unsubscribe`.
        """
        sub_id = uuid4().hex
        self._observers[sub_id] = observer
        return sub_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove an observer. Returns True if it was registered."""
        return self._observers.pop(subscription_id, None) is not None

    # -- Lifecycle --

    async def connect(self, context: ActivationContext | None = None) -> None:
        """Join the room and start listening.

        Only acts from ``Idle`` or ``Error``; in any other phase the call is
        ignored. Failures end in ``Error(message)`` and are not retried.
        """
        if not isinstance(self._phase, Idle | Error):
            logger.info("connect() ignored in phase %s", phase_name(self._phase))
            return

        self._generation += 1
        generation = self._generation
        self._set_phase(Connecting())
        if context is not None and not context.is_empty:
            self._context = context

        try:
            url, token = self._settings.validate_for_connect()
        except ConfigurationError as exc:
            logger.warning("Cannot connect: %s", exc)
            self._set_phase(Error(str(exc)))
            return

        logger.info("Connecting to %s via %s", url, self._transport.name)
        try:
            await self._transport.connect(
                url,
                token,
                options=self._settings.connect_options,
                metadata={"voice": self._settings.voice.value},
            )
        except Exception as exc:
            if generation != self._generation:
                logger.info("Discarding failure of superseded connect: %s", exc)
                return
            logger.warning("Connection failed: %s", exc, extra={"transport": self._transport.name})
            self._set_phase(Error(str(exc) or type(exc).__name__))
            return

        if self._superseded(generation):
            logger.info("Discarding superseded connect in phase %s", phase_name(self._phase))
            if isinstance(self._phase, Idle):
                # The room joined after the session was torn down.
                await self._disconnect_transport()
            return

        if isinstance(self._phase, Connecting | Connected):
            self._set_phase(Listening())
        self._meter.start()
        await self._set_microphone(True)

        if self._superseded(generation):
            return
        # Every successful connect delivers the stored context.
        if self._context is not None:
            await self._send_context(self._context)

    async def disconnect(self) -> None:
        """Leave the room. Always ends in ``Idle``; the transcript is kept."""
        self._generation += 1
        self._meter.stop()
        await self._disconnect_transport()
        self._set_connection_state(ConnectionState.DISCONNECTED)
        self._reset_to_idle()

    async def _disconnect_transport(self) -> None:
        try:
            await self._transport.disconnect()
        except Exception:
            logger.warning("Error while disconnecting transport", exc_info=True)

    async def close(self) -> None:
        """Disconnect and cancel any observer tasks still running."""
        await self.disconnect()
        tasks = list(self._scheduled_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._scheduled_tasks.clear()

    # -- Activation context --

    async def set_activation_context(self, context: ActivationContext) -> None:
        """Store *context* and deliver it to the agent when possible.

        With a live session the prompt is sent right away, on every call.
        While idle or connecting it is held for the next successful
        :meth:`connect`. The stored context is sent again after every
        successful connect.
        """
        self._context = context
        logger.info(
            "Activation context set",
            extra={"session_id": context.session_id, "phase": phase_name(self._phase)},
        )
        if isinstance(self._phase, Idle | Connecting):
            return
        await self._send_context(context)

    async def _send_context(self, context: ActivationContext) -> None:
        prompt = context.to_system_prompt()
        if prompt is None:
            return
        try:
            await self._transport.send_data(prompt.encode("utf-8"), topic=DataTopic.SYSTEM)
        except Exception as exc:
            logger.warning("Failed to send activation context: %s", exc)
            return
        logger.info("Sent activation context to agent", extra={"session_id": context.session_id})
        self._notify(ContextSentEvent(context=context, prompt=prompt))

    # -- Microphone gating --

    async def start_listening(self) -> None:
        """Open the microphone. Only acts from ``Connected``."""
        if not isinstance(self._phase, Connected):
            logger.debug("start_listening() ignored in phase %s", phase_name(self._phase))
            return
        self._set_phase(Listening())
        await self._set_microphone(True)

    async def stop_listening(self) -> None:
        """Close the microphone and wait for the agent. Only acts from ``Listening``."""
        if not isinstance(self._phase, Listening):
            logger.debug("stop_listening() ignored in phase %s", phase_name(self._phase))
            return
        self._set_phase(Processing())
        await self._set_microphone(False)

    async def _set_microphone(self, enabled: bool) -> bool:
        try:
            return await self._transport.set_microphone_enabled(enabled)
        except Exception as exc:
            logger.warning("Failed to set microphone enabled=%s: %s", enabled, exc)
            return False

    def clear_transcript(self) -> None:
        """Empty the transcript log and the partial utterance."""
        self._transcript.clear()
        self._notify_transcript(None)

    # -- Transport events --

    def _on_connection_state(self, state: ConnectionState) -> None:
        self._set_connection_state(state)
        match state:
            case ConnectionState.DISCONNECTED:
                self._meter.stop()
                self._reset_to_idle()
            case ConnectionState.CONNECTING | ConnectionState.RECONNECTING:
                self._set_phase(Connecting())
            case ConnectionState.CONNECTED:
                # A repeated "connected" must not demote an active phase.
                if isinstance(self._phase, Connecting):
                    self._set_phase(Connected())

    def _on_track_subscribed(self, track: RemoteTrack) -> None:
        if track.kind is TrackKind.AUDIO:
            self._set_phase(Speaking())

    def _on_track_unsubscribed(self, track: RemoteTrack) -> None:
        if track.kind is TrackKind.AUDIO and isinstance(self._phase, Speaking):
            self._set_phase(Connected())

    def _on_partial_transcript(self, text: str) -> None:
        self._transcript.set_partial(text)
        self._notify_transcript(None)

    def _on_assistant_turn(self, text: str) -> None:
        item = self._transcript.append(TranscriptRole.ASSISTANT, text)
        self._transcript.clear_partial()
        self._notify_transcript(item)

    def _on_user_turn(self, text: str) -> None:
        item = self._transcript.append(TranscriptRole.USER, text)
        self._notify_transcript(item)

    def _on_tool_status(self, text: str) -> None:
        status = ToolStatus.from_payload(text)
        if status is None:
            return
        self._set_tool_status(status)
        self._set_phase(UsingTool(status.kind))

    def _on_tool_done(self, text: str) -> None:
        self._set_tool_status(None)
        if isinstance(self._phase, UsingTool):
            self._set_phase(Processing())

    # -- Audio level --

    def _sample_audio_level(self) -> float:
        return derive_audio_level(
            self._phase,
            self._transport.local_audio_level,
            self._transport.remote_audio_level,
        )

    def _on_audio_level(self, level: float) -> None:
        self._notify(AudioLevelChangedEvent(level=level))

    # -- State helpers --

    def _superseded(self, generation: int) -> bool:
        return generation != self._generation or isinstance(self._phase, Idle | Error)

    def _reset_to_idle(self) -> None:
        """Drop per-turn state (tool status, partial utterance) and go ``Idle``."""
        self._set_tool_status(None)
        if self._transcript.partial:
            self._transcript.clear_partial()
            self._notify_transcript(None)
        self._set_phase(Idle())

    def _set_phase(self, phase: Phase) -> None:
        if phase == self._phase:
            return
        previous = self._phase
        self._phase = phase
        logger.debug("Phase %s -> %s", phase_name(previous), phase_name(phase))
        self._notify(PhaseChangedEvent(previous=previous, current=phase))

    def _set_connection_state(self, state: ConnectionState) -> None:
        if state is self._connection_state:
            return
        self._connection_state = state
        self._notify(ConnectionStateChangedEvent(state=state))

    def _set_tool_status(self, status: ToolStatus | None) -> None:
        if status is None and self._tool_status is None:
            return
        self._tool_status = status
        self._notify(ToolStatusChangedEvent(status=status))

    def _notify_transcript(self, item: TranscriptItem | None) -> None:
        self._notify(
            TranscriptChangedEvent(
                item=item,
                partial=self._transcript.partial,
                size=len(self._transcript),
            )
        )

    def _notify(self, event: SessionEvent) -> None:
        for observer in list(self._observers.values()):
            try:
                result = observer(event)
            except Exception:
                logger.exception(
                    "Session observer failed", extra={"event_type": type(event).__name__}
                )
                continue
            if inspect.iscoroutine(result):
                self._track_task(result, name=f"observer:{type(event).__name__}")

    def _track_task(self, coro: Any, *, name: str) -> None:
        """Run an observer coroutine as a tracked task with error logging."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop for async observer %s", name)
            coro.close()
            return
        task = loop.create_task(coro, name=name)
        self._scheduled_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        """Done-callback: log exceptions and remove from tracked set."""
        self._scheduled_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Unhandled exception in task %s: %s",
                task.get_name(),
                exc,
                exc_info=exc,
            )
