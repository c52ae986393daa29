"""LiveKit room transport.

Joins a LiveKit room, publishes the local microphone (captured with
``sounddevice``), relays data channel messages and meters audio levels.

Requires the ``livekit`` optional dependency, and ``sounddevice`` when
the microphone is captured locally::

    pip install notchvoice[livekit,local-audio]

Usage::

    from notchvoice.transport.livekit import LiveKitRoomTransport

    transport = LiveKitRoomTransport()
    session = VoiceSession(transport, VoiceSettings.from_env())
    await session.connect()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from notchvoice.config import ConnectOptions
from notchvoice.core.errors import TransportError, TransportNotConnectedError
from notchvoice.models.enums import ConnectionState, TrackKind
from notchvoice.transport.base import RemoteTrack, RoomTransport
from notchvoice.transport.utils import normalized_level

if TYPE_CHECKING:
    import sounddevice as sd
    from livekit import rtc

logger = logging.getLogger("notchvoice.transport.livekit")

# APM requires 10 ms frames.
_FRAME_DURATION_MS = 10

_STATE_BY_NAME: dict[str, ConnectionState] = {
    "CONN_DISCONNECTED": ConnectionState.DISCONNECTED,
    "CONN_CONNECTED": ConnectionState.CONNECTED,
    "CONN_RECONNECTING": ConnectionState.RECONNECTING,
}


def _import_livekit() -> Any:
    """Import the LiveKit realtime SDK, raising a clear error if missing."""
    try:
        from livekit import rtc as _rtc

        return _rtc
    except ImportError as exc:
        raise ImportError(
            "livekit is required for LiveKitRoomTransport. "
            "Install it with: pip install notchvoice[livekit]"
        ) from exc


def _import_sounddevice() -> Any:
    """Import sounddevice, raising a clear error if missing."""
    try:
        import sounddevice as _sd

        return _sd
    except ImportError as exc:
        raise ImportError(
            "sounddevice is required for microphone capture. "
            "Install it with: pip install notchvoice[local-audio]"
        ) from exc


class LiveKitRoomTransport(RoomTransport):
    """Room transport backed by the LiveKit Python SDK.

    SDK events arrive on the event loop that called :meth:`connect` and
    are forwarded to registered callbacks unchanged in order. Microphone
    frames come from the PortAudio thread and are marshalled onto that
    loop before being captured into the published track.
    """

    def __init__(
        self,
        *,
        capture_microphone: bool = True,
        input_device: int | str | None = None,
    ) -> None:
        """Initialize the LiveKit transport.

        Args:
            capture_microphone: If True, read the system microphone with
                ``sounddevice`` while the microphone is published. Set to
                False to feed frames yourself via :meth:`capture_frame`.
            input_device: ``sounddevice`` input device (index or name).
                ``None`` uses the system default.
        """
        super().__init__()
        self._rtc = _import_livekit()
        self._sd: Any = _import_sounddevice() if capture_microphone else None
        self._input_device = input_device
        self._options = ConnectOptions()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._room: rtc.Room | None = None
        self._state = ConnectionState.DISCONNECTED

        self._audio_source: rtc.AudioSource | None = None
        self._apm: rtc.AudioProcessingModule | None = None
        self._mic_publication: rtc.LocalTrackPublication | None = None
        self._input_stream: sd.RawInputStream | None = None

        self._local_level = 0.0
        self._remote_levels: dict[str, float] = {}
        self._remote_tasks: dict[str, asyncio.Task[None]] = {}
        self._scheduled_tasks: set[asyncio.Task[Any]] = set()

    @property
    def name(self) -> str:
        return "livekit"

    @property
    def connection_state(self) -> ConnectionState:
        return self._state

    @property
    def local_audio_level(self) -> float:
        return self._local_level

    @property
    def remote_audio_level(self) -> float:
        return max(self._remote_levels.values(), default=0.0)

    # -- Connection --

    async def connect(
        self,
        url: str,
        token: str,
        *,
        options: ConnectOptions | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if self._room is not None:
            await self.disconnect()

        rtc = self._rtc
        self._options = options or ConnectOptions()
        self._loop = asyncio.get_running_loop()

        room = rtc.Room(loop=self._loop)
        room.on(
            "connection_state_changed", self._for_room(room, self._on_connection_state_changed)
        )
        room.on("data_received", self._for_room(room, self._on_data_received))
        room.on("track_subscribed", self._for_room(room, self._on_track_subscribed))
        room.on("track_unsubscribed", self._for_room(room, self._on_track_unsubscribed))
        self._room = room

        self._set_state(ConnectionState.CONNECTING)
        logger.info("Connecting to %s", url)
        try:
            await room.connect(
                url,
                token,
                options=rtc.RoomOptions(auto_subscribe=self._options.auto_subscribe),
            )
        except Exception as exc:
            if self._room is room:
                self._room = None
                self._set_state(ConnectionState.DISCONNECTED)
            raise TransportError(f"Failed to connect to {url}: {exc}") from exc

        if metadata:
            try:
                await room.local_participant.set_attributes(
                    {key: str(value) for key, value in metadata.items()}
                )
            except Exception:
                logger.warning("Failed to set participant attributes", exc_info=True)

        if self._room is not room:
            # disconnect() ran meanwhile and could not leave a room still joining.
            logger.info("Leaving room %s joined after disconnect", room.name)
            await self._leave(room)
            raise TransportError(f"Connect to {url} superseded by disconnect")

        self._set_state(ConnectionState.CONNECTED)
        logger.info("Connected to room %s", room.name)

    async def disconnect(self) -> None:
        room = self._room
        self._room = None
        self._stop_capture()
        self._mic_publication = None
        self._audio_source = None
        self._apm = None

        for task in list(self._remote_tasks.values()):
            task.cancel()
        if self._remote_tasks:
            await asyncio.gather(*self._remote_tasks.values(), return_exceptions=True)
        self._remote_tasks.clear()
        self._remote_levels.clear()
        self._local_level = 0.0

        if room is not None:
            await self._leave(room)
        self._set_state(ConnectionState.DISCONNECTED)

    async def close(self) -> None:
        await self.disconnect()
        tasks = list(self._scheduled_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._scheduled_tasks.clear()

    # -- Microphone --

    async def set_microphone_enabled(self, enabled: bool) -> bool:
        room = self._require_room()
        if enabled:
            if self._mic_publication is not None:
                return True
            await self._publish_microphone(room)
            return True

        if self._mic_publication is None:
            return False
        self._stop_capture()
        try:
            await room.local_participant.unpublish_track(self._mic_publication.sid)
        except Exception as exc:
            raise TransportError(f"Failed to unpublish microphone: {exc}") from exc
        finally:
            self._mic_publication = None
            self._local_level = 0.0
        logger.info("Microphone unpublished")
        return False

    async def _publish_microphone(self, room: rtc.Room) -> None:
        rtc = self._rtc
        opts = self._options
        source = rtc.AudioSource(opts.sample_rate, opts.num_channels)
        track = rtc.LocalAudioTrack.create_audio_track("microphone", source)
        publish_options = rtc.TrackPublishOptions(source=rtc.TrackSource.SOURCE_MICROPHONE)
        try:
            self._mic_publication = await room.local_participant.publish_track(
                track, publish_options
            )
        except Exception as exc:
            raise TransportError(f"Failed to publish microphone: {exc}") from exc

        self._audio_source = source
        if opts.echo_cancellation or opts.noise_suppression or opts.auto_gain_control:
            self._apm = rtc.AudioProcessingModule(
                echo_cancellation=opts.echo_cancellation,
                noise_suppression=opts.noise_suppression,
                high_pass_filter=True,
                auto_gain_control=opts.auto_gain_control,
            )
        if self._sd is not None:
            self._start_capture()
        logger.info(
            "Microphone published: rate=%d, channels=%d",
            opts.sample_rate,
            opts.num_channels,
        )

    def _start_capture(self) -> None:
        opts = self._options
        loop = self._loop
        if loop is None:
            return
        samples_per_block = opts.sample_rate * _FRAME_DURATION_MS // 1000

        def _audio_callback(indata: bytes, frames: int, time_info: Any, status: Any) -> None:
            if status:
                logger.warning("Mic status: %s", status)
            if loop.is_running():
                loop.call_soon_threadsafe(self._on_mic_block, bytes(indata), frames)

        stream = self._sd.RawInputStream(
            samplerate=opts.sample_rate,
            blocksize=samples_per_block,
            channels=opts.num_channels,
            dtype="int16",
            device=self._input_device,
            callback=_audio_callback,
        )
        stream.start()
        self._input_stream = stream

    def _stop_capture(self) -> None:
        stream = self._input_stream
        self._input_stream = None
        if stream is None:
            return
        try:
            stream.stop()
        except Exception:
            logger.warning("Error stopping mic stream", exc_info=True)
        finally:
            stream.close()

    def _on_mic_block(self, data: bytes, frames: int) -> None:
        self.capture_frame(data, samples_per_channel=frames)

    def capture_frame(self, data: bytes, *, samples_per_channel: int | None = None) -> None:
        """Push 16-bit PCM into the published microphone track.

        Must be called on the event loop thread. Frames are dropped while
        the microphone is not published.
        """
        source = self._audio_source
        if source is None or self._mic_publication is None:
            return
        opts = self._options
        if samples_per_channel is None:
            samples_per_channel = len(data) // (2 * opts.num_channels)
        frame = self._rtc.AudioFrame(
            data=data,
            sample_rate=opts.sample_rate,
            num_channels=opts.num_channels,
            samples_per_channel=samples_per_channel,
        )
        if self._apm is not None:
            try:
                self._apm.process_stream(frame)
            except Exception:
                logger.debug("Audio processing skipped for frame", exc_info=True)
        self._local_level = normalized_level(bytes(frame.data))
        self._track_task(source.capture_frame(frame), name="livekit:capture_frame")

    # -- Data channel --

    async def send_data(self, payload: bytes, *, topic: str) -> None:
        room = self._require_room()
        try:
            await room.local_participant.publish_data(payload, reliable=True, topic=topic)
        except Exception as exc:
            raise TransportError(f"Failed to send data on topic {topic!r}: {exc}") from exc

    # -- SDK event handlers --

    def _on_connection_state_changed(self, state: Any) -> None:
        name = self._rtc.ConnectionState.Name(state)
        mapped = _STATE_BY_NAME.get(name)
        if mapped is None:
            logger.debug("Ignoring unknown connection state %s", name)
            return
        self._set_state(mapped)

    def _on_data_received(self, packet: rtc.DataPacket) -> None:
        self._emit_data(bytes(packet.data), packet.topic or None)

    def _on_track_subscribed(
        self,
        track: rtc.Track,
        publication: rtc.RemoteTrackPublication,
        participant: rtc.RemoteParticipant,
    ) -> None:
        remote = self._remote_track(track, participant)
        if remote.kind is TrackKind.AUDIO:
            self._remote_tasks[remote.sid] = self._track_task(
                self._meter_remote(remote.sid, track), name=f"livekit:meter:{remote.sid}"
            )
        self._emit_track_subscribed(remote)

    def _on_track_unsubscribed(
        self,
        track: rtc.Track,
        publication: rtc.RemoteTrackPublication,
        participant: rtc.RemoteParticipant,
    ) -> None:
        remote = self._remote_track(track, participant)
        task = self._remote_tasks.pop(remote.sid, None)
        if task is not None:
            task.cancel()
        self._remote_levels.pop(remote.sid, None)
        self._emit_track_unsubscribed(remote)

    def _remote_track(self, track: rtc.Track, participant: rtc.RemoteParticipant) -> RemoteTrack:
        kind = TrackKind.AUDIO if track.kind == self._rtc.TrackKind.KIND_AUDIO else TrackKind.VIDEO
        return RemoteTrack(sid=track.sid, kind=kind, participant_identity=participant.identity)

    async def _meter_remote(self, sid: str, track: rtc.Track) -> None:
        """Keep the latest RMS level of a remote audio track."""
        stream = self._rtc.AudioStream(track)
        try:
            async for event in stream:
                self._remote_levels[sid] = normalized_level(bytes(event.frame.data))
        finally:
            self._remote_levels.pop(sid, None)
            with contextlib.suppress(Exception):
                await stream.aclose()

    # -- Helpers --

    def _for_room(self, room: rtc.Room, handler: Any) -> Any:
        """Wrap an SDK event handler so events from a room already left are dropped."""

        def _forward(*args: Any) -> None:
            if self._room is room:
                handler(*args)

        return _forward

    async def _leave(self, room: rtc.Room) -> None:
        try:
            await room.disconnect()
        except Exception:
            logger.warning("Error while leaving room", exc_info=True)

    def _require_room(self) -> rtc.Room:
        if self._room is None or self._state is not ConnectionState.CONNECTED:
            raise TransportNotConnectedError("No connected LiveKit room")
        return self._room

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        logger.debug("Connection state -> %s", state)
        self._emit_connection_state(state)

    def _track_task(self, coro: Any, *, name: str) -> asyncio.Task[Any]:
        """Create a tracked asyncio task with automatic cleanup and error logging."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._scheduled_tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

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
