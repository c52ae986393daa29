"""Periodic audio level sampling for visualizers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import assert_never

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
)

logger = logging.getLogger("notchvoice.meter")

DEFAULT_INTERVAL = 1 / 30


def derive_audio_level(phase: Phase, local: float, remote: float) -> float:
    """Pick the level a visualizer should show for *phase*.

    The local microphone while listening, the remote agent while it
    speaks, and whichever is louder otherwise.
    """
    match phase:
        case Listening():
            return local
        case Speaking():
            return remote
        case Idle() | Connecting() | Connected() | Processing() | UsingTool() | Error():
            return max(local, remote)
        case _:
            assert_never(phase)


class AudioLevelMeter:
    """Samples a level source at a fixed interval and reports changes.

    ``sample`` is called on every tick; ``on_level`` only when the value
    differs from the last one reported. :meth:`stop` cancels sampling and
    reports 0.0.
    """

    def __init__(
        self,
        sample: Callable[[], float],
        on_level: Callable[[float], None],
        *,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._sample = sample
        self._on_level = on_level
        self._interval = interval
        self._level = 0.0
        self._task: asyncio.Task[None] | None = None

    @property
    def level(self) -> float:
        return self._level

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start sampling on the running event loop. No-op if already running."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="audio-level-meter")

    def stop(self) -> None:
        """Stop sampling and zero the level."""
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
        self._report(0.0)

    async def _run(self) -> None:
        while True:
            try:
                level = min(1.0, max(0.0, float(self._sample())))
            except Exception:
                logger.exception("Audio level sample failed")
            else:
                self._report(level)
            await asyncio.sleep(self._interval)

    def _report(self, level: float) -> None:
        if level == self._level:
            return
        self._level = level
        self._on_level(level)
