"""PCM audio level helpers."""

from __future__ import annotations

import math
import struct

SILENCE_DB = -60.0


def rms_db(data: bytes) -> float:
    """Compute RMS level in dB from 16-bit little-endian PCM bytes.

    Returns a value in the range [-60.0, 0.0] where 0 dB is full scale
    and -60 dB is silence (or empty input).
    """
    n = len(data) // 2
    if n == 0:
        return SILENCE_DB
    samples = struct.unpack(f"<{n}h", data[: n * 2])
    rms = math.sqrt(sum(s * s for s in samples) / n) / 32768.0
    if rms < 1e-10:
        return SILENCE_DB
    return max(SILENCE_DB, 20.0 * math.log10(rms))


def normalized_level(data: bytes) -> float:
    """Map the RMS level of *data* onto [0.0, 1.0] for visualizers.

    -60 dB (or quieter) maps to 0.0 and full scale maps to 1.0.
    """
    return (rms_db(data) - SILENCE_DB) / -SILENCE_DB
