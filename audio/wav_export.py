"""Canonical mono PCM WAV encoding."""
import logging
import struct
from enum import IntEnum
from pathlib import Path
from typing import Union

import numpy as np

from music.errors import AudioIOError, InputError

_LOGGER = logging.getLogger("music_tools.audio.wav_export")

CHANNELS = 1  # Mono audio


class BitsPerSample(IntEnum):
    """Supported PCM bit depths."""
    EIGHT = 8
    SIXTEEN = 16
    TWENTYFOUR = 24


def _check_bits(bits_per_sample: int) -> BitsPerSample:
    try:
        return BitsPerSample(int(bits_per_sample))
    except (TypeError, ValueError):
        raise InputError(
            f"unsupported bit depth {bits_per_sample!r}, expected 8, 16 or 24"
        ) from None


def _check_path(path: Union[str, Path]) -> Path:
    target = Path(path)
    try:
        str(target).encode("utf-8")
    except UnicodeEncodeError:
        raise InputError("the file path must be a valid unicode string") from None
    return target


def encode_samples(samples: np.ndarray, bits_per_sample: int) -> bytes:
    """Quantize float samples in [-1, 1] to little-endian PCM bytes.

    8-bit is unsigned round(127.5*s + 127.5); 16 and 24-bit are signed
    round(scale*s - 0.5) with scale 32767.5 and 8388607.5.
    """
    bits = _check_bits(bits_per_sample)
    clipped = np.clip(np.asarray(samples, dtype=np.float64).reshape(-1), -1.0, 1.0)
    if bits == BitsPerSample.EIGHT:
        return np.round(127.5 * clipped + 127.5).astype(np.uint8).tobytes()
    if bits == BitsPerSample.SIXTEEN:
        return np.round(32767.5 * clipped - 0.5).astype("<i2").tobytes()
    values = np.round(8388607.5 * clipped - 0.5).astype("<i4")
    # Keep the three low bytes of each little-endian int32.
    return values.view(np.uint8).reshape(-1, 4)[:, :3].tobytes()


def build_header(num_samples: int, sample_rate: int, bits_per_sample: int) -> bytes:
    bits = int(_check_bits(bits_per_sample))
    data_size = num_samples * CHANNELS * bits // 8
    return b"".join([
        b"RIFF",
        struct.pack("<I", 36 + data_size),  # Chunk size
        b"WAVE",
        b"fmt ",
        struct.pack("<I", 16),  # PCM subchunk size
        struct.pack("<H", 1),  # No compression
        struct.pack("<H", CHANNELS),
        struct.pack("<I", sample_rate),
        struct.pack("<I", sample_rate * CHANNELS * bits // 8),  # Byte rate
        struct.pack("<H", CHANNELS * bits // 8),  # Block align
        struct.pack("<H", bits),
        b"data",
        struct.pack("<I", data_size),
    ])


def write_wav(path: Union[str, Path], samples: np.ndarray, sample_rate: int,
              bits_per_sample: int = BitsPerSample.SIXTEEN) -> Path:
    """Write samples to a mono PCM WAV file.

    Args:
        path: Destination file.
        samples: Float samples in [-1, 1] (values outside are clipped).
        sample_rate: Sample rate in hertz.
        bits_per_sample: 8, 16 or 24.

    Returns:
        The path that was written.
    """
    target = _check_path(path)
    samples = np.asarray(samples, dtype=np.float32).reshape(-1)
    payload = build_header(samples.size, sample_rate, bits_per_sample)
    payload += encode_samples(samples, bits_per_sample)
    try:
        with open(target, "wb") as f:
            f.write(payload)
    except OSError as e:
        raise AudioIOError(f"could not write {target}: {e}") from e
    _LOGGER.info("Exported %d samples to %s", samples.size, target)
    return target
