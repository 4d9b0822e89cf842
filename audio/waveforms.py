"""Standard wave shaping functions with a period of one unit of time."""
import math
from typing import Callable, Dict, Union

from music.errors import ConfigurationError

WaveFunction = Callable[[float], float]


def sine_wave(time: float) -> float:
    return math.sin(2.0 * math.pi * time)


def square_wave(time: float) -> float:
    if time < 0.5:
        return -1.0
    return 1.0


def triangle_wave(time: float) -> float:
    if time < 0.5:
        return -4.0 * time + 1.0
    return 4.0 * time - 3.0


def sawtooth_wave(time: float) -> float:
    return 2.0 * time - 1.0


WAVEFORMS: Dict[str, WaveFunction] = {
    "sine": sine_wave,
    "square": square_wave,
    "triangle": triangle_wave,
    "sawtooth": sawtooth_wave,
}


def get_waveform(waveform: Union[str, WaveFunction]) -> WaveFunction:
    """Resolve a waveform name or pass a custom shaping function through.

    Args:
        waveform: One of the names in WAVEFORMS, or any float -> float callable.

    Returns:
        The shaping function.
    """
    if callable(waveform):
        return waveform
    try:
        return WAVEFORMS[waveform]
    except KeyError:
        raise ConfigurationError(
            f"unknown waveform {waveform!r}, expected one of {sorted(WAVEFORMS)}"
        ) from None
