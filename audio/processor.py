"""Mixer that fans frequencies out to registered synths and renders sample buffers."""
import logging
import math
from datetime import timedelta
from typing import List, Optional, Set, Union

import numpy as np

from audio.synth_engine import Synth, SynthHandle
from music.errors import ConfigurationError

_LOGGER = logging.getLogger("music_tools.audio.processor")

DEFAULT_SAMPLE_RATE = 44100


class _Registration:
    """A registered synth and the frequencies currently started on it."""

    def __init__(self, handle: SynthHandle):
        self.handle = handle
        self.frequencies: Set[float] = set()


class AudioProcessor:
    """Mixes every registered synth into one master sample stream.

    The current sample is computed lazily and cached until advance_sample()
    invalidates it, so repeated reads between advances return the same value.
    """

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, volume: float = 1.0):
        self._registrations: List[_Registration] = []
        self._current_sample: Optional[float] = None
        self.sample_rate = DEFAULT_SAMPLE_RATE
        self.volume = 1.0
        self.set_sample_rate(sample_rate)
        self.set_volume(volume)

    # ── Settings ─────────────────────────────────────────────────

    def set_volume(self, volume: float):
        self.volume = max(0.0, min(1.0, float(volume)))

    def set_sample_rate(self, sample_rate: int):
        if int(sample_rate) <= 0:
            raise ConfigurationError(f"sample rate must be positive, got {sample_rate}")
        self.sample_rate = int(sample_rate)

    def get_sample_rate(self) -> int:
        return self.sample_rate

    # ── Registry ─────────────────────────────────────────────────

    def register_synth(self, synth: Synth) -> SynthHandle:
        """Register a synth and return the handle used to address it later.

        Registering the same synth object twice produces two independent
        registrations with different handles.
        """
        handle = SynthHandle(synth)
        self._registrations.append(_Registration(handle))
        _LOGGER.debug("Registered %r (%d synths)", handle, len(self._registrations))
        return handle

    def unregister_synth(self, handle: SynthHandle):
        for index, registration in enumerate(self._registrations):
            if registration.handle is handle:
                del self._registrations[index]
                _LOGGER.debug("Unregistered %r", handle)
                return

    def unregister_all_synths(self):
        self._registrations.clear()

    def get_handles(self) -> List[SynthHandle]:
        return [registration.handle for registration in self._registrations]

    def get_active_frequencies(self, handle: SynthHandle) -> Set[float]:
        registration = self._find(handle)
        if registration is None:
            return set()
        return set(registration.frequencies)

    def _find(self, handle: SynthHandle) -> Optional[_Registration]:
        for registration in self._registrations:
            if registration.handle is handle:
                return registration
        return None

    # ── Frequencies ──────────────────────────────────────────────

    def start_frequency(self, frequency: float, handle: SynthHandle):
        """Start a frequency on one synth; a no-op if it is already sounding there."""
        if not (math.isfinite(frequency) and frequency > 0):
            _LOGGER.debug("Ignoring invalid frequency %r", frequency)
            return
        registration = self._find(handle)
        if registration is None or frequency in registration.frequencies:
            return
        registration.frequencies.add(frequency)
        registration.handle.add_voice(frequency)

    def stop_frequency(self, frequency: float, handle: SynthHandle):
        registration = self._find(handle)
        if registration is None or frequency not in registration.frequencies:
            return
        registration.frequencies.discard(frequency)
        registration.handle.remove_voice(frequency)

    def stop_all_frequencies(self):
        for registration in self._registrations:
            registration.handle.clear_voices()
            registration.frequencies.clear()

    # ── Sample generation ────────────────────────────────────────

    def get_current_sample(self) -> float:
        if self._current_sample is not None:
            return self._current_sample
        if not self._registrations:
            sample = 0.0
        else:
            # Each synth lock is taken and released in turn, never two at once.
            total = 0.0
            for registration in self._registrations:
                total += registration.handle.get_sample()
            sample = total * self.volume / math.sqrt(len(self._registrations))
            sample = max(-1.0, min(1.0, sample))
        self._current_sample = sample
        return sample

    def advance_sample(self):
        for registration in self._registrations:
            registration.handle.advance_sample(self.sample_rate)
        self._current_sample = None

    def render(self, duration: Union[float, timedelta]) -> np.ndarray:
        """Render a fixed duration of audio.

        Args:
            duration: Seconds as a float, or a timedelta.

        Returns:
            float32 array of floor(duration * sample_rate) samples; each one is
            read before the processor advances.
        """
        seconds = duration.total_seconds() if isinstance(duration, timedelta) else float(duration)
        num_samples = max(0, int(math.floor(seconds * self.sample_rate)))
        table = np.empty(num_samples, dtype=np.float32)
        for index in range(num_samples):
            table[index] = self.get_current_sample()
            self.advance_sample()
        _LOGGER.debug("Rendered %d samples (%.3f s)", num_samples, max(seconds, 0.0))
        return table

    def __iter__(self):
        return self

    def __next__(self) -> float:
        sample = self.get_current_sample()
        self.advance_sample()
        return sample
