"""Synthesizer voices, the synth capability and the wavetable oscillator."""
import logging
import math
import threading
from typing import List, Optional, Union

from audio.waveforms import WaveFunction
from audio.wavetable import DEFAULT_TABLE_SIZE, Wavetable

_LOGGER = logging.getLogger("music_tools.audio.synth_engine")

DEFAULT_SYNTH_VOLUME = 0.2


class Voice:
    """One sounding frequency and its phase position inside a wavetable.

    Two voices are equal when their frequencies are exactly equal.
    """

    def __init__(self, frequency: float):
        self.frequency = float(frequency)
        self.phase = 0.0
        self.phase_delta = 0.0

    def advance(self, table_size: int, sample_rate: int):
        """Move the phase forward by one sample.

        The delta is recomputed on every call so that a new table size or
        sample rate applies to voices that are already sounding.
        """
        self.phase_delta = self.frequency * table_size / sample_rate
        if not math.isfinite(self.phase_delta):
            # Whole cycles per sample leave the phase unchanged; keep the fraction
            self.phase_delta = math.fmod(self.frequency / sample_rate, 1.0) * table_size
        self.phase = (self.phase + self.phase_delta) % table_size

    def sample(self, wavetable: Wavetable) -> float:
        """Linearly interpolate the table between the two nearest entries."""
        table_size = len(wavetable)
        current_index = int(math.floor(self.phase)) % table_size
        next_index = (current_index + 1) % table_size
        lerp_frac = self.phase - math.floor(self.phase)
        current_value = wavetable[current_index]
        next_value = wavetable[next_index]
        return current_value + lerp_frac * (next_value - current_value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Voice):
            return NotImplemented
        return self.frequency == other.frequency

    def __hash__(self) -> int:
        return hash(self.frequency)

    def __repr__(self) -> str:
        return f"Voice({self.frequency!r}, phase={self.phase:.4f})"


class Synth:
    """Capability implemented by anything the audio processor can mix.

    Subclasses must implement every method below. get_sample() must not
    advance any state; advance_sample() moves every voice one tick forward.
    """

    def set_volume(self, volume: float):
        raise NotImplementedError

    def clear_voices(self):
        raise NotImplementedError

    def add_voice(self, frequency: float):
        raise NotImplementedError

    def remove_voice(self, frequency: float):
        raise NotImplementedError

    def get_sample(self) -> float:
        raise NotImplementedError

    def advance_sample(self, sample_rate: int):
        raise NotImplementedError

    def copy(self) -> "Synth":
        """Return a new synth with the same configuration and no voices."""
        raise NotImplementedError


class WavetableOscillator(Synth):
    """Polyphonic oscillator that plays a stored wavetable at any number of frequencies.

    Each voice interpolates the table at its own phase; the voices are summed
    and divided by sqrt(voice count) so added voices do not drop the
    perceived loudness linearly.
    """

    def __init__(self, waveform: Union[str, WaveFunction] = "sine", time_scale: float = 1.0,
                 table_size: int = DEFAULT_TABLE_SIZE, volume: float = DEFAULT_SYNTH_VOLUME,
                 wavetable: Optional[Wavetable] = None):
        """
        Args:
            waveform: Waveform name ("sine", "square", "triangle", "sawtooth") or
                a custom float -> float shaping function with a period of 1.
            time_scale: Scales the time passed to the shaping function.
            table_size: Number of points in the generated table (128 recommended).
            volume: Initial volume, clamped to [0, 1].
            wavetable: A prebuilt table; when given, waveform/time_scale/table_size are ignored.
        """
        if wavetable is None:
            wavetable = Wavetable.generate(table_size, waveform, time_scale)
        self.wavetable = wavetable
        self.voices: List[Voice] = []
        self.volume = DEFAULT_SYNTH_VOLUME
        self.set_volume(volume)

    @classmethod
    def from_samples(cls, samples, volume: float = DEFAULT_SYNTH_VOLUME) -> "WavetableOscillator":
        return cls(wavetable=Wavetable(samples), volume=volume)

    def set_wavetable(self, wavetable: Wavetable):
        """Swap the table; sounding voices keep their phase (wrapped to the new size)."""
        self.wavetable = wavetable
        for voice in self.voices:
            voice.phase %= len(wavetable)

    def set_volume(self, volume: float):
        self.volume = max(0.0, min(1.0, float(volume)))

    def clear_voices(self):
        self.voices.clear()

    def add_voice(self, frequency: float):
        if not (math.isfinite(frequency) and frequency > 0):
            _LOGGER.debug("Ignoring invalid frequency %r", frequency)
            return
        voice = Voice(frequency)
        if voice in self.voices:
            return
        self.voices.append(voice)

    def remove_voice(self, frequency: float):
        for index, voice in enumerate(self.voices):
            if voice.frequency == frequency:
                del self.voices[index]
                return

    def get_sample(self) -> float:
        if not self.voices:
            return 0.0
        sample = 0.0
        for voice in self.voices:
            sample += voice.sample(self.wavetable)
        sample = sample * self.volume / math.sqrt(len(self.voices))
        return max(-1.0, min(1.0, sample))

    def advance_sample(self, sample_rate: int):
        table_size = len(self.wavetable)
        for voice in self.voices:
            voice.advance(table_size, sample_rate)

    def copy(self) -> "WavetableOscillator":
        return WavetableOscillator(wavetable=self.wavetable, volume=self.volume)

    def __repr__(self) -> str:
        return (f"WavetableOscillator(table_size={len(self.wavetable)}, "
                f"voices={len(self.voices)}, volume={self.volume})")


class SynthHandle:
    """Shared, lock-protected reference to a registered synth.

    Handles compare by identity, so two registrations of identically
    configured synths stay distinct. Every call takes the synth's lock, which
    keeps voice changes on the sequencing thread from tearing a read on the
    audio output thread.
    """

    def __init__(self, synth: Synth):
        self.synth = synth
        self.lock = threading.Lock()

    def set_volume(self, volume: float):
        with self.lock:
            self.synth.set_volume(volume)

    def clear_voices(self):
        with self.lock:
            self.synth.clear_voices()

    def add_voice(self, frequency: float):
        with self.lock:
            self.synth.add_voice(frequency)

    def remove_voice(self, frequency: float):
        with self.lock:
            self.synth.remove_voice(frequency)

    def get_sample(self) -> float:
        with self.lock:
            return self.synth.get_sample()

    def advance_sample(self, sample_rate: int):
        with self.lock:
            self.synth.advance_sample(sample_rate)

    def copy(self) -> Synth:
        with self.lock:
            return self.synth.copy()

    def __repr__(self) -> str:
        return f"SynthHandle({self.synth!r})"
