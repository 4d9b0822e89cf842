"""Sequencer that turns music into a sample buffer for playback or WAV export."""
import logging
import random
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np

from audio.output import AudioOutput
from audio.processor import DEFAULT_SAMPLE_RATE, AudioProcessor
from audio.synth_engine import Synth, SynthHandle, WavetableOscillator
from audio.wav_export import BitsPerSample, write_wav
from midi.midi_file import MIDI
from midi.track import NoteOff, NoteOn, Rest, SetTempo
from music.errors import ConfigurationError, DeviceError, InputError
from music.note import REFERENCE_NOTE, Note
from music.playable import ArpeggioDirection, resolve_frequencies
from music.rhythm import Duration, to_seconds
from music.tuning import DEFAULT_BASE_FREQUENCY, EqualTemperament, Tuning

_LOGGER = logging.getLogger("music_tools.audio.player")

DEFAULT_TEMPO = 120.0


class AudioPlayer:
    """Queues notes, chords, arpeggios, rhythms and MIDI files as rendered audio.

    Every push renders immediately through the processor and appends the
    result to an internal buffer, so the buffer is always the exact
    concatenation of what was pushed, in call order. Each push starts its
    frequencies, renders the duration, then stops everything; consecutive
    pushes never overlap.

    Durations are fractions of a whole note (see music.rhythm.Beat) played at
    `tempo` quarter notes per minute and divided by `speed`, or timedeltas
    for absolute lengths.
    """

    def __init__(self, synth: Optional[Synth] = None, sample_rate: int = DEFAULT_SAMPLE_RATE,
                 volume: float = 1.0, tempo: float = DEFAULT_TEMPO, speed: float = 1.0,
                 tuning: Optional[Tuning] = None, reference_note: Note = REFERENCE_NOTE,
                 reference_frequency: float = DEFAULT_BASE_FREQUENCY,
                 open_device: bool = True, seed: Optional[int] = None):
        """
        Args:
            synth: Synth for push operations (a sine WavetableOscillator by default).
            sample_rate: Output sample rate in hertz.
            volume: Master volume, clamped to [0, 1].
            tempo: Quarter notes per minute.
            speed: Playback speed multiplier.
            tuning: Note to frequency mapping (12-tone equal temperament by default).
            reference_note: Note that sounds at reference_frequency.
            reference_frequency: Frequency of reference_note in hertz.
            open_device: Open the default output device; pass False for
                offline rendering and export.
            seed: Seed for random arpeggios.

        Raises:
            DeviceError: If open_device is set and no output device is usable.
        """
        self.processor = AudioProcessor(sample_rate, volume)
        self.synth_handle: SynthHandle = self.processor.register_synth(synth or WavetableOscillator())
        self.tuning = tuning or EqualTemperament()
        self.reference_note = reference_note
        self.reference_frequency = float(reference_frequency)
        self.tempo = DEFAULT_TEMPO
        self.speed = 1.0
        self.set_tempo(tempo)
        self.set_speed(speed)
        self.rng = random.Random(seed)
        self._segments: List[np.ndarray] = []
        # Opened after every setting has been validated
        self.output: Optional[AudioOutput] = AudioOutput() if open_device else None

    @classmethod
    def from_config(cls, config, synth: Optional[Synth] = None,
                    open_device: bool = True) -> "AudioPlayer":
        """Build a player from a ConfigManager's saved settings."""
        return cls(
            synth=synth,
            sample_rate=config.get_sample_rate(),
            volume=config.get_volume(),
            tempo=config.get_tempo(),
            speed=config.get_speed(),
            reference_note=Note.from_string(config.get_reference_note()),
            reference_frequency=config.get_reference_frequency(),
            open_device=open_device,
        )

    # ── Settings ─────────────────────────────────────────────────

    def set_synth(self, synth: Synth) -> SynthHandle:
        """Replace the synth used by push operations."""
        self.processor.unregister_synth(self.synth_handle)
        self.synth_handle = self.processor.register_synth(synth)
        return self.synth_handle

    def add_synth(self, synth: Synth) -> SynthHandle:
        """Register an extra synth that is mixed in but not driven by push operations."""
        return self.processor.register_synth(synth)

    def set_volume(self, volume: float):
        self.processor.set_volume(volume)

    def set_tempo(self, tempo: float):
        if not tempo > 0:
            raise ConfigurationError(f"tempo must be positive, got {tempo}")
        self.tempo = float(tempo)

    def set_speed(self, speed: float):
        if not speed > 0:
            raise ConfigurationError(f"speed must be positive, got {speed}")
        self.speed = float(speed)

    def set_sample_rate(self, sample_rate: int):
        self.processor.set_sample_rate(sample_rate)

    def set_tuning(self, tuning: Tuning, reference_note: Optional[Note] = None,
                   reference_frequency: Optional[float] = None):
        self.tuning = tuning
        if reference_note is not None:
            self.reference_note = reference_note
        if reference_frequency is not None:
            self.reference_frequency = float(reference_frequency)

    def get_processor(self) -> AudioProcessor:
        return self.processor

    # ── Sequencing ───────────────────────────────────────────────

    def get_frequencies(self, playable) -> List[float]:
        return resolve_frequencies(playable, self.tuning, self.reference_frequency, self.reference_note)

    def push(self, playable, duration: Duration):
        """Sound every frequency of `playable` together for `duration`, then stop them all."""
        for frequency in self.get_frequencies(playable):
            self.processor.start_frequency(frequency, self.synth_handle)
        samples = self.processor.render(self._seconds(duration))
        self.processor.stop_all_frequencies()
        self._segments.append(samples)

    def push_rest(self, duration: Duration):
        self._segments.append(self.processor.render(self._seconds(duration)))

    def push_arpeggiate(self, playable, duration: Duration,
                        direction: ArpeggioDirection = ArpeggioDirection.UP,
                        total_notes: int = 8):
        """Play the frequencies of `playable` one at a time.

        Args:
            playable: Anything resolvable to frequencies.
            duration: Length of each note.
            direction: Order in which frequencies are visited. UP_DOWN turns
                around at both ends without repeating the end notes.
            total_notes: Number of notes to push.
        """
        frequencies = self.get_frequencies(playable)
        if not frequencies:
            _LOGGER.debug("Nothing to arpeggiate")
            return
        count = len(frequencies)
        ascending = True
        if direction == ArpeggioDirection.DOWN:
            index = count - 1
        elif direction == ArpeggioDirection.RANDOM:
            index = self.rng.randrange(count)
        else:
            index = 0

        for _ in range(total_notes):
            self.push(frequencies[index], duration)
            if direction == ArpeggioDirection.UP:
                index = (index + 1) % count
            elif direction == ArpeggioDirection.DOWN:
                index = (index - 1) % count
            elif direction == ArpeggioDirection.RANDOM:
                index = self.rng.randrange(count)
            else:
                index = (index + 1) % count if ascending else (index - 1) % count
                if not ascending and index == 0:
                    ascending = True
                if ascending and index == count - 1:
                    ascending = False

    def push_rhythm(self, playables: Sequence, rhythm_beats: Sequence[Duration], total_notes: int):
        """Push playables with durations taken from a beat pattern.

        Both sequences wrap around independently, so a pattern of three beats
        can drive a melody of four notes.
        """
        playables = list(playables)
        rhythm_beats = list(rhythm_beats)
        if not playables or not rhythm_beats:
            return
        for index in range(total_notes):
            self.push(playables[index % len(playables)], rhythm_beats[index % len(rhythm_beats)])

    def push_midi(self, midi: MIDI, synths: Union[Synth, Sequence[Synth], None] = None,
                  tempo: Optional[float] = None):
        """Render every track of a MIDI sequence, each on its own synth.

        Args:
            midi: The sequence to render.
            synths: One synth or a list assigned to tracks round-robin. A synth
                reused for a later track is copied so tracks never share voices.
                Defaults to a copy of the current synth.
            tempo: Starting tempo; SetTempo events in the tracks replace it.

        Raises:
            InputError: If the sequence has no tracks.
        """
        if midi.is_empty():
            raise InputError("the midi object has no tracks")
        if synths is None:
            synths = [self.synth_handle.copy()]
        elif isinstance(synths, Synth):
            synths = [synths]
        else:
            synths = list(synths)
        if not synths:
            raise InputError("at least one synth is needed to render midi")

        current_tempo = float(tempo) if tempo is not None else self.tempo
        segments: List[np.ndarray] = []
        handles: List[SynthHandle] = []
        try:
            for track_index in range(midi.get_num_tracks()):
                synth = synths[track_index % len(synths)]
                if track_index >= len(synths):
                    synth = synth.copy()
                handles.append(self.processor.register_synth(synth))

            for track_index, item in midi.iter_track_items():
                if isinstance(item, Rest):
                    segments.append(self.processor.render(
                        to_seconds(item.beat, current_tempo, self.speed)))
                    continue
                event = item.event
                handle = handles[track_index]
                if isinstance(event, NoteOn):
                    self.processor.start_frequency(self._note_frequency(event.note), handle)
                elif isinstance(event, NoteOff):
                    self.processor.stop_frequency(self._note_frequency(event.note), handle)
                elif isinstance(event, SetTempo) and event.bpm > 0:
                    current_tempo = float(event.bpm)
        finally:
            for handle in handles:
                handle.clear_voices()
                self.processor.unregister_synth(handle)
        self._segments.extend(segments)
        _LOGGER.debug("Rendered %d midi tracks into %d segments", len(handles), len(segments))

    # ── Output ───────────────────────────────────────────────────

    def play(self):
        """Play the whole buffer and block until it has finished.

        Raises:
            DeviceError: If the player was created without an output device.
        """
        if self.output is None:
            raise DeviceError("this player was created without an output device")
        self.output.play(self.render(), self.processor.get_sample_rate())

    def clear(self):
        """Empty the buffer; synths and settings are left untouched."""
        self._segments = []

    def render(self) -> np.ndarray:
        """Return a copy of everything pushed so far as one float32 array."""
        if not self._segments:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(self._segments).astype(np.float32, copy=False)

    def get_num_samples(self) -> int:
        return sum(segment.size for segment in self._segments)

    def export(self, path: Union[str, Path],
               bits_per_sample: Union[BitsPerSample, int] = BitsPerSample.SIXTEEN) -> Path:
        """Write the buffer as a mono PCM WAV file at the processor's sample rate."""
        return write_wav(path, self.render(), self.processor.get_sample_rate(), bits_per_sample)

    def close(self):
        if self.output is not None:
            self.output.close()
            self.output = None

    # ── Helpers ──────────────────────────────────────────────────

    def _seconds(self, duration: Duration) -> float:
        return to_seconds(duration, self.tempo, self.speed)

    def _note_frequency(self, note: Note) -> float:
        return self.tuning.get_frequency(self.reference_frequency, self.reference_note, note)
