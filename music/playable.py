"""Resolution of musical objects into lists of frequencies."""
from enum import Enum
from numbers import Real
from typing import Iterable, List, Optional

from music.errors import InputError
from music.note import REFERENCE_NOTE, Note, pitch_class_value
from music.tuning import DEFAULT_BASE_FREQUENCY, EqualTemperament, Tuning


class ArpeggioDirection(Enum):
    """Order in which the frequencies of a playable are arpeggiated."""
    UP = "up"            # Lowest to highest, then wraps to the lowest
    DOWN = "down"        # Highest to lowest, then wraps to the highest
    UP_DOWN = "up_down"  # Ping-pongs between the endpoints without repeating them
    RANDOM = "random"    # Any frequency at each step


class Playable:
    """Anything that can be broken down into frequencies for the audio processor."""

    def get_notes(self) -> List[Note]:
        raise NotImplementedError

    def get_frequencies(self, tuning: Optional[Tuning] = None,
                        base_frequency: float = DEFAULT_BASE_FREQUENCY,
                        reference_note: Note = REFERENCE_NOTE) -> List[float]:
        tuning = tuning or EqualTemperament()
        return [tuning.get_frequency(base_frequency, reference_note, note)
                for note in self.get_notes()]


def stack_note_names(names: Iterable[str], octave: int = 4) -> List[Note]:
    """Place pitch class names in ascending order starting at the given octave.

    Each name that is not higher than the previous note moves up an octave,
    which is how chord and scale spellings from mingus are voiced.
    """
    stacked: List[Note] = []
    for name in names:
        note = Note(pitch_class_value(name), octave)
        while stacked and note <= stacked[-1]:
            note = note.offset(12)
        stacked.append(note)
    return stacked


def resolve_frequencies(playable, tuning: Optional[Tuning] = None,
                        base_frequency: float = DEFAULT_BASE_FREQUENCY,
                        reference_note: Note = REFERENCE_NOTE) -> List[float]:
    """Turn any playable value into an ordered list of frequencies in hertz.

    Accepts Playable objects, Notes, note names ("A4"), raw frequencies and
    sequences of any of those. Raw frequencies pass through unchanged.
    """
    tuning = tuning or EqualTemperament()
    if isinstance(playable, Playable):
        return playable.get_frequencies(tuning, base_frequency, reference_note)
    if isinstance(playable, Note):
        return [tuning.get_frequency(base_frequency, reference_note, playable)]
    if isinstance(playable, str):
        return [tuning.get_frequency(base_frequency, reference_note, Note.from_string(playable))]
    if isinstance(playable, Real):
        return [float(playable)]
    try:
        items = list(playable)
    except TypeError:
        raise InputError(f"cannot play an object of type {type(playable).__name__}") from None
    frequencies: List[float] = []
    for item in items:
        frequencies.extend(resolve_frequencies(item, tuning, base_frequency, reference_note))
    return frequencies
