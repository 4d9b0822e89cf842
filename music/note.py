"""Notes: a pitch class in a specific octave."""
import re
from functools import total_ordering

import mingus.core.notes as notes

from music.errors import InputError

# MIDI note 60 = C4 (middle C)
NOTE_NAMES = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']

_LETTER_VALUES = {'C': 0, 'D': 2, 'E': 4, 'F': 5, 'G': 7, 'A': 9, 'B': 11}
_NOTE_PATTERN = re.compile(r"^([A-Ga-g][#b]*)(-?\d+)$")


def pitch_class_value(name: str) -> int:
    """Semitone value of a pitch class name, without wrapping (Cb -> -1, B# -> 12)."""
    if not notes.is_valid_note(name):
        raise InputError(f"invalid pitch class name {name!r}")
    return _LETTER_VALUES[name[0].upper()] + name.count('#') - name.count('b')


@total_ordering
class Note:
    """A pitch class (0 = C ... 11 = B) in an octave, where A4 has MIDI index 69."""

    def __init__(self, pitch_class: int, octave: int = 4):
        self.pitch_class = int(pitch_class) % 12
        self.octave = int(octave) + int(pitch_class) // 12

    @classmethod
    def from_string(cls, name: str) -> "Note":
        """Parse a note name such as "A4", "C#5" or "Bb3".

        Enharmonic spellings crossing an octave boundary are normalised, so
        "Cb4" is the same note as "B3".
        """
        match = _NOTE_PATTERN.match(name.strip()) if isinstance(name, str) else None
        if match is None:
            raise InputError(f"invalid note name {name!r}")
        pitch_name, octave = match.group(1), int(match.group(2))
        pitch_name = pitch_name[0].upper() + pitch_name[1:]
        return cls.from_midi_index((octave + 1) * 12 + pitch_class_value(pitch_name))

    @classmethod
    def from_midi_index(cls, midi_index: int) -> "Note":
        return cls(int(midi_index) % 12, int(midi_index) // 12 - 1)

    @property
    def midi_index(self) -> int:
        return (self.octave + 1) * 12 + self.pitch_class

    @property
    def name(self) -> str:
        return NOTE_NAMES[self.pitch_class]

    def offset(self, semitones: int) -> "Note":
        return Note.from_midi_index(self.midi_index + int(semitones))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Note):
            return NotImplemented
        return self.midi_index == other.midi_index

    def __lt__(self, other: "Note") -> bool:
        if not isinstance(other, Note):
            return NotImplemented
        return self.midi_index < other.midi_index

    def __hash__(self) -> int:
        return hash(self.midi_index)

    def __str__(self) -> str:
        return f"{self.name}{self.octave}"

    def __repr__(self) -> str:
        return f"Note({self})"


DEFAULT_NOTE = Note(0, 4)  # Middle C
REFERENCE_NOTE = Note(9, 4)  # A4
