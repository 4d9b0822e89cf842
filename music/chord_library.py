"""Chords built from mingus shorthands, roman numerals and the chord compendium."""
import logging
import re
from typing import Dict, List, Union

import mingus.core.chords as chords
from mingus.core.mt_exceptions import FormatError, NoteFormatError

from music.errors import InputError
from music.note import DEFAULT_NOTE, Note
from music.playable import Playable, stack_note_names

_LOGGER = logging.getLogger("music_tools.music.chord_library")

# Semitones above the tonic for each major scale degree
_DEGREE_SEMITONES = {'I': 0, 'II': 2, 'III': 4, 'IV': 5, 'V': 7, 'VI': 9, 'VII': 11}
_NUMERAL_PATTERN = re.compile(r"^([b#]?)(VII|VI|V|IV|III|II|I|vii|vi|v|iv|iii|ii|i)(.*)$")

# (suffix, uppercase numeral shorthand, lowercase numeral shorthand)
_NUMERAL_SUFFIXES = {
    '': ('M', 'm'),
    '7': ('7', 'm7'),
    'M7': ('M7', 'm/M7'),
    'maj7': ('M7', 'm/M7'),
    'o': ('dim', 'dim'),
    'o7': ('dim7', 'dim7'),
    'ø': ('m7b5', 'm7b5'),
    '+': ('aug', 'aug'),
    '6': ('M6', 'm6'),
    '9': ('9', 'm9'),
    'sus2': ('sus2', 'sus2'),
    'sus4': ('sus4', 'sus4'),
}


class Chord(Playable):
    """A chord voiced upwards from its tonic.

    Args:
        tonic: Root pitch class name (e.g. "C", "F#", "Bb").
        shorthand: mingus chord shorthand (e.g. "M", "m7", "dim").
        octave: Octave of the root note.
    """

    def __init__(self, tonic: str, shorthand: str = 'M', octave: int = 4):
        self.tonic = tonic
        self.shorthand = shorthand
        self.octave = int(octave)
        try:
            self.note_names = chords.from_shorthand(f"{tonic}{shorthand}")
        except (FormatError, NoteFormatError) as e:
            raise InputError(f"invalid chord {tonic}{shorthand!s}: {e}") from e
        if not self.note_names:
            raise InputError(f"invalid chord {tonic}{shorthand}")
        self.notes = stack_note_names(self.note_names, self.octave)

    @classmethod
    def from_numeral(cls, numeral: str, base_note: Union[str, Note] = DEFAULT_NOTE) -> "Chord":
        """Build a chord from a roman numeral relative to a key's tonic.

        Uppercase numerals are major and lowercase minor; a leading "b" or "#"
        lowers or raises the root by a semitone, and suffixes such as "7",
        "o" or "+" pick seventh, diminished and augmented qualities.

        Args:
            numeral: Roman numeral such as "I", "bVI", "ii7" or "viio".
            base_note: Tonic of the key, as a Note or note name ("C4").

        Returns:
            The chord rooted on that scale degree.
        """
        match = _NUMERAL_PATTERN.match(numeral.strip()) if isinstance(numeral, str) else None
        if match is None or match.group(3) not in _NUMERAL_SUFFIXES:
            raise InputError(f"invalid roman numeral {numeral!r}")
        accidental, roman, suffix = match.groups()
        if isinstance(base_note, str):
            base_note = Note.from_string(base_note)

        semitones = _DEGREE_SEMITONES[roman.upper()]
        if accidental == 'b':
            semitones -= 1
        elif accidental == '#':
            semitones += 1
        major, minor = _NUMERAL_SUFFIXES[suffix]
        root = base_note.offset(semitones)
        return cls(root.name, major if roman.isupper() else minor, root.octave)

    def get_notes(self) -> List[Note]:
        return list(self.notes)

    def __repr__(self) -> str:
        return f"Chord({self.tonic}{self.shorthand}, octave={self.octave})"


class ChordLibrary:
    """Generates and stores a complete library of chords."""

    # All 12 chromatic notes
    KEYS = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']

    # Common chord types with their mingus shorthand
    CHORD_TYPES = [
        ('Major', 'M'),
        ('Minor', 'm'),
        ('Diminished', 'dim'),
        ('Augmented', 'aug'),
        ('Major 7th', 'M7'),
        ('Minor 7th', 'm7'),
        ('Dominant 7th', '7'),
        ('Diminished 7th', 'dim7'),
        ('Sus2', 'sus2'),
        ('Sus4', 'sus4'),
        ('Major 6th', 'M6'),
        ('Minor 6th', 'm6'),
        ('9th', '9'),
        ('Major 9th', 'M9'),
        ('Minor 9th', 'm9'),
    ]

    def __init__(self):
        self.library: Dict[str, Dict[str, List[str]]] = {}
        for key in self.KEYS:
            self.library[key] = {}
            for chord_name, shorthand in self.CHORD_TYPES:
                try:
                    chord_notes = chords.from_shorthand(f"{key}{shorthand}")
                except (FormatError, NoteFormatError) as e:
                    # Some chord combinations might not be valid
                    _LOGGER.debug("Skipping %s%s: %s", key, shorthand, e)
                    continue
                if chord_notes:
                    self.library[key][chord_name] = chord_notes

    def get_keys(self) -> List[str]:
        return self.KEYS

    def get_chord_types(self, key: str) -> List[str]:
        if key in self.library:
            return list(self.library[key].keys())
        return []

    def get_chord_notes(self, key: str, chord_type: str) -> List[str]:
        """Get note names for a specific chord.

        Args:
            key: Musical key (e.g., "C", "F#").
            chord_type: Chord type (e.g., "Major", "Minor 7th").

        Returns:
            List of note names in the chord, empty if unknown.
        """
        return list(self.library.get(key, {}).get(chord_type, []))

    def get_chord(self, key: str, chord_type: str, octave: int = 4) -> Chord:
        """Build a playable chord from the library.

        Raises:
            InputError: If the key or chord type is not in the library.
        """
        shorthands = dict(self.CHORD_TYPES)
        if key not in self.library or chord_type not in shorthands:
            raise InputError(f"unknown chord {key} {chord_type}")
        return Chord(key, shorthands[chord_type], octave)
