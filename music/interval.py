"""Two-note intervals measured from a base note."""
from typing import List

from music.note import DEFAULT_NOTE, Note
from music.playable import Playable

INTERVAL_NAMES = {
    0: 'Unison', 1: 'Minor 2nd', 2: 'Major 2nd', 3: 'Minor 3rd',
    4: 'Major 3rd', 5: 'Perfect 4th', 6: 'Tritone', 7: 'Perfect 5th',
    8: 'Minor 6th', 9: 'Major 6th', 10: 'Minor 7th', 11: 'Major 7th',
    12: 'Octave',
}


class Interval(Playable):
    """The base note (C4 unless given) and the note `semitones` above it."""

    def __init__(self, semitones: int, base_note: Note = DEFAULT_NOTE):
        self.semitones = int(semitones)
        self.base_note = base_note

    @property
    def name(self) -> str:
        return INTERVAL_NAMES.get(abs(self.semitones), f"{self.semitones} semitones")

    def get_notes(self) -> List[Note]:
        return [self.base_note, self.base_note.offset(self.semitones)]

    def __repr__(self) -> str:
        return f"Interval({self.semitones})"
