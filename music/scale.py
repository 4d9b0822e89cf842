"""Scales from mingus, voiced upwards from a tonic."""
from typing import Dict, List

import mingus.core.scales as scales
from mingus.core.mt_exceptions import FormatError, NoteFormatError

from music.errors import InputError
from music.note import Note
from music.playable import Playable, stack_note_names

SCALE_TYPES: Dict[str, type] = {
    'major': scales.Major,
    'natural_minor': scales.NaturalMinor,
    'harmonic_minor': scales.HarmonicMinor,
    'melodic_minor': scales.MelodicMinor,
    'harmonic_major': scales.HarmonicMajor,
    'ionian': scales.Ionian,
    'dorian': scales.Dorian,
    'phrygian': scales.Phrygian,
    'lydian': scales.Lydian,
    'mixolydian': scales.Mixolydian,
    'aeolian': scales.Aeolian,
    'locrian': scales.Locrian,
    'chromatic': scales.Chromatic,
    'whole_tone': scales.WholeTone,
}


class Scale(Playable):
    """An ascending scale including the tonic an octave above.

    Args:
        tonic: Pitch class name of the first degree (e.g. "C", "Eb").
        name: One of SCALE_TYPES.
        octave: Octave of the first degree.
    """

    def __init__(self, tonic: str, name: str = 'major', octave: int = 4):
        if name not in SCALE_TYPES:
            raise InputError(f"unknown scale {name!r}, expected one of {', '.join(SCALE_TYPES)}")
        self.tonic = tonic
        self.name = name
        self.octave = int(octave)
        try:
            self.note_names = SCALE_TYPES[name](tonic).ascending()
        except (FormatError, NoteFormatError) as e:
            raise InputError(f"invalid scale tonic {tonic!r}: {e}") from e
        self.notes = stack_note_names(self.note_names, self.octave)

    def get_notes(self) -> List[Note]:
        return list(self.notes)

    def __repr__(self) -> str:
        return f"Scale({self.tonic} {self.name}, octave={self.octave})"
