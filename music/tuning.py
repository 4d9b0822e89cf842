"""Tuning systems mapping notes to frequencies."""
from fractions import Fraction

from music.note import Note

DEFAULT_BASE_FREQUENCY = 440.0


class Tuning:
    """Maps the distance between a reference note and a target note to a frequency."""

    def get_frequency(self, base_frequency: float, reference_note: Note, target_note: Note) -> float:
        """Return the frequency of target_note given that reference_note sounds at base_frequency."""
        raise NotImplementedError


class EqualTemperament(Tuning):
    """Every step multiplies the frequency by 2 ** (1 / divisions)."""

    def __init__(self, divisions: int = 12):
        self.divisions = int(divisions)

    def get_frequency(self, base_frequency: float, reference_note: Note, target_note: Note) -> float:
        steps = target_note.midi_index - reference_note.midi_index
        return float(base_frequency) * 2.0 ** (steps / self.divisions)

    def __repr__(self) -> str:
        return f"EqualTemperament({self.divisions})"


class JustIntonation(Tuning):
    """5-limit just intonation built on the reference note, repeating every octave."""

    RATIOS = [
        Fraction(1), Fraction(16, 15), Fraction(9, 8), Fraction(6, 5),
        Fraction(5, 4), Fraction(4, 3), Fraction(45, 32), Fraction(3, 2),
        Fraction(8, 5), Fraction(5, 3), Fraction(9, 5), Fraction(15, 8),
    ]

    def get_frequency(self, base_frequency: float, reference_note: Note, target_note: Note) -> float:
        steps = target_note.midi_index - reference_note.midi_index
        octaves, degree = divmod(steps, 12)
        return float(base_frequency) * 2.0 ** octaves * float(self.RATIOS[degree])

    def __repr__(self) -> str:
        return "JustIntonation()"
