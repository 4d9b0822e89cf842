"""Beat durations, their conversion to seconds and rhythmic patterns."""
from datetime import timedelta
from fractions import Fraction
from numbers import Real
from typing import Iterable, List, Optional, Tuple, Union

from music.errors import ConfigurationError

# A whole note lasts four quarter-note beats
QUARTERS_PER_WHOLE = 4


class Beat(Fraction):
    """A duration expressed as an exact fraction of a whole note."""

    def get_duration(self, tempo: float, speed: float = 1.0) -> float:
        """Seconds this beat lasts at `tempo` quarter notes per minute."""
        return to_seconds(self, tempo, speed)

    def __repr__(self) -> str:
        return f"Beat({self.numerator}, {self.denominator})"


Beat.WHOLE = Beat(1, 1)
Beat.HALF = Beat(1, 2)
Beat.QUARTER = Beat(1, 4)
Beat.EIGHTH = Beat(1, 8)
Beat.SIXTEENTH = Beat(1, 16)
Beat.THIRTYSECOND = Beat(1, 32)
Beat.WHOLE_DOTTED = Beat(3, 2)
Beat.HALF_DOTTED = Beat(3, 4)
Beat.QUARTER_DOTTED = Beat(3, 8)
Beat.EIGHTH_DOTTED = Beat(3, 16)
Beat.SIXTEENTH_DOTTED = Beat(3, 32)
Beat.THIRTYSECOND_DOTTED = Beat(3, 64)

Duration = Union[Fraction, timedelta]


def to_seconds(duration: Duration, tempo: float, speed: float = 1.0) -> float:
    """Convert a musical duration into seconds.

    Args:
        duration: A fraction of a whole note (Beat or Fraction) or an
            absolute timedelta, which ignores tempo and speed.
        tempo: Quarter-note beats per minute.
        speed: Playback speed multiplier.

    Returns:
        The duration in seconds.
    """
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    if tempo <= 0 or speed <= 0:
        raise ConfigurationError(f"tempo and speed must be positive, got {tempo} and {speed}")
    if not isinstance(duration, Real):
        raise ConfigurationError(f"cannot convert {type(duration).__name__} into a duration")
    return float(duration) * QUARTERS_PER_WHOLE * 60.0 / tempo / speed


class Rhythm:
    """A sequence of beats with a tempo, a time signature and a playback position.

    The time signature's denominator decides which note value counts as one
    beat of the tempo, so a 6/8 rhythm at 120 bpm counts eighth notes.
    """

    def __init__(self, beats_per_minute: float = 120.0,
                 time_signature: Tuple[int, int] = (4, 4),
                 beats: Optional[Iterable[Fraction]] = None):
        self.beats_per_minute = float(beats_per_minute)
        numerator, denominator = time_signature
        self.time_signature = (int(numerator), int(denominator))
        self.beats: List[Beat] = [Beat(beat) for beat in (beats or [])]
        self.current_beat = 0

    def push(self, beat: Fraction):
        self.beats.append(Beat(beat))

    def pop(self) -> Beat:
        return self.beats.pop()

    def insert(self, index: int, beat: Fraction):
        self.beats.insert(index, Beat(beat))

    def remove(self, index: int):
        del self.beats[index]

    def at(self, index: int) -> Beat:
        return self.beats[index]

    def __len__(self) -> int:
        return len(self.beats)

    def __iter__(self):
        return iter(self.beats)

    def get_duration_at_index(self, index: int) -> float:
        """Seconds the beat at `index` lasts under this rhythm's tempo and meter."""
        beats_per_second = self.beats_per_minute / 60.0
        whole_note_duration = self.time_signature[1] / beats_per_second
        return whole_note_duration * float(self.beats[index])

    def get_duration_of_current_beat(self) -> float:
        return self.get_duration_at_index(self.current_beat)

    def next_position(self):
        if self.beats:
            self.current_beat = (self.current_beat + 1) % len(self.beats)

    def reset_position(self):
        self.current_beat = 0

    def get_position(self) -> int:
        return self.current_beat

    def __repr__(self) -> str:
        return (f"Rhythm({self.beats_per_minute} bpm, "
                f"{self.time_signature[0]}/{self.time_signature[1]}, "
                f"{len(self.beats)} beats)")
