"""MIDI events and tracks made of events separated by rests."""
from fractions import Fraction
from typing import Iterable, Iterator, List, Tuple

from music.note import Note
from music.rhythm import Beat


class MIDIEvent:
    """Base class for the events a track can hold."""

    def _key(self) -> Tuple:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__,) + self._key())


class NoteOn(MIDIEvent):
    """Start sounding a note."""

    def __init__(self, note: Note):
        self.note = note

    def _key(self) -> Tuple:
        return (self.note,)

    def __repr__(self) -> str:
        return f"NoteOn({self.note})"


class NoteOff(MIDIEvent):
    """Stop sounding a note."""

    def __init__(self, note: Note):
        self.note = note

    def _key(self) -> Tuple:
        return (self.note,)

    def __repr__(self) -> str:
        return f"NoteOff({self.note})"


class SetTempo(MIDIEvent):
    """Change the tempo in quarter notes per minute."""

    def __init__(self, bpm: int):
        self.bpm = int(bpm)

    def _key(self) -> Tuple:
        return (self.bpm,)

    def __repr__(self) -> str:
        return f"SetTempo({self.bpm})"


class SetTimeSignature(MIDIEvent):
    """Change the meter; the denominator is a power of two."""

    def __init__(self, numerator: int, denominator: int):
        self.numerator = int(numerator)
        self.denominator = int(denominator)

    def _key(self) -> Tuple:
        return (self.numerator, self.denominator)

    def __repr__(self) -> str:
        return f"SetTimeSignature({self.numerator}/{self.denominator})"


class TrackItem:
    """Either an Event or a Rest inside a track."""

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__,) + tuple(vars(self).values()))


class Event(TrackItem):

    def __init__(self, event: MIDIEvent):
        self.event = event

    def __repr__(self) -> str:
        return f"Event({self.event!r})"


class Rest(TrackItem):
    """Wait for `beat` (a fraction of a whole note) before the next item."""

    def __init__(self, beat: Fraction):
        self.beat = Beat(beat)

    def __repr__(self) -> str:
        return f"Rest({self.beat.numerator}/{self.beat.denominator})"


class Track:
    """Ordered track items.

    Rests pushed back to back are merged and only written out when the next
    event arrives, so a track never ends with a trailing rest.
    """

    def __init__(self):
        self.items: List[TrackItem] = []
        self.accumulated_beats = Beat(0)
        self.empty = True

    def push_event(self, event: MIDIEvent):
        if self.accumulated_beats > 0:
            self.items.append(Rest(self.accumulated_beats))
            self.accumulated_beats = Beat(0)
        self.items.append(Event(event))
        self.empty = False

    def push_rest(self, beat: Fraction):
        self.accumulated_beats = Beat(self.accumulated_beats + beat)

    def push_note(self, note: Note, duration: Fraction):
        self.push_notes([note], duration)

    def push_notes(self, notes: Iterable[Note], duration: Fraction):
        """Start every note together, hold them for `duration`, then stop them."""
        notes = list(notes)
        for note in notes:
            self.push_event(NoteOn(note))
        self.push_rest(duration)
        for note in notes:
            self.push_event(NoteOff(note))

    def is_empty(self) -> bool:
        return self.empty

    def __iter__(self) -> Iterator[TrackItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Track):
            return NotImplemented
        return self.items == other.items and self.accumulated_beats == other.accumulated_beats

    def __repr__(self) -> str:
        return f"Track({len(self.items)} items)"
