"""Multi-track MIDI sequences, Standard MIDI File import/export and merged iteration."""
import logging
from collections import deque
from datetime import timedelta
from fractions import Fraction
from pathlib import Path
from typing import Deque, Iterator, List, Optional, Tuple, Union

import mido

from midi.track import (Event, MIDIEvent, NoteOff, NoteOn, Rest, SetTempo,
                        SetTimeSignature, Track, TrackItem)
from music.errors import AudioIOError, InputError
from music.note import Note
from music.rhythm import Beat

_LOGGER = logging.getLogger("music_tools.midi.midi_file")

DEFAULT_TICKS_PER_QUARTER_NOTE = 360
DEFAULT_VELOCITY = 100


def beat_to_ticks(beat: Fraction, ticks_per_quarter_note: int) -> int:
    return (4 * ticks_per_quarter_note * beat.numerator) // beat.denominator


def ticks_to_beat(ticks: int, ticks_per_quarter_note: int) -> Beat:
    return Beat(ticks, 4 * ticks_per_quarter_note)


def _check_path(path: Union[str, Path]) -> str:
    try:
        str(path).encode("utf-8")
    except UnicodeEncodeError:
        raise InputError("the file path must be a valid unicode string") from None
    return str(path)


def _note_from_index(note_index: int) -> Note:
    if not 0 <= note_index <= 127:
        raise InputError(f"MIDI note index {note_index} is out of range")
    return Note.from_midi_index(note_index)


class MIDI:
    """An ordered collection of tracks sharing one tick resolution."""

    def __init__(self, ticks_per_quarter_note: int = DEFAULT_TICKS_PER_QUARTER_NOTE):
        self.ticks_per_quarter_note = int(ticks_per_quarter_note)
        self.tracks: List[Track] = []

    @classmethod
    def import_file(cls, path: Union[str, Path]) -> "MIDI":
        """Read a Standard MIDI File.

        Note-on messages with velocity 0 become note-offs; set_tempo and
        time_signature meta messages are kept, everything else only
        contributes its delta time. Tracks without any kept events are dropped.

        Raises:
            InputError: If the path is not valid unicode, does not exist or is
                not a valid MIDI file.
        """
        str_path = _check_path(path)
        try:
            midi_file = mido.MidiFile(str_path)
        except (OSError, EOFError, ValueError, KeyError) as e:
            raise InputError("the path provided does not exist or the midi file was invalid") from e

        midi = cls(midi_file.ticks_per_beat)
        for midi_track in midi_file.tracks:
            track = Track()
            for message in midi_track:
                track.push_rest(ticks_to_beat(message.time, midi.ticks_per_quarter_note))
                event = _event_from_message(message)
                if event is not None:
                    track.push_event(event)
            if not track.is_empty():
                midi.push(track)
        _LOGGER.debug("Imported %d tracks from %s", len(midi.tracks), str_path)
        return midi

    def export(self, path: Union[str, Path]) -> Path:
        """Write the tracks as a type 1 Standard MIDI File.

        Raises:
            InputError: If there are no tracks or the path is not valid unicode.
            AudioIOError: If the file cannot be written.
        """
        str_path = _check_path(path)
        if not self.tracks:
            raise InputError("the midi object could not be saved because it has no tracks")
        midi_file = mido.MidiFile(type=1, ticks_per_beat=self.ticks_per_quarter_note)
        for track in self.tracks:
            midi_track = mido.MidiTrack()
            pending_ticks = 0
            for item in track:
                if isinstance(item, Rest):
                    pending_ticks += beat_to_ticks(item.beat, self.ticks_per_quarter_note)
                    continue
                midi_track.append(_message_from_event(item.event, pending_ticks))
                pending_ticks = 0
            midi_file.tracks.append(midi_track)
        try:
            midi_file.save(str_path)
        except OSError as e:
            raise AudioIOError(f"could not write {str_path}: {e}") from e
        _LOGGER.info("Exported %d tracks to %s", len(self.tracks), str_path)
        return Path(str_path)

    def push(self, track: Track):
        self.tracks.append(track)

    def pop(self) -> Optional[Track]:
        return self.tracks.pop() if self.tracks else None

    def get_num_tracks(self) -> int:
        return len(self.tracks)

    def is_empty(self) -> bool:
        return not self.tracks

    def get_tick_duration(self, tempo: float) -> timedelta:
        """Length of one tick at `tempo` quarter notes per minute."""
        return timedelta(seconds=60.0 / (tempo * self.ticks_per_quarter_note))

    def iter_track_items(self) -> "TrackItemIterator":
        return TrackItemIterator(self.tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self.tracks)

    def __len__(self) -> int:
        return len(self.tracks)

    def __repr__(self) -> str:
        return f"MIDI({len(self.tracks)} tracks, tpq={self.ticks_per_quarter_note})"


def _event_from_message(message) -> Optional[MIDIEvent]:
    if message.type == 'note_on':
        note = _note_from_index(message.note)
        return NoteOn(note) if message.velocity > 0 else NoteOff(note)
    if message.type == 'note_off':
        return NoteOff(_note_from_index(message.note))
    if message.type == 'set_tempo':
        return SetTempo(60000000 // message.tempo)
    if message.type == 'time_signature':
        return SetTimeSignature(message.numerator, message.denominator)
    return None


def _message_from_event(event: MIDIEvent, delta_ticks: int):
    if isinstance(event, (NoteOn, NoteOff)):
        note_index = event.note.midi_index
        if not 0 <= note_index <= 127:
            raise InputError(f"{event.note} cannot be stored in a MIDI file")
        if isinstance(event, NoteOn):
            return mido.Message('note_on', note=note_index, velocity=DEFAULT_VELOCITY, time=delta_ticks)
        return mido.Message('note_off', note=note_index, velocity=0, time=delta_ticks)
    if isinstance(event, SetTempo):
        return mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(event.bpm), time=delta_ticks)
    if isinstance(event, SetTimeSignature):
        return mido.MetaMessage('time_signature', numerator=event.numerator,
                                denominator=event.denominator, time=delta_ticks)
    raise InputError(f"cannot export {event!r}")


class TrackItemIterator:
    """Merges the items of several tracks in chronological order.

    Yields (track_index, item). At each step the first track whose next item
    is an event wins. With no pending event, the track holding the shortest
    rest wins (the lowest index on ties), and every other track's leading
    rest is shortened by that amount, or dropped when it is not longer.
    """

    def __init__(self, tracks: List[Track]):
        self.item_queues: List[Deque[TrackItem]] = [deque(track) for track in tracks]

    def __iter__(self) -> "TrackItemIterator":
        return self

    def __next__(self) -> Tuple[int, TrackItem]:
        self._discard_empty_rests()
        next_track_index: Optional[int] = None
        min_wait: Optional[Beat] = None
        for track_index, queue in enumerate(self.item_queues):
            if not queue:
                continue
            item = queue[0]
            if isinstance(item, Event):
                next_track_index = track_index
                min_wait = None
                break
            if min_wait is None or item.beat < min_wait:
                next_track_index = track_index
                min_wait = item.beat

        if next_track_index is None:
            raise StopIteration

        if min_wait is not None:
            for track_index, queue in enumerate(self.item_queues):
                if track_index == next_track_index or not queue:
                    continue
                front = queue[0]
                if isinstance(front, Rest):
                    if min_wait < front.beat:
                        queue[0] = Rest(front.beat - min_wait)
                    else:
                        queue.popleft()
        return next_track_index, self.item_queues[next_track_index].popleft()

    def _discard_empty_rests(self):
        for queue in self.item_queues:
            while queue and isinstance(queue[0], Rest) and queue[0].beat <= 0:
                queue.popleft()
