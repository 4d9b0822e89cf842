#!/usr/bin/env python3
"""ABOUTME: Music theory tests - verifies notes, tunings, chords, scales and intervals.
ABOUTME: Also checks frequency resolution of playables and beat to seconds conversion."""

import sys
from datetime import timedelta
from fractions import Fraction
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from music.chord_library import Chord, ChordLibrary
from music.errors import ConfigurationError, InputError
from music.interval import Interval
from music.note import DEFAULT_NOTE, REFERENCE_NOTE, Note
from music.playable import resolve_frequencies
from music.rhythm import Beat, Rhythm, to_seconds
from music.scale import Scale
from music.tuning import EqualTemperament, JustIntonation


def midi_indices(playable):
    return [note.midi_index for note in playable.get_notes()]


# ── Notes ────────────────────────────────────────────────────────

def test_note_names_parse_to_midi_indices():
    assert Note.from_string("A4").midi_index == 69
    assert Note.from_string("C4") == DEFAULT_NOTE
    assert Note.from_string("c#5").midi_index == 73
    assert Note.from_string("Bb3").midi_index == 58


def test_enharmonic_spellings_cross_octaves():
    assert Note.from_string("Cb4") == Note.from_string("B3")
    assert Note.from_string("B#3") == Note.from_string("C4")


def test_invalid_note_names_are_rejected():
    for name in ("H4", "A", "4", "A#x"):
        with pytest.raises(InputError):
            Note.from_string(name)


def test_note_offsets_and_ordering():
    a4 = Note.from_midi_index(69)
    assert a4 == REFERENCE_NOTE
    assert str(a4.offset(3)) == "C5"
    assert str(a4.offset(-10)) == "B3"
    assert Note(0, 4) < Note(11, 4) < Note(0, 5)
    assert Note(14, 4) == Note(2, 5)


# ── Tunings ──────────────────────────────────────────────────────

def test_equal_temperament():
    tuning = EqualTemperament()
    a4 = Note.from_string("A4")
    assert tuning.get_frequency(440.0, a4, Note.from_string("A5")) == 880.0
    assert tuning.get_frequency(440.0, a4, Note.from_string("A3")) == 220.0
    assert tuning.get_frequency(440.0, a4, DEFAULT_NOTE) == pytest.approx(261.6256, abs=1e-4)


def test_equal_temperament_with_other_divisions():
    tuning = EqualTemperament(7)
    a4 = Note.from_string("A4")
    assert tuning.get_frequency(440.0, a4, a4.offset(7)) == pytest.approx(880.0)


def test_just_intonation():
    tuning = JustIntonation()
    a4 = Note.from_string("A4")
    assert tuning.get_frequency(440.0, a4, Note.from_string("E5")) == pytest.approx(660.0)
    assert tuning.get_frequency(440.0, a4, Note.from_string("A3")) == pytest.approx(220.0)
    assert tuning.get_frequency(440.0, a4, Note.from_string("C#5")) == pytest.approx(550.0)


# ── Chords, scales, intervals ────────────────────────────────────

def test_chords_stack_upwards():
    assert midi_indices(Chord("C", "M", 4)) == [60, 64, 67]
    assert midi_indices(Chord("A", "m", 4)) == [69, 72, 76]
    assert midi_indices(Chord("G", "7", 4)) == [67, 71, 74, 77]


def test_invalid_chord_is_rejected():
    with pytest.raises(InputError):
        Chord("H", "M")


def test_chords_from_roman_numerals():
    assert midi_indices(Chord.from_numeral("I", "C4")) == [60, 64, 67]
    assert midi_indices(Chord.from_numeral("ii", "C4")) == [62, 65, 69]
    assert midi_indices(Chord.from_numeral("V7", "C4")) == [67, 71, 74, 77]
    assert midi_indices(Chord.from_numeral("viio", "C4")) == [71, 74, 77]
    assert midi_indices(Chord.from_numeral("bVI", "C4")) == [68, 72, 75]
    assert midi_indices(Chord.from_numeral("IV", Note.from_string("C5"))) == [77, 81, 84]


def test_invalid_numerals_are_rejected():
    for numeral in ("IX", "", "Vx", "H"):
        with pytest.raises(InputError):
            Chord.from_numeral(numeral, "C4")


def test_chord_library_covers_every_key():
    library = ChordLibrary()
    assert len(library.get_keys()) == 12
    assert "Minor 7th" in library.get_chord_types("F#")
    assert library.get_chord_notes("C", "Major") == ["C", "E", "G"]
    assert library.get_chord_notes("C", "Unknown") == []
    assert midi_indices(library.get_chord("A", "Minor")) == [69, 72, 76]
    with pytest.raises(InputError):
        library.get_chord("C", "Unknown")


def test_scales_ascend_to_the_upper_tonic():
    assert midi_indices(Scale("C", "major")) == [60, 62, 64, 65, 67, 69, 71, 72]
    assert midi_indices(Scale("A", "natural_minor", 3)) == [57, 59, 60, 62, 64, 65, 67, 69]


def test_unknown_scale_is_rejected():
    with pytest.raises(InputError):
        Scale("C", "bebop")


def test_interval_plays_base_and_upper_note():
    interval = Interval(7)
    assert interval.name == "Perfect 5th"
    assert midi_indices(interval) == [60, 67]
    frequencies = interval.get_frequencies()
    assert frequencies[1] / frequencies[0] == pytest.approx(2 ** (7 / 12))


# ── Frequency resolution ─────────────────────────────────────────

def test_raw_frequencies_pass_through():
    assert resolve_frequencies(440.0) == [440.0]
    assert resolve_frequencies([220.0, 330.0]) == [220.0, 330.0]


def test_note_names_and_notes_resolve_through_tuning():
    assert resolve_frequencies("A4") == [440.0]
    assert resolve_frequencies([REFERENCE_NOTE, "A5"]) == [440.0, 880.0]
    assert resolve_frequencies("A4", reference_note=Note.from_string("A4"),
                               base_frequency=432.0) == [432.0]


def test_playables_resolve_in_note_order():
    frequencies = resolve_frequencies(Chord("A", "m", 4))
    assert frequencies[0] == 440.0
    assert frequencies == sorted(frequencies)


def test_unplayable_objects_are_rejected():
    with pytest.raises(InputError):
        resolve_frequencies(object())


# ── Rhythm ───────────────────────────────────────────────────────

def test_beats_convert_with_tempo_and_speed():
    assert to_seconds(Beat.QUARTER, 120) == 0.5
    assert to_seconds(Beat.WHOLE, 60) == 4.0
    assert to_seconds(Beat.QUARTER_DOTTED, 120) == 0.75
    assert to_seconds(Beat.HALF, 120, speed=2.0) == 0.5
    assert Beat.EIGHTH.get_duration(120) == 0.25
    assert to_seconds(Fraction(1, 4), 120) == 0.5


def test_timedelta_is_absolute():
    assert to_seconds(timedelta(milliseconds=250), 60) == 0.25
    assert to_seconds(timedelta(milliseconds=250), 200, speed=3.0) == 0.25


def test_tempo_must_be_positive():
    with pytest.raises(ConfigurationError):
        to_seconds(Beat.QUARTER, 0)
    with pytest.raises(ConfigurationError):
        to_seconds(Beat.QUARTER, 120, speed=0)


def test_rhythm_durations_follow_the_time_signature():
    rhythm = Rhythm(120, (4, 4), [Beat.QUARTER, Beat.EIGHTH])
    assert rhythm.get_duration_at_index(0) == 0.5
    assert rhythm.get_duration_at_index(1) == 0.25
    compound = Rhythm(120, (6, 8), [Beat.QUARTER])
    assert compound.get_duration_at_index(0) == 1.0


def test_rhythm_position_wraps():
    rhythm = Rhythm(140, (3, 4), [Beat.QUARTER, Beat.EIGHTH])
    rhythm.push(Beat.HALF)
    assert len(rhythm) == 3
    rhythm.next_position()
    rhythm.next_position()
    assert rhythm.get_position() == 2
    rhythm.next_position()
    assert rhythm.get_position() == 0
    assert rhythm.pop() == Beat.HALF


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
