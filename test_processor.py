#!/usr/bin/env python3
"""ABOUTME: Audio processor tests - verifies synth registration, frequency bookkeeping and mixing.
ABOUTME: Checks the cached current sample, cross-synth normalization and render ordering."""

import math
import sys
from datetime import timedelta
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from audio.processor import AudioProcessor
from audio.synth_engine import Synth, WavetableOscillator
from audio.wavetable import Wavetable
from music.errors import ConfigurationError

CONSTANT = [0.5, 0.5, 0.5, 0.5]


class RecordingSynth(Synth):
    """Synth that records every call it receives."""

    def __init__(self):
        self.added = []
        self.removed = []
        self.cleared = 0
        self.advanced = 0

    def set_volume(self, volume):
        pass

    def clear_voices(self):
        self.cleared += 1

    def add_voice(self, frequency):
        self.added.append(frequency)

    def remove_voice(self, frequency):
        self.removed.append(frequency)

    def get_sample(self):
        return 0.0

    def advance_sample(self, sample_rate):
        self.advanced += 1

    def copy(self):
        return RecordingSynth()


def test_same_synth_registered_twice_gets_two_handles():
    processor = AudioProcessor()
    synth = WavetableOscillator()
    first = processor.register_synth(synth)
    second = processor.register_synth(synth)
    assert first is not second
    assert len(processor.get_handles()) == 2
    processor.unregister_synth(first)
    assert processor.get_handles() == [second]


def test_unregister_unknown_handle_is_noop():
    processor = AudioProcessor()
    other = AudioProcessor().register_synth(WavetableOscillator())
    processor.register_synth(WavetableOscillator())
    processor.unregister_synth(other)
    assert len(processor.get_handles()) == 1
    processor.unregister_all_synths()
    assert processor.get_handles() == []


def test_start_frequency_is_idempotent():
    processor = AudioProcessor()
    synth = RecordingSynth()
    handle = processor.register_synth(synth)
    processor.start_frequency(440.0, handle)
    processor.start_frequency(440.0, handle)
    assert synth.added == [440.0]
    assert processor.get_active_frequencies(handle) == {440.0}


def test_start_frequency_ignores_invalid_frequencies():
    processor = AudioProcessor()
    synth = RecordingSynth()
    handle = processor.register_synth(synth)
    processor.start_frequency(0.0, handle)
    processor.start_frequency(-10.0, handle)
    processor.start_frequency(float("nan"), handle)
    processor.start_frequency(float("inf"), handle)
    assert synth.added == []


def test_huge_frequencies_render_finite_samples():
    processor = AudioProcessor()
    oscillator = WavetableOscillator()
    handle = processor.register_synth(oscillator)
    processor.start_frequency(float("inf"), handle)
    assert oscillator.voices == []
    processor.start_frequency(1e308, handle)
    samples = processor.render(0.01)
    assert len(samples) == 441
    assert np.all(np.isfinite(samples))
    assert math.isfinite(oscillator.voices[0].phase)


def test_stop_frequency_only_stops_active_frequencies():
    processor = AudioProcessor()
    synth = RecordingSynth()
    handle = processor.register_synth(synth)
    processor.stop_frequency(440.0, handle)
    assert synth.removed == []
    processor.start_frequency(440.0, handle)
    processor.stop_frequency(440.0, handle)
    processor.stop_frequency(440.0, handle)
    assert synth.removed == [440.0]
    assert processor.get_active_frequencies(handle) == set()


def test_stop_all_clears_every_registration():
    processor = AudioProcessor()
    synths = [RecordingSynth(), RecordingSynth()]
    handles = [processor.register_synth(synth) for synth in synths]
    for handle in handles:
        processor.start_frequency(220.0, handle)
    processor.stop_all_frequencies()
    assert [synth.cleared for synth in synths] == [1, 1]
    assert all(processor.get_active_frequencies(handle) == set() for handle in handles)
    # Frequencies can be started again after a full stop
    processor.start_frequency(220.0, handles[0])
    assert synths[0].added == [220.0, 220.0]


def test_no_registrations_gives_silence():
    processor = AudioProcessor()
    assert processor.get_current_sample() == 0.0
    assert list(processor.render(0.01)) == [0.0] * 441


def test_mix_is_normalized_by_registration_count():
    processor = AudioProcessor()
    for _ in range(2):
        handle = processor.register_synth(WavetableOscillator.from_samples(CONSTANT, volume=1.0))
        processor.start_frequency(100.0, handle)
    # Silent registrations still count towards the normalization
    processor.register_synth(RecordingSynth())
    processor.register_synth(RecordingSynth())
    assert processor.get_current_sample() == pytest.approx(1.0 / math.sqrt(4))


def test_master_volume_is_clamped_and_applied():
    processor = AudioProcessor(volume=3.0)
    assert processor.volume == 1.0
    handle = processor.register_synth(WavetableOscillator.from_samples(CONSTANT, volume=1.0))
    processor.start_frequency(100.0, handle)
    processor.set_volume(0.5)
    assert processor.get_current_sample() == 0.25


def test_current_sample_is_cached_until_advance():
    processor = AudioProcessor()
    handle = processor.register_synth(WavetableOscillator.from_samples(CONSTANT, volume=1.0))
    processor.start_frequency(100.0, handle)
    assert processor.get_current_sample() == 0.5
    handle.set_volume(0.0)
    assert processor.get_current_sample() == 0.5
    processor.advance_sample()
    assert processor.get_current_sample() == 0.0


def test_render_reads_before_advancing():
    processor = AudioProcessor(sample_rate=4)
    handle = processor.register_synth(
        WavetableOscillator(wavetable=Wavetable([0.0, 1.0, 0.0, -1.0]), volume=1.0))
    processor.start_frequency(1.0, handle)
    samples = processor.render(1.0)
    assert samples.dtype == np.float32
    assert list(samples) == [0.0, 1.0, 0.0, -1.0]


def test_render_length_is_floored():
    processor = AudioProcessor(sample_rate=10)
    assert len(processor.render(0.25)) == 2
    assert len(processor.render(timedelta(milliseconds=500))) == 5
    assert len(processor.render(0)) == 0
    assert len(processor.render(-1.0)) == 0


def test_advance_reaches_every_synth():
    processor = AudioProcessor()
    synths = [RecordingSynth(), RecordingSynth()]
    for synth in synths:
        processor.register_synth(synth)
    processor.render(timedelta(microseconds=100000))
    assert [synth.advanced for synth in synths] == [4410, 4410]


def test_sample_rate_must_be_positive():
    processor = AudioProcessor()
    with pytest.raises(ConfigurationError):
        processor.set_sample_rate(0)
    processor.set_sample_rate(22050)
    assert processor.get_sample_rate() == 22050


def test_processor_iterates_samples():
    processor = AudioProcessor(sample_rate=4)
    handle = processor.register_synth(
        WavetableOscillator(wavetable=Wavetable([0.0, 1.0, 0.0, -1.0]), volume=1.0))
    processor.start_frequency(1.0, handle)
    assert [next(processor) for _ in range(5)] == [0.0, 1.0, 0.0, -1.0, 0.0]


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
