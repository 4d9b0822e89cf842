#!/usr/bin/env python3
"""ABOUTME: Config and preset tests - verifies persisted player settings and synth presets.
ABOUTME: Covers defaults, clamping, the environment override and user preset files."""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from audio.synth_engine import WavetableOscillator
from audio.wavetable import Wavetable
from config_manager import CONFIG_ENV_VAR, ConfigManager
from music.errors import ConfigurationError
from music.preset_manager import DEFAULT_PARAMS, PresetManager


# ── ConfigManager ────────────────────────────────────────────────

def test_missing_file_gives_defaults(tmp_path):
    config = ConfigManager(tmp_path / "config.json")
    assert config.get_tempo() == 120.0
    assert config.get_speed() == 1.0
    assert config.get_volume() == 1.0
    assert config.get_sample_rate() == 44100
    assert config.get_reference_note() == "A4"
    assert config.get_reference_frequency() == 440.0
    assert config.get_bits_per_sample() == 16
    assert config.get_synth_preset() == "sine"


def test_malformed_file_gives_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert ConfigManager(path).get_tempo() == 120.0


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"tempo": 90}))
    config = ConfigManager(path)
    assert config.get_tempo() == 90.0
    assert config.get_sample_rate() == 44100


def test_setters_clamp_and_persist(tmp_path):
    path = tmp_path / "config.json"
    config = ConfigManager(path)
    config.set_tempo(1000)
    config.set_speed(20)
    config.set_volume(-0.5)
    config.set_synth_preset("square")

    reloaded = ConfigManager(path)
    assert reloaded.get_tempo() == 400.0
    assert reloaded.get_speed() == 8.0
    assert reloaded.get_volume() == 0.0
    assert reloaded.get_synth_preset() == "square"

    config.set_tempo(5)
    assert config.get_tempo() == 20.0
    config.set_speed(0)
    assert config.get_speed() == 1.0


def test_environment_variable_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "from_env.json"
    path.write_text(json.dumps({"sample_rate": 22050}))
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    config = ConfigManager()
    assert config.config_file == path
    assert config.get_sample_rate() == 22050


def test_save_failure_is_not_raised(tmp_path):
    config = ConfigManager(tmp_path / "missing" / "config.json")
    config.set_tempo(100)
    assert config.get_tempo() == 100.0


# ── PresetManager ────────────────────────────────────────────────

def test_factory_presets_are_listed_first(tmp_path):
    manager = PresetManager(tmp_path)
    assert manager.names() == ["sine", "square", "triangle", "sawtooth"]
    assert manager.get("sine").is_factory


def test_build_synth_from_factory_preset(tmp_path):
    synth = PresetManager(tmp_path).build_synth("square")
    assert isinstance(synth, WavetableOscillator)
    assert synth.wavetable == Wavetable.generate(128, "square")
    assert synth.volume == DEFAULT_PARAMS["volume"]


def test_user_presets_are_saved_and_reloaded(tmp_path):
    manager = PresetManager(tmp_path)
    manager.save("Soft Saw", {"waveform": "sawtooth", "volume": 0.5, "table_size": 64})
    assert (tmp_path / "soft_saw.json").exists()

    reloaded = PresetManager(tmp_path)
    assert reloaded.names()[-1] == "Soft Saw"
    synth = reloaded.build_synth("Soft Saw")
    assert len(synth.wavetable) == 64
    assert synth.volume == 0.5
    assert reloaded.extract_params(reloaded.get("Soft Saw"))["time_scale"] == 1.0


def test_invalid_presets_are_rejected(tmp_path):
    manager = PresetManager(tmp_path)
    with pytest.raises(ConfigurationError):
        manager.get("unknown")
    with pytest.raises(ConfigurationError):
        manager.save("sine", {"volume": 0.1})
    with pytest.raises(ConfigurationError):
        manager.save("noise", {"waveform": "noise"})


def test_malformed_preset_files_are_skipped(tmp_path):
    (tmp_path / "broken.json").write_text("{")
    (tmp_path / "list.json").write_text("[1, 2]")
    assert PresetManager(tmp_path).names() == ["sine", "square", "triangle", "sawtooth"]


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
