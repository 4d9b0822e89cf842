"""Configuration file management."""
import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

_LOGGER = logging.getLogger("music_tools.config_manager")

CONFIG_ENV_VAR = "MUSIC_TOOLS_CONFIG"


class ConfigManager:
    """Manages persisted player settings.

    The file is chosen from the explicit path, then the MUSIC_TOOLS_CONFIG
    environment variable, then config.json next to this module.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        if config_file is None:
            config_file = os.environ.get(CONFIG_ENV_VAR) or Path(__file__).parent / "config.json"
        self.config_file = Path(config_file)
        self.config = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from file, falling back to defaults for missing keys."""
        config = self._default_config()
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    loaded = json.load(f)
            except (OSError, ValueError) as e:
                _LOGGER.warning("Ignoring unreadable config %s: %s", self.config_file, e)
                return config
            if isinstance(loaded, dict):
                config.update(loaded)
        return config

    def _default_config(self) -> dict:
        """Return default configuration."""
        return {
            "tempo": 120.0,
            "speed": 1.0,
            "volume": 1.0,
            "sample_rate": 44100,
            "reference_note": "A4",
            "reference_frequency": 440.0,
            "bits_per_sample": 16,
            "synth_preset": "sine",
        }

    def save_config(self):
        """Save configuration to file."""
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            _LOGGER.warning("Error saving config: %s", e)

    # ── Timing ───────────────────────────────────────────────────

    def get_tempo(self) -> float:
        """Return the tempo in quarter notes per minute (default 120)."""
        return float(self.config.get("tempo", 120.0))

    def set_tempo(self, tempo: float):
        """Persist the tempo and save. Clamped to [20, 400]."""
        self.config["tempo"] = float(max(20.0, min(400.0, tempo)))
        self.save_config()

    def get_speed(self) -> float:
        return float(self.config.get("speed", 1.0))

    def set_speed(self, speed: float):
        """Persist the playback speed. Clamped to (0, 8]; non-positive values reset to 1."""
        self.config["speed"] = float(min(8.0, speed)) if speed > 0 else 1.0
        self.save_config()

    # ── Output ───────────────────────────────────────────────────

    def get_volume(self) -> float:
        return float(self.config.get("volume", 1.0))

    def set_volume(self, volume: float):
        self.config["volume"] = float(max(0.0, min(1.0, volume)))
        self.save_config()

    def get_sample_rate(self) -> int:
        return int(self.config.get("sample_rate", 44100))

    def set_sample_rate(self, sample_rate: int):
        if int(sample_rate) > 0:
            self.config["sample_rate"] = int(sample_rate)
            self.save_config()

    def get_bits_per_sample(self) -> int:
        return int(self.config.get("bits_per_sample", 16))

    def set_bits_per_sample(self, bits_per_sample: int):
        self.config["bits_per_sample"] = int(bits_per_sample)
        self.save_config()

    # ── Tuning ───────────────────────────────────────────────────

    def get_reference_note(self) -> str:
        return str(self.config.get("reference_note", "A4"))

    def get_reference_frequency(self) -> float:
        return float(self.config.get("reference_frequency", 440.0))

    def set_reference(self, note_name: str, frequency: float):
        """Persist the note that sounds at `frequency` hertz."""
        self.config["reference_note"] = note_name
        self.config["reference_frequency"] = float(frequency)
        self.save_config()

    # ── Synth preset persistence ─────────────────────────────────

    def get_synth_preset(self) -> str:
        return str(self.config.get("synth_preset", "sine"))

    def set_synth_preset(self, name: str):
        self.config["synth_preset"] = name
        self.save_config()
