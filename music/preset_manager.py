"""Wavetable synth presets: factory timbres plus user presets stored as JSON."""
import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from audio.synth_engine import WavetableOscillator
from audio.waveforms import WAVEFORMS
from audio.wavetable import DEFAULT_TABLE_SIZE
from music.errors import AudioIOError, ConfigurationError

_LOGGER = logging.getLogger("music_tools.music.preset_manager")

# Default parameter values, mirroring WavetableOscillator.__init__ defaults
DEFAULT_PARAMS: dict = {
    "waveform": "sine",
    "time_scale": 1.0,
    "table_size": DEFAULT_TABLE_SIZE,
    "volume": 0.2,
}

PARAM_KEYS = list(DEFAULT_PARAMS.keys())

# One factory preset per built-in waveform, always listed first
FACTORY_PRESETS: Dict[str, dict] = {
    name: dict(DEFAULT_PARAMS, waveform=name) for name in WAVEFORMS
}


class Preset:
    """A single preset entry."""

    def __init__(self, name: str, params: dict, filename: Optional[str] = None):
        self.name = name
        self.filename = filename  # basename for user presets, None for factory ones
        self.params = params

    @property
    def is_factory(self) -> bool:
        return self.filename is None

    def __repr__(self):
        return f"Preset({self.name!r}, {self.filename!r})"


class PresetManager:
    """Manages synth presets stored as individual JSON files."""

    def __init__(self, presets_dir: Optional[Path] = None):
        if presets_dir is None:
            presets_dir = Path(__file__).parent.parent / "presets"
        self.presets_dir = Path(presets_dir)
        self.presets: List[Preset] = []
        self._reload()

    # ── Public API ──────────────────────────────────────────────

    def reload(self):
        """Reload presets from disk (call after editing files by hand)."""
        self._reload()

    def names(self) -> List[str]:
        return [p.name for p in self.presets]

    def get(self, name: str) -> Preset:
        for preset in self.presets:
            if preset.name == name:
                return preset
        raise ConfigurationError(f"unknown synth preset {name!r}")

    def extract_params(self, preset: Preset) -> dict:
        """Return a clean params dict from a preset, filling missing keys with defaults."""
        out = dict(DEFAULT_PARAMS)
        out.update({k: preset.params[k] for k in PARAM_KEYS if k in preset.params})
        return out

    def save(self, name: str, params: dict) -> Preset:
        """Save params as a user preset, overwriting any user preset of the same name.

        Raises:
            ConfigurationError: If the name belongs to a factory preset or the
                waveform is unknown.
            AudioIOError: If the preset file cannot be written.
        """
        if name in FACTORY_PRESETS:
            raise ConfigurationError(f"cannot overwrite factory preset {name!r}")
        data = {"name": name}
        data.update({k: params.get(k, DEFAULT_PARAMS[k]) for k in PARAM_KEYS})
        if data["waveform"] not in WAVEFORMS:
            raise ConfigurationError(f"unknown waveform {data['waveform']!r}")

        slug = re.sub(r"[^\w]", "_", name.lower())
        path = self.presets_dir / f"{slug}.json"
        try:
            self.presets_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise AudioIOError(f"could not write preset {path}: {e}") from e
        _LOGGER.info("Saved synth preset %r to %s", name, path)

        self._reload()
        return self.get(name)

    def build_synth(self, name: str) -> WavetableOscillator:
        """Create a fresh oscillator configured by the named preset."""
        params = self.extract_params(self.get(name))
        return WavetableOscillator(
            waveform=params["waveform"],
            time_scale=float(params["time_scale"]),
            table_size=int(params["table_size"]),
            volume=float(params["volume"]),
        )

    # ── Internal helpers ─────────────────────────────────────────

    def _reload(self):
        """Load factory presets followed by user presets sorted by modification time.

        User files that reuse a factory name or cannot be parsed are skipped.
        """
        presets = [Preset(name, dict(params)) for name, params in FACTORY_PRESETS.items()]
        paths = []
        if self.presets_dir.is_dir():
            paths = sorted(self.presets_dir.glob("*.json"), key=lambda p: p.stat().st_mtime)
        for path in paths:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                _LOGGER.debug("Skipping malformed preset %s: %s", path, e)
                continue
            if not isinstance(data, dict):
                continue
            name = data.get("name", path.stem.replace("_", " "))
            if name in FACTORY_PRESETS:
                continue
            presets.append(Preset(name=name, params=data, filename=path.name))
        self.presets = presets
