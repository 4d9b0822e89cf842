"""Single-cycle lookup tables used by the wavetable oscillator."""
from typing import Iterable, Union

import numpy as np

from audio.waveforms import WaveFunction, get_waveform
from music.errors import ConfigurationError

DEFAULT_TABLE_SIZE = 128


class Wavetable:
    """One period of a periodic waveform sampled at equally spaced phase points.

    The table is immutable once built; every value lies in [-1.0, 1.0].
    """

    def __init__(self, samples: Iterable[float]):
        table = np.clip(np.asarray(list(samples), dtype=np.float32).reshape(-1), -1.0, 1.0)
        if table.size == 0:
            raise ConfigurationError("a wavetable needs at least one sample")
        table.setflags(write=False)
        self._table = table

    @classmethod
    def generate(cls, table_size: int, shape_fn: Union[str, WaveFunction],
                 time_scale: float = 1.0) -> "Wavetable":
        """Build a table by evaluating a shaping function over one period.

        Args:
            table_size: Number of points stored in the table (must be > 0).
            shape_fn: Waveform name or a float -> float shaping function.
            time_scale: Scales the time value passed to the shaping function.

        Returns:
            A new Wavetable where sample[i] = clamp(shape_fn(time_scale * i / table_size)).
        """
        if table_size <= 0:
            raise ConfigurationError(f"wavetable size must be positive, got {table_size}")
        wave_function = get_waveform(shape_fn)
        values = np.empty(table_size, dtype=np.float32)
        for i in range(table_size):
            time_value = i / table_size
            values[i] = min(1.0, max(-1.0, float(wave_function(time_scale * time_value))))
        return cls(values)

    @property
    def samples(self) -> np.ndarray:
        return self._table

    def __len__(self) -> int:
        return int(self._table.size)

    def __getitem__(self, index: int) -> float:
        return float(self._table[index])

    def __iter__(self):
        return (float(value) for value in self._table)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Wavetable):
            return NotImplemented
        return np.array_equal(self._table, other._table)

    def __hash__(self) -> int:
        return hash(self._table.tobytes())

    def __repr__(self) -> str:
        return f"Wavetable(size={len(self)})"


def generate(table_size: int, shape_fn: Union[str, WaveFunction],
             time_scale: float = 1.0) -> Wavetable:
    return Wavetable.generate(table_size, shape_fn, time_scale)
