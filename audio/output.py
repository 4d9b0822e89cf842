"""Blocking playback of rendered sample buffers through PyAudio."""
import logging
import threading
import time
from typing import Optional

import numpy as np

from music.errors import DeviceError

# Check for PyAudio availability
try:
    import pyaudio
    AUDIO_AVAILABLE = True
except ImportError:
    AUDIO_AVAILABLE = False
    pyaudio = None

_LOGGER = logging.getLogger("music_tools.audio.output")


class AudioOutput:
    """Default output device opened through PyAudio.

    The device is probed at construction so a missing sound card is reported
    before anything is queued. Each play() call opens one mono float32 stream
    whose callback thread pulls from the buffer until it is exhausted.
    """

    def __init__(self, buffer_size: int = 1024):
        self.buffer_size = buffer_size
        self.audio = None
        self.device_index: Optional[int] = None
        if not AUDIO_AVAILABLE or pyaudio is None:
            raise DeviceError("audio playback requires pyaudio")
        try:
            self.audio = pyaudio.PyAudio()
            default_output = self.audio.get_default_output_device_info()
            self.device_index = default_output['index']
        except (IOError, OSError) as e:
            _LOGGER.warning("Audio initialization failed: %s", e)
            self.close()
            raise DeviceError("no sound card detected") from e

    def play(self, samples: np.ndarray, sample_rate: int):
        """Play a buffer and block until the last sample has been handed to the device."""
        audio = np.asarray(samples, dtype=np.float32).reshape(-1)
        if audio.size == 0:
            return
        position = 0
        position_lock = threading.Lock()

        def _callback(in_data, frame_count, time_info, status):
            nonlocal position
            with position_lock:
                start = position
                position = min(audio.size, start + frame_count)
            chunk = audio[start:position]
            if position >= audio.size:
                return (chunk.tobytes(), pyaudio.paComplete)
            return (chunk.tobytes(), pyaudio.paContinue)

        try:
            stream = self.audio.open(
                format=pyaudio.paFloat32, channels=1, rate=int(sample_rate),
                output=True, output_device_index=self.device_index,
                frames_per_buffer=self.buffer_size, stream_callback=_callback,
            )
        except (IOError, OSError) as e:
            _LOGGER.warning("Output stream could not be opened: %s", e)
            raise DeviceError("sink could not be created") from e
        try:
            while stream.is_active():
                time.sleep(0.05)
        finally:
            stream.stop_stream()
            stream.close()

    def close(self):
        if self.audio:
            self.audio.terminate()
            self.audio = None
