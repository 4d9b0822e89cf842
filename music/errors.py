"""Exception types shared by the audio, music and midi packages."""


class MusicToolsError(Exception):
    """Base error for the music tools library."""


class DeviceError(MusicToolsError):
    """Raised when no output device is available or a stream cannot be opened."""


class InputError(MusicToolsError):
    """Raised for malformed or out-of-domain input (empty MIDI, bad bit depth, bad names)."""


class AudioIOError(MusicToolsError):
    """Raised when a file cannot be created, written or read."""


class ConfigurationError(MusicToolsError):
    """Raised when an object is constructed with an invalid configuration."""
