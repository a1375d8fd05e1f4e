"""Error types and per-component outcome kinds for voice_monitor"""

from enum import Enum


class VoiceMonitorError(Exception):
    """Base exception for voice_monitor errors"""
    pass


class DeviceUnavailableError(VoiceMonitorError):
    """Exception raised when the audio input device cannot be opened"""
    pass


class AudioSourceClosedError(VoiceMonitorError):
    """Exception raised when reading from a closed or missing audio source"""
    pass


class ErrorKind(str, Enum):
    """Outcome of a single per-frame computation.

    Analysis components never raise on bad input; they return a result
    tagged with one of these kinds and the orchestrator substitutes the
    neutral value.
    """

    NONE = 'none'
    SILENCE = 'silence'
    NO_PEAK = 'no_peak'
    OUT_OF_RANGE = 'out_of_range'
    NUMERIC_FAULT = 'numeric_fault'
    INSUFFICIENT_DATA = 'insufficient_data'
