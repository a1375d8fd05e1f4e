"""Per-frame analysis components for voice_monitor"""

# Lazy import implementation so importing the package does not pull in
# scipy until a component is actually used

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pitch_detector import PitchDetector, PitchEstimate
    from .volume_meter import VolumeMeter, InputLevel
    from .spectral_analyzer import SpectralAnalyzer, SpectrumResult
    from .voice_activity import VoiceActivityGate
    from .note_converter import NoteConverter, NoteLabel
    from .voice_classifier import VoiceClassifier, VoiceProfile, VoiceType
    from .scale_detector import ScaleKeyDetector, ScaleKeyGuess, ScaleType

__all__ = [
    'PitchDetector', 'PitchEstimate',
    'VolumeMeter', 'InputLevel',
    'SpectralAnalyzer', 'SpectrumResult',
    'VoiceActivityGate',
    'NoteConverter', 'NoteLabel',
    'VoiceClassifier', 'VoiceProfile', 'VoiceType',
    'ScaleKeyDetector', 'ScaleKeyGuess', 'ScaleType',
]

_MODULES = {
    'PitchDetector': '.pitch_detector',
    'PitchEstimate': '.pitch_detector',
    'VolumeMeter': '.volume_meter',
    'InputLevel': '.volume_meter',
    'SpectralAnalyzer': '.spectral_analyzer',
    'SpectrumResult': '.spectral_analyzer',
    'VoiceActivityGate': '.voice_activity',
    'NoteConverter': '.note_converter',
    'NoteLabel': '.note_converter',
    'VoiceClassifier': '.voice_classifier',
    'VoiceProfile': '.voice_classifier',
    'VoiceType': '.voice_classifier',
    'ScaleKeyDetector': '.scale_detector',
    'ScaleKeyGuess': '.scale_detector',
    'ScaleType': '.scale_detector',
}

# Module-level cache for lazy-loaded classes
_module_cache = {}


def __getattr__(name):
    """Lazy import mechanism for analysis classes."""
    if name not in __all__:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

    if name in _module_cache:
        return _module_cache[name]

    import importlib
    module = importlib.import_module(_MODULES[name], __name__)
    _module_cache[name] = getattr(module, name)
    return _module_cache[name]
