"""voice_monitor: Real-time voice and singing analysis"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .utils.config_loader import load_config
    from .utils.logging_config import setup_logging
    from .pipeline.frame_processor import FrameProcessor, FrameSnapshot
    from .pipeline.analysis_loop import AnalysisLoop
    from .sources.audio_source import BufferSource, FileSource, MicrophoneSource

__version__ = "0.1.0"

__all__ = [
    'load_config',
    'setup_logging',
    'FrameProcessor',
    'FrameSnapshot',
    'AnalysisLoop',
    'BufferSource',
    'FileSource',
    'MicrophoneSource',
]

_MODULES = {
    'load_config': '.utils.config_loader',
    'setup_logging': '.utils.logging_config',
    'FrameProcessor': '.pipeline.frame_processor',
    'FrameSnapshot': '.pipeline.frame_processor',
    'AnalysisLoop': '.pipeline.analysis_loop',
    'BufferSource': '.sources.audio_source',
    'FileSource': '.sources.audio_source',
    'MicrophoneSource': '.sources.audio_source',
}

# Module-level cache for lazy-loaded components
_module_cache = {}


def __getattr__(name):
    """Lazy import mechanism for voice_monitor components.

    Importing the package stays cheap; scipy, soundfile and friends are only
    loaded when a component that needs them is accessed.
    """
    if name not in __all__:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

    if name in _module_cache:
        return _module_cache[name]

    import importlib
    module = importlib.import_module(_MODULES[name], __name__)
    _module_cache[name] = getattr(module, name)
    return _module_cache[name]
