"""Audio sources for voice_monitor"""

from .audio_source import AudioSource, BufferSource, FileSource, MicrophoneSource

__all__ = ['AudioSource', 'BufferSource', 'FileSource', 'MicrophoneSource']
