"""Audio sources feeding fixed-length frames to the analysis loop"""

from __future__ import annotations
import logging
import threading
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

import numpy as np

from ..errors import AudioSourceClosedError, DeviceUnavailableError

logger = logging.getLogger(__name__)


@runtime_checkable
class AudioSource(Protocol):
    """Anything the analysis loop can pull frames from

    ``read_latest_frame`` always returns exactly ``frame_size`` samples,
    zero-filled when not enough audio is available, and raises
    ``AudioSourceClosedError`` once the source is closed.
    """

    sample_rate: int
    name: str

    @property
    def exhausted(self) -> bool:
        ...

    def read_latest_frame(self, frame_size: int) -> np.ndarray:
        ...

    def close(self) -> None:
        ...


def _to_mono(audio: np.ndarray) -> np.ndarray:
    audio = np.asarray(audio, dtype=np.float32)
    if audio.ndim == 2:
        audio = np.mean(audio, axis=1)
    return audio


def _fit(samples: np.ndarray, frame_size: int) -> np.ndarray:
    """Pad with zeros (at the end) or truncate to ``frame_size``"""
    frame = np.zeros(frame_size, dtype=np.float32)
    n = min(frame_size, len(samples))
    frame[:n] = samples[:n]
    return frame


class BufferSource:
    """Replay an in-memory signal one frame at a time

    Frames are consecutive and non-overlapping; the last partial frame is
    zero-filled and every read after the end returns silence.
    """

    def __init__(self, samples: np.ndarray, sample_rate: int = 22050, name: str = 'buffer'):
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.samples = _to_mono(samples)
        self.sample_rate = sample_rate
        self.name = name
        self.position = 0
        self._closed = False

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.samples)

    def read_latest_frame(self, frame_size: int) -> np.ndarray:
        if self._closed:
            raise AudioSourceClosedError(f"Audio source '{self.name}' is closed")
        chunk = self.samples[self.position:self.position + frame_size]
        self.position += frame_size
        return _fit(chunk, frame_size)

    def close(self) -> None:
        self._closed = True


class FileSource(BufferSource):
    """Read an audio file into memory and replay it frame by frame

    Multi-channel files are mixed down to mono and resampled to
    ``sample_rate`` when the file rate differs.
    """

    def __init__(self, path: str, sample_rate: int = 22050):
        import soundfile as sf
        import librosa

        try:
            audio, file_rate = sf.read(path, dtype='float32', always_2d=False)
        except (RuntimeError, OSError) as e:
            raise AudioSourceClosedError(f"Cannot read audio file {path}: {e}") from e

        audio = _to_mono(audio)
        if file_rate != sample_rate:
            logger.info(f"Resampling {path} from {file_rate} Hz to {sample_rate} Hz")
            audio = librosa.resample(audio, orig_sr=file_rate, target_sr=sample_rate)

        super().__init__(audio, sample_rate=sample_rate, name=str(path))
        logger.info(
            "Audio file loaded",
            extra={
                'path': str(path),
                'duration_s': round(len(self.samples) / sample_rate, 3),
                'sample_rate': sample_rate,
            }
        )


class MicrophoneSource:
    """Live input from the default (or configured) microphone

    The sounddevice callback runs on the audio thread and is the only
    writer of the latest-samples buffer; ``read_latest_frame`` is the only
    reader. Both hold ``_lock`` for the copy.
    """

    exhausted = False

    def __init__(
        self,
        sample_rate: int = 22050,
        device: Optional[Union[int, str]] = None,
        buffer_size: int = 8192,
        blocksize: int = 0
    ):
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self.sample_rate = sample_rate
        self.device = device
        self.blocksize = blocksize
        self.name = 'microphone' if device is None else f"microphone:{device}"

        self._buffer = np.zeros(buffer_size, dtype=np.float32)
        self._lock = threading.Lock()
        self._stream = None
        self._closed = False
        self.overflows = 0

    @classmethod
    def from_config(cls, audio_config: Dict[str, Any]) -> 'MicrophoneSource':
        return cls(
            sample_rate=int(audio_config.get('sample_rate', 22050)),
            device=audio_config.get('device'),
            buffer_size=max(8192, 4 * int(audio_config.get('frame_size', 1024)))
        )

    def _callback(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        if status:
            self.overflows += 1
        samples = indata[:, 0] if indata.ndim == 2 else indata
        n = len(samples)
        with self._lock:
            if n >= len(self._buffer):
                self._buffer[:] = samples[-len(self._buffer):]
            else:
                self._buffer[:-n] = self._buffer[n:]
                self._buffer[-n:] = samples

    def open(self) -> 'MicrophoneSource':
        """Start capturing

        Raises:
            DeviceUnavailableError: If there is no usable input device or the
                stream cannot be opened
        """
        import sounddevice as sd

        try:
            info = sd.query_devices(self.device, 'input')
        except (ValueError, sd.PortAudioError) as e:
            raise DeviceUnavailableError(f"No audio input device available: {e}") from e

        if info.get('max_input_channels', 0) < 1:
            raise DeviceUnavailableError(f"Device '{info.get('name')}' has no input channels")

        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype='float32',
                device=self.device,
                blocksize=self.blocksize,
                callback=self._callback
            )
            self._stream.start()
        except (sd.PortAudioError, OSError, ValueError) as e:
            self._stream = None
            raise DeviceUnavailableError(f"Cannot open input stream: {e}") from e

        logger.info(
            "Microphone opened",
            extra={'device': info.get('name'), 'sample_rate': self.sample_rate}
        )
        return self

    def read_latest_frame(self, frame_size: int) -> np.ndarray:
        """Most recent ``frame_size`` samples; zeros where nothing was captured yet"""
        if self._closed or self._stream is None:
            raise AudioSourceClosedError(f"Audio source '{self.name}' is not open")
        with self._lock:
            latest = self._buffer[-frame_size:].copy()
        if len(latest) < frame_size:
            return np.concatenate([np.zeros(frame_size - len(latest), dtype=np.float32), latest])
        return latest

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            logger.info(f"Microphone closed ({self.overflows} input overflows)")

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
