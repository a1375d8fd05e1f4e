"""
Pytest configuration and shared fixtures for voice_monitor tests.
"""
import copy
import os
import sys
from pathlib import Path
from typing import Dict, Any, List

import pytest
import numpy as np

# Add src to path for imports when the package is not installed
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

SAMPLE_RATE = 22050
FRAME_SIZE = 1024


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (component interactions)"
    )
    config.addinivalue_line(
        "markers", "slow: Slow tests (>1 second)"
    )
    config.addinivalue_line(
        "markers", "audio: Audio processing tests"
    )


# ============================================================================
# Helpers
# ============================================================================

def make_sine(frequency: float, amplitude: float = 0.5, n: int = FRAME_SIZE,
              sample_rate: int = SAMPLE_RATE, phase: float = 0.0) -> np.ndarray:
    """Generate ``n`` samples of a sine wave."""
    t = np.arange(n) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t + phase)).astype(np.float32)


# ============================================================================
# Audio Fixtures
# ============================================================================

@pytest.fixture
def sample_rate() -> int:
    return SAMPLE_RATE


@pytest.fixture
def frame_size() -> int:
    return FRAME_SIZE


@pytest.fixture
def sine_frame():
    """Factory for single sine frames: ``sine_frame(220.0, amplitude=0.3)``."""
    return make_sine


@pytest.fixture
def sample_frame_a4() -> np.ndarray:
    """One frame of a 440 Hz sine at amplitude 0.5."""
    return make_sine(440.0)


@pytest.fixture
def sample_frame_silence() -> np.ndarray:
    """One all-zero frame."""
    return np.zeros(FRAME_SIZE, dtype=np.float32)


@pytest.fixture
def sample_frame_noise() -> np.ndarray:
    """One frame of low-level white noise."""
    rng = np.random.default_rng(1234)
    return (0.0005 * rng.standard_normal(FRAME_SIZE)).astype(np.float32)


@pytest.fixture
def c_major_arpeggio_hz() -> List[float]:
    """C4-E4-G4 repeated, exactly in tune."""
    return [261.6256, 329.6276, 391.9954] * 4


@pytest.fixture
def c_major_arpeggio_frames(c_major_arpeggio_hz) -> List[np.ndarray]:
    return [make_sine(f) for f in c_major_arpeggio_hz]


@pytest.fixture
def sample_audio_file(tmp_path: Path) -> Path:
    """Two seconds of 220 Hz stereo at 44.1 kHz written to a WAV file."""
    import soundfile as sf
    sr = 44100
    mono = make_sine(220.0, amplitude=0.4, n=2 * sr, sample_rate=sr)
    stereo = np.stack([mono, mono], axis=1)
    path = tmp_path / "tone.wav"
    sf.write(str(path), stereo, sr)
    return path


# ============================================================================
# Config Fixtures
# ============================================================================

@pytest.fixture
def default_config() -> Dict[str, Any]:
    from voice_monitor.utils.config_loader import DEFAULT_CONFIG
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def frame_processor(default_config):
    from voice_monitor.pipeline.frame_processor import FrameProcessor
    return FrameProcessor(default_config)
