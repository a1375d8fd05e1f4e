"""Session statistics and the per-cycle summary"""

from __future__ import annotations
import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Sequence

import numpy as np

from ..storage.history import HistoryStore

logger = logging.getLogger(__name__)


class RunningStatistics:
    """Online mean/variance accumulator (Welford)

    Keeps a constant amount of state no matter how long the session runs.
    """

    def __init__(self):
        self.count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        delta = value - self._mean
        self._mean += delta / self.count
        self._m2 += delta * (value - self._mean)

    @property
    def mean(self) -> Optional[float]:
        return self._mean if self.count else None

    @property
    def variance(self) -> Optional[float]:
        """Sample variance, 0.0 for a single value"""
        if self.count == 0:
            return None
        if self.count == 1:
            return 0.0
        return self._m2 / (self.count - 1)

    @property
    def std(self) -> Optional[float]:
        variance = self.variance
        return None if variance is None else math.sqrt(variance)


class SessionStats:
    """Counters and bounded sample windows for one monitoring session

    Raw pitch samples are only retained in a window long enough for the
    classifiers and the music-accuracy score; session-wide pitch and volume
    moments come from ``RunningStatistics``.
    """

    def __init__(self, window: int = 10):
        if window < 1:
            raise ValueError(f"window must be positive, got {window}")
        self.frame_count = 0
        self.voice_active_frames = 0
        self.numeric_faults = 0
        self.recent_pitches: deque = deque(maxlen=window)
        self.pitch = RunningStatistics()
        self.volume = RunningStatistics()

    @property
    def pitch_count(self) -> int:
        """Pitch samples accumulated over the session"""
        return self.pitch.count

    def record_active(self, pitch_hz: float, volume: float) -> None:
        self.voice_active_frames += 1
        self.recent_pitches.append(pitch_hz)
        self.pitch.add(pitch_hz)
        self.volume.add(volume)

    def record_fault(self) -> None:
        self.numeric_faults += 1

    def advance(self) -> int:
        self.frame_count += 1
        return self.frame_count

    def last_pitches(self, k: int) -> List[float]:
        """Up to ``k`` most recent pitch samples, oldest first"""
        if k <= 0:
            return []
        return list(self.recent_pitches)[-k:]


@dataclass(frozen=True)
class SessionSummary:
    """Read-only session summary shown beside the live plots

    Pitch values are ``None`` when no pitch is present in the history;
    ``music_accuracy`` is ``None`` until enough samples exist.
    """
    frame_count: int = 0
    voice_active_frames: int = 0
    voice_activity_percent: float = 0.0
    current_pitch: Optional[float] = None
    average_pitch: Optional[float] = None
    pitch_std: Optional[float] = None
    current_volume: float = 0.0
    music_accuracy: Optional[float] = None
    session_mean_pitch: Optional[float] = None
    session_pitch_std: Optional[float] = None
    numeric_faults: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'frame_count': self.frame_count,
            'voice_active_frames': self.voice_active_frames,
            'voice_activity_percent': self.voice_activity_percent,
            'current_pitch': self.current_pitch,
            'average_pitch': self.average_pitch,
            'pitch_std': self.pitch_std,
            'current_volume': self.current_volume,
            'music_accuracy': self.music_accuracy,
            'session_mean_pitch': self.session_mean_pitch,
            'session_pitch_std': self.session_pitch_std,
            'numeric_faults': self.numeric_faults,
        }


def _sample_std(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=1))


class StatisticsAggregator:
    """Summarize the session after each frame

    - ``voice_activity_percent = 100 * active / max(1, frames)``
    - current pitch is the most recent present pitch-history entry
    - current volume comes from the slot written this cycle
    - average/std pitch over the non-absent pitch-history entries
    - ``music_accuracy = max(0, 100 - accuracy_factor * std(last window))``
      once more than ``accuracy_window`` pitch samples have been seen

    Attributes:
        accuracy_window (int): Pitch samples used for music accuracy
        accuracy_factor (float): Score lost per Hz of standard deviation
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.accuracy_window = int(config.get('accuracy_window', 10))
        self.accuracy_factor = float(config.get('accuracy_factor', 2.0))

        if self.accuracy_window < 2:
            raise ValueError(f"accuracy_window must be at least 2, got {self.accuracy_window}")

    def music_accuracy(self, stats: SessionStats) -> Optional[float]:
        if stats.pitch_count <= self.accuracy_window:
            return None
        spread = _sample_std(stats.last_pitches(self.accuracy_window))
        return max(0.0, 100.0 - self.accuracy_factor * spread)

    def summarize(self, stats: SessionStats, history: HistoryStore, cursor: int) -> SessionSummary:
        """Build the summary for the cycle that just wrote slot ``cursor``

        Args:
            stats: Session counters
            history: History rings after this cycle's writes
            cursor: Ring index written this cycle

        Returns:
            SessionSummary
        """
        present = history.pitch.present()
        current_volume = history.volume[cursor]

        return SessionSummary(
            frame_count=stats.frame_count,
            voice_active_frames=stats.voice_active_frames,
            voice_activity_percent=100.0 * stats.voice_active_frames / max(1, stats.frame_count),
            current_pitch=history.pitch.latest_present(cursor),
            average_pitch=float(np.mean(present)) if present else None,
            pitch_std=_sample_std(present) if present else None,
            current_volume=0.0 if current_volume is None else float(current_volume),
            music_accuracy=self.music_accuracy(stats),
            session_mean_pitch=stats.pitch.mean,
            session_pitch_std=stats.pitch.std,
            numeric_faults=stats.numeric_faults,
        )
