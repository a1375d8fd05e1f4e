"""Heuristic voice-type classification and voice quality scores"""

from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Any, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class VoiceType(str, Enum):
    BASS = 'Bass'
    BARITONE = 'Baritone'
    TENOR = 'Tenor'
    ALTO = 'Alto'
    SOPRANO = 'Soprano'


class Emotion(str, Enum):
    EXCITED = 'Excited'
    NEUTRAL = 'Neutral'
    CALM = 'Calm'


# Range bucket each voice type counts towards: 0 = low, 1 = mid, 2 = high
_BUCKETS = {
    VoiceType.BASS: 0,
    VoiceType.BARITONE: 1,
    VoiceType.TENOR: 1,
    VoiceType.ALTO: 2,
    VoiceType.SOPRANO: 2,
}


@dataclass(frozen=True)
class VoiceProfile:
    """Accumulated voice-range counts and the latest quality scores.

    Invariants:
        low, mid, high >= 0
        0 <= stability <= 100
        0 <= clarity <= 100
    """
    low: int = 0
    mid: int = 0
    high: int = 0
    stability: float = 0.0
    clarity: float = 0.0
    voice_type: Optional[VoiceType] = None
    emotion: Optional[Emotion] = None

    @property
    def bucket_counts(self) -> Tuple[int, int, int]:
        return self.low, self.mid, self.high


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class VoiceClassifier:
    """Voice-type bucket and stability/clarity scores from recent pitches

    The voice-type breakpoints are a rough heuristic, not a physiological
    model: below 120 Hz Bass, below 180 Baritone, below 250 Tenor, below 350
    Alto, otherwise Soprano.

    Quality scores are only refreshed once ``min_samples`` pitch samples have
    been accumulated over the session:

    - stability = ``100 - stability_factor * stdev(last window pitches)``
    - clarity = ``clarity_gain * volume``

    both clamped to [0, 100]. Until then the previous scores are kept.

    Attributes:
        window (int): Number of recent pitches used for stability
        min_samples (int): Samples required before scores are computed
        stability_factor (float): Score lost per Hz of standard deviation
        clarity_gain (float): Volume-to-clarity gain
    """

    BREAKPOINTS = (
        (120.0, VoiceType.BASS),
        (180.0, VoiceType.BARITONE),
        (250.0, VoiceType.TENOR),
        (350.0, VoiceType.ALTO),
    )

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.window = int(config.get('window', 5))
        self.min_samples = int(config.get('min_samples', 6))
        self.stability_factor = float(config.get('stability_factor', 5.0))
        self.clarity_gain = float(config.get('clarity_gain', 800.0))
        self.excited_volume = float(config.get('excited_volume', 0.05))
        self.calm_volume = float(config.get('calm_volume', 0.005))

        if self.window < 2:
            raise ValueError(f"window must be at least 2, got {self.window}")
        if self.min_samples < 1:
            raise ValueError(f"min_samples must be positive, got {self.min_samples}")

    def classify(self, pitch_hz: float) -> VoiceType:
        for upper, voice_type in self.BREAKPOINTS:
            if pitch_hz < upper:
                return voice_type
        return VoiceType.SOPRANO

    def classify_emotion(self, volume: float) -> Emotion:
        if volume > self.excited_volume:
            return Emotion.EXCITED
        if volume < self.calm_volume:
            return Emotion.CALM
        return Emotion.NEUTRAL

    def stability(self, recent_pitches: Sequence[float]) -> float:
        """Stability score, non-increasing in the spread of the pitches"""
        values = np.asarray(recent_pitches, dtype=np.float64)
        if values.size < 2:
            return 100.0
        spread = float(np.std(values, ddof=1))
        return _clamp(100.0 - self.stability_factor * spread)

    def clarity(self, volume: float) -> float:
        return _clamp(self.clarity_gain * volume)

    def observe(
        self,
        profile: VoiceProfile,
        pitch_hz: float,
        volume: float,
        recent_pitches: Sequence[float],
        total_samples: int
    ) -> VoiceProfile:
        """Fold one active frame into the profile.

        Args:
            profile: Current profile
            pitch_hz: Pitch of the active frame
            volume: RMS volume of the active frame
            recent_pitches: Most recent pitch samples, oldest first,
                including ``pitch_hz``
            total_samples: Pitch samples accumulated over the session,
                including this one

        Returns:
            Updated VoiceProfile
        """
        voice_type = self.classify(pitch_hz)
        counts = list(profile.bucket_counts)
        counts[_BUCKETS[voice_type]] += 1

        stability = profile.stability
        clarity = profile.clarity
        if total_samples >= self.min_samples:
            stability = self.stability(list(recent_pitches)[-self.window:])
            clarity = self.clarity(volume)

        return replace(
            profile,
            low=counts[0],
            mid=counts[1],
            high=counts[2],
            stability=stability,
            clarity=clarity,
            voice_type=voice_type,
            emotion=self.classify_emotion(volume),
        )
