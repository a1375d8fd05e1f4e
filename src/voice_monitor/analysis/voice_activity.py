"""Voice activity gating"""

from typing import Dict, Any, Optional


class VoiceActivityGate:
    """Stateless predicate deciding whether a frame counts as active voice.

    A frame is active when its volume is strictly above ``threshold`` and a
    pitch was found inside ``[min_hz, max_hz]``.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        min_hz: float = 50.0,
        max_hz: float = 500.0
    ):
        config = config or {}
        self.threshold = float(config.get('threshold', 0.005))
        self.min_hz = float(min_hz)
        self.max_hz = float(max_hz)

        if self.threshold < 0:
            raise ValueError(f"VAD threshold must be non-negative, got {self.threshold}")

    def is_active(self, volume: float, pitch_hz: Optional[float]) -> bool:
        if not volume > self.threshold:
            return False
        if pitch_hz is None:
            return False
        return self.min_hz <= pitch_hz <= self.max_hz
