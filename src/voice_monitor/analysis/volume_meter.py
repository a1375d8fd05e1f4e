"""RMS volume metering and input level banding"""

from enum import Enum
from typing import Dict, Any, Optional

import numpy as np


class InputLevel(str, Enum):
    """Coarse input level band used by the level meter"""

    NO_SIGNAL = 'no_signal'
    QUIET = 'quiet'
    GOOD = 'good'
    LOUD = 'loud'

    @property
    def meter(self) -> str:
        return _METER_STRINGS[self]


_METER_STRINGS = {
    InputLevel.NO_SIGNAL: '|----------| NO SIGNAL',
    InputLevel.QUIET: '|##--------| QUIET',
    InputLevel.GOOD: '|####------| GOOD',
    InputLevel.LOUD: '|##########| LOUD',
}


class VolumeMeter:
    """RMS level of a frame plus the level-meter band it falls into.

    ``level`` is defined and non-negative for any finite input, including an
    empty or all-zero frame (both give 0.0). Non-finite samples are treated
    as a numeric fault and also give 0.0.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.no_signal_below = float(config.get('no_signal_below', 0.001))
        self.quiet_below = float(config.get('quiet_below', 0.01))
        self.good_below = float(config.get('good_below', 0.05))

        if not 0 <= self.no_signal_below <= self.quiet_below <= self.good_below:
            raise ValueError(
                "Level meter bands must be ordered: "
                f"{self.no_signal_below} <= {self.quiet_below} <= {self.good_below}"
            )

    def level(self, frame: np.ndarray) -> float:
        x = np.asarray(frame, dtype=np.float64)
        if x.size == 0 or not np.all(np.isfinite(x)):
            return 0.0
        return float(np.sqrt(np.mean(np.square(x))))

    def band(self, volume: float) -> InputLevel:
        if volume < self.no_signal_below:
            return InputLevel.NO_SIGNAL
        if volume < self.quiet_below:
            return InputLevel.QUIET
        if volume < self.good_below:
            return InputLevel.GOOD
        return InputLevel.LOUD
