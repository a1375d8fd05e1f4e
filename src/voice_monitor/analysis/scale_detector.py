"""Heuristic scale and key guessing from recently sung notes"""

from __future__ import annotations
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, FrozenSet, List, Optional, Sequence

from .note_converter import NoteConverter, NOTE_NAMES

logger = logging.getLogger(__name__)

MAJOR_TEMPLATE: FrozenSet[int] = frozenset({0, 2, 4, 5, 7, 9, 11})
MINOR_TEMPLATE: FrozenSet[int] = frozenset({0, 2, 3, 5, 7, 8, 10})


class ScaleType(str, Enum):
    MAJOR = 'Major'
    MINOR = 'Minor'
    UNKNOWN = 'Unknown'
    COMPLEX = 'Complex'
    NONE = '--'


@dataclass(frozen=True)
class ScaleKeyGuess:
    """Scale type plus the most frequent pitch class (the key).

    ``key_pitch_class`` is only set for MAJOR and MINOR guesses.
    """
    scale_type: ScaleType = ScaleType.NONE
    key_pitch_class: Optional[int] = None

    @property
    def key_name(self) -> str:
        if self.key_pitch_class is not None:
            return NOTE_NAMES[self.key_pitch_class]
        if self.scale_type == ScaleType.UNKNOWN:
            return 'Detecting...'
        if self.scale_type == ScaleType.COMPLEX:
            return 'Multiple'
        return '--'

    @property
    def labels(self) -> List[str]:
        return [f"Scale: {self.scale_type.value}", f"Key: {self.key_name}"]


NO_SCALE = ScaleKeyGuess()


def _mode(values: Sequence[int]) -> int:
    """Most frequent value; ties go to the smallest"""
    counts = Counter(values)
    best = max(counts.values())
    return min(v for v, c in counts.items() if c == best)


class ScaleKeyDetector:
    """Guess a scale and key from the last few pitch samples

    Only samples within ``in_tune_cents`` of a note count. The distinct
    pitch classes among them are matched against fixed major and minor
    templates where any overlap counts as a match and major is tried first,
    so overlapping sets resolve to Major. This is pattern matching, not music
    theory.

    Outcomes:
        fewer than ``min_samples`` accumulated samples -> NONE
        fewer than ``min_in_tune`` in-tune samples     -> UNKNOWN
        more than ``max_distinct`` pitch classes       -> COMPLEX
        template overlap                               -> MAJOR / MINOR
        no overlap                                     -> UNKNOWN
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        note_converter: Optional[NoteConverter] = None
    ):
        config = config or {}
        self.window = int(config.get('window', 5))
        self.min_samples = int(config.get('min_samples', 5))
        self.in_tune_cents = float(config.get('in_tune_cents', 25))
        self.min_in_tune = int(config.get('min_in_tune', 3))
        self.max_distinct = int(config.get('max_distinct', 5))
        self.note_converter = note_converter or NoteConverter()

        if self.window < 1 or self.min_in_tune < 1:
            raise ValueError("window and min_in_tune must be positive")

    def in_tune_pitch_classes(self, pitches: Sequence[float]) -> List[int]:
        classes = []
        for pitch in pitches:
            label = self.note_converter.to_note(pitch)
            if label.is_note and abs(label.cents) < self.in_tune_cents:
                classes.append(label.pitch_class)
        return classes

    def detect(self, recent_pitches: Sequence[float], total_samples: int) -> ScaleKeyGuess:
        """Guess scale and key.

        Args:
            recent_pitches: Recent pitch samples in Hz, oldest first
            total_samples: Pitch samples accumulated over the session

        Returns:
            ScaleKeyGuess
        """
        if total_samples < self.min_samples:
            return NO_SCALE

        note_values = self.in_tune_pitch_classes(list(recent_pitches)[-self.window:])
        if len(note_values) < self.min_in_tune:
            return ScaleKeyGuess(ScaleType.UNKNOWN)

        distinct = set(note_values)
        if len(distinct) > self.max_distinct:
            return ScaleKeyGuess(ScaleType.COMPLEX)

        if distinct & MAJOR_TEMPLATE:
            return ScaleKeyGuess(ScaleType.MAJOR, _mode(note_values))
        if distinct & MINOR_TEMPLATE:
            return ScaleKeyGuess(ScaleType.MINOR, _mode(note_values))

        logger.debug(f"No scale template matched pitch classes {sorted(distinct)}")
        return ScaleKeyGuess(ScaleType.UNKNOWN)
