"""Frequency to musical note conversion"""

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional, Tuple

# Pitch classes are counted from A (A4 = 440 Hz is the reference)
NOTE_NAMES = ['A', 'A#', 'B', 'C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#']

NO_NOTE_NAME = '--'


def round_half_away(x: float) -> int:
    """Round to nearest integer, halves away from zero"""
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


@dataclass(frozen=True)
class NoteLabel:
    """Nearest equal-tempered note and the deviation from it.

    Invariants:
        pitch_class in 0..11 (0 = A) or None for the no-note sentinel
        -50 <= cents <= 50
    """
    pitch_class: Optional[int]
    octave: Optional[int]
    cents: int = 0

    @property
    def is_note(self) -> bool:
        return self.pitch_class is not None

    @property
    def pitch_name(self) -> str:
        if self.pitch_class is None:
            return NO_NOTE_NAME
        return NOTE_NAMES[self.pitch_class]

    @property
    def name(self) -> str:
        """Scientific pitch name, e.g. 'A4', 'C#5', or '--'"""
        if self.pitch_class is None:
            return NO_NOTE_NAME
        return f"{NOTE_NAMES[self.pitch_class]}{self.octave}"


NO_NOTE = NoteLabel(pitch_class=None, octave=None, cents=0)


class TuningState(str, Enum):
    PERFECT = 'perfect'
    FLAT = 'flat'
    SHARP = 'sharp'


@dataclass(frozen=True)
class TuningIndicator:
    """Tuner read-out for a note label"""
    state: TuningState
    needle: float

    @property
    def label(self) -> str:
        if self.state == TuningState.PERFECT:
            return '(perfect)'
        return f"({abs(int(self.needle))}¢ {self.state.value})"


class NoteConverter:
    """Convert frequencies to note labels relative to a reference A4.

    ``semitones = 12*log2(f/a4)``, the note index is the nearest integer,
    cents are the rounded remainder times 100, the pitch class is the note
    index mod 12 (A = 0) and the octave is ``4 + floor((index + 9) / 12)``
    so octaves roll over at C.

    Example:
        >>> NoteConverter().convert(440.0)
        ('A4', 0)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.reference_hz = float(config.get('reference_hz', 440.0))
        self.perfect_cents = float(config.get('perfect_cents', 5.0))
        self.needle_span = float(config.get('needle_span', 50.0))

        if self.reference_hz <= 0:
            raise ValueError(f"reference_hz must be positive, got {self.reference_hz}")

    def semitones(self, freq_hz: float) -> float:
        return 12.0 * math.log2(freq_hz / self.reference_hz)

    def to_note(self, freq_hz: Optional[float]) -> NoteLabel:
        if freq_hz is None or not math.isfinite(freq_hz) or freq_hz <= 0:
            return NO_NOTE

        semitones = self.semitones(freq_hz)
        note_index = round_half_away(semitones)
        cents = round_half_away((semitones - note_index) * 100.0)

        return NoteLabel(
            pitch_class=note_index % 12,
            octave=4 + math.floor((note_index + 9) / 12),
            cents=cents
        )

    def convert(self, freq_hz: Optional[float]) -> Tuple[str, int]:
        """Return ``(name, cents)`` for a frequency, ``('--', 0)`` if absent"""
        label = self.to_note(freq_hz)
        return label.name, label.cents

    def pitch_class(self, freq_hz: Optional[float]) -> Optional[int]:
        return self.to_note(freq_hz).pitch_class

    def tuning(self, label: NoteLabel) -> Optional[TuningIndicator]:
        if not label.is_note:
            return None

        cents = label.cents
        if abs(cents) < self.perfect_cents:
            state = TuningState.PERFECT
        elif cents < 0:
            state = TuningState.FLAT
        else:
            state = TuningState.SHARP

        needle = max(-self.needle_span, min(self.needle_span, float(cents)))
        return TuningIndicator(state=state, needle=needle)
