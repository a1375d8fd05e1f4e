"""Fixed-capacity rolling histories for pitch, volume, spectrogram and notes"""

from __future__ import annotations
import logging
from collections import deque
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Unwritten and deliberately-empty slots hold None
ABSENT = None


class HistoryRing(Generic[T]):
    """Fixed-capacity circular buffer addressed by frame count

    Slot ``frame_count % capacity`` is written each time, so once full the
    oldest entry is overwritten. Every slot starts out ``ABSENT`` and the ring
    always reports exactly ``capacity`` entries.

    Not synchronized: a single processing cycle owns the ring while it
    writes. Each write is a single slot assignment.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._slots: List[Optional[T]] = [ABSENT] * capacity

    def __len__(self) -> int:
        return self.capacity

    def __getitem__(self, index: int) -> Optional[T]:
        return self._slots[index]

    def __iter__(self):
        return iter(list(self._slots))

    def cursor(self, frame_count: int) -> int:
        return frame_count % self.capacity

    def write(self, frame_count: int, value: Optional[T]) -> int:
        index = self.cursor(frame_count)
        self._slots[index] = value
        return index

    def values(self) -> Tuple[Optional[T], ...]:
        """Slot contents in storage order (not chronological)"""
        return tuple(self._slots)

    def present(self) -> List[T]:
        return [v for v in self._slots if v is not ABSENT]

    def latest_present(self, cursor: int) -> Optional[T]:
        """Most recent non-absent value, walking back from slot ``cursor``"""
        for offset in range(self.capacity):
            value = self._slots[(cursor - offset) % self.capacity]
            if value is not ABSENT:
                return value
        return ABSENT

    def absent_count(self) -> int:
        return sum(1 for v in self._slots if v is ABSENT)


class NoteHistory:
    """FIFO of recent pitch classes; pushing drops the oldest entry.

    Pre-filled with ``ABSENT`` so it always reports ``capacity`` entries.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._notes = deque([ABSENT] * capacity, maxlen=capacity)

    def __len__(self) -> int:
        return self.capacity

    def push(self, pitch_class: int) -> None:
        self._notes.append(pitch_class)

    def values(self) -> Tuple[Optional[int], ...]:
        """Oldest first"""
        return tuple(self._notes)


class HistoryStore:
    """Owns the four rolling histories the display scrolls through.

    - pitch: ``capacity`` slots, ABSENT on inactive frames so gaps stay visible
    - volume: ``capacity`` slots, written on every frame
    - spectrogram: ``capacity`` columns, written on active frames only
    - notes: ``note_capacity`` FIFO, pushed on active frames only
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, column_bins: int = 64):
        config = config or {}
        self.capacity = int(config.get('capacity', 200))
        self.note_capacity = int(config.get('note_capacity', 50))
        self.column_bins = column_bins

        self.pitch = HistoryRing[float](self.capacity)
        self.volume = HistoryRing[float](self.capacity)
        self.spectrogram = HistoryRing[np.ndarray](self.capacity)
        self.notes = NoteHistory(self.note_capacity)

    def record_frame(self, frame_count: int, volume: float, pitch_hz: Optional[float]) -> int:
        self.volume.write(frame_count, volume)
        return self.pitch.write(frame_count, pitch_hz)

    def record_column(self, frame_count: int, column: np.ndarray) -> int:
        column = np.array(column, dtype=np.float64)
        column.setflags(write=False)
        return self.spectrogram.write(frame_count, column)

    def record_note(self, pitch_class: int) -> None:
        self.notes.push(pitch_class)

    def pitch_array(self) -> np.ndarray:
        """Pitch ring as floats with NaN for absent slots"""
        return np.array([np.nan if v is ABSENT else v for v in self.pitch.values()], dtype=np.float64)

    def volume_array(self) -> np.ndarray:
        return np.array([np.nan if v is ABSENT else v for v in self.volume.values()], dtype=np.float64)

    def spectrogram_matrix(self) -> np.ndarray:
        """``column_bins x capacity`` matrix; unwritten columns are zero"""
        matrix = np.zeros((self.column_bins, self.capacity), dtype=np.float64)
        for index, column in enumerate(self.spectrogram.values()):
            if column is not ABSENT:
                matrix[:len(column), index] = column
        return matrix

    def note_array(self) -> np.ndarray:
        return np.array([np.nan if v is ABSENT else v for v in self.notes.values()], dtype=np.float64)

    def snapshot(self) -> 'HistorySnapshot':
        return HistorySnapshot(
            pitch=self.pitch.values(),
            volume=self.volume.values(),
            spectrogram=self.spectrogram.values(),
            notes=self.notes.values(),
        )


class HistorySnapshot:
    """Read-only copy of the four histories at the end of a cycle"""

    __slots__ = ('pitch', 'volume', 'spectrogram', 'notes')

    def __init__(
        self,
        pitch: Sequence[Optional[float]],
        volume: Sequence[Optional[float]],
        spectrogram: Sequence[Optional[np.ndarray]],
        notes: Sequence[Optional[int]]
    ):
        object.__setattr__(self, 'pitch', tuple(pitch))
        object.__setattr__(self, 'volume', tuple(volume))
        object.__setattr__(self, 'spectrogram', tuple(spectrogram))
        object.__setattr__(self, 'notes', tuple(notes))

    def __setattr__(self, name, value):
        raise AttributeError("HistorySnapshot is read-only")

    def as_dict(self) -> Dict[str, Any]:
        return {
            'pitch': list(self.pitch),
            'volume': list(self.volume),
            'spectrogram': [None if c is None else c.tolist() for c in self.spectrogram],
            'notes': list(self.notes),
        }
