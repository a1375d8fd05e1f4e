"""Tests for rolling history storage"""

import pytest
import numpy as np

from voice_monitor.storage.history import ABSENT, HistoryRing, NoteHistory, HistoryStore


@pytest.mark.unit
class TestHistoryRing:
    """Fixed-capacity circular buffer"""

    def test_new_ring_is_all_absent(self):
        ring = HistoryRing(5)
        assert len(ring) == 5
        assert ring.values() == (ABSENT,) * 5
        assert ring.absent_count() == 5

    def test_length_is_always_capacity(self):
        ring = HistoryRing(4)
        for count in range(11):
            ring.write(count, float(count))
            assert len(ring) == 4
            assert len(ring.values()) == 4

    def test_wrap_overwrites_index_zero_first(self):
        """Writing C+1 values overwrites slot 0"""
        capacity = 3
        ring = HistoryRing(capacity)
        for count in range(capacity + 1):
            ring.write(count, count * 10)
        assert ring.values() == (30, 10, 20)

    def test_write_returns_cursor(self):
        ring = HistoryRing(200)
        assert ring.write(0, 1.0) == 0
        assert ring.write(199, 1.0) == 199
        assert ring.write(200, 1.0) == 0

    def test_absent_writes_are_kept(self):
        ring = HistoryRing(3)
        ring.write(0, 1.0)
        ring.write(1, ABSENT)
        assert ring.present() == [1.0]
        assert ring[1] is ABSENT

    def test_latest_present(self):
        ring = HistoryRing(3)
        assert ring.latest_present(0) is ABSENT
        ring.write(0, 1.0)
        ring.write(1, ABSENT)
        assert ring.latest_present(1) == 1.0
        ring.write(2, 3.0)
        assert ring.latest_present(2) == 3.0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            HistoryRing(0)


@pytest.mark.unit
class TestNoteHistory:
    """FIFO of pitch classes"""

    def test_prefilled_with_absent(self):
        notes = NoteHistory(50)
        assert len(notes) == 50
        assert all(v is ABSENT for v in notes.values())

    def test_push_drops_oldest(self):
        notes = NoteHistory(3)
        for pitch_class in (1, 2, 3, 4):
            notes.push(pitch_class)
        assert notes.values() == (2, 3, 4)

    def test_partial_fill_keeps_absent_at_front(self):
        notes = NoteHistory(3)
        notes.push(7)
        assert notes.values() == (ABSENT, ABSENT, 7)


@pytest.mark.unit
class TestHistoryStore:
    """Pitch, volume, spectrogram and note rings together"""

    @pytest.fixture(autouse=True)
    def setup_method(self):
        self.store = HistoryStore({'capacity': 4, 'note_capacity': 2}, column_bins=3)

    def test_capacities(self):
        assert len(self.store.pitch) == 4
        assert len(self.store.volume) == 4
        assert len(self.store.spectrogram) == 4
        assert len(self.store.notes) == 2

    def test_record_frame_writes_both_rings(self):
        cursor = self.store.record_frame(5, 0.2, None)
        assert cursor == 1
        assert self.store.volume[1] == 0.2
        assert self.store.pitch[1] is ABSENT

    def test_pitch_array_uses_nan_for_absent(self):
        self.store.record_frame(0, 0.1, 220.0)
        arr = self.store.pitch_array()
        assert arr[0] == 220.0
        assert np.isnan(arr[1:]).all()

    def test_spectrogram_matrix_zero_for_absent_columns(self):
        self.store.record_column(2, np.array([1.0, 2.0, 3.0]))
        matrix = self.store.spectrogram_matrix()
        assert matrix.shape == (3, 4)
        assert np.array_equal(matrix[:, 2], [1.0, 2.0, 3.0])
        assert np.all(matrix[:, [0, 1, 3]] == 0)

    def test_recorded_column_is_read_only(self):
        column = np.array([1.0, 2.0, 3.0])
        self.store.record_column(0, column)
        column[0] = 99.0
        stored = self.store.spectrogram[0]
        assert stored[0] == 1.0
        with pytest.raises(ValueError):
            stored[0] = 5.0

    def test_snapshot_is_read_only_copy(self):
        self.store.record_frame(0, 0.1, 220.0)
        self.store.record_note(3)
        snapshot = self.store.snapshot()
        self.store.record_frame(0, 0.5, 330.0)

        assert snapshot.pitch[0] == 220.0
        assert snapshot.notes == (ABSENT, 3)
        with pytest.raises(AttributeError):
            snapshot.pitch = ()

    def test_snapshot_as_dict(self):
        self.store.record_column(1, np.zeros(3))
        data = self.store.snapshot().as_dict()
        assert data['spectrogram'][1] == [0.0, 0.0, 0.0]
        assert data['spectrogram'][0] is None
