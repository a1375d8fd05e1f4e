"""Tests for session statistics"""

import pytest
import numpy as np

from voice_monitor.pipeline.statistics import (
    RunningStatistics, SessionStats, StatisticsAggregator, SessionSummary
)
from voice_monitor.storage.history import HistoryStore


@pytest.mark.unit
class TestRunningStatistics:
    """Welford accumulator"""

    def test_empty(self):
        stats = RunningStatistics()
        assert stats.mean is None
        assert stats.std is None

    def test_single_value(self):
        stats = RunningStatistics()
        stats.add(5.0)
        assert stats.mean == 5.0
        assert stats.std == 0.0

    def test_matches_numpy(self):
        rng = np.random.default_rng(0)
        values = rng.uniform(100, 300, size=500)
        stats = RunningStatistics()
        for v in values:
            stats.add(float(v))
        assert stats.mean == pytest.approx(np.mean(values))
        assert stats.std == pytest.approx(np.std(values, ddof=1))


@pytest.mark.unit
class TestSessionStats:
    """Counters and bounded windows"""

    def test_window_is_bounded(self):
        stats = SessionStats(window=10)
        for i in range(100):
            stats.record_active(100.0 + i, 0.1)
        assert len(stats.recent_pitches) == 10
        assert stats.pitch_count == 100
        assert stats.voice_active_frames == 100
        assert stats.last_pitches(3) == [197.0, 198.0, 199.0]

    def test_advance(self):
        stats = SessionStats()
        assert stats.advance() == 1
        assert stats.advance() == 2
        assert stats.frame_count == 2


@pytest.mark.unit
class TestStatisticsAggregator:
    """Per-cycle summary"""

    @pytest.fixture(autouse=True)
    def setup_method(self):
        self.aggregator = StatisticsAggregator()
        self.history = HistoryStore({'capacity': 200})
        self.stats = SessionStats(window=10)

    def _frame(self, volume, pitch=None):
        cursor = self.history.record_frame(self.stats.frame_count, volume, pitch)
        if pitch is not None:
            self.stats.record_active(pitch, volume)
        self.stats.advance()
        return self.aggregator.summarize(self.stats, self.history, cursor)

    def test_empty_session(self):
        summary = self.aggregator.summarize(self.stats, self.history, 0)
        assert summary.voice_activity_percent == 0.0
        assert summary.current_pitch is None
        assert summary.average_pitch is None
        assert summary.current_volume == 0.0

    def test_activity_percent(self):
        self._frame(0.1, 200.0)
        summary = self._frame(0.0)
        assert summary.frame_count == 2
        assert summary.voice_activity_percent == pytest.approx(50.0)
        assert summary.current_pitch == 200.0
        assert summary.current_volume == 0.0

    def test_average_and_std_skip_absent(self):
        self._frame(0.1, 200.0)
        self._frame(0.0)
        summary = self._frame(0.1, 220.0)
        assert summary.current_pitch == 220.0
        assert summary.average_pitch == pytest.approx(210.0)
        assert summary.pitch_std == pytest.approx(np.std([200.0, 220.0], ddof=1))
        assert summary.current_volume == pytest.approx(0.1)

    def test_current_pitch_holds_through_inactive_frames(self):
        """Inactive frames leave the last present pitch as current"""
        self._frame(0.1, 180.0)
        self._frame(0.1, 200.0)
        self._frame(0.0)
        summary = self._frame(0.0)
        assert summary.current_pitch == 200.0
        assert summary.average_pitch == pytest.approx(190.0)
        assert summary.current_volume == 0.0

    def test_current_pitch_walks_back_across_wrap(self):
        history = HistoryStore({'capacity': 4})
        history.record_frame(3, 0.1, 250.0)
        cursor = history.record_frame(4, 0.0, None)
        assert cursor == 0
        assert history.pitch.latest_present(cursor) == 250.0

    def test_single_pitch_std_is_zero(self):
        summary = self._frame(0.1, 200.0)
        assert summary.pitch_std == 0.0

    def test_music_accuracy_needs_more_than_window(self):
        for _ in range(10):
            summary = self._frame(0.1, 220.0)
        assert summary.music_accuracy is None
        summary = self._frame(0.1, 220.0)
        assert summary.music_accuracy == 100.0

    def test_music_accuracy_clamps_at_zero(self):
        for i in range(11):
            summary = self._frame(0.1, 100.0 if i % 2 else 400.0)
        assert summary.music_accuracy == 0.0

    def test_summary_to_dict(self):
        summary = self._frame(0.1, 200.0)
        data = summary.to_dict()
        assert data['frame_count'] == 1
        assert data['session_mean_pitch'] == 200.0

    def test_summary_is_frozen(self):
        with pytest.raises(AttributeError):
            SessionSummary().frame_count = 3
