"""Integration tests for the FrameProcessor cycle"""

import pytest
import numpy as np

from voice_monitor.analysis.scale_detector import ScaleType
from voice_monitor.analysis.voice_classifier import VoiceType
from voice_monitor.analysis.volume_meter import InputLevel
from voice_monitor.pipeline.frame_processor import FrameProcessor
from voice_monitor.storage.history import ABSENT


@pytest.mark.integration
@pytest.mark.audio
class TestFrameProcessor:
    """Per-frame sequencing and the hold-vs-update contract"""

    def test_zero_frame(self, frame_processor, sample_frame_silence):
        """Silence is inactive, unvoiced and has zero volume"""
        snapshot = frame_processor.process(sample_frame_silence)

        assert not snapshot.active
        assert snapshot.pitch_hz is None
        assert snapshot.volume == 0.0
        assert snapshot.input_level == InputLevel.NO_SIGNAL
        assert snapshot.note.name == '--'
        assert snapshot.tuning is None
        assert snapshot.frame_index == 1
        assert snapshot.history.pitch[0] is ABSENT
        assert snapshot.history.volume[0] == 0.0
        assert snapshot.history.spectrogram[0] is ABSENT
        assert snapshot.scale.scale_type == ScaleType.NONE

    def test_active_frame(self, frame_processor, sine_frame):
        snapshot = frame_processor.process(sine_frame(220.0))

        assert snapshot.active
        assert snapshot.pitch_hz == pytest.approx(220.0, abs=3.0)
        assert snapshot.note.name == 'A3'
        assert snapshot.tuning is not None
        assert snapshot.profile.voice_type == VoiceType.TENOR
        assert snapshot.profile.bucket_counts == (0, 1, 0)
        assert snapshot.history.pitch[0] == snapshot.pitch_hz
        assert snapshot.history.spectrogram[0].shape == (64,)
        assert list(snapshot.history.notes)[-1] == 0
        assert snapshot.summary.voice_activity_percent == 100.0

    def test_spectrum_every_frame(self, frame_processor, sample_frame_silence, sample_frame_a4):
        for frame in (sample_frame_silence, sample_frame_a4):
            snapshot = frame_processor.process(frame)
            assert snapshot.spectrum.shape == (256,)
            assert snapshot.spectrum_freqs.shape == (256,)

    def test_quiet_pitched_frame_is_inactive(self, frame_processor, sine_frame):
        """A clear pitch below the VAD threshold does not count"""
        snapshot = frame_processor.process(sine_frame(220.0, amplitude=0.004))
        assert snapshot.pitch.voiced
        assert not snapshot.active
        assert snapshot.pitch_hz is None
        assert snapshot.history.pitch[0] is ABSENT

    def test_inactive_frame_holds_stale_values(self, frame_processor, sine_frame, sample_frame_silence):
        active = frame_processor.process(sine_frame(220.0))
        inactive = frame_processor.process(sample_frame_silence)

        assert inactive.profile == active.profile
        assert inactive.scale == active.scale
        assert inactive.note.name == '--'
        assert inactive.history.spectrogram[1] is ABSENT
        assert inactive.history.notes == active.history.notes
        assert inactive.frame_index == 2
        assert inactive.summary.voice_activity_percent == pytest.approx(50.0)

    def test_stability_waits_for_six_samples(self, frame_processor, sine_frame):
        frame = sine_frame(220.0)
        for _ in range(5):
            snapshot = frame_processor.process(frame)
        assert snapshot.profile.stability == 0.0
        assert snapshot.profile.clarity == 0.0

        snapshot = frame_processor.process(frame)
        assert snapshot.profile.stability == 100.0
        assert snapshot.profile.clarity == 100.0

    def test_arpeggio_detects_major(self, frame_processor, c_major_arpeggio_frames):
        snapshots = [frame_processor.process(f) for f in c_major_arpeggio_frames]

        assert all(s.active for s in snapshots)
        assert snapshots[3].scale.scale_type == ScaleType.NONE
        assert snapshots[-1].scale.scale_type == ScaleType.MAJOR
        assert [s.note.pitch_name for s in snapshots[:3]] == ['C', 'E', 'G']

    def test_two_hundred_active_frames_fill_rings(self, frame_processor, sine_frame):
        frame = sine_frame(220.0)
        for _ in range(200):
            snapshot = frame_processor.process(frame)

        assert snapshot.frame_index == 200
        assert ABSENT not in snapshot.history.pitch
        assert ABSENT not in snapshot.history.volume
        assert len(snapshot.history.pitch) == 200

        snapshot = frame_processor.process(np.zeros_like(frame))
        assert snapshot.history.pitch[0] is ABSENT
        assert snapshot.history.pitch[1] is not ABSENT

    def test_snapshot_arrays_are_read_only(self, frame_processor, sample_frame_a4):
        snapshot = frame_processor.process(sample_frame_a4)
        for array in (snapshot.frame, snapshot.spectrum, snapshot.spectrum_freqs):
            with pytest.raises(ValueError):
                array[0] = 1.0

    def test_raw_frame_is_copied(self, frame_processor, sample_frame_a4):
        frame = sample_frame_a4.copy()
        snapshot = frame_processor.process(frame)
        frame[:] = 0
        assert np.allclose(snapshot.frame, sample_frame_a4)

    def test_numeric_fault_is_contained(self, frame_processor, sample_frame_a4):
        frame = sample_frame_a4.copy()
        frame[5] = np.nan
        snapshot = frame_processor.process(frame)

        assert not snapshot.active
        assert snapshot.volume == 0.0
        assert snapshot.summary.numeric_faults == 2
        assert np.all(snapshot.spectrum == 0)

        snapshot = frame_processor.process(sample_frame_a4)
        assert snapshot.active

    def test_reset(self, frame_processor, sample_frame_a4):
        frame_processor.process(sample_frame_a4)
        frame_processor.reset()
        snapshot = frame_processor.process(sample_frame_a4)
        assert snapshot.frame_index == 1
        assert snapshot.profile.bucket_counts == (0, 0, 1)

    def test_describe(self, frame_processor, sample_frame_a4):
        line = frame_processor.process(sample_frame_a4).describe()
        assert 'note=A4' in line
        assert 'Scale: --' in line

    def test_history_capacity_from_config(self, default_config, sample_frame_a4):
        default_config['history']['capacity'] = 8
        processor = FrameProcessor(default_config)
        snapshot = processor.process(sample_frame_a4)
        assert len(snapshot.history.pitch) == 8
