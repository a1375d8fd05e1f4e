"""Tests for the AnalysisLoop"""

import threading
import time

import pytest
import numpy as np

from conftest import make_sine
from voice_monitor.errors import AudioSourceClosedError
from voice_monitor.pipeline.analysis_loop import AnalysisLoop
from voice_monitor.pipeline.frame_processor import FrameProcessor
from voice_monitor.sources.audio_source import BufferSource


def _source(n_frames: int, frame_size: int = 1024) -> BufferSource:
    return BufferSource(make_sine(220.0, n=n_frames * frame_size))


@pytest.mark.integration
class TestAnalysisLoop:
    """Pull loop behavior"""

    def test_runs_until_source_exhausted(self, frame_processor):
        received = []
        loop = AnalysisLoop(_source(10), frame_processor, poll_interval=0.0,
                            consumers=[received.append])

        assert loop.run() == 10
        assert len(received) == 10
        assert [s.frame_index for s in received] == list(range(1, 11))
        assert loop.last_snapshot is received[-1]

    def test_max_frames(self, frame_processor):
        loop = AnalysisLoop(_source(10), frame_processor, poll_interval=0.0, max_frames=3)
        assert loop.run() == 3

    def test_consumer_errors_do_not_stop_loop(self, frame_processor):
        received = []

        def broken(snapshot):
            raise RuntimeError("display failed")

        loop = AnalysisLoop(_source(4), frame_processor, poll_interval=0.0,
                            consumers=[broken, received.append])

        assert loop.run() == 4
        assert loop.consumer_errors == 4
        assert len(received) == 4

    def test_closed_source_is_fatal(self, frame_processor):
        source = _source(4)
        source.close()
        loop = AnalysisLoop(source, frame_processor, poll_interval=0.0)
        with pytest.raises(AudioSourceClosedError):
            loop.run()

    def test_stop_event_checked_between_cycles(self, frame_processor):
        loop = AnalysisLoop(_source(10), frame_processor, poll_interval=0.0)

        def stop_after_two(snapshot):
            if snapshot.frame_index == 2:
                loop.stop_event.set()

        loop.add_consumer(stop_after_two)
        assert loop.run() == 2

    def test_background_thread(self, frame_processor):
        loop = AnalysisLoop(_source(1000), frame_processor, poll_interval=0.01)
        loop.start()
        time.sleep(0.1)
        assert loop.running
        loop.stop()
        assert not loop.running
        assert loop.frames_processed > 0

    def test_stop_timeout_keeps_running_thread(self, frame_processor):
        """A thread still finishing its cycle is neither dropped nor duplicated"""
        release = threading.Event()
        entered = threading.Event()

        def slow_consumer(snapshot):
            entered.set()
            release.wait(2.0)

        loop = AnalysisLoop(_source(1000), frame_processor, consumers=[slow_consumer])
        loop.start()
        assert entered.wait(2.0)
        thread = loop._thread

        loop.stop(timeout=0.01)
        assert loop.running
        assert loop._thread is thread

        loop.start()
        assert loop._thread is thread

        release.set()
        loop.stop(timeout=2.0)
        assert not loop.running
        assert loop._thread is None

    def test_step(self, frame_processor):
        loop = AnalysisLoop(_source(2), frame_processor)
        snapshot = loop.step()
        assert snapshot.active
        assert loop.frames_processed == 1

    def test_sample_rate_mismatch(self):
        processor = FrameProcessor(sample_rate=44100)
        with pytest.raises(ValueError):
            AnalysisLoop(_source(2), processor)

    @pytest.mark.parametrize('kwargs', [
        {'frame_size': 0},
        {'poll_interval': -1.0},
        {'max_frames': 0},
    ])
    def test_invalid_arguments(self, frame_processor, kwargs):
        with pytest.raises(ValueError):
            AnalysisLoop(_source(2), frame_processor, **kwargs)
