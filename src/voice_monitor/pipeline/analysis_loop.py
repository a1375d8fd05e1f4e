"""Pull loop driving the frame processor from an audio source"""

import logging
import threading
import time
from typing import Callable, List, Optional

from ..errors import AudioSourceClosedError
from ..sources.audio_source import AudioSource
from ..utils.logging_config import LogContext
from .frame_processor import FrameProcessor, FrameSnapshot

logger = logging.getLogger(__name__)

SnapshotConsumer = Callable[[FrameSnapshot], None]


class AnalysisLoop:
    """Poll an audio source, process each frame and hand the snapshot on

    Cycles never overlap. The stop signal is only checked between cycles, so
    a cycle always runs to completion. Exceptions raised by consumers are
    logged and the loop carries on; a closed source ends the loop with
    ``AudioSourceClosedError``.

    Example:
        >>> loop = AnalysisLoop(source, FrameProcessor(config), frame_size=1024)
        >>> loop.add_consumer(lambda snap: print(snap.describe()))
        >>> loop.run()

    Attributes:
        frame_size (int): Samples requested from the source each cycle
        poll_interval (float): Seconds to wait between cycles
        max_frames (int): Optional number of frames after which to stop
    """

    def __init__(
        self,
        source: AudioSource,
        processor: FrameProcessor,
        frame_size: int = 1024,
        poll_interval: float = 0.05,
        max_frames: Optional[int] = None,
        consumers: Optional[List[SnapshotConsumer]] = None
    ):
        if frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {frame_size}")
        if poll_interval < 0:
            raise ValueError(f"poll_interval must be non-negative, got {poll_interval}")
        if max_frames is not None and max_frames <= 0:
            raise ValueError(f"max_frames must be positive, got {max_frames}")
        if source.sample_rate != processor.sample_rate:
            raise ValueError(
                f"Source sample rate {source.sample_rate} does not match "
                f"processor sample rate {processor.sample_rate}"
            )

        self.source = source
        self.processor = processor
        self.frame_size = frame_size
        self.poll_interval = poll_interval
        self.max_frames = max_frames
        self.consumers: List[SnapshotConsumer] = list(consumers or [])

        self.frames_processed = 0
        self.consumer_errors = 0
        self.last_snapshot: Optional[FrameSnapshot] = None
        self.stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def add_consumer(self, consumer: SnapshotConsumer) -> None:
        self.consumers.append(consumer)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _dispatch(self, snapshot: FrameSnapshot) -> None:
        for consumer in self.consumers:
            try:
                consumer(snapshot)
            except Exception as e:
                self.consumer_errors += 1
                logger.error(f"Snapshot consumer failed on frame {snapshot.frame_index}: {e}", exc_info=True)

    def step(self) -> FrameSnapshot:
        """Run exactly one cycle"""
        frame = self.source.read_latest_frame(self.frame_size)
        snapshot = self.processor.process(frame)
        self.frames_processed += 1
        self.last_snapshot = snapshot
        self._dispatch(snapshot)
        return snapshot

    def _should_stop(self) -> bool:
        if self.stop_event.is_set():
            return True
        if self.max_frames is not None and self.frames_processed >= self.max_frames:
            logger.info(f"Reached max_frames={self.max_frames}")
            return True
        if self.source.exhausted:
            logger.info(f"Audio source '{self.source.name}' exhausted")
            return True
        return False

    def run(self) -> int:
        """Run cycles until stopped, exhausted or ``max_frames`` is reached

        Returns:
            Number of frames processed

        Raises:
            AudioSourceClosedError: If the source is closed mid-session
        """
        with LogContext(source=self.source.name):
            logger.info(
                "Analysis loop started",
                extra={
                    'frame_size': self.frame_size,
                    'poll_interval': self.poll_interval,
                    'max_frames': self.max_frames,
                }
            )
            start_time = time.time()
            try:
                while not self._should_stop():
                    self.step()
                    if self.stop_event.wait(self.poll_interval):
                        break
            except AudioSourceClosedError as e:
                logger.error(f"Audio source unavailable: {e}")
                raise

            elapsed = time.time() - start_time
            logger.info(
                "Analysis loop stopped",
                extra={
                    'frames_processed': self.frames_processed,
                    'consumer_errors': self.consumer_errors,
                    'elapsed_s': round(elapsed, 3),
                }
            )
        return self.frames_processed

    def start(self) -> None:
        """Run the loop in a background thread"""
        if self.running:
            if self.stop_event.is_set():
                logger.warning("Previous analysis loop thread is still finishing; not restarting")
            return
        self.stop_event.clear()
        self._thread = threading.Thread(target=self._run_in_thread, name='analysis-loop', daemon=True)
        self._thread.start()

    def _run_in_thread(self) -> None:
        try:
            self.run()
        except AudioSourceClosedError:
            # Already logged by run()
            pass

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        """Signal the loop to stop after the current cycle"""
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                # Handle stays set while the thread is alive
                logger.warning("Analysis loop thread did not stop within %s s", timeout)
            else:
                self._thread = None
