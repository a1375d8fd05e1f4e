"""Per-frame orchestration of the analysis pipeline

Each call to ``FrameProcessor.process`` runs one strictly sequential cycle:

1. volume and pitch are measured
2. the voice-activity gate decides whether the frame is active
3. on active frames the classifier, note conversion, scale guess, note
   history and spectrogram column are updated
4. volume and pitch (or absent) history are always written and the frame
   count advances
5. session statistics are recomputed
6. an immutable ``FrameSnapshot`` is returned

Values only recomputed on active frames (voice type, emotion, quality
scores, scale guess) hold their previous value on inactive frames.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

import numpy as np

from ..analysis.note_converter import NoteConverter, NoteLabel, TuningIndicator, NO_NOTE
from ..analysis.pitch_detector import PitchDetector, PitchEstimate
from ..analysis.scale_detector import ScaleKeyDetector, ScaleKeyGuess, NO_SCALE
from ..analysis.spectral_analyzer import SpectralAnalyzer
from ..analysis.voice_activity import VoiceActivityGate
from ..analysis.voice_classifier import VoiceClassifier, VoiceProfile
from ..analysis.volume_meter import VolumeMeter, InputLevel
from ..errors import ErrorKind
from ..storage.history import HistoryStore, HistorySnapshot
from .statistics import SessionStats, SessionSummary, StatisticsAggregator

logger = logging.getLogger(__name__)


def _read_only(values: np.ndarray) -> np.ndarray:
    array = np.array(values, dtype=np.float64, copy=True)
    array.setflags(write=False)
    return array


@dataclass
class ProcessingContext:
    """Mutable state carried from one cycle to the next

    Owned by a single FrameProcessor; components receive the pieces they
    need as arguments and never hold on to the context.
    """
    history: HistoryStore
    stats: SessionStats
    profile: VoiceProfile = field(default_factory=VoiceProfile)
    scale: ScaleKeyGuess = NO_SCALE


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything the presentation layer needs after one cycle

    Arrays are read-only copies; the histories are tuples taken after this
    cycle's writes.
    """
    frame_index: int
    active: bool
    frame: np.ndarray
    pitch: PitchEstimate
    volume: float
    input_level: InputLevel
    note: NoteLabel
    tuning: Optional[TuningIndicator]
    spectrum: np.ndarray
    spectrum_freqs: np.ndarray
    profile: VoiceProfile
    scale: ScaleKeyGuess
    summary: SessionSummary
    history: HistorySnapshot

    @property
    def pitch_hz(self) -> Optional[float]:
        """Pitch of an active frame, ``None`` otherwise"""
        return self.pitch.hz if self.active else None

    @property
    def voice_type(self):
        return self.profile.voice_type

    def describe(self) -> str:
        """One-line human readable status"""
        pitch = f"{self.pitch_hz:.1f} Hz" if self.pitch_hz is not None else '--'
        tuning = f" {self.tuning.label}" if self.tuning else ''
        voice = self.profile.voice_type.value if self.profile.voice_type else '--'
        return (
            f"#{self.frame_index} note={self.note.name}{tuning} pitch={pitch} "
            f"volume={self.volume:.4f} {self.input_level.meter} voice={voice} "
            f"{' '.join(self.scale.labels)}"
        )


class FrameProcessor:
    """Run the analysis components over one frame at a time

    Not reentrant: a processor handles a single cycle at a time and owns the
    histories it writes.

    Example:
        >>> processor = FrameProcessor(load_config())
        >>> snapshot = processor.process(frame)
        >>> print(snapshot.note.name, snapshot.scale.scale_type.value)

    Attributes:
        sample_rate (int): Sample rate of incoming frames
        context (ProcessingContext): State carried between cycles
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, sample_rate: Optional[int] = None):
        """Initialize FrameProcessor

        Args:
            config: Full configuration dict (see ``load_config``)
            sample_rate: Overrides ``audio.sample_rate`` when given

        Raises:
            ValueError: If a component configuration is invalid
        """
        config = config or {}
        audio_config = config.get('audio', {})
        pitch_config = config.get('pitch', {})
        self.sample_rate = int(sample_rate or audio_config.get('sample_rate', 22050))

        self.volume_meter = VolumeMeter(config.get('volume', {}))
        self.pitch_detector = PitchDetector(self.sample_rate, pitch_config)
        self.spectral_analyzer = SpectralAnalyzer(self.sample_rate, config.get('spectral', {}))
        self.gate = VoiceActivityGate(
            config.get('vad', {}),
            min_hz=self.pitch_detector.min_hz,
            max_hz=self.pitch_detector.max_hz
        )
        self.note_converter = NoteConverter(config.get('note', {}))
        self.classifier = VoiceClassifier(config.get('classifier', {}))
        self.scale_detector = ScaleKeyDetector(config.get('scale', {}), self.note_converter)
        self.aggregator = StatisticsAggregator(config.get('statistics', {}))

        self._history_config = config.get('history', {})
        self._spectrum_freqs = _read_only(self.spectral_analyzer.frequencies())
        self.context = self._new_context()

        logger.debug(
            "FrameProcessor initialized",
            extra={
                'sample_rate': self.sample_rate,
                'history_capacity': self.context.history.capacity,
            }
        )

    def _new_context(self) -> ProcessingContext:
        window = max(
            self.classifier.window,
            self.scale_detector.window,
            self.aggregator.accuracy_window
        )
        return ProcessingContext(
            history=HistoryStore(self._history_config, self.spectral_analyzer.column_bins),
            stats=SessionStats(window=window),
        )

    def reset(self) -> None:
        """Discard all histories and session counters"""
        self.context = self._new_context()

    def _update_active(self, frame: np.ndarray, pitch_hz: float, volume: float) -> NoteLabel:
        ctx = self.context
        stats = ctx.stats

        stats.record_active(pitch_hz, volume)
        ctx.profile = self.classifier.observe(
            ctx.profile,
            pitch_hz,
            volume,
            stats.last_pitches(self.classifier.window),
            stats.pitch_count
        )

        note = self.note_converter.to_note(pitch_hz)
        ctx.scale = self.scale_detector.detect(
            stats.last_pitches(self.scale_detector.window),
            stats.pitch_count
        )
        if note.is_note:
            ctx.history.record_note(note.pitch_class)

        column = self.spectral_analyzer.spectrogram_column(frame)
        if not column.ok:
            stats.record_fault()
        ctx.history.record_column(stats.frame_count, column.values)
        return note

    def process(self, frame: np.ndarray) -> FrameSnapshot:
        """Run one cycle over ``frame`` and return the snapshot

        Args:
            frame: 1-D array of samples in [-1, 1]

        Returns:
            FrameSnapshot
        """
        ctx = self.context
        stats = ctx.stats
        samples = _read_only(np.ravel(frame))

        volume = self.volume_meter.level(samples)
        pitch = self.pitch_detector.estimate(samples)
        if pitch.status == ErrorKind.NUMERIC_FAULT:
            stats.record_fault()

        active = self.gate.is_active(volume, pitch.hz)

        note = NO_NOTE
        if active:
            note = self._update_active(samples, pitch.hz, volume)

        cursor = ctx.history.record_frame(stats.frame_count, volume, pitch.hz if active else None)
        stats.advance()

        spectrum = self.spectral_analyzer.spectrum(samples)
        if not spectrum.ok:
            stats.record_fault()

        summary = self.aggregator.summarize(stats, ctx.history, cursor)

        logger.debug(
            f"Frame {stats.frame_count}: active={active} pitch={pitch.hz} "
            f"status={pitch.status.value} volume={volume:.5f}"
        )

        return FrameSnapshot(
            frame_index=stats.frame_count,
            active=active,
            frame=samples,
            pitch=pitch,
            volume=volume,
            input_level=self.volume_meter.band(volume),
            note=note,
            tuning=self.note_converter.tuning(note),
            spectrum=_read_only(spectrum.values),
            spectrum_freqs=self._spectrum_freqs,
            profile=ctx.profile,
            scale=ctx.scale,
            summary=summary,
            history=ctx.history.snapshot(),
        )
