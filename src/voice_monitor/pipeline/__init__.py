"""Frame processing pipeline for voice_monitor"""

from .statistics import RunningStatistics, SessionStats, SessionSummary, StatisticsAggregator
from .frame_processor import FrameProcessor, FrameSnapshot, ProcessingContext
from .analysis_loop import AnalysisLoop

__all__ = [
    'RunningStatistics',
    'SessionStats',
    'SessionSummary',
    'StatisticsAggregator',
    'FrameProcessor',
    'FrameSnapshot',
    'ProcessingContext',
    'AnalysisLoop',
]
