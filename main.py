#!/usr/bin/env python3
"""Main entry point for the voice_monitor real-time analyzer."""

import os
import sys
import signal
import argparse

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from voice_monitor import __version__
from voice_monitor.errors import VoiceMonitorError
from voice_monitor.pipeline import AnalysisLoop, FrameProcessor, FrameSnapshot
from voice_monitor.sources import FileSource, MicrophoneSource
from voice_monitor.utils.config_loader import load_config
from voice_monitor.utils.logging_config import setup_logging

import logging
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Real-time voice and singing analyzer')
    parser.add_argument(
        '--config',
        type=str,
        default='config/voice_monitor.yaml',
        help='Path to configuration file'
    )
    parser.add_argument(
        '--input',
        type=str,
        default='mic',
        choices=['mic', 'file'],
        help='Audio input: live microphone or an audio file'
    )
    parser.add_argument(
        '--file',
        type=str,
        default=None,
        help='Audio file to analyze when --input file'
    )
    parser.add_argument(
        '--frames',
        type=int,
        default=None,
        help='Stop after this many frames'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Set logging level (overrides config and LOG_LEVEL)'
    )
    parser.add_argument(
        '--log-format',
        type=str,
        default=None,
        choices=['json', 'text'],
        help='Set logging format (overrides config and LOG_FORMAT)'
    )
    return parser


def summary_logger(every: int):
    """Consumer that logs a one-line status every ``every`` frames."""

    def log_summary(snapshot: FrameSnapshot) -> None:
        if every <= 0 or snapshot.frame_index % every:
            return
        summary = snapshot.summary
        logger.info(
            snapshot.describe(),
            extra={
                'voice_activity_percent': round(summary.voice_activity_percent, 1),
                'average_pitch': summary.average_pitch,
                'stability': snapshot.profile.stability,
                'clarity': snapshot.profile.clarity,
                'music_accuracy': summary.music_accuracy,
            }
        )

    return log_summary


def main(argv=None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    # Only explicit flags override the config file's logging section
    if args.log_level is not None:
        os.environ['LOG_LEVEL'] = args.log_level
    if args.log_format is not None:
        os.environ['LOG_FORMAT'] = args.log_format

    config = load_config(args.config)
    setup_logging(config.get('logging'))

    if args.frames is not None:
        config['loop']['max_frames'] = args.frames

    audio_config = config['audio']
    loop_config = config['loop']

    logger.info(
        "Starting voice_monitor",
        extra={
            "version": __version__,
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
            "input": args.input,
            "sample_rate": audio_config['sample_rate'],
            "frame_size": audio_config['frame_size'],
        }
    )

    try:
        if args.input == 'file':
            if not args.file:
                logger.error("--file is required with --input file")
                return 2
            source = FileSource(args.file, sample_rate=audio_config['sample_rate'])
        else:
            source = MicrophoneSource.from_config(audio_config).open()
    except VoiceMonitorError as e:
        logger.error("Failed to open audio input", extra={"error": str(e)})
        return 1

    loop = AnalysisLoop(
        source,
        FrameProcessor(config),
        frame_size=audio_config['frame_size'],
        poll_interval=loop_config['poll_interval'] if args.input == 'mic' else 0.0,
        max_frames=loop_config.get('max_frames'),
        consumers=[summary_logger(int(loop_config.get('summary_every', 20)))]
    )

    # Setup graceful shutdown
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, stopping after the current frame...")
        loop.stop_event.set()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        loop.run()
    except VoiceMonitorError as e:
        logger.error("Analysis stopped", extra={"error": str(e)}, exc_info=True)
        return 1
    finally:
        source.close()
        if loop.last_snapshot is not None:
            logger.info("Session summary", extra=loop.last_snapshot.summary.to_dict())
        logger.info("voice_monitor shutdown complete")

    return 0


if __name__ == '__main__':
    sys.exit(main())
