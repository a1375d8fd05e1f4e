"""Configuration loader module for voice_monitor."""

import os
import json
import copy
from typing import Optional, Dict, Any
from pathlib import Path

import yaml

# Default configuration
DEFAULT_CONFIG = {
    'audio': {
        'sample_rate': 22050,
        'frame_size': 1024,
        'channels': 1,
        'device': None
    },
    'pitch': {
        'min_hz': 50.0,
        'max_hz': 500.0,
        'silence_threshold': 0.001,
        'max_lag': 512,
        'min_lag': 20
    },
    'vad': {
        'threshold': 0.005
    },
    'volume': {
        'no_signal_below': 0.001,
        'quiet_below': 0.01,
        'good_below': 0.05
    },
    'note': {
        'reference_hz': 440.0,
        'perfect_cents': 5.0,
        'needle_span': 50.0
    },
    'spectral': {
        'spectrum_fft_size': 512,
        'column_fft_size': 256,
        'column_bins': 64,
        'column_scale': 64.0
    },
    'history': {
        'capacity': 200,
        'note_capacity': 50
    },
    'classifier': {
        'window': 5,
        'min_samples': 6,
        'stability_factor': 5.0,
        'clarity_gain': 800.0,
        'excited_volume': 0.05,
        'calm_volume': 0.005
    },
    'scale': {
        'window': 5,
        'min_samples': 5,
        'in_tune_cents': 25,
        'min_in_tune': 3,
        'max_distinct': 5
    },
    'statistics': {
        'accuracy_window': 10,
        'accuracy_factor': 2.0
    },
    'loop': {
        'poll_interval': 0.05,
        'max_frames': None,
        'summary_every': 20
    },
    'logging': {
        'level': 'INFO',
        'format': 'text',
        'dir': None
    }
}

ENV_PREFIX = 'VOICE_MONITOR_'


def load_config_with_defaults() -> Dict[str, Any]:
    """Load configuration with default values.

    Returns:
        Dict containing default configuration
    """
    return copy.deepcopy(DEFAULT_CONFIG)


def load_config_from_file(path: str, strict: bool = False) -> Dict[str, Any]:
    """Load configuration from a YAML or JSON file.

    Args:
        path: Path to configuration file
        strict: If True, raise error if file doesn't exist

    Returns:
        Dict containing loaded configuration

    Raises:
        FileNotFoundError: If strict=True and file doesn't exist
        ValueError: If file format is invalid
    """
    config_path = Path(path)

    if not config_path.exists():
        if strict:
            raise FileNotFoundError(f"Configuration file not found: {path}")
        return {}

    suffix = config_path.suffix.lower()
    if suffix == '.json':
        try:
            with open(config_path, 'r') as f:
                return json.load(f) or {}
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {path}: {e}")

    elif suffix in ['.yml', '.yaml']:
        try:
            with open(config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {path}: {e}")

    raise ValueError(f"Unsupported config file format: {config_path.suffix}")


def merge_configs(base: dict, override: dict) -> dict:
    """Deep merge two configuration dictionaries.

    Args:
        base: Base configuration dict
        override: Override configuration dict

    Returns:
        Merged configuration dict (modifies base in-place)
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            merge_configs(base[key], value)
        else:
            base[key] = value
    return base


def _parse_env_value(env_value: str) -> Any:
    try:
        return json.loads(env_value)
    except (json.JSONDecodeError, ValueError):
        pass

    lowered = env_value.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    if lowered in ('none', 'null'):
        return None
    try:
        if '.' in env_value:
            return float(env_value)
        return int(env_value)
    except ValueError:
        return env_value


def load_config_from_env(config: dict, prefix: str = ENV_PREFIX) -> dict:
    """Load configuration overrides from environment variables.

    Environment variable format:
    - VOICE_MONITOR_SECTION__KEY for nested values (double underscore)
    - JSON strings are parsed for complex types
    - Example: VOICE_MONITOR_AUDIO__SAMPLE_RATE=44100

    Args:
        config: Configuration dict to update
        prefix: Environment variable prefix

    Returns:
        Updated configuration dict

    Raises:
        ValueError: If config is not a dictionary
    """
    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(prefix):
            continue

        keys = [k for k in env_key[len(prefix):].lower().split('__') if k]
        if not keys:
            continue

        current = config
        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = _parse_env_value(env_value)

    return config


def _require_positive(section: dict, key: str, name: str) -> None:
    value = section.get(key)
    if value is None:
        return
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"Invalid {name}: {value}")


def _require_non_negative(section: dict, key: str, name: str) -> None:
    value = section.get(key)
    if value is None:
        return
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
        raise ValueError(f"Invalid {name}: {value}")


def validate_config(config: dict) -> None:
    """Validate configuration structure and values.

    Args:
        config: Configuration dict to validate

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValueError("Configuration must be a dictionary")

    if not config:
        raise ValueError("Configuration cannot be empty")

    required_sections = ['audio', 'pitch', 'vad', 'history', 'loop', 'logging']
    for section in required_sections:
        if section not in config:
            raise ValueError(f"Missing required config section: {section}")
        if not isinstance(config[section], dict):
            raise ValueError(f"Config section '{section}' must be a dictionary")

    audio = config['audio']
    sr = audio.get('sample_rate')
    if not isinstance(sr, int) or isinstance(sr, bool) or sr <= 0:
        raise ValueError(f"Invalid sample_rate: {sr}")
    frame_size = audio.get('frame_size')
    if not isinstance(frame_size, int) or isinstance(frame_size, bool) or frame_size <= 0:
        raise ValueError(f"Invalid frame_size: {frame_size}")
    if audio.get('channels', 1) != 1:
        raise ValueError(f"Invalid channels: {audio.get('channels')}. Only mono input is supported")

    pitch = config['pitch']
    min_hz = pitch.get('min_hz', 50.0)
    max_hz = pitch.get('max_hz', 500.0)
    if not (isinstance(min_hz, (int, float)) and isinstance(max_hz, (int, float))) or not 0 < min_hz < max_hz:
        raise ValueError(f"Invalid pitch range: [{min_hz}, {max_hz}]")
    _require_non_negative(pitch, 'silence_threshold', 'pitch silence_threshold')

    _require_non_negative(config['vad'], 'threshold', 'vad threshold')

    history = config['history']
    _require_positive(history, 'capacity', 'history capacity')
    _require_positive(history, 'note_capacity', 'note history capacity')

    loop = config['loop']
    _require_non_negative(loop, 'poll_interval', 'poll_interval')
    _require_positive(loop, 'max_frames', 'max_frames')

    logging_section = config['logging']
    level = logging_section.get('level', 'INFO')
    valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if not isinstance(level, str) or level.upper() not in valid_levels:
        raise ValueError(f"Invalid logging level: {level}")
    if logging_section.get('format', 'text') not in ('json', 'text'):
        raise ValueError(f"Invalid logging format: {logging_section.get('format')}")


def load_config(config_path: Optional[str] = None, use_defaults: bool = True) -> dict:
    """Load configuration from file, environment, and defaults.

    Loading order:
    1. Start with default configuration (if use_defaults=True)
    2. Merge configuration from file (if config_path provided)
    3. Apply environment variable overrides
    4. Validate final configuration

    Args:
        config_path: Optional path to configuration file
        use_defaults: Whether to use default configuration as base

    Returns:
        Final merged and validated configuration dict

    Raises:
        ValueError: If configuration is invalid
    """
    if use_defaults:
        config = load_config_with_defaults()
    else:
        config = {}

    if config_path and os.path.exists(config_path):
        file_config = load_config_from_file(config_path, strict=False)
        config = merge_configs(config, file_config)

    config = load_config_from_env(config)

    validate_config(config)

    return config


__all__ = [
    'load_config',
    'load_config_with_defaults',
    'load_config_from_file',
    'merge_configs',
    'load_config_from_env',
    'validate_config',
    'DEFAULT_CONFIG',
    'ENV_PREFIX'
]
