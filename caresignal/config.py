# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Configuration loader for CareSignal.

Loads configuration from YAML file with environment variable substitution.
"""

import os
import re
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Default config file locations (in order of priority)
CONFIG_PATHS = [
    "config.local.yaml",  # Local overrides (not in git)
    "config.yaml",        # Default config
]

DIRECTIONS = ("left", "right", "up", "down")
MISSING_DETECTION_POLICIES = ("open", "hold")


@dataclass
class LandmarkConfig:
    """Landmark indices (MediaPipe Face Mesh, refined: 478 points)."""
    count: int = 478
    right_eye: List[int] = field(default_factory=lambda: [33, 160, 158, 133, 153, 144])
    left_eye: List[int] = field(default_factory=lambda: [362, 385, 387, 263, 373, 380])
    nose_tip: int = 1
    mouth_left: int = 61
    mouth_right: int = 291
    upper_lip: int = 13
    lower_lip: int = 14
    face_left: int = 234
    face_right: int = 454
    forehead: int = 10
    chin: int = 152
    # EAR assumed before the first good measurement
    fallback_ear: float = 0.3


@dataclass
class BlinkConfig:
    """Blink and sleep detection thresholds (frames at ~30 fps)."""
    threshold: float = 0.22
    reset_frames: int = 30
    sleep_threshold_frames: int = 210
    awake_threshold_frames: int = 45
    missing_detection: str = "hold"


@dataclass
class HeadPoseConfig:
    """Nose position thresholds (normalized, mirrored x)."""
    left: float = 0.45
    right: float = 0.55
    up: float = 0.45
    down: float = 0.6


@dataclass
class GestureConfig:
    """Gesture sequence matching."""
    timeout_frames: int = 60
    max_sequence: int = 4
    patterns: Dict[str, List[str]] = field(default_factory=lambda: {
        "washroom": ["left", "right", "left", "right"],
        "emergency": ["up", "down", "up", "down"],
    })


@dataclass
class ExpressionConfig:
    """Expression classification thresholds."""
    smile_threshold: float = 0.42
    mouth_open_threshold: float = 0.18


@dataclass
class NotificationsConfig:
    """Outbound notification endpoints."""
    enabled: bool = True
    notify_url: str = "http://localhost:3001/notify"
    status_url: str = "http://localhost:3001/status"
    timeout_seconds: float = 5.0
    report_interval_seconds: float = 2.0


@dataclass
class SourceConfig:
    """Landmark source settings."""
    fps: float = 30.0
    scenario: str = "demo"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: str = "logs/caresignal.log"
    max_size_mb: int = 10
    backup_count: int = 5


def _default_messages() -> Dict[str, str]:
    return {
        "water": "Water Requested",
        "food": "Food Requested",
        "washroom": "Washroom Requested",
        "emergency": "EMERGENCY ALERT",
        "sleeping": "Patient is Sleeping",
        "awake": "Patient is Awake",
    }


@dataclass
class Config:
    """Main configuration container.

    This is the root configuration object containing all settings.
    """
    mock_mode: bool = False
    landmarks: LandmarkConfig = field(default_factory=LandmarkConfig)
    blink: BlinkConfig = field(default_factory=BlinkConfig)
    blink_actions: Dict[int, str] = field(default_factory=lambda: {5: "water", 7: "food"})
    head_pose: HeadPoseConfig = field(default_factory=HeadPoseConfig)
    gestures: GestureConfig = field(default_factory=GestureConfig)
    expression: ExpressionConfig = field(default_factory=ExpressionConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    messages: Dict[str, str] = field(default_factory=_default_messages)
    source: SourceConfig = field(default_factory=SourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Internal: base path for resolving relative paths
    _base_path: Path = field(default_factory=Path.cwd)

    def resolve_path(self, path: str) -> Path:
        """Resolve a path relative to the config file location."""
        p = Path(path)
        if p.is_absolute():
            return p
        return self._base_path / p

    def message_for(self, key: str) -> str:
        """Human-readable alert text for an action or sleep state name."""
        return self.messages.get(key) or key.replace("_", " ").title()


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} patterns with environment variables.

    Args:
        value: Value to process (can be str, dict, list, or other)

    Returns:
        Value with environment variables substituted
    """
    if isinstance(value, str):
        # Pattern matches ${VAR_NAME}
        pattern = r'\$\{([^}]+)\}'

        def replace_env(match):
            var_name = match.group(1)
            env_value = os.environ.get(var_name, "")
            if not env_value:
                logger.warning(f"Environment variable {var_name} not set")
            return env_value

        return re.sub(pattern, replace_env, value)

    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]

    return value


def _dict_to_dataclass(cls, data: Dict[str, Any]):
    """Convert a dictionary to a dataclass, handling nested structures.

    Args:
        cls: The dataclass type to create
        data: Dictionary of values

    Returns:
        Instance of cls populated with data
    """
    if data is None:
        return cls()

    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}

    kwargs = {}
    for field_name, field_type in field_types.items():
        if field_name.startswith('_'):
            continue

        if field_name not in data:
            continue

        value = data[field_name]

        if hasattr(field_type, '__dataclass_fields__'):
            kwargs[field_name] = _dict_to_dataclass(field_type, value)

        # YAML may hand back string keys ("5": water)
        elif field_name == 'blink_actions' and isinstance(value, dict):
            kwargs[field_name] = {int(k): str(v) for k, v in value.items()}

        # Merge message overrides onto defaults
        elif field_name == 'messages' and isinstance(value, dict):
            messages = _default_messages()
            messages.update({str(k): str(v) for k, v in value.items()})
            kwargs[field_name] = messages

        elif field_name == 'patterns' and isinstance(value, dict):
            kwargs[field_name] = {
                str(name): [str(step).lower() for step in steps]
                for name, steps in value.items()
            }

        else:
            kwargs[field_name] = value

    return cls(**kwargs)


def load_config(config_path: Optional[str] = None, base_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, searches default locations.
        base_path: Base path for resolving relative paths. Defaults to cwd.

    Returns:
        Config object with all settings loaded

    Raises:
        FileNotFoundError: If no config file is found
        yaml.YAMLError: If config file is invalid YAML
        ValueError: If the configuration is unusable
    """
    # Load .env file if present
    env_path = Path(base_path or Path.cwd()) / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment from {env_path}")

    # Find config file
    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        base = base_path or Path.cwd()
        config_file = None
        for path in CONFIG_PATHS:
            candidate = base / path
            if candidate.exists():
                config_file = candidate
                break

        if config_file is None:
            raise FileNotFoundError(
                f"No config file found. Searched: {', '.join(CONFIG_PATHS)}"
            )

    logger.info(f"Loading config from {config_file}")

    with open(config_file, 'r') as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        raw_config = {}

    config_data = _substitute_env_vars(raw_config)

    # MOCK_LANDMARKS env var forces synthetic input
    if os.environ.get("MOCK_LANDMARKS", "").lower() in ("true", "1", "yes"):
        logger.info("MOCK_LANDMARKS environment variable set - enabling mock mode")
        config_data["mock_mode"] = True

    config = _dict_to_dataclass(Config, config_data)
    config._base_path = config_file.parent

    validate_config(config)

    return config


def validate_config(config: Config) -> None:
    """Validate configuration settings.

    Args:
        config: Config object to validate

    Raises:
        ValueError: If required settings are missing or invalid
    """
    errors = []

    landmarks = config.landmarks
    for name in ("right_eye", "left_eye"):
        indices = getattr(landmarks, name)
        if len(indices) != 6:
            errors.append(f"landmarks.{name} must list exactly 6 indices (got {len(indices)})")

    all_indices = list(landmarks.right_eye) + list(landmarks.left_eye) + [
        landmarks.nose_tip, landmarks.mouth_left, landmarks.mouth_right,
        landmarks.upper_lip, landmarks.lower_lip, landmarks.face_left,
        landmarks.face_right, landmarks.forehead, landmarks.chin,
    ]
    out_of_range = [i for i in all_indices if i < 0 or i >= landmarks.count]
    if out_of_range:
        errors.append(
            f"landmark indices {out_of_range} outside 0..{landmarks.count - 1}"
        )

    if config.blink.missing_detection not in MISSING_DETECTION_POLICIES:
        errors.append(
            f"blink.missing_detection must be one of {MISSING_DETECTION_POLICIES}"
        )

    for name in ("reset_frames", "sleep_threshold_frames", "awake_threshold_frames"):
        if getattr(config.blink, name) < 1:
            logger.warning(f"blink.{name} must be at least 1, using 1")
            setattr(config.blink, name, 1)

    if config.gestures.max_sequence < 1:
        errors.append("gestures.max_sequence must be at least 1")

    for name, steps in config.gestures.patterns.items():
        bad = [s for s in steps if s not in DIRECTIONS]
        if bad:
            errors.append(f"gestures.patterns.{name} has unknown directions {bad}")
        if not steps or len(steps) > config.gestures.max_sequence:
            errors.append(
                f"gestures.patterns.{name} must have 1..{config.gestures.max_sequence} steps"
            )

    if config.gestures.timeout_frames < 1:
        logger.warning("gestures.timeout_frames must be at least 1, using 1")
        config.gestures.timeout_frames = 1

    if config.head_pose.left > config.head_pose.right:
        errors.append("head_pose.left must not exceed head_pose.right")
    if config.head_pose.up > config.head_pose.down:
        errors.append("head_pose.up must not exceed head_pose.down")

    for count in config.blink_actions:
        if count < 1:
            errors.append(f"blink_actions key {count} must be a positive blink count")

    if config.notifications.report_interval_seconds <= 0:
        logger.warning("notifications.report_interval_seconds must be positive, using 2.0")
        config.notifications.report_interval_seconds = 2.0

    if config.source.fps <= 0:
        logger.warning("source.fps must be positive, using 30")
        config.source.fps = 30.0

    if errors:
        raise ValueError("Configuration errors:\n  " + "\n  ".join(errors))


def get_default_config() -> Config:
    """Get a Config object with all default values.

    Useful for testing or when no config file exists.

    Returns:
        Config with default values
    """
    return Config()
