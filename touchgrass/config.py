"""
Configuration management for the touch grass game.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple
from dataclasses import dataclass, field

from dotenv import load_dotenv


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int
    size_presets: List[Tuple[int, int]] = field(default_factory=list)


@dataclass
class MediaPipeConfig:
    """Hand detector configuration settings."""
    model: str
    model_type: str  # "lite" or "full"
    max_num_hands: int
    min_detection_confidence: float
    min_tracking_confidence: float
    flip_horizontal: bool


@dataclass
class MotionConfig:
    """Hand velocity sampling settings."""
    interval_s: float
    threshold: float
    use_z_axis: bool
    reset_on_reacquire: bool


@dataclass
class GrassConfig:
    """Grass classifier polling settings."""
    interval_s: float
    model_name: str
    prompt: str
    timeout_s: float
    max_retries: int
    backoff_s: float
    jpeg_quality: int
    max_workers: int = 2


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    window_name: str
    notification_s: float


@dataclass
class ShareConfig:
    """Share message settings."""
    site_url: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    motion: MotionConfig
    grass: GrassConfig
    display: DisplayConfig
    share: ShareConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    return _dict_to_config(data)


def load_api_key() -> Optional[str]:
    """Read the Gemini API key from the environment or a .env file."""
    load_dotenv()
    return os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps'],
        size_presets=[tuple(size) for size in camera_data.get('size_presets', [])]
    )

    mp_data = data['mediapipe']
    mediapipe = MediaPipeConfig(
        model=mp_data['model'],
        model_type=mp_data['model_type'],
        max_num_hands=mp_data['max_num_hands'],
        min_detection_confidence=mp_data['min_detection_confidence'],
        min_tracking_confidence=mp_data['min_tracking_confidence'],
        flip_horizontal=mp_data.get('flip_horizontal', False)
    )

    motion_data = data['motion']
    motion = MotionConfig(
        interval_s=motion_data['interval_s'],
        threshold=motion_data['threshold'],
        use_z_axis=motion_data.get('use_z_axis', False),
        reset_on_reacquire=motion_data.get('reset_on_reacquire', True)
    )

    grass_data = data['grass']
    grass = GrassConfig(
        interval_s=grass_data['interval_s'],
        model_name=grass_data['model_name'],
        prompt=grass_data['prompt'],
        timeout_s=grass_data['timeout_s'],
        max_retries=grass_data['max_retries'],
        backoff_s=grass_data['backoff_s'],
        jpeg_quality=grass_data.get('jpeg_quality', 90),
        max_workers=grass_data.get('max_workers', 2)
    )

    display_data = data['display']
    display = DisplayConfig(
        show_landmarks=display_data['show_landmarks'],
        window_name=display_data['window_name'],
        notification_s=display_data.get('notification_s', 4.0)
    )

    share = ShareConfig(site_url=data['share']['site_url'])

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        motion=motion,
        grass=grass,
        display=display,
        share=share
    )
