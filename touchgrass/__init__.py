"""
Touch Grass

A webcam game that tracks hand motion with MediaPipe, asks Gemini whether
grass is in view, and scores a point for every half second spent petting it.
"""

__version__ = "0.1.0"

from .types import HandObservation, Keypoint3D, GrassState, GrassVerdict, LoopState, MotionReading
from .config import load_config, Cfg
from .motion import MotionTracker
from .grass import GrassGate, parse_grass_response
from .session import SessionState, format_duration, share_experience

__all__ = [
    "HandObservation",
    "Keypoint3D",
    "GrassState",
    "GrassVerdict",
    "LoopState",
    "MotionReading",
    "load_config",
    "Cfg",
    "MotionTracker",
    "GrassGate",
    "parse_grass_response",
    "SessionState",
    "format_duration",
    "share_experience",
]
