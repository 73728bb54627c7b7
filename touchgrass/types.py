"""
Type definitions for the touch grass game.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional, Protocol, Tuple, runtime_checkable

import numpy as np


Vec3 = Tuple[float, float, float]
MotionStatus = Literal["moving", "not moving"]


@dataclass
class Keypoint3D:
    """A single hand skeleton point."""
    x: float
    y: float
    z: float = 0.0


@dataclass
class HandObservation:
    """3D keypoints of one detected hand in a given frame."""
    keypoints3d: List[Keypoint3D]
    handedness: str = "Unknown"
    keypoints2d: List[Tuple[float, float]] = field(default_factory=list)

    @property
    def reference_point(self) -> Keypoint3D:
        """Wrist keypoint, the only one used for motion tracking."""
        return self.keypoints3d[0]


@dataclass
class MotionState:
    """Position history of the tracked hand between sampling windows."""
    last_sample_time: float
    previous: Optional[Vec3] = None
    current: Optional[Vec3] = None
    hand_lost: bool = False


@dataclass
class MotionReading:
    """Result of one motion tracker update."""
    status: Optional[MotionStatus]  # None means "keep showing the last status"
    velocity: Optional[Vec3] = None
    scored: bool = False


@dataclass
class GrassVerdict:
    """One parsed reply from the grass classifier."""
    detected: Optional[bool]  # None when the classifier could not be reached
    confidence: Optional[float] = None
    raw_text: str = ""
    error: Optional[str] = None


@dataclass
class GrassState:
    """Most recent grass verdict shown to the user."""
    detected: Optional[bool] = None
    confidence: Optional[float] = None
    updated_at: Optional[float] = None

    @property
    def positive(self) -> bool:
        return self.detected is True


class LoopState(Enum):
    """Render loop lifecycle."""
    IDLE = "idle"
    RUNNING = "running"
    RECONFIGURING = "reconfiguring"
    ERROR = "error"


@runtime_checkable
class FrameSourceProto(Protocol):
    """Supplies video frames."""

    frame_interval: float

    async def wait_ready(self) -> None:
        ...

    def read(self) -> Optional[np.ndarray]:
        ...

    def release(self) -> None:
        ...


@runtime_checkable
class EstimatorProto(Protocol):
    """Hand pose estimator backed by a detection model."""

    async def estimate(self, frame: np.ndarray, flip_horizontal: bool = False) -> List[HandObservation]:
        """Return the hands detected in the frame, may raise on model failure."""
        ...

    def draw_results(self, frame: np.ndarray, hands: List[HandObservation]) -> np.ndarray:
        ...

    def dispose(self) -> None:
        """Release model resources."""
        ...


@runtime_checkable
class ClassifierProto(Protocol):
    """Remote vision model answering free-text prompts about an image."""

    def classify(self, prompt: str, image_b64: str) -> str:
        ...
