"""
Hand landmark detection using MediaPipe.
"""
import asyncio
import logging
import threading
import cv2
import mediapipe as mp
import numpy as np
from typing import List

from .config import MediaPipeConfig
from .errors import DetectorError
from .types import HandObservation, Keypoint3D

logger = logging.getLogger(__name__)

SUPPORTED_MODELS = ("mediapipe_hands",)
MODEL_COMPLEXITY = {"lite": 0, "full": 1}


class HandsTracker:
    """Hand landmark tracker using MediaPipe Hands."""

    def __init__(self, model_type: str = "full", max_num_hands: int = 2,
                 min_detection_conf: float = 0.6, min_tracking_conf: float = 0.6):
        """
        Initialize the hands tracker.

        Args:
            model_type: "lite" or "full" landmark model
            max_num_hands: Maximum number of hands to detect
            min_detection_conf: Minimum confidence for hand detection
            min_tracking_conf: Minimum confidence for hand tracking
        """
        if model_type not in MODEL_COMPLEXITY:
            raise DetectorError(f"Unknown model type: {model_type}")

        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            model_complexity=MODEL_COMPLEXITY[model_type],
            max_num_hands=max_num_hands,
            min_detection_confidence=min_detection_conf,
            min_tracking_confidence=min_tracking_conf
        )
        self.model_type = model_type
        # Held while the graph runs so dispose() waits for the worker thread
        self._lock = threading.Lock()

    async def estimate(self, frame: np.ndarray, flip_horizontal: bool = False) -> List[HandObservation]:
        """
        Detect hands in a BGR frame.

        Args:
            frame: Input frame in BGR format
            flip_horizontal: Mirror the returned 3D keypoints

        Returns:
            Detected hands in model order, empty if none
        """
        if self.hands is None:
            raise DetectorError("Hand detector has been disposed")
        return await asyncio.to_thread(self._process, frame, flip_horizontal)

    def _process(self, frame_bgr: np.ndarray, flip_horizontal: bool) -> List[HandObservation]:
        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        with self._lock:
            if self.hands is None:
                raise DetectorError("Hand detector has been disposed")
            results = self.hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return []

        world = results.multi_hand_world_landmarks or [None] * len(results.multi_hand_landmarks)
        handedness = results.multi_handedness or [None] * len(results.multi_hand_landmarks)

        hands = []
        for image_lm, world_lm, handed in zip(results.multi_hand_landmarks, world, handedness):
            sign = -1.0 if flip_horizontal else 1.0
            # Drawn onto the unmirrored frame, so never flipped
            keypoints2d = [(lm.x, lm.y) for lm in image_lm.landmark]
            # World landmarks are metric and hand-centred; fall back to image space
            source = world_lm.landmark if world_lm is not None else image_lm.landmark
            keypoints3d = [Keypoint3D(x=sign * lm.x, y=lm.y, z=lm.z) for lm in source]
            label = handed.classification[0].label if handed is not None else "Unknown"
            hands.append(HandObservation(keypoints3d=keypoints3d, handedness=label, keypoints2d=keypoints2d))

        return hands

    def draw_results(self, frame: np.ndarray, hands: List[HandObservation]) -> np.ndarray:
        """
        Draw hand landmarks on the frame.

        Args:
            frame: Input frame
            hands: Hands returned by estimate()

        Returns:
            Frame with landmarks drawn
        """
        height, width = frame.shape[:2]

        for hand in hands:
            points = [(int(x * width), int(y * height)) for x, y in hand.keypoints2d]
            for start, end in self.mp_hands.HAND_CONNECTIONS:
                cv2.line(frame, points[start], points[end], (255, 255, 255), 2)
            for px, py in points:
                cv2.circle(frame, (px, py), 3, (0, 255, 0), -1)

        return frame

    def dispose(self) -> None:
        """Release the MediaPipe graph once any running inference has finished."""
        with self._lock:
            if self.hands is not None:
                self.hands.close()
                self.hands = None


def create_detector(cfg: MediaPipeConfig) -> HandsTracker:
    """Build a hand detector for the configured model."""
    if cfg.model not in SUPPORTED_MODELS:
        raise DetectorError(f"Unsupported model: {cfg.model}")

    logger.info("🖐️ Creating %s detector (%s)", cfg.model, cfg.model_type)
    return HandsTracker(
        model_type=cfg.model_type,
        max_num_hands=cfg.max_num_hands,
        min_detection_conf=cfg.min_detection_confidence,
        min_tracking_conf=cfg.min_tracking_confidence
    )
