"""
On-screen status overlay and keyboard input.
"""
import cv2
import numpy as np

from .config import DisplayConfig
from .grass import describe_grass_state
from .session import SessionState
from .types import LoopState

ACTIVE_COLOR = (0, 200, 0)
IDLE_COLOR = (255, 255, 255)
ERROR_COLOR = (0, 0, 255)

HAND_STATUS_TEXT = {
    "moving": "Petting in Progress",
    "not moving": "Petulantly Patient...",
}


def draw_overlay(frame: np.ndarray, session: SessionState, cfg: DisplayConfig, t_now: float) -> np.ndarray:
    """Draw hand status, grass status, score and the latest notification."""
    moving = session.hand_status == "moving"
    cv2.putText(frame, HAND_STATUS_TEXT[session.hand_status], (10, 30),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, ACTIVE_COLOR if moving else IDLE_COLOR, 2)

    cv2.putText(frame, describe_grass_state(session.grass), (10, 60),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, ACTIVE_COLOR if session.grass.positive else IDLE_COLOR, 2)

    cv2.putText(frame, f"Score: {session.score}", (10, 90),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, IDLE_COLOR, 2)

    if session.loop_state == LoopState.ERROR:
        cv2.putText(frame, "Hand tracking unavailable", (10, 120),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, ERROR_COLOR, 2)

    note = session.notification
    if note is not None and t_now - note.shown_at < cfg.notification_s:
        cv2.putText(frame, note.message, (10, frame.shape[0] - 50),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, ERROR_COLOR if note.error else ACTIVE_COLOR, 2)

    cv2.putText(frame, "s: share  m: model  h: hands  f: flip  c: camera  q: quit",
                (10, frame.shape[0] - 20), cv2.FONT_HERSHEY_SIMPLEX, 0.45, IDLE_COLOR, 1)
    return frame


class Display:
    """OpenCV window showing the annotated camera feed."""

    def __init__(self, cfg: DisplayConfig):
        self.cfg = cfg

    def show(self, frame: np.ndarray) -> None:
        cv2.imshow(self.cfg.window_name, frame)

    def poll_key(self) -> int:
        """Return the pressed key code, or -1."""
        key = cv2.waitKey(1)
        return key & 0xFF if key != -1 else -1

    def close(self) -> None:
        cv2.destroyAllWindows()
