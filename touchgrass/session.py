"""
Per-run session state and the share action.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import pyperclip

from .config import Cfg
from .motion import MotionTracker
from .types import EstimatorProto, GrassState, LoopState, MotionStatus

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """Message shown as a banner on top of the video."""
    message: str
    error: bool
    shown_at: float


@dataclass
class SessionState:
    """Everything the render loop mutates between frames."""
    started_at: datetime
    t_start: float
    tracker: MotionTracker
    grass: GrassState = field(default_factory=GrassState)
    detector: Optional[EstimatorProto] = None
    loop_state: LoopState = LoopState.IDLE
    hand_status: MotionStatus = "not moving"
    notification: Optional[Notification] = None

    @classmethod
    def start(cls, cfg: Cfg, t_start: Optional[float] = None) -> "SessionState":
        t_start = time.time() if t_start is None else t_start
        return cls(
            started_at=datetime.fromtimestamp(t_start),
            t_start=t_start,
            tracker=MotionTracker(cfg.motion, t_start),
        )

    @property
    def score(self) -> int:
        return self.tracker.score

    def notify(self, message: str, error: bool = False, t_now: Optional[float] = None) -> None:
        """Surface a message to the user."""
        if error:
            logger.error("❌ %s", message)
        else:
            logger.info(message)
        self.notification = Notification(message, error, time.time() if t_now is None else t_now)


def format_duration(seconds: float) -> str:
    """Format elapsed seconds as [HH:]MM:SS, hours only when non-zero."""
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    seconds_left = seconds % 60

    formatted_hours = f"{hours:02d}:" if hours > 0 else ""
    return f"{formatted_hours}{minutes:02d}:{seconds_left:02d}"


def share_text(session: SessionState, site_url: str, t_now: Optional[float] = None) -> str:
    """Build the summary copied by the share action."""
    t_now = time.time() if t_now is None else t_now
    duration = format_duration(t_now - session.t_start)
    started = session.started_at.strftime("%m/%d/%Y, %I:%M:%S %p")
    return (
        "I touched grass today!\n"
        f"  ⏰ Started: {started}\n"
        f"  💫 Duration: {duration}\n"
        f"  🍀 Points: {session.score}\n"
        f"  {site_url}"
    )


def share_experience(session: SessionState, site_url: str, t_now: Optional[float] = None) -> bool:
    """Copy the session summary to the clipboard and tell the user how it went."""
    text = share_text(session, site_url, t_now)
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        session.notify(f"Failed to copy text: {e}", error=True, t_now=t_now)
        return False

    session.notify("Text copied to clipboard!", t_now=t_now)
    return True
