"""
Hand motion tracking and scoring.
"""
import logging
from typing import Optional

from .config import MotionConfig
from .types import HandObservation, MotionReading, MotionState, Vec3

logger = logging.getLogger(__name__)


class MotionTracker:
    """
    Classifies the wrist as moving or still over fixed sampling windows.

    Features:
    - Velocity sampled once per window, never on intermediate frames
    - Score point per moving window while grass is detected
    - Optional re-seeding after the hand disappears and comes back
    """

    def __init__(self, cfg: MotionConfig, t_start: float):
        """Initialize the tracker with the session start time."""
        self.cfg = cfg
        self.state = MotionState(last_sample_time=t_start)
        self.score = 0

    def update(self, observation: Optional[HandObservation], t_now: float,
               grass_positive: bool) -> MotionReading:
        """
        Feed one render tick into the tracker.

        Args:
            observation: First detected hand, or None if no hand (or no detector)
            t_now: Current timestamp in seconds
            grass_positive: Whether the latest grass verdict was positive

        Returns:
            MotionReading with status None when the window has not elapsed yet
        """
        if observation is None:
            # Stored position is kept so the window keeps its timing
            self.state.hand_lost = True
            return MotionReading(status="not moving")

        if t_now - self.state.last_sample_time < self.cfg.interval_s:
            return MotionReading(status=None)

        point = observation.reference_point
        self.state.current = (point.x, point.y, point.z)

        reacquired = self.state.hand_lost
        self.state.hand_lost = False
        reading = self._sample(grass_positive, reseed=reacquired and self.cfg.reset_on_reacquire)

        self.state.previous = self.state.current
        self.state.last_sample_time = t_now
        return reading

    def _sample(self, grass_positive: bool, reseed: bool) -> MotionReading:
        if self.state.previous is None or reseed:
            logger.debug("Seeding hand position at %s", self.state.current)
            return MotionReading(status="not moving")

        velocity = self._velocity(self.state.previous, self.state.current)
        vx, vy, vz = velocity
        moving = vx > self.cfg.threshold or vy > self.cfg.threshold
        if self.cfg.use_z_axis:
            moving = moving or vz > self.cfg.threshold

        if not moving:
            return MotionReading(status="not moving", velocity=velocity)

        scored = False
        if grass_positive:
            self.score += 1
            scored = True
            logger.info("🍀 Point scored, score=%d", self.score)

        return MotionReading(status="moving", velocity=velocity, scored=scored)

    def _velocity(self, previous: Vec3, current: Vec3) -> Vec3:
        window = self.cfg.interval_s
        return (
            abs(current[0] - previous[0]) / window,
            abs(current[1] - previous[1]) / window,
            abs(current[2] - previous[2]) / window,
        )
