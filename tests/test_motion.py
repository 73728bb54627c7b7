"""
Test cases for hand motion tracking with synthetic wrist traces.
"""
import unittest
import sys
from pathlib import Path
from typing import List, Tuple

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from touchgrass.motion import MotionTracker
from touchgrass.types import HandObservation, Keypoint3D
from touchgrass.config import load_config


def hand_at(x: float, y: float, z: float = 0.0) -> HandObservation:
    """Build a hand whose wrist sits at the given point."""
    wrist = Keypoint3D(x=x, y=y, z=z)
    return HandObservation(keypoints3d=[wrist] + [Keypoint3D(0.0, 0.0, 0.0)] * 20)


def constant_velocity_trace(v: float, samples: int, window: float) -> List[Tuple[float, HandObservation]]:
    """Wrist moving along x at v units/s, sampled on window boundaries."""
    return [(i * window, hand_at(v * i * window, 0.0)) for i in range(samples)]


class TestSamplingWindow(unittest.TestCase):
    """Test that velocity is only sampled once per window."""

    def setUp(self):
        """Set up test configuration."""
        self.cfg = load_config()
        self.tracker = MotionTracker(self.cfg.motion, t_start=0.0)

    def test_ticks_inside_window_do_not_touch_state(self):
        """Observations closer than the window keep position and status untouched."""
        reading = self.tracker.update(hand_at(0.0, 0.0), t_now=0.5, grass_positive=True)
        self.assertEqual(reading.status, "not moving")
        before = (self.tracker.state.previous, self.tracker.state.current, self.tracker.state.last_sample_time)

        for i, t in enumerate([0.6, 0.7, 0.8, 0.9, 0.99]):
            reading = self.tracker.update(hand_at(0.3 * (i + 1), 0.2), t_now=t, grass_positive=True)
            self.assertIsNone(reading.status)
            self.assertIsNone(reading.velocity)

        after = (self.tracker.state.previous, self.tracker.state.current, self.tracker.state.last_sample_time)
        self.assertEqual(before, after)
        self.assertEqual(self.tracker.score, 0)

    def test_first_sample_seeds_position(self):
        """The first accepted sample has nothing to compare against."""
        reading = self.tracker.update(hand_at(0.4, 0.4), t_now=0.5, grass_positive=True)

        self.assertEqual(reading.status, "not moving")
        self.assertIsNone(reading.velocity)
        self.assertEqual(self.tracker.state.previous, (0.4, 0.4, 0.0))
        self.assertEqual(self.tracker.score, 0)

    def test_window_boundary_is_inclusive(self):
        """A sample exactly one window after the last one is accepted."""
        self.tracker.update(hand_at(0.0, 0.0), t_now=0.5, grass_positive=True)
        reading = self.tracker.update(hand_at(0.1, 0.0), t_now=1.0, grass_positive=True)
        self.assertEqual(reading.status, "moving")


class TestScoring(unittest.TestCase):
    """Test score gating on motion and grass."""

    def setUp(self):
        """Set up test configuration."""
        self.cfg = load_config()
        self.window = self.cfg.motion.interval_s
        self.tracker = MotionTracker(self.cfg.motion, t_start=0.0)

    def test_round_trip_scenario(self):
        """(0,0) -> (0.1,0) over 0.5s gives vx=0.2 and one point on grass."""
        self.tracker.update(hand_at(0.0, 0.0), t_now=0.5, grass_positive=True)
        reading = self.tracker.update(hand_at(0.1, 0.0), t_now=1.0, grass_positive=True)

        self.assertEqual(reading.status, "moving")
        self.assertAlmostEqual(reading.velocity[0], 0.2)
        self.assertAlmostEqual(reading.velocity[1], 0.0)
        self.assertTrue(reading.scored)
        self.assertEqual(self.tracker.score, 1)

    def test_constant_motion_scores_once_per_window(self):
        """Moving above threshold on grass earns exactly one point per window."""
        trace = constant_velocity_trace(v=0.05, samples=6, window=self.window)
        scores = []
        for t, hand in trace:
            reading = self.tracker.update(hand, t_now=t + self.window, grass_positive=True)
            scores.append(self.tracker.score)
            if t > 0:
                self.assertEqual(reading.status, "moving")

        self.assertEqual(scores, [0, 1, 2, 3, 4, 5])

    def test_extra_frames_do_not_add_points(self):
        """Rendering many frames per window still yields one point per window."""
        self.tracker.update(hand_at(0.0, 0.0), t_now=0.5, grass_positive=True)
        t = 0.5
        x = 0.0
        for _ in range(60):  # one second at 60fps
            t += 1 / 60
            x += 0.01
            self.tracker.update(hand_at(x, 0.0), t_now=t, grass_positive=True)

        self.assertLessEqual(self.tracker.score, 2)
        self.assertGreaterEqual(self.tracker.score, 1)

    def test_slow_motion_never_scores(self):
        """Velocity below threshold is 'not moving' whatever the grass says."""
        trace = constant_velocity_trace(v=0.004, samples=6, window=self.window)
        for t, hand in trace:
            reading = self.tracker.update(hand, t_now=t + self.window, grass_positive=True)
            self.assertEqual(reading.status, "not moving")

        self.assertEqual(self.tracker.score, 0)

    def test_no_points_without_grass(self):
        """Motion without grass is classified but not scored."""
        trace = constant_velocity_trace(v=0.05, samples=4, window=self.window)
        for t, hand in trace:
            reading = self.tracker.update(hand, t_now=t + self.window, grass_positive=False)
            self.assertFalse(reading.scored)

        self.assertEqual(reading.status, "moving")
        self.assertEqual(self.tracker.score, 0)

    def test_vertical_motion_counts(self):
        """Motion along y alone is enough."""
        self.tracker.update(hand_at(0.5, 0.5), t_now=0.5, grass_positive=True)
        reading = self.tracker.update(hand_at(0.5, 0.6), t_now=1.0, grass_positive=True)
        self.assertEqual(reading.status, "moving")

    def test_depth_motion_ignored_by_default(self):
        """z is tracked but not part of the threshold check."""
        self.tracker.update(hand_at(0.5, 0.5, 0.0), t_now=0.5, grass_positive=True)
        reading = self.tracker.update(hand_at(0.5, 0.5, 0.3), t_now=1.0, grass_positive=True)

        self.assertEqual(reading.status, "not moving")
        self.assertAlmostEqual(reading.velocity[2], 0.6)
        self.assertEqual(self.tracker.state.current, (0.5, 0.5, 0.3))

    def test_depth_motion_when_enabled(self):
        """use_z_axis adds z to the threshold check."""
        self.cfg.motion.use_z_axis = True
        tracker = MotionTracker(self.cfg.motion, t_start=0.0)
        tracker.update(hand_at(0.5, 0.5, 0.0), t_now=0.5, grass_positive=True)
        reading = tracker.update(hand_at(0.5, 0.5, 0.3), t_now=1.0, grass_positive=True)
        self.assertEqual(reading.status, "moving")


class TestHandLoss(unittest.TestCase):
    """Test behavior when the hand leaves the frame."""

    def setUp(self):
        """Set up test configuration."""
        self.cfg = load_config()

    def test_no_hand_forces_not_moving(self):
        """No hand means 'not moving' and no point, position is kept."""
        tracker = MotionTracker(self.cfg.motion, t_start=0.0)
        tracker.update(hand_at(0.2, 0.2), t_now=0.5, grass_positive=True)

        reading = tracker.update(None, t_now=1.0, grass_positive=True)

        self.assertEqual(reading.status, "not moving")
        self.assertFalse(reading.scored)
        self.assertEqual(tracker.state.previous, (0.2, 0.2, 0.0))
        self.assertEqual(tracker.score, 0)

    def test_reacquire_reseeds_by_default(self):
        """A hand coming back far away does not produce a velocity spike."""
        tracker = MotionTracker(self.cfg.motion, t_start=0.0)
        tracker.update(hand_at(0.1, 0.1), t_now=0.5, grass_positive=True)
        tracker.update(None, t_now=1.0, grass_positive=True)

        reading = tracker.update(hand_at(0.9, 0.9), t_now=1.5, grass_positive=True)

        self.assertEqual(reading.status, "not moving")
        self.assertIsNone(reading.velocity)
        self.assertEqual(tracker.score, 0)

        # Next window measures from the reacquired position
        reading = tracker.update(hand_at(0.95, 0.9), t_now=2.0, grass_positive=True)
        self.assertEqual(reading.status, "moving")
        self.assertEqual(tracker.score, 1)

    def test_reacquire_spike_when_reset_disabled(self):
        """With reset disabled the stale position is compared against."""
        self.cfg.motion.reset_on_reacquire = False
        tracker = MotionTracker(self.cfg.motion, t_start=0.0)
        tracker.update(hand_at(0.1, 0.1), t_now=0.5, grass_positive=True)
        tracker.update(None, t_now=1.0, grass_positive=True)

        reading = tracker.update(hand_at(0.9, 0.9), t_now=1.5, grass_positive=True)

        self.assertEqual(reading.status, "moving")
        self.assertAlmostEqual(reading.velocity[0], 1.6)
        self.assertEqual(tracker.score, 1)


if __name__ == '__main__':
    unittest.main()
