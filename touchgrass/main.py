"""
Main application for the touch grass game.
"""
import argparse
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Set, Tuple

import numpy as np

from .config import Cfg, MediaPipeConfig, load_config
from .display import Display, draw_overlay
from .grass import GrassGate
from .session import SessionState, share_experience
from .types import ClassifierProto, EstimatorProto, FrameSourceProto, LoopState

logger = logging.getLogger(__name__)

QUIT_KEYS = (ord('q'), 27)


def default_detector_factory(cfg: MediaPipeConfig) -> EstimatorProto:
    from .landmarks import create_detector
    return create_detector(cfg)


async def default_camera_factory(cfg) -> FrameSourceProto:
    from .camera import setup_camera
    return await setup_camera(cfg)


class TouchGrassApp:
    """Drives the per-frame loop: frame -> hands -> motion -> grass -> display."""

    def __init__(self, config: Cfg,
                 classifier: Optional[ClassifierProto] = None,
                 detector_factory: Callable[[MediaPipeConfig], EstimatorProto] = default_detector_factory,
                 camera_factory: Callable[..., Awaitable[FrameSourceProto]] = default_camera_factory,
                 display=None,
                 clock: Callable[[], float] = time.time):
        """Initialize the application with configuration and collaborators."""
        self.config = config
        self.detector_factory = detector_factory
        self.camera_factory = camera_factory
        self.display = display if display is not None else Display(config.display)
        self.clock = clock

        t_start = clock()
        self.session = SessionState.start(config, t_start)
        self.grass_gate = GrassGate(config.grass, classifier, t_start)
        self.frame_source: Optional[FrameSourceProto] = None

        # Changes requested from the keyboard, applied at the start of the next tick
        self.pending: Set[str] = set()
        self._frame_handle: Optional[asyncio.TimerHandle] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._stopped = asyncio.Event()
        # Size the current frame source was opened with
        self._camera_size: Optional[Tuple[int, int]] = None
        self._last_frame: Optional[np.ndarray] = None
        self._frame_missing = False
        self.crash: Optional[BaseException] = None

    async def start(self) -> None:
        """Open the camera and create the first detector."""
        logger.info("Starting %s", self.config.display.window_name)
        self.frame_source = await self.camera_factory(self.config.camera)
        self._camera_size = (self.config.camera.width, self.config.camera.height)
        self._install_detector()

    async def run(self):
        """Run the main application loop until quit."""
        await self.start()
        self._on_frame()

        try:
            await self._stopped.wait()
        finally:
            await self.shutdown()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        self._stopped.set()
        self._cancel_scheduled_tick()

    async def shutdown(self) -> None:
        """Cancel pending work and release the camera and detector."""
        self._cancel_scheduled_tick()
        task = self._tick_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            # The tick must unwind before its detector goes away
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self.grass_gate.close()
        self._dispose_detector()
        if self.frame_source is not None:
            self.frame_source.release()
            self.frame_source = None
        self.display.close()
        logger.info("Session ended with score %d", self.session.score)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _schedule_next(self) -> None:
        self._cancel_scheduled_tick()
        if self._stopped.is_set():
            return
        if self.frame_source is not None:
            interval = self.frame_source.frame_interval
        else:
            # Camera lost; keep ticking so the window and keys stay responsive
            fps = self.config.camera.fps
            interval = 1.0 / fps if fps > 0 else 1.0 / 30
        loop = asyncio.get_running_loop()
        self._frame_handle = loop.call_later(interval, self._on_frame)

    def _on_frame(self) -> None:
        self._frame_handle = None
        self._tick_task = asyncio.ensure_future(self.render_prediction())
        self._tick_task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("❌ Render loop crashed: %s", error, exc_info=error)
            self.crash = error
            self.stop()

    def _cancel_scheduled_tick(self) -> None:
        if self._frame_handle is not None:
            self._frame_handle.cancel()
            self._frame_handle = None

    # ------------------------------------------------------------------
    # Per-frame work
    # ------------------------------------------------------------------

    async def render_prediction(self) -> None:
        """One tick: apply pending changes, render, then schedule the next tick."""
        await self.check_gui_update()

        if self.session.loop_state != LoopState.RECONFIGURING:
            await self.render_result()

        self._schedule_next()

    async def check_gui_update(self) -> None:
        if "camera" in self.pending:
            self.pending.discard("camera")
            await self._reopen_camera()

        if "model" in self.pending:
            self.pending.discard("model")
            await self.reconfigure()

    async def reconfigure(self) -> None:
        """Swap the hand detector for one built from the current config."""
        logger.info("Reconfiguring detector: %s", self.config.mediapipe)
        self.session.loop_state = LoopState.RECONFIGURING
        self._cancel_scheduled_tick()
        self._dispose_detector()
        self._install_detector()

    def _install_detector(self) -> None:
        try:
            self.session.detector = self.detector_factory(self.config.mediapipe)
        except Exception as e:
            self.session.detector = None
            self.session.loop_state = LoopState.ERROR
            self.session.notify(f"Failed to create hand detector: {e}", error=True, t_now=self.clock())
            return
        self.session.loop_state = LoopState.RUNNING

    def _dispose_detector(self) -> None:
        detector, self.session.detector = self.session.detector, None
        if detector is None:
            return
        try:
            detector.dispose()
        except Exception as e:
            logger.warning("⚠️ Failed to dispose hand detector: %s", e)

    async def _reopen_camera(self) -> None:
        """Reopen the camera at the configured size, falling back to the last working size."""
        cam = self.config.camera
        if self.frame_source is not None:
            self.frame_source.release()
            self.frame_source = None

        try:
            self.frame_source = await self.camera_factory(cam)
        except Exception as e:
            self.session.notify(f"Camera error: {e}", error=True, t_now=self.clock())
            if self._camera_size is None or (cam.width, cam.height) == self._camera_size:
                return
            cam.width, cam.height = self._camera_size
            logger.info("📷 Restoring camera size %dx%d", cam.width, cam.height)
            try:
                self.frame_source = await self.camera_factory(cam)
            except Exception as retry_error:
                # Press 'c' to try again
                self.session.notify(f"Camera lost: {retry_error}", error=True, t_now=self.clock())
                return

        self._camera_size = (cam.width, cam.height)

    async def render_result(self) -> None:
        frame = self.frame_source.read() if self.frame_source is not None else None
        t_now = self.clock()
        if frame is None:
            self._render_without_frame(t_now)
            return
        if self._frame_missing:
            logger.info("📷 Camera frames resumed")
            self._frame_missing = False
        self._last_frame = frame.copy()

        hands = None
        detector = self.session.detector
        # Detector is None if initialization failed
        if detector is not None:
            try:
                hands = await detector.estimate(frame, self.config.mediapipe.flip_horizontal)
            except Exception as e:
                self._dispose_detector()
                self.session.loop_state = LoopState.ERROR
                self.session.notify(f"Hand detection failed: {e}", error=True, t_now=t_now)

        self.grass_gate.maybe_trigger(frame, t_now)
        self.grass_gate.drain(self.session.grass, t_now)

        observation = None
        if hands and self.session.loop_state == LoopState.RUNNING:
            if self.config.display.show_landmarks:
                frame = detector.draw_results(frame, hands)
            observation = hands[0]

        reading = self.session.tracker.update(observation, t_now, self.session.grass.positive)
        if reading.status is not None:
            self.session.hand_status = reading.status

        frame = draw_overlay(frame, self.session, self.config.display, t_now)
        self.display.show(frame)
        self.handle_key(self.display.poll_key())

    def _render_without_frame(self, t_now: float) -> None:
        """Keep the window and keyboard alive while the camera delivers nothing."""
        if not self._frame_missing:
            logger.warning("⚠️ No frame from camera, showing the last one")
            self._frame_missing = True
        if self._last_frame is not None:
            frame = draw_overlay(self._last_frame.copy(), self.session, self.config.display, t_now)
            self.display.show(frame)
        self.handle_key(self.display.poll_key())

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def handle_key(self, key: int) -> None:
        if key == -1:
            return
        if key in QUIT_KEYS:
            self.stop()
        elif key == ord('s'):
            share_experience(self.session, self.config.share.site_url, self.clock())
        elif key == ord('m'):
            mp_cfg = self.config.mediapipe
            mp_cfg.model_type = "lite" if mp_cfg.model_type == "full" else "full"
            self.pending.add("model")
        elif key == ord('h'):
            mp_cfg = self.config.mediapipe
            mp_cfg.max_num_hands = 1 if mp_cfg.max_num_hands > 1 else 2
            self.pending.add("model")
        elif key == ord('f'):
            self.config.mediapipe.flip_horizontal = not self.config.mediapipe.flip_horizontal
        elif key == ord('c'):
            if self._cycle_camera_size():
                self.pending.add("camera")

    def _cycle_camera_size(self) -> bool:
        cam = self.config.camera
        presets = cam.size_presets
        if not presets:
            return False
        current = (cam.width, cam.height)
        index = presets.index(current) + 1 if current in presets else 0
        cam.width, cam.height = presets[index % len(presets)]
        logger.info("📷 Camera size -> %dx%d", cam.width, cam.height)
        return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Touch grass with your webcam.")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--model", default=None, help="Hand detection model (default: mediapipe_hands)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


async def main(argv=None) -> int:
    """Entry point for the application."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config)
    if args.model:
        config.mediapipe.model = args.model

    from .classifier import create_classifier
    classifier = create_classifier(config.grass.model_name, config.grass.timeout_s)

    try:
        app = TouchGrassApp(config, classifier=classifier)
        await app.run()
    except RuntimeError as e:
        logger.error("❌ %s", e)
        return 1
    return 1 if app.crash is not None else 0


def cli() -> None:
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
        code = 0
    raise SystemExit(code)


if __name__ == "__main__":
    cli()
