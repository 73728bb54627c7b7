"""
Rate-limited grass detection using a remote vision model.
"""
import asyncio
import base64
import functools
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import cv2
import numpy as np

from .config import GrassConfig
from .errors import ClassifierError
from .types import ClassifierProto, GrassState, GrassVerdict

logger = logging.getLogger(__name__)

_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")


def parse_grass_response(text: str) -> GrassVerdict:
    """
    Parse a "[YES | NO] [NUMBER]%" style reply.

    Args:
        text: Raw classifier reply

    Returns:
        GrassVerdict, positive iff the reply contains "YES"
    """
    detected = "YES" in text
    return GrassVerdict(detected=detected, confidence=_parse_confidence(text), raw_text=text)


def _parse_confidence(text: str) -> Optional[float]:
    match = _PERCENT_RE.search(text)
    if match:
        return float(match.group(1))

    tokens = text.split()
    if len(tokens) > 2:
        try:
            return float(tokens[2].rstrip("%"))
        except ValueError:
            pass
    return None


def describe_grass_state(state: GrassState) -> str:
    """Status line shown in the overlay."""
    if state.detected is None:
        return "Grass status unknown"
    if state.detected:
        if state.confidence is None:
            return "Grass detected! :D"
        return f"Grass detected ({state.confidence:g}%)! :D"
    return "No grass detected D:"


def encode_frame_jpeg(frame: np.ndarray, quality: int = 90) -> str:
    """Encode a BGR frame as base64 JPEG."""
    ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise ClassifierError("Failed to encode frame as JPEG")
    return base64.b64encode(buffer.tobytes()).decode('utf-8')


class GrassGate:
    """
    Submits camera frames to the grass classifier at a fixed cadence.

    Each request runs as a background task; its verdict is queued and picked
    up by the render loop on its next scoring decision. Classifier calls run
    on the gate's own thread pool: a call that outlives its timeout keeps
    its thread, but never one of the default executor's threads that hand
    estimation depends on.
    """

    def __init__(self, cfg: GrassConfig, classifier: Optional[ClassifierProto], t_start: float):
        self.cfg = cfg
        self.classifier = classifier
        self.last_trigger_time = t_start
        self.results: "asyncio.Queue[GrassVerdict]" = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._executor = ThreadPoolExecutor(max_workers=max(1, cfg.max_workers),
                                            thread_name_prefix="grass")
        self._closed = False

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def maybe_trigger(self, frame: Optional[np.ndarray], t_now: float) -> bool:
        """
        Start a classification if the polling interval has elapsed.

        Returns:
            True if a request was started
        """
        if self.classifier is None or frame is None or self._closed:
            return False
        if t_now - self.last_trigger_time < self.cfg.interval_s:
            return False
        if self.in_flight:
            logger.debug("Grass request still in flight, skipping this interval")
            return False

        self.last_trigger_time = t_now
        image_b64 = encode_frame_jpeg(frame, self.cfg.jpeg_quality)
        self._task = asyncio.ensure_future(self._run(image_b64))
        return True

    def drain(self, state: GrassState, t_now: float) -> bool:
        """
        Apply the newest queued verdict to the grass state.

        Returns:
            True if the state changed
        """
        verdict = None
        while not self.results.empty():
            verdict = self.results.get_nowait()
        if verdict is None:
            return False

        state.detected = verdict.detected
        state.confidence = verdict.confidence
        state.updated_at = t_now
        return True

    async def _run(self, image_b64: str) -> None:
        verdict = await self._classify_with_retry(image_b64)
        await self.results.put(verdict)

    async def _classify_with_retry(self, image_b64: str) -> GrassVerdict:
        loop = asyncio.get_running_loop()
        call = functools.partial(self.classifier.classify, self.cfg.prompt, image_b64)
        last_error = None
        for attempt in range(self.cfg.max_retries + 1):
            if attempt > 0:
                await asyncio.sleep(self.cfg.backoff_s * (2 ** (attempt - 1)))
            try:
                text = await asyncio.wait_for(
                    loop.run_in_executor(self._executor, call),
                    timeout=self.cfg.timeout_s,
                )
            except asyncio.TimeoutError:
                last_error = f"timed out after {self.cfg.timeout_s}s"
                logger.warning("Grass classifier attempt %d %s", attempt + 1, last_error)
                continue
            except Exception as e:
                last_error = str(e)
                logger.warning("Grass classifier attempt %d failed: %s", attempt + 1, e)
                continue

            verdict = parse_grass_response(text)
            logger.info("🌱 Grass classifier said %r", text.strip())
            return verdict

        logger.error("❌ Grass classification failed: %s", last_error)
        return GrassVerdict(detected=None, error=last_error)

    async def wait(self) -> None:
        """Wait for the in-flight request, if any, to deliver its verdict."""
        if self._task is not None:
            await self._task

    async def close(self) -> None:
        """Cancel any in-flight request and stop accepting new ones."""
        self._closed = True
        if self.in_flight:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        # Threads stuck in a hung call are abandoned, queued calls are dropped
        self._executor.shutdown(wait=False, cancel_futures=True)
