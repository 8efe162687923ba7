# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Synthetic landmark frames for running without a camera.

This module builds Face Mesh shaped frames with exact, chosen geometry
(EAR, nose position, mouth ratios) and plays scripted scenarios through
a mock source that behaves like the real one.

Enable mock mode by:
- Setting MOCK_LANDMARKS=true environment variable, OR
- Setting mock_mode: true in config.yaml, OR
- Passing --mock on the command line
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Dict, Iterator, List, Optional

import numpy as np

from caresignal.config import LandmarkConfig
from caresignal.models import LandmarkFrame

logger = logging.getLogger(__name__)

OPEN_EAR = 0.30
CLOSED_EAR = 0.10
NEUTRAL_SMILE = 0.35
NEUTRAL_MOUTH = 0.05

# Face box used by build_points (normalized image coordinates)
_FACE_WIDTH = 0.4
_FACE_HEIGHT = 0.6
_EYE_WIDTH = 0.06
_EYE_Y = 0.4
_MOUTH_Y = 0.65


@dataclass
class FaceShape:
    """Target geometry for one synthetic frame."""

    ear: float = OPEN_EAR
    nose_x: float = 0.5  # mirrored position, as the classifier sees it
    nose_y: float = 0.5
    smile: float = NEUTRAL_SMILE
    mouth_open: float = NEUTRAL_MOUTH


def _place_eye(points: np.ndarray, indices: List[int], center_x: float, ear: float) -> None:
    # EAR = (v + v) / (2 * w) = v / w for this layout
    half_w = _EYE_WIDTH / 2.0
    half_v = ear * _EYE_WIDTH / 2.0
    p1, p2, p3, p4, p5, p6 = indices
    points[p1] = (center_x - half_w, _EYE_Y)
    points[p4] = (center_x + half_w, _EYE_Y)
    points[p2] = (center_x - 0.01, _EYE_Y - half_v)
    points[p6] = (center_x - 0.01, _EYE_Y + half_v)
    points[p3] = (center_x + 0.01, _EYE_Y - half_v)
    points[p5] = (center_x + 0.01, _EYE_Y + half_v)


def build_points(shape: FaceShape, landmarks: Optional[LandmarkConfig] = None) -> np.ndarray:
    """Build an (N, 2) landmark array with the requested geometry.

    Args:
        shape: Target measurements
        landmarks: Index layout (defaults to Face Mesh)

    Returns:
        Landmark array
    """
    lm = landmarks or LandmarkConfig()
    points = np.full((lm.count, 2), 0.5)

    points[lm.face_left] = (0.5 - _FACE_WIDTH / 2, 0.5)
    points[lm.face_right] = (0.5 + _FACE_WIDTH / 2, 0.5)
    points[lm.forehead] = (0.5, 0.5 - _FACE_HEIGHT / 2)
    points[lm.chin] = (0.5, 0.5 + _FACE_HEIGHT / 2)

    _place_eye(points, lm.right_eye, 0.4, shape.ear)
    _place_eye(points, lm.left_eye, 0.6, shape.ear)

    half_mouth = shape.smile * _FACE_WIDTH / 2
    points[lm.mouth_left] = (0.5 - half_mouth, _MOUTH_Y)
    points[lm.mouth_right] = (0.5 + half_mouth, _MOUTH_Y)

    half_open = shape.mouth_open * _FACE_HEIGHT / 2
    points[lm.upper_lip] = (0.5, _MOUTH_Y - half_open)
    points[lm.lower_lip] = (0.5, _MOUTH_Y + half_open)

    # Camera image is mirrored relative to the patient
    points[lm.nose_tip] = (1.0 - shape.nose_x, shape.nose_y)

    return points


def build_frame(
    timestamp: float = 0.0,
    landmarks: Optional[LandmarkConfig] = None,
    **shape,
) -> LandmarkFrame:
    """Build a valid LandmarkFrame, e.g. ``build_frame(1.0, ear=0.1)``."""
    return LandmarkFrame.from_points(build_points(FaceShape(**shape), landmarks), timestamp)


# ==================== Scenarios ====================

def _hold(count: int, **shape) -> Iterator[FaceShape]:
    for _ in range(count):
        yield FaceShape(**shape)


def _blinks(count: int, closed: int = 3, gap: int = 8) -> Iterator[FaceShape]:
    for _ in range(count):
        yield from _hold(closed, ear=CLOSED_EAR)
        yield from _hold(gap)


def _nods(directions: List[str], hold: int = 6) -> Iterator[FaceShape]:
    offsets = {
        "left": {"nose_x": 0.38},
        "right": {"nose_x": 0.62},
        "up": {"nose_y": 0.38},
        "down": {"nose_y": 0.68},
    }
    for direction in directions:
        yield from _hold(hold, **offsets[direction])
        yield from _hold(hold)


def scenario_water() -> Iterator[Optional[FaceShape]]:
    yield from _hold(15)
    yield from _blinks(5)
    yield from _hold(45)


def scenario_food() -> Iterator[Optional[FaceShape]]:
    yield from _hold(15)
    yield from _blinks(7)
    yield from _hold(45)


def scenario_washroom() -> Iterator[Optional[FaceShape]]:
    yield from _hold(15)
    yield from _nods(["left", "right", "left", "right"])
    yield from _hold(30)


def scenario_emergency() -> Iterator[Optional[FaceShape]]:
    yield from _hold(15)
    yield from _nods(["up", "down", "up", "down"])
    yield from _hold(30)


def scenario_sleep() -> Iterator[Optional[FaceShape]]:
    yield from _hold(15)
    yield from _hold(240, ear=CLOSED_EAR)
    yield from _hold(60)


def scenario_expressions() -> Iterator[Optional[FaceShape]]:
    yield from _hold(60)
    yield from _hold(90, smile=0.5)
    yield from _hold(60, mouth_open=0.25)
    yield from _hold(30)


def scenario_dropout() -> Iterator[Optional[FaceShape]]:
    """Face disappears for a while (None = no detection)."""
    yield from _hold(30)
    for _ in range(45):
        yield None
    yield from _hold(30)


def scenario_demo() -> Iterator[Optional[FaceShape]]:
    for scenario in (scenario_water, scenario_washroom, scenario_expressions,
                     scenario_dropout, scenario_emergency, scenario_food,
                     scenario_sleep):
        yield from scenario()


SCENARIOS: Dict[str, Callable[[], Iterator[Optional[FaceShape]]]] = {
    "water": scenario_water,
    "food": scenario_food,
    "washroom": scenario_washroom,
    "emergency": scenario_emergency,
    "sleep": scenario_sleep,
    "expressions": scenario_expressions,
    "dropout": scenario_dropout,
    "demo": scenario_demo,
}


class MockLandmarkSource:
    """Simulated landmark detector for testing.

    Plays a named scenario as a stream of frames at a fixed rate, with
    optional coordinate jitter.

    Attributes:
        scenario: Scenario name (see SCENARIOS)
        fps: Frames per second (0 = as fast as possible)
        jitter: Standard deviation of added coordinate noise
        loop: Repeat the scenario forever
    """

    def __init__(
        self,
        scenario: str = "demo",
        fps: float = 30.0,
        landmarks: Optional[LandmarkConfig] = None,
        jitter: float = 0.0,
        loop: bool = False,
        seed: Optional[int] = None,
    ):
        if scenario not in SCENARIOS:
            raise ValueError(
                f"Unknown scenario {scenario!r}; choose from {', '.join(SCENARIOS)}"
            )
        self.scenario = scenario
        self.fps = fps
        self.landmarks = landmarks or LandmarkConfig()
        self.jitter = jitter
        self.loop = loop
        self._rng = np.random.default_rng(seed)
        self._running = False

        logger.info(f"MockLandmarkSource initialized (scenario: {scenario}, fps: {fps})")

    def stop(self) -> None:
        """Stop producing frames."""
        self._running = False

    def frames(self, start: float = 0.0) -> Iterator[LandmarkFrame]:
        """Synchronous frame generator with synthetic timestamps."""
        step = 1.0 / self.fps if self.fps > 0 else 1.0 / 30.0
        timestamp = start
        while True:
            for shape in SCENARIOS[self.scenario]():
                if shape is None:
                    yield LandmarkFrame.missing(timestamp)
                else:
                    points = build_points(shape, self.landmarks)
                    if self.jitter:
                        points = points + self._rng.normal(0.0, self.jitter, points.shape)
                    yield LandmarkFrame.from_points(points, timestamp)
                timestamp += step
            if not self.loop:
                return

    async def __aiter__(self) -> AsyncIterator[LandmarkFrame]:
        self._running = True
        start = time.monotonic()
        for frame in self.frames(start):
            if not self._running:
                break
            if self.fps > 0:
                delay = frame.timestamp - time.monotonic()
                if delay > 0:
                    await asyncio.sleep(delay)
            yield frame
        self._running = False
        logger.info(f"MockLandmarkSource: scenario {self.scenario} finished")
