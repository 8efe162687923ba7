# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Facial geometry extraction from landmark frames.

Uses the Eye Aspect Ratio (EAR) algorithm from Soukupová and Čech (2016)
plus simple mouth/face ratios and a mirrored nose offset.
"""

import logging
from typing import Dict, Optional, Sequence

import numpy as np

from caresignal.config import LandmarkConfig
from caresignal.models import GeometryFrame, LandmarkFrame

logger = logging.getLogger(__name__)

# Below this a ratio denominator is treated as zero
MIN_DENOMINATOR = 1e-6


class DegenerateGeometryError(ValueError):
    """A ratio denominator collapsed to (almost) zero."""


def euclidean_distance(p1: np.ndarray, p2: np.ndarray) -> float:
    """Calculate Euclidean distance between two points."""
    return float(np.linalg.norm(p1 - p2))


def eye_aspect_ratio(points: np.ndarray, eye_indices: Sequence[int]) -> float:
    """Calculate Eye Aspect Ratio for one eye.

    EAR = (|p2-p6| + |p3-p5|) / (2 * |p1-p4|)

    Args:
        points: (N, 2) landmark array
        eye_indices: Six indices p1..p6 (corners p1/p4, upper lid p2/p3,
            lower lid p5/p6)

    Returns:
        EAR value (higher = more open)

    Raises:
        DegenerateGeometryError: If the eye corners coincide
    """
    p1, p2, p3, p4, p5, p6 = (points[i] for i in eye_indices)

    v1 = euclidean_distance(p2, p6)
    v2 = euclidean_distance(p3, p5)
    h = euclidean_distance(p1, p4)

    if h < MIN_DENOMINATOR:
        raise DegenerateGeometryError(f"eye width {h:.2e} too small")

    return (v1 + v2) / (2.0 * h)


def distance_ratio(points: np.ndarray, num: Sequence[int], den: Sequence[int]) -> float:
    """Ratio of two landmark-pair distances.

    Raises:
        DegenerateGeometryError: If the denominator pair coincides
    """
    denominator = euclidean_distance(points[den[0]], points[den[1]])
    if denominator < MIN_DENOMINATOR:
        raise DegenerateGeometryError(f"denominator {denominator:.2e} too small")
    return euclidean_distance(points[num[0]], points[num[1]]) / denominator


class GeometryExtractor:
    """Computes a GeometryFrame from a valid LandmarkFrame.

    A pure function of the frame except for one piece of history: when a
    ratio's denominator collapses, the previous tick's value for that ratio
    is reused and ``skipped_frames`` is incremented.
    """

    def __init__(self, landmarks: LandmarkConfig):
        """Initialize extractor.

        Args:
            landmarks: Landmark index configuration
        """
        self.landmarks = landmarks
        self.skipped_frames = 0
        self._previous: Dict[str, float] = {
            "left_ear": landmarks.fallback_ear,
            "right_ear": landmarks.fallback_ear,
            "smile_ratio": 0.0,
            "mouth_open_ratio": 0.0,
        }

    def _measure(self, name: str, compute) -> Optional[float]:
        """Run one ratio computation; None when its denominator collapsed."""
        try:
            value = compute()
        except DegenerateGeometryError as e:
            logger.debug(f"Degenerate {name}: {e}, reusing {self._previous[name]:.3f}")
            return None
        self._previous[name] = value
        return value

    def extract(self, frame: LandmarkFrame) -> GeometryFrame:
        """Extract geometry from a frame.

        Args:
            frame: LandmarkFrame with valid=True

        Returns:
            GeometryFrame with EARs, nose offset and mouth ratios
        """
        if not frame.valid or frame.points is None:
            raise ValueError("Cannot extract geometry from a missing detection")

        points = frame.points
        lm = self.landmarks

        measured = {
            "left_ear": self._measure(
                "left_ear", lambda: eye_aspect_ratio(points, lm.left_eye)),
            "right_ear": self._measure(
                "right_ear", lambda: eye_aspect_ratio(points, lm.right_eye)),
            "smile_ratio": self._measure(
                "smile_ratio", lambda: distance_ratio(
                    points, (lm.mouth_left, lm.mouth_right), (lm.face_left, lm.face_right))),
            "mouth_open_ratio": self._measure(
                "mouth_open_ratio", lambda: distance_ratio(
                    points, (lm.upper_lip, lm.lower_lip), (lm.forehead, lm.chin))),
        }

        degenerate = any(v is None for v in measured.values())
        if degenerate:
            self.skipped_frames += 1
            logger.debug(f"Degenerate geometry, skipped frames: {self.skipped_frames}")

        values = {
            name: (self._previous[name] if value is None else value)
            for name, value in measured.items()
        }

        # Front-facing camera: mirror x so "left" is the patient's left
        nose = points[lm.nose_tip]
        nose_x = 1.0 - float(nose[0])
        nose_y = float(nose[1])

        return GeometryFrame(
            left_ear=values["left_ear"],
            right_ear=values["right_ear"],
            avg_ear=(values["left_ear"] + values["right_ear"]) / 2.0,
            nose_offset_x=nose_x - 0.5,
            nose_offset_y=nose_y - 0.5,
            smile_ratio=values["smile_ratio"],
            mouth_open_ratio=values["mouth_open_ratio"],
            degenerate=degenerate,
        )
