# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Expression classification with per-label duration accounting."""

import logging
from typing import Dict, Optional

from caresignal.config import ExpressionConfig
from caresignal.models import Expression, ExpressionChanged, GeometryFrame

logger = logging.getLogger(__name__)


class ExpressionClassifier:
    """Priority-ordered expression classifier.

    HAPPY beats SURPRISED beats NEUTRAL. Elapsed time between consecutive
    frames is credited to the label classified on the later frame.
    Durations only ever grow; readers take a snapshot.
    """

    def __init__(self, config: ExpressionConfig):
        self.config = config
        self.current = Expression.NEUTRAL
        self.durations: Dict[Expression, float] = {label: 0.0 for label in Expression}
        self._last_timestamp: Optional[float] = None

    def classify(self, geometry: GeometryFrame) -> Expression:
        """Classify a single frame."""
        if geometry.smile_ratio > self.config.smile_threshold:
            return Expression.HAPPY
        if geometry.mouth_open_ratio > self.config.mouth_open_threshold:
            return Expression.SURPRISED
        return Expression.NEUTRAL

    def update(self, geometry: GeometryFrame, timestamp: float) -> Optional[ExpressionChanged]:
        """Classify a frame and accumulate time for its label.

        Args:
            geometry: Current frame geometry
            timestamp: Frame timestamp in seconds

        Returns:
            ExpressionChanged if the label differs from the previous tick
        """
        label = self.classify(geometry)

        if self._last_timestamp is not None:
            elapsed = max(0.0, timestamp - self._last_timestamp)
            self.durations[label] += elapsed
        self._last_timestamp = timestamp

        if label == self.current:
            return None

        previous = self.current
        self.current = label
        logger.debug(f"Expression: {previous.value} -> {label.value}")
        return ExpressionChanged(previous=previous, current=label)

    def mark_gap(self) -> None:
        """Forget the last timestamp so a detection gap is not credited."""
        self._last_timestamp = None

    def snapshot(self) -> Dict[str, float]:
        """Copy of the cumulative durations keyed by label name."""
        return {label.value: round(seconds, 3) for label, seconds in self.durations.items()}
