# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Landmark sources at the input boundary.

An external detector writes one JSON object per line:

    {"timestamp": 12.033, "landmarks": [[0.41, 0.38], [0.42, 0.40], ...]}
    {"timestamp": 12.066, "landmarks": null}

``landmarks: null`` (or a missing key) means no face was found. Extra
coordinates per point (e.g. Face Mesh z) are ignored.
"""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, AsyncIterator, Dict, IO, Optional

from caresignal.models import LandmarkFrame

logger = logging.getLogger(__name__)


def parse_frame_line(line: str) -> Optional[LandmarkFrame]:
    """Parse one JSON line into a LandmarkFrame.

    Args:
        line: Raw line text

    Returns:
        LandmarkFrame, or None for blank lines

    Raises:
        ValueError: If the line is not a valid frame record
    """
    line = line.strip()
    if not line:
        return None

    try:
        data: Dict[str, Any] = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Frame record must be a JSON object")

    timestamp = data.get("timestamp")
    if timestamp is None:
        timestamp = time.monotonic()

    landmarks = data.get("landmarks")
    if not landmarks:
        return LandmarkFrame.missing(float(timestamp))

    return LandmarkFrame.from_points(landmarks, float(timestamp))


class JsonLinesLandmarkSource:
    """Reads landmark frames from a JSON-lines file or stdin.

    Malformed lines are logged and skipped.

    Usage:
        source = JsonLinesLandmarkSource("frames.jsonl")
        async for frame in source:
            ...
    """

    def __init__(self, path: str = "-", realtime: bool = False):
        """Initialize source.

        Args:
            path: File path, or "-" for stdin
            realtime: Pace replay by the recorded timestamps
        """
        self.path = path
        self.realtime = realtime
        self.bad_lines = 0
        self._running = False

    def stop(self) -> None:
        """Stop reading."""
        self._running = False

    def _open(self) -> IO[str]:
        if self.path == "-":
            return sys.stdin
        return open(Path(self.path), "r", encoding="utf-8")

    async def __aiter__(self) -> AsyncIterator[LandmarkFrame]:
        self._running = True
        stream = self._open()
        first_recorded: Optional[float] = None
        started = time.monotonic()
        line_number = 0

        try:
            while self._running:
                # Blocking read off the event loop
                line = await asyncio.to_thread(stream.readline)
                if not line:
                    break
                line_number += 1

                try:
                    frame = parse_frame_line(line)
                except ValueError as e:
                    self.bad_lines += 1
                    logger.warning(f"{self.path}:{line_number}: skipping bad frame: {e}")
                    continue

                if frame is None:
                    continue

                if self.realtime:
                    if first_recorded is None:
                        first_recorded = frame.timestamp
                    delay = (frame.timestamp - first_recorded) - (time.monotonic() - started)
                    if delay > 0:
                        await asyncio.sleep(delay)

                yield frame
        finally:
            if stream is not sys.stdin:
                stream.close()
            self._running = False

        logger.info(f"Landmark stream {self.path} ended after {line_number} lines")
