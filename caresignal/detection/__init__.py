# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Landmark-to-event detection stages."""

from caresignal.detection.pipeline import SessionState, process_frame

__all__ = ["SessionState", "process_frame"]
