# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Caregiver alerts from facial landmark streams.

Turns blinks, head gestures, eye closure and expressions into de-duplicated
notifications for a caregiver channel.
"""

__version__ = "0.1.0"
