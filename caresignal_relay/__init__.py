# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""CareSignal relay service.

Receives alert messages and status reports from the monitor over HTTP and
forwards alerts to a caregiver's Telegram chat.
"""

__version__ = "0.1.0"
