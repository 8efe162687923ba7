# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""API route handlers for the relay service."""

from caresignal_relay.routes import health, notify, status

__all__ = ["health", "notify", "status"]
