"""
Core architecture components for Companion Client.

This module provides the session lifecycle: transport, session store,
login coordination, expiry recovery and identity-switch reconciliation.
"""

__all__ = [
    "errors",
    "storage",
    "session",
    "transport",
    "host",
    "login",
    "recovery",
    "reconciler",
    "client",
]
