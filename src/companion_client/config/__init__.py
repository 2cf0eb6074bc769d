"""
Configuration package for Companion Client.

This package contains configuration management for the backend endpoint,
request timeouts and local storage.
"""

__all__ = ["settings"]
