"""
Companion Client - A Python access layer for the AI companion chat backend.

This package provides session management, transparent re-authentication and
typed wrappers around the characters, conversations and messages endpoints.
"""

__version__ = "0.1.0"
__author__ = "Companion Client Team"
__license__ = "Apache-2.0"

from typing import Final

# Package metadata
VERSION: Final[str] = __version__
PACKAGE_NAME: Final[str] = "companion-client"
USER_AGENT: Final[str] = f"{PACKAGE_NAME}/{VERSION}"

# Re-export commonly used items
__all__ = [
    "__version__",
    "VERSION",
    "PACKAGE_NAME",
    "USER_AGENT",
]
