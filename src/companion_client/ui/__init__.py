"""
User interface helpers for Companion Client.
"""

__all__ = ["notices"]
