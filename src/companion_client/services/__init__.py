"""
Services for Companion Client.

Services built on top of the session layer and persisted store.
"""

__all__ = ["greetings"]
