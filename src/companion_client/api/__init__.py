"""
Domain API for the companion backend.

Wrappers around the auth, character and conversation endpoints. Every
authenticated call goes through the expiry recovery policy.
"""

from .auth import AuthApi
from .characters import CharacterApi
from .conversations import ConversationApi

__all__ = ["AuthApi", "CharacterApi", "ConversationApi"]
