"""Account endpoints."""

import logging

from ..core.recovery import ExpiryRecoveryPolicy
from ..core.session import Identity, SessionStore
from ..core.transport import Transport
from .models import PhoneBinding

logger = logging.getLogger(__name__)


class AuthApi:
    """Endpoints for the signed-in account."""

    def __init__(self, transport: Transport, recovery: ExpiryRecoveryPolicy, session_store: SessionStore):
        self.transport = transport
        self.recovery = recovery
        self.session_store = session_store

    async def get_me(self) -> Identity:
        """Fetch the current profile and refresh the session identity."""
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.get("/companion/auth/me")
        )
        identity = Identity.model_validate(payload)
        self.session_store.set_state(identity=identity)
        return identity

    async def bind_phone(self, phone: str) -> PhoneBinding:
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.post("/companion/auth/bind-phone", {"phone": phone})
        )
        return PhoneBinding.model_validate(payload)
