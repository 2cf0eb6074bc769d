"""
Client facade wiring the session lifecycle together.

``CompanionClient`` is created once at process start. It owns the transport,
the session store, the login coordinator, the recovery policy and the domain
API wrappers, and is closed when the process shuts down.
"""

import logging
from typing import Any, Dict, Optional

from ..api import AuthApi, CharacterApi, ConversationApi
from ..config.settings import CompanionSettings
from ..services.greetings import GreetingSelector
from .errors import ConfigurationError
from .host import LoginCodeProvider, StaticCodeProvider
from .login import LoginCoordinator, LoginResult, ProfileHint
from .reconciler import IdentitySwitchReconciler
from .recovery import ExpiryRecoveryPolicy, Notifier
from .session import SessionState, SessionStore
from .storage import JsonFileStore, KeyValueStore
from .transport import Transport

logger = logging.getLogger(__name__)


class CompanionClient:
    """Entry point for applications talking to the companion backend."""

    def __init__(
        self,
        settings: CompanionSettings,
        code_provider: LoginCodeProvider,
        store: KeyValueStore,
        notifier: Optional[Notifier] = None,
    ):
        self.settings = settings
        self.store = store
        self.session = SessionStore.create(store)
        self.transport = Transport(
            settings.api_base_url,
            self.session,
            timeout=settings.request_timeout,
        )
        self.reconciler = IdentitySwitchReconciler(store)
        self.coordinator = LoginCoordinator(
            self.transport,
            self.session,
            code_provider,
            self.reconciler,
        )
        self.recovery = ExpiryRecoveryPolicy(
            self.coordinator,
            notifier=notifier,
            expiry_code=settings.expiry_code,
        )

        self.auth = AuthApi(self.transport, self.recovery, self.session)
        self.characters = CharacterApi(self.transport, self.recovery, store)
        self.conversations = ConversationApi(self.transport, self.recovery, store)
        self.greetings = GreetingSelector(store)

    @classmethod
    def create(
        cls,
        settings: CompanionSettings,
        code_provider: Optional[LoginCodeProvider] = None,
        store: Optional[KeyValueStore] = None,
        notifier: Optional[Notifier] = None,
    ) -> "CompanionClient":
        """
        Create a client from settings.

        Args:
            settings: Client settings
            code_provider: Source of login exchange codes; defaults to the
                configured static code
            store: Persisted store; defaults to the JSON file at
                ``settings.storage_path``
            notifier: Receiver of recovery notices

        Returns:
            A ready client
        """
        if code_provider is None:
            if not settings.login_code:
                raise ConfigurationError(
                    "No login code provider given and COMPANION_LOGIN_CODE is not set",
                    config_field="login_code",
                )
            code_provider = StaticCodeProvider(settings.login_code)

        if store is None:
            settings.ensure_directories()
            store = JsonFileStore(settings.storage_path)

        return cls(settings, code_provider, store, notifier=notifier)

    async def __aenter__(self) -> "CompanionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def state(self) -> SessionState:
        return self.session.get_state()

    async def login(self, force: bool = False, profile_hint: Optional[ProfileHint] = None) -> LoginResult:
        return await self.coordinator.login(force=force, profile_hint=profile_hint)

    def sign_out(self) -> None:
        """Forget the current session."""
        logger.info("Signing out")
        self.session.clear()

    async def close(self) -> None:
        await self.transport.close()

    def get_statistics(self) -> Dict[str, Any]:
        state = self.session.get_state()
        return {
            "authenticated": state.authenticated,
            "identity_id": state.identity_id,
            "login_in_flight": self.coordinator.in_flight,
            "exchange_count": self.coordinator.exchange_count,
        }
