"""
Expiry recovery for failed API calls.

When a domain call fails because the backend rejected the credential, the
policy performs a forced re-login and tells the caller whether it may retry.
It never retries the failed call itself.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, TypeVar, runtime_checkable

from .errors import CompanionError, LoginError, RecoveryError, TransportError, is_credential_expired
from .login import LoginCoordinator

logger = logging.getLogger(__name__)

T = TypeVar("T")

REFRESHED_NOTICE = "Login refreshed"
RESTART_NOTICE = "Login failed. Please restart the application."


@runtime_checkable
class Notifier(Protocol):
    """User-visible notices raised by the recovery policy."""

    def notify_refreshed(self) -> None:
        """Low-severity, dismissible notice after a transparent re-login."""
        ...

    def notify_fatal(self, message: str) -> None:
        """Blocking notice that the session cannot recover."""
        ...


class LoggingNotifier:
    """Notifier that only writes to the log."""

    def notify_refreshed(self) -> None:
        logger.info(REFRESHED_NOTICE)

    def notify_fatal(self, message: str) -> None:
        logger.error(message)


@dataclass(frozen=True)
class RecoveryOutcome:
    """Result of handling a failed call."""

    relogin: bool
    error: Optional[CompanionError] = None


class ExpiryRecoveryPolicy:
    """Classifies failed calls and recovers expired credentials."""

    def __init__(
        self,
        coordinator: LoginCoordinator,
        notifier: Optional[Notifier] = None,
        expiry_code: int = 101,
    ):
        self.coordinator = coordinator
        self.notifier = notifier or LoggingNotifier()
        self.expiry_code = expiry_code

    def is_expired(self, error: TransportError) -> bool:
        return is_credential_expired(error, self.expiry_code)

    async def handle(self, error: TransportError) -> RecoveryOutcome:
        """
        Handle a failed domain call.

        Args:
            error: The failed call's transport error

        Returns:
            ``relogin=True`` if the credential expired and a forced re-login
            succeeded; otherwise ``relogin=False`` with either the original
            error (unrelated failure) or a ``RecoveryError``
        """
        if not self.is_expired(error):
            return RecoveryOutcome(relogin=False, error=error)

        logger.info(
            f"Credential expired (code={error.code}, status={error.status}, "
            f"message={error.message}); re-logging in"
        )
        try:
            await self.coordinator.login(force=True)
        except LoginError as login_error:
            logger.error(f"Re-login failed: {login_error}")
            self.notifier.notify_fatal(RESTART_NOTICE)
            return RecoveryOutcome(relogin=False, error=RecoveryError(login_error))

        logger.info("Re-login succeeded")
        self.notifier.notify_refreshed()
        return RecoveryOutcome(relogin=True)

    async def call_with_recovery(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run a domain call, retrying once after a successful re-login.

        Args:
            operation: Zero-argument coroutine factory issuing the call

        Returns:
            The call's result

        Raises:
            TransportError: The original error when it is unrelated to
                credential expiry, or the retry's error
            RecoveryError: When the re-login failed
        """
        try:
            return await operation()
        except TransportError as error:
            outcome = await self.handle(error)
            if not outcome.relogin:
                if outcome.error is error:
                    raise
                raise outcome.error from error

        logger.debug("Retrying call after re-login")
        return await operation()
