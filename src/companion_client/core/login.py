"""
Single-flight login coordination.

At most one credential exchange is outstanding at any time. Callers that
request a login while an attempt is running join that attempt and receive
its settled outcome instead of starting a second round trip.

Everything here runs on one event loop. The in-flight check and the creation
of a new attempt contain no ``await``, and neither does the block that
updates the session, reconciles cached state and settles the attempt, so no
other task can observe a half-finished login.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .errors import (
    ExchangeFailedError,
    LoginError,
    MalformedResponseError,
    NoCodeError,
    TransportError,
)
from .host import LoginCodeProvider
from .reconciler import IdentitySwitchReconciler
from .session import Identity, SessionStore
from .transport import Transport

logger = logging.getLogger(__name__)

EXCHANGE_PATH = "/companion/auth/wechat"


class ProfileHint(BaseModel):
    """Optional profile data sent along with the exchange code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    nick_name: Optional[str] = None
    avatar_url: Optional[str] = None
    invitation_code: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    credential: str
    identity: Optional[Identity]


class LoginCoordinator:
    """Owns the login protocol and the credential-exchange call."""

    def __init__(
        self,
        transport: Transport,
        session_store: SessionStore,
        code_provider: LoginCodeProvider,
        reconciler: IdentitySwitchReconciler,
        exchange_path: str = EXCHANGE_PATH,
    ):
        self.transport = transport
        self.session_store = session_store
        self.code_provider = code_provider
        self.reconciler = reconciler
        self.exchange_path = exchange_path
        self._inflight: Optional["asyncio.Future[LoginResult]"] = None
        self._tasks: Set["asyncio.Task[None]"] = set()
        self.exchange_count = 0

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    async def login(self, force: bool = False, profile_hint: Optional[ProfileHint] = None) -> LoginResult:
        """
        Log in, reusing the current session or an in-flight attempt.

        Args:
            force: Skip the held credential; joins an attempt already in
                flight, otherwise performs a fresh exchange
            profile_hint: Optional profile data for the exchange

        Returns:
            The credential and identity of the session

        Raises:
            LoginError: If the attempt this caller started or joined failed
        """
        if not force:
            state = self.session_store.get_state()
            if state.credential:
                return LoginResult(credential=state.credential, identity=state.identity)

        # Forced callers join a running attempt as well.
        if self._inflight is not None:
            logger.debug("Joining in-flight login attempt")
            return await asyncio.shield(self._inflight)

        attempt = self._start_attempt(profile_hint)
        return await asyncio.shield(attempt)

    def _start_attempt(self, profile_hint: Optional[ProfileHint]) -> "asyncio.Future[LoginResult]":
        loop = asyncio.get_running_loop()
        attempt: "asyncio.Future[LoginResult]" = loop.create_future()
        # Retrieve the exception so an attempt whose waiters all went away
        # does not log "exception was never retrieved".
        attempt.add_done_callback(lambda f: f.cancelled() or f.exception())
        self._inflight = attempt

        task = loop.create_task(self._run_attempt(attempt, profile_hint))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return attempt

    async def _run_attempt(
        self,
        attempt: "asyncio.Future[LoginResult]",
        profile_hint: Optional[ProfileHint],
    ) -> None:
        logger.info("Starting login attempt")
        try:
            credential, identity = await self._exchange(profile_hint)
        except LoginError as e:
            logger.error(f"Login failed: {e}")
            self._settle(attempt, error=e)
            return
        except asyncio.CancelledError:
            self._settle(attempt, error=LoginError("Login attempt was cancelled"))
            raise
        except Exception as e:
            logger.error(f"Unexpected error during login: {e}")
            self._settle(attempt, error=LoginError(f"Unexpected login failure: {e}", original_error=e))
            return

        previous_identity_id = self.session_store.get_state().identity_id
        self.session_store.set_state(credential=credential, identity=identity)
        self.reconciler.reconcile(previous_identity_id, identity.id)
        logger.info(f"Login succeeded (identity={identity.id})")
        self._settle(attempt, result=LoginResult(credential=credential, identity=identity))

    async def _exchange(self, profile_hint: Optional[ProfileHint]) -> tuple:
        try:
            code = await self.code_provider.acquire_code()
        except Exception as e:
            raise NoCodeError(f"Failed to obtain login code: {e}", original_error=e) from e
        if not code:
            raise NoCodeError()

        body: Dict[str, Any] = {"code": code}
        if profile_hint is not None:
            body.update(profile_hint.to_payload())

        self.exchange_count += 1
        try:
            payload = await self.transport.post(self.exchange_path, body, requires_auth=False)
        except TransportError as e:
            raise ExchangeFailedError(e) from e

        return self._parse_exchange_payload(payload)

    @staticmethod
    def _parse_exchange_payload(payload: Any) -> tuple:
        if not isinstance(payload, dict):
            raise MalformedResponseError(payload=payload)

        token = payload.get("token")
        user = payload.get("user")
        if not isinstance(token, str) or not token or not isinstance(user, dict):
            raise MalformedResponseError(payload=payload)

        try:
            identity = Identity.model_validate(user)
        except ValidationError as e:
            raise MalformedResponseError(f"Login response has an invalid user: {e}", payload=payload) from e

        return token, identity

    def _settle(
        self,
        attempt: "asyncio.Future[LoginResult]",
        result: Optional[LoginResult] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if self._inflight is attempt:
            self._inflight = None
        if attempt.done():
            return
        if error is not None:
            attempt.set_exception(error)
        else:
            attempt.set_result(result)
