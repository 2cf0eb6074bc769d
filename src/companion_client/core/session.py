"""
Session state for the Companion Client.

The session store holds the current credential and identity in memory and
mirrors them into the persisted key-value store so a restarted process
resumes the same session. It is the single source of truth read by every
outbound request.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .storage import KeyValueStore, StorageKeys

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class Identity(BaseModel):
    """The authenticated user's profile record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: int
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    points: int = 0
    provider: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None

    def to_storage(self) -> Dict[str, Any]:
        """Serialize with the backend's camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of the session."""

    credential: Optional[str] = None
    identity: Optional[Identity] = None

    @property
    def authenticated(self) -> bool:
        return self.credential is not None and self.identity is not None

    @property
    def identity_id(self) -> Optional[int]:
        return self.identity.id if self.identity else None


SessionListener = Callable[[SessionState], None]


class SessionStore:
    """
    Injectable holder of the current session.

    Mutations never suspend: ``set_state`` merges, mirrors and notifies
    listeners in one synchronous step, so no other task can observe a
    half-applied update.
    """

    def __init__(self, store: KeyValueStore, state: Optional[SessionState] = None):
        self._store = store
        self._state = state or SessionState()
        self._listeners: List[SessionListener] = []

    @classmethod
    def create(cls, store: KeyValueStore) -> "SessionStore":
        """
        Create a session store, restoring any session mirrored by a
        previous process.

        Args:
            store: Persisted key-value store supplied by the host

        Returns:
            A session store holding the restored state, or an empty one
        """
        credential = store.get(StorageKeys.TOKEN) or None
        identity = None
        raw_identity = store.get(StorageKeys.USER_INFO)
        if raw_identity:
            try:
                identity = Identity.model_validate(raw_identity)
            except ValidationError as e:
                logger.warning(f"Discarding unreadable persisted identity: {e}")

        state = SessionState(credential=credential, identity=identity)
        if state.credential:
            logger.debug(f"Restored persisted session (identity={state.identity_id})")
        return cls(store, state)

    def get_state(self) -> SessionState:
        """Get a snapshot of the current session."""
        return self._state

    @property
    def credential(self) -> Optional[str]:
        return self._state.credential

    @property
    def identity(self) -> Optional[Identity]:
        return self._state.identity

    def set_state(self, credential: Optional[str] = _UNSET, identity: Optional[Identity] = _UNSET) -> None:
        """
        Merge the given fields into the session.

        Fields left out keep their current value. The credential and identity
        are mirrored to the persisted store; mirroring is best-effort and a
        failure only logs.
        """
        changes: Dict[str, Any] = {}
        if credential is not _UNSET:
            changes["credential"] = credential
        if identity is not _UNSET:
            changes["identity"] = identity
        if not changes:
            return

        self._state = replace(self._state, **changes)
        self._mirror(changes)
        self._notify()

    def clear(self) -> None:
        """Reset to an unauthenticated session, used on sign-out."""
        self._state = SessionState()
        for key in (StorageKeys.TOKEN, StorageKeys.USER_INFO, StorageKeys.USER_ID):
            try:
                self._store.remove(key)
            except Exception as e:
                logger.warning(f"Failed to remove persisted key '{key}': {e}")
        self._notify()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener called after every mutation.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _mirror(self, changes: Dict[str, Any]) -> None:
        writes: List[tuple] = []
        if "credential" in changes:
            writes.append((StorageKeys.TOKEN, changes["credential"]))
        if "identity" in changes:
            identity = changes["identity"]
            writes.append((StorageKeys.USER_INFO, identity.to_storage() if identity else None))
            writes.append((StorageKeys.USER_ID, identity.id if identity else None))

        for key, value in writes:
            try:
                if value is None:
                    self._store.remove(key)
                else:
                    self._store.set(key, value)
            except Exception as e:
                logger.warning(f"Failed to persist session key '{key}': {e}")

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"Error in session listener: {e}")
