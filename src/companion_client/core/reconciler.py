"""
Identity-switch reconciliation.

Caches stored under identity-scoped keys belong to the identity that wrote
them. When a login yields a different identity than the previous one, those
keys are purged so one account's conversation state never leaks into
another's session.
"""

import logging
from typing import Iterable, List, Optional

from .storage import KeyValueStore, StorageKeys

logger = logging.getLogger(__name__)

IDENTITY_SCOPED_KEYS: List[str] = [
    StorageKeys.LAST_CONVERSATION_ID,
    StorageKeys.HOME_CHARACTER,
    StorageKeys.GREETING_CACHE,
    StorageKeys.LAST_CONVERSATION_CHARACTER,
]


class IdentitySwitchReconciler:
    """Purges identity-scoped cache keys on identity change."""

    def __init__(self, store: KeyValueStore, keys: Optional[Iterable[str]] = None):
        self._store = store
        self._keys: List[str] = list(keys if keys is not None else IDENTITY_SCOPED_KEYS)

    @property
    def keys(self) -> List[str]:
        return list(self._keys)

    def register_key(self, key: str) -> None:
        """Register an additional identity-scoped cache key."""
        if key not in self._keys:
            self._keys.append(key)

    def reconcile(self, previous_identity_id: Optional[int], new_identity_id: int) -> None:
        """
        Purge identity-scoped keys if the identity changed.

        A missing previous identity is a first login and purges nothing.
        Removal is best-effort per key.
        """
        if previous_identity_id is None or previous_identity_id == new_identity_id:
            return

        logger.info(
            f"Identity switched from {previous_identity_id} to {new_identity_id}; "
            f"clearing {len(self._keys)} cached keys"
        )
        for key in self._keys:
            try:
                self._store.remove(key)
            except Exception as e:
                logger.warning(f"Failed to clear cached key '{key}': {e}")
