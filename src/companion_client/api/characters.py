"""Character endpoints."""

import logging
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from ..core.recovery import ExpiryRecoveryPolicy
from ..core.storage import KeyValueStore, StorageKeys
from ..core.transport import Transport
from .models import (
    BackgroundType,
    Character,
    CreateCharacterRequest,
    FavoriteToggle,
    PinnedCharacter,
    PinToggle,
    UploadedBackground,
)

logger = logging.getLogger(__name__)


def _character_list(payload: Any) -> List[Character]:
    items = payload.get("list") if isinstance(payload, dict) else None
    return [Character.model_validate(item) for item in items or []]


class CharacterApi:
    """Endpoints for browsing and managing characters."""

    def __init__(self, transport: Transport, recovery: ExpiryRecoveryPolicy, store: KeyValueStore):
        self.transport = transport
        self.recovery = recovery
        self.store = store

    async def get_official_characters(self) -> List[Character]:
        payload = await self.transport.get("/companion/characters/official", requires_auth=False)
        return _character_list(payload)

    async def get_my_characters(self) -> List[Character]:
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.get("/companion/characters/my")
        )
        return _character_list(payload)

    async def get_character_detail(self, character_id: int) -> Character:
        payload = await self.transport.get(f"/companion/characters/{character_id}", requires_auth=False)
        return Character.model_validate(payload)

    async def create_character(self, request: CreateCharacterRequest) -> Character:
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.post("/companion/characters", request.to_payload())
        )
        return Character.model_validate(payload)

    async def get_pinned_character(self) -> Optional[PinnedCharacter]:
        """
        Fetch the character pinned to the home screen.

        The snapshot is cached under the home-character key so it can be
        shown before the next fetch completes.
        """
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.get("/companion/characters/pinned/home")
        )
        if not payload:
            self._forget(StorageKeys.HOME_CHARACTER)
            return None

        pinned = PinnedCharacter.model_validate(payload)
        try:
            self.store.set(StorageKeys.HOME_CHARACTER, pinned.to_payload())
        except Exception as e:
            logger.warning(f"Failed to cache pinned character: {e}")
        return pinned

    def cached_pinned_character(self) -> Optional[PinnedCharacter]:
        """Return the last pinned-character snapshot, if any."""
        raw = self.store.get(StorageKeys.HOME_CHARACTER)
        if not raw:
            return None
        try:
            return PinnedCharacter.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable pinned character cache: {e}")
            return None

    async def get_favorite_characters(self) -> List[Character]:
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.get("/companion/characters/favorites/list")
        )
        return _character_list(payload)

    async def toggle_favorite(self, character_id: int) -> FavoriteToggle:
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.post(f"/companion/characters/{character_id}/favorite", {})
        )
        return FavoriteToggle.model_validate(payload)

    async def toggle_pin_to_home(self, character_id: int) -> PinToggle:
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.post(f"/companion/characters/{character_id}/pin-to-home", {})
        )
        toggle = PinToggle.model_validate(payload)
        if not toggle.is_pinned_to_home:
            self._forget(StorageKeys.HOME_CHARACTER)
        return toggle

    async def upload_background(self, file_path: Path, background_type: BackgroundType) -> UploadedBackground:
        """Upload a background image for one of the character's slots."""
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.upload(
                "/companion/characters/upload-background",
                file_path,
                form={"type": background_type.value},
            )
        )
        return UploadedBackground.model_validate(payload)

    def _forget(self, key: str) -> None:
        try:
            self.store.remove(key)
        except Exception as e:
            logger.warning(f"Failed to clear cached key '{key}': {e}")
