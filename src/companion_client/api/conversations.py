"""Conversation and message endpoints."""

import logging
from typing import List, Optional

from ..core.recovery import ExpiryRecoveryPolicy
from ..core.storage import KeyValueStore, StorageKeys
from ..core.transport import Transport
from .models import (
    ChatMode,
    Conversation,
    ConversationMessagesResponse,
    CreateConversationResponse,
    MemorySummaryResponse,
    SendMessageResponse,
)

logger = logging.getLogger(__name__)


class ConversationApi:
    """Endpoints for conversations and their messages."""

    def __init__(self, transport: Transport, recovery: ExpiryRecoveryPolicy, store: KeyValueStore):
        self.transport = transport
        self.recovery = recovery
        self.store = store

    async def get_conversations(self) -> List[Conversation]:
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.get("/companion/conversations")
        )
        return [Conversation.model_validate(item) for item in payload or []]

    async def create_conversation(self, character_id: int) -> CreateConversationResponse:
        """
        Open a conversation with a character.

        The response carries the greeting on a first chat, otherwise the most
        recent history. The conversation becomes the last active one.
        """
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.post("/companion/conversations", {"characterId": character_id})
        )
        conversation = CreateConversationResponse.model_validate(payload)
        self._remember_last(conversation.id, conversation.character_id)
        return conversation

    async def get_conversation_messages(
        self,
        conversation_id: int,
        page: int = 1,
        page_size: int = 50,
    ) -> ConversationMessagesResponse:
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.get(
                f"/companion/conversations/{conversation_id}/messages",
                params={"page": page, "pageSize": page_size},
            )
        )
        return ConversationMessagesResponse.model_validate(payload)

    async def send_message(
        self,
        conversation_id: int,
        content: str,
        chat_mode: Optional[ChatMode] = None,
    ) -> SendMessageResponse:
        body = {"content": content}
        if chat_mode is not None:
            body["chatMode"] = chat_mode.value
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.post(f"/companion/conversations/{conversation_id}/messages", body)
        )
        return SendMessageResponse.model_validate(payload)

    async def delete_conversation(self, conversation_id: int) -> None:
        await self.recovery.call_with_recovery(
            lambda: self.transport.delete(f"/companion/conversations/{conversation_id}")
        )
        if self.store.get(StorageKeys.LAST_CONVERSATION_ID) == conversation_id:
            for key in (StorageKeys.LAST_CONVERSATION_ID, StorageKeys.LAST_CONVERSATION_CHARACTER):
                try:
                    self.store.remove(key)
                except Exception as e:
                    logger.warning(f"Failed to clear cached key '{key}': {e}")

    async def update_memory_summary(self, conversation_id: int) -> MemorySummaryResponse:
        """Ask the backend to refresh the conversation's memory summary."""
        payload = await self.recovery.call_with_recovery(
            lambda: self.transport.post(f"/companion/conversations/{conversation_id}/memory", {})
        )
        return MemorySummaryResponse.model_validate(payload or {})

    async def rollback_conversation(self, conversation_id: int, message_id: int) -> None:
        """Discard every message after ``message_id``."""
        await self.recovery.call_with_recovery(
            lambda: self.transport.post(
                f"/companion/conversations/{conversation_id}/rollback",
                {"messageId": message_id},
            )
        )

    def last_conversation_id(self) -> Optional[int]:
        return self.store.get(StorageKeys.LAST_CONVERSATION_ID)

    def _remember_last(self, conversation_id: int, character_id: int) -> None:
        try:
            self.store.set(StorageKeys.LAST_CONVERSATION_ID, conversation_id)
            self.store.set(StorageKeys.LAST_CONVERSATION_CHARACTER, character_id)
        except Exception as e:
            logger.warning(f"Failed to remember last conversation: {e}")
