"""
Data models for the companion backend API.

The backend speaks camelCase JSON; models accept either the camelCase alias
or the snake_case field name and serialize back to camelCase.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for backend payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ChatMode(Enum):
    """Conversation styles accepted when sending a message."""
    NORMAL = "normal"
    ROMANTIC = "romantic"


class BackgroundType(Enum):
    """Background image slots of a character."""
    CHAT = "chat"
    SLEEP = "sleep"
    COMPANION = "companion"


class MessageRole(Enum):
    """Message authors."""
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(Enum):
    """Kinds of assistant message."""
    NORMAL = "normal"
    INTRODUCTION = "introduction"
    GREETING = "greeting"


class Character(ApiModel):
    """A character users can talk to."""
    id: int
    name: str
    avatar_url: Optional[str] = None
    description: Optional[str] = None
    system_prompt: Optional[str] = None
    greeting_message: Optional[str] = None
    is_official: int = 0
    is_active: int = 1
    sort_order: int = 0
    chat_background_url: Optional[str] = None
    sleep_background_url: Optional[str] = None
    companion_background_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # Present on authenticated responses only
    has_chat_history: Optional[bool] = None
    message_count: Optional[int] = None
    like_count: Optional[int] = None
    is_favorite: Optional[bool] = None
    is_pinned_to_home: Optional[bool] = None


class CreateCharacterRequest(ApiModel):
    """Body for creating a custom character."""
    name: str
    system_prompt: str
    description: Optional[str] = None
    greeting_message: Optional[str] = None
    avatar_url: Optional[str] = None
    chat_background_url: Optional[str] = None
    sleep_background_url: Optional[str] = None
    companion_background_url: Optional[str] = None


class PinnedCharacter(ApiModel):
    """The character pinned to the home screen."""
    character_id: int
    name: str
    avatar_url: Optional[str] = None
    description: Optional[str] = None
    greeting_message: Optional[str] = None
    conversation_id: Optional[int] = None
    chat_background_url: Optional[str] = None
    companion_background_url: Optional[str] = None
    sleep_background_url: Optional[str] = None


class Conversation(ApiModel):
    """A conversation between the user and a character."""
    id: int
    user_id: int
    character_id: int
    title: Optional[str] = None
    message_count: int = 0
    last_message_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    character: Optional[Character] = None


class Message(ApiModel):
    """A single chat message."""
    id: int
    role: MessageRole
    content: str
    conversation_id: Optional[int] = None
    tokens: Optional[int] = None
    created_at: Optional[str] = None
    message_type: Optional[MessageType] = None


class CreateConversationResponse(ApiModel):
    """A new conversation with its initial messages."""
    id: int
    character_id: int
    user_id: int
    title: Optional[str] = None
    created_at: Optional[str] = None
    is_first_time_chat: bool = False
    messages: List[Message] = Field(default_factory=list)


class CharacterSummary(ApiModel):
    id: int
    name: str
    avatar_url: Optional[str] = None


class ConversationMessagesResponse(ApiModel):
    """A page of conversation history."""
    conversation_id: int
    character: Optional[CharacterSummary] = None
    messages: List[Message] = Field(default_factory=list)


class SendMessageResponse(ApiModel):
    """The exchanged user and assistant messages plus point accounting."""
    user_message: Optional[Message] = None
    assistant_message: Message
    points_consumed: int = 0
    points_balance: int = 0
    is_greeting: Optional[bool] = None


class MemorySummaryResponse(ApiModel):
    success: bool = False
    updated: bool = False
    message: Optional[str] = None
    messages_processed: Optional[int] = None
    memory_summary: Optional[str] = None


class FavoriteToggle(ApiModel):
    character_id: int
    is_favorite: bool


class PinToggle(ApiModel):
    character_id: int
    is_pinned_to_home: bool


class UploadedBackground(ApiModel):
    url: str
    type: BackgroundType


class PhoneBinding(ApiModel):
    success: bool
    phone: str
