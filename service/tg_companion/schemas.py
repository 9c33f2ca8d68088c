from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# Telegram Bot API models (https://core.telegram.org/bots/api#update)
# Only the fields the relay reads; everything else Telegram sends is ignored.

class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: Optional[int] = None
    chat: Optional[TelegramChat] = None
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: Optional[int] = None
    message: Optional[TelegramMessage] = None

    @property
    def text(self) -> Optional[str]:
        return self.message.text if self.message else None

    @property
    def chat_id(self) -> Optional[int]:
        if self.message and self.message.chat:
            return self.message.chat.id
        return None


class SendMessageRequest(BaseModel):
    """Body of Telegram's sendMessage call."""
    chat_id: int
    text: str


# API Request/Response models

class ChatRequest(BaseModel):
    prompt: str = Field(..., description="User prompt forwarded to the completion backend")


class ChatResponse(BaseModel):
    reply: str
