"""
Chat request envelope: the canonical body sent to the chat router.
"""

import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

_BASE36 = string.digits + string.ascii_lowercase


def new_request_id() -> str:
    """req-{epoch ms}-{9 random base36 chars}"""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"req-{int(time.time() * 1000)}-{suffix}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """What the caller supplies; everything optional here gets a default."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    session_id: str = Field(alias="sessionId", min_length=1)
    selected_model_id: str = Field(alias="selectedModelId")
    conversation_history: list[ConversationTurn] = Field(default_factory=list, alias="conversationHistory")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    request_id: Optional[str] = Field(default=None, alias="requestId")
    timestamp: Optional[str] = None


class ChatRequestEnvelope(BaseModel):
    """Frozen so the request id stays stable across retries of one instance."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str
    session_id: str = Field(alias="sessionId", min_length=1)
    selected_model_id: str = Field(alias="selectedModelId")
    conversation_history: tuple[ConversationTurn, ...] = Field(default=(), alias="conversationHistory")
    conversation_id: str = Field(alias="conversationId", min_length=1)
    request_id: str = Field(default_factory=new_request_id, alias="requestId")
    timestamp: str = Field(default_factory=utc_now_iso)

    @model_validator(mode="before")
    @classmethod
    def _default_conversation_id(cls, data: Any) -> Any:
        if isinstance(data, dict):
            conv = data.get("conversation_id") or data.get("conversationId")
            if not conv:
                data = {k: v for k, v in data.items() if k not in ("conversation_id", "conversationId")}
                data["conversation_id"] = data.get("session_id") or data.get("sessionId")
            for key in ("request_id", "requestId", "timestamp"):
                if key in data and not data[key]:
                    del data[key]
        return data

    @classmethod
    def build(cls, request: ChatRequest) -> "ChatRequestEnvelope":
        return cls.model_validate(request.model_dump(exclude_none=True))

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
