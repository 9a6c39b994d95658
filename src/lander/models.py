# lander: Centralized Pydantic v2 models for the chat request, tool invocations/results and the stream event
# union. Wire names are camelCase (callId, projectId, humanMessage) through an alias generator; Python code uses
# snake_case attributes.

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CustomBaseModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python, unknown fields rejected."""
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


# -----------------------------
# Conversation and request
# -----------------------------

class ConversationTurn(BaseModel):
    """One text-only turn of prior conversation. Frontend extras (e.g. toolExecutions) are ignored."""
    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant"]
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ChatRequest(CustomBaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    message: str = Field(..., min_length=1)
    conversation_history: List[ConversationTurn] = Field(default_factory=list)
    project_id: Optional[str] = None
    model: Optional[str] = None

    @field_validator("message")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v

    @field_validator("conversation_history", mode="before")
    @classmethod
    def _null_history(cls, v: Any) -> Any:
        return [] if v is None else v


# -----------------------------
# Tool calls
# -----------------------------

class ToolInvocation(CustomBaseModel):
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    call_id: str
    # Set by the provider adapter when the raw arguments could not be decoded.
    arguments_error: Optional[str] = None


class ToolResult(CustomBaseModel):
    call_id: str
    tool: str
    success: bool
    payload: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def project_id(self) -> Optional[str]:
        value = self.payload.get("projectId")
        return value if isinstance(value, str) and value else None

    def to_wire(self) -> Dict[str, Any]:
        """The JSON object handed back to the model as this call's result."""
        body: Dict[str, Any] = {"success": self.success}
        body.update(self.payload)
        if not self.success:
            body["error"] = self.error_message or "Tool execution failed"
            if self.error_type:
                body["errorType"] = self.error_type
        return body

    def to_content(self) -> str:
        return json.dumps(self.to_wire(), ensure_ascii=False)


class ModelReply(BaseModel):
    """A provider response normalized to plain text and/or ordered tool invocations."""
    text: str = ""
    tool_calls: List[ToolInvocation] = Field(default_factory=list)
    # Provider-native assistant message, replayed verbatim in the follow-up request.
    assistant_message: Dict[str, Any] = Field(default_factory=dict)


# -----------------------------
# Stream events
# -----------------------------

class StreamEvent(CustomBaseModel):
    type: str

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), ensure_ascii=False)

    def to_sse(self) -> str:
        return f"data: {self.to_json()}\n\n"


class ToolStartEvent(StreamEvent):
    type: Literal["tool-start"] = "tool-start"
    tool: str
    call_id: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    human_message: str
    icon: Optional[str] = None


class ToolSuccessEvent(StreamEvent):
    type: Literal["tool-success"] = "tool-success"
    tool: str
    call_id: str
    files: Optional[List[str]] = None
    message: str


class ToolErrorEvent(StreamEvent):
    type: Literal["tool-error"] = "tool-error"
    tool: str
    call_id: Optional[str] = None
    message: str


class CodeUpdatedEvent(StreamEvent):
    type: Literal["code-updated"] = "code-updated"
    project_id: str


class ChunkEvent(StreamEvent):
    type: Literal["chunk"] = "chunk"
    content: str


class ErrorEvent(StreamEvent):
    type: Literal["error"] = "error"
    content: str


class DoneEvent(StreamEvent):
    type: Literal["done"] = "done"
    # lander: metadata keys are emitted as given (already camelCase), not run through the alias generator.
    metadata: Optional[Dict[str, Any]] = None


AnyStreamEvent = Union[
    ToolStartEvent,
    ToolSuccessEvent,
    ToolErrorEvent,
    CodeUpdatedEvent,
    ChunkEvent,
    ErrorEvent,
    DoneEvent,
]
