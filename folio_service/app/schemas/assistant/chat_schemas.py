from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage]


class ToolCallOut(BaseModel):
    name: str
    args: Dict[str, Any] = {}


class ChatResponse(BaseModel):
    message: str
    tool_calls: List[ToolCallOut] = []
    tool_results: List[Dict[str, Any]] = []
    warning: Optional[str] = None
