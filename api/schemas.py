"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from extension_bridge import ExtensionPayload
from flow_manager.models import CodeContext, ProblemContext, TurnSource


class StartReq(BaseModel):
    problem: Optional[ProblemContext] = None
    code: Optional[CodeContext] = None


class TurnReq(BaseModel):
    session_id: str
    user_msg: str = ""
    code_diff: Optional[str] = None


class ContextReq(BaseModel):
    session_id: str
    updates: Dict[str, Any] = Field(default_factory=dict)


class ReportReq(BaseModel):
    session_id: str


class UIMessage(BaseModel):
    role: Literal["assistant", "system"] = "assistant"
    text: str


class ApiResp(BaseModel):
    session_id: str
    stage: str
    elapsed_minutes: int = 0
    ui_messages: List[UIMessage] = Field(default_factory=list)
    source: TurnSource = "template"
    error: Optional[str] = None


class ContextResp(BaseModel):
    session_id: str
    stage: str
    complete: bool


class SystemPromptResp(BaseModel):
    session_id: str
    system_prompt: str


class ExtractReq(BaseModel):
    html: str
    url: str = ""


class HubResp(BaseModel):
    accepted: bool
    session_id: Optional[str] = None
    pending: int = 0
    dropped: int = 0
    payload: Optional[ExtensionPayload] = None


class EndResp(BaseModel):
    session_id: str
    ended: bool
