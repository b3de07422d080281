from __future__ import annotations  # Interview session state models

from datetime import datetime
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]
TurnSource = Literal["template", "model", "error"]


class ProblemContext(BaseModel):  # Problem statement scraped or pasted by the candidate
    title: str = ""
    description: str = ""
    difficulty: str = ""
    url: str = ""


class CodeContext(BaseModel):  # Editor snapshot and the latest diff
    language: str = ""
    text: str = ""
    last_diff: Optional[str] = None


class Telemetry(BaseModel):  # Session timing in seconds
    elapsed_sec: int = Field(default=0, ge=0)
    session_cap_sec: int = Field(default=1500, ge=1)


class Capabilities(BaseModel):  # Client capability flags
    stt: str = "chrome_web_speech_api"
    tts: str = "speechSynthesis"
    screenshare: bool = True
    extension_payload: bool = True


class SessionContext(BaseModel):  # Context available to the controller at a given moment
    problem: Optional[ProblemContext] = None
    code: Optional[CodeContext] = None
    telemetry: Telemetry = Field(default_factory=Telemetry)
    capabilities: Capabilities = Field(default_factory=Capabilities)

    model_config = ConfigDict(validate_assignment=True)

    def has_problem(self) -> bool:
        return bool(self.problem and self.problem.title.strip())

    def has_code(self) -> bool:
        return bool(self.code and self.code.text.strip())

    def is_complete(self) -> bool:
        return self.has_problem() and self.has_code()

    @property
    def elapsed_minutes(self) -> int:
        return self.telemetry.elapsed_sec // 60

    def apply_updates(self, updates: Mapping[str, Any]) -> None:
        """Shallow-merge top-level keys in place; unknown keys are ignored."""

        merged = self.model_dump()
        for key, value in updates.items():
            if key in SessionContext.model_fields:
                merged[key] = value.model_dump() if isinstance(value, BaseModel) else value
        fresh = SessionContext.model_validate(merged)
        for name in SessionContext.model_fields:
            setattr(self, name, getattr(fresh, name))


class ConversationEntry(BaseModel):  # One utterance in the session transcript
    role: Role
    content: str
    timestamp: datetime

    model_config = ConfigDict(frozen=True)


class TurnResult(BaseModel):  # Assistant utterance returned for a start or turn
    message: str
    stage: str
    elapsed_minutes: int = 0
    source: TurnSource = "template"
    error: Optional[str] = None


class SessionSnapshot(BaseModel):  # Serializable view of a session
    session_id: str
    stage: str
    started_at: datetime
    elapsed_minutes: int
    context: SessionContext
    history: List[ConversationEntry] = Field(default_factory=list)
    last_code_diff: Optional[str] = None
    events: List[Dict[str, Any]] = Field(default_factory=list)


__all__ = [
    "Capabilities",
    "CodeContext",
    "ConversationEntry",
    "ProblemContext",
    "Role",
    "SessionContext",
    "SessionSnapshot",
    "Telemetry",
    "TurnResult",
    "TurnSource",
]
