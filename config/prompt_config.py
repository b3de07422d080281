"""Interviewer prompt configuration: roles, policies, stage flow, templates and rubric.

The bundled ``ai_interviewer_prompt.json`` is the source of truth for defaults.
A user-supplied file is deep-merged over it, so a partial override only needs
the keys it changes. Any unreadable or invalid override falls back to the
bundled defaults with a warning instead of failing startup.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_PATH = Path(__file__).resolve().parent / "ai_interviewer_prompt.json"

CANONICAL_STAGES = ("intro", "approach_probe", "edge_cases", "wrap")


class PromptRoles(BaseModel):
    system: str
    safety: str
    privacy_badge: str = ""


class PromptPolicies(BaseModel):
    one_question_at_a_time: bool = True
    follow_up_on_diffs: bool = True
    edge_cases_after_minutes: int = Field(default=12, ge=0)
    soft_time_checks_minutes: List[int] = Field(default_factory=lambda: [10, 20])
    wrap_up_at_minutes: int = Field(default=22, ge=1)
    allow_typed_fallback: bool = True


class LlmProvider(BaseModel):
    provider: str
    model: str
    api_key_env: Optional[str] = None


class LlmModes(BaseModel):
    local: LlmProvider
    cloud: LlmProvider


class SessionStage(BaseModel):
    stage: str
    goal: str
    prompt: str

    model_config = {"frozen": True}


class MessageTemplates(BaseModel):
    opening: str
    no_context: str
    diff_probe: str
    time_check: str
    nudge_focus: str


class Rubric(BaseModel):
    """Rubric dimensions plus the features the deterministic scorer looks for."""

    scale: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    dimensions: List[str] = Field(min_length=1)
    guidance: Dict[str, str] = Field(default_factory=dict)
    signals: Dict[str, List[str]] = Field(default_factory=dict)
    highlights: Dict[str, str] = Field(default_factory=dict)
    recommendations: Dict[str, str] = Field(default_factory=dict)
    general_recommendations: List[str] = Field(default_factory=list)


class ReportTemplates(BaseModel):
    markdown: str
    summary: str


class ScreenShareTool(BaseModel):
    api: str = "getDisplayMedia"
    fields: List[str] = Field(default_factory=list)


class ExtensionPayloadTool(BaseModel):
    fields: List[str] = Field(default_factory=list)
    interval_ms: int = Field(default=2000, ge=100)


class ToolsContract(BaseModel):
    screen_share: ScreenShareTool = Field(default_factory=ScreenShareTool)
    extension_payload: ExtensionPayloadTool = Field(default_factory=ExtensionPayloadTool)


class FewShotExample(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class InterviewerPrompt(BaseModel):
    """Root of the interviewer script; immutable after load."""

    name: str
    mode: str = "voice_first"
    roles: PromptRoles
    policies: PromptPolicies = Field(default_factory=PromptPolicies)
    llm: LlmModes
    session_flow: List[SessionStage] = Field(min_length=1)
    message_templates: MessageTemplates
    rubric: Rubric
    report_templates: ReportTemplates
    tools_contract: ToolsContract = Field(default_factory=ToolsContract)
    few_shot: List[FewShotExample] = Field(default_factory=list)

    def stage_names(self) -> List[str]:
        return [stage.stage for stage in self.session_flow]


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:  # Recursive dict merge; lists replace
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _read_json(path: Path) -> Dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Prompt config must be a JSON object: {path}")
    return data


def _warn_missing_stages(prompt: InterviewerPrompt) -> None:
    names = set(prompt.stage_names())
    missing = [name for name in CANONICAL_STAGES if name not in names]
    if missing:
        logger.warning("Prompt config is missing stages %s; positional fallback will be used", ", ".join(missing))


def load_default_prompt() -> InterviewerPrompt:
    """Load the bundled prompt configuration."""

    return InterviewerPrompt.model_validate(_read_json(DEFAULT_PROMPT_PATH))


def load_prompt_config(path: Optional[Path | str] = None) -> InterviewerPrompt:
    """Load the prompt configuration, merging ``path`` over the bundled defaults.

    Falls back to the defaults when the override cannot be read or validated.
    """

    defaults = _read_json(DEFAULT_PROMPT_PATH)
    if not path:
        prompt = InterviewerPrompt.model_validate(defaults)
        _warn_missing_stages(prompt)
        return prompt

    override_path = Path(path)
    try:
        override = _read_json(override_path)
        prompt = InterviewerPrompt.model_validate(_deep_merge(defaults, override))
    except (OSError, ValueError, ValidationError) as exc:
        logger.warning("Invalid prompt config %s, using defaults: %s", override_path, exc)
        prompt = InterviewerPrompt.model_validate(defaults)
    else:
        logger.info("Prompt config loaded from %s (%d stages)", override_path, len(prompt.session_flow))
    _warn_missing_stages(prompt)
    return prompt


__all__ = [
    "CANONICAL_STAGES",
    "DEFAULT_PROMPT_PATH",
    "ExtensionPayloadTool",
    "FewShotExample",
    "InterviewerPrompt",
    "LlmModes",
    "LlmProvider",
    "MessageTemplates",
    "PromptPolicies",
    "PromptRoles",
    "ReportTemplates",
    "Rubric",
    "ScreenShareTool",
    "SessionStage",
    "ToolsContract",
    "load_default_prompt",
    "load_prompt_config",
]
