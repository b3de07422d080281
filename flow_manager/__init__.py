"""Interview session flow: stage selection, templating and the session controller."""
from __future__ import annotations

from .controller import ChatModel, InterviewSession
from .models import (
    Capabilities,
    CodeContext,
    ConversationEntry,
    ProblemContext,
    SessionContext,
    SessionSnapshot,
    Telemetry,
    TurnResult,
)
from .stages import APPROACH_PROBE, EDGE_CASES, INTRO, WRAP, resolve_stage, select_stage, stage_name_for
from .templates import MessageTemplateEngine, format_list, format_scores, substitute

__all__ = [
    "APPROACH_PROBE",
    "EDGE_CASES",
    "INTRO",
    "WRAP",
    "Capabilities",
    "ChatModel",
    "CodeContext",
    "ConversationEntry",
    "InterviewSession",
    "MessageTemplateEngine",
    "ProblemContext",
    "SessionContext",
    "SessionSnapshot",
    "Telemetry",
    "TurnResult",
    "format_list",
    "format_scores",
    "resolve_stage",
    "select_stage",
    "stage_name_for",
    "substitute",
]
