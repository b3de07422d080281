"""Session controller: stage selection, directive choice and model delegation for one interview."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from config.prompt_config import InterviewerPrompt, SessionStage
from observability import log_event, span

from .models import (
    CodeContext,
    ConversationEntry,
    ProblemContext,
    SessionContext,
    SessionSnapshot,
    Telemetry,
    TurnResult,
)
from .stages import INTRO, WRAP, resolve_stage, select_stage
from .templates import MessageTemplateEngine

logger = logging.getLogger(__name__)

ChatModel = Callable[[List[Dict[str, str]]], str]

MODEL_ERROR_TEMPLATE = "Sorry, I couldn't get a response from the interviewer model ({error}). Please try again."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce(model: type, value: Any) -> Any:
    if value is None or isinstance(value, model):
        return value
    return model.model_validate(value)


class InterviewSession:
    """State and turn logic for a single mock interview.

    The session is owned by its caller; nothing here is process-wide. History
    is append-only and a turn whose model call fails leaves it untouched.
    """

    def __init__(
        self,
        prompt: InterviewerPrompt,
        *,
        chat: Optional[ChatModel] = None,
        now: Callable[[], datetime] = _utcnow,
        session_id: Optional[str] = None,
        session_cap_sec: int = 1500,
    ) -> None:
        self.prompt = prompt
        self.session_id = session_id or str(uuid.uuid4())
        self.session_cap_sec = session_cap_sec
        self.messages = MessageTemplateEngine(prompt.message_templates)
        self.events: List[Dict[str, Any]] = []
        self._chat = chat
        self._now = now
        self._reset(SessionContext(telemetry=Telemetry(session_cap_sec=session_cap_sec)))

    def _reset(self, context: SessionContext) -> None:
        self.context = context
        self.started_at = self._now()
        self.stage: SessionStage = resolve_stage(self.prompt.session_flow, INTRO)
        self.last_code_diff: Optional[str] = None
        self._history: List[ConversationEntry] = []
        self._time_checks_done: Set[int] = set()

    @property
    def history(self) -> Tuple[ConversationEntry, ...]:
        return tuple(self._history)

    def system_prompt(self) -> str:
        roles = self.prompt.roles
        return f"{roles.system}\n\nSafety Guidelines: {roles.safety}"

    def elapsed_minutes(self) -> int:
        """Floor minutes since start; also written into the context telemetry."""

        elapsed_sec = max(0, int((self._now() - self.started_at).total_seconds()))
        self.context.telemetry.elapsed_sec = elapsed_sec
        return elapsed_sec // 60

    def _refresh_stage(self, elapsed: int) -> SessionStage:
        self.stage = select_stage(
            self.prompt,
            elapsed,
            has_problem=self.context.has_problem(),
            has_code=self.context.has_code(),
        )
        return self.stage

    def _append(self, role: str, content: str) -> ConversationEntry:
        entry = ConversationEntry(role=role, content=content, timestamp=self._now())
        self._history.append(entry)
        return entry

    def update_context(self, updates: Mapping[str, Any]) -> SessionStage:
        self.context.apply_updates(updates)
        if self.context.code and self.context.code.last_diff:
            self.last_code_diff = self.context.code.last_diff
        return self._refresh_stage(self.elapsed_minutes())

    def start_session(self, problem: Any = None, code: Any = None) -> TurnResult:
        context = SessionContext(
            problem=_coerce(ProblemContext, problem),
            code=_coerce(CodeContext, code),
            telemetry=Telemetry(session_cap_sec=self.session_cap_sec),
        )
        self._reset(context)
        if context.is_complete():
            language = context.code.language if context.code else ""
            opening = self.messages.opening(context.problem.title, language)
        else:
            opening = self.messages.no_context()
        self._append("assistant", opening)
        log_event(
            "session_start",
            self.session_id,
            stage=self.stage.stage,
            outcome="complete_context" if context.is_complete() else "no_context",
        )
        return TurnResult(message=opening, stage=self.stage.stage, elapsed_minutes=0, source="template")

    def next_directive(self, elapsed: int, user_text: str, code_diff: Optional[str]) -> Tuple[str, str]:
        """Pick the interviewer directive for a non-wrap turn as ``(kind, text)``."""

        policies = self.prompt.policies
        if elapsed in policies.soft_time_checks_minutes and elapsed not in self._time_checks_done:
            return "time_check", self.messages.time_check(elapsed)
        if code_diff and policies.follow_up_on_diffs:
            return "diff_probe", self.messages.diff_probe(code_diff)
        if not self.context.is_complete():
            return "no_context", self.messages.no_context()
        if not user_text.strip():
            return "nudge_focus", self.messages.nudge_focus()
        return "stage_prompt", self.stage.prompt

    def build_messages(self, directive: str, user_entry: ConversationEntry) -> List[Dict[str, str]]:
        """Role-tagged messages for the model: system, few-shot, history, then the new user entry."""

        parts = [self.system_prompt()]
        problem = self.context.problem
        if problem and problem.title:
            text = f"Problem Context: {problem.title}"
            if problem.description:
                text += f"\n{problem.description}"
            parts.append(text)
        code = self.context.code
        if code and code.text:
            label = f"Code Context ({code.language})" if code.language else "Code Context"
            parts.append(f"{label}:\n{code.text}")
        parts.append(f"Current stage: {self.stage.stage}. Goal: {self.stage.goal}")
        parts.append(f"Interviewer guidance for this turn: {directive}")
        messages: List[Dict[str, str]] = [{"role": "system", "content": "\n\n".join(parts)}]
        messages.extend({"role": example.role, "content": example.content} for example in self.prompt.few_shot)
        messages.extend({"role": entry.role, "content": entry.content} for entry in self._history)
        messages.append({"role": user_entry.role, "content": user_entry.content})
        return messages

    def send_message(self, user_text: str, code_diff: Optional[str] = None) -> TurnResult:
        user_entry = ConversationEntry(role="user", content=user_text, timestamp=self._now())
        if code_diff:
            self.last_code_diff = code_diff
            if self.context.code is not None:
                self.context.code.last_diff = code_diff
        elapsed = self.elapsed_minutes()
        stage = self._refresh_stage(elapsed)

        if elapsed >= self.prompt.policies.wrap_up_at_minutes:
            wrap = resolve_stage(self.prompt.session_flow, WRAP)
            self._history.append(user_entry)
            self._append("assistant", wrap.prompt)
            log_event("turn", self.session_id, stage=wrap.stage, directive="wrap", source="template")
            return TurnResult(message=wrap.prompt, stage=wrap.stage, elapsed_minutes=elapsed, source="template")

        kind, directive = self.next_directive(elapsed, user_text, code_diff)
        if self._chat is None:
            reply, source = directive, "template"
        else:
            messages = self.build_messages(directive, user_entry)
            try:
                with span(self, "llm_call"):
                    reply = self._chat(messages).strip()
                if not reply:
                    raise ValueError("empty completion")
            except Exception as exc:  # noqa: BLE001
                logger.error("Interviewer model call failed session=%s: %s", self.session_id, exc)
                log_event(
                    "turn_failed",
                    self.session_id,
                    level=logging.WARNING,
                    stage=stage.stage,
                    directive=kind,
                    error=str(exc),
                )
                return TurnResult(
                    message=MODEL_ERROR_TEMPLATE.format(error=exc),
                    stage=stage.stage,
                    elapsed_minutes=elapsed,
                    source="error",
                    error=str(exc),
                )
            source = "model"

        if kind == "time_check":
            self._time_checks_done.add(elapsed)
        self._history.append(user_entry)
        self._append("assistant", reply)
        log_event("turn", self.session_id, stage=stage.stage, directive=kind, source=source)
        return TurnResult(message=reply, stage=stage.stage, elapsed_minutes=elapsed, source=source)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            stage=self.stage.stage,
            started_at=self.started_at,
            elapsed_minutes=self.elapsed_minutes(),
            context=self.context.model_copy(deep=True),
            history=list(self._history),
            last_code_diff=self.last_code_diff,
            events=list(self.events),
        )

    def generate_report(self):
        from session_reports import generate_report

        report = generate_report(self.prompt, self.snapshot(), now=self._now)
        log_event("report", self.session_id, stage=self.stage.stage, outcome=f"overall={report.overall_score}")
        return report


__all__ = ["ChatModel", "InterviewSession", "MODEL_ERROR_TEMPLATE"]
