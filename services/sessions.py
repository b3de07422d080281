"""In-memory registry of live interview sessions."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List, Optional

from config.prompt_config import InterviewerPrompt
from flow_manager import ChatModel, InterviewSession
from observability import log_event


class SessionStore:
    """Sessions keyed by id; owned by the application, never module-global."""

    def __init__(self) -> None:
        self._sessions: Dict[str, InterviewSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def new_session(
        self,
        prompt: InterviewerPrompt,
        *,
        chat: Optional[ChatModel] = None,
        now: Optional[Callable[[], datetime]] = None,
        session_cap_sec: int = 1500,
        session_id: Optional[str] = None,
    ) -> InterviewSession:
        """Create and register a new session with a generated identifier."""

        kwargs = {"now": now} if now is not None else {}
        session = InterviewSession(
            prompt,
            chat=chat,
            session_id=session_id,
            session_cap_sec=session_cap_sec,
            **kwargs,
        )
        self._sessions[session.session_id] = session
        log_event("session_created", session.session_id, outcome="scripted" if chat is None else "model")
        return session

    def load_session(self, session_id: str) -> Optional[InterviewSession]:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def session_ids(self) -> List[str]:
        return list(self._sessions)


__all__ = ["SessionStore"]
