"""Relay between the browser extension and the interview session.

Payloads arriving before a session starts wait in a bounded queue that drops
its oldest entry when full. Outgoing messages are delivered strictly one at a
time; a failed delivery is logged and dropped.
"""
from __future__ import annotations

import logging
import random
import string
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from observability import log_event

from .payload import ExtensionPayload

logger = logging.getLogger(__name__)

HubMessageType = Literal["code_update", "session_start", "session_end"]
DEFAULT_QUEUE_LIMIT = 20
PENDING_SESSION = "-"


class HubMessage(BaseModel):  # Message forwarded to the hub consumer
    type: HubMessageType
    session_id: str = Field(alias="sessionId")
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, frozen=True)


def generate_session_id(now: Callable[[], float] = time.time) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"session-{int(now() * 1000)}-{suffix}"


class ExtensionHub:
    def __init__(self, deliver: Callable[[HubMessage], None], *, limit: int = DEFAULT_QUEUE_LIMIT) -> None:
        if limit < 1:
            raise ValueError("hub queue limit must be at least 1")
        self._deliver = deliver
        self.limit = limit
        self.session_id: Optional[str] = None
        self.dropped = 0
        self._pending: Deque[ExtensionPayload] = deque(maxlen=limit)
        self._outbox: Deque[HubMessage] = deque()
        self._in_flight = False
        self._last: Optional[ExtensionPayload] = None

    @property
    def active(self) -> bool:
        return self.session_id is not None

    @property
    def pending(self) -> int:
        return len(self._pending)

    def handle_payload(self, payload: ExtensionPayload) -> bool:
        """Queue or forward ``payload``; returns False when it repeats the previous one."""

        if not payload.changed_from(self._last):
            return False
        self._last = payload
        if not self.active:
            if len(self._pending) == self.limit:
                self.dropped += 1
                log_event("hub_dropped", PENDING_SESSION, level=logging.WARNING, dropped=self.dropped)
            self._pending.append(payload)
            return True
        self._send("code_update", payload.model_dump(by_alias=True))
        return True

    def start_session(self, session_id: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> str:
        self.session_id = session_id or generate_session_id()
        log_event("hub_session_start", self.session_id, messages=len(self._pending))
        while self._pending:
            queued = self._pending.popleft()
            self._send("code_update", queued.model_dump(by_alias=True))
        self._send("session_start", dict(data or {}))
        return self.session_id

    def end_session(self, data: Optional[Dict[str, Any]] = None) -> None:
        if self.session_id is not None:
            self._send("session_end", dict(data or {}))
            log_event("hub_session_end", self.session_id)
        self.session_id = None
        self._pending.clear()
        self._last = None

    def _send(self, kind: HubMessageType, data: Dict[str, Any]) -> None:
        if self.session_id is None:
            raise RuntimeError(f"cannot send {kind} without an active hub session")
        self._outbox.append(HubMessage(type=kind, session_id=self.session_id, data=data))
        self._drain()

    def _drain(self) -> None:
        if self._in_flight:
            return
        self._in_flight = True
        try:
            while self._outbox:
                message = self._outbox.popleft()
                try:
                    self._deliver(message)
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Hub delivery failed for %s: %s", message.type, exc)
                    log_event(
                        "hub_delivery_failed",
                        message.session_id,
                        level=logging.WARNING,
                        type=message.type,
                        error=str(exc),
                    )
        finally:
            self._in_flight = False


__all__ = ["DEFAULT_QUEUE_LIMIT", "ExtensionHub", "HubMessage", "generate_session_id"]
