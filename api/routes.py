"""FastAPI routes for interview session control and the extension hub."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response

from api.schemas import (
    ApiResp,
    ContextReq,
    ContextResp,
    EndResp,
    ExtractReq,
    HubResp,
    ReportReq,
    StartReq,
    SystemPromptResp,
    TurnReq,
    UIMessage,
)
from config.registry import CHAT_KEY, get_model
from extension_bridge import ExtensionHub, ExtensionPayload, extract_page
from flow_manager import ChatModel, InterviewSession, SessionSnapshot, TurnResult
from services.sessions import SessionStore
from session_reports import Report, render_report_pdf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview-sessions")
hub_router = APIRouter(prefix="/api/hub")


def _store(request: Request) -> SessionStore:
    return request.app.state.sessions


def _hub(request: Request) -> ExtensionHub:
    return request.app.state.hub


def _chat_model() -> Optional[ChatModel]:
    try:
        return get_model(CHAT_KEY)
    except KeyError:
        return None


def _session_or_404(request: Request, session_id: str) -> InterviewSession:
    session = _store(request).load_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="session not found")
    return session


def _resp(session: InterviewSession, result: TurnResult) -> ApiResp:
    return ApiResp(
        session_id=session.session_id,
        stage=result.stage,
        elapsed_minutes=result.elapsed_minutes,
        ui_messages=[UIMessage(text=result.message)],
        source=result.source,
        error=result.error,
    )


def _end_session(request: Request, session_id: str) -> bool:  # Drop a session and release the hub if it was live
    hub = _hub(request)
    if hub.session_id == session_id:
        hub.end_session()
    return _store(request).discard(session_id)


@router.post("/start", response_model=ApiResp)
def start(req: StartReq, request: Request) -> ApiResp:
    app_state = request.app.state
    hub = _hub(request)
    if hub.session_id is not None:
        _end_session(request, hub.session_id)
    session = _store(request).new_session(
        app_state.prompt,
        chat=_chat_model(),
        session_cap_sec=app_state.settings.SESSION_CAP_SEC,
    )
    # Payloads queued by the hub land in the fresh context before the opening line
    hub.start_session(session.session_id)
    result = session.start_session(
        problem=req.problem or session.context.problem,
        code=req.code or session.context.code,
    )
    return _resp(session, result)


@router.post("/turn", response_model=ApiResp)
def turn(req: TurnReq, request: Request) -> ApiResp:
    session = _session_or_404(request, req.session_id)
    result = session.send_message(req.user_msg, code_diff=req.code_diff)
    return _resp(session, result)


@router.post("/end", response_model=EndResp)
def end(req: ReportReq, request: Request) -> EndResp:
    _session_or_404(request, req.session_id)
    return EndResp(session_id=req.session_id, ended=_end_session(request, req.session_id))


@router.post("/context", response_model=ContextResp)
def update_context(req: ContextReq, request: Request) -> ContextResp:
    session = _session_or_404(request, req.session_id)
    try:
        stage = session.update_context(req.updates)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return ContextResp(session_id=session.session_id, stage=stage.stage, complete=session.context.is_complete())


@router.get("/{session_id}/state", response_model=SessionSnapshot)
def session_state(session_id: str, request: Request) -> SessionSnapshot:
    return _session_or_404(request, session_id).snapshot()


@router.get("/{session_id}/system-prompt", response_model=SystemPromptResp)
def system_prompt(session_id: str, request: Request) -> SystemPromptResp:
    session = _session_or_404(request, session_id)
    return SystemPromptResp(session_id=session.session_id, system_prompt=session.system_prompt())


@router.post("/report", response_model=Report)
def report(req: ReportReq, request: Request) -> Report:
    return _session_or_404(request, req.session_id).generate_report()


@router.post("/report/markdown")
def report_markdown(req: ReportReq, request: Request) -> Response:
    result = _session_or_404(request, req.session_id).generate_report()
    headers = {"Content-Disposition": f'attachment; filename="interview-feedback-{result.session_id}.md"'}
    return Response(content=result.markdown, media_type="text/markdown; charset=utf-8", headers=headers)


@router.post("/report/pdf")
def report_pdf(req: ReportReq, request: Request) -> Response:
    result = _session_or_404(request, req.session_id).generate_report()
    payload = render_report_pdf(result)
    headers = {"Content-Disposition": f'attachment; filename="interview-feedback-{result.session_id}.pdf"'}
    return Response(content=payload, media_type="application/pdf", headers=headers)


def _hub_resp(hub: ExtensionHub, accepted: bool, payload: Optional[ExtensionPayload] = None) -> HubResp:
    return HubResp(
        accepted=accepted,
        session_id=hub.session_id,
        pending=hub.pending,
        dropped=hub.dropped,
        payload=payload,
    )


@hub_router.post("/push", response_model=HubResp)
def hub_push(payload: ExtensionPayload, request: Request) -> HubResp:
    hub = _hub(request)
    return _hub_resp(hub, hub.handle_payload(payload), payload)


@hub_router.post("/extract", response_model=HubResp)
def hub_extract(req: ExtractReq, request: Request) -> HubResp:
    hub = _hub(request)
    payload = extract_page(req.html, req.url)
    if payload is None:
        logger.info("Extraction found no problem title for %s", req.url or "<inline>")
        return _hub_resp(hub, False)
    return _hub_resp(hub, hub.handle_payload(payload), payload)
