from __future__ import annotations  # FastAPI server exposing the interview coach

import logging
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import hub_router, router
from config import CHAT_KEY, InterviewerPrompt, Settings, bind_model, default_route, load_prompt_config
from config import settings as default_settings
from extension_bridge import ExtensionHub, ExtensionPayload, HubMessage
from llm_gateway import chat_model
from services.sessions import SessionStore


logger = logging.getLogger(__name__)


def _session_delivery(store: SessionStore):  # Apply hub code updates to the matching live session
    def _deliver(message: HubMessage) -> None:
        if message.type != "code_update":  # Lifecycle messages are logged by the hub itself
            return
        session = store.load_session(message.session_id)
        if session is None:
            logger.info("Hub update for unknown session %s ignored", message.session_id)
            return
        updates = ExtensionPayload.model_validate(message.data).context_updates()
        if updates:
            session.update_context(updates)

    return _deliver


def create_app(prompt: Optional[InterviewerPrompt] = None, app_settings: Optional[Settings] = None) -> FastAPI:
    cfg = app_settings or default_settings
    prompt = prompt or load_prompt_config(cfg.PROMPT_CONFIG_PATH or None)

    app = FastAPI(title="Interview Coach API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"]
    )

    store = SessionStore()
    app.state.settings = cfg
    app.state.prompt = prompt
    app.state.sessions = store
    app.state.hub = ExtensionHub(_session_delivery(store), limit=cfg.HUB_QUEUE_LIMIT)

    if cfg.LLM_ENABLED:
        route = default_route(cfg, prompt.llm.cloud)
        bind_model(CHAT_KEY, chat_model(route))
        logger.info("Interviewer chat bound to %s (%s)", route.name, route.model)
    else:
        logger.info("LLM disabled; interviewer replies are scripted")

    app.include_router(router)
    app.include_router(hub_router)

    @app.get("/api/health")
    def health() -> Dict[str, object]:  # Liveness probe with a few counters
        return {
            "status": "ok",
            "sessions": len(store),
            "llm_enabled": cfg.LLM_ENABLED,
            "hub_session": app.state.hub.session_id,
            "extraction_interval_ms": cfg.EXTRACTION_INTERVAL_MS,
        }

    return app


app = create_app()
