"""Configuration package for the interview coach services."""
from .llm import LlmRoute, default_route
from .prompt_config import InterviewerPrompt, SessionStage, load_default_prompt, load_prompt_config
from .registry import CHAT_KEY, bind_model, get_model, unbind_model
from .settings import Settings, settings

__all__ = [
    "LlmRoute",
    "default_route",
    "InterviewerPrompt",
    "SessionStage",
    "load_default_prompt",
    "load_prompt_config",
    "CHAT_KEY",
    "bind_model",
    "get_model",
    "unbind_model",
    "Settings",
    "settings",
]
