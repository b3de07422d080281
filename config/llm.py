from __future__ import annotations  # LLM route configuration

from typing import Dict, Optional, TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:  # pragma: no cover
    from .prompt_config import LlmProvider
    from .settings import Settings


class LlmRoute(BaseModel):  # Chat-completion endpoint configuration
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    api_key_env: str | None = None
    max_tokens: int = Field(default=500, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    extra_headers: Dict[str, str] = Field(default_factory=dict)


def default_route(settings: "Settings", provider: Optional["LlmProvider"] = None) -> LlmRoute:  # Route from settings, model from prompt config
    model = settings.LLM_MODEL
    api_key_env = settings.LLM_API_KEY_ENV
    name = settings.LLM_MODE
    if provider is not None:
        model = provider.model or model
        api_key_env = provider.api_key_env or api_key_env
        name = f"{settings.LLM_MODE}:{provider.provider}"
    return LlmRoute(
        name=name,
        base_url=settings.LLM_BASE_URL,
        endpoint=settings.LLM_ENDPOINT,
        model=model,
        timeout_s=settings.LLM_TIMEOUT_S,
        api_key_env=api_key_env,
        max_tokens=settings.LLM_MAX_TOKENS,
        temperature=settings.LLM_TEMPERATURE,
        extra_headers={"HTTP-Referer": settings.LLM_REFERER, "X-Title": settings.LLM_TITLE},
    )


__all__ = ["LlmRoute", "default_route"]
