import pytest

from config import CHAT_KEY, bind_model, default_route, get_model, unbind_model
from config.settings import Settings


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.SESSION_CAP_SEC == 1500
    assert settings.HUB_QUEUE_LIMIT == 20
    assert settings.EXTRACTION_INTERVAL_MS == 2000
    assert settings.LLM_ENDPOINT == "/chat/completions"


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("LLM_ENABLED", "true")
    monkeypatch.setenv("HUB_QUEUE_LIMIT", "5")
    settings = Settings(_env_file=None)
    assert settings.LLM_ENABLED is True
    assert settings.HUB_QUEUE_LIMIT == 5


def test_registry_bind_and_retrieve():
    marker = object()
    bind_model(CHAT_KEY, lambda *_: marker)
    assert get_model(CHAT_KEY)() is marker
    unbind_model(CHAT_KEY)
    with pytest.raises(KeyError):
        get_model(CHAT_KEY)


def test_default_route_from_settings_and_provider(prompt):
    settings = Settings(_env_file=None, LLM_TIMEOUT_S=12.5)
    route = default_route(settings, prompt.llm.cloud)
    assert route.name == "cloud:openrouter"
    assert route.model == "openai/gpt-4o-mini"
    assert route.api_key_env == "OPENROUTER_API_KEY"
    assert route.timeout_s == 12.5
    assert route.extra_headers["X-Title"] == settings.LLM_TITLE

    bare = default_route(settings)
    assert bare.name == "cloud"
    assert bare.model == settings.LLM_MODEL
