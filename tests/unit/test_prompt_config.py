import json
import logging

from config.prompt_config import CANONICAL_STAGES, load_default_prompt, load_prompt_config


def test_bundled_defaults():
    prompt = load_default_prompt()
    assert prompt.stage_names() == list(CANONICAL_STAGES)
    assert prompt.policies.edge_cases_after_minutes == 12
    assert prompt.policies.soft_time_checks_minutes == [10, 20]
    assert prompt.policies.wrap_up_at_minutes == 22
    assert prompt.llm.cloud.provider == "openrouter"
    assert len(prompt.rubric.dimensions) == 6


def test_load_without_path_returns_defaults():
    assert load_prompt_config() == load_default_prompt()
    assert load_prompt_config("") == load_default_prompt()


def test_partial_override_is_deep_merged(tmp_path):
    path = tmp_path / "prompt.json"
    path.write_text(json.dumps({"policies": {"wrap_up_at_minutes": 30}, "roles": {"safety": "Be kind."}}))
    prompt = load_prompt_config(path)
    assert prompt.policies.wrap_up_at_minutes == 30
    assert prompt.policies.edge_cases_after_minutes == 12
    assert prompt.roles.safety == "Be kind."
    assert prompt.roles.system == load_default_prompt().roles.system
    assert prompt.stage_names() == list(CANONICAL_STAGES)


def test_invalid_json_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "prompt.json"
    path.write_text("{not json")
    with caplog.at_level(logging.WARNING):
        prompt = load_prompt_config(path)
    assert prompt == load_default_prompt()
    assert "using defaults" in caplog.text


def test_missing_file_and_invalid_values_fall_back(tmp_path):
    assert load_prompt_config(tmp_path / "absent.json") == load_default_prompt()

    path = tmp_path / "prompt.json"
    path.write_text(json.dumps({"rubric": {"dimensions": []}}))
    assert load_prompt_config(path) == load_default_prompt()

    path.write_text(json.dumps(["not", "an", "object"]))
    assert load_prompt_config(path) == load_default_prompt()


def test_missing_stages_are_reported(tmp_path, caplog):
    path = tmp_path / "prompt.json"
    flow = [{"stage": "intro", "goal": "g", "prompt": "p"}]
    path.write_text(json.dumps({"session_flow": flow}))
    with caplog.at_level(logging.WARNING):
        prompt = load_prompt_config(path)
    assert prompt.stage_names() == ["intro"]
    assert "missing stages" in caplog.text
