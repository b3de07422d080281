import pytest

from observability import log_event, span
from observability.logger import _format_human


class State:
    def __init__(self):
        self.events = []


def test_span_records_success_and_failure():
    state = State()
    with span(state, "llm_call"):
        pass
    with pytest.raises(RuntimeError):
        with span(state, "llm_call"):
            raise RuntimeError("boom")
    assert [event["ok"] for event in state.events] == [True, False]
    assert all(event["span"] == "llm_call" and event["ms"] >= 0 for event in state.events)


def test_format_human_includes_known_fields_only():
    line = _format_human({"kind": "turn", "session_id": "s-1", "stage": "intro", "source": "model", "secret": "x"})
    assert line == "session=s-1 kind=turn stage=intro source=model"


def test_log_event_accepts_arbitrary_fields():
    log_event("turn", "s-1", stage="intro", extra={"nested": True})
