import pytest

from flow_manager import InterviewSession
from flow_manager.stages import APPROACH_PROBE, EDGE_CASES, INTRO, WRAP


def _with_policies(prompt, **changes):
    return prompt.model_copy(update={"policies": prompt.policies.model_copy(update=changes)})


def _stage_prompt(prompt, name):
    return next(stage.prompt for stage in prompt.session_flow if stage.stage == name)


class RecordingChat:
    def __init__(self, replies=None):
        self.calls = []
        self.replies = list(replies or [])

    def __call__(self, messages):
        self.calls.append(messages)
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        return "Interesting. Tell me more."


def test_start_without_context_uses_no_context_template(prompt, clock):
    session = InterviewSession(prompt, now=clock)
    result = session.start_session()
    assert result.stage == INTRO
    assert result.message == prompt.message_templates.no_context
    assert result.message != _stage_prompt(prompt, INTRO)
    assert [entry.role for entry in session.history] == ["assistant"]


def test_start_with_context_renders_opening(prompt, clock, problem, code):
    session = InterviewSession(prompt, now=clock)
    result = session.start_session(problem=problem, code=code)
    assert "Two Sum" in result.message
    assert result.source == "template"
    assert session.context.is_complete()


def test_wrap_after_threshold_returns_wrap_prompt_verbatim(prompt, clock, problem, code):
    prompt = _with_policies(prompt, wrap_up_at_minutes=30)
    chat = RecordingChat()
    session = InterviewSession(prompt, chat=chat, now=clock)
    session.start_session(problem=problem, code=code)
    clock.advance(minutes=35)

    for text in ("I am done", "", "what about the edge cases?"):
        result = session.send_message(text)
        assert result.stage == WRAP
        assert result.message == _stage_prompt(prompt, WRAP)
        assert result.elapsed_minutes == 35
    assert chat.calls == []


def test_wrap_applies_even_without_context(prompt, clock):
    session = InterviewSession(_with_policies(prompt, wrap_up_at_minutes=30), now=clock)
    session.start_session()
    clock.advance(minutes=35)
    assert session.send_message("hello").message == _stage_prompt(prompt, WRAP)


def test_scripted_turn_follows_stage_prompt(prompt, clock, problem, code):
    session = InterviewSession(prompt, now=clock)
    session.start_session(problem=problem, code=code)
    clock.advance(minutes=4)
    result = session.send_message("I plan to use a hash map")
    assert result.stage == APPROACH_PROBE
    assert result.message == _stage_prompt(prompt, APPROACH_PROBE)
    assert len(session.history) == 3

    clock.advance(minutes=9)
    assert session.send_message("It runs in O(n)").stage == EDGE_CASES


def test_incomplete_context_turn_asks_for_context(prompt, clock):
    session = InterviewSession(prompt, now=clock)
    session.start_session()
    clock.advance(minutes=1)
    assert session.send_message("hi there").message == prompt.message_templates.no_context


def test_blank_input_nudges(prompt, clock, problem, code):
    session = InterviewSession(prompt, now=clock)
    session.start_session(problem=problem, code=code)
    assert session.send_message("   ").message == prompt.message_templates.nudge_focus


def test_blank_input_does_not_mask_diff_or_missing_context(prompt, clock, problem, code):
    session = InterviewSession(prompt, now=clock)
    session.start_session(problem=problem, code=code)
    probed = session.send_message("", code_diff="+ seen[x] = i\n")
    assert "+ seen[x] = i" in probed.message
    assert probed.message != prompt.message_templates.nudge_focus

    bare = InterviewSession(prompt, now=clock)
    bare.start_session()
    assert bare.send_message("").message == prompt.message_templates.no_context


def test_diff_probe_on_new_diff(prompt, clock, problem, code):
    session = InterviewSession(prompt, now=clock)
    session.start_session(problem=problem, code=code)
    result = session.send_message("I changed the loop", code_diff="+ seen[x] = i\n")
    assert "+ seen[x] = i" in result.message
    assert session.last_code_diff == "+ seen[x] = i\n"
    assert session.context.code.last_diff == "+ seen[x] = i\n"

    # The diff is only probed on the turn it arrives
    assert session.send_message("ok").message == _stage_prompt(prompt, INTRO)


def test_time_check_fires_once(prompt, clock, problem, code):
    session = InterviewSession(prompt, now=clock)
    session.start_session(problem=problem, code=code)
    clock.advance(minutes=10)
    first = session.send_message("still coding")
    assert "10 minutes" in first.message
    second = session.send_message("still coding")
    assert second.message == _stage_prompt(prompt, APPROACH_PROBE)


def test_model_failure_leaves_history_untouched(prompt, clock, problem, code):
    chat = RecordingChat([RuntimeError("boom"), "Back on track."])
    session = InterviewSession(prompt, chat=chat, now=clock)
    session.start_session(problem=problem, code=code)
    clock.advance(minutes=10)
    before = len(session.history)

    failed = session.send_message("my approach uses a hash map")
    assert failed.source == "error"
    assert failed.error == "boom"
    assert "boom" in failed.message
    assert len(session.history) == before
    assert session.events[-1]["ok"] is False

    # The time check was not consumed by the failed turn
    retry = session.send_message("my approach uses a hash map")
    assert retry.source == "model"
    assert "Quick time check" in chat.calls[-1][0]["content"]
    assert len(session.history) == before + 2


def test_empty_model_reply_is_a_failure(prompt, clock, problem, code):
    session = InterviewSession(prompt, chat=RecordingChat(["   "]), now=clock)
    session.start_session(problem=problem, code=code)
    result = session.send_message("hello")
    assert result.source == "error"
    assert len(session.history) == 1


def test_model_turn_builds_role_tagged_messages(prompt, clock, problem, code):
    chat = RecordingChat(["What is the complexity?"])
    session = InterviewSession(prompt, chat=chat, now=clock)
    session.start_session(problem=problem, code=code)
    result = session.send_message("I will use a hash map")

    assert result.source == "model"
    assert result.message == "What is the complexity?"
    messages = chat.calls[0]
    system = messages[0]
    assert system["role"] == "system"
    assert "Safety Guidelines:" in system["content"]
    assert "Problem Context: Two Sum" in system["content"]
    assert "Code Context (python):" in system["content"]
    assert "Current stage: intro." in system["content"]
    assert "Interviewer guidance for this turn:" in system["content"]
    assert messages[1]["content"] == prompt.few_shot[0].content
    assert messages[-1] == {"role": "user", "content": "I will use a hash map"}
    assert messages[-2]["role"] == "assistant"
    assert session.events[-1]["span"] == "llm_call"
    assert session.events[-1]["ok"] is True


def test_elapsed_minutes_floor_from_clock(prompt, clock):
    session = InterviewSession(prompt, now=clock)
    session.start_session()
    clock.advance(minutes=2, seconds=59)
    assert session.elapsed_minutes() == 2
    assert session.context.telemetry.elapsed_sec == 179


def test_update_context_completes_session(prompt, clock, problem, code):
    session = InterviewSession(prompt, now=clock)
    session.start_session()
    clock.advance(minutes=4)
    stage = session.update_context({"problem": problem, "code": {**code, "last_diff": "+x"}})
    assert stage.stage == APPROACH_PROBE
    assert session.context.is_complete()
    assert session.last_code_diff == "+x"


def test_update_context_rejects_invalid_values(prompt, clock):
    session = InterviewSession(prompt, now=clock)
    with pytest.raises(ValueError):
        session.update_context({"telemetry": {"elapsed_sec": -5}})


def test_snapshot_and_system_prompt(prompt, clock, problem, code):
    session = InterviewSession(prompt, now=clock, session_id="s-1")
    session.start_session(problem=problem, code=code)
    session.send_message("hello")
    snap = session.snapshot()
    assert snap.session_id == "s-1"
    assert len(snap.history) == 3
    assert snap.context.problem.title == "Two Sum"
    assert session.system_prompt().startswith(prompt.roles.system)
