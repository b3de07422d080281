import pytest
from fastapi.testclient import TestClient

from api_server import create_app
from config import CHAT_KEY, bind_model
from config.settings import Settings

PROBLEM = {"title": "Two Sum", "description": "Find two numbers adding up to target.", "difficulty": "easy"}
CODE = {"language": "python", "text": "def two_sum(nums, target):\n    seen = {}\n"}


@pytest.fixture
def client(prompt):
    app = create_app(prompt, Settings(_env_file=None, HUB_QUEUE_LIMIT=3))
    return TestClient(app)


def _start(client, **body):
    resp = client.post("/api/interview-sessions/start", json=body)
    assert resp.status_code == 200
    return resp.json()


def test_start_without_context(client, prompt):
    body = _start(client)
    assert body["stage"] == "intro"
    assert body["ui_messages"][0]["text"] == prompt.message_templates.no_context


def test_scripted_flow_and_reports(client, prompt):
    body = _start(client, problem=PROBLEM, code=CODE)
    session_id = body["session_id"]
    assert "Two Sum" in body["ui_messages"][0]["text"]

    turn = client.post(
        "/api/interview-sessions/turn",
        json={"session_id": session_id, "user_msg": "My approach uses a hash map"},
    )
    assert turn.status_code == 200
    assert turn.json()["source"] == "template"
    assert turn.json()["ui_messages"][0]["text"] == prompt.session_flow[0].prompt

    state = client.get(f"/api/interview-sessions/{session_id}/state").json()
    assert len(state["history"]) == 3
    assert state["context"]["problem"]["title"] == "Two Sum"

    system = client.get(f"/api/interview-sessions/{session_id}/system-prompt").json()
    assert "Safety Guidelines:" in system["system_prompt"]

    report = client.post("/api/interview-sessions/report", json={"session_id": session_id}).json()
    assert 0 <= report["overall_score"] <= 5
    assert report["strengths"] and report["improvements"]

    markdown = client.post("/api/interview-sessions/report/markdown", json={"session_id": session_id})
    assert markdown.status_code == 200
    assert f"interview-feedback-{session_id}.md" in markdown.headers["content-disposition"]
    assert markdown.text.startswith("# AI Interview Coach")

    pdf = client.post("/api/interview-sessions/report/pdf", json={"session_id": session_id})
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content[:4] == b"%PDF"


def test_context_update_route(client):
    session_id = _start(client)["session_id"]
    resp = client.post(
        "/api/interview-sessions/context",
        json={"session_id": session_id, "updates": {"problem": PROBLEM, "code": CODE}},
    )
    assert resp.status_code == 200
    assert resp.json() == {"session_id": session_id, "stage": "intro", "complete": True}

    bad = client.post(
        "/api/interview-sessions/context",
        json={"session_id": session_id, "updates": {"telemetry": {"elapsed_sec": -1}}},
    )
    assert bad.status_code == 422


def test_unknown_session_is_404(client):
    assert client.post("/api/interview-sessions/turn", json={"session_id": "nope"}).status_code == 404
    assert client.get("/api/interview-sessions/nope/state").status_code == 404
    assert client.post("/api/interview-sessions/report", json={"session_id": "nope"}).status_code == 404


def test_model_turn_and_failure(client):
    replies = ["What is the time complexity?"]

    def chat(messages):
        if not replies:
            raise RuntimeError("model down")
        return replies.pop(0)

    bind_model(CHAT_KEY, chat)
    session_id = _start(client, problem=PROBLEM, code=CODE)["session_id"]

    ok = client.post("/api/interview-sessions/turn", json={"session_id": session_id, "user_msg": "hash map"}).json()
    assert ok["source"] == "model"
    assert ok["ui_messages"][0]["text"] == "What is the time complexity?"

    failed = client.post("/api/interview-sessions/turn", json={"session_id": session_id, "user_msg": "O(n)"}).json()
    assert failed["source"] == "error"
    assert failed["error"] == "model down"
    state = client.get(f"/api/interview-sessions/{session_id}/state").json()
    assert len(state["history"]) == 3


def test_hub_queue_feeds_new_session(client):
    payload = {"problemTitle": "Two Sum", "editorCode": "def two_sum(nums, target): pass", "difficulty": "easy"}
    pushed = client.post("/api/hub/push", json=payload).json()
    assert pushed["accepted"] is True
    assert pushed["pending"] == 1
    assert pushed["payload"]["problemTitle"] == "Two Sum"
    assert client.post("/api/hub/push", json=payload).json()["accepted"] is False

    body = _start(client)
    assert "Two Sum" in body["ui_messages"][0]["text"]

    state = client.get(f"/api/interview-sessions/{body['session_id']}/state").json()
    assert state["context"]["code"]["text"] == payload["editorCode"]


def test_hub_push_during_session_updates_context(client):
    session_id = _start(client)["session_id"]
    html = (
        '<h1 data-cy="question-title">Valid Parentheses</h1>'
        '<div class="CodeMirror-code">def is_valid(s): return True</div>'
    )
    extracted = client.post("/api/hub/extract", json={"html": html, "url": "https://x.test/p"}).json()
    assert extracted["accepted"] is True
    assert extracted["session_id"] == session_id
    assert extracted["payload"]["problemTitle"] == "Valid Parentheses"

    state = client.get(f"/api/interview-sessions/{session_id}/state").json()
    assert state["context"]["problem"]["title"] == "Valid Parentheses"

    missing = client.post("/api/hub/extract", json={"html": "<p>nothing</p>"}).json()
    assert missing["accepted"] is False
    assert missing["payload"] is None


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["llm_enabled"] is False
    assert body["extraction_interval_ms"] == 2000


def test_store_stays_bounded_across_starts(client):
    app = client.app
    for _ in range(50):
        _start(client)
    assert len(app.state.sessions) == 1
    assert app.state.hub.session_id in app.state.sessions


def test_end_discards_session(client):
    session_id = _start(client, problem=PROBLEM, code=CODE)["session_id"]
    resp = client.post("/api/interview-sessions/end", json={"session_id": session_id})
    assert resp.status_code == 200
    assert resp.json() == {"session_id": session_id, "ended": True}
    assert len(client.app.state.sessions) == 0
    assert client.app.state.hub.session_id is None
    assert client.get(f"/api/interview-sessions/{session_id}/state").status_code == 404
    assert client.post("/api/interview-sessions/end", json={"session_id": session_id}).status_code == 404
