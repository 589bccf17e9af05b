from __future__ import annotations

import base64
import inspect
from pathlib import Path

import httpx
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from conftest import FakeLLM, make_settings
from synapse.app import create_app


class Overloaded(Exception):
    status_code = 503


def test_chat_returns_model_message(client: TestClient, fake_llm: FakeLLM) -> None:
    fake_llm.reply = "that sounds exhausting, totally valid."

    response = client.post(
        "/api/chat",
        json={
            "message": "my boss moved the deadline again",
            "history": [{"role": "ai", "content": "hey"}],
            "persona": {"name": "Rin", "type": "Sensitive Soul", "traits": ["empathetic"]},
        },
    )

    assert response.status_code == 200
    assert response.json() == {"message": "that sounds exhausting, totally valid."}
    call = fake_llm.calls[0]
    assert "The Validation Pal" in call["system_prompt"]
    assert "The user's name is Rin." in call["system_prompt"]
    assert call["history"] == [{"role": "ai", "content": "hey"}]


def test_each_chat_route_has_its_own_voice(client: TestClient, fake_llm: FakeLLM) -> None:
    client.post("/api/chat-burnout", json={"message": "so tired"})
    client.post("/api/chat-productive", json={"message": "plan my sprint"})

    assert "experiencing burnout" in fake_llm.calls[0]["system_prompt"]
    assert "Sparring Partner" in fake_llm.calls[1]["system_prompt"]


def test_custom_system_prompt_and_model_win(client: TestClient, fake_llm: FakeLLM) -> None:
    client.post("/api/chat-productive", json={"message": "x", "systemPrompt": "Be brief.", "modelName": "other"})

    assert fake_llm.calls[0]["system_prompt"] == "Be brief."
    assert fake_llm.calls[0]["model"] == "other"


def test_chat_failures_use_route_fallbacks(settings) -> None:
    client = TestClient(create_app(settings, llm=FakeLLM(error=RuntimeError("down"))))

    for route, fallback in [
        ("/api/chat", "..."),
        ("/api/chat-burnout", "..."),
        ("/api/chat-productive", "Let's try that again."),
    ]:
        response = client.post(route, json={"message": "hi"})
        assert response.status_code == 500
        assert response.json() == {"message": fallback}


def test_text_attachments_are_inlined(client: TestClient, fake_llm: FakeLLM) -> None:
    notes = base64.b64encode(b"photosynthesis makes sugar").decode()

    client.post(
        "/api/chat",
        json={
            "message": "summarise my notes",
            "attachments": [
                {"name": "notes.txt", "mimeType": "text/plain", "data": f"data:text/plain;base64,{notes}"},
                {"name": "diagram.png", "mimeType": "image/png", "data": "AAAA"},
            ],
        },
    )

    sent = fake_llm.calls[0]["message"]
    assert sent.startswith("summarise my notes")
    assert "[Attached file: notes.txt]\nphotosynthesis makes sugar" in sent
    assert "[Attached file: diagram.png (image/png)]" in sent


def test_chat_records_conversation_when_asked(client: TestClient, fake_llm: FakeLLM) -> None:
    fake_llm.reply = "hello there"

    first = client.post("/api/chat", json={"message": "hi", "conversationId": ""}).json()
    conversation_id = first["conversationId"]
    client.post("/api/chat", json={"message": "again", "conversationId": conversation_id})

    listed = client.get("/api/conversations").json()["conversations"]
    assert [c["id"] for c in listed] == [conversation_id]
    stored = client.get(f"/api/conversations/{conversation_id}").json()
    assert [m["content"] for m in stored["messages"]] == ["hi", "hello there", "again", "hello there"]
    assert stored["title"] == "hi"

    assert client.delete(f"/api/conversations/{conversation_id}").status_code == 200
    assert client.get(f"/api/conversations/{conversation_id}").status_code == 404


def test_breakdown_returns_tasks(client: TestClient, fake_llm: FakeLLM) -> None:
    fake_llm.reply = '```json\n[{"title": "Open editor", "duration": "2 min", "tag": "Quick Win"}]\n```'

    response = client.post("/api/breakdown", json={"task": "write thesis chapter"})

    assert response.status_code == 200
    [task] = response.json()
    assert task["title"] == "Open editor"
    assert task["duration"] == 2
    assert task["isAIGenerated"] is True
    assert task["isCompleted"] is False
    assert task["tags"] == ["Quick Win"]
    assert 'objective: "write thesis chapter"' in fake_llm.calls[0]["prompt"]
    assert fake_llm.calls[0]["json_mode"] is True


def test_breakdown_accepts_wrapped_task_list(client: TestClient, fake_llm: FakeLLM) -> None:
    fake_llm.reply = '{"tasks": [{"title": "Outline sections", "duration": "10 min", "tag": "Learning"}]}'

    response = client.post("/api/breakdown", json={"task": "write thesis chapter"})

    assert response.status_code == 200
    assert [t["title"] for t in response.json()] == ["Outline sections"]


def test_breakdown_without_api_key_fails(tmp_path: Path, fake_llm: FakeLLM) -> None:
    client = TestClient(create_app(make_settings(tmp_path, api_key=""), llm=fake_llm))

    response = client.post("/api/breakdown", json={"task": "anything"})

    assert response.status_code == 500
    assert response.json() == {"error": "API Key not configured on server."}
    assert fake_llm.calls == []


def test_breakdown_bad_model_reply_is_500(client: TestClient, fake_llm: FakeLLM) -> None:
    fake_llm.reply = "I can't do that"

    response = client.post("/api/breakdown", json={"task": "x"})

    assert response.status_code == 500
    assert "error" in response.json()


def test_generate_avatar(client: TestClient) -> None:
    assert client.post("/api/generate-avatar", json={"characterName": "  "}).status_code == 400

    body = client.post("/api/generate-avatar", json={"characterName": "Uncle Iroh"}).json()
    assert body["fallback"] is True
    assert "seed=Uncle%20Iroh" in body["image"]


def test_generate_persona_traits(client: TestClient, fake_llm: FakeLLM) -> None:
    fake_llm.reply = '{"name": "Iroh", "type": "Retired General", "interactionStyle": "Tea first."}'

    assert client.post("/api/generate-persona-traits", json={"characterName": ""}).status_code == 400
    body = client.post("/api/generate-persona-traits", json={"characterName": "iroh"}).json()

    assert body == {"name": "Iroh", "type": "Retired General", "interactionStyle": "Tea first."}
    assert fake_llm.calls[-1]["json_mode"] is True


def test_generate_persona_traits_maps_overload(settings) -> None:
    client = TestClient(create_app(settings, llm=FakeLLM(error=Overloaded("busy"))))

    response = client.post("/api/generate-persona-traits", json={"characterName": "iroh"})

    assert response.status_code == 503
    assert "overloaded" in response.json()["error"]


def test_parse_task_and_board(client: TestClient) -> None:
    body = client.post(
        "/api/parse-task", json={"text": "Submit report tomorrow at 3pm #work urgent", "addToBoard": True}
    ).json()

    assert body["parsed"]["dateText"] == "Tomorrow"
    assert body["parsed"]["time"] == "15:00"
    task_id = body["task"]["id"]

    tasks = client.get("/api/tasks").json()["tasks"]
    assert [t["title"] for t in tasks] == ["Submit report"]

    toggled = client.post(f"/api/tasks/{task_id}/toggle").json()
    assert toggled["isCompleted"] is True
    assert client.post("/api/tasks/nope/toggle").status_code == 404

    assert client.delete(f"/api/tasks/{task_id}").status_code == 200
    assert client.get("/api/tasks").json()["tasks"] == []


def test_mood_filters_task_list(client: TestClient) -> None:
    client.put(
        "/api/tasks",
        json=[
            {"id": "1", "title": "Read chapter", "duration": 25, "tags": ["Deep Work"], "priority": "high"},
            {"id": "2", "title": "Take notes", "duration": 15, "tags": ["Shallow Work"], "priority": "medium"},
            {"id": "3", "title": "Inbox", "duration": 10, "priority": "low"},
        ],
    )

    assert client.post("/api/mood", json={"moodState": "anxious"}).json()["moodState"] == "anxious"
    assert [t["id"] for t in client.get("/api/tasks").json()["tasks"]] == ["2"]
    assert len(client.get("/api/tasks", params={"include_hidden": True}).json()["tasks"]) == 3

    client.post("/api/mood", json={"moodState": "exhausted"})
    assert client.get("/api/tasks").json()["tasks"] == []

    assert client.post("/api/mood", json={"moodState": "grumpy"}).status_code == 400


def test_mood_energy_and_mode(client: TestClient) -> None:
    body = client.post("/api/mood", json={"energyLevel": 35, "mode": "burnout"}).json()

    assert body == {"moodState": "neutral", "energyLevel": 35, "mode": "burnout"}


def test_journal_with_reflection(client: TestClient, fake_llm: FakeLLM) -> None:
    fake_llm.reply = "Is there evidence for that?"

    entry = client.post("/api/journal", json={"emotion": "Worried", "trigger": "exam", "reflect": True}).json()

    assert entry["reflection"] == "Is there evidence for that?"
    assert "feeling worried" in fake_llm.calls[0]["message"]
    assert client.get("/api/journal").json()["entries"][0]["trigger"] == "exam"


def test_journal_reflection_falls_back(settings) -> None:
    client = TestClient(create_app(settings, llm=FakeLLM(error=RuntimeError("down"))))

    entry = client.post("/api/journal", json={"emotion": "Sad", "trigger": "rain", "reflect": True}).json()

    assert entry["reflection"].startswith("It's okay to feel this way.")


def test_safety_plan_round_trip(client: TestClient) -> None:
    initial = client.get("/api/safety-plan").json()
    assert initial["warningSigns"] == []
    assert initial["hotlines"][0]["phone"] == "988"

    client.put("/api/safety-plan", json={"warningSigns": ["no appetite"], "emergencyContacts": [{"name": "Sam", "phone": "1"}]})

    saved = client.get("/api/safety-plan").json()
    assert saved["warningSigns"] == ["no appetite"]
    assert saved["emergencyContacts"] == [{"name": "Sam", "phone": "1"}]


def test_garden_routes(client: TestClient) -> None:
    assert client.get("/api/garden").json()["stage"]["name"] == "Seed"

    body = client.post("/api/garden/points", json={"type": "breathing", "points": 25}).json()
    assert body["totalWellnessPoints"] == 25
    assert body["stage"]["name"] == "Sprout"

    assert client.post("/api/garden/points", json={"type": "nap", "points": 5}).status_code == 400
    assert client.post("/api/garden/rest").status_code == 200
    assert client.post("/api/garden/rest").status_code == 200
    assert client.post("/api/garden/rest").status_code == 409


def test_calendar_token_and_sync(settings, fake_llm: FakeLLM) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "evt-9"})

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = TestClient(create_app(settings, llm=fake_llm, calendar_http=http))
    sync = {"title": "Run", "date": "2026-10-19", "time": "07:00", "duration": 30}

    assert client.get("/api/calendar/status").json()["connected"] is False
    assert client.post("/api/calendar/sync-task", json=sync).status_code == 401

    client.post("/api/calendar/token", json={"access_token": "tok", "expires_in": 3600})
    assert client.get("/api/calendar/status").json()["connected"] is True
    assert client.post("/api/calendar/sync-task", json=sync).json() == {"success": True, "eventId": "evt-9"}
    assert client.post("/api/calendar/sync-task", json={**sync, "time": "7am"}).status_code == 400

    client.delete("/api/calendar/token")
    assert client.get("/api/calendar/status").json()["connected"] is False


def test_saved_profile_personalises_chat(client: TestClient, fake_llm: FakeLLM) -> None:
    assert client.get("/api/profile").status_code == 404

    saved = client.put("/api/profile", json={"name": "Sora", "type": "Action Taker", "traits": ["direct"]})
    assert saved.status_code == 200
    assert saved.json()["avatarUrl"].startswith("https://api.dicebear.com/")

    client.post("/api/chat-productive", json={"message": "plan my day"})

    assert "The user's name is Sora." in fake_llm.calls[0]["system_prompt"]
    assert fake_llm.calls[0]["persona"]["name"] == "Sora"

    assert client.delete("/api/profile").json() == {"success": True}
    assert client.get("/api/profile").status_code == 404


def test_blank_profile_name_is_rejected(client: TestClient) -> None:
    assert client.put("/api/profile", json={"name": " "}).status_code == 400


def test_calendar_rejection_keeps_the_result_shape(settings, fake_llm: FakeLLM) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "invalid_token"})

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = TestClient(create_app(settings, llm=fake_llm, calendar_http=http))
    client.post("/api/calendar/token", json={"access_token": "tok", "expires_in": 3600})

    response = client.post(
        "/api/calendar/sync-task",
        json={"title": "Run", "date": "2026-10-19", "time": "07:00", "duration": 30},
    )

    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "invalid_token"}


def test_handlers_run_in_the_threadpool(settings, fake_llm: FakeLLM) -> None:
    app = create_app(settings, llm=fake_llm)
    api_routes = [r for r in app.routes if isinstance(r, APIRoute) and r.path.startswith("/api/")]

    assert api_routes
    assert [r.path for r in api_routes if inspect.iscoroutinefunction(r.endpoint)] == []
