"""
Synapse - HTTP JSON API (FastAPI)
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from synapse.breakdown import parse_breakdown_response
from synapse.config import Settings, load_settings
from synapse.conversations import ConversationStore
from synapse.garden import Garden
from synapse.gcal import CALENDAR_SCOPE, CalendarClient, TokenStore
from synapse.journal import (
    DEFAULT_HOTLINES,
    GROUNDING_STRATEGIES,
    REFLECTION_FALLBACK,
    Journal,
    SafetyPlan,
    reflection_prompt,
)
from synapse.llm import LLMClient, error_status
from synapse.persona import ProfileStore, fallback_avatar_url, parse_persona_traits, persona_error
from synapse.prompts import (
    breakdown_prompt,
    burnout_prompt,
    persona_traits_prompt,
    sparring_partner_prompt,
    validation_pal_prompt,
)
from synapse.storage import JsonStore
from synapse.task_parser import parse_task_input
from synapse.tasks import Task, TaskBoard

logger = logging.getLogger(__name__)

MAX_INLINE_ATTACHMENT_CHARS = 8000


# --- Request models ---

class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatTurn(BaseModel):
    role: str = "user"
    content: str = ""


class Attachment(CamelModel):
    name: str = ""
    mime_type: str = Field("", alias="mimeType")
    data: str = ""


class ChatRequest(CamelModel):
    message: str = ""
    history: List[ChatTurn] = []
    persona: Optional[Dict[str, Any]] = None
    system_prompt: Optional[str] = Field(None, alias="systemPrompt")
    llm_model: Optional[str] = Field(None, alias="modelName")
    attachments: List[Attachment] = []
    conversation_id: Optional[str] = Field(None, alias="conversationId")


class BreakdownRequest(BaseModel):
    task: str = ""


class CharacterRequest(CamelModel):
    character_name: str = Field("", alias="characterName")


class ParseTaskRequest(CamelModel):
    text: str
    add_to_board: bool = Field(False, alias="addToBoard")


class TaskIn(CamelModel):
    id: Optional[str] = None
    title: str
    duration: int = 25
    is_completed: bool = Field(False, alias="isCompleted")
    is_ai_generated: bool = Field(False, alias="isAIGenerated")
    tags: List[str] = []
    priority: Optional[str] = None
    energy: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None


class MoodRequest(CamelModel):
    mood_state: Optional[str] = Field(None, alias="moodState")
    energy_level: Optional[int] = Field(None, alias="energyLevel")
    mode: Optional[str] = None


class JournalRequest(CamelModel):
    emotion: str
    trigger: str = ""
    reflection: str = ""
    reflect: bool = False


class SafetyPlanRequest(CamelModel):
    warning_signs: List[str] = Field([], alias="warningSigns")
    coping_strategies: List[str] = Field([], alias="copingStrategies")
    emergency_contacts: List[Dict[str, Any]] = Field([], alias="emergencyContacts")


class ProfileRequest(CamelModel):
    name: str
    type: str = ""
    traits: List[str] = []
    language: str = "en"
    avatar_url: str = Field("", alias="avatarUrl")


class GardenPointsRequest(BaseModel):
    type: str
    points: int


class TokenRequest(BaseModel):
    access_token: str
    expires_in: int


class SyncTaskRequest(CamelModel):
    title: str
    day: date = Field(..., alias="date")
    time: str
    duration: int = 25


# --- Helpers ---

def _decode_attachment(attachment: Attachment) -> Optional[str]:
    data = attachment.data
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def message_with_attachments(message: str, attachments: List[Attachment]) -> str:
    """Inline text attachments; other files are referenced by name only."""
    parts = [message]
    for attachment in attachments:
        label = attachment.name or "attachment"
        text = _decode_attachment(attachment) if attachment.mime_type.startswith("text/") else None
        if text is not None:
            parts.append(f"[Attached file: {label}]\n{text[:MAX_INLINE_ATTACHMENT_CHARS]}")
        else:
            parts.append(f"[Attached file: {label} ({attachment.mime_type or 'unknown type'})]")
    return "\n\n".join(p for p in parts if p)


def _error(content: Any, status: int = 500) -> JSONResponse:
    return JSONResponse(content, status_code=status)


# --- App ---

def create_app(settings: Optional[Settings] = None, llm: Any = None, calendar_http: Any = None) -> FastAPI:
    settings = settings or load_settings()
    store = JsonStore(settings.data_dir)
    board = TaskBoard(store)
    conversations = ConversationStore(store)
    journal = Journal(store)
    safety_plan = SafetyPlan(store)
    garden = Garden(store)
    tokens = TokenStore(store)
    profiles = ProfileStore(store)
    calendar = CalendarClient(tokens, timezone=settings.timezone, http=calendar_http)

    app = FastAPI(title="Synapse")
    app.state.settings = settings
    app.state.llm = llm

    def get_llm() -> Any:
        if app.state.llm is None:
            app.state.llm = LLMClient(settings)
        return app.state.llm

    def persona_for(req: ChatRequest) -> Optional[Dict[str, Any]]:
        return req.persona or profiles.load()

    def run_chat(req: ChatRequest, default_prompt: str, fallback: str, label: str):
        try:
            message = message_with_attachments(req.message, req.attachments)
            reply = get_llm().chat(
                message,
                history=[t.model_dump() for t in req.history],
                persona=persona_for(req),
                system_prompt=req.system_prompt or default_prompt,
                model=req.llm_model,
            )
        except Exception:
            logger.exception("%s error", label)
            return _error({"message": fallback})

        body: Dict[str, Any] = {"message": reply}
        if req.conversation_id is not None:
            conversation = conversations.append(
                req.conversation_id or None,
                {"role": "user", "content": req.message},
                {"role": "ai", "content": reply},
            )
            body["conversationId"] = conversation["id"]
        return body

    # --- Companion chat ---

    @app.post("/api/chat")
    def chat(req: ChatRequest):
        return run_chat(req, validation_pal_prompt(persona_for(req)), "...", "chat")

    @app.post("/api/chat-burnout")
    def chat_burnout(req: ChatRequest):
        return run_chat(req, burnout_prompt(persona_for(req)), "...", "burnout chat")

    @app.post("/api/chat-productive")
    def chat_productive(req: ChatRequest):
        return run_chat(req, sparring_partner_prompt(persona_for(req)), "Let's try that again.", "productive chat")

    # --- Breakdown ---

    @app.post("/api/breakdown")
    def breakdown(req: BreakdownRequest):
        try:
            if not settings.has_api_key:
                logger.error("API key is missing in server environment variables")
                raise RuntimeError("API Key not configured on server.")
            logger.info("generating tasks for: %s", req.task)
            reply = get_llm().complete(breakdown_prompt(req.task), json_mode=True)
            tasks = parse_breakdown_response(reply)
        except Exception as exc:
            logger.exception("breakdown error")
            return _error({"error": str(exc) or "Failed to break down task"})
        return [t.to_dict() for t in tasks]

    # --- Persona ---

    @app.post("/api/generate-avatar")
    def generate_avatar(req: CharacterRequest):
        name = req.character_name.strip()
        if not name:
            return _error({"error": "Character name is required"}, 400)
        # text-only provider: always the generated illustration fallback
        return {"image": fallback_avatar_url(name), "success": False, "fallback": True}

    @app.post("/api/generate-persona-traits")
    def generate_persona_traits(req: CharacterRequest):
        name = req.character_name.strip()
        if not name:
            return _error({"error": "Character name is required"}, 400)
        try:
            reply = get_llm().complete(persona_traits_prompt(name), json_mode=True)
        except Exception as exc:
            logger.exception("generate persona error")
            status, message = persona_error(error_status(exc), str(exc))
            return _error({"error": message}, status)
        return parse_persona_traits(reply, name)

    @app.get("/api/profile")
    def get_profile():
        profile = profiles.load()
        if profile is None:
            return _error({"error": "No profile yet"}, 404)
        return profile

    @app.put("/api/profile")
    def put_profile(req: ProfileRequest):
        try:
            return profiles.save(req.model_dump(by_alias=True))
        except ValueError as exc:
            return _error({"error": str(exc)}, 400)

    @app.delete("/api/profile")
    def delete_profile():
        profiles.clear()
        return {"success": True}

    # --- Tasks ---

    @app.post("/api/parse-task")
    def parse_task(req: ParseTaskRequest):
        parsed = parse_task_input(req.text)
        body = {"parsed": parsed.to_dict()}
        if req.add_to_board:
            body["task"] = board.add(Task.from_parsed(parsed)).to_dict()
        return body

    @app.get("/api/tasks")
    def list_tasks(include_hidden: bool = False):
        tasks = board.tasks() if include_hidden else board.visible_tasks()
        return {"moodState": board.mood(), "tasks": [t.to_dict() for t in tasks]}

    @app.post("/api/tasks")
    def add_task(req: TaskIn):
        task = Task.from_dict(req.model_dump(by_alias=True))
        return board.add(task).to_dict()

    @app.put("/api/tasks")
    def replace_tasks(req: List[TaskIn]):
        tasks = [Task.from_dict(t.model_dump(by_alias=True)) for t in req]
        board.set_tasks(tasks)
        return {"tasks": [t.to_dict() for t in tasks]}

    @app.post("/api/tasks/{task_id}/toggle")
    def toggle_task(task_id: str):
        task = board.toggle(task_id)
        if task is None:
            return _error({"error": "Task not found"}, 404)
        return task.to_dict()

    @app.delete("/api/tasks/{task_id}")
    def delete_task(task_id: str):
        if not board.delete(task_id):
            return _error({"error": "Task not found"}, 404)
        return {"deleted": task_id}

    @app.get("/api/mood")
    def get_mood():
        return {"moodState": board.mood(), "energyLevel": board.energy_level(), "mode": board.mode()}

    @app.post("/api/mood")
    def set_mood(req: MoodRequest):
        try:
            if req.mood_state is not None:
                board.set_mood(req.mood_state)
            if req.energy_level is not None:
                board.set_energy_level(req.energy_level)
            if "mode" in req.model_fields_set:
                board.set_mode(req.mode)
        except ValueError as exc:
            return _error({"error": str(exc)}, 400)
        return get_mood()

    # --- Conversations ---

    @app.get("/api/conversations")
    def list_conversations():
        return {"conversations": conversations.list()}

    @app.get("/api/conversations/{conversation_id}")
    def get_conversation(conversation_id: str):
        conversation = conversations.get(conversation_id)
        if conversation is None:
            return _error({"error": "Conversation not found"}, 404)
        return conversation

    @app.delete("/api/conversations/{conversation_id}")
    def delete_conversation(conversation_id: str):
        if not conversations.delete(conversation_id):
            return _error({"error": "Conversation not found"}, 404)
        return {"deleted": conversation_id}

    # --- Journal & safety plan ---

    @app.get("/api/journal")
    def list_journal(on: Optional[date] = None):
        return {"entries": journal.entries(on)}

    @app.post("/api/journal")
    def add_journal(req: JournalRequest):
        reflection = req.reflection
        if req.reflect and not reflection:
            try:
                reflection = get_llm().chat(reflection_prompt(req.emotion, req.trigger))
            except Exception:
                logger.exception("journal reflection error")
                reflection = REFLECTION_FALLBACK
        return journal.add(req.emotion, req.trigger, reflection)

    @app.get("/api/safety-plan")
    def get_safety_plan():
        return {**safety_plan.load(), "hotlines": DEFAULT_HOTLINES, "groundingStrategies": GROUNDING_STRATEGIES}

    @app.put("/api/safety-plan")
    def put_safety_plan(req: SafetyPlanRequest):
        return safety_plan.save(req.model_dump(by_alias=True))

    # --- Growth garden ---

    @app.get("/api/garden")
    def get_garden():
        return garden.summary()

    @app.post("/api/garden/points")
    def add_garden_points(req: GardenPointsRequest):
        try:
            garden.add_points(req.type, req.points)
        except ValueError as exc:
            return _error({"error": str(exc)}, 400)
        return garden.summary()

    @app.post("/api/garden/rest")
    def take_rest_day():
        if not garden.take_rest_day():
            return _error({"error": "No rest days left this week"}, 409)
        return garden.summary()

    # --- Google Calendar ---

    @app.post("/api/calendar/token")
    def save_token(req: TokenRequest):
        data = tokens.save(req.access_token, req.expires_in)
        return {"connected": True, "expiresAt": data["expires_at"]}

    @app.get("/api/calendar/status")
    def calendar_status():
        return {"connected": tokens.is_connected(), "scope": CALENDAR_SCOPE}

    @app.delete("/api/calendar/token")
    def disconnect_calendar():
        tokens.disconnect()
        return {"connected": False}

    @app.post("/api/calendar/sync-task")
    def sync_task(req: SyncTaskRequest):
        try:
            result = calendar.sync_task(req.title, req.day, req.time, req.duration)
        except ValueError as exc:
            return _error({"success": False, "error": str(exc)}, 400)
        if not result["success"]:
            status = 401 if result.get("error") == "Not authenticated" else 502
            return _error(result, status)
        return result

    return app


app = create_app()
