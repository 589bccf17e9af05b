"""Persona generation helpers."""

from __future__ import annotations

import json
import re
from typing import Dict, Optional
from urllib.parse import quote

from synapse.storage import USER_KEY, JsonStore

JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

FALLBACK_TYPE = "Wise Companion"
DICEBEAR_URL = "https://api.dicebear.com/7.x/avataaars-neutral/svg?seed={seed}&backgroundColor=FFEDCC"


def fallback_persona(character_name: str) -> Dict[str, str]:
    return {
        "name": character_name,
        "type": FALLBACK_TYPE,
        "interactionStyle": (
            f"I am {character_name}, and I'm here to help you navigate through "
            "challenging times with patience and understanding."
        ),
    }


def parse_persona_traits(text: str, character_name: str) -> Dict[str, str]:
    fallback = fallback_persona(character_name)
    m = JSON_OBJECT_RE.search(text or "")
    try:
        parsed = json.loads(m.group(0) if m else text)
    except (TypeError, ValueError):
        return fallback
    if not isinstance(parsed, dict):
        return fallback
    return {
        "name": str(parsed.get("name") or "").strip() or character_name,
        "type": str(parsed.get("type") or "").strip() or FALLBACK_TYPE,
        "interactionStyle": str(parsed.get("interactionStyle") or "").strip() or "I am here to guide you.",
    }


def fallback_avatar_url(character_name: str) -> str:
    return DICEBEAR_URL.format(seed=quote(character_name, safe=""))


def persona_error(status: Optional[int], message: str) -> tuple[int, str]:
    """Map an upstream failure to (http status, user-facing message)."""
    lowered = (message or "").lower()
    if status == 503 or "overloaded" in lowered:
        return 503, "AI model is currently overloaded. Please try again in a few seconds."
    if status == 429 or "rate limit" in lowered:
        return 429, "Too many requests. Please wait a moment and try again."
    if status == 400:
        return 400, "Invalid request. Please check the character name."
    return 500, "Failed to generate persona. Please try again."


class ProfileStore:
    """The user's persona: name, type, traits, language and avatar."""

    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def load(self) -> Optional[Dict[str, object]]:
        data = self._store.get(USER_KEY, None)
        if not isinstance(data, dict) or not data.get("name"):
            return None
        return data

    def save(self, profile: Dict[str, object]) -> Dict[str, object]:
        traits = profile.get("traits") or []
        cleaned = {
            "name": str(profile.get("name") or "").strip(),
            "type": str(profile.get("type") or "").strip(),
            "traits": [str(t).strip() for t in traits if str(t).strip()] if isinstance(traits, list) else [],
            "language": str(profile.get("language") or "en").strip(),
            "avatarUrl": str(profile.get("avatarUrl") or "").strip()
            or fallback_avatar_url(str(profile.get("name") or "").strip()),
        }
        if not cleaned["name"]:
            raise ValueError("profile name is required")
        self._store.set(USER_KEY, cleaned)
        return cleaned

    def clear(self) -> None:
        self._store.remove(USER_KEY)
