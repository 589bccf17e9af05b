"""Quick journal entries and the personal safety plan."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from synapse.storage import JOURNAL_KEY, SAFETY_PLAN_KEY, JsonStore

DEFAULT_HOTLINES = [
    {"name": "Call Emergency (988)", "desc": "Available 24/7 for immediate help", "phone": "988"},
    {"name": "Text Crisis Line (741741)", "desc": 'Text "HOME" to connect', "phone": "741741"},
]

GROUNDING_STRATEGIES = [
    {
        "id": "54321",
        "title": "5-4-3-2-1 Technique",
        "steps": [
            "Acknowledge 5 things you see around you.",
            "Acknowledge 4 things you can touch.",
            "Acknowledge 3 things you hear.",
            "Acknowledge 2 things you can smell.",
            "Acknowledge 1 thing you can taste.",
        ],
    },
    {
        "id": "box",
        "title": "Box Breathing",
        "steps": [
            "Inhale for 4 seconds.",
            "Hold for 4 seconds.",
            "Exhale for 4 seconds.",
            "Hold for 4 seconds.",
        ],
    },
    {
        "id": "sensory",
        "title": "Sensory Shock",
        "steps": [
            "Splash cold water on your face or hold an ice cube in your hand until it melts.",
            "Focus entirely on the intense sensation of cold to reset your nervous system.",
        ],
    },
]

REFLECTION_FALLBACK = (
    "It's okay to feel this way. Ask yourself: is there real evidence for this thought? "
    "Or is there another way of looking at it you haven't considered yet?"
)


def reflection_prompt(emotion: str, trigger: str) -> str:
    return (
        f'I am feeling {emotion.lower()} because: "{trigger}". '
        "Help me gently challenge this thought in 2-3 short sentences. "
        "Focus on: is there real evidence for this thought, or another way to see it?"
    )


class Journal:
    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def entries(self, on: Optional[date] = None) -> List[Dict[str, Any]]:
        """Newest first, optionally limited to one day."""
        data = self._store.get(JOURNAL_KEY, [])
        entries = [e for e in data if isinstance(e, dict)] if isinstance(data, list) else []
        if on is not None:
            entries = [e for e in entries if e.get("date") == on.isoformat()]
        return sorted(entries, key=lambda e: e.get("createdAt", ""), reverse=True)

    def add(self, emotion: str, trigger: str, reflection: str = "", when: Optional[datetime] = None) -> Dict[str, Any]:
        when = when or datetime.now()
        entry = {
            "date": when.date().isoformat(),
            "createdAt": when.isoformat(timespec="seconds"),
            "emotion": emotion.strip(),
            "trigger": trigger.strip(),
            "reflection": reflection.strip(),
        }
        data = self._store.get(JOURNAL_KEY, [])
        data = data if isinstance(data, list) else []
        data.append(entry)
        self._store.set(JOURNAL_KEY, data)
        return entry


def _clean_list(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [str(v).strip() for v in values if str(v).strip()]


def _clean_contacts(values: Any) -> List[Dict[str, str]]:
    if not isinstance(values, list):
        return []
    contacts = []
    for item in values:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name", "")).strip()
        phone = str(item.get("phone", "")).strip()
        if not name or not phone:
            continue
        contact = {"name": name, "phone": phone}
        role = str(item.get("role") or "").strip()
        if role:
            contact["role"] = role
        contacts.append(contact)
    return contacts


class SafetyPlan:
    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def load(self) -> Dict[str, Any]:
        data = self._store.get(SAFETY_PLAN_KEY, {})
        data = data if isinstance(data, dict) else {}
        return {
            "warningSigns": _clean_list(data.get("warningSigns")),
            "copingStrategies": _clean_list(data.get("copingStrategies")),
            "emergencyContacts": _clean_contacts(data.get("emergencyContacts")),
        }

    def save(self, plan: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {
            "warningSigns": _clean_list(plan.get("warningSigns")),
            "copingStrategies": _clean_list(plan.get("copingStrategies")),
            "emergencyContacts": _clean_contacts(plan.get("emergencyContacts")),
        }
        self._store.set(SAFETY_PLAN_KEY, cleaned)
        return cleaned
