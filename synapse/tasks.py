"""Task records, the task board and mood-based filtering."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from synapse.storage import APP_KEY, JsonStore
from synapse.task_parser import ParsedTask

MOOD_STATES = ("neutral", "focused", "anxious", "exhausted")
ENERGY_MODES = ("productive", "burnout")
PRIORITIES = ("low", "medium", "high")
ENERGY_LABELS = ("Deep Work", "Shallow Work", "Recovery")

DEEP_WORK = "Deep Work"
QUICK_WIN = "Quick Win"
SHORT_TASK_MINUTES = 25
DEFAULT_ENERGY_LEVEL = 80


def new_task_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Task:
    id: str
    title: str
    duration: int
    is_completed: bool = False
    is_ai_generated: bool = False
    tags: List[str] = field(default_factory=list)
    priority: Optional[str] = None
    energy: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "duration": self.duration,
            "isCompleted": self.is_completed,
            "isAIGenerated": self.is_ai_generated,
            "tags": list(self.tags),
            "priority": self.priority,
            "energy": self.energy,
            "date": self.date,
            "time": self.time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        priority = data.get("priority")
        energy = data.get("energy")
        return cls(
            id=str(data.get("id") or new_task_id()),
            title=str(data.get("title", "")),
            duration=int(data.get("duration") or SHORT_TASK_MINUTES),
            is_completed=bool(data.get("isCompleted", False)),
            is_ai_generated=bool(data.get("isAIGenerated", False)),
            tags=[str(t) for t in data.get("tags") or []],
            priority=priority if priority in PRIORITIES else None,
            energy=energy if energy in ENERGY_LABELS else None,
            date=data.get("date"),
            time=data.get("time"),
        )

    @classmethod
    def from_parsed(cls, parsed: ParsedTask) -> "Task":
        return cls(
            id=new_task_id(),
            title=parsed.title,
            duration=parsed.estimated_duration,
            tags=list(parsed.tags),
            priority=parsed.priority,
            date=parsed.date.isoformat() if parsed.date else None,
            time=parsed.time,
        )


def filter_tasks_for_mood(tasks: List[Task], mood: str) -> List[Task]:
    """Tasks to show for the current mood.

    anxious: no Deep Work or low-priority tasks; only quick wins, recovery or
    shallow work, or tasks of a pomodoro or less.
    exhausted: nothing.
    """
    if mood == "anxious":
        shown = []
        for task in tasks:
            if DEEP_WORK in task.tags or task.energy == DEEP_WORK:
                continue
            if task.priority == "low":
                continue
            is_quick_win = QUICK_WIN in task.tags
            is_recovery = task.energy in ("Recovery", "Shallow Work")
            if is_quick_win or is_recovery or task.duration <= SHORT_TASK_MINUTES:
                shown.append(task)
        return shown
    if mood == "exhausted":
        return []
    return list(tasks)


class TaskBoard:
    """Tasks plus mood/energy state, persisted under one storage key."""

    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def _load(self) -> Dict[str, Any]:
        state = self._store.get(APP_KEY, None)
        if not isinstance(state, dict):
            state = {}
        state.setdefault("moodState", "neutral")
        state.setdefault("energyLevel", DEFAULT_ENERGY_LEVEL)
        state.setdefault("mode", None)
        state.setdefault("tasks", [])
        return state

    def _save(self, state: Dict[str, Any]) -> None:
        self._store.set(APP_KEY, state)

    # --- tasks ---

    def tasks(self) -> List[Task]:
        return [Task.from_dict(t) for t in self._load()["tasks"] if isinstance(t, dict)]

    def visible_tasks(self) -> List[Task]:
        return filter_tasks_for_mood(self.tasks(), self.mood())

    def add(self, task: Task) -> Task:
        state = self._load()
        state["tasks"] = [task.to_dict()] + list(state["tasks"])
        self._save(state)
        return task

    def set_tasks(self, tasks: List[Task]) -> None:
        state = self._load()
        state["tasks"] = [t.to_dict() for t in tasks]
        self._save(state)

    def toggle(self, task_id: str) -> Optional[Task]:
        tasks = self.tasks()
        toggled = None
        for task in tasks:
            if task.id == task_id:
                task.is_completed = not task.is_completed
                toggled = task
        if toggled is not None:
            self.set_tasks(tasks)
        return toggled

    def delete(self, task_id: str) -> bool:
        tasks = self.tasks()
        kept = [t for t in tasks if t.id != task_id]
        if len(kept) == len(tasks):
            return False
        self.set_tasks(kept)
        return True

    # --- mood / energy ---

    def mood(self) -> str:
        mood = self._load()["moodState"]
        return mood if mood in MOOD_STATES else "neutral"

    def set_mood(self, mood: str) -> None:
        if mood not in MOOD_STATES:
            raise ValueError(f"unknown mood state: {mood}")
        state = self._load()
        state["moodState"] = mood
        self._save(state)

    def energy_level(self) -> int:
        return int(self._load()["energyLevel"])

    def set_energy_level(self, level: int) -> None:
        state = self._load()
        state["energyLevel"] = max(0, min(100, int(level)))
        self._save(state)

    def mode(self) -> Optional[str]:
        return self._load()["mode"]

    def set_mode(self, mode: Optional[str]) -> None:
        if mode is not None and mode not in ENERGY_MODES:
            raise ValueError(f"unknown energy mode: {mode}")
        state = self._load()
        state["mode"] = mode
        self._save(state)

    def reset(self) -> None:
        state = self._load()
        state.update(moodState="neutral", energyLevel=DEFAULT_ENERGY_LEVEL, mode=None)
        self._save(state)
