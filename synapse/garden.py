"""Growth garden: wellness points that grow a plant through stages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from synapse.storage import GARDEN_KEY, JsonStore

MAX_POINTS = 100
REST_DAYS_PER_WEEK = 2
ACTIVITY_TYPES = ("breathing", "chat", "task", "rest")


@dataclass(frozen=True)
class Stage:
    name: str
    description: str
    min_points: int


STAGES = [
    Stage("Seed", "Just getting started", 0),
    Stage("Sprout", "Starting to grow", 20),
    Stage("Stem", "Getting stronger", 40),
    Stage("Leaf", "Flourishing", 60),
    Stage("Bloom", "In full bloom", 80),
    Stage("Tree", "You're doing great!", 100),
]


def stage_for(points: int) -> int:
    """Index of the highest stage reached."""
    for index in range(len(STAGES) - 1, -1, -1):
        if points >= STAGES[index].min_points:
            return index
    return 0


def progress_to_next(points: int) -> float:
    index = stage_for(points)
    if index >= len(STAGES) - 1:
        return 100.0
    current, nxt = STAGES[index], STAGES[index + 1]
    return (points - current.min_points) / (nxt.min_points - current.min_points) * 100


def _week_key(d: date) -> tuple[int, int]:
    year, week, _ = d.isocalendar()
    return year, week


def empty_garden() -> Dict[str, Any]:
    return {
        "totalWellnessPoints": 0,
        "currentStage": 0,
        "restDaysUsed": 0,
        "restDaysAllowed": REST_DAYS_PER_WEEK,
        "lastActivityDate": None,
        "activities": [],
    }


class Garden:
    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def load(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        data = self._store.get(GARDEN_KEY, None)
        garden = empty_garden()
        if isinstance(data, dict):
            garden.update(data)
        last = garden.get("lastActivityDate")
        if last:
            try:
                if _week_key(date.fromisoformat(last)) != _week_key(today):
                    garden["restDaysUsed"] = 0
            except ValueError:
                garden["lastActivityDate"] = None
        garden["currentStage"] = stage_for(int(garden["totalWellnessPoints"]))
        return garden

    def summary(self, today: Optional[date] = None) -> Dict[str, Any]:
        garden = self.load(today)
        stage = STAGES[garden["currentStage"]]
        return {
            **garden,
            "stage": {"name": stage.name, "description": stage.description, "minPoints": stage.min_points},
            "progressToNext": round(progress_to_next(int(garden["totalWellnessPoints"])), 1),
        }

    def add_points(self, activity: str, points: int, today: Optional[date] = None) -> Dict[str, Any]:
        if activity not in ACTIVITY_TYPES or activity == "rest":
            raise ValueError(f"unknown activity type: {activity}")
        if points < 0:
            raise ValueError("points must not be negative")
        today = today or date.today()
        garden = self.load(today)
        garden["totalWellnessPoints"] = min(MAX_POINTS, int(garden["totalWellnessPoints"]) + points)
        garden["currentStage"] = stage_for(garden["totalWellnessPoints"])
        garden["lastActivityDate"] = today.isoformat()
        garden["activities"].append({"date": today.isoformat(), "type": activity, "points": points})
        self._store.set(GARDEN_KEY, garden)
        return garden

    def take_rest_day(self, today: Optional[date] = None) -> bool:
        """Use one of this week's rest days; False when none are left."""
        today = today or date.today()
        garden = self.load(today)
        if garden["restDaysUsed"] >= garden["restDaysAllowed"]:
            return False
        garden["restDaysUsed"] += 1
        garden["lastActivityDate"] = today.isoformat()
        garden["activities"].append({"date": today.isoformat(), "type": "rest", "points": 0})
        self._store.set(GARDEN_KEY, garden)
        return True
