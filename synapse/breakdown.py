"""Turn the model's breakdown reply into task records."""

from __future__ import annotations

import json
import re
import time
from typing import List

from synapse.tasks import SHORT_TASK_MINUTES, Task

FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
LEADING_INT_RE = re.compile(r"^\s*(\d+)")


class BreakdownError(Exception):
    pass


def strip_code_fences(text: str) -> str:
    return FENCE_RE.sub("", text).strip()


def parse_duration(value) -> int:
    """ "5 min" -> 5; anything unreadable -> 25."""
    if isinstance(value, bool):
        return SHORT_TASK_MINUTES
    if isinstance(value, (int, float)):
        return int(value) or SHORT_TASK_MINUTES
    m = LEADING_INT_RE.match(str(value or ""))
    if not m:
        return SHORT_TASK_MINUTES
    return int(m.group(1)) or SHORT_TASK_MINUTES


def parse_breakdown_response(text: str) -> List[Task]:
    cleaned = strip_code_fences(text)
    try:
        items = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise BreakdownError(f"model reply is not JSON: {exc}") from exc
    if isinstance(items, dict):
        # json_object replies sometimes wrap the list
        items = next((v for v in items.values() if isinstance(v, list)), None)
    if not isinstance(items, list):
        raise BreakdownError("model reply is not a JSON array")

    stamp = str(int(time.time() * 1000))
    tasks = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not str(item.get("title", "")).strip():
            continue
        tag = str(item.get("tag") or "").strip()
        tasks.append(
            Task(
                id=f"{stamp}{index}",
                title=str(item["title"]).strip(),
                duration=parse_duration(item.get("duration")),
                is_completed=False,
                is_ai_generated=True,
                tags=[tag] if tag else [],
            )
        )
    return tasks
