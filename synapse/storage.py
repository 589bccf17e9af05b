"""JSON blob store: one file per key under the data directory."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

APP_KEY = "synapse-app-storage"
USER_KEY = "synapse-user-storage"
CONVERSATIONS_KEY = "study-mode-conversations"
GARDEN_KEY = "synapse-growth-garden"
JOURNAL_KEY = "synapse-journal"
SAFETY_PLAN_KEY = "synapse-safety-plan"
GOOGLE_TOKEN_KEY = "synapse_google_token"

SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonStore:
    """Best-effort persistence, no schema versioning.

    A file that fails to parse is moved aside to ``<key>.json.bak`` and the
    caller's default is returned.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        if not SAFE_KEY_RE.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self.path_for(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            backup = path.with_name(path.name + ".bak")
            logger.warning("storage: unreadable %s (%s), moved to %s", path, exc, backup.name)
            path.replace(backup)
            return default

    def set(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps(value, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
        tmp.replace(path)

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()
