from __future__ import annotations

import json
from pathlib import Path

import pytest

from synapse.storage import JsonStore


def test_round_trip_and_remove(tmp_path: Path) -> None:
    store = JsonStore(tmp_path)
    payload = {"warningSigns": ["can't sleep"], "copingStrategies": []}

    store.set("synapse-safety-plan", payload)

    assert store.get("synapse-safety-plan") == payload
    assert json.loads((tmp_path / "synapse-safety-plan.json").read_text(encoding="utf-8")) == payload

    store.remove("synapse-safety-plan")
    assert store.get("synapse-safety-plan", "gone") == "gone"


def test_missing_key_returns_default(tmp_path: Path) -> None:
    assert JsonStore(tmp_path).get("study-mode-conversations", []) == []


def test_corrupt_blob_is_moved_aside(tmp_path: Path) -> None:
    store = JsonStore(tmp_path)
    (tmp_path / "synapse-journal.json").write_text("{not-json", encoding="utf-8")

    assert store.get("synapse-journal", []) == []
    assert not (tmp_path / "synapse-journal.json").exists()
    assert (tmp_path / "synapse-journal.json.bak").exists()


def test_rejects_path_like_keys(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        JsonStore(tmp_path).get("../etc/passwd")
