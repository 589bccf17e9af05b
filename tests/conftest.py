from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from synapse.app import create_app
from synapse.config import Settings
from synapse.storage import JsonStore


class FakeLLM:
    """Stands in for LLMClient; records calls and returns canned replies."""

    def __init__(self, reply: str = "ok", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def chat(self, message, history=None, persona=None, system_prompt=None, model=None, temperature=0.7):
        self.calls.append(
            {"kind": "chat", "message": message, "history": history, "persona": persona,
             "system_prompt": system_prompt, "model": model}
        )
        if self.error is not None:
            raise self.error
        return self.reply

    def complete(self, prompt, json_mode=False, model=None, temperature=0.3):
        self.calls.append({"kind": "complete", "prompt": prompt, "json_mode": json_mode, "model": model})
        if self.error is not None:
            raise self.error
        return self.reply


def make_settings(data_dir: Path, api_key: str = "test-key") -> Settings:
    return Settings(
        api_key=api_key,
        model="test-model",
        data_dir=data_dir,
        log_level="info",
        llm_max_attempts=3,
        llm_backoff_seconds=0.5,
        timezone="UTC",
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path / "data")


@pytest.fixture
def store(tmp_path: Path) -> JsonStore:
    return JsonStore(tmp_path / "data")


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def client(settings: Settings, fake_llm: FakeLLM) -> TestClient:
    return TestClient(create_app(settings, llm=fake_llm))
