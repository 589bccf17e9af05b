"""Groq chat-completions wrapper."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from groq import Groq

from synapse.config import Settings
from synapse.prompts import default_persona_prompt

logger = logging.getLogger(__name__)

OVERLOADED_STATUS = 503


class UpstreamError(Exception):
    """The hosted model returned an error we do not retry."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


def error_status(exc: BaseException) -> Optional[int]:
    """HTTP status carried by an SDK or upstream error, if any."""
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def to_chat_messages(history: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """Map stored chat turns to the provider's roles ("ai" -> "assistant")."""
    out = []
    for msg in history:
        content = str(msg.get("content", ""))
        if not content:
            continue
        role = "assistant" if msg.get("role") in ("ai", "assistant", "model") else "user"
        out.append({"role": role, "content": content})
    return out


class LLMClient:
    """Thin wrapper around the hosted chat model with 503 backoff."""

    def __init__(
        self,
        settings: Settings,
        client: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        # SDK retries are disabled so that only the overload backoff below applies
        self._client = client if client is not None else Groq(api_key=settings.api_key, max_retries=0)
        self._sleep = sleep

    @property
    def model(self) -> str:
        return self._settings.model

    def _send(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        extra: Dict[str, Any] = {"response_format": {"type": "json_object"}} if json_mode else {}
        attempts = self._settings.llm_max_attempts
        delay = self._settings.llm_backoff_seconds
        attempt = 0
        while True:
            try:
                response = self._client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=temperature,
                    **extra,
                )
                return (response.choices[0].message.content or "").strip()
            except Exception as exc:
                attempt += 1
                if error_status(exc) != OVERLOADED_STATUS or attempt >= attempts:
                    raise
                logger.warning("model overloaded (attempt %s/%s), retrying in %.1fs", attempt, attempts, delay)
                self._sleep(delay)
                delay *= 2

    def chat(
        self,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
        persona: Optional[Dict[str, Any]] = None,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        prompt = system_prompt or default_persona_prompt(persona)
        messages = [
            {"role": "system", "content": prompt},
            *to_chat_messages(history or []),
            {"role": "user", "content": message},
        ]
        return self._send(messages, model or self.model, temperature)

    def complete(
        self,
        prompt: str,
        json_mode: bool = False,
        model: Optional[str] = None,
        temperature: float = 0.3,
    ) -> str:
        """Single-shot prompt; json_mode asks the model for a JSON object."""
        return self._send([{"role": "user", "content": prompt}], model or self.model, temperature, json_mode)
