"""
Ollama REST API client.
Wraps POST /api/chat for stateful, schema-constrained chat sessions.
"""
import logging
import threading
import time
from typing import Any, Optional
import httpx

from config import settings
from core.exceptions import LLMProviderError
from models.query import GenerationConfig

logger = logging.getLogger(__name__)


def generation_options(config: GenerationConfig) -> dict[str, Any]:
    """Map a GenerationConfig onto Ollama's `options` payload."""
    return {
        "temperature": config.temperature,
        "top_p": config.top_p,
        "top_k": config.top_k,
        "num_predict": config.max_output_tokens,
    }


class OllamaClient:
    """Thin client for the Ollama local LLM server."""

    def __init__(self):
        self.host = settings.OLLAMA_HOST.rstrip("/")
        self.model = settings.OLLAMA_MODEL
        self.timeout = settings.OLLAMA_TIMEOUT_SECONDS
        self.max_retries = settings.OLLAMA_MAX_RETRIES

    def is_healthy(self) -> tuple[bool, Optional[str]]:
        """Returns (True, model_name) if Ollama is reachable, (False, error) otherwise."""
        try:
            resp = httpx.get(f"{self.host}/api/version", timeout=5)
            resp.raise_for_status()
            return True, self.model
        except Exception as e:
            return False, str(e)

    def chat(
        self,
        messages: list[dict],
        options: Optional[dict[str, Any]] = None,
        response_format: Optional[dict[str, Any]] = None,
        max_retries: Optional[int] = None,
    ) -> str:
        """
        Call Ollama /api/chat with a list of {role, content} messages.
        `response_format` is a JSON schema the reply must conform to.
        Returns the assistant's reply as a string.
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": options or {},
        }
        if response_format is not None:
            payload["format"] = response_format

        attempts = max(1, max_retries or self.max_retries)
        last_err: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                resp = httpx.post(
                    f"{self.host}/api/chat",
                    json=payload,
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                return resp.json()["message"]["content"].strip()
            except (httpx.HTTPError, KeyError, ValueError) as e:
                last_err = e
                logger.warning("Ollama chat attempt %d/%d failed: %s", attempt, attempts, e)
                if attempt < attempts:
                    time.sleep(2 ** attempt)
        raise LLMProviderError(f"Ollama chat failed after {attempts} attempt(s): {last_err}") from last_err

    def start_chat(
        self,
        system_instruction: str,
        generation_config: Optional[GenerationConfig] = None,
        response_schema: Optional[dict[str, Any]] = None,
    ) -> "ChatSession":
        return ChatSession(
            client=self,
            system_instruction=system_instruction,
            generation_config=generation_config or GenerationConfig(),
            response_schema=response_schema,
        )


class ChatSession:
    """
    One conversation with the model. Every turn is appended to the history
    and sent back on the next call, so turn order is significant.
    """

    def __init__(
        self,
        client: OllamaClient,
        system_instruction: str,
        generation_config: GenerationConfig,
        response_schema: Optional[dict[str, Any]] = None,
    ):
        self.client = client
        self.generation_config = generation_config
        self.response_schema = response_schema
        self.history: list[dict] = [{"role": "system", "content": system_instruction}]
        self._lock = threading.Lock()

    def send_message(self, text: str) -> str:
        with self._lock:
            user_turn = {"role": "user", "content": text}
            reply = self.client.chat(
                self.history + [user_turn],
                options=generation_options(self.generation_config),
                response_format=self.response_schema,
            )
            # A failed turn leaves the history untouched
            self.history.append(user_turn)
            self.history.append({"role": "assistant", "content": reply})
            return reply
