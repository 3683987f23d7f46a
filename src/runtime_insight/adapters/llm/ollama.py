"""Ollama adapter for locally hosted models.

Only loopback hosts are contacted unless ``ai.ollama.allow_remote_host`` is
set (SSRF prevention).
"""

from __future__ import annotations

import time
from collections.abc import Callable

import httpx

from ...config.schema import AIConfig
from ...utils.retry import ProviderError, ProviderTimeoutError
from ...utils.security import SecretRedactor, validate_ollama_url
from .base import BaseAIProvider, ProviderReply, json_body, raise_for_status

TEMPERATURE = 0.3


class OllamaProvider(BaseAIProvider):
    """Ollama provider; no API key required."""

    provider_name = "ollama"
    requires_api_key = False

    def __init__(
        self,
        config: AIConfig,
        client: httpx.Client | None = None,
        redactor: SecretRedactor | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(config, redactor=redactor, sleep=sleep)
        self._client = client

    @property
    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._config.timeout)
        return self._client

    def is_available(self) -> bool:
        if not super().is_available():
            return False
        return validate_ollama_url(
            self._settings.base_url,
            allow_remote=self._config.ollama.allow_remote_host,
        )

    def _send(self, system_prompt: str, user_prompt: str) -> ProviderReply:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "stream": False,
            "format": "json",
            "options": {
                "temperature": TEMPERATURE,
                "num_predict": self._settings.max_tokens,
            },
        }

        try:
            response = self._http.post(
                f"{self._settings.base_url}/api/chat",
                json=payload,
                timeout=self._config.timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"Ollama request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Ollama request failed: {e}") from e

        raise_for_status(response, self.name)
        data = json_body(response, self.name)

        message = data.get("message")
        content = message.get("content") if isinstance(message, dict) else None

        return ProviderReply(
            text=content if isinstance(content, str) else "",
            metadata=self._metadata(
                eval_count=data.get("eval_count"),
                prompt_eval_count=data.get("prompt_eval_count"),
            ),
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
