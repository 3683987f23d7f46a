"""OpenAI chat completions adapter (plain HTTP via httpx)."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx

from ...config.schema import AIConfig
from ...utils.retry import ProviderError, ProviderTimeoutError
from ...utils.security import SecretRedactor
from .base import BaseAIProvider, ProviderReply, json_body, raise_for_status

TEMPERATURE = 0.3


class OpenAIProvider(BaseAIProvider):
    """OpenAI provider.

    Example:
        provider = OpenAIProvider(config.ai)
        explanation = provider.analyze(context)
    """

    provider_name = "openai"

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

    def _send(self, system_prompt: str, user_prompt: str) -> ProviderReply:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self._settings.max_tokens,
            "temperature": TEMPERATURE,
        }

        try:
            response = self._http.post(
                f"{self._settings.base_url}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self._settings.api_key}"},
                timeout=self._config.timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"OpenAI request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI request failed: {e}") from e

        raise_for_status(response, self.name)
        data = json_body(response, self.name)

        return ProviderReply(
            text=_first_choice_content(data),
            metadata=self._metadata(tokens_used=_total_tokens(data)),
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


def _first_choice_content(data: dict[str, Any]) -> str:
    """Content of the first choice, or an empty string when the envelope is incomplete."""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


def _total_tokens(data: dict[str, Any]) -> int | None:
    usage = data.get("usage")
    if not isinstance(usage, dict):
        return None
    total = usage.get("total_tokens")
    return total if isinstance(total, int) else None
