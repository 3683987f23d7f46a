"""Anthropic Claude adapter using the official SDK."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import anthropic
import structlog

from ...config.schema import AIConfig
from ...utils.retry import ProviderError, ProviderTimeoutError, RateLimitError
from ...utils.security import SecretRedactor
from .base import BaseAIProvider, ProviderReply

log = structlog.get_logger()

TEMPERATURE = 0.3


class AnthropicProvider(BaseAIProvider):
    """Anthropic provider.

    SDK-level retries are disabled; rate limits are retried by the shared
    policy in ``BaseAIProvider``.

    Example:
        provider = AnthropicProvider(config.ai)
        explanation = provider.analyze(context)
    """

    provider_name = "anthropic"

    def __init__(
        self,
        config: AIConfig,
        client: anthropic.Anthropic | None = None,
        redactor: SecretRedactor | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(config, redactor=redactor, sleep=sleep)
        self._client = client

    @property
    def _sdk(self) -> anthropic.Anthropic:
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self._settings.api_key,
                base_url=self._settings.base_url,
                timeout=self._config.timeout,
                max_retries=0,
            )
        return self._client

    def _send(self, system_prompt: str, user_prompt: str) -> ProviderReply:
        try:
            response = self._sdk.messages.create(
                model=self.model,
                max_tokens=self._settings.max_tokens,
                temperature=TEMPERATURE,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except anthropic.RateLimitError as e:
            retry_after = _retry_after(e)
            log.warning("rate_limit_hit", provider=self.name, retry_after=retry_after)
            raise RateLimitError(f"Anthropic rate limit exceeded: {e}", retry_after) from e
        except anthropic.APITimeoutError as e:
            raise ProviderTimeoutError(f"Anthropic request timed out: {e}") from e
        except anthropic.APIError as e:
            raise ProviderError(f"Anthropic API error: {e}") from e

        text = ""
        for block in response.content:
            if hasattr(block, "text"):
                text += block.text

        return ProviderReply(text=text, metadata=self._metadata(tokens_used=_tokens_used(response)))


def _tokens_used(response: Any) -> int | None:
    usage = getattr(response, "usage", None)
    input_tokens = getattr(usage, "input_tokens", None)
    output_tokens = getattr(usage, "output_tokens", None)
    if not isinstance(input_tokens, int) or not isinstance(output_tokens, int):
        return None
    return input_tokens + output_tokens


def _retry_after(error: anthropic.RateLimitError) -> float | None:
    response = getattr(error, "response", None)
    if response is None:
        return None
    value = response.headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None
