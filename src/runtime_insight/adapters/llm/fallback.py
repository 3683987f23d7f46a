"""Composite provider trying an ordered list of providers."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from ...interfaces.ai import AIProvider
from ...models.context import RuntimeContext
from ...models.explanation import Explanation

log = structlog.get_logger()


class FallbackChainProvider:
    """Tries providers in order until one returns a non-empty explanation.

    Unavailable members are skipped without being called.
    """

    def __init__(self, providers: Iterable[AIProvider]) -> None:
        self._providers: tuple[AIProvider, ...] = tuple(providers)

    @property
    def name(self) -> str:
        return "fallback"

    @property
    def providers(self) -> tuple[AIProvider, ...]:
        return self._providers

    def is_available(self) -> bool:
        return any(provider.is_available() for provider in self._providers)

    def analyze(self, context: RuntimeContext) -> Explanation:
        for provider in self._providers:
            if not provider.is_available():
                continue

            try:
                explanation = provider.analyze(context)
            except Exception as e:
                log.warning("ai_provider_failed", provider=provider.name, error=str(e))
                continue

            if not explanation.is_empty:
                return explanation

            log.info("ai_chain_provider_empty", provider=provider.name)

        return Explanation.empty()
