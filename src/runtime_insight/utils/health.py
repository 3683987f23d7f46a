"""Health check utilities backing ``runtime-insight doctor``.

Checks are configuration-only and never perform network I/O:
- Check configuration consistency and whether analysis is active
- Check each AI provider in the chain is usable
- Check cache settings
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from runtime_insight.utils.security import mask_config_value, validate_ollama_url

if TYPE_CHECKING:
    from runtime_insight.config.schema import InsightConfig

log = structlog.get_logger()


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class HealthReport:
    """Overall health report."""

    healthy: bool
    status: HealthStatus
    timestamp: datetime
    checks: list[CheckResult]
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_checks(cls, checks: list[CheckResult], timestamp: datetime) -> HealthReport:
        """Aggregate check results: any unhealthy check fails the report."""
        counts = Counter(c.status for c in checks)
        if counts[HealthStatus.UNHEALTHY]:
            status = HealthStatus.UNHEALTHY
        elif counts[HealthStatus.DEGRADED]:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        return cls(
            healthy=status is not HealthStatus.UNHEALTHY,
            status=status,
            timestamp=timestamp,
            checks=checks,
            details={
                "total_checks": len(checks),
                **{f"{s.value}_checks": counts[s] for s in HealthStatus},
            },
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "details": c.details,
                }
                for c in self.checks
            ],
            "details": self.details,
        }


class HealthChecker:
    """Checks that a configuration can produce explanations.

    A missing fallback provider only degrades the report; the report is
    unhealthy when no configured AI provider is usable or the configuration
    itself is inconsistent.

    Example:
        checker = HealthChecker(config)
        report = checker.run_all_checks()
        if not report.healthy:
            print(report.to_dict())
    """

    def __init__(self, config: InsightConfig) -> None:
        self._config = config

    def run_all_checks(self) -> HealthReport:
        """Run all health checks and return a report."""
        log.info("health_check_start")
        timestamp = datetime.now(UTC)
        checks = [
            self._run(check)
            for check in (self._check_config, self._check_ai_providers, self._check_cache)
        ]

        report = HealthReport.from_checks(checks, timestamp)
        log.info(
            "health_check_complete",
            healthy=report.healthy,
            status=report.status.value,
            checks_run=len(checks),
        )
        return report

    @staticmethod
    def _run(check: Callable[[], CheckResult]) -> CheckResult:
        try:
            return check()
        except Exception as e:
            return CheckResult(
                name=check.__name__.removeprefix("_check_"),
                status=HealthStatus.UNHEALTHY,
                message=f"Check failed with exception: {e}",
            )

    def _check_config(self) -> CheckResult:
        config = self._config
        ai = config.ai

        if ai.provider in ai.fallback_providers:
            return CheckResult(
                name="config",
                status=HealthStatus.UNHEALTHY,
                message=f"Primary provider '{ai.provider}' repeated in fallback_providers",
            )

        details = {
            "enabled": config.enabled,
            "current_environment": config.current_environment,
            "active": config.is_active(),
        }
        if not config.is_active():
            return CheckResult(
                name="config",
                status=HealthStatus.DEGRADED,
                message="Analysis is disabled for this environment",
                details=details,
            )

        return CheckResult(
            name="config",
            status=HealthStatus.HEALTHY,
            message="Configuration valid",
            details=details,
        )

    def _check_ai_providers(self) -> CheckResult:
        ai = self._config.ai
        if not ai.enabled:
            return CheckResult(
                name="ai_providers",
                status=HealthStatus.HEALTHY,
                message="AI disabled, rule-based and descriptive explanations only",
            )

        providers: dict[str, dict[str, Any]] = {}
        usable: list[str] = []
        for name in ai.provider_chain:
            settings = ai.settings_for(name)
            problem: str | None = None

            if name == "ollama":
                if not validate_ollama_url(settings.base_url, ai.ollama.allow_remote_host):
                    problem = "base URL not allowed"
            elif not settings.api_key or settings.api_key.startswith("${"):
                problem = "API key not configured"

            providers[name] = {
                "model": settings.model,
                "base_url": settings.base_url,
                "api_key": mask_config_value("api_key", settings.api_key),
                "usable": problem is None,
            }
            if problem is None:
                usable.append(name)
            else:
                providers[name]["problem"] = problem

        details = {"chain": list(ai.provider_chain), "providers": providers}

        if not usable:
            return CheckResult(
                name="ai_providers",
                status=HealthStatus.UNHEALTHY,
                message="No configured AI provider is usable",
                details=details,
            )
        if len(usable) < len(ai.provider_chain):
            return CheckResult(
                name="ai_providers",
                status=HealthStatus.DEGRADED,
                message=f"Usable providers: {', '.join(usable)}",
                details=details,
            )
        return CheckResult(
            name="ai_providers",
            status=HealthStatus.HEALTHY,
            message=f"Usable providers: {', '.join(usable)}",
            details=details,
        )

    def _check_cache(self) -> CheckResult:
        cache = self._config.cache
        details = {"enabled": cache.enabled, "ttl": cache.ttl, "max_entries": cache.max_entries}

        if not cache.enabled:
            return CheckResult(
                name="cache",
                status=HealthStatus.HEALTHY,
                message="Cache disabled",
                details=details,
            )
        if cache.ttl == 0:
            return CheckResult(
                name="cache",
                status=HealthStatus.DEGRADED,
                message="Cache entries never expire",
                details=details,
            )
        return CheckResult(
            name="cache",
            status=HealthStatus.HEALTHY,
            message="Cache configured",
            details=details,
        )
