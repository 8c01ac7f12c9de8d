"""Sentinel: canal de rapports opérationnels du moteur.

Journalise chaque rapport (structlog), l'expose en métrique et transmet les rapports
HIGH/CRITICAL à un puits d'alertes externe. Un puits défaillant ne doit jamais interrompre
la résolution en cours.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

from directive_engine.app.metrics import SENTINEL_REPORTS


class Severity(str, Enum):
    """Gravité d'un rapport."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


_LOG_METHOD = {
    Severity.LOW: "info",
    Severity.MEDIUM: "warning",
    Severity.HIGH: "error",
    Severity.CRITICAL: "critical",
}


@dataclass
class SentinelReport:
    """Rapport d'anomalie hydraté."""

    code: str
    severity: Severity
    operation: str
    message: str
    tenant_id: str | None = None
    is_recoverable: bool = True
    context: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


AlertSink = Callable[[SentinelReport], None]


def log_alert_sink(report: SentinelReport) -> None:
    """Puits par défaut: journalise l'alerte critique."""
    structlog.get_logger(__name__).critical(
        "critical_alert",
        code=report.code,
        message=report.message,
        tenant=report.tenant_id,
    )


class Sentinel:
    """Intercepteur de fautes: classe, journalise et alerte."""

    def __init__(self, alert_sink: AlertSink | None = None, component: str = "directive_engine"):
        """Initialise le sentinel avec un puits d'alertes optionnel."""
        self._alert_sink = alert_sink or log_alert_sink
        self._log = structlog.get_logger(__name__).bind(component=component)

    def report(
        self,
        code: str,
        severity: Severity,
        operation: str,
        message: str,
        *,
        tenant_id: str | None = None,
        is_recoverable: bool = True,
        **context: Any,
    ) -> SentinelReport:
        """Enregistre un rapport et déclenche l'alerte si la gravité l'exige."""
        report = SentinelReport(
            code=code,
            severity=severity,
            operation=operation,
            message=message,
            tenant_id=tenant_id,
            is_recoverable=is_recoverable,
            context=context,
        )
        getattr(self._log, _LOG_METHOD[severity])(
            "sentinel_report",
            code=code,
            severity=severity.value,
            operation=operation,
            message=message,
            tenant=tenant_id,
            recoverable=is_recoverable,
            **context,
        )
        SENTINEL_REPORTS.labels(code=code, severity=severity.value).inc()
        if severity in (Severity.HIGH, Severity.CRITICAL):
            self._dispatch_alert(report)
        return report

    def _dispatch_alert(self, report: SentinelReport) -> None:
        try:
            self._alert_sink(report)
        except Exception as exc:  # le canal d'alerte ne bloque jamais l'appelant
            self._log.error("alert_sink_failure", code=report.code, error=str(exc))
