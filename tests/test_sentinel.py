"""Tests du canal de rapports opérationnels."""

from __future__ import annotations

from directive_engine.domain.errors import ErrorCodes
from directive_engine.services.sentinel import Sentinel, Severity


def test_high_severity_reaches_alert_sink() -> None:
    """Teste que HIGH et CRITICAL sont transmis au puits, pas LOW ni MEDIUM."""
    received = []
    sentinel = Sentinel(alert_sink=received.append)

    sentinel.report(ErrorCodes.NOT_FOUND, Severity.LOW, "op", "low")
    sentinel.report(ErrorCodes.ORPHAN_ASSIGNMENT, Severity.MEDIUM, "op", "medium")
    high = sentinel.report(
        ErrorCodes.EXHAUSTED_TIERS, Severity.HIGH, "op", "high", tenant_id="acme", layer="L3_SQL"
    )
    sentinel.report(ErrorCodes.INTEGRITY_CORRUPTION, Severity.CRITICAL, "op", "critical")

    assert [r.severity for r in received] == [Severity.HIGH, Severity.CRITICAL]
    assert received[0] is high
    assert high.tenant_id == "acme"
    assert high.context == {"layer": "L3_SQL"}
    assert high.is_recoverable is True


def test_failing_sink_never_propagates() -> None:
    """Teste qu'un puits en échec n'interrompt pas l'appelant."""

    def broken(_report) -> None:
        raise RuntimeError("pager unreachable")

    sentinel = Sentinel(alert_sink=broken)
    report = sentinel.report(ErrorCodes.INTERNAL_ERROR, Severity.CRITICAL, "op", "boom")
    assert report.code == ErrorCodes.INTERNAL_ERROR


def test_default_sink_logs() -> None:
    """Teste le puits par défaut."""
    report = Sentinel().report(ErrorCodes.EXHAUSTED_TIERS, Severity.HIGH, "op", "all down")
    assert report.severity == Severity.HIGH
