"""
Tests pour les gardes de cardinalité des labels.

Ce module teste que les labels de tenants sont projetés vers 'unknown' quand ils sont hors
de la whitelist.
"""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from directive_engine.app.metrics import labelize_tenant
from tests.fakes import CountingRepo, NullBridge, build_resolver, make_record


def test_labelize_tenant_whitelist() -> None:
    """Teste que les labels de tenant sont filtrés selon la whitelist."""
    allowed = ["t1", "t2", "default"]
    assert labelize_tenant("t1", allowed) == "t1"
    assert labelize_tenant("nope", allowed) == "unknown"
    assert labelize_tenant("", allowed) == "unknown"


def test_labelize_tenant_csv_and_empty() -> None:
    """Teste la whitelist CSV et l'absence de whitelist."""
    assert labelize_tenant("t2", "t1, t2") == "t2"
    assert labelize_tenant("t3", ["t1,t2"]) == "unknown"
    assert labelize_tenant("t3", []) == "t3"
    assert labelize_tenant(None, None) == "default"


def _resolutions(tenant: str) -> float:
    labels = {"tier": "L3_SQL", "variant": "A", "tenant": tenant}
    return REGISTRY.get_sample_value("directive_resolutions_total", labels) or 0.0


@pytest.mark.asyncio
async def test_resolution_counter_uses_projected_label() -> None:
    """Teste que le compteur de résolutions n'expose que les tenants autorisés."""
    resolver, loader = build_resolver(
        CountingRepo([make_record("acme-metrics")]),
        bridge=NullBridge(),
        allowed_tenants=["other"],
    )
    before = _resolutions("unknown")

    await resolver.resolve_active_directive("acme-metrics", "user-1")
    await loader.drain()

    assert _resolutions("unknown") == before + 1
    assert _resolutions("acme-metrics") == 0.0
