"""Tests du dépôt SQL des enregistrements tenant."""

from __future__ import annotations

from datetime import UTC

from tests.fakes import FIXED_UPDATED_AT, make_record


def test_save_and_find(tenant_repo) -> None:
    """Teste l'écriture puis la relecture d'un enregistrement."""
    tenant_repo.save(
        make_record("acme", experiment_name="tone-shift", experiment_traffic_split=0.2)
    )

    found = tenant_repo.find_tenant_by_id("acme")

    assert found is not None
    assert found.organization_name == "Acme Corp"
    assert found.experiment_name == "tone-shift"
    assert found.experiment_traffic_split == 0.2
    assert found.vocal_enabled is True
    assert found.updated_at.tzinfo is not None
    assert found.updated_at.astimezone(UTC) == FIXED_UPDATED_AT


def test_missing_tenant_returns_none(tenant_repo) -> None:
    """Teste qu'un tenant absent retourne None."""
    assert tenant_repo.find_tenant_by_id("ghost") is None


def test_save_overwrites_existing_record(tenant_repo) -> None:
    """Teste que la dernière écriture gagne."""
    tenant_repo.save(make_record("acme"))
    tenant_repo.save(make_record("acme", system_prompt="Second revision.", status="SUSPENDED"))

    found = tenant_repo.find_tenant_by_id("acme")

    assert found.system_prompt == "Second revision."
    assert found.status == "SUSPENDED"
