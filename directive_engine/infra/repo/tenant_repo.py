# ============================================================
# Module : directive_engine/infra/repo/tenant_repo.py
# Objet  : Accès SQL aux enregistrements tenant (source de vérité).
# Notes  : lecture seule pour le moteur; `save` sert au seeding/tests.
# ============================================================

from __future__ import annotations

from datetime import UTC

from sqlalchemy import select
from sqlalchemy.engine import Engine

from ...domain.models import RawTenantRecord
from .db import session_scope
from .models import TenantDirectiveORM


def _to_record(row: TenantDirectiveORM) -> RawTenantRecord:
    updated_at = row.updated_at
    # SQLite ne conserve pas le fuseau
    if updated_at is not None and updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=UTC)
    return RawTenantRecord(
        tenant_id=row.tenant_id,
        organization_name=row.organization_name,
        status=row.status,
        system_prompt=row.system_prompt,
        updated_at=updated_at,
        directive_version=row.directive_version,
        author_identifier=row.author_identifier,
        model_tier=row.model_tier,
        vocal_enabled=bool(row.vocal_enabled),
        experimental_prompt=row.experimental_prompt,
        experimental_version=row.experimental_version,
        experiment_name=row.experiment_name,
        experiment_traffic_split=float(row.experiment_traffic_split),
        experiment_active=bool(row.experiment_active),
    )


class TenantRecordRepo:
    """Lecture/écriture des enregistrements `tenant_directives`."""

    def __init__(self, engine: Engine) -> None:
        """Construit le repo avec un moteur SQLAlchemy."""
        self._engine = engine

    def find_tenant_by_id(self, tenant_id: str) -> RawTenantRecord | None:
        """Retourne l'enregistrement d'un tenant, ou None s'il est absent."""
        with session_scope(self._engine) as session:
            stmt = select(TenantDirectiveORM).where(TenantDirectiveORM.tenant_id == tenant_id)
            row = session.execute(stmt).scalars().first()
            return _to_record(row) if row else None

    def save(self, record: RawTenantRecord) -> RawTenantRecord:
        """Crée ou remplace l'enregistrement d'un tenant (dernier écrit gagne)."""
        with session_scope(self._engine) as session:
            session.merge(
                TenantDirectiveORM(
                    tenant_id=record.tenant_id,
                    organization_name=record.organization_name,
                    status=record.status,
                    system_prompt=record.system_prompt,
                    directive_version=record.directive_version,
                    author_identifier=record.author_identifier,
                    model_tier=record.model_tier,
                    vocal_enabled=record.vocal_enabled,
                    experimental_prompt=record.experimental_prompt,
                    experimental_version=record.experimental_version,
                    experiment_name=record.experiment_name,
                    experiment_traffic_split=record.experiment_traffic_split,
                    experiment_active=record.experiment_active,
                    updated_at=record.updated_at,
                )
            )
        return record
