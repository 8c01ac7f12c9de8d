"""SQLAlchemy models for the authoritative store (tenant directives)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    MetaData,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TenantDirectiveORM(Base):
    """Modèle ORM de la configuration de directive d'un tenant."""

    __tablename__ = "tenant_directives"

    tenant_id = Column(String(64), primary_key=True)
    organization_name = Column(String(100), nullable=False)
    status = Column(String(32), nullable=False, default="ACTIVE")
    system_prompt = Column(Text, nullable=False)
    directive_version = Column(String(64), nullable=True)
    author_identifier = Column(String(128), nullable=True)
    model_tier = Column(String(32), nullable=True)
    vocal_enabled = Column(Boolean, nullable=False, default=True)
    experimental_prompt = Column(Text, nullable=True)
    experimental_version = Column(String(64), nullable=True)
    experiment_name = Column(String(128), nullable=True)
    experiment_traffic_split = Column(Float, nullable=False, default=0.5)
    experiment_active = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
