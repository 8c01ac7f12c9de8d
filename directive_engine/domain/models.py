"""
Entités du domaine de gouvernance des directives.

Ce module définit les contrats validés (pydantic) manipulés par le moteur: contexte de
gouvernance d'un tenant, versions de directive, configuration d'expérience, directive
résolue et audit des couches de persistance.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

VERSION_TAG_PATTERN = r"^v\d+\.\d+\.\d+(-[a-z]+)?$"

Variant = Literal["A", "B"]


class ContextStatus(str, Enum):
    """Cycle de vie d'un contexte de gouvernance."""

    DRAFT = "DRAFT"
    STAGING = "STAGING"
    PRODUCTION = "PRODUCTION"
    DEPRECATED = "DEPRECATED"


class ModelTier(str, Enum):
    """Gamme de modèle recommandée pour une directive."""

    FLASH = "FLASH"
    PRO = "PRO"
    DEEP_THINK = "DEEP_THINK"


class TargetMetric(str, Enum):
    """Métrique visée par une expérience A/B."""

    SENTIMENT = "SENTIMENT"
    LATENCY = "LATENCY"
    TOKEN_ECONOMY = "TOKEN_ECONOMY"


class Tier(str, Enum):
    """Couches de la cascade de résolution."""

    L0_GENESIS = "L0_GENESIS"
    L1_RAM = "L1_RAM"
    L2_REDIS = "L2_REDIS"
    L3_SQL = "L3_SQL"


class ExperimentVerdict(str, Enum):
    """Issue de la comparaison de deux variantes."""

    VARIANT_A = "VARIANT_A"
    VARIANT_B = "VARIANT_B"
    INCONCLUSIVE = "INCONCLUSIVE"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class VersionMetrics(_Frozen):
    """Métriques d'efficacité (ROI) d'une version de directive."""

    estimated_token_weight: int = Field(ge=0)
    cost_efficiency_score: int = Field(ge=0, le=100)
    recommended_model_tier: ModelTier = ModelTier.FLASH


class PromptVersion(_Frozen):
    """Version immuable d'une directive système."""

    version_tag: str = Field(pattern=VERSION_TAG_PATTERN)
    system_directive: str = Field(min_length=1)
    author_identifier: str = Field(min_length=1)
    metrics: VersionMetrics
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    @property
    def is_vocal_enabled(self) -> bool:
        """Sortie vocale autorisée (activée par défaut)."""
        return bool(self.metadata.get("vocal_enabled", True))


class ExperimentConfig(_Frozen):
    """Règles de répartition déterministe du trafic."""

    experiment_name: str = Field(min_length=5)
    is_active: bool = True
    traffic_split: float = Field(default=0.5, ge=0.0, le=1.0)
    target_metric: TargetMetric = TargetMetric.SENTIMENT


class GovernanceContext(_Frozen):
    """Racine de configuration par tenant: version active, expérimentale et expérience."""

    tenant_id: str
    context_name: str = Field(min_length=1)
    status: ContextStatus
    active_version: PromptVersion
    experimental_version: PromptVersion | None = None
    experiment: ExperimentConfig | None = None


class ResolvedDirective(_Frozen):
    """Directive consolidée prête pour l'inférence (jamais persistée)."""

    optimized_prompt: str
    version_tag: str
    assigned_variant: Variant
    model_tier: ModelTier
    is_vocal_enabled: bool
    integrity_checksum: str
    served_by: Tier
    is_failsafe: bool = False


class ExperimentMetrics(_Frozen):
    """Métriques agrégées d'une variante."""

    sentiment_score: float
    tokens_used: int = Field(ge=0)


class LayerAudit(_Frozen):
    """État d'une couche de persistance lors d'une sonde de santé."""

    layer: Tier
    latency_ms: float = Field(ge=0.0)
    is_healthy: bool
    data_fingerprint: str | None = None


@dataclass
class RawTenantRecord:
    """
    Enregistrement tenant tel que stocké dans la source de vérité (objet domaine).

    Attributs
    - tenant_id: identifiant unique du tenant.
    - organization_name: libellé de l'organisation.
    - status: statut opérationnel (ACTIVE, SUSPENDED, MAINTENANCE, PROVISIONING, ARCHIVED).
    - system_prompt: directive de production.
    - directive_version / author_identifier / model_tier / vocal_enabled: provenance et flags.
    - experimental_prompt / experimental_version: directive en test (optionnelle).
    - experiment_name / experiment_traffic_split / experiment_active: expérience A/B.
    - updated_at: date de dernière mutation.
    """

    tenant_id: str
    organization_name: str
    status: str
    system_prompt: str
    updated_at: datetime
    directive_version: str | None = None
    author_identifier: str | None = None
    model_tier: str | None = None
    vocal_enabled: bool = True
    experimental_prompt: str | None = None
    experimental_version: str | None = None
    experiment_name: str | None = None
    experiment_traffic_split: float = 0.5
    experiment_active: bool = False
