"""Directive d'urgence compilée (Tier 0).

Servie uniquement quand toutes les couches persistantes ont échoué. Le contexte est
reconstruit à chaque appel: aucun objet partagé ne peut transporter la configuration
(expérience, version expérimentale) d'un autre tenant.
"""

from __future__ import annotations

from datetime import UTC, datetime

from directive_engine.core.constants import (
    GENESIS_AUTHOR,
    GENESIS_CONTEXT_NAME,
    GENESIS_TOKEN_WEIGHT,
    GENESIS_VERSION_TAG,
    UNKNOWN_TENANT,
)
from directive_engine.domain.models import (
    ContextStatus,
    GovernanceContext,
    ModelTier,
    PromptVersion,
    VersionMetrics,
)

GENESIS_DIRECTIVE = (
    "Respond as a careful, concise technical assistant. "
    "Some configuration services are degraded: do not promise actions, "
    "do not invent account data, and offer to escalate to a human when unsure."
)
GENESIS_TIMESTAMP = datetime(2024, 1, 1, tzinfo=UTC)


class EmergencyDirectiveProvider:
    """Fournit le contexte d'urgence lié au tenant demandeur. Ne lève jamais."""

    def build(self, tenant_id: str | None) -> GovernanceContext:
        """Construit un contexte d'urgence neuf pour `tenant_id`."""
        return GovernanceContext(
            tenant_id=tenant_id or UNKNOWN_TENANT,
            context_name=GENESIS_CONTEXT_NAME,
            status=ContextStatus.PRODUCTION,
            active_version=PromptVersion(
                version_tag=GENESIS_VERSION_TAG,
                system_directive=GENESIS_DIRECTIVE,
                author_identifier=GENESIS_AUTHOR,
                metrics=VersionMetrics(
                    estimated_token_weight=GENESIS_TOKEN_WEIGHT,
                    cost_efficiency_score=100,
                    recommended_model_tier=ModelTier.FLASH,
                ),
                metadata={"vocal_enabled": True, "is_failsafe": True},
                timestamp=GENESIS_TIMESTAMP,
            ),
        )
