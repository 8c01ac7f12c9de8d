"""Répartition déterministe des utilisateurs entre production (A) et expérience (B).

Le pulse de sharding est dérivé du hash de `tenant:user:experience`. Injecter le nom de
l'expérience garantit que les groupes sont rebattus à chaque nouvelle expérience, et
seulement dans ce cas (stickiness).
"""

from __future__ import annotations

import hashlib
import warnings
from collections.abc import Callable
from typing import NamedTuple

import structlog

from directive_engine.core.constants import PULSE_HEX_DIGITS, PULSE_SPACE
from directive_engine.domain.errors import OrphanAssignmentWarning
from directive_engine.domain.models import GovernanceContext, PromptVersion, Variant

log = structlog.get_logger(__name__)


def sharding_pulse(seed: str) -> float:
    """Transforme une graine textuelle en valeur normalisée dans [0, 1)."""
    digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return int(digest[:PULSE_HEX_DIGITS], 16) / PULSE_SPACE


def sharding_seed(tenant_id: str, user_id: str, experiment_name: str) -> str:
    """Compose la graine `tenant:user:experience`."""
    return f"{tenant_id}:{user_id}:{experiment_name}"


class VariantAssignment(NamedTuple):
    """Résultat d'une affectation: variante, version choisie et pulse (None si fast path)."""

    variant: Variant
    version: PromptVersion
    pulse: float | None


class VariantAssigner:
    """Affecte une version de directive à un utilisateur pour un contexte donné."""

    def __init__(self, on_orphan: Callable[[GovernanceContext], None] | None = None) -> None:
        """Initialise l'affecteur; `on_orphan` reçoit les contextes incohérents."""
        self._on_orphan = on_orphan

    def choose(self, context: GovernanceContext, user_id: str) -> VariantAssignment:
        """Sélectionne la variante et la version pour `user_id`."""
        production = VariantAssignment("A", context.active_version, None)
        experiment = context.experiment
        # Fast path: aucun hash calculé
        if experiment is None or not experiment.is_active:
            return production
        if context.experimental_version is None:
            if experiment.traffic_split > 0:
                self._report_orphan(context)
            return production

        pulse = sharding_pulse(
            sharding_seed(context.tenant_id, user_id, experiment.experiment_name)
        )
        if pulse < experiment.traffic_split:
            assignment = VariantAssignment("B", context.experimental_version, pulse)
        else:
            assignment = VariantAssignment("A", context.active_version, pulse)
        log.debug(
            "traffic_sharded",
            tenant=context.tenant_id,
            user=user_id[:8],
            variant=assignment.variant,
            pulse=round(pulse, 4),
            threshold=experiment.traffic_split,
        )
        return assignment

    def assign(self, context: GovernanceContext, user_id: str) -> PromptVersion:
        """Retourne la version active ou expérimentale destinée à `user_id`."""
        return self.choose(context, user_id).version

    def _report_orphan(self, context: GovernanceContext) -> None:
        experiment_name = context.experiment.experiment_name if context.experiment else ""
        if self._on_orphan is not None:
            self._on_orphan(context)
        log.warning(
            "orphan_assignment",
            tenant=context.tenant_id,
            experiment=experiment_name,
            code=OrphanAssignmentWarning.code,
        )
        try:
            warnings.warn(
                OrphanAssignmentWarning(
                    f"experiment {experiment_name!r} is active for tenant "
                    f"{context.tenant_id!r} but no experimental version is loaded"
                ),
                stacklevel=3,
            )
        except OrphanAssignmentWarning:
            # filtre "error" actif: déjà journalisé, la production reste servie
            pass
