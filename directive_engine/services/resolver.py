"""
Résolveur de directives: cascade L1 → L2 → L3 → L0.

Point d'entrée unique `resolve_active_directive`. La cascade absorbe toutes les
défaillances des couches (ratés, pannes, corruption) et se replie en dernier recours sur
la directive d'urgence compilée: l'appelant reçoit toujours une directive, sauf si le
délai qu'il a lui-même imposé expire.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

import structlog
from pydantic import ValidationError

from directive_engine.app.metrics import (
    DIRECTIVE_FAILSAFE_TOTAL,
    DIRECTIVE_INTEGRITY_VIOLATIONS,
    DIRECTIVE_RESOLUTION_LATENCY,
    DIRECTIVE_RESOLUTIONS,
    DIRECTIVE_TIER_MISSES,
    labelize_tenant,
)
from directive_engine.domain.errors import (
    DirectiveUnresolvedError,
    ErrorCodes,
    ExhaustedTiersCondition,
    IntegrityCorruptionError,
    NotFoundError,
    TransientIOError,
)
from directive_engine.domain.integrity import seal
from directive_engine.domain.models import (
    GovernanceContext,
    LayerAudit,
    ResolvedDirective,
    Tier,
)
from directive_engine.domain.prompt import normalize_directive
from directive_engine.domain.variants import VariantAssigner
from directive_engine.infra.emergency import EmergencyDirectiveProvider
from directive_engine.infra.local_cache import ProcessLocalCache
from directive_engine.services.sentinel import Sentinel, Severity
from directive_engine.services.tiers import TierStrategy

log = structlog.get_logger(__name__)


def _miss_reason(exc: BaseException) -> str:
    if isinstance(exc, NotFoundError):
        return "not_found"
    if isinstance(exc, TransientIOError):
        return "unavailable"
    if isinstance(exc, ValidationError):
        return "invalid_payload"
    return "error"


class DirectiveResolver:
    """Orchestre la cascade de résolution et l'affectation de variante."""

    def __init__(
        self,
        tiers: Sequence[TierStrategy],
        *,
        local_cache: ProcessLocalCache,
        bridge,
        sentinel: Sentinel | None = None,
        emergency: EmergencyDirectiveProvider | None = None,
        assigner: VariantAssigner | None = None,
        allowed_tenants: list[str] | str | None = None,
    ) -> None:
        """Initialise le résolveur avec la liste ordonnée des couches."""
        self.tiers = list(tiers)
        self._cache = local_cache
        self._bridge = bridge
        self._sentinel = sentinel or Sentinel()
        self._emergency = emergency or EmergencyDirectiveProvider()
        self._assigner = assigner or VariantAssigner(on_orphan=self._report_orphan)
        self._allowed_tenants = allowed_tenants

    async def resolve_active_directive(
        self,
        tenant_id: str,
        user_id: str,
        *,
        bypass_cache: bool = False,
        timeout: float | None = None,
    ) -> ResolvedDirective:
        """Résout la directive de `user_id` pour `tenant_id`.

        Args:
            tenant_id: Identifiant du tenant.
            user_id: Identifiant de l'utilisateur (graine du sharding).
            bypass_cache: Ignore L1 et L2 et relit la source de vérité.
            timeout: Délai maximal de la résolution complète, en secondes.

        Raises:
            DirectiveUnresolvedError: si `timeout` expire avant la fin de la résolution.
        """
        try:
            if timeout is None:
                return await self._resolve(tenant_id, user_id, bypass_cache)
            return await asyncio.wait_for(
                self._resolve(tenant_id, user_id, bypass_cache), timeout
            )
        except TimeoutError as exc:
            self._sentinel.report(
                ErrorCodes.UNRESOLVED,
                Severity.MEDIUM,
                "resolve_active_directive",
                "resolution deadline exceeded",
                tenant_id=tenant_id,
                timeout=timeout,
            )
            raise DirectiveUnresolvedError(
                f"directive for tenant {tenant_id!r} unresolved within {timeout}s",
                tenant_id=tenant_id,
            ) from exc
        except asyncio.CancelledError:
            log.warning("directive_resolution_cancelled", tenant=tenant_id)
            raise

    async def _resolve(
        self, tenant_id: str, user_id: str, bypass_cache: bool
    ) -> ResolvedDirective:
        start = time.perf_counter()
        context, layer = await self._load_context(tenant_id, bypass_cache)
        try:
            resolved = self._crystallize(context, user_id, layer)
        except Exception as exc:
            self._sentinel.report(
                ErrorCodes.INTERNAL_ERROR,
                Severity.CRITICAL,
                "crystallize_directive",
                "unexpected failure after context load; serving emergency directive",
                tenant_id=tenant_id,
                layer=layer.value,
                error=str(exc),
            )
            DIRECTIVE_FAILSAFE_TOTAL.labels(reason="internal_error").inc()
            resolved = self._crystallize(
                self._emergency.build(tenant_id), user_id, Tier.L0_GENESIS
            )

        DIRECTIVE_RESOLUTIONS.labels(
            tier=resolved.served_by.value,
            variant=resolved.assigned_variant,
            tenant=labelize_tenant(tenant_id, self._allowed_tenants),
        ).inc()
        DIRECTIVE_RESOLUTION_LATENCY.labels(tier=resolved.served_by.value).observe(
            time.perf_counter() - start
        )
        log.debug(
            "directive_resolved",
            tenant=tenant_id,
            tier=resolved.served_by.value,
            variant=resolved.assigned_variant,
            version=resolved.version_tag,
        )
        return resolved

    async def _load_context(
        self, tenant_id: str, bypass_cache: bool
    ) -> tuple[GovernanceContext, Tier]:
        failures: dict[str, str] = {}
        for tier in self.tiers:
            if bypass_cache and tier.cacheable:
                continue
            try:
                context = await tier.attempt_load(tenant_id)
            except IntegrityCorruptionError as exc:
                reason = "integrity"
                DIRECTIVE_INTEGRITY_VIOLATIONS.labels(tier=tier.layer.value).inc()
                self._sentinel.report(
                    exc.code,
                    Severity.CRITICAL,
                    "integrity_audit",
                    "cached directive failed integrity verification; entry evicted",
                    tenant_id=tenant_id,
                    layer=exc.layer,
                )
            except Exception as exc:
                reason = _miss_reason(exc)
                log.info(
                    "directive_tier_miss",
                    tier=tier.layer.value,
                    tenant=tenant_id,
                    reason=reason,
                    error=str(exc),
                )
            else:
                if context is not None:
                    return context, tier.layer
                reason = "miss"
            failures[tier.layer.value] = reason
            DIRECTIVE_TIER_MISSES.labels(tier=tier.layer.value, reason=reason).inc()

        condition = ExhaustedTiersCondition(tenant_id, failures)
        self._sentinel.report(
            condition.code,
            Severity.HIGH,
            "failsafe_trigger",
            condition.message,
            tenant_id=tenant_id,
            failures=failures,
        )
        DIRECTIVE_FAILSAFE_TOTAL.labels(reason="exhausted_tiers").inc()
        log.warning("directive_failsafe_engaged", tenant=tenant_id, failures=failures)
        return self._emergency.build(tenant_id), Tier.L0_GENESIS

    def _crystallize(
        self, context: GovernanceContext, user_id: str, layer: Tier
    ) -> ResolvedDirective:
        assignment = self._assigner.choose(context, user_id)
        version = assignment.version
        optimized = normalize_directive(version.system_directive)
        return ResolvedDirective(
            optimized_prompt=optimized,
            version_tag=version.version_tag,
            assigned_variant=assignment.variant,
            model_tier=version.metrics.recommended_model_tier,
            is_vocal_enabled=version.is_vocal_enabled,
            integrity_checksum=seal(optimized),
            served_by=layer,
            is_failsafe=bool(version.metadata.get("is_failsafe", False)),
        )

    def _report_orphan(self, context: GovernanceContext) -> None:
        self._sentinel.report(
            ErrorCodes.ORPHAN_ASSIGNMENT,
            Severity.MEDIUM,
            "variant_assignment",
            "active experiment without experimental version; serving production",
            tenant_id=context.tenant_id,
            experiment=context.experiment.experiment_name if context.experiment else None,
        )

    async def audit_layers(self, tenant_id: str) -> list[LayerAudit]:
        """Sonde chaque couche (L1, L2, L3 puis L0) sans écrire dans aucune."""
        audits: list[LayerAudit] = []
        for tier in self.tiers:
            start = time.perf_counter()
            try:
                fingerprint = await tier.probe(tenant_id)
                healthy = True
            except Exception as exc:
                fingerprint = None
                healthy = False
                log.warning(
                    "layer_audit_failed", tier=tier.layer.value, tenant=tenant_id, error=str(exc)
                )
            audits.append(
                LayerAudit(
                    layer=tier.layer,
                    latency_ms=(time.perf_counter() - start) * 1000,
                    is_healthy=healthy,
                    data_fingerprint=fingerprint,
                )
            )

        start = time.perf_counter()
        fingerprint = seal(self._emergency.build(tenant_id))
        audits.append(
            LayerAudit(
                layer=Tier.L0_GENESIS,
                latency_ms=(time.perf_counter() - start) * 1000,
                is_healthy=True,
                data_fingerprint=fingerprint,
            )
        )
        return audits

    async def invalidate(self, tenant_id: str) -> None:
        """Évince le tenant de L1 et supprime sa clé L2 (opération locale)."""
        evicted = self._cache.evict(tenant_id)
        await self._bridge.delete(tenant_id)
        log.info("directive_invalidated", tenant=tenant_id, l1_evicted=evicted)
