"""
Chargeur de la source de vérité (Tier 3).

Lit l'enregistrement tenant (SQLAlchemy synchrone, exécuté dans un thread), le transforme
en `GovernanceContext` (poids en tokens, score d'efficacité, signature d'intégrité) puis
écrit le résultat dans le cache L1 (synchrone) et dans le cache distribué (tâche de fond
non bloquante).
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from directive_engine.core.constants import (
    DEFAULT_AUTHOR,
    DEFAULT_DIRECTIVE_VERSION,
    DEFAULT_EXPERIMENTAL_VERSION,
)
from directive_engine.domain.errors import ErrorCodes, NotFoundError, TransientIOError
from directive_engine.domain.integrity import seal
from directive_engine.domain.models import (
    ContextStatus,
    ExperimentConfig,
    GovernanceContext,
    ModelTier,
    PromptVersion,
    RawTenantRecord,
    VersionMetrics,
)
from directive_engine.domain.prompt import cost_efficiency_score, estimate_token_weight
from directive_engine.infra.local_cache import ProcessLocalCache
from directive_engine.infra.repo.tenant_repo import TenantRecordRepo
from directive_engine.services.resilience import RetryPolicy, with_retry
from directive_engine.services.sentinel import Sentinel, Severity

log = structlog.get_logger(__name__)

# Statut opérationnel du tenant -> cycle de vie du contexte
_STATUS_MAP = {
    "ACTIVE": ContextStatus.PRODUCTION,
    "MAINTENANCE": ContextStatus.STAGING,
    "PROVISIONING": ContextStatus.STAGING,
    "SUSPENDED": ContextStatus.DEPRECATED,
    "ARCHIVED": ContextStatus.DEPRECATED,
}


def map_status(status: str | None) -> ContextStatus:
    """Projette le statut opérationnel d'un tenant sur le cycle de vie du contexte."""
    return _STATUS_MAP.get((status or "").strip().upper(), ContextStatus.DRAFT)


def _model_tier(value: str | None) -> ModelTier:
    try:
        return ModelTier((value or ModelTier.FLASH.value).upper())
    except ValueError:
        return ModelTier.FLASH


def _build_version(
    record: RawTenantRecord, text: str, version_tag: str, *, experimental: bool
) -> PromptVersion:
    weight = estimate_token_weight(text)
    metadata = {
        "vocal_enabled": record.vocal_enabled,
        "integrity_signature": seal(text),
    }
    if experimental:
        metadata["is_experimental"] = True
    return PromptVersion(
        version_tag=version_tag,
        system_directive=text,
        author_identifier=record.author_identifier or DEFAULT_AUTHOR,
        metrics=VersionMetrics(
            estimated_token_weight=weight,
            cost_efficiency_score=cost_efficiency_score(weight),
            recommended_model_tier=_model_tier(record.model_tier),
        ),
        metadata=metadata,
        timestamp=record.updated_at,
    )


def _build_experiment(
    record: RawTenantRecord,
) -> tuple[PromptVersion | None, ExperimentConfig | None]:
    experimental_version = None
    if record.experimental_prompt:
        experimental_version = _build_version(
            record,
            record.experimental_prompt,
            record.experimental_version or DEFAULT_EXPERIMENTAL_VERSION,
            experimental=True,
        )
    experiment = None
    if record.experiment_name:
        experiment = ExperimentConfig(
            experiment_name=record.experiment_name,
            is_active=record.experiment_active,
            traffic_split=record.experiment_traffic_split,
        )
    return experimental_version, experiment


def record_to_context(
    record: RawTenantRecord,
    on_invalid_experiment: Callable[[RawTenantRecord, ValidationError], None] | None = None,
) -> GovernanceContext:
    """Transforme un enregistrement brut en contexte de gouvernance validé.

    Seule la version de production est obligatoire: une expérience ou une version
    expérimentale invalide est écartée (avec `on_invalid_experiment`), le tenant reste
    servi en production.
    """
    try:
        experimental_version, experiment = _build_experiment(record)
    except ValidationError as exc:
        experimental_version, experiment = None, None
        log.warning(
            "experiment_discarded",
            tenant=record.tenant_id,
            experiment=record.experiment_name,
            errors=exc.error_count(),
        )
        if on_invalid_experiment is not None:
            on_invalid_experiment(record, exc)
    return GovernanceContext(
        tenant_id=record.tenant_id,
        context_name=record.organization_name,
        status=map_status(record.status),
        active_version=_build_version(
            record,
            record.system_prompt,
            record.directive_version or DEFAULT_DIRECTIVE_VERSION,
            experimental=False,
        ),
        experimental_version=experimental_version,
        experiment=experiment,
    )


class AuthoritativeStoreLoader:
    """Hydrate les contextes depuis la base relationnelle et alimente la cascade."""

    def __init__(
        self,
        repo: TenantRecordRepo,
        local_cache: ProcessLocalCache,
        bridge,
        *,
        policy: RetryPolicy | None = None,
        cache_ttl_seconds: int = 300,
        sentinel: Sentinel | None = None,
    ) -> None:
        """Initialise le chargeur avec le repo, le cache L1 et le pont L2."""
        self._sentinel = sentinel or Sentinel()
        self._repo = repo
        self._cache = local_cache
        self._bridge = bridge
        self._policy = policy or RetryPolicy()
        self._cache_ttl_seconds = cache_ttl_seconds
        self._pending: set[asyncio.Task] = set()

    async def _find(self, tenant_id: str) -> RawTenantRecord | None:
        try:
            return await asyncio.to_thread(self._repo.find_tenant_by_id, tenant_id)
        except SQLAlchemyError as exc:
            raise TransientIOError(
                f"authoritative store unavailable: {exc}", tenant_id=tenant_id
            ) from exc

    async def fetch(self, tenant_id: str) -> GovernanceContext:
        """Lit et transforme le contexte d'un tenant, sans écrire dans les caches."""
        record = await with_retry(lambda: self._find(tenant_id), self._policy, "l3_find_tenant")
        if record is None:
            raise NotFoundError(tenant_id)
        return record_to_context(record, self._report_invalid_experiment)

    def _report_invalid_experiment(self, record: RawTenantRecord, exc: ValidationError) -> None:
        self._sentinel.report(
            ErrorCodes.INVALID_EXPERIMENT,
            Severity.MEDIUM,
            "record_to_context",
            "invalid experiment discarded, production served",
            tenant_id=record.tenant_id,
            experiment=record.experiment_name,
            fields=[".".join(str(p) for p in err["loc"]) for err in exc.errors()],
        )

    async def load(self, tenant_id: str, ttl_seconds: int | None = None) -> GovernanceContext:
        """Charge le contexte puis l'écrit dans L1 (synchrone) et L2 (en tâche de fond)."""
        context = await self.fetch(tenant_id)
        self._cache.put(tenant_id, context, ttl_seconds or self._cache_ttl_seconds)
        self._schedule_distributed_write(tenant_id, context)
        log.debug("l3_context_loaded", tenant=tenant_id, version=context.active_version.version_tag)
        return context

    def _schedule_distributed_write(self, tenant_id: str, context: GovernanceContext) -> None:
        task = asyncio.create_task(self._bridge.put(tenant_id, context))
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.warning("l2_write_through_failed", error=str(exc))

    @property
    def pending_writes(self) -> int:
        """Nombre d'écritures L2 encore en vol."""
        return len(self._pending)

    async def drain(self) -> None:
        """Attend la fin des écritures L2 en vol."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
