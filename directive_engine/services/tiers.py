"""Stratégies de chargement de la cascade L1 → L2 → L3.

Chaque couche expose la même capacité `attempt_load(tenant_id)` (contexte ou None) et une
sonde `probe(tenant_id)` (empreinte ou None) sans effet de bord sur les autres couches.
L'ordre de repli est une simple liste, parcourue par le résolveur.
"""

from __future__ import annotations

from typing import Protocol

import structlog

from directive_engine.domain.errors import IntegrityCorruptionError, NotFoundError
from directive_engine.domain.integrity import seal, verify_seal
from directive_engine.domain.models import GovernanceContext, Tier
from directive_engine.infra.loader import AuthoritativeStoreLoader
from directive_engine.infra.local_cache import ProcessLocalCache
from directive_engine.services.resilience import RetryPolicy, with_retry

log = structlog.get_logger(__name__)


class TierStrategy(Protocol):
    """Interface minimale d'une couche de la cascade."""

    layer: Tier
    cacheable: bool

    async def attempt_load(self, tenant_id: str) -> GovernanceContext | None: ...

    async def probe(self, tenant_id: str) -> str | None: ...


class LocalTier:
    """Couche L1: cache mémoire du processus."""

    layer = Tier.L1_RAM
    cacheable = True

    def __init__(self, cache: ProcessLocalCache) -> None:
        self._cache = cache

    async def attempt_load(self, tenant_id: str) -> GovernanceContext | None:
        entry = self._cache.get(tenant_id)
        return entry.context if entry else None

    async def probe(self, tenant_id: str) -> str | None:
        entry = self._cache.peek(tenant_id, include_expired=False)
        if entry is None:
            return None
        if not verify_seal(entry.context, entry.integrity_seal):
            raise IntegrityCorruptionError(tenant_id, self.layer.value)
        return entry.integrity_seal


class DistributedTier:
    """Couche L2: cache distribué; un contexte valide réhydrate L1."""

    layer = Tier.L2_REDIS
    cacheable = True

    def __init__(
        self,
        bridge,
        cache: ProcessLocalCache,
        *,
        policy: RetryPolicy | None = None,
        cache_ttl_seconds: int = 300,
    ) -> None:
        self._bridge = bridge
        self._cache = cache
        self._policy = policy or RetryPolicy(max_attempts=2, attempt_timeout=0.25)
        self._cache_ttl_seconds = cache_ttl_seconds

    async def _read(self, tenant_id: str) -> GovernanceContext | None:
        raw = await with_retry(lambda: self._bridge.get(tenant_id), self._policy, "l2_get")
        if raw is None:
            return None
        # même contrat structurel que la sortie du tier 3 (ValidationError => échec)
        context = GovernanceContext.model_validate_json(raw)
        if context.tenant_id != tenant_id:
            log.warning("l2_tenant_mismatch", tenant=tenant_id, payload_tenant=context.tenant_id)
            return None
        return context

    async def attempt_load(self, tenant_id: str) -> GovernanceContext | None:
        context = await self._read(tenant_id)
        if context is not None:
            self._cache.put(tenant_id, context, self._cache_ttl_seconds)
        return context

    async def probe(self, tenant_id: str) -> str | None:
        context = await self._read(tenant_id)
        return seal(context) if context else None


class AuthoritativeTier:
    """Couche L3: source de vérité relationnelle."""

    layer = Tier.L3_SQL
    cacheable = False

    def __init__(self, loader: AuthoritativeStoreLoader) -> None:
        self._loader = loader

    async def attempt_load(self, tenant_id: str) -> GovernanceContext | None:
        return await self._loader.load(tenant_id)

    async def probe(self, tenant_id: str) -> str | None:
        try:
            context = await self._loader.fetch(tenant_id)
        except NotFoundError:
            return None
        return seal(context)
