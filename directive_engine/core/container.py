"""
Conteneur d'injection de dépendances du moteur de directives.

Instancie une fois par processus les composants centraux (settings, caches L1/L2, dépôt
SQL, sentinel, chargeur, résolveur) et expose un singleton `container`.
"""

from __future__ import annotations

from directive_engine.core.settings import Settings, get_settings
from directive_engine.domain.scoring import ExperimentScorer
from directive_engine.infra.cache_bridge import InMemoryCacheBridge, RedisCacheBridge
from directive_engine.infra.emergency import EmergencyDirectiveProvider
from directive_engine.infra.loader import AuthoritativeStoreLoader
from directive_engine.infra.local_cache import ProcessLocalCache
from directive_engine.infra.repo.db import get_engine
from directive_engine.infra.repo.models import Base
from directive_engine.infra.repo.tenant_repo import TenantRecordRepo
from directive_engine.services.resilience import RetryPolicy
from directive_engine.services.resolver import DirectiveResolver
from directive_engine.services.sentinel import AlertSink, Sentinel
from directive_engine.services.tiers import AuthoritativeTier, DistributedTier, LocalTier


class Container:
    def __init__(self, settings: Settings | None = None, alert_sink: AlertSink | None = None):
        self.settings = settings or get_settings()
        s = self.settings

        self.local_cache = ProcessLocalCache(lock_stripes=s.L1_LOCK_STRIPES)
        if s.REDIS_URL:
            try:
                self.bridge = RedisCacheBridge(
                    s.REDIS_URL, ttl_seconds=s.DIRECTIVE_L2_TTL_S, key_prefix=s.DIRECTIVE_L2_KEY_PREFIX
                )
                self.storage_backend = "redis"
            except Exception as err:
                if s.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but unavailable") from err
                self.bridge = InMemoryCacheBridge(s.DIRECTIVE_L2_TTL_S, s.DIRECTIVE_L2_KEY_PREFIX)
                self.storage_backend = "memory-fallback"
        else:
            if s.REQUIRE_REDIS:
                raise RuntimeError("Redis required but REDIS_URL not set")
            self.bridge = InMemoryCacheBridge(s.DIRECTIVE_L2_TTL_S, s.DIRECTIVE_L2_KEY_PREFIX)
            self.storage_backend = "memory"

        self.engine = get_engine(s.DATABASE_URL)
        if self.engine.dialect.name == "sqlite":
            # dev/tests: pas de migration Alembic
            Base.metadata.create_all(self.engine)
        self.tenant_repo = TenantRecordRepo(self.engine)

        self.l2_policy = RetryPolicy(
            max_attempts=s.L2_MAX_ATTEMPTS,
            attempt_timeout=s.L2_ATTEMPT_TIMEOUT_S,
            base_delay=s.RETRY_BASE_DELAY_S,
            max_delay=s.RETRY_MAX_DELAY_S,
            jitter=s.RETRY_JITTER,
        )
        self.l3_policy = RetryPolicy(
            max_attempts=s.L3_MAX_ATTEMPTS,
            attempt_timeout=s.L3_ATTEMPT_TIMEOUT_S,
            base_delay=s.RETRY_BASE_DELAY_S,
            max_delay=s.RETRY_MAX_DELAY_S,
            jitter=s.RETRY_JITTER,
        )

        self.sentinel = Sentinel(alert_sink=alert_sink, component=s.APP_NAME)
        self.scorer = ExperimentScorer()
        self.loader = AuthoritativeStoreLoader(
            self.tenant_repo,
            self.local_cache,
            self.bridge,
            policy=self.l3_policy,
            cache_ttl_seconds=s.DIRECTIVE_CACHE_TTL_S,
            sentinel=self.sentinel,
        )
        self.resolver = DirectiveResolver(
            [
                LocalTier(self.local_cache),
                DistributedTier(
                    self.bridge,
                    self.local_cache,
                    policy=self.l2_policy,
                    cache_ttl_seconds=s.DIRECTIVE_CACHE_TTL_S,
                ),
                AuthoritativeTier(self.loader),
            ],
            local_cache=self.local_cache,
            bridge=self.bridge,
            sentinel=self.sentinel,
            emergency=EmergencyDirectiveProvider(),
            allowed_tenants=s.ALLOWED_TENANTS,
        )


container = Container()
