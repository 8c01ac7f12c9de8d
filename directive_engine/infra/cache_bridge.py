"""
Pont vers le cache distribué (Tier 2).

Ce module fournit deux implémentations de la même interface: une version Redis
(`redis.asyncio`, partagée entre processus) et une version en mémoire utilisée en
dev/tests quand `REDIS_URL` n'est pas configurée. Les lectures lèvent `TransientIOError`
en cas d'indisponibilité; les écritures sont best-effort et ne lèvent jamais.
"""

from __future__ import annotations

import time

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from directive_engine.app.metrics import DIRECTIVE_L2_WRITES
from directive_engine.domain.errors import TransientIOError
from directive_engine.domain.models import GovernanceContext

log = structlog.get_logger(__name__)


class InMemoryCacheBridge:
    """
    Cache distribué simulé en mémoire (utilisé pour dev/tests).

    Stocke les contextes sérialisés dans un dict local avec expiration, non partagé.
    """

    backend_name = "memory"

    def __init__(self, ttl_seconds: int = 3600, key_prefix: str = "directive:ctx:"):
        """Initialise une base mémoire vide."""
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix
        self._db: dict[str, tuple[str, float]] = {}

    def key_for(self, tenant_id: str) -> str:
        """Clé de stockage d'un tenant."""
        return f"{self.key_prefix}{tenant_id}"

    async def get(self, tenant_id: str) -> str | None:
        """Retourne la charge sérialisée d'un tenant, si présente et non expirée."""
        key = self.key_for(tenant_id)
        item = self._db.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if time.monotonic() >= expires_at:
            self._db.pop(key, None)
            return None
        return raw

    async def put(self, tenant_id: str, context: GovernanceContext) -> None:
        """Sérialise en JSON et stocke le contexte avec le TTL configuré.

        Les clés expirées sont purgées à chaque écriture.
        """
        now = time.monotonic()
        self._sweep(now)
        self._db[self.key_for(tenant_id)] = (context.model_dump_json(), now + self.ttl_seconds)
        DIRECTIVE_L2_WRITES.labels(result="ok").inc()

    async def delete(self, tenant_id: str) -> None:
        """Supprime la clé d'un tenant."""
        self._db.pop(self.key_for(tenant_id), None)

    def _sweep(self, now: float) -> None:
        for key in [k for k, (_, expires_at) in self._db.items() if now >= expires_at]:
            del self._db[key]

    async def ping(self) -> bool:
        """Toujours disponible."""
        return True

    async def close(self) -> None:
        """Rien à libérer."""
        return None


class RedisCacheBridge:
    """Cache distribué adossé à Redis (clé: `{prefix}{tenant_id}`)."""

    backend_name = "redis"

    def __init__(
        self,
        url: str,
        ttl_seconds: int = 3600,
        key_prefix: str = "directive:ctx:",
        client: aioredis.Redis | None = None,
    ):
        """Crée un client Redis asynchrone à partir de l'URL fournie."""
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix
        self.client = client or aioredis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=1.0,
            socket_timeout=1.0,
            health_check_interval=30,
        )

    def key_for(self, tenant_id: str) -> str:
        """Clé de stockage d'un tenant."""
        return f"{self.key_prefix}{tenant_id}"

    async def get(self, tenant_id: str) -> str | None:
        """Charge la charge sérialisée `{prefix}{tenant_id}`, si présente."""
        try:
            return await self.client.get(self.key_for(tenant_id))
        except (RedisError, OSError) as exc:
            raise TransientIOError(
                f"distributed cache unavailable: {exc}", tenant_id=tenant_id
            ) from exc

    async def put(self, tenant_id: str, context: GovernanceContext) -> None:
        """Écrit le contexte avec expiration; les erreurs sont journalisées, jamais levées."""
        try:
            await self.client.set(
                self.key_for(tenant_id), context.model_dump_json(), ex=self.ttl_seconds
            )
            DIRECTIVE_L2_WRITES.labels(result="ok").inc()
        except (RedisError, OSError) as exc:
            DIRECTIVE_L2_WRITES.labels(result="error").inc()
            log.warning("l2_write_failed", tenant=tenant_id, error=str(exc))

    async def delete(self, tenant_id: str) -> None:
        """Supprime la clé d'un tenant (best-effort)."""
        try:
            await self.client.delete(self.key_for(tenant_id))
        except (RedisError, OSError) as exc:
            log.warning("l2_delete_failed", tenant=tenant_id, error=str(exc))

    async def ping(self) -> bool:
        """Vérifie la connectivité Redis."""
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        """Ferme la connexion Redis."""
        await self.client.aclose()
