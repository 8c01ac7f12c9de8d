"""
Cache de contextes en mémoire de processus (Tier 1).

Stocke pour chaque tenant le contexte de gouvernance, son expiration et son sceau
d'intégrité. Chaque lecture recalcule le sceau: une divergence évince l'entrée et lève
`IntegrityCorruptionError`, un contenu corrompu n'est jamais servi.
"""

from __future__ import annotations

import threading
import time
import zlib
from collections.abc import Callable
from dataclasses import dataclass

from directive_engine.domain.errors import IntegrityCorruptionError
from directive_engine.domain.integrity import seal, verify_seal
from directive_engine.domain.models import GovernanceContext, Tier


@dataclass
class CacheEntry:
    """Entrée de cache: contexte, expiration (horloge du cache) et sceau."""

    context: GovernanceContext
    expires_at: float
    integrity_seal: str


class ProcessLocalCache:
    """
    Cache L1 privé au processus, protégé par des verrous répartis (striping).

    Lecture, recalcul du sceau et comparaison s'exécutent sous le verrou de la clé, ce
    qui les rend atomiques face à une réécriture concurrente du même tenant.
    """

    def __init__(self, lock_stripes: int = 16, clock: Callable[[], float] | None = None):
        """Initialise un cache vide avec `lock_stripes` verrous."""
        self._db: dict[str, CacheEntry] = {}
        self._locks = [threading.Lock() for _ in range(max(1, lock_stripes))]
        self._clock = clock or time.monotonic

    def _lock_for(self, tenant_id: str) -> threading.Lock:
        return self._locks[zlib.crc32(tenant_id.encode("utf-8")) % len(self._locks)]

    def get(self, tenant_id: str) -> CacheEntry | None:
        """Retourne l'entrée vivante et vérifiée, ou None (absente ou expirée)."""
        with self._lock_for(tenant_id):
            entry = self._db.get(tenant_id)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                self._db.pop(tenant_id, None)
                return None
            if not verify_seal(entry.context, entry.integrity_seal):
                self._db.pop(tenant_id, None)
                raise IntegrityCorruptionError(tenant_id, Tier.L1_RAM.value)
            return entry

    def put(self, tenant_id: str, context: GovernanceContext, ttl_seconds: float) -> None:
        """Enregistre/écrase le contexte d'un tenant avec son sceau et son expiration."""
        entry = CacheEntry(
            context=context,
            expires_at=self._clock() + ttl_seconds,
            integrity_seal=seal(context),
        )
        with self._lock_for(tenant_id):
            self._db[tenant_id] = entry

    def peek(self, tenant_id: str, *, include_expired: bool = True) -> CacheEntry | None:
        """Retourne l'entrée brute sans vérification ni éviction (diagnostic).

        Avec `include_expired=False`, une entrée expirée est vue comme absente.
        """
        with self._lock_for(tenant_id):
            entry = self._db.get(tenant_id)
            if entry is not None and not include_expired and self._clock() >= entry.expires_at:
                return None
            return entry

    def evict(self, tenant_id: str) -> bool:
        """Évince l'entrée d'un tenant; retourne True si elle existait."""
        with self._lock_for(tenant_id):
            return self._db.pop(tenant_id, None) is not None

    def clear(self) -> None:
        """Vide le cache."""
        for lock in self._locks:
            lock.acquire()
        try:
            self._db.clear()
        finally:
            for lock in reversed(self._locks):
                lock.release()

    def __len__(self) -> int:
        return len(self._db)
