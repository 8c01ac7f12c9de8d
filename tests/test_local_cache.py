"""
Tests du cache L1 en mémoire de processus.

Vérifie l'expiration, la détection de corruption (sceau recalculé), l'éviction et la
tenue sous accès concurrents.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from directive_engine.domain.errors import IntegrityCorruptionError
from directive_engine.domain.integrity import seal
from directive_engine.infra.emergency import EmergencyDirectiveProvider
from directive_engine.infra.local_cache import ProcessLocalCache


class FakeClock:
    """Horloge monotone pilotée par le test."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _context(tenant_id: str = "acme"):
    return EmergencyDirectiveProvider().build(tenant_id)


def test_put_then_get_returns_sealed_entry() -> None:
    """Teste qu'une entrée fraîche est servie avec son sceau."""
    cache = ProcessLocalCache()
    ctx = _context()
    cache.put("acme", ctx, 60)

    entry = cache.get("acme")

    assert entry is not None
    assert entry.context == ctx
    assert entry.integrity_seal == seal(ctx)


def test_expired_entry_is_dropped() -> None:
    """Teste qu'une entrée expirée n'est plus servie et disparaît du cache."""
    clock = FakeClock()
    cache = ProcessLocalCache(clock=clock)
    cache.put("acme", _context(), 10)

    clock.now += 9.9
    assert cache.get("acme") is not None
    clock.now += 0.2
    assert cache.get("acme") is None
    assert len(cache) == 0


def test_peek_can_ignore_expired_entries() -> None:
    """Teste que `peek` sans les entrées expirées les voit absentes sans les évincer."""
    clock = FakeClock()
    cache = ProcessLocalCache(clock=clock)
    cache.put("acme", _context(), 10)

    assert cache.peek("acme", include_expired=False) is not None
    clock.now += 10
    assert cache.peek("acme", include_expired=False) is None
    assert cache.peek("acme") is not None
    assert len(cache) == 1


def test_tampered_entry_raises_and_is_evicted() -> None:
    """Teste qu'un contenu modifié sans mise à jour du sceau lève et est évincé."""
    cache = ProcessLocalCache()
    cache.put("acme", _context(), 60)
    entry = cache.peek("acme")
    entry.context = entry.context.model_copy(update={"tenant_id": "intruder"})

    with pytest.raises(IntegrityCorruptionError) as excinfo:
        cache.get("acme")

    assert excinfo.value.layer == "L1_RAM"
    assert excinfo.value.tenant_id == "acme"
    assert cache.peek("acme") is None
    assert cache.get("acme") is None


def test_evict_and_clear() -> None:
    """Teste l'éviction ciblée et la purge complète."""
    cache = ProcessLocalCache(lock_stripes=2)
    cache.put("a", _context("a"), 60)
    cache.put("b", _context("b"), 60)

    assert cache.evict("a") is True
    assert cache.evict("a") is False
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0


def test_concurrent_writers_and_readers() -> None:
    """Teste que lectures et écritures concurrentes ne servent jamais d'entrée corrompue."""
    cache = ProcessLocalCache(lock_stripes=4)
    contexts = [_context(f"tenant-{i}") for i in range(8)]

    def worker(n: int) -> int:
        served = 0
        for i in range(200):
            ctx = contexts[(n + i) % len(contexts)]
            cache.put(ctx.tenant_id, ctx, 60)
            entry = cache.get(contexts[i % len(contexts)].tenant_id)
            if entry is not None:
                assert entry.integrity_seal == seal(entry.context)
                served += 1
        return served

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(worker, range(8)))

    assert sum(results) > 0
    assert len(cache) == len(contexts)
