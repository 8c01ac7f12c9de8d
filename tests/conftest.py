"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path et fournit les fixtures partagées:
dépôt SQLite en mémoire, caches L1/L2, sentinel enregistreur.
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from directive_engine...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from directive_engine.infra.cache_bridge import InMemoryCacheBridge  # noqa: E402
from directive_engine.infra.local_cache import ProcessLocalCache  # noqa: E402
from directive_engine.infra.repo.db import get_engine  # noqa: E402
from directive_engine.infra.repo.models import Base  # noqa: E402
from directive_engine.infra.repo.tenant_repo import TenantRecordRepo  # noqa: E402
from tests.fakes import RecordingSentinel  # noqa: E402


@pytest.fixture
def engine():
    """Moteur SQLite en mémoire avec schéma créé."""
    eng = get_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def tenant_repo(engine) -> TenantRecordRepo:
    """Dépôt tenant adossé au moteur en mémoire."""
    return TenantRecordRepo(engine)


@pytest.fixture
def local_cache() -> ProcessLocalCache:
    """Cache L1 vide."""
    return ProcessLocalCache(lock_stripes=4)


@pytest.fixture
def bridge() -> InMemoryCacheBridge:
    """Cache distribué simulé en mémoire."""
    return InMemoryCacheBridge(ttl_seconds=60)


@pytest.fixture
def sentinel() -> RecordingSentinel:
    """Sentinel qui conserve tous les rapports et alertes émis."""
    return RecordingSentinel()
