"""Définition et chargement des paramètres de configuration du moteur de directives.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "directive-engine"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"

    DATABASE_URL: str | None = None
    REDIS_URL: str | None = None
    REQUIRE_REDIS: bool = False

    # Cascade de caches (L1 RAM / L2 Redis)
    DIRECTIVE_CACHE_TTL_S: int = 300
    DIRECTIVE_L2_TTL_S: int = 3600
    DIRECTIVE_L2_KEY_PREFIX: str = "directive:ctx:"
    L1_LOCK_STRIPES: int = 16

    # Résilience des tiers 2/3
    L2_MAX_ATTEMPTS: int = 2
    L2_ATTEMPT_TIMEOUT_S: float = 0.25
    L3_MAX_ATTEMPTS: int = 3
    L3_ATTEMPT_TIMEOUT_S: float = 2.0
    RETRY_BASE_DELAY_S: float = 0.1
    RETRY_MAX_DELAY_S: float = 2.0
    RETRY_JITTER: bool = True

    # Limitation de cardinalité des labels métriques (CSV via .env, peut être vide)
    ALLOWED_TENANTS: list[str] = []


def get_settings() -> Settings:
    """Construit et retourne la configuration du moteur."""
    return Settings()
