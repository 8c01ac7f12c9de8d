"""
Application principale FastAPI (surface opérationnelle).

Ce module assemble les composants exposés aux opérateurs: santé, audit des couches de
directives et métriques Prometheus.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter le middleware de métriques
- Monter les routers (santé et métriques)
"""

from __future__ import annotations

from fastapi import FastAPI

from directive_engine.api.routes_health import router as health_router
from directive_engine.app.metrics import PrometheusMiddleware, metrics_router
from directive_engine.core.container import Container
from directive_engine.core.container import container as default_container
from directive_engine.core.logging import setup_logging


def create_app(container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog) au niveau `LOG_LEVEL`
    - Attache le conteneur à `app.state`
    - Publie les routes de santé et de métriques
    """
    container = container or default_container
    settings = container.settings
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.state.container = container
    app.add_middleware(PrometheusMiddleware)
    app.include_router(health_router)
    app.include_router(metrics_router)
    return app


app = create_app()
