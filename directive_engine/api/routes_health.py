"""
Endpoints de santé du moteur de directives.

Expose `/health` (état général et backend du cache distribué) et
`/health/directives/{tenant_id}` (audit couche par couche, sans écriture).
"""

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Vérifie la disponibilité de l'API et du cache distribué."""
    container = request.app.state.container
    return {
        "status": "ok",
        "storage": getattr(container, "storage_backend", "unknown"),
        "redis_url": bool(getattr(container.settings, "REDIS_URL", None)),
        "l2_backend": container.bridge.backend_name,
        "l2_reachable": await container.bridge.ping(),
    }


@router.get("/health/directives/{tenant_id}")
async def directive_layers(tenant_id: str, request: Request):
    """Audite la résolution d'un tenant sur chaque couche (L1, L2, L3, L0)."""
    resolver = request.app.state.container.resolver
    audits = await resolver.audit_layers(tenant_id)
    return {
        "tenant_id": tenant_id,
        "healthy": all(a.is_healthy for a in audits),
        "layers": [a.model_dump(mode="json") for a in audits],
    }
