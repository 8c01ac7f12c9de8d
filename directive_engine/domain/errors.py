"""Taxonomie des erreurs du moteur de résolution de directives.

Chaque erreur porte un code stable (voir `ErrorCodes`) repris dans les rapports du
Sentinel et dans les logs. Seule `DirectiveUnresolvedError` est destinée à sortir de
`resolve_active_directive`; toutes les autres sont absorbées par la cascade.
"""

from __future__ import annotations


class ErrorCodes:
    """Codes d'erreur standard du moteur."""

    INTEGRITY_CORRUPTION = "DIR-SEC-500"
    NOT_FOUND = "DIR-DOM-404"
    TRANSIENT_IO = "DIR-IO-503"
    ORPHAN_ASSIGNMENT = "DIR-DOM-409"
    INVALID_EXPERIMENT = "DIR-DOM-422"
    EXHAUSTED_TIERS = "DIR-DOM-503"
    UNRESOLVED = "DIR-CORE-504"
    INTERNAL_ERROR = "DIR-CORE-500"
    RETRY_EXHAUSTED = "DIR-CORE-001"


class DirectiveEngineError(Exception):
    """Erreur de base du moteur."""

    code = ErrorCodes.INTERNAL_ERROR

    def __init__(self, message: str, *, tenant_id: str | None = None) -> None:
        """Initialise l'erreur avec un message et le tenant concerné."""
        super().__init__(message)
        self.message = message
        self.tenant_id = tenant_id


class IntegrityCorruptionError(DirectiveEngineError):
    """Le sceau recalculé d'une entrée de cache ne correspond plus au sceau stocké."""

    code = ErrorCodes.INTEGRITY_CORRUPTION

    def __init__(self, tenant_id: str, layer: str) -> None:
        """Construit l'erreur pour la couche compromise."""
        super().__init__(f"corrupted directive in {layer}", tenant_id=tenant_id)
        self.layer = layer


class NotFoundError(DirectiveEngineError):
    """Aucun enregistrement tenant dans la source de vérité."""

    code = ErrorCodes.NOT_FOUND

    def __init__(self, tenant_id: str) -> None:
        """Construit l'erreur pour le tenant absent."""
        super().__init__(f"tenant {tenant_id!r} not found", tenant_id=tenant_id)


class TransientIOError(DirectiveEngineError):
    """Défaillance réseau ou stockage d'un tier 2/3 (réessayable)."""

    code = ErrorCodes.TRANSIENT_IO


class ExhaustedTiersCondition(DirectiveEngineError):
    """Toutes les couches persistantes ont échoué; la directive d'urgence est servie."""

    code = ErrorCodes.EXHAUSTED_TIERS

    def __init__(self, tenant_id: str, failures: dict[str, str]) -> None:
        """Construit la condition avec le motif d'échec de chaque couche."""
        super().__init__("all persistence tiers failed", tenant_id=tenant_id)
        self.failures = failures


class DirectiveUnresolvedError(DirectiveEngineError):
    """La résolution n'a pas abouti dans le délai imposé par l'appelant."""

    code = ErrorCodes.UNRESOLVED


class OrphanAssignmentWarning(UserWarning):
    """Expérience active sans version expérimentale chargée."""

    code = ErrorCodes.ORPHAN_ASSIGNMENT
