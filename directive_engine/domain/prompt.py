"""
Heuristiques appliquées au texte des directives.

- normalisation: compacte les espaces redondants avant l'envoi au modèle.
- poids en tokens: estimation par densité lexicale (caractères par token).
- score d'efficacité: règle à seuil pénalisant les directives trop lourdes.
"""

import math
import re

from directive_engine.core.constants import (
    CHARS_PER_TOKEN,
    EFFICIENCY_SCORE_NOMINAL,
    EFFICIENCY_SCORE_PENALIZED,
    TOKEN_WEIGHT_PENALTY_CUTOFF,
)

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_directive(text: str) -> str:
    """Remplace chaque suite d'espaces (y compris retours ligne) par un espace unique."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


def estimate_token_weight(text: str) -> int:
    """Estime le nombre de tokens d'un texte."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def cost_efficiency_score(token_weight: int) -> int:
    """Score 0-100: pénalise les directives au-delà du seuil de poids."""
    if token_weight > TOKEN_WEIGHT_PENALTY_CUTOFF:
        return EFFICIENCY_SCORE_PENALIZED
    return EFFICIENCY_SCORE_NOMINAL
