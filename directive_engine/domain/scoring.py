"""Comparaison heuristique de deux variantes d'une expérience.

Le score pondère le sentiment (70%) contre la consommation de tokens (30%). Ce n'est pas
un test de significativité statistique: un écart inférieur au seuil est simplement déclaré
non concluant.
"""

from directive_engine.core.constants import (
    SENTIMENT_WEIGHT,
    SIGNIFICANCE_THRESHOLD,
    TOKEN_COST_WEIGHT,
    TOKENS_PER_COST_UNIT,
)
from directive_engine.domain.models import ExperimentMetrics, ExperimentVerdict


def variant_score(metrics: ExperimentMetrics) -> float:
    """Score d'une variante: sentiment pondéré moins coût en tokens pondéré."""
    return (
        metrics.sentiment_score * SENTIMENT_WEIGHT
        - (metrics.tokens_used / TOKENS_PER_COST_UNIT) * TOKEN_COST_WEIGHT
    )


class ExperimentScorer:
    """Désigne la variante gagnante d'une expérience, ou l'absence de verdict."""

    def __init__(self, threshold: float = SIGNIFICANCE_THRESHOLD) -> None:
        """Initialise le scorer avec le seuil d'écart minimal."""
        self.threshold = threshold

    def evaluate(
        self, metrics_a: ExperimentMetrics, metrics_b: ExperimentMetrics
    ) -> ExperimentVerdict:
        """Compare les scores de A et B."""
        score_a = variant_score(metrics_a)
        score_b = variant_score(metrics_b)
        if abs(score_a - score_b) < self.threshold:
            return ExperimentVerdict.INCONCLUSIVE
        return ExperimentVerdict.VARIANT_A if score_a > score_b else ExperimentVerdict.VARIANT_B
