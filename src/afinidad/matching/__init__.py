"""
Motor de matching.

Puntúa la compatibilidad cliente-propiedad criterio por criterio,
agrega con pesos renormalizados y devuelve un ranking explicable.
"""

from afinidad.matching.engine import MatchingEngine, MatchOptions, evaluate_pair
from afinidad.matching.criteria import CRITERIA, CRITERION_IDS, Evaluation, ScoringRules
from afinidad.matching.weights import DEFAULT_PROFILE, DEFAULT_WEIGHTS, WeightProfile
from afinidad.matching.aggregator import aggregate
from afinidad.matching.ranker import rank
from afinidad.matching.explanation import explain, summarize
from afinidad.matching.analytics import MatchAnalytics, build_match_analytics

__all__ = [
    # Motor
    "MatchingEngine",
    "MatchOptions",
    "evaluate_pair",
    # Criterios
    "CRITERIA",
    "CRITERION_IDS",
    "Evaluation",
    "ScoringRules",
    # Pesos
    "DEFAULT_PROFILE",
    "DEFAULT_WEIGHTS",
    "WeightProfile",
    # Pasos del pipeline
    "aggregate",
    "rank",
    "explain",
    "summarize",
    # Analytics
    "MatchAnalytics",
    "build_match_analytics",
]
