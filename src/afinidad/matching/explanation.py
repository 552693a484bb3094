"""
Explicación de un match para la capa de presentación.

Es una proyección pura: nunca modifica el score ni el orden canónico
del breakdown.
"""

from typing import Optional

from afinidad.models import CriterionScore, MatchResult


def explain(result: MatchResult, top_n: Optional[int] = None) -> list[CriterionScore]:
    """
    Criterios que aplican, ordenados por aporte (weighted_score) descendente.

    A igual aporte se mantiene el orden canónico (el sort es estable).

    Args:
        result: Resultado de matching
        top_n: Si se indica, devuelve solo los N criterios de mayor aporte
    """
    applicable = [score for score in result.breakdown if score.applicable]
    ordered = sorted(applicable, key=lambda score: score.weighted_score, reverse=True)
    if top_n is not None:
        ordered = ordered[: max(top_n, 0)]
    return ordered


def summarize(result: MatchResult, top_n: int = 5) -> dict:
    """Resumen listo para renderizar una tarjeta de match."""
    top = explain(result, top_n=top_n)
    return {
        "candidate_id": result.candidate_id,
        "overall_score": result.overall_score,
        "label": result.label,
        "top_criteria": [score.to_dict() for score in top],
        "strengths": [score.criterion for score in top if score.matched],
        "gaps": [
            score.criterion
            for score in result.breakdown
            if score.applicable and score.raw_score == 0
        ],
    }
