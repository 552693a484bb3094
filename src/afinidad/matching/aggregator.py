"""
Agregación de scores por criterio en un score general.
"""

from typing import Iterable, Optional

from afinidad.models import CriterionScore


def aggregate(scores: Iterable[CriterionScore]) -> Optional[float]:
    """
    Promedio ponderado de los criterios que aplican.

    Los pesos se renormalizan sobre los criterios aplicables: un cliente
    sin preferencia de zona no pierde puntos por zona, y el resto de los
    criterios absorbe ese peso en proporción.

    Returns:
        Score de 0 a 100, o None si no hay nada que promediar (ningún
        criterio aplica o todos los que aplican pesan 0). Qué hacer con
        None lo decide la política de match vacío del motor.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for score in scores:
        if not score.applicable:
            continue
        total_weight += score.weight
        weighted_sum += score.raw_score * score.weight

    if total_weight <= 0:
        return None
    return min(100.0, max(0.0, weighted_sum / total_weight))
