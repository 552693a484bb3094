"""
Ranking de resultados: filtro por score mínimo, orden total y corte.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from afinidad.models import MatchResult


def _timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        # Las fechas naive se interpretan como UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def sort_key(result: MatchResult) -> tuple:
    """
    Clave de orden total y determinística.

    1. overall_score descendente
    2. candidate_updated_at descendente (sin fecha va al final)
    3. candidate_id ascendente
    """
    updated = result.candidate_updated_at
    if updated is None:
        return (-result.overall_score, 1, 0.0, result.candidate_id)
    return (-result.overall_score, 0, -_timestamp(updated), result.candidate_id)


def rank(
    results: Iterable[MatchResult],
    min_score: float = 0.0,
    limit: Optional[int] = None,
) -> list[MatchResult]:
    """
    Descarta los resultados con score < min_score, ordena y corta a limit.

    Args:
        results: Resultados sin ordenar
        min_score: Score mínimo (inclusive)
        limit: Máximo de resultados (None = todos)

    Returns:
        Lista ordenada por sort_key
    """
    kept = [result for result in results if result.overall_score >= min_score]
    kept.sort(key=sort_key)
    if limit is not None:
        kept = kept[:limit]
    return kept
