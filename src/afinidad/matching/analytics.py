"""
Métricas agregadas sobre un lote de matches cliente -> propiedad.

Alimenta el dashboard de matchmaking: distribución de scores, clientes
sin buenos matches y propiedades con más interesados.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

from afinidad.config import MATCH_THRESHOLDS
from afinidad.matching.ranker import sort_key
from afinidad.models import MatchResult

# (etiqueta, mínimo, máximo) inclusive, sobre el score redondeado
DISTRIBUTION_BUCKETS = (
    ("0-25%", 0, 25),
    ("26-50%", 26, 50),
    ("51-70%", 51, 70),
    ("71-85%", 71, 85),
    ("86-100%", 86, 100),
)

TOP_ENTRIES = 10
TOP_MATCHES = 20


@dataclass
class PropertyMatchStats:
    """Interés agregado en una propiedad."""

    property_id: str
    match_count: int
    average_score: int
    top_score: float


@dataclass
class MatchAnalytics:
    """Resumen para el dashboard."""

    distribution: dict[str, int] = field(
        default_factory=lambda: {label: 0 for label, _, _ in DISTRIBUTION_BUCKETS}
    )
    average_score: int = 0
    clients_with_matches: int = 0
    unmatched_clients: list[tuple[str, float]] = field(default_factory=list)
    top_matches: list[MatchResult] = field(default_factory=list)
    hot_properties: list[PropertyMatchStats] = field(default_factory=list)
    total_clients: int = 0
    total_properties: int = 0

    def to_dict(self) -> dict:
        return {
            "distribution": dict(self.distribution),
            "average_score": self.average_score,
            "clients_with_matches": self.clients_with_matches,
            "unmatched_clients": [
                {"client_id": client_id, "best_score": best}
                for client_id, best in self.unmatched_clients
            ],
            "top_matches": [
                {
                    "client_id": result.anchor_id,
                    "property_id": result.candidate_id,
                    "overall_score": result.overall_score,
                    "label": result.label,
                }
                for result in self.top_matches
            ],
            "hot_properties": [vars(stats) for stats in self.hot_properties],
            "total_clients": self.total_clients,
            "total_properties": self.total_properties,
        }


def round_half_up(value: float) -> int:
    """Redondeo con .5 hacia arriba (50.5 -> 51), como el dashboard."""
    return math.floor(value + 0.5)


def _bucket_for(score: float) -> Optional[str]:
    rounded = round_half_up(score)
    for label, low, high in DISTRIBUTION_BUCKETS:
        if low <= rounded <= high:
            return label
    return None


def build_match_analytics(
    results: Iterable[MatchResult],
    client_ids: Iterable[str],
    property_ids: Iterable[str],
    fair_threshold: float = MATCH_THRESHOLDS["fair"],
) -> MatchAnalytics:
    """
    Calcula las métricas del dashboard.

    Args:
        results: Matches con el cliente como ancla (ver MatchingEngine.batch_matches)
        client_ids: Todos los clientes considerados, tengan o no matches
        property_ids: Todas las propiedades consideradas
        fair_threshold: Score desde el cual un match cuenta como aceptable
    """
    results = list(results)
    client_ids = list(dict.fromkeys(client_ids))
    property_ids = list(dict.fromkeys(property_ids))

    analytics = MatchAnalytics(
        total_clients=len(client_ids),
        total_properties=len(property_ids),
    )
    if not results:
        analytics.unmatched_clients = [(client_id, 0.0) for client_id in client_ids][:TOP_ENTRIES]
        return analytics

    best_by_client: dict[str, float] = {}
    property_scores: dict[str, list[float]] = {}

    for result in results:
        bucket = _bucket_for(result.overall_score)
        if bucket is not None:
            analytics.distribution[bucket] += 1

        client_id = result.anchor_id
        if client_id is not None:
            best_by_client[client_id] = max(
                best_by_client.get(client_id, 0.0), result.overall_score
            )

        if result.overall_score >= fair_threshold:
            property_scores.setdefault(result.candidate_id, []).append(result.overall_score)

    analytics.average_score = round_half_up(
        sum(result.overall_score for result in results) / len(results)
    )
    analytics.clients_with_matches = sum(
        1 for best in best_by_client.values() if best >= fair_threshold
    )

    unmatched = [
        (client_id, best_by_client.get(client_id, 0.0))
        for client_id in client_ids
        if best_by_client.get(client_id, 0.0) < fair_threshold
    ]
    unmatched.sort(key=lambda item: (item[1], item[0]))
    analytics.unmatched_clients = unmatched[:TOP_ENTRIES]

    hot = [
        PropertyMatchStats(
            property_id=property_id,
            match_count=len(scores),
            average_score=round_half_up(sum(scores) / len(scores)),
            top_score=max(scores),
        )
        for property_id, scores in property_scores.items()
    ]
    hot.sort(key=lambda stats: (-stats.match_count, -stats.top_score, stats.property_id))
    analytics.hot_properties = hot[:TOP_ENTRIES]

    fair_matches = [result for result in results if result.overall_score >= fair_threshold]
    fair_matches.sort(key=sort_key)
    analytics.top_matches = fair_matches[:TOP_MATCHES]

    return analytics
