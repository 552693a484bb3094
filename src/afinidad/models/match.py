"""
Resultados de matching.

Son transitorios: se construyen en cada llamada y el motor nunca los
persiste. El llamador puede cachearlos si quiere.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from afinidad.config import MATCH_THRESHOLDS

# A partir de este score un criterio cuenta como "cumplido" en la UI
MATCHED_CRITERION_SCORE = 80.0


@dataclass(frozen=True)
class CriterionScore:
    """Puntaje de un criterio para un par ancla-candidato."""

    criterion: str
    raw_score: float  # 0 a 100
    weight: float
    applicable: bool
    reason: str = ""

    @property
    def weighted_score(self) -> float:
        return self.raw_score * self.weight

    @property
    def matched(self) -> bool:
        return self.applicable and self.raw_score >= MATCHED_CRITERION_SCORE

    def to_dict(self) -> dict:
        return {
            "criterion": self.criterion,
            "raw_score": self.raw_score,
            "weight": self.weight,
            "weighted_score": self.weighted_score,
            "applicable": self.applicable,
            "matched": self.matched,
            "reason": self.reason,
        }


def score_label(score: float) -> str:
    """Etiqueta para mostrar un score: excellent, good, fair o poor."""
    for label, threshold in MATCH_THRESHOLDS.items():
        if score >= threshold:
            return label
    return "poor"


@dataclass
class MatchResult:
    """Resultado de matching para un candidato."""

    anchor_id: Optional[str]
    candidate_id: str
    overall_score: float  # 0 a 100
    breakdown: tuple[CriterionScore, ...] = field(default_factory=tuple)
    evaluated_at: Optional[datetime] = None
    candidate_updated_at: Optional[datetime] = None
    applicable_count: int = 0
    matched_count: int = 0

    @property
    def label(self) -> str:
        return score_label(self.overall_score)

    def to_dict(self) -> dict:
        return {
            "anchor_id": self.anchor_id,
            "candidate_id": self.candidate_id,
            "overall_score": self.overall_score,
            "label": self.label,
            "applicable_count": self.applicable_count,
            "matched_count": self.matched_count,
            "evaluated_at": self.evaluated_at.isoformat() if self.evaluated_at else None,
            "candidate_updated_at": (
                self.candidate_updated_at.isoformat() if self.candidate_updated_at else None
            ),
            "breakdown": [score.to_dict() for score in self.breakdown],
        }
