"""
Modelos de datos del sistema.

- PreferenceProfile: lo que busca un cliente
- ListingAttributes: lo que ofrece una propiedad
- Candidatos y resultados de matching
"""

from afinidad.models.preferences import PreferenceProfile
from afinidad.models.listing import ListingAttributes
from afinidad.models.candidates import ClientCandidate, PropertyCandidate, parse_candidates
from afinidad.models.match import CriterionScore, MatchResult, score_label

__all__ = [
    # Snapshots
    "PreferenceProfile",
    "ListingAttributes",
    # Candidatos
    "ClientCandidate",
    "PropertyCandidate",
    "parse_candidates",
    # Resultados
    "CriterionScore",
    "MatchResult",
    "score_label",
]
