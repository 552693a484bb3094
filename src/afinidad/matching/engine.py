"""
Motor de matching entre clientes y propiedades.

Implementa:
- Evaluación criterio por criterio de cada par ancla-candidato
- Agregación ponderada con renormalización sobre criterios aplicables
- Ranking con desempate determinístico y corte por límite

Es puro y sincrónico: no consulta la base ni persiste resultados.
Traer el ancla y los candidatos es responsabilidad del llamador.
"""

import math
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Iterable, Optional, Sequence, Union

import structlog

from afinidad.config import EMPTY_MATCH_POLICIES, Settings, get_settings
from afinidad.errors import ConfigurationError, InputError
from afinidad.matching.aggregator import aggregate
from afinidad.matching.criteria import CRITERIA, ScoringRules
from afinidad.matching.ranker import rank
from afinidad.matching.weights import WeightProfile
from afinidad.models import (
    ClientCandidate,
    CriterionScore,
    ListingAttributes,
    MatchResult,
    PreferenceProfile,
    PropertyCandidate,
)

logger = structlog.get_logger()

Candidate = Union[ClientCandidate, PropertyCandidate]
PairScore = tuple[Optional[float], tuple[CriterionScore, ...]]


@dataclass(frozen=True)
class MatchOptions:
    """Opciones por llamada."""

    weight_profile: Optional[WeightProfile] = None  # None = perfil del motor
    min_score_threshold: float = 0.0
    limit: Optional[int] = 20  # None = sin límite propio (igual se aplica el tope)
    include_breakdown: bool = True
    empty_policy: Optional[str] = None  # None = la de settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "MatchOptions":
        return cls(
            min_score_threshold=settings.min_score_threshold,
            limit=settings.default_match_limit,
        )


def evaluate_pair(
    preferences: PreferenceProfile,
    listing: ListingAttributes,
    profile: WeightProfile,
    rules: ScoringRules,
    precision: int = 2,
) -> PairScore:
    """
    Evalúa todos los criterios para un par cliente-propiedad.

    Returns:
        (overall_score, breakdown). overall_score es None cuando ningún
        criterio aplica. El breakdown respeta el orden de CRITERIA.
    """
    breakdown = []
    for criterion in CRITERIA:
        evaluation = criterion.evaluate(preferences, listing, rules)
        raw_score = 0.0
        if evaluation.applicable:
            raw_score = round(min(100.0, max(0.0, evaluation.score)), precision)
        breakdown.append(
            CriterionScore(
                criterion=criterion.id,
                raw_score=raw_score,
                weight=profile.weight_for(criterion.id),
                applicable=evaluation.applicable,
                reason=evaluation.reason,
            )
        )

    overall = aggregate(breakdown)
    if overall is not None:
        overall = round(overall, precision)
    return overall, tuple(breakdown)


def _score_chunk(
    direction: str,
    anchor: Union[PreferenceProfile, ListingAttributes],
    profile: WeightProfile,
    rules: ScoringRules,
    precision: int,
    candidates: Sequence[Candidate],
) -> list[PairScore]:
    """Puntúa un bloque de candidatos. Corre en el proceso actual o en un worker."""
    scored = []
    for candidate in candidates:
        if direction == "client":
            pair = (anchor, candidate.attributes)
        else:
            pair = (candidate.preferences, anchor)
        scored.append(evaluate_pair(*pair, profile, rules, precision))
    return scored


class MatchingEngine:
    """
    Motor de matching con scoring ponderado y explicable.

    Flujo por llamada:
    1. Validar opciones (falla rápido con InputError/ConfigurationError)
    2. Puntuar cada candidato criterio por criterio
    3. Agregar en un score general renormalizado
    4. Filtrar por threshold, ordenar y cortar por límite
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or get_settings()
        if self.settings.empty_match_policy not in EMPTY_MATCH_POLICIES:
            raise ConfigurationError(
                f"empty_match_policy inválida: '{self.settings.empty_match_policy}'. "
                f"Opciones: {', '.join(EMPTY_MATCH_POLICIES)}",
                field="empty_match_policy",
            )
        self.rules = ScoringRules.from_settings(self.settings)
        self.default_profile = WeightProfile.from_settings(self.settings)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def score_pair(
        self,
        preferences: PreferenceProfile,
        listing: ListingAttributes,
        profile: Optional[WeightProfile] = None,
    ) -> PairScore:
        """Score y breakdown de un único par, sin ranking."""
        return evaluate_pair(
            preferences,
            listing,
            profile or self.default_profile,
            self.rules,
            self.settings.score_precision,
        )

    def matches_for_client(
        self,
        preferences: PreferenceProfile,
        candidates: Iterable[PropertyCandidate],
        options: Optional[MatchOptions] = None,
        *,
        anchor_id: Optional[str] = None,
    ) -> list[MatchResult]:
        """
        Encuentra las propiedades que mejor matchean con un cliente.

        Args:
            preferences: Preferencias del cliente (ancla)
            candidates: Propiedades candidatas
            options: Threshold, límite, perfil de pesos, etc.
            anchor_id: ID del cliente, se copia en cada resultado

        Returns:
            Lista de MatchResult ordenada por score
        """
        return self._match("client", preferences, candidates, options, anchor_id)

    def matches_for_property(
        self,
        listing: ListingAttributes,
        candidates: Iterable[ClientCandidate],
        options: Optional[MatchOptions] = None,
        *,
        anchor_id: Optional[str] = None,
    ) -> list[MatchResult]:
        """
        Encuentra los clientes que mejor matchean con una propiedad.

        Args:
            listing: Atributos de la propiedad (ancla)
            candidates: Clientes candidatos
            options: Threshold, límite, perfil de pesos, etc.
            anchor_id: ID de la propiedad, se copia en cada resultado

        Returns:
            Lista de MatchResult ordenada por score
        """
        return self._match("property", listing, candidates, options, anchor_id)

    def batch_matches(
        self,
        clients: Iterable[ClientCandidate],
        properties: Iterable[PropertyCandidate],
        options: Optional[MatchOptions] = None,
    ) -> list[MatchResult]:
        """
        Matching de todos los clientes contra todas las propiedades.

        Pensado para analytics: devuelve un resultado por cada par
        cliente-propiedad, sin límite ni tope de max_match_limit. Solo se
        filtra por threshold si el llamador lo pide en `options`. Los
        resultados de cada cliente van ordenados por sort_key.
        """
        opts = self._resolve_options(options or MatchOptions(limit=None))
        clients = list(clients)
        properties = list(properties)
        evaluated_at = self._clock()

        results: list[MatchResult] = []
        excluded = 0
        for client in clients:
            scored, skipped = self._build_results(
                "client", client.preferences, properties, opts, client.id, evaluated_at
            )
            excluded += skipped
            results.extend(rank(scored, min_score=opts.min_score_threshold))

        logger.info(
            "Batch de matches calculado",
            clients=len(clients),
            properties=len(properties),
            excluded=excluded,
            returned=len(results),
            profile=opts.weight_profile.name,
        )
        return results

    def _resolve_options(self, options: Optional[MatchOptions]) -> MatchOptions:
        opts = options or MatchOptions.from_settings(self.settings)

        threshold = opts.min_score_threshold
        if (
            isinstance(threshold, bool)
            or not isinstance(threshold, (int, float))
            or not 0.0 <= threshold <= 100.0
        ):
            raise InputError(
                f"min_score_threshold debe estar entre 0 y 100: {threshold!r}",
                field="min_score_threshold",
            )

        limit = opts.limit
        if limit is not None and (
            isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0
        ):
            raise InputError(f"limit debe ser un entero > 0: {limit!r}", field="limit")

        max_limit = self.settings.max_match_limit
        if limit is None or limit > max_limit:
            if limit is not None:
                logger.debug("Limit recortado al máximo", requested=limit, max_limit=max_limit)
            limit = max_limit

        policy = opts.empty_policy or self.settings.empty_match_policy
        if policy not in EMPTY_MATCH_POLICIES:
            raise InputError(
                f"empty_policy inválida: '{policy}'. Opciones: {', '.join(EMPTY_MATCH_POLICIES)}",
                field="empty_policy",
            )

        profile = opts.weight_profile or self.default_profile
        if not isinstance(profile, WeightProfile):
            raise ConfigurationError(
                "weight_profile debe ser un WeightProfile", field="weight_profile"
            )

        return replace(
            opts,
            weight_profile=profile,
            limit=limit,
            empty_policy=policy,
            min_score_threshold=float(threshold),
        )

    def _score_candidates(
        self,
        direction: str,
        anchor: Union[PreferenceProfile, ListingAttributes],
        candidates: list[Candidate],
        profile: WeightProfile,
    ) -> list[PairScore]:
        score_chunk = partial(
            _score_chunk,
            direction,
            anchor,
            profile,
            self.rules,
            self.settings.score_precision,
        )

        if len(candidates) < self.settings.parallel_min_candidates:
            return score_chunk(candidates)

        # Map en paralelo por bloques contiguos; pool.map conserva el orden
        workers = self.settings.max_workers or os.cpu_count() or 1
        chunk_size = math.ceil(len(candidates) / workers)
        chunks = [
            candidates[start:start + chunk_size]
            for start in range(0, len(candidates), chunk_size)
        ]
        logger.debug(
            "Scoring en paralelo",
            candidates=len(candidates),
            workers=workers,
            chunks=len(chunks),
        )

        scored: list[PairScore] = []
        with ProcessPoolExecutor(max_workers=workers) as pool:
            for chunk_scores in pool.map(score_chunk, chunks):
                scored.extend(chunk_scores)
        return scored

    def _build_results(
        self,
        direction: str,
        anchor: Union[PreferenceProfile, ListingAttributes],
        candidates: list[Candidate],
        opts: MatchOptions,
        anchor_id: Optional[str],
        evaluated_at: datetime,
    ) -> tuple[list[MatchResult], int]:
        """Puntúa y arma un MatchResult por candidato, sin rankear. Devuelve también los excluidos."""
        scored = self._score_candidates(direction, anchor, candidates, opts.weight_profile)

        results = []
        excluded = 0
        for candidate, (overall, breakdown) in zip(candidates, scored):
            if overall is None:
                if opts.empty_policy == "exclude":
                    excluded += 1
                    continue
                overall = 0.0

            results.append(
                MatchResult(
                    anchor_id=anchor_id,
                    candidate_id=candidate.id,
                    overall_score=overall,
                    breakdown=breakdown if opts.include_breakdown else (),
                    evaluated_at=evaluated_at,
                    candidate_updated_at=candidate.updated_at,
                    applicable_count=sum(1 for score in breakdown if score.applicable),
                    matched_count=sum(1 for score in breakdown if score.matched),
                )
            )
        return results, excluded

    def _match(
        self,
        direction: str,
        anchor: Union[PreferenceProfile, ListingAttributes],
        candidates: Iterable[Candidate],
        options: Optional[MatchOptions],
        anchor_id: Optional[str],
    ) -> list[MatchResult]:
        opts = self._resolve_options(options)
        candidates = list(candidates)

        if not candidates:
            logger.info("No hay candidatos para matchear", anchor_id=anchor_id, direction=direction)
            return []

        results, excluded = self._build_results(
            direction, anchor, candidates, opts, anchor_id, self._clock()
        )
        ranked = rank(results, min_score=opts.min_score_threshold, limit=opts.limit)

        logger.info(
            "Matches calculados",
            anchor_id=anchor_id,
            direction=direction,
            candidates=len(candidates),
            excluded=excluded,
            returned=len(ranked),
            profile=opts.weight_profile.name,
        )
        return ranked
