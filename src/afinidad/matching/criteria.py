"""
Evaluadores de criterios.

Cada criterio compara una preferencia del cliente contra un atributo de
la propiedad y devuelve un score de 0 a 100 más un flag "aplica".

Reglas generales:
- Sin preferencia -> no aplica (el criterio sale del promedio, no penaliza).
- Con preferencia pero sin dato en el listing -> aplica con score 0.
  Un dato desconocido no puede cumplir una preferencia explícita.
"""

from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from afinidad.config import (
    ENERGY_CLASSES,
    INTENT_TO_TRANSACTION,
    PARKING_AMENITIES,
    PROPERTY_TYPE_GROUPS,
    Settings,
)
from afinidad.models import ListingAttributes, PreferenceProfile


class Evaluation(NamedTuple):
    """Salida de un evaluador."""

    score: float
    applicable: bool
    reason: str = ""


NOT_APPLICABLE = Evaluation(0.0, False, "Sin preferencia")


@dataclass(frozen=True)
class ScoringRules:
    """Parámetros de tolerancia de los evaluadores."""

    budget_tolerance: float = 0.5
    size_tolerance: float = 0.5
    room_tolerance: float = 0.5
    floor_tolerance_levels: float = 3.0
    location_parent_score: float = 70.0
    # Distancia mínima hasta score 0 cuando el límite es chico (o cero)
    min_tolerance: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringRules":
        return cls(
            budget_tolerance=settings.budget_tolerance,
            size_tolerance=settings.size_tolerance,
            room_tolerance=settings.room_tolerance,
            floor_tolerance_levels=settings.floor_tolerance_levels,
            location_parent_score=settings.location_parent_score,
        )


# ============================================
# Familias de reglas
# ============================================


def score_range(
    value: float,
    low: Optional[float],
    high: Optional[float],
    tolerance_ratio: float,
    min_tolerance: float = 0.0,
) -> float:
    """
    Score de un valor contra un rango [low, high].

    100 dentro del rango (un extremo None es abierto). Fuera, cae
    linealmente hasta 0 a una distancia de max(|límite| * ratio,
    min_tolerance) del límite violado.
    """
    if low is not None and value < low:
        boundary, distance = low, low - value
    elif high is not None and value > high:
        boundary, distance = high, value - high
    else:
        return 100.0

    tolerance = max(abs(boundary) * tolerance_ratio, min_tolerance)
    if tolerance <= 0:
        return 0.0
    return min(100.0, max(0.0, 100.0 * (1.0 - distance / tolerance)))


def evaluate_range(
    low: Optional[float],
    high: Optional[float],
    value: Optional[float],
    tolerance_ratio: float,
    min_tolerance: float,
    label: str,
) -> Evaluation:
    if low is None and high is None:
        return NOT_APPLICABLE
    if value is None:
        return Evaluation(0.0, True, f"{label}: dato desconocido")

    score = score_range(value, low, high, tolerance_ratio, min_tolerance)
    if score == 100.0:
        return Evaluation(score, True, f"{label} {value:g} dentro del rango")
    side = "por debajo" if low is not None and value < low else "por encima"
    return Evaluation(score, True, f"{label} {value:g} {side} del rango")


def evaluate_membership(
    preferred: Optional[frozenset[str]],
    value: Optional[str],
    label: str,
) -> Evaluation:
    if not preferred:
        return NOT_APPLICABLE
    if value is None:
        return Evaluation(0.0, True, f"{label}: dato desconocido")
    if value in preferred:
        return Evaluation(100.0, True, f"{label}: {value}")
    return Evaluation(0.0, True, f"{label} {value} no está entre los preferidos")


def evaluate_requirement(
    required: Optional[bool],
    value: Optional[bool],
    label: str,
) -> Evaluation:
    # Solo True expresa una preferencia; False/None es "me da igual"
    if not required:
        return NOT_APPLICABLE
    if value is None:
        return Evaluation(0.0, True, f"{label}: dato desconocido")
    if value:
        return Evaluation(100.0, True, f"{label}: sí")
    return Evaluation(0.0, True, f"{label}: no (requerido)")


# ============================================
# Criterios
# ============================================


def budget(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    return evaluate_range(
        prefs.budget_min,
        prefs.budget_max,
        listing.price,
        rules.budget_tolerance,
        rules.min_tolerance,
        "Precio",
    )


def location(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    """
    Zona del listing contra zonas de interés.

    Coincidencia con la ubicación más específica conocida: 100.
    Coincidencia con un nivel más amplio (municipio/ciudad/región que
    contiene la zona del listing): location_parent_score.
    """
    if not prefs.locations:
        return NOT_APPLICABLE

    known = listing.locations_by_specificity
    if not known:
        return Evaluation(0.0, True, "Ubicación desconocida")

    if known[0] in prefs.locations:
        return Evaluation(100.0, True, f"Zona exacta: {known[0]}")

    for broader in known[1:]:
        if broader in prefs.locations:
            return Evaluation(
                rules.location_parent_score,
                True,
                f"{known[0]} está dentro de {broader}",
            )

    return Evaluation(0.0, True, f"{known[0]} fuera de las zonas de interés")


def intent(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    if not prefs.intents:
        return NOT_APPLICABLE
    transaction = listing.transaction_type
    if transaction is None:
        return Evaluation(0.0, True, "Tipo de operación desconocido")

    for wanted in sorted(prefs.intents):
        if transaction in INTENT_TO_TRANSACTION.get(wanted, frozenset()):
            return Evaluation(100.0, True, f"{wanted} compatible con {transaction}")
    return Evaluation(0.0, True, f"{transaction} no sirve para {', '.join(sorted(prefs.intents))}")


def property_type(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    if not prefs.property_types:
        return NOT_APPLICABLE

    # Un grupo (RESIDENTIAL, COMMERCIAL, LAND) acepta todos sus tipos
    accepted = set(prefs.property_types)
    for wanted in prefs.property_types:
        accepted |= PROPERTY_TYPE_GROUPS.get(wanted, frozenset())

    return evaluate_membership(frozenset(accepted), listing.property_type, "Tipo")


def bedrooms(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    return evaluate_range(
        prefs.bedrooms_min,
        prefs.bedrooms_max,
        listing.bedrooms,
        rules.room_tolerance,
        rules.min_tolerance,
        "Dormitorios",
    )


def bathrooms(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    return evaluate_range(
        prefs.bathrooms_min,
        prefs.bathrooms_max,
        listing.bathrooms,
        rules.room_tolerance,
        rules.min_tolerance,
        "Baños",
    )


def size(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    return evaluate_range(
        prefs.size_min_sqm,
        prefs.size_max_sqm,
        listing.effective_size_sqm,
        rules.size_tolerance,
        rules.min_tolerance,
        "Superficie m²",
    )


def floor(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    if prefs.ground_floor_only:
        if listing.floor is None:
            return Evaluation(0.0, True, "Piso desconocido")
        if listing.floor == 0:
            return Evaluation(100.0, True, "Planta baja")
        return Evaluation(0.0, True, f"Piso {listing.floor:g} (se pide planta baja)")

    return evaluate_range(
        prefs.floor_min,
        prefs.floor_max,
        listing.floor,
        0.0,
        rules.floor_tolerance_levels,
        "Piso",
    )


def amenities(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    if not prefs.amenities:
        return NOT_APPLICABLE
    if listing.amenities is None:
        return Evaluation(0.0, True, "Amenities desconocidos")

    found = prefs.amenities & listing.amenities
    score = 100.0 * len(found) / len(prefs.amenities)
    return Evaluation(score, True, f"{len(found)}/{len(prefs.amenities)} amenities")


def condition(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    return evaluate_membership(prefs.conditions, listing.condition, "Estado")


def furnishing(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    if prefs.furnishing is None:
        return NOT_APPLICABLE
    return evaluate_membership(frozenset({prefs.furnishing}), listing.furnishing, "Amoblado")


def elevator(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    return evaluate_requirement(prefs.requires_elevator, listing.elevator, "Ascensor")


def pets(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    return evaluate_requirement(prefs.requires_pets_allowed, listing.pets_allowed, "Mascotas")


def parking(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    if not prefs.requires_parking:
        return NOT_APPLICABLE
    if listing.property_type == "PARKING":
        return Evaluation(100.0, True, "Es una cochera")
    if listing.amenities is None:
        return Evaluation(0.0, True, "Cochera: dato desconocido")
    if listing.amenities & PARKING_AMENITIES:
        return Evaluation(100.0, True, "Tiene cochera")
    return Evaluation(0.0, True, "Sin cochera (requerida)")


def heating(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    return evaluate_membership(prefs.heating_types, listing.heating_type, "Calefacción")


def energy_class(prefs: PreferenceProfile, listing: ListingAttributes, rules: ScoringRules) -> Evaluation:
    if prefs.energy_class_min is None:
        return NOT_APPLICABLE
    # IN_PROGRESS o valores fuera de la escala cuentan como desconocidos
    if listing.energy_class not in ENERGY_CLASSES:
        return Evaluation(0.0, True, "Certificado energético desconocido")

    rank = ENERGY_CLASSES.index(listing.energy_class)
    required = ENERGY_CLASSES.index(prefs.energy_class_min)
    if rank <= required:
        return Evaluation(100.0, True, f"Certificado {listing.energy_class}")
    return Evaluation(
        0.0, True, f"Certificado {listing.energy_class} peor que {prefs.energy_class_min}"
    )


# ============================================
# Registro
# ============================================

Evaluator = Callable[[PreferenceProfile, ListingAttributes, ScoringRules], Evaluation]


@dataclass(frozen=True)
class Criterion:
    """Un eje de compatibilidad con su evaluador."""

    id: str
    evaluate: Evaluator


# El orden define el orden canónico del breakdown
CRITERIA: tuple[Criterion, ...] = (
    Criterion("budget", budget),
    Criterion("location", location),
    Criterion("intent", intent),
    Criterion("type", property_type),
    Criterion("bedrooms", bedrooms),
    Criterion("bathrooms", bathrooms),
    Criterion("size", size),
    Criterion("floor", floor),
    Criterion("amenities", amenities),
    Criterion("condition", condition),
    Criterion("furnishing", furnishing),
    Criterion("elevator", elevator),
    Criterion("pets", pets),
    Criterion("parking", parking),
    Criterion("heating", heating),
    Criterion("energy_class", energy_class),
)

CRITERION_IDS: tuple[str, ...] = tuple(criterion.id for criterion in CRITERIA)
