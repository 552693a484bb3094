"""
Perfiles de pesos.

Un perfil asigna un peso relativo no negativo a cada criterio. Los pesos
no necesitan sumar 1: se renormalizan por par sobre los criterios que
aplican. Un perfil inválido falla antes de empezar a puntuar.
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from afinidad.config import Settings
from afinidad.errors import ConfigurationError
from afinidad.matching.criteria import CRITERION_IDS

DEFAULT_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "budget": 0.21,
        "location": 0.18,
        "intent": 0.14,
        "type": 0.10,
        "bedrooms": 0.08,
        "bathrooms": 0.04,
        "size": 0.07,
        "floor": 0.02,
        "amenities": 0.05,
        "condition": 0.02,
        "furnishing": 0.02,
        "elevator": 0.015,
        "pets": 0.015,
        "parking": 0.02,
        "heating": 0.01,
        "energy_class": 0.01,
    }
)


def _validate_weights(weights: Mapping[str, float]) -> None:
    for criterion, weight in weights.items():
        if criterion not in CRITERION_IDS:
            raise ConfigurationError(
                f"Criterio desconocido en el perfil de pesos: '{criterion}'. "
                f"Criterios válidos: {', '.join(CRITERION_IDS)}",
                field=criterion,
            )
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise ConfigurationError(
                f"El peso de '{criterion}' debe ser numérico: {weight!r}",
                field=criterion,
            )
        if not math.isfinite(weight) or weight < 0:
            raise ConfigurationError(
                f"El peso de '{criterion}' debe ser un número finito >= 0: {weight}",
                field=criterion,
            )


@dataclass(frozen=True)
class WeightProfile:
    """
    Perfil de pesos con nombre y versión.

    Los criterios que no aparecen en `weights` heredan el peso del
    perfil por defecto.
    """

    name: str = "default"
    version: str = "1"
    weights: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        _validate_weights(self.weights)
        merged = {criterion: DEFAULT_WEIGHTS[criterion] for criterion in CRITERION_IDS}
        merged.update({criterion: float(weight) for criterion, weight in self.weights.items()})
        object.__setattr__(self, "weights", MappingProxyType(merged))

    def weight_for(self, criterion: str) -> float:
        return self.weights[criterion]

    def with_overrides(
        self,
        overrides: Mapping[str, float],
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> "WeightProfile":
        """Nuevo perfil con algunos pesos reemplazados (ej: ajuste por organización)."""
        _validate_weights(overrides)
        weights = dict(self.weights)
        weights.update(overrides)
        return WeightProfile(
            name=name or self.name,
            version=version or self.version,
            weights=weights,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "WeightProfile":
        """Perfil por defecto con los overrides de MATCH_WEIGHTS aplicados."""
        if not settings.match_weights:
            return DEFAULT_PROFILE
        return DEFAULT_PROFILE.with_overrides(settings.match_weights, name="settings")

    def __reduce__(self):
        # MappingProxyType no se puede picklear; se reconstruye desde un dict
        return (WeightProfile, (self.name, self.version, dict(self.weights)))


DEFAULT_PROFILE = WeightProfile()
