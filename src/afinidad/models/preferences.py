"""
Perfil de preferencias del cliente.

Cada campo es opcional: None significa "sin preferencia", nunca
"preferencia cero". Esa distinción es la que permite excluir un
criterio del promedio en lugar de penalizarlo.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from afinidad.config import ENERGY_CLASSES
from afinidad.models.normalizers import (
    normalize_amenity_key,
    normalize_code,
    normalize_energy_class,
    normalize_furnishing,
    normalize_location,
    normalized_set,
    parse_string_list,
    to_number,
)

_RANGES = (
    ("budget_min", "budget_max"),
    ("bedrooms_min", "bedrooms_max"),
    ("bathrooms_min", "bathrooms_max"),
    ("size_min_sqm", "size_max_sqm"),
    ("floor_min", "floor_max"),
)


class PreferenceProfile(BaseModel):
    """
    Lo que el cliente busca.

    Es una foto inmutable tomada antes de llamar al motor; no tiene
    identidad propia (el id vive en el candidato que la envuelve).
    """

    model_config = ConfigDict(frozen=True)

    # Presupuesto
    budget_min: Optional[float] = Field(None, ge=0, description="Presupuesto mínimo")
    budget_max: Optional[float] = Field(None, ge=0, description="Presupuesto máximo")

    # Ambientes
    bedrooms_min: Optional[int] = Field(None, ge=0, description="Mínimo de dormitorios")
    bedrooms_max: Optional[int] = Field(None, ge=0, description="Máximo de dormitorios")
    bathrooms_min: Optional[int] = Field(None, ge=0, description="Mínimo de baños")
    bathrooms_max: Optional[int] = Field(None, ge=0, description="Máximo de baños")

    # Superficie neta
    size_min_sqm: Optional[float] = Field(None, ge=0, description="Superficie mínima m²")
    size_max_sqm: Optional[float] = Field(None, ge=0, description="Superficie máxima m²")

    # Piso
    floor_min: Optional[float] = Field(None, description="Piso mínimo")
    floor_max: Optional[float] = Field(None, description="Piso máximo")
    ground_floor_only: Optional[bool] = Field(None, description="Solo planta baja")

    # Categóricos
    property_types: Optional[frozenset[str]] = Field(
        None, description="Tipos aceptables (APARTMENT, HOUSE, o grupos como RESIDENTIAL)"
    )
    intents: Optional[frozenset[str]] = Field(
        None, description="BUY, RENT, SELL, LEASE, INVEST"
    )
    locations: Optional[frozenset[str]] = Field(
        None, description="Zonas de interés normalizadas"
    )
    amenities: Optional[frozenset[str]] = Field(
        None, description="Amenities deseados normalizados"
    )
    conditions: Optional[frozenset[str]] = Field(
        None, description="Estados de conservación aceptables"
    )
    heating_types: Optional[frozenset[str]] = Field(
        None, description="Tipos de calefacción aceptables"
    )
    energy_class_min: Optional[str] = Field(
        None, description="Certificado energético mínimo (A_PLUS ... H)"
    )

    # Requisitos (solo True expresa una preferencia)
    requires_elevator: Optional[bool] = Field(None)
    requires_pets_allowed: Optional[bool] = Field(None)
    requires_parking: Optional[bool] = Field(None)
    furnishing: Optional[str] = Field(None, description="NO, PARTIALLY o FULLY")

    @field_validator("property_types", "intents", "conditions", "heating_types", mode="before")
    @classmethod
    def _normalize_codes(cls, value: Any) -> Optional[frozenset[str]]:
        return normalized_set(value, normalize_code)

    @field_validator("locations", mode="before")
    @classmethod
    def _normalize_locations(cls, value: Any) -> Optional[frozenset[str]]:
        return normalized_set(value, normalize_location)

    @field_validator("amenities", mode="before")
    @classmethod
    def _normalize_amenities(cls, value: Any) -> Optional[frozenset[str]]:
        return normalized_set(value, normalize_amenity_key)

    @field_validator("furnishing", mode="before")
    @classmethod
    def _normalize_furnishing(cls, value: Any) -> Optional[str]:
        return normalize_furnishing(value)

    @field_validator("energy_class_min", mode="before")
    @classmethod
    def _normalize_energy_class(cls, value: Any) -> Optional[str]:
        energy_class = normalize_energy_class(value)
        if energy_class is not None and energy_class not in ENERGY_CLASSES:
            raise ValueError(f"Clase energética desconocida: {value}")
        return energy_class

    @model_validator(mode="after")
    def _check_ranges(self) -> "PreferenceProfile":
        for low_field, high_field in _RANGES:
            low = getattr(self, low_field)
            high = getattr(self, high_field)
            if low is not None and high is not None and low > high:
                raise ValueError(f"{low_field} ({low}) es mayor que {high_field} ({high})")
        return self

    def stated_fields(self) -> list[str]:
        """Campos con una preferencia expresada (False no cuenta como preferencia)."""
        return [
            name
            for name in type(self).model_fields
            if getattr(self, name) is not None and getattr(self, name) is not False
        ]

    @property
    def is_empty(self) -> bool:
        return not self.stated_fields()

    @classmethod
    def from_record(cls, record: dict) -> "PreferenceProfile":
        """
        Construye el perfil desde un registro de cliente de la base.

        El registro trae campos de primer nivel (budget_min, budget_max,
        intent, purpose, areas_of_interest) y el bag JSON
        property_preferences con el resto.
        """
        prefs = record.get("property_preferences") or {}
        if isinstance(prefs, str):
            try:
                prefs = json.loads(prefs)
            except json.JSONDecodeError:
                prefs = {}
        if not isinstance(prefs, dict):
            prefs = {}

        intents = parse_string_list(record.get("intent")) or parse_string_list(
            prefs.get("intents")
        )
        property_types = parse_string_list(prefs.get("property_types")) or parse_string_list(
            record.get("purpose")
        )
        amenities = parse_string_list(prefs.get("amenities_required")) + parse_string_list(
            prefs.get("amenities_preferred")
        )

        return cls(
            budget_min=to_number(record.get("budget_min")),
            budget_max=to_number(record.get("budget_max")),
            bedrooms_min=prefs.get("bedrooms_min"),
            bedrooms_max=prefs.get("bedrooms_max"),
            bathrooms_min=prefs.get("bathrooms_min"),
            bathrooms_max=prefs.get("bathrooms_max"),
            size_min_sqm=to_number(prefs.get("size_min_sqm")),
            size_max_sqm=to_number(prefs.get("size_max_sqm")),
            floor_min=to_number(prefs.get("floor_min")),
            floor_max=to_number(prefs.get("floor_max")),
            ground_floor_only=prefs.get("ground_floor_only"),
            property_types=property_types,
            intents=intents,
            locations=record.get("areas_of_interest"),
            amenities=amenities,
            conditions=prefs.get("condition_preferences"),
            heating_types=prefs.get("heating_preferences"),
            energy_class_min=prefs.get("energy_class_min"),
            requires_elevator=prefs.get("requires_elevator"),
            requires_pets_allowed=prefs.get("requires_pet_friendly"),
            requires_parking=prefs.get("requires_parking"),
            furnishing=prefs.get("furnished_preference"),
        )
