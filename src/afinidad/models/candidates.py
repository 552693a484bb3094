"""
Candidatos que recibe el motor.

Envuelven un perfil o un listing con su id y la fecha de última
actualización, que se usa como desempate al rankear.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from afinidad.models.listing import ListingAttributes
from afinidad.models.preferences import PreferenceProfile

logger = structlog.get_logger()

T = TypeVar("T")


def _updated_at(record: dict):
    return record.get("updated_at") or record.get("updatedAt")


class ClientCandidate(BaseModel):
    """Un cliente candidato para una propiedad."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="ID del cliente")
    preferences: PreferenceProfile = Field(default_factory=PreferenceProfile)
    updated_at: Optional[datetime] = Field(None, description="Última actualización")

    @classmethod
    def from_record(cls, record: dict) -> "ClientCandidate":
        return cls(
            id=str(record["id"]),
            preferences=PreferenceProfile.from_record(record),
            updated_at=_updated_at(record),
        )


class PropertyCandidate(BaseModel):
    """Una propiedad candidata para un cliente."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="ID de la propiedad")
    attributes: ListingAttributes = Field(default_factory=ListingAttributes)
    updated_at: Optional[datetime] = Field(None, description="Última actualización")

    @classmethod
    def from_record(cls, record: dict) -> "PropertyCandidate":
        return cls(
            id=str(record["id"]),
            attributes=ListingAttributes.from_record(record),
            updated_at=_updated_at(record),
        )


def parse_candidates(
    records: Iterable[dict],
    factory: Callable[[dict], T],
    source: str = "",
) -> list[T]:
    """
    Convierte registros en candidatos, descartando los que no validan.

    Un registro degradado (ej: budget_min > budget_max) no debe tirar
    abajo el matching de toda la organización: se loguea y se saltea.
    """
    candidates = []
    for record in records:
        try:
            candidates.append(factory(record))
        except ValidationError as e:
            logger.warning(
                "Registro descartado por datos inválidos",
                source=source,
                record_id=record.get("id"),
                errors=e.error_count(),
            )
    return candidates
