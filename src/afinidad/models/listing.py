"""
Atributos de una propiedad publicada.

Un listing incompleto es normal: cualquier atributo puede faltar y
queda como None para que el evaluador lo trate como "desconocido".
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from afinidad.models.normalizers import (
    normalize_amenity_key,
    normalize_code,
    normalize_energy_class,
    normalize_furnishing,
    normalize_location,
    normalized_set,
    parse_floor,
    sqft_to_sqm,
    to_number,
)


class ListingAttributes(BaseModel):
    """Foto inmutable de los atributos comparables de una propiedad."""

    model_config = ConfigDict(frozen=True)

    # Económicos
    price: Optional[float] = Field(None, ge=0, description="Precio publicado")
    transaction_type: Optional[str] = Field(
        None, description="SALE, RENTAL, SHORT_TERM o EXCHANGE"
    )
    property_type: Optional[str] = Field(None, description="APARTMENT, HOUSE, ...")

    # Ubicación (de más específica a más amplia)
    area: Optional[str] = Field(None, description="Barrio/zona")
    municipality: Optional[str] = Field(None, description="Municipio")
    city: Optional[str] = Field(None, description="Ciudad")
    region: Optional[str] = Field(None, description="Región/Provincia")

    # Características físicas
    bedrooms: Optional[int] = Field(None, ge=0, description="Dormitorios")
    bathrooms: Optional[int] = Field(None, ge=0, description="Baños")
    size_net_sqm: Optional[float] = Field(None, ge=0, description="Superficie neta m²")
    size_gross_sqm: Optional[float] = Field(None, ge=0, description="Superficie bruta m²")
    square_feet: Optional[float] = Field(None, ge=0, description="Superficie en ft²")
    floor: Optional[float] = Field(None, description="Piso (0 = planta baja)")

    # Features
    amenities: Optional[frozenset[str]] = Field(None, description="Amenities normalizados")
    elevator: Optional[bool] = Field(None)
    pets_allowed: Optional[bool] = Field(None)
    furnishing: Optional[str] = Field(None, description="NO, PARTIALLY o FULLY")
    condition: Optional[str] = Field(None, description="Estado de conservación")
    heating_type: Optional[str] = Field(None)
    energy_class: Optional[str] = Field(None, description="A_PLUS ... H")

    @field_validator("transaction_type", "property_type", "condition", "heating_type", mode="before")
    @classmethod
    def _normalize_code(cls, value: Any) -> Optional[str]:
        return normalize_code(value)

    @field_validator("area", "municipality", "city", "region", mode="before")
    @classmethod
    def _normalize_location(cls, value: Any) -> Optional[str]:
        return normalize_location(value)

    @field_validator("amenities", mode="before")
    @classmethod
    def _normalize_amenities(cls, value: Any) -> Optional[frozenset[str]]:
        return normalized_set(value, normalize_amenity_key)

    @field_validator("floor", mode="before")
    @classmethod
    def _parse_floor(cls, value: Any) -> Optional[float]:
        return parse_floor(value)

    @field_validator("furnishing", mode="before")
    @classmethod
    def _normalize_furnishing(cls, value: Any) -> Optional[str]:
        return normalize_furnishing(value)

    @field_validator("energy_class", mode="before")
    @classmethod
    def _normalize_energy_class(cls, value: Any) -> Optional[str]:
        return normalize_energy_class(value)

    @property
    def effective_size_sqm(self) -> Optional[float]:
        """Superficie neta; si falta, la bruta; si falta, convertida desde ft²."""
        if self.size_net_sqm:
            return self.size_net_sqm
        if self.size_gross_sqm:
            return self.size_gross_sqm
        return sqft_to_sqm(self.square_feet) if self.square_feet else None

    @property
    def locations_by_specificity(self) -> list[str]:
        """Ubicaciones conocidas, de la más específica a la más amplia, sin repetir."""
        locations: list[str] = []
        for value in (self.area, self.municipality, self.city, self.region):
            if value and value not in locations:
                locations.append(value)
        return locations

    @classmethod
    def from_record(cls, record: dict) -> "ListingAttributes":
        """Construye los atributos desde un registro de propiedad de la base."""
        return cls(
            price=to_number(record.get("price")),
            transaction_type=record.get("transaction_type"),
            property_type=record.get("property_type"),
            area=record.get("area"),
            municipality=record.get("municipality"),
            city=record.get("address_city"),
            region=record.get("address_state"),
            bedrooms=record.get("bedrooms"),
            bathrooms=record.get("bathrooms"),
            size_net_sqm=to_number(record.get("size_net_sqm")),
            size_gross_sqm=to_number(record.get("size_gross_sqm")),
            square_feet=to_number(record.get("square_feet")),
            floor=record.get("floor"),
            amenities=record.get("amenities"),
            elevator=record.get("elevator"),
            pets_allowed=record.get("accepts_pets"),
            furnishing=record.get("furnished"),
            condition=record.get("condition"),
            heating_type=record.get("heating_type"),
            energy_class=record.get("energy_cert_class"),
        )
