"""
Configuración centralizada del sistema.
Carga variables de entorno y define settings globales del motor de matching.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Encontrar la raíz del proyecto (donde está el .env)
# config.py -> afinidad/ -> src/ -> raíz del proyecto
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase (solo para el proveedor de candidatos)
    supabase_url: Optional[str] = Field(None, description="URL del proyecto Supabase")
    supabase_key: Optional[str] = Field(None, description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # Ranking
    default_match_limit: int = Field(
        20, ge=1, description="Cantidad de resultados por defecto"
    )
    max_match_limit: int = Field(
        100, ge=1, description="Tope duro de resultados por llamada"
    )
    min_score_threshold: float = Field(
        0.0, ge=0.0, le=100.0, description="Score mínimo por defecto (0-100)"
    )
    empty_match_policy: str = Field(
        "zero",
        description="Qué hacer cuando ningún criterio aplica: 'zero' o 'exclude'",
    )

    # Pesos: JSON con overrides sobre el perfil por defecto, ej: {"budget": 0.3}
    match_weights: dict[str, float] = Field(
        default_factory=dict, description="Overrides de pesos por criterio"
    )

    # Tolerancias de los criterios de rango
    budget_tolerance: float = Field(
        0.5, ge=0.0, description="Fracción del límite de presupuesto hasta score 0"
    )
    size_tolerance: float = Field(
        0.5, ge=0.0, description="Fracción del límite de superficie hasta score 0"
    )
    room_tolerance: float = Field(
        0.5, ge=0.0, description="Fracción del límite de dormitorios/baños hasta score 0"
    )
    floor_tolerance_levels: float = Field(
        3.0, gt=0.0, description="Pisos fuera de rango hasta score 0"
    )
    location_parent_score: float = Field(
        70.0,
        ge=0.0,
        le=100.0,
        description="Score cuando coincide una zona más amplia (ciudad/municipio)",
    )

    score_precision: int = Field(2, ge=0, description="Decimales de los scores")

    # Paralelismo del scoring
    parallel_min_candidates: int = Field(
        2000, ge=1, description="Candidatos a partir de los cuales se usa un pool de procesos"
    )
    max_workers: Optional[int] = Field(
        None, ge=1, description="Procesos del pool (None = cantidad de CPUs)"
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


# Constantes del sistema
EMPTY_MATCH_POLICIES = ["zero", "exclude"]

INTENT_TYPES = ["BUY", "RENT", "SELL", "LEASE", "INVEST"]

TRANSACTION_TYPES = ["SALE", "RENTAL", "SHORT_TERM", "EXCHANGE"]

PROPERTY_TYPES = [
    "RESIDENTIAL",
    "COMMERCIAL",
    "LAND",
    "RENTAL",
    "VACATION",
    "APARTMENT",
    "HOUSE",
    "MAISONETTE",
    "WAREHOUSE",
    "PARKING",
    "PLOT",
    "FARM",
    "INDUSTRIAL",
    "OTHER",
]

FURNISHING_STATUSES = ["NO", "PARTIALLY", "FULLY"]

PROPERTY_CONDITIONS = ["EXCELLENT", "VERY_GOOD", "GOOD", "NEEDS_RENOVATION"]

HEATING_TYPES = [
    "AUTONOMOUS",
    "CENTRAL",
    "NATURAL_GAS",
    "HEAT_PUMP",
    "ELECTRIC",
    "NONE",
]

# De mejor a peor
ENERGY_CLASSES = ["A_PLUS", "A", "B", "C", "D", "E", "F", "G", "H"]

# Qué tipos de operación le sirven a cada intención del cliente
INTENT_TO_TRANSACTION: dict[str, frozenset[str]] = {
    "BUY": frozenset({"SALE", "EXCHANGE"}),
    "INVEST": frozenset({"SALE"}),
    "SELL": frozenset({"SALE"}),
    "RENT": frozenset({"RENTAL", "SHORT_TERM"}),
    "LEASE": frozenset({"RENTAL"}),
}

# Códigos de grupo que el cliente puede pedir en lugar de un tipo concreto
PROPERTY_TYPE_GROUPS: dict[str, frozenset[str]] = {
    "RESIDENTIAL": frozenset({"APARTMENT", "HOUSE", "MAISONETTE", "VACATION"}),
    "COMMERCIAL": frozenset({"WAREHOUSE", "INDUSTRIAL", "PARKING"}),
    "LAND": frozenset({"PLOT", "FARM"}),
}

PARKING_AMENITIES = frozenset({"parking", "garage", "parking_space"})

# Umbrales de etiqueta para mostrar un match
MATCH_THRESHOLDS = {
    "excellent": 85.0,
    "good": 70.0,
    "fair": 50.0,
}

SQFT_TO_SQM = 0.092903
