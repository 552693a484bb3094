"""
Normalización de valores crudos de clientes y propiedades.

Los registros llegan de la base con formatos heterogéneos (strings con
acentos, JSON serializado, dicts de amenities, pisos escritos a mano).
Acá se llevan a una forma canónica para que los evaluadores comparen
valores comparables. Un valor que no se puede interpretar se devuelve
como None: nunca se inventa un default.
"""

import json
import math
import re
import unicodedata
from typing import Any, Iterable, Optional

from afinidad.config import SQFT_TO_SQM

_LOCATION_PREFIXES = re.compile(
    r"^(city of|municipality of|dimos|nomos)\s+", flags=re.IGNORECASE
)
_LOCATION_SUFFIXES = re.compile(r"\s+(city|municipality|dimos)$", flags=re.IGNORECASE)

_FLOOR_NAMES: dict[str, float] = {
    "ground": 0,
    "ground floor": 0,
    "isogeio": 0,
    "basement": -1,
    "ypogeio": -1,
    "mezzanine": 0.5,
    "imiorofos": 0.5,
    "penthouse": 99,
    "retire": 99,
}

_FURNISHING_ALIASES: dict[str, Optional[str]] = {
    "ANY": None,
    "NO": "NO",
    "NONE": "NO",
    "UNFURNISHED": "NO",
    "PARTIALLY": "PARTIALLY",
    "PARTIAL": "PARTIALLY",
    "SEMI": "PARTIALLY",
    "FULLY": "FULLY",
    "FULL": "FULLY",
    "YES": "FULLY",
    "FURNISHED": "FULLY",
}

# Transliteración mínima para nombres griegos de zonas
_GREEK_TO_LATIN = str.maketrans(
    {
        "α": "a", "β": "v", "γ": "g", "δ": "d", "ε": "e", "ζ": "z", "η": "i",
        "θ": "th", "ι": "i", "κ": "k", "λ": "l", "μ": "m", "ν": "n", "ξ": "x",
        "ο": "o", "π": "p", "ρ": "r", "σ": "s", "ς": "s", "τ": "t", "υ": "y",
        "φ": "f", "χ": "ch", "ψ": "ps", "ω": "o",
    }
)


def _strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c))


def normalize_text(value: Optional[str]) -> str:
    """Minúsculas, sin acentos y con espacios colapsados."""
    if not value:
        return ""
    text = _strip_accents(str(value).lower()).translate(_GREEK_TO_LATIN)
    return re.sub(r"\s+", " ", text).strip()


def normalize_location(value: Optional[str]) -> Optional[str]:
    """
    Normaliza un nombre de zona para compararlo.

    Quita prefijos/sufijos administrativos ("City of", "Municipality")
    además de acentos y mayúsculas.
    """
    text = normalize_text(value)
    text = _LOCATION_PREFIXES.sub("", text)
    text = _LOCATION_SUFFIXES.sub("", text)
    return text or None


def normalize_amenity_key(value: Optional[str]) -> Optional[str]:
    """'Air Conditioning' -> 'air_conditioning'."""
    text = normalize_text(value)
    text = re.sub(r"[\s-]+", "_", text)
    text = re.sub(r"[^a-z0-9_]", "", text)
    return text or None


def normalize_code(value: Optional[str]) -> Optional[str]:
    """Normaliza un código enumerado: 'very good' -> 'VERY_GOOD'."""
    if value is None:
        return None
    text = re.sub(r"[\s-]+", "_", str(value).strip()).upper()
    return text or None


def normalize_furnishing(value: Optional[str]) -> Optional[str]:
    """Lleva sinónimos a NO/PARTIALLY/FULLY. 'ANY' significa sin preferencia."""
    code = normalize_code(value)
    if code is None:
        return None
    return _FURNISHING_ALIASES.get(code, code)


def normalize_energy_class(value: Optional[str]) -> Optional[str]:
    """'A+' -> 'A_PLUS'."""
    code = normalize_code(value)
    if code is None:
        return None
    return code.replace("+", "_PLUS")


def parse_floor(value: Any) -> Optional[float]:
    """
    Interpreta un piso escrito a mano.

    Acepta números y nombres comunes ("Ground", "Basement", "Penthouse").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return to_number(value)
    text = normalize_text(str(value))
    if text in _FLOOR_NAMES:
        return float(_FLOOR_NAMES[text])
    return to_number(text) if text else None


def parse_string_list(value: Any) -> list[str]:
    """
    Lee una lista de strings desde una lista, un JSON serializado
    o un string separado por comas.
    """
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return [part.strip() for part in text.split(",") if part.strip()]
        if isinstance(parsed, (list, dict)):
            return parse_string_list(parsed)
        if isinstance(parsed, str):
            return [parsed]
        return [text]
    if isinstance(value, dict):
        # Formato {"pool": true, "gym": false}
        return [str(key) for key, enabled in value.items() if enabled is True]
    if isinstance(value, Iterable):
        return [str(item) for item in value if item is not None]
    return []


def normalized_set(values: Any, normalizer) -> Optional[frozenset[str]]:
    """Aplica un normalizador a cada valor; un conjunto vacío es None."""
    items = {normalizer(item) for item in parse_string_list(values)}
    items.discard(None)
    return frozenset(items) if items else None


def to_number(value: Any) -> Optional[float]:
    """Convierte Decimal/int/str numérico a float. Lo no numérico es None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def sqft_to_sqm(square_feet: Optional[float]) -> Optional[float]:
    if square_feet is None:
        return None
    return round(square_feet * SQFT_TO_SQM)
