"""
Fixtures compartidas de los tests.
"""

import json
from datetime import datetime, timezone

import pytest

from afinidad.config import Settings, get_settings
from afinidad.matching import MatchingEngine
from afinidad.models import (
    ClientCandidate,
    ListingAttributes,
    PreferenceProfile,
    PropertyCandidate,
)

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Cada test arranca con settings frescos."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def engine(settings):
    return MatchingEngine(settings, clock=lambda: FIXED_NOW)


@pytest.fixture
def make_property():
    """Factory de PropertyCandidate a partir de atributos sueltos."""

    def _make(candidate_id, updated_at=None, **attributes):
        return PropertyCandidate(
            id=candidate_id,
            attributes=ListingAttributes(**attributes),
            updated_at=updated_at,
        )

    return _make


@pytest.fixture
def make_client():
    """Factory de ClientCandidate a partir de preferencias sueltas."""

    def _make(candidate_id, updated_at=None, **preferences):
        return ClientCandidate(
            id=candidate_id,
            preferences=PreferenceProfile(**preferences),
            updated_at=updated_at,
        )

    return _make


@pytest.fixture
def client_record():
    """Registro de cliente tal como llega de la tabla clients."""
    return {
        "id": "client-001",
        "budget_min": 100000,
        "budget_max": 150000,
        "intent": "BUY",
        "purpose": "RESIDENTIAL",
        "areas_of_interest": ["Palermo", "Buenos Aires"],
        "property_preferences": json.dumps(
            {
                "bedrooms_min": 2,
                "bedrooms_max": 3,
                "amenities_required": ["Parking"],
                "amenities_preferred": ["Balcony"],
                "requires_pet_friendly": True,
                "furnished_preference": "ANY",
            }
        ),
        "client_status": "ACTIVE",
        "updatedAt": "2024-05-01T10:00:00+00:00",
    }


@pytest.fixture
def property_record():
    """Registro de propiedad tal como llega de la tabla properties."""
    return {
        "id": "prop-001",
        "price": "120000",
        "transaction_type": "SALE",
        "property_type": "APARTMENT",
        "area": "Palermo",
        "address_city": "Buenos Aires",
        "address_state": "CABA",
        "bedrooms": 2,
        "bathrooms": 1,
        "size_net_sqm": 65,
        "floor": "Ground",
        "amenities": {"parking": True, "balcony": True, "pool": False},
        "accepts_pets": True,
        "furnished": "no",
        "energy_cert_class": "B",
        "property_status": "ACTIVE",
        "updated_at": "2024-05-20T08:00:00Z",
    }
