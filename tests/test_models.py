"""
Tests de modelos y normalización de registros.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from afinidad.models import (
    ClientCandidate,
    CriterionScore,
    ListingAttributes,
    MatchResult,
    PreferenceProfile,
    PropertyCandidate,
    score_label,
)
from afinidad.models.normalizers import (
    normalize_amenity_key,
    normalize_energy_class,
    normalize_furnishing,
    normalize_location,
    parse_floor,
    parse_string_list,
    to_number,
)


class TestNormalizers:
    def test_location_strips_admin_prefix(self):
        assert normalize_location("City of Athens") == "athens"
        assert normalize_location("  Kifisia   Municipality ") == "kifisia"

    def test_location_transliterates_greek(self):
        assert normalize_location("Αθήνα") == "athina"

    def test_location_empty_is_none(self):
        assert normalize_location("   ") is None

    def test_amenity_key(self):
        assert normalize_amenity_key("Air Conditioning") == "air_conditioning"
        assert normalize_amenity_key("Solar-Water Heater") == "solar_water_heater"

    def test_energy_class_plus(self):
        assert normalize_energy_class("a+") == "A_PLUS"

    def test_furnishing_aliases(self):
        assert normalize_furnishing("any") is None
        assert normalize_furnishing("Furnished") == "FULLY"
        assert normalize_furnishing("semi") == "PARTIALLY"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Ground", 0.0),
            ("basement", -1.0),
            ("Penthouse", 99.0),
            ("3", 3.0),
            (2, 2.0),
            ("unknown", None),
            (True, None),
            (None, None),
        ],
    )
    def test_parse_floor(self, raw, expected):
        assert parse_floor(raw) == expected

    def test_parse_string_list_formats(self):
        assert parse_string_list('["pool", "gym"]') == ["pool", "gym"]
        assert parse_string_list("pool, gym") == ["pool", "gym"]
        assert parse_string_list({"pool": True, "gym": False}) == ["pool"]
        assert parse_string_list('{"pool": true}') == ["pool"]
        assert parse_string_list('"pool"') == ["pool"]
        assert parse_string_list(None) == []

    def test_to_number(self):
        assert to_number("12.5") == 12.5
        assert to_number(float("nan")) is None
        assert to_number(True) is None
        assert to_number("abc") is None


class TestPreferenceProfile:
    def test_empty_collections_are_absent(self):
        prefs = PreferenceProfile(amenities=[], locations="", requires_elevator=False)
        assert prefs.amenities is None
        assert prefs.locations is None
        assert prefs.is_empty

    def test_min_greater_than_max_is_rejected(self):
        with pytest.raises(ValidationError):
            PreferenceProfile(budget_min=200000, budget_max=100000)

    def test_unknown_energy_class_is_rejected(self):
        with pytest.raises(ValidationError):
            PreferenceProfile(energy_class_min="Z")

    def test_is_frozen(self):
        prefs = PreferenceProfile(budget_max=100)
        with pytest.raises(ValidationError):
            prefs.budget_max = 200

    def test_stated_fields(self):
        prefs = PreferenceProfile(budget_max=100, requires_parking=True, requires_elevator=False)
        assert prefs.stated_fields() == ["budget_max", "requires_parking"]

    def test_from_record(self, client_record):
        prefs = PreferenceProfile.from_record(client_record)

        assert prefs.budget_min == 100000
        assert prefs.budget_max == 150000
        assert prefs.intents == frozenset({"BUY"})
        assert prefs.property_types == frozenset({"RESIDENTIAL"})
        assert prefs.locations == frozenset({"palermo", "buenos aires"})
        assert prefs.amenities == frozenset({"parking", "balcony"})
        assert prefs.bedrooms_min == 2
        assert prefs.requires_pets_allowed is True
        assert prefs.furnishing is None

    def test_from_record_tolerates_broken_json(self):
        prefs = PreferenceProfile.from_record(
            {"budget_max": 1000, "property_preferences": "{not json"}
        )
        assert prefs.budget_max == 1000
        assert prefs.amenities is None


class TestListingAttributes:
    def test_from_record(self, property_record):
        listing = ListingAttributes.from_record(property_record)

        assert listing.price == 120000
        assert listing.property_type == "APARTMENT"
        assert listing.floor == 0
        assert listing.amenities == frozenset({"parking", "balcony"})
        assert listing.furnishing == "NO"
        assert listing.pets_allowed is True
        assert listing.energy_class == "B"
        assert listing.locations_by_specificity == ["palermo", "buenos aires", "caba"]

    def test_effective_size_fallbacks(self):
        assert ListingAttributes(size_net_sqm=70, size_gross_sqm=80).effective_size_sqm == 70
        assert ListingAttributes(size_gross_sqm=80).effective_size_sqm == 80
        assert ListingAttributes(square_feet=1000).effective_size_sqm == 93
        assert ListingAttributes().effective_size_sqm is None

    def test_locations_deduplicated(self):
        listing = ListingAttributes(area="Athens", city="City of Athens")
        assert listing.locations_by_specificity == ["athens"]


class TestCandidates:
    def test_client_from_record(self, client_record):
        client = ClientCandidate.from_record(client_record)
        assert client.id == "client-001"
        assert client.updated_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_property_from_record(self, property_record):
        listing = PropertyCandidate.from_record(property_record)
        assert listing.id == "prop-001"
        assert listing.attributes.price == 120000
        assert listing.updated_at.year == 2024


class TestMatchResult:
    @pytest.mark.parametrize(
        "score, label",
        [(100, "excellent"), (85, "excellent"), (84.99, "good"), (50, "fair"), (10, "poor")],
    )
    def test_score_label(self, score, label):
        assert score_label(score) == label

    def test_matched_requires_applicable(self):
        assert CriterionScore("budget", 90, 0.2, True).matched
        assert not CriterionScore("budget", 90, 0.2, False).matched
        assert not CriterionScore("budget", 79.99, 0.2, True).matched

    def test_to_dict(self):
        result = MatchResult(
            anchor_id="c1",
            candidate_id="p1",
            overall_score=72.5,
            breakdown=(CriterionScore("budget", 100, 0.5, True, "ok"),),
        )
        data = result.to_dict()
        assert data["label"] == "good"
        assert data["evaluated_at"] is None
        assert data["breakdown"][0]["weighted_score"] == 50
