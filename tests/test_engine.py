"""
Tests del motor de matching.
"""

from datetime import datetime, timezone

import pytest

from afinidad.config import Settings
from afinidad.errors import ConfigurationError, InputError
from afinidad.matching import MatchingEngine, MatchOptions, WeightProfile
from afinidad.models import ListingAttributes, PreferenceProfile

from conftest import FIXED_NOW

BUDGET = {"budget_min": 100000, "budget_max": 150000}


def by_criterion(result):
    return {score.criterion: score for score in result.breakdown}


class TestScenarios:
    def test_perfect_match(self, engine, make_property):
        candidate = make_property(
            "p1", price=120000, bedrooms=2, property_type="APARTMENT", area="Palermo"
        )
        [result] = engine.matches_for_client(PreferenceProfile(**BUDGET), [candidate])

        assert result.overall_score == 100
        assert result.applicable_count == 1
        assert result.matched_count == 1
        assert by_criterion(result)["budget"].raw_score == 100

    def test_no_preferences_scores_zero(self, engine, make_property):
        candidate = make_property("p1", price=120000, bedrooms=2, area="Palermo")
        [result] = engine.matches_for_client(PreferenceProfile(), [candidate])

        assert result.overall_score == 0
        assert result.applicable_count == 0
        assert not any(score.applicable for score in result.breakdown)

    def test_partial_amenity_overlap(self, engine, make_property):
        prefs = PreferenceProfile(amenities=["parking", "balcony", "storage"])
        candidate = make_property("p1", amenities=["parking", "balcony"])
        [result] = engine.matches_for_client(prefs, [candidate])

        assert by_criterion(result)["amenities"].raw_score == 66.67
        assert result.overall_score == 66.67

    def test_out_of_range_budget(self, engine, make_property):
        [result] = engine.matches_for_client(
            PreferenceProfile(**BUDGET), [make_property("p1", price=300000)]
        )
        assert by_criterion(result)["budget"].raw_score == 0
        assert result.overall_score == 0


class TestEngine:
    def test_breakdown_in_canonical_order(self, engine, make_property):
        [result] = engine.matches_for_client(
            PreferenceProfile(**BUDGET), [make_property("p1", price=1)]
        )
        assert [score.criterion for score in result.breakdown][:3] == [
            "budget",
            "location",
            "intent",
        ]
        assert len(result.breakdown) == 16

    def test_renormalized_weights_decide_order(self, engine, make_property):
        prefs = PreferenceProfile(locations=["Palermo"], **BUDGET)
        budget_fit = make_property("budget-fit", price=120000, area="Belgrano")
        location_fit = make_property("location-fit", price=300000, area="Palermo")

        default = engine.matches_for_client(prefs, [location_fit, budget_fit])
        assert [r.candidate_id for r in default] == ["budget-fit", "location-fit"]
        assert default[0].overall_score == 53.85
        assert default[1].overall_score == 46.15

        profile = WeightProfile(name="location-first", weights={"location": 0.5})
        custom = engine.matches_for_client(
            prefs, [location_fit, budget_fit], MatchOptions(weight_profile=profile)
        )
        assert [r.candidate_id for r in custom] == ["location-fit", "budget-fit"]

    def test_matches_for_property(self, engine, make_client):
        listing = ListingAttributes(price=120000, area="Palermo")
        clients = [
            make_client("c3"),
            make_client("c2", budget_max=50000),
            make_client("c1", **BUDGET),
        ]

        results = engine.matches_for_property(listing, clients, anchor_id="p1")

        assert [r.candidate_id for r in results] == ["c1", "c2", "c3"]
        assert [r.overall_score for r in results] == [100, 0, 0]
        assert all(r.anchor_id == "p1" for r in results)

    def test_exclude_policy_drops_empty_matches(self, engine, make_client):
        listing = ListingAttributes(price=120000)
        clients = [make_client("c1", **BUDGET), make_client("c2")]

        results = engine.matches_for_property(
            listing, clients, MatchOptions(empty_policy="exclude")
        )
        assert [r.candidate_id for r in results] == ["c1"]

    def test_exclude_policy_from_settings(self, make_client):
        engine = MatchingEngine(Settings(_env_file=None, empty_match_policy="exclude"))
        results = engine.matches_for_property(ListingAttributes(price=1), [make_client("c1")])
        assert results == []

    def test_threshold_filters(self, engine, make_property):
        prefs = PreferenceProfile(**BUDGET)
        candidates = [
            make_property("in", price=120000),
            make_property("close", price=180000),
            make_property("far", price=400000),
        ]
        results = engine.matches_for_client(prefs, candidates, MatchOptions(min_score_threshold=50))

        assert [(r.candidate_id, r.overall_score) for r in results] == [("in", 100), ("close", 60)]

    def test_default_limit(self, engine, make_property):
        candidates = [make_property(f"p{i:02d}", price=100000 + i) for i in range(25)]
        assert len(engine.matches_for_client(PreferenceProfile(**BUDGET), candidates)) == 20

    def test_limit_is_capped(self, make_property):
        engine = MatchingEngine(Settings(_env_file=None, max_match_limit=3))
        candidates = [make_property(f"p{i}", price=120000) for i in range(5)]
        prefs = PreferenceProfile(**BUDGET)

        assert len(engine.matches_for_client(prefs, candidates, MatchOptions(limit=50))) == 3
        assert len(engine.matches_for_client(prefs, candidates, MatchOptions(limit=None))) == 3

    def test_without_breakdown(self, engine, make_property):
        [result] = engine.matches_for_client(
            PreferenceProfile(**BUDGET),
            [make_property("p1", price=120000)],
            MatchOptions(include_breakdown=False),
        )
        assert result.breakdown == ()
        assert result.applicable_count == 1
        assert result.overall_score == 100

    def test_result_metadata(self, engine, make_property):
        updated = datetime(2024, 5, 1, tzinfo=timezone.utc)
        results = engine.matches_for_client(
            PreferenceProfile(**BUDGET),
            [make_property("p1", updated, price=1), make_property("p2", price=2)],
            anchor_id="client-1",
        )
        assert all(r.evaluated_at == FIXED_NOW for r in results)
        assert all(r.anchor_id == "client-1" for r in results)
        assert {r.candidate_id: r.candidate_updated_at for r in results} == {
            "p1": updated,
            "p2": None,
        }

    def test_no_candidates(self, engine):
        assert engine.matches_for_client(PreferenceProfile(**BUDGET), []) == []

    def test_score_pair(self, engine):
        overall, breakdown = engine.score_pair(
            PreferenceProfile(**BUDGET), ListingAttributes(price=180000)
        )
        assert overall == 60
        assert len(breakdown) == 16

    def test_score_pair_without_preferences(self, engine):
        overall, _ = engine.score_pair(PreferenceProfile(), ListingAttributes(price=1))
        assert overall is None

    def test_batch_matches(self, engine, make_client, make_property):
        clients = [make_client("c1", **BUDGET), make_client("c2", budget_max=50000)]
        properties = [make_property("p1", price=120000), make_property("p2", price=40000)]

        results = engine.batch_matches(clients, properties)

        assert len(results) == 4
        assert [(r.anchor_id, r.candidate_id) for r in results] == [
            ("c1", "p1"),
            ("c1", "p2"),
            ("c2", "p2"),
            ("c2", "p1"),
        ]

    def test_batch_matches_scores_every_pair(self, make_client, make_property):
        engine = MatchingEngine(Settings(_env_file=None, max_match_limit=3), clock=lambda: FIXED_NOW)
        clients = [make_client("c1", **BUDGET)]
        properties = [make_property(f"p{i:02d}", price=120000) for i in range(10)]

        results = engine.batch_matches(clients, properties)

        assert len(results) == 10
        assert [r.candidate_id for r in results] == [p.id for p in properties]
        assert all(r.evaluated_at == FIXED_NOW for r in results)

    def test_batch_matches_ignores_default_limit(self, engine, make_client, make_property):
        properties = [make_property(f"p{i:03d}", price=120000) for i in range(150)]
        results = engine.batch_matches([make_client("c1", **BUDGET)], properties)
        assert len(results) == 150

    def test_batch_matches_threshold_on_request(self, engine, make_client, make_property):
        clients = [make_client("c1", **BUDGET), make_client("c2")]
        properties = [make_property("p1", price=120000), make_property("p2", price=400000)]

        results = engine.batch_matches(
            clients, properties, MatchOptions(min_score_threshold=50, limit=1)
        )
        assert [(r.anchor_id, r.candidate_id) for r in results] == [("c1", "p1")]

    def test_deterministic(self, engine, make_property):
        prefs = PreferenceProfile(locations=["Palermo"], bedrooms_min=2, **BUDGET)
        candidates = [
            make_property(f"p{i}", price=90000 + i * 10000, bedrooms=i % 4, area="Palermo")
            for i in range(12)
        ]

        first = engine.matches_for_client(prefs, candidates)
        second = engine.matches_for_client(prefs, list(reversed(candidates)))
        assert [r.to_dict() for r in first] == [r.to_dict() for r in second]

    def test_parallel_scoring_matches_sequential(self, engine, make_property):
        parallel = MatchingEngine(
            Settings(_env_file=None, parallel_min_candidates=2, max_workers=2),
            clock=lambda: FIXED_NOW,
        )
        prefs = PreferenceProfile(amenities=["pool", "gym"], bedrooms_max=2, **BUDGET)
        candidates = [
            make_property(
                f"p{i}",
                price=80000 + i * 7000,
                bedrooms=i % 5,
                amenities=["pool"] if i % 2 else ["gym", "pool"],
            )
            for i in range(15)
        ]

        expected = engine.matches_for_client(prefs, candidates)
        assert [r.to_dict() for r in parallel.matches_for_client(prefs, candidates)] == [
            r.to_dict() for r in expected
        ]


class TestValidation:
    @pytest.mark.parametrize(
        "options, field",
        [
            (MatchOptions(min_score_threshold=101), "min_score_threshold"),
            (MatchOptions(min_score_threshold=-1), "min_score_threshold"),
            (MatchOptions(min_score_threshold=True), "min_score_threshold"),
            (MatchOptions(limit=0), "limit"),
            (MatchOptions(limit=-5), "limit"),
            (MatchOptions(limit=2.5), "limit"),
            (MatchOptions(limit=True), "limit"),
            (MatchOptions(empty_policy="drop"), "empty_policy"),
        ],
    )
    def test_invalid_options(self, engine, make_property, options, field):
        with pytest.raises(InputError) as exc_info:
            engine.matches_for_client(
                PreferenceProfile(**BUDGET), [make_property("p1", price=1)], options
            )
        assert exc_info.value.field == field

    def test_invalid_options_fail_even_without_candidates(self, engine):
        with pytest.raises(InputError):
            engine.matches_for_client(PreferenceProfile(), [], MatchOptions(limit=0))

    def test_invalid_policy_in_settings(self):
        with pytest.raises(ConfigurationError) as exc_info:
            MatchingEngine(Settings(_env_file=None, empty_match_policy="drop"))
        assert exc_info.value.field == "empty_match_policy"

    def test_weight_profile_must_be_a_profile(self, engine, make_property):
        with pytest.raises(ConfigurationError):
            engine.matches_for_client(
                PreferenceProfile(**BUDGET),
                [make_property("p1", price=1)],
                MatchOptions(weight_profile={"budget": 1.0}),
            )
