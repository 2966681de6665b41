"""
Unit Tests for the Helix multi-dimensional risk scorer.

These tests verify:
1. Score and confidence bounds for arbitrary vectors
2. Category and grade bands partition [0, 100]
3. Determinism of the full assessment
4. Monotonicity of debt-to-income and payment timeliness
5. Confidence growth as fields are populated
6. The pay-stub end-to-end income consistency figure
7. Flags, explanation, validation and scenario simulation

Test Categories:
- test_bounds_*: Range checks over random vectors
- test_band_*: Category and grade partitions
- test_dti_* / test_timeliness_*: Monotonicity checks
- test_simulate_*: Scenario simulation
"""

import itertools
import random

import pytest

from helix.domain.entities import (
    Dimension,
    DocumentKind,
    DocumentMetrics,
    DocumentStatus,
    FeatureVector,
    FinancialDocument,
    RiskCategory,
    RiskGrade,
)
from helix.domain.exceptions import InvalidFeatureVectorException
from helix.service.aggregation import FeatureAggregator
from helix.service.scoring import (
    RiskScorer,
    ScoringSettings,
    classify_category,
    classify_grade,
    determine_flags,
    score_dti,
)


# =============================================================================
# Test Fixtures
# =============================================================================

BOOL_FIELDS = {
    "vehicle_ownership",
    "property_ownership",
    "business_ownership",
    "health_insurance_coverage",
    "address_verification",
}
INT_FIELDS = {
    "multiple_income_streams",
    "debt_diversification",
    "investment_accounts",
    "professional_licenses",
}


def random_vector(rng: random.Random) -> FeatureVector:
    """Build a vector with a random subset of fields set to extreme-ish values."""
    values = {}
    for name in FeatureVector.field_names():
        if rng.random() < 0.3:
            continue
        if name in BOOL_FIELDS:
            values[name] = rng.random() < 0.5
        elif name in INT_FIELDS:
            values[name] = rng.randint(0, 10)
        else:
            values[name] = rng.uniform(-500.0, 10000.0) if rng.random() < 0.2 else rng.uniform(0.0, 100.0)
    return FeatureVector(**values)


@pytest.fixture
def scorer() -> RiskScorer:
    return RiskScorer()


@pytest.fixture
def healthy_features() -> FeatureVector:
    """A subject with strong, well-documented finances."""
    return FeatureVector(
        monthly_income=6000.0,
        monthly_income_variance=0.02,
        employment_duration=48.0,
        multiple_income_streams=1,
        average_monthly_balance=9000.0,
        overdraft_frequency=0,
        savings_rate=25.0,
        emergency_fund_coverage=4.0,
        debt_to_income_ratio=0.15,
        payment_timeliness=98.0,
        credit_utilization=10.0,
        discretionary_spending_ratio=0.2,
        bill_payment_consistency=97.0,
        rent_payment_history=99.0,
        app_engagement_frequency=70.0,
        professional_network_strength=80.0,
        vehicle_ownership=True,
        property_ownership=True,
        residential_stability=60.0,
        document_authenticity=98.0,
        biometric_match_score=97.0,
        address_verification=True,
        phone_number_stability=36.0,
        unusual_transfer_patterns=0.0,
    )


@pytest.fixture
def stressed_features() -> FeatureVector:
    """A subject with heavy debt and erratic payments."""
    return FeatureVector(
        monthly_income=2000.0,
        monthly_income_variance=0.45,
        employment_duration=3.0,
        average_monthly_balance=50.0,
        overdraft_frequency=8,
        savings_rate=-30.0,
        debt_to_income_ratio=0.65,
        payment_timeliness=30.0,
        credit_utilization=95.0,
        discretionary_spending_ratio=0.8,
        gambling_activity=40.0,
        bill_payment_consistency=30.0,
        document_authenticity=40.0,
        address_verification=False,
        unusual_transfer_patterns=80.0,
        velocity_checks=70.0,
    )


# =============================================================================
# Bounds Tests
# =============================================================================

class TestBounds:
    """Every score lies in [0, 100] and confidence in [0, 1]."""

    def test_bounds_random_vectors(self, scorer: RiskScorer):
        rng = random.Random(42)

        for _ in range(300):
            assessment = scorer.score(random_vector(rng))

            assert 0.0 <= assessment.helix_score <= 100.0
            assert 0.0 <= assessment.confidence <= 1.0
            assert len(assessment.dimensions) == 5
            for dimension in assessment.dimensions:
                assert 0.0 <= dimension.score <= 100.0
                assert 0.0 <= dimension.confidence <= 1.0
                for sub_score in dimension.sub_scores.values():
                    assert 0.0 <= sub_score <= 100.0

    def test_bounds_empty_vector(self, scorer: RiskScorer):
        assessment = scorer.score(FeatureVector())

        assert 0.0 <= assessment.helix_score <= 100.0
        assert assessment.confidence == pytest.approx(0.08)

    def test_healthy_scores_below_stressed(
        self,
        scorer: RiskScorer,
        healthy_features: FeatureVector,
        stressed_features: FeatureVector,
    ):
        assert scorer.score(healthy_features).helix_score < scorer.score(stressed_features).helix_score


# =============================================================================
# Band Tests
# =============================================================================

class TestBands:
    """Category and grade bands are total partitions of [0, 100]."""

    @pytest.mark.parametrize("score,expected", [
        (0, RiskCategory.PRIME),
        (25, RiskCategory.PRIME),
        (25.01, RiskCategory.NEAR_PRIME),
        (45, RiskCategory.NEAR_PRIME),
        (46, RiskCategory.SUBPRIME),
        (65, RiskCategory.SUBPRIME),
        (66, RiskCategory.DEEP_SUBPRIME),
        (85, RiskCategory.DEEP_SUBPRIME),
        (85.5, RiskCategory.DECLINE),
        (100, RiskCategory.DECLINE),
    ])
    def test_band_category_boundaries(self, score, expected):
        assert classify_category(score) == expected

    def test_band_every_integer_maps_to_one_category(self):
        counts = {category: 0 for category in RiskCategory}
        for score in range(0, 101):
            counts[classify_category(score)] += 1

        assert sum(counts.values()) == 101
        assert counts == {
            RiskCategory.PRIME: 26,
            RiskCategory.NEAR_PRIME: 20,
            RiskCategory.SUBPRIME: 20,
            RiskCategory.DEEP_SUBPRIME: 20,
            RiskCategory.DECLINE: 15,
        }

    def test_band_categories_are_contiguous(self):
        order = list(RiskCategory)
        previous = order.index(classify_category(0))
        for score in range(1, 101):
            current = order.index(classify_category(score))
            assert current in (previous, previous + 1)
            previous = current

    @pytest.mark.parametrize("score,expected", [
        (20, RiskGrade.A),
        (21, RiskGrade.B),
        (40, RiskGrade.B),
        (60, RiskGrade.C),
        (80, RiskGrade.D),
        (90, RiskGrade.E),
        (91, RiskGrade.F),
    ])
    def test_band_grade_boundaries(self, score, expected):
        assert classify_grade(score) == expected

    def test_band_grade_is_independent_of_category(self):
        # 22 is prime but grade B
        assert classify_category(22) == RiskCategory.PRIME
        assert classify_grade(22) == RiskGrade.B

    def test_invalid_bands_rejected(self):
        with pytest.raises(ValueError):
            ScoringSettings(prime_max=50.0, near_prime_max=45.0)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            ScoringSettings(weight_financial=0.5)


# =============================================================================
# Determinism Tests
# =============================================================================

class TestDeterminism:
    """score() is a pure function of the vector."""

    def test_repeated_scoring_is_identical(
        self,
        scorer: RiskScorer,
        stressed_features: FeatureVector,
    ):
        first = scorer.score(stressed_features)
        second = scorer.score(stressed_features)

        assert first == second
        assert first.to_dict() == second.to_dict()
        assert first.explanation.summary == second.explanation.summary

    def test_separate_scorers_agree(self, healthy_features: FeatureVector):
        assert RiskScorer().score(healthy_features) == RiskScorer().score(healthy_features)


# =============================================================================
# Monotonicity Tests
# =============================================================================

class TestMonotonicity:
    """Worse inputs never improve the relevant dimension."""

    def test_dti_increase_never_lowers_financial_risk(
        self,
        scorer: RiskScorer,
        healthy_features: FeatureVector,
    ):
        low = scorer.score(healthy_features.with_overrides(debt_to_income_ratio=0.30))
        high = scorer.score(healthy_features.with_overrides(debt_to_income_ratio=0.50))

        assert high.dimension(Dimension.FINANCIAL).score >= low.dimension(Dimension.FINANCIAL).score
        assert high.helix_score >= low.helix_score

    @pytest.mark.parametrize("dti,expected", [
        (0.30, 70.0),
        (0.40, 50.0),
        (0.50, 15.0),
        (0.60, 0.0),
    ])
    def test_dti_bands(self, dti, expected):
        assert score_dti(dti) == pytest.approx(expected)

    def test_timeliness_increase_never_worsens_behavior(self, scorer: RiskScorer):
        base = FeatureVector(discretionary_spending_ratio=0.4)

        poor = scorer.score(base.with_overrides(payment_timeliness=60.0))
        good = scorer.score(base.with_overrides(payment_timeliness=95.0))

        assert good.dimension(Dimension.BEHAVIORAL).score <= poor.dimension(Dimension.BEHAVIORAL).score

    def test_timeliness_increase_never_worsens_financial(self, scorer: RiskScorer):
        poor = scorer.score(FeatureVector(payment_timeliness=60.0))
        good = scorer.score(FeatureVector(payment_timeliness=95.0))

        assert good.dimension(Dimension.FINANCIAL).score <= poor.dimension(Dimension.FINANCIAL).score


# =============================================================================
# Confidence Tests
# =============================================================================

class TestConfidence:
    """Confidence grows as canonical fields are populated."""

    FINANCIAL_FIELDS = {
        "employment_duration": 24.0,
        "monthly_income_variance": 0.1,
        "average_monthly_balance": 3000.0,
        "debt_to_income_ratio": 0.3,
        "payment_timeliness": 80.0,
    }

    def test_superset_never_has_lower_confidence(self, scorer: RiskScorer):
        full = scorer.score(FeatureVector(**self.FINANCIAL_FIELDS)).confidence

        for size in range(len(self.FINANCIAL_FIELDS)):
            for subset in itertools.combinations(self.FINANCIAL_FIELDS, size):
                partial = FeatureVector(**{k: self.FINANCIAL_FIELDS[k] for k in subset})
                assert scorer.score(partial).confidence <= full

    def test_financial_dimension_confidence(self, scorer: RiskScorer):
        assessment = scorer.score(FeatureVector(**self.FINANCIAL_FIELDS))

        assert assessment.dimension(Dimension.FINANCIAL).confidence == 1.0
        assert assessment.dimension(Dimension.ENVIRONMENTAL).confidence == 0.8
        # 0.35 * 1.0 + 0.10 * 0.8
        assert assessment.confidence == pytest.approx(0.43)


# =============================================================================
# End-to-End Income Example
# =============================================================================

class TestPayStubExample:
    """Two pay stubs of 4000 and 4200 flow through aggregation into scoring."""

    def test_income_consistency_matches_formula(self, scorer: RiskScorer):
        documents = [
            FinancialDocument(
                subject_id="subject-1",
                kind=DocumentKind.PAY_STUB,
                id=f"stub-{income}",
                status=DocumentStatus.OK,
                metrics=DocumentMetrics(monthly_income=income),
            )
            for income in (4000.0, 4200.0)
        ]

        features = FeatureAggregator().aggregate(documents)
        features = features.with_overrides(debt_to_income_ratio=0.30)
        assessment = scorer.score(features)

        assert features.monthly_income == 4100.0
        assert features.monthly_income_variance == 100.0 / 4100.0

        expected = 50.0 - (100.0 / 4100.0) * 10 * 0.2
        income_health = assessment.dimension(Dimension.FINANCIAL).sub_scores["income_consistency"]
        assert income_health == expected


# =============================================================================
# Flags, Explanation and Validation
# =============================================================================

class TestFlagsAndExplanation:
    """Tests for decision flags and the narrative explanation."""

    def test_flags_thresholds(self):
        flags = determine_flags(30.0, 20.0)
        assert flags.fast_track_eligible is True
        assert flags.prime_customer is False
        assert flags.high_risk is False
        assert flags.requires_manual_review is False

    def test_fraud_forces_manual_review(self):
        assert determine_flags(10.0, 70.0).requires_manual_review is True

    def test_high_risk_flags(self):
        flags = determine_flags(66.0, 0.0)
        assert flags.high_risk is True
        assert flags.requires_manual_review is True

    def test_explanation_names_dominant_driver(
        self,
        scorer: RiskScorer,
        stressed_features: FeatureVector,
    ):
        assessment = scorer.score(stressed_features)
        explanation = assessment.explanation
        riskiest = max(assessment.dimensions, key=lambda d: d.score)

        assert f"{assessment.helix_score:.1f}" in explanation.summary
        assert f"({riskiest.score:.1f})" in explanation.summary
        assert len(explanation.key_factors) == 5
        impacts = [k.impact for k in explanation.key_factors]
        assert impacts == sorted(impacts, reverse=True)
        for key_factor in explanation.key_factors:
            dimension_score = assessment.dimension(key_factor.dimension).score
            assert key_factor.direction == ("positive" if dimension_score < 50 else "negative")

    def test_concerns_and_recommendations(
        self,
        scorer: RiskScorer,
        stressed_features: FeatureVector,
    ):
        explanation = scorer.score(stressed_features).explanation

        assert "Elevated financial stability risk" in explanation.concerns
        assert any("debt-to-income" in r for r in explanation.recommendations)

    def test_non_finite_feature_rejected(self, scorer: RiskScorer):
        with pytest.raises(InvalidFeatureVectorException) as exc_info:
            scorer.score(FeatureVector(monthly_income=float("nan")))

        assert exc_info.value.field == "monthly_income"

    def test_non_positive_income_treated_as_unknown(self, scorer: RiskScorer):
        zero = scorer.score(FeatureVector(monthly_income=0.0, average_monthly_balance=500.0))
        unknown = scorer.score(FeatureVector(average_monthly_balance=500.0))

        assert (
            zero.dimension(Dimension.FINANCIAL).sub_scores["cash_flow_health"]
            == unknown.dimension(Dimension.FINANCIAL).sub_scores["cash_flow_health"]
        )


# =============================================================================
# Scenario Simulation
# =============================================================================

class TestSimulation:
    """Tests for what-if scenario projection."""

    def test_simulate_reports_impact(
        self,
        scorer: RiskScorer,
        stressed_features: FeatureVector,
    ):
        base_score = scorer.score(stressed_features).helix_score

        outcomes = scorer.simulate(
            stressed_features,
            {
                "pay_down_debt": {"debt_to_income_ratio": 0.2, "credit_utilization": 20.0},
                "miss_payments": {"payment_timeliness": 0.0},
            },
        )

        assert [o.name for o in outcomes] == ["pay_down_debt", "miss_payments"]
        pay_down = outcomes[0]
        assert pay_down.impact == round(pay_down.helix_score - base_score, 2)
        assert pay_down.improves is True
        assert outcomes[1].impact >= 0

    def test_simulate_unknown_feature_raises(
        self,
        scorer: RiskScorer,
        healthy_features: FeatureVector,
    ):
        with pytest.raises(InvalidFeatureVectorException):
            scorer.simulate(healthy_features, {"bad": {"shoe_size": 42}})
