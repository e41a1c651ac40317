"""Unit tests for trust tier lookup"""

import pytest
from trust_engine.domain.tiers import TRUST_TIERS, tier_for


@pytest.mark.parametrize(
    "score, name",
    [
        (0, "Bronze"),
        (49.9, "Bronze"),
        (50, "Silver"),
        (79, "Silver"),
        (80, "Gold"),
        (109, "Gold"),
        (110, "Platinum"),
        (139, "Platinum"),
        (140, "Diamond"),
        (150, "Diamond"),
    ],
)
def test_tier_bands(score, name):
    assert tier_for(score).name == name


def test_negative_score_falls_back_to_lowest_tier():
    assert tier_for(-5).name == "Bronze"


def test_tier_limits():
    """Test loan limits and rates rise together with the tier"""
    assert tier_for(90).max_loan_amount == 2000
    assert tier_for(90).max_active_loans == 5
    assert tier_for(10).max_loan_amount == 100

    ascending = list(reversed(TRUST_TIERS))
    for lower, higher in zip(ascending, ascending[1:]):
        assert higher.annual_rate < lower.annual_rate
        assert higher.max_loan_amount > lower.max_loan_amount
        assert higher.max_active_loans > lower.max_active_loans
