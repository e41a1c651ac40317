"""Trust tiers - the single score-band lookup shared by every engine component"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class TrustTier:
    name: str
    min_score: float
    annual_rate: float
    max_loan_amount: float
    max_active_loans: int


# Ordered highest band first; a score belongs to the first tier whose min it reaches
TRUST_TIERS: Tuple[TrustTier, ...] = (
    TrustTier("Diamond", 140, 0.02, 10_000, 15),
    TrustTier("Platinum", 110, 0.035, 5_000, 10),
    TrustTier("Gold", 80, 0.05, 2_000, 5),
    TrustTier("Silver", 50, 0.075, 500, 3),
    TrustTier("Bronze", 0, 0.10, 100, 1),
)


def tier_for(score: float) -> TrustTier:
    """
    Map a trust score (0-150) to its tier.

    Bands:
    - Bronze    < 50   10.0% annual, up to 100 across 1 active loan
    - Silver    < 80    7.5% annual, up to 500 across 3 active loans
    - Gold      < 110   5.0% annual, up to 2000 across 5 active loans
    - Platinum  < 140   3.5% annual, up to 5000 across 10 active loans
    - Diamond  >= 140   2.0% annual, up to 10000 across 15 active loans
    """
    for tier in TRUST_TIERS:
        if score >= tier.min_score:
            return tier
    return TRUST_TIERS[-1]
