"""Fraud risk scoring engine - independent heuristic checks aggregated into one alert"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from trust_engine.domain.models import (
    AmountDetails,
    CheckResult,
    CircularDetails,
    DisputeDetails,
    FraudAlert,
    FraudType,
    GeneralDetails,
    NewAccountDetails,
    RedFlag,
    Severity,
    UserActivity,
    VelocityDetails,
)
from trust_engine.domain.trust_network import TrustNetwork, triangle_partners

logger = logging.getLogger(__name__)

# Detection thresholds
VELOCITY_24H = 3  # Max loan requests in 24 hours
VELOCITY_7D = 10  # Max loan requests in 7 days
FIRST_LOAN_LARGE_AMOUNT = 1000
NEW_ACCOUNT_DAYS = 7
NEAR_MAX_FRACTION = 0.8
NEW_ACCOUNT_MIN_TRUST = 80
MIN_CONFIRMATIONS = 3  # Received repayments needed before judging confirmation rate
DISPUTE_RATE = 0.5
MUTUAL_PARTNER_LIMIT = 2

ALERT_FLOOR = 20  # Totals below this produce no alert
MAX_SUSPICION = 100

ALERT_TYPE_LABELS: Dict[FraudType, str] = {
    FraudType.VELOCITY_ABUSE: "Velocity Abuse",
    FraudType.AMOUNT_ANOMALY: "Amount Anomaly",
    FraudType.NEW_ACCOUNT_ABUSE: "New Account Abuse",
    FraudType.DISPUTE_PATTERN: "Dispute Pattern",
    FraudType.CIRCULAR_LENDING: "Circular Lending",
    FraudType.SUSPICIOUS_REPAYMENT: "Suspicious Activity",
}


def alert_type_label(alert_type: FraudType) -> str:
    return ALERT_TYPE_LABELS[alert_type]


def _capped(score: float) -> float:
    return max(0, min(score, MAX_SUSPICION))


@dataclass
class PartnerIndex:
    """
    Cross-user lending relations consumed by the circular-lending check.

    triangles: user -> {partner: count of third users both have lent with}
    mutual:    user -> partners whose own partner set points back at the user
    """

    triangles: Dict[str, Dict[str, int]] = field(default_factory=dict)
    mutual: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_activities(cls, activities: Mapping[str, UserActivity]) -> "PartnerIndex":
        """Build the relations for every user of an activity map in one batch"""
        partner_sets = {user_id: set(a.loan_partners) for user_id, a in activities.items()}
        index = cls()

        for user_id, activity in activities.items():
            mine = partner_sets[user_id]
            for partner in dict.fromkeys(activity.loan_partners):
                theirs = partner_sets.get(partner)
                if theirs is None:
                    continue
                common = len((theirs & mine) - {user_id})
                if common:
                    index.triangles.setdefault(user_id, {})[partner] = common
                if user_id in theirs:
                    index.mutual.setdefault(user_id, []).append(partner)

        return index

    @classmethod
    def from_network(cls, network: TrustNetwork) -> "PartnerIndex":
        """Build the relations from a trust network in one triangle-enumeration pass"""
        index = cls(triangles=triangle_partners(network))
        for edge in network.edges:
            if edge.bidirectional and edge.source != edge.target:
                index.mutual.setdefault(edge.source, []).append(edge.target)
                index.mutual.setdefault(edge.target, []).append(edge.source)
        return index


# ── Individual checks ───────────────────────────────────────


def check_velocity_abuse(activity: UserActivity) -> CheckResult:
    """Too many loan requests in a short window"""
    red_flags: List[RedFlag] = []
    score = 0

    if activity.loans_requested_last_24h > VELOCITY_24H:
        excess = activity.loans_requested_last_24h - VELOCITY_24H
        score += 20 + excess * 10
        red_flags.append(
            RedFlag(
                code="VEL_24H",
                description=(
                    f"{activity.loans_requested_last_24h} loan requests in 24 hours "
                    f"(max: {VELOCITY_24H})"
                ),
                weight=25,
            )
        )

    if activity.loans_requested_last_7d > VELOCITY_7D:
        excess = activity.loans_requested_last_7d - VELOCITY_7D
        score += 15 + excess * 5
        red_flags.append(
            RedFlag(
                code="VEL_7D",
                description=(
                    f"{activity.loans_requested_last_7d} loan requests in 7 days "
                    f"(max: {VELOCITY_7D})"
                ),
                weight=20,
            )
        )

    return CheckResult(
        suspicion_score=_capped(score),
        red_flags=red_flags,
        alert_type=FraudType.VELOCITY_ABUSE if score > 0 else None,
        details=VelocityDetails(
            requests_last_24h=activity.loans_requested_last_24h,
            requests_last_7d=activity.loans_requested_last_7d,
        ),
    )


def _ratio(amount: float, average: float) -> float:
    if average:
        return amount / average
    # A zero average with prior loans is malformed upstream; keep float semantics
    return math.copysign(math.inf, amount) if amount else math.nan


def _ratio_description(ratio: float) -> str:
    if math.isfinite(ratio):
        return f"Request is {ratio:.1f}x average loan amount"
    return "Request with no prior average loan amount to compare against"


def check_amount_anomaly(requested_amount: float, activity: UserActivity) -> CheckResult:
    """
    Requested amount out of line with the user's history.

    First loans can only be judged on absolute size; later loans are compared
    to the historical average (2x / 3x) and to the previous maximum (1.5x).
    """
    red_flags: List[RedFlag] = []
    score = 0
    ratio: Optional[float] = None

    if activity.loans_requested == 0:
        if requested_amount > FIRST_LOAN_LARGE_AMOUNT:
            score += 15
            red_flags.append(
                RedFlag(
                    code="AMT_FIRST_LARGE",
                    description=f"First loan request is large: ${requested_amount}",
                    weight=15,
                )
            )
    else:
        ratio = _ratio(requested_amount, activity.average_loan_amount)

        if ratio > 3:
            score += 30
            red_flags.append(
                RedFlag(
                    code="AMT_3X_AVG",
                    description=_ratio_description(ratio),
                    weight=30,
                )
            )
        elif ratio > 2:
            score += 15
            red_flags.append(
                RedFlag(
                    code="AMT_2X_AVG",
                    description=_ratio_description(ratio),
                    weight=15,
                )
            )

        if requested_amount > activity.max_loan_amount * 1.5:
            score += 20
            red_flags.append(
                RedFlag(
                    code="AMT_EXCEEDS_MAX",
                    description="Request exceeds previous max by 50%+",
                    weight=20,
                )
            )

    return CheckResult(
        suspicion_score=_capped(score),
        red_flags=red_flags,
        alert_type=FraudType.AMOUNT_ANOMALY if score > 0 else None,
        details=AmountDetails(
            requested_amount=requested_amount,
            average_loan_amount=activity.average_loan_amount,
            max_loan_amount=activity.max_loan_amount,
            ratio_to_average=ratio,
        ),
    )


def check_new_account_abuse(
    requested_amount: float,
    activity: UserActivity,
    max_allowed_amount: float,
) -> CheckResult:
    """Accounts younger than a week pushing limits"""
    red_flags: List[RedFlag] = []
    score = 0

    if activity.account_age < NEW_ACCOUNT_DAYS:
        if requested_amount >= max_allowed_amount * NEAR_MAX_FRACTION:
            score += 40
            red_flags.append(
                RedFlag(
                    code="NEW_MAX_REQUEST",
                    description=(
                        f"New account ({activity.account_age} days) requesting near-max amount"
                    ),
                    weight=40,
                )
            )

        if activity.loans_requested_last_24h > 1:
            score += 25
            red_flags.append(
                RedFlag(
                    code="NEW_VELOCITY",
                    description="New account with multiple requests in 24h",
                    weight=25,
                )
            )

        if activity.trust_score < NEW_ACCOUNT_MIN_TRUST:
            score += 10
            red_flags.append(
                RedFlag(
                    code="NEW_LOW_TRUST",
                    description="New account with below-average trust score",
                    weight=10,
                )
            )

    return CheckResult(
        suspicion_score=_capped(score),
        red_flags=red_flags,
        alert_type=FraudType.NEW_ACCOUNT_ABUSE if score > 0 else None,
        details=NewAccountDetails(
            account_age=activity.account_age,
            requested_amount=requested_amount,
            max_allowed_amount=max_allowed_amount,
            trust_score=activity.trust_score,
        ),
    )


def check_dispute_pattern(activity: UserActivity) -> CheckResult:
    """Lenders who refuse to confirm repayments, and users who dispute most dealings"""
    red_flags: List[RedFlag] = []
    score = 0
    confirmation_rate: Optional[float] = None

    if activity.repayments_received >= MIN_CONFIRMATIONS:
        confirmation_rate = activity.repayments_confirmed / activity.repayments_received

        if confirmation_rate < 0.3:
            score += 50
            red_flags.append(
                RedFlag(
                    code="DISPUTE_HIGH",
                    description=f"Only confirms {confirmation_rate * 100:.0f}% of received payments",
                    weight=50,
                )
            )
        elif confirmation_rate < 0.5:
            score += 25
            red_flags.append(
                RedFlag(
                    code="DISPUTE_MODERATE",
                    description=f"Only confirms {confirmation_rate * 100:.0f}% of received payments",
                    weight=25,
                )
            )

    # No confirmations at all means no baseline to compare disputes against
    dispute_ratio = (
        activity.total_disputes / (activity.total_disputes + activity.total_confirmations)
        if activity.total_confirmations > 0
        else 0.0
    )

    if dispute_ratio > DISPUTE_RATE:
        score += 35
        red_flags.append(
            RedFlag(
                code="DISPUTE_RATIO",
                description=f"{dispute_ratio * 100:.0f}% dispute rate across all transactions",
                weight=35,
            )
        )

    return CheckResult(
        suspicion_score=_capped(score),
        red_flags=red_flags,
        alert_type=FraudType.DISPUTE_PATTERN if score > 0 else None,
        details=DisputeDetails(confirmation_rate=confirmation_rate, dispute_ratio=dispute_ratio),
    )


def check_circular_lending(activity: UserActivity, partners: PartnerIndex) -> CheckResult:
    """Triangles (A -> B -> C -> A) and back-and-forth lending among partners"""
    red_flags: List[RedFlag] = []
    score = 0

    triangles = partners.triangles.get(activity.user_id, {})
    for common in triangles.values():
        score += 15
        red_flags.append(
            RedFlag(
                code="CIRCULAR_DETECTED",
                description=f"Triangular lending pattern detected with {common} users",
                weight=15,
            )
        )

    mutual = partners.mutual.get(activity.user_id, [])
    if len(mutual) > MUTUAL_PARTNER_LIMIT:
        score += 20
        red_flags.append(
            RedFlag(
                code="MUTUAL_LENDING",
                description=f"Bi-directional lending with {len(mutual)} users",
                weight=20,
            )
        )

    return CheckResult(
        suspicion_score=_capped(score),
        red_flags=red_flags,
        alert_type=FraudType.CIRCULAR_LENDING if score > 0 else None,
        details=CircularDetails(triangle_partners=list(triangles), mutual_partners=list(mutual)),
    )


# ── Aggregation ─────────────────────────────────────────────


def severity_for(score: float) -> Severity:
    """
    Severity bands:
    - 80+:   critical
    - 60-79: high
    - 40-59: medium
    - below: low
    """
    if score >= 80:
        return Severity.CRITICAL
    elif score >= 60:
        return Severity.HIGH
    elif score >= 40:
        return Severity.MEDIUM
    else:
        return Severity.LOW


def run_checks(
    activity: UserActivity,
    requested_amount: Optional[float] = None,
    max_allowed_amount: Optional[float] = None,
    partners: Optional[PartnerIndex] = None,
) -> List[CheckResult]:
    """Run every check the supplied inputs allow"""
    checks = [check_velocity_abuse(activity), check_dispute_pattern(activity)]

    if requested_amount is not None:
        checks.append(check_amount_anomaly(requested_amount, activity))
        if max_allowed_amount is not None:
            checks.append(check_new_account_abuse(requested_amount, activity, max_allowed_amount))

    if partners is not None:
        checks.append(check_circular_lending(activity, partners))

    return checks


def aggregate_checks(
    activity: UserActivity,
    checks: Sequence[CheckResult],
    requested_amount: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Optional[FraudAlert]:
    """
    Combine check results into one alert.

    Raw check scores are summed (red flag weights are informational) and
    capped at 100. Totals below 20 yield no alert. The primary alert type
    comes from the single highest-scoring check, earliest check on ties.
    """
    red_flags: List[RedFlag] = []
    total = 0
    primary: Optional[CheckResult] = None

    for check in checks:
        red_flags.extend(check.red_flags)
        total += check.suspicion_score
        if check.alert_type and check.suspicion_score > (primary.suspicion_score if primary else 0):
            primary = check

    total = _capped(total)
    if total < ALERT_FLOOR:
        return None

    if primary is not None:
        alert_type = primary.alert_type
        details = primary.details
    else:
        alert_type = FraudType.SUSPICIOUS_REPAYMENT
        details = GeneralDetails(
            account_age=activity.account_age,
            trust_score=activity.trust_score,
            loans_requested=activity.loans_requested,
            requested_amount=requested_amount,
        )

    return FraudAlert(
        id=f"alert_{uuid.uuid4().hex[:12]}",
        user_id=activity.user_id,
        user_email=activity.email,
        user_name=activity.name,
        alert_type=alert_type,
        severity=severity_for(total),
        suspicion_score=total,
        red_flags=red_flags,
        details=details,
        created_at=now or datetime.now(timezone.utc),
    )


def detect_fraud(
    activity: UserActivity,
    requested_amount: Optional[float] = None,
    max_allowed_amount: Optional[float] = None,
    all_activities: Optional[Mapping[str, UserActivity]] = None,
    partners: Optional[PartnerIndex] = None,
    now: Optional[datetime] = None,
) -> Optional[FraudAlert]:
    """
    Main entry point: score one user's activity, returning an alert or None.

    The circular-lending check runs when cross-user relations are available,
    either as a prebuilt PartnerIndex or as the full activity map.
    """
    if partners is None and all_activities is not None:
        partners = PartnerIndex.from_activities(all_activities)

    checks = run_checks(activity, requested_amount, max_allowed_amount, partners)
    alert = aggregate_checks(activity, checks, requested_amount, now)

    logger.debug(
        "Fraud checks completed",
        extra={
            "user_id": activity.user_id,
            "checks_run": len(checks),
            "suspicion_score": alert.suspicion_score if alert else None,
        },
    )
    return alert


def scan_activities(
    activities: Sequence[UserActivity],
    network: Optional[TrustNetwork] = None,
    now: Optional[datetime] = None,
) -> List[FraudAlert]:
    """
    Score every user of a batch against one shared PartnerIndex.

    The index comes from the trust network when one is given, otherwise from
    the batch's own activity map.
    """
    if network is not None:
        partners = PartnerIndex.from_network(network)
    else:
        partners = PartnerIndex.from_activities({a.user_id: a for a in activities})

    alerts = []
    for activity in activities:
        alert = detect_fraud(activity, partners=partners, now=now)
        if alert is not None:
            alerts.append(alert)
    return alerts
