"""Repayment plan optimizer - amortized schedules priced by the borrower's trust tier"""

import logging
import math
from datetime import date, timedelta
from typing import Dict, List, Optional

from trust_engine.domain.models import Frequency, PaymentScheduleItem, PlanType, RepaymentPlan
from trust_engine.domain.tiers import tier_for

logger = logging.getLogger(__name__)

DURATION_MULTIPLIERS: Dict[PlanType, float] = {
    PlanType.AGGRESSIVE: 0.6,  # 40% faster
    PlanType.BALANCED: 1.0,
    PlanType.CONSERVATIVE: 1.5,  # 50% longer
}


def get_interest_rate(trust_score: float) -> float:
    """Annual rate for the score's tier (lower tier = higher rate)"""
    return tier_for(trust_score).annual_rate


def base_duration_months(loan_amount: float) -> int:
    """
    Standard term by loan size:
    - under 500:  3 months
    - under 1500: 6 months
    - under 3000: 9 months
    - under 6000: 12 months
    - otherwise:  18 months
    """
    if loan_amount < 500:
        return 3
    elif loan_amount < 1500:
        return 6
    elif loan_amount < 3000:
        return 9
    elif loan_amount < 6000:
        return 12
    else:
        return 18


def plan_duration_months(plan_type: PlanType, base_months: float) -> int:
    # Round away float noise (e.g. 3 * 0.6) before taking the ceiling
    return math.ceil(round(base_months * DURATION_MULTIPLIERS[plan_type], 9))


def calculate_payment(
    principal: float,
    annual_rate: float,
    total_payments: int,
    frequency: Frequency,
) -> float:
    """
    Fixed installment via the standard amortization formula:

        payment = P·r·(1+r)^n / ((1+r)^n − 1),  r = annual_rate / periods_per_year

    Falls back to straight-line P/n when r is 0. Rounded to cents.
    """
    period_rate = annual_rate / frequency.periods_per_year

    if period_rate == 0:
        return round(principal / total_payments, 2)

    growth = (1 + period_rate) ** total_payments
    return round(principal * period_rate * growth / (growth - 1), 2)


def generate_schedule(
    principal: float,
    payment_amount: float,
    annual_rate: float,
    total_payments: int,
    frequency: Frequency,
    start_date: date,
) -> List[PaymentScheduleItem]:
    """
    Amortization schedule, one entry per period.

    Requirements:
    - interest = remaining balance × period rate, rounded to cents
    - principal = min(payment − interest, remaining balance)
    - stops early once the balance reaches 0
    - last entry absorbs the rounding remainder so principals sum to the loan

    Example:
        1000 at 5%/yr monthly over 6 → five payments of 169.11, the sixth
        carries whatever balance the rounded payments left behind.
    """
    period_rate = annual_rate / frequency.periods_per_year
    schedule: List[PaymentScheduleItem] = []
    remaining = principal

    for number in range(1, total_payments + 1):
        interest = round(remaining * period_rate, 2)

        if number == total_payments:
            principal_part = remaining
        else:
            principal_part = round(min(payment_amount - interest, remaining), 2)

        remaining = max(0.0, round(remaining - principal_part, 2))
        is_last = number == total_payments or remaining <= 0

        schedule.append(
            PaymentScheduleItem(
                payment_number=number,
                due_date=start_date + timedelta(days=number * frequency.days_per_period),
                amount=round(principal_part + interest, 2) if is_last else payment_amount,
                principal=principal_part,
                interest=interest,
                remaining_balance=remaining,
            )
        )

        if remaining <= 0:
            break

    return schedule


def generate_plan(
    plan_type: PlanType,
    loan_amount: float,
    trust_score: float,
    frequency: Frequency,
    desired_duration_months: Optional[int] = None,
    start_date: Optional[date] = None,
) -> RepaymentPlan:
    """Build a single plan; desired_duration_months replaces the size-based term"""
    interest_rate = get_interest_rate(trust_score)

    base_months = (
        desired_duration_months
        if desired_duration_months is not None
        else base_duration_months(loan_amount)
    )
    duration_months = plan_duration_months(plan_type, base_months)
    total_payments = math.ceil(duration_months * frequency.payments_per_month)

    payment_amount = calculate_payment(loan_amount, interest_rate, total_payments, frequency)

    if start_date is None:
        start_date = date.today()

    schedule = generate_schedule(
        loan_amount, payment_amount, interest_rate, total_payments, frequency, start_date
    )

    completion_date = schedule[-1].due_date if schedule else start_date
    total_interest = round(sum(item.interest for item in schedule), 2)

    return RepaymentPlan(
        type=plan_type,
        frequency=frequency,
        payment_amount=payment_amount,
        total_payments=len(schedule),
        completion_date=completion_date,
        duration_weeks=math.ceil((completion_date - start_date).days / 7),
        total_interest=total_interest,
        interest_rate=interest_rate,
        schedule=schedule,
    )


def generate_repayment_plans(
    loan_amount: float,
    trust_score: float,
    desired_duration_months: Optional[int] = None,
    preferred_frequency: Frequency = Frequency.MONTHLY,
    start_date: Optional[date] = None,
) -> List[RepaymentPlan]:
    """
    Main entry point: aggressive, balanced and conservative plans for one loan.

    All three share the caller's frequency and start date.
    """
    frequency = Frequency(preferred_frequency)
    if start_date is None:
        start_date = date.today()

    plans = [
        generate_plan(
            plan_type, loan_amount, trust_score, frequency, desired_duration_months, start_date
        )
        for plan_type in (PlanType.AGGRESSIVE, PlanType.BALANCED, PlanType.CONSERVATIVE)
    ]

    logger.debug(
        "Generated repayment plans",
        extra={"loan_amount": loan_amount, "frequency": frequency.value},
    )
    return plans


def get_recommended_plan(trust_score: float) -> PlanType:
    """
    Advisory only; callers may still pick any plan.

    - 110+:   aggressive
    - 80-109: balanced
    - below:  conservative
    """
    if trust_score >= 110:
        return PlanType.AGGRESSIVE
    elif trust_score >= 80:
        return PlanType.BALANCED
    else:
        return PlanType.CONSERVATIVE
