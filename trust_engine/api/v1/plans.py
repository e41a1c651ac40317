"""POST /v1/plans - Repayment plan options for a loan"""

from fastapi import APIRouter, Request

from trust_engine.api.dependencies import get_request_id
from trust_engine.api.v1.schemas import PlanRequest, PlanSchema, PlansResponse, TierSchema
from trust_engine.domain.repayment import generate_repayment_plans, get_recommended_plan
from trust_engine.domain.tiers import tier_for
from trust_engine.infrastructure.observability.logging import log_plans_generated
from trust_engine.infrastructure.observability.metrics import plans_generated_counter

router = APIRouter()


@router.post("/plans", response_model=PlansResponse)
def create_plans(request_body: PlanRequest, request: Request):
    """
    Generate aggressive, balanced and conservative plans.

    Returns:
        Exactly three plans, the advisory recommendation, and the tier
        that priced them. Nothing is persisted; the caller forwards the
        chosen plan.
    """
    plans = generate_repayment_plans(
        loan_amount=request_body.loan_amount,
        trust_score=request_body.trust_score,
        desired_duration_months=request_body.desired_duration_months,
        preferred_frequency=request_body.preferred_frequency,
    )
    tier = tier_for(request_body.trust_score)
    recommended = get_recommended_plan(request_body.trust_score)

    plans_generated_counter.labels(frequency=request_body.preferred_frequency.value).inc()
    log_plans_generated(
        get_request_id(request),
        request_body.loan_amount,
        tier.name,
        request_body.preferred_frequency.value,
        recommended.value,
    )

    return PlansResponse(
        plans=[PlanSchema.from_domain(plan) for plan in plans],
        recommended_plan=recommended,
        tier=TierSchema.from_domain(tier),
    )
