"""POST /v1/trust/repayment-outcome - Trust score effect of a repayment"""

from fastapi import APIRouter

from trust_engine.api.v1.schemas import (
    RepaymentOutcomeRequest,
    RepaymentOutcomeResponse,
    TierSchema,
)
from trust_engine.domain.tiers import tier_for
from trust_engine.domain.trust_events import (
    apply_trust_event,
    days_late,
    trust_event_for,
    trust_score_change,
)

router = APIRouter()


@router.post("/trust/repayment-outcome", response_model=RepaymentOutcomeResponse)
def score_repayment_outcome(request_body: RepaymentOutcomeRequest):
    """Classify a completed repayment and report the resulting score and tier"""
    late = days_late(request_body.due_date, request_body.completed_date)
    event = trust_event_for(late)
    new_score = apply_trust_event(request_body.trust_score, event)

    return RepaymentOutcomeResponse(
        event=event.value,
        days_late=late,
        change=trust_score_change(event),
        previous_score=request_body.trust_score,
        new_score=new_score,
        tier=TierSchema.from_domain(tier_for(new_score)),
    )
