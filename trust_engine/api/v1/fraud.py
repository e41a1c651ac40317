"""POST /v1/fraud/* - Advisory fraud risk scoring"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from trust_engine.api.dependencies import get_request_id
from trust_engine.api.v1.network import build_snapshot_network
from trust_engine.api.v1.schemas import (
    FraudAlertSchema,
    FraudCheckRequest,
    FraudCheckResponse,
    FraudScanRequest,
    FraudScanResponse,
)
from trust_engine.domain.fraud import alert_type_label, detect_fraud, scan_activities
from trust_engine.domain.models import FraudAlert
from trust_engine.domain.tiers import tier_for
from trust_engine.infrastructure.observability.logging import log_fraud_alert
from trust_engine.infrastructure.observability.metrics import record_fraud_check

router = APIRouter()


def _to_schema(alert: FraudAlert) -> FraudAlertSchema:
    return FraudAlertSchema.from_domain(alert, alert_type_label(alert.alert_type))


def _record(request_id: str, user_id: str, alert: Optional[FraudAlert]) -> None:
    severity = alert.severity.value if alert else None
    alert_type = alert.alert_type.value if alert else None
    record_fraud_check(severity, alert_type)
    log_fraud_alert(
        request_id, user_id, alert_type, severity, alert.suspicion_score if alert else 0
    )


@router.post("/fraud/check", response_model=FraudCheckResponse)
def check_fraud(request_body: FraudCheckRequest, request: Request):
    """
    Score one user's recent activity.

    Flow:
    1. Derive max_allowed_amount from the trust tier when the caller omits it
    2. Run every check the inputs allow (circular lending needs `activities`)
    3. Return the alert, or null when the total stays under the alert floor

    The engine only advises; acting on the alert is up to the reviewer.
    """
    request_id = get_request_id(request)
    activity = request_body.activity.to_domain()

    max_allowed = request_body.max_allowed_amount
    if max_allowed is None and request_body.requested_amount is not None:
        max_allowed = tier_for(activity.trust_score).max_loan_amount

    all_activities = None
    if request_body.activities is not None:
        all_activities = {a.user_id: a.to_domain() for a in request_body.activities}
        all_activities.setdefault(activity.user_id, activity)

    try:
        alert = detect_fraud(
            activity,
            requested_amount=request_body.requested_amount,
            max_allowed_amount=max_allowed,
            all_activities=all_activities,
        )
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    _record(request_id, activity.user_id, alert)
    return FraudCheckResponse(alert=_to_schema(alert) if alert else None)


@router.post("/fraud/scan", response_model=FraudScanResponse)
def scan_fraud(request_body: FraudScanRequest, request: Request):
    """
    Score a whole batch of users against one shared set of partner relations.

    Circular lending is read from the trust network when a snapshot is given,
    otherwise from the batch's own loan partner lists.
    """
    request_id = get_request_id(request)
    activities = [a.to_domain() for a in request_body.activities]
    network = build_snapshot_network(request_body.network) if request_body.network else None

    alerts = scan_activities(activities, network=network)

    flagged = {alert.user_id: alert for alert in alerts}
    for activity in activities:
        _record(request_id, activity.user_id, flagged.get(activity.user_id))

    return FraudScanResponse(
        scanned=len(activities),
        alerts=[_to_schema(alert) for alert in alerts],
    )
