"""Pydantic schemas for API request/response validation"""

from dataclasses import asdict
from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from trust_engine.config import settings
from trust_engine.domain.models import (
    EdgeStatus,
    FraudAlert,
    FraudType,
    Frequency,
    LoanRecord,
    PlanType,
    RepaymentPlan,
    ReviewAction,
    Severity,
    UserActivity,
    UserRecord,
)
from trust_engine.domain.tiers import TrustTier


# ── Requests ────────────────────────────────────────────────


class UserSchema(BaseModel):
    """User row of a network snapshot"""

    id: str = Field(..., min_length=1)
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    trust_score: float = Field(..., ge=0, le=150)

    def to_domain(self) -> UserRecord:
        return UserRecord(**self.model_dump())


class LoanSchema(BaseModel):
    """Loan row of a network snapshot"""

    lender_id: str = Field(..., min_length=1)
    borrower_id: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    status: str = Field(..., description="COMPLETED | ACTIVE | DISPUTED | ...")

    def to_domain(self) -> LoanRecord:
        return LoanRecord(**self.model_dump())


class SnapshotRequest(BaseModel):
    """Users and loans pulled fresh from storage by the caller"""

    users: List[UserSchema]
    loans: List[LoanSchema] = []


class ConnectionRequest(SnapshotRequest):
    """Request body for POST /v1/network/connection"""

    source_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)


class UserActivitySchema(BaseModel):
    user_id: str = Field(..., min_length=1)
    email: str = ""
    name: str = ""
    account_age: int = Field(..., ge=0, description="Account age in days")
    trust_score: float = Field(..., ge=0, le=150)
    loans_requested: int = Field(..., ge=0)
    loans_requested_last_24h: int = Field(..., ge=0)
    loans_requested_last_7d: int = Field(..., ge=0)
    average_loan_amount: float = Field(..., ge=0)
    max_loan_amount: float = Field(..., ge=0)
    total_disputes: int = Field(..., ge=0)
    total_confirmations: int = Field(..., ge=0)
    repayments_received: int = Field(..., ge=0)
    repayments_confirmed: int = Field(..., ge=0)
    loan_partners: List[str] = []

    def to_domain(self) -> UserActivity:
        data = self.model_dump()
        data["loan_partners"] = tuple(data["loan_partners"])
        return UserActivity(**data)


class FraudCheckRequest(BaseModel):
    """Request body for POST /v1/fraud/check"""

    activity: UserActivitySchema
    requested_amount: Optional[float] = Field(None, gt=0)
    max_allowed_amount: Optional[float] = Field(
        None, gt=0, description="Defaults to the trust tier's loan limit"
    )
    activities: Optional[List[UserActivitySchema]] = Field(
        None, description="All users' activity, enables the circular-lending check"
    )


class FraudScanRequest(BaseModel):
    """Request body for POST /v1/fraud/scan"""

    activities: List[UserActivitySchema]
    network: Optional[SnapshotRequest] = Field(
        None, description="When given, circular lending is read from the trust network"
    )


class PlanRequest(BaseModel):
    """Request body for POST /v1/plans"""

    loan_amount: float = Field(..., gt=0)
    trust_score: float = Field(..., ge=0, le=150)
    desired_duration_months: Optional[int] = Field(None, gt=0, le=60)
    preferred_frequency: Frequency = Frequency(settings.default_plan_frequency)


class RepaymentOutcomeRequest(BaseModel):
    """Request body for POST /v1/trust/repayment-outcome"""

    trust_score: float = Field(..., ge=0, le=150)
    due_date: date
    completed_date: date


# ── Responses ───────────────────────────────────────────────


class NodeSchema(BaseModel):
    id: str
    email: str
    name: str
    trust_score: float
    loans_given: int
    loans_taken: int
    total_volume: float


class EdgeSchema(BaseModel):
    source: str
    target: str
    loan_count: int
    total_amount: float
    status: EdgeStatus
    success_rate: float
    bidirectional: bool


class MetricsSchema(BaseModel):
    total_nodes: int
    total_edges: int
    average_degree: float
    clustering_coefficient: float
    trust_hubs: List[str]


class NetworkResponse(BaseModel):
    """Response for POST /v1/network/analyze"""

    nodes: List[NodeSchema]
    edges: List[EdgeSchema]
    metrics: MetricsSchema


class PathSchema(BaseModel):
    path: List[str]
    distance: int
    trust_score: float


class ConnectionResponse(BaseModel):
    """Response for POST /v1/network/connection"""

    path: Optional[PathSchema]
    trust_distance: Optional[float] = Field(None, description="null when unreachable")
    mutual_connections: List[str]


class UserNetworkResponse(BaseModel):
    """Response for POST /v1/network/users/{user_id}"""

    node: NodeSchema
    centrality: float
    clustering_coefficient: float
    neighbors: List[str]


class RedFlagSchema(BaseModel):
    code: str
    description: str
    weight: int


class VelocityDetailsSchema(BaseModel):
    alert_type: Literal["velocity_abuse"]
    requests_last_24h: int
    requests_last_7d: int


class AmountDetailsSchema(BaseModel):
    alert_type: Literal["amount_anomaly"]
    requested_amount: float
    average_loan_amount: float
    max_loan_amount: float
    ratio_to_average: Optional[float]


class NewAccountDetailsSchema(BaseModel):
    alert_type: Literal["new_account_abuse"]
    account_age: int
    requested_amount: float
    max_allowed_amount: float
    trust_score: float


class DisputeDetailsSchema(BaseModel):
    alert_type: Literal["dispute_pattern"]
    confirmation_rate: Optional[float]
    dispute_ratio: float


class CircularDetailsSchema(BaseModel):
    alert_type: Literal["circular_lending"]
    triangle_partners: List[str]
    mutual_partners: List[str]


class GeneralDetailsSchema(BaseModel):
    alert_type: Literal["suspicious_repayment"]
    account_age: int
    trust_score: float
    loans_requested: int
    requested_amount: Optional[float]


AlertDetailsSchema = Annotated[
    Union[
        VelocityDetailsSchema,
        AmountDetailsSchema,
        NewAccountDetailsSchema,
        DisputeDetailsSchema,
        CircularDetailsSchema,
        GeneralDetailsSchema,
    ],
    Field(discriminator="alert_type"),
]


class FraudAlertSchema(BaseModel):
    id: str
    user_id: str
    user_email: str
    user_name: str
    alert_type: FraudType
    alert_label: str
    severity: Severity
    suspicion_score: float
    red_flags: List[RedFlagSchema]
    details: AlertDetailsSchema
    created_at: datetime
    action_taken: Optional[ReviewAction] = None

    @classmethod
    def from_domain(cls, alert: FraudAlert, label: str) -> "FraudAlertSchema":
        return cls.model_validate({**asdict(alert), "alert_label": label})


class FraudCheckResponse(BaseModel):
    """Response for POST /v1/fraud/check"""

    alert: Optional[FraudAlertSchema]


class FraudScanResponse(BaseModel):
    """Response for POST /v1/fraud/scan"""

    scanned: int
    alerts: List[FraudAlertSchema]


class TierSchema(BaseModel):
    name: str
    annual_rate: float
    max_loan_amount: float
    max_active_loans: int

    @classmethod
    def from_domain(cls, tier: TrustTier) -> "TierSchema":
        return cls(
            name=tier.name,
            annual_rate=tier.annual_rate,
            max_loan_amount=tier.max_loan_amount,
            max_active_loans=tier.max_active_loans,
        )


class ScheduleItemSchema(BaseModel):
    payment_number: int
    due_date: date
    amount: float
    principal: float
    interest: float
    remaining_balance: float


class PlanSchema(BaseModel):
    type: PlanType
    frequency: Frequency
    payment_amount: float
    total_payments: int
    completion_date: date
    duration_weeks: int
    total_interest: float
    interest_rate: float
    schedule: List[ScheduleItemSchema]

    @classmethod
    def from_domain(cls, plan: RepaymentPlan) -> "PlanSchema":
        return cls.model_validate(asdict(plan))


class PlansResponse(BaseModel):
    """Response for POST /v1/plans"""

    plans: List[PlanSchema]
    recommended_plan: PlanType
    tier: TierSchema


class RepaymentOutcomeResponse(BaseModel):
    """Response for POST /v1/trust/repayment-outcome"""

    event: str
    days_late: int
    change: int
    previous_score: float
    new_score: float
    tier: TierSchema
