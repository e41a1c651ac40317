"""Domain models - pure Python dataclasses representing engine inputs and outputs"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Literal, Optional, Tuple, Union


# ── Enumerations ────────────────────────────────────────────


class EdgeStatus(str, Enum):
    """Aggregated status of the loans between two users"""

    COMPLETED = "completed"
    ACTIVE = "active"
    DISPUTED = "disputed"


class FraudType(str, Enum):
    VELOCITY_ABUSE = "velocity_abuse"
    AMOUNT_ANOMALY = "amount_anomaly"
    NEW_ACCOUNT_ABUSE = "new_account_abuse"
    DISPUTE_PATTERN = "dispute_pattern"
    CIRCULAR_LENDING = "circular_lending"
    SUSPICIOUS_REPAYMENT = "suspicious_repayment"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReviewAction(str, Enum):
    """Set by a human reviewer, never by the engine"""

    REVIEWED = "reviewed"
    BLOCKED = "blocked"
    DISMISSED = "dismissed"


class PlanType(str, Enum):
    AGGRESSIVE = "aggressive"
    BALANCED = "balanced"
    CONSERVATIVE = "conservative"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def periods_per_year(self) -> int:
        return {"weekly": 52, "biweekly": 26, "monthly": 12}[self.value]

    @property
    def payments_per_month(self) -> int:
        return {"weekly": 4, "biweekly": 2, "monthly": 1}[self.value]

    @property
    def days_per_period(self) -> int:
        return {"weekly": 7, "biweekly": 14, "monthly": 30}[self.value]


# ── Snapshot inputs ─────────────────────────────────────────


@dataclass
class UserRecord:
    """User row as supplied by the caller"""

    id: str
    email: str
    trust_score: float
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass
class LoanRecord:
    """Loan row as supplied by the caller"""

    lender_id: str
    borrower_id: str
    amount: float
    status: str  # COMPLETED | ACTIVE | DISPUTED | OVERDUE | ...


@dataclass
class UserActivity:
    """Aggregated lending activity for one user, computed by the caller"""

    user_id: str
    account_age: int  # days
    trust_score: float
    loans_requested: int
    loans_requested_last_24h: int
    loans_requested_last_7d: int
    average_loan_amount: float
    max_loan_amount: float
    total_disputes: int
    total_confirmations: int
    repayments_received: int
    repayments_confirmed: int
    loan_partners: Tuple[str, ...] = ()
    email: str = ""
    name: str = ""


# ── Trust network ───────────────────────────────────────────


@dataclass
class NetworkNode:
    id: str
    email: str
    name: str
    trust_score: float
    loans_given: int
    loans_taken: int
    total_volume: float


@dataclass
class NetworkEdge:
    """All loans between one unordered pair of users, merged"""

    source: str
    target: str
    loan_count: int
    total_amount: float
    status: EdgeStatus
    success_rate: float
    bidirectional: bool = False


@dataclass
class NetworkMetrics:
    total_nodes: int
    total_edges: int
    average_degree: float
    clustering_coefficient: float
    trust_hubs: List[str]


@dataclass
class PathResult:
    path: List[str]
    distance: int
    trust_score: float


# ── Fraud alerts ────────────────────────────────────────────


@dataclass
class RedFlag:
    code: str
    description: str
    weight: int  # Informational only; aggregation sums raw check scores


@dataclass
class VelocityDetails:
    requests_last_24h: int
    requests_last_7d: int
    alert_type: Literal["velocity_abuse"] = field(default="velocity_abuse", init=False)


@dataclass
class AmountDetails:
    requested_amount: float
    average_loan_amount: float
    max_loan_amount: float
    ratio_to_average: Optional[float]  # None for a first loan
    alert_type: Literal["amount_anomaly"] = field(default="amount_anomaly", init=False)


@dataclass
class NewAccountDetails:
    account_age: int
    requested_amount: float
    max_allowed_amount: float
    trust_score: float
    alert_type: Literal["new_account_abuse"] = field(default="new_account_abuse", init=False)


@dataclass
class DisputeDetails:
    confirmation_rate: Optional[float]  # None below the minimum sample size
    dispute_ratio: float
    alert_type: Literal["dispute_pattern"] = field(default="dispute_pattern", init=False)


@dataclass
class CircularDetails:
    triangle_partners: List[str]
    mutual_partners: List[str]
    alert_type: Literal["circular_lending"] = field(default="circular_lending", init=False)


@dataclass
class GeneralDetails:
    account_age: int
    trust_score: float
    loans_requested: int
    requested_amount: Optional[float]
    alert_type: Literal["suspicious_repayment"] = field(default="suspicious_repayment", init=False)


AlertDetails = Union[
    VelocityDetails,
    AmountDetails,
    NewAccountDetails,
    DisputeDetails,
    CircularDetails,
    GeneralDetails,
]


@dataclass
class CheckResult:
    """Outcome of a single heuristic check"""

    suspicion_score: float
    red_flags: List[RedFlag]
    alert_type: Optional[FraudType]
    details: AlertDetails


@dataclass
class FraudAlert:
    id: str
    user_id: str
    user_email: str
    user_name: str
    alert_type: FraudType
    severity: Severity
    suspicion_score: float
    red_flags: List[RedFlag]
    details: AlertDetails
    created_at: datetime
    action_taken: Optional[ReviewAction] = None


# ── Repayment plans ─────────────────────────────────────────


@dataclass
class PaymentScheduleItem:
    payment_number: int
    due_date: date
    amount: float
    principal: float
    interest: float
    remaining_balance: float


@dataclass
class RepaymentPlan:
    type: PlanType
    frequency: Frequency
    payment_amount: float
    total_payments: int
    completion_date: date
    duration_weeks: int
    total_interest: float
    interest_rate: float
    schedule: List[PaymentScheduleItem]
