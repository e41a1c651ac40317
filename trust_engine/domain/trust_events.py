"""Trust score evolution - how repayment outcomes move a user's score"""

from datetime import date
from enum import Enum

MIN_TRUST_SCORE = 0
MAX_TRUST_SCORE = 150


class TrustEvent(str, Enum):
    EARLY = "EARLY"
    ON_TIME = "ON_TIME"
    LATE_1_7 = "LATE_1_7"
    LATE_8_30 = "LATE_8_30"
    OVERDUE = "OVERDUE"
    DISPUTED = "DISPUTED"
    FIRST_LOAN = "FIRST_LOAN"


TRUST_CHANGES = {
    TrustEvent.EARLY: 8,
    TrustEvent.ON_TIME: 5,
    TrustEvent.LATE_1_7: -5,
    TrustEvent.LATE_8_30: -10,
    TrustEvent.OVERDUE: -20,
    TrustEvent.DISPUTED: -15,
    TrustEvent.FIRST_LOAN: 10,
}


def days_late(due_date: date, completed_date: date) -> int:
    """Days between due and completion; negative means early"""
    return (completed_date - due_date).days


def trust_event_for(days: int) -> TrustEvent:
    """
    Classify a repayment by lateness:
    - more than a week early: EARLY
    - up to the due date:     ON_TIME
    - 1-7 days late:          LATE_1_7
    - 8-30 days late:         LATE_8_30
    - later:                  OVERDUE
    """
    if days < -7:
        return TrustEvent.EARLY
    if days <= 0:
        return TrustEvent.ON_TIME
    if days <= 7:
        return TrustEvent.LATE_1_7
    if days <= 30:
        return TrustEvent.LATE_8_30
    return TrustEvent.OVERDUE


def trust_score_change(event: TrustEvent) -> int:
    return TRUST_CHANGES[event]


def apply_trust_event(score: float, event: TrustEvent) -> float:
    """New score after the event, kept within 0-150"""
    return max(MIN_TRUST_SCORE, min(MAX_TRUST_SCORE, score + trust_score_change(event)))
