"""Unit tests for trust score evolution"""

from datetime import date

import pytest
from trust_engine.domain.trust_events import (
    TrustEvent,
    apply_trust_event,
    days_late,
    trust_event_for,
    trust_score_change,
)


def test_days_late():
    due = date(2026, 3, 10)

    assert days_late(due, date(2026, 3, 15)) == 5
    assert days_late(due, date(2026, 3, 10)) == 0
    assert days_late(due, date(2026, 3, 1)) == -9


@pytest.mark.parametrize(
    "days, event",
    [
        (-8, TrustEvent.EARLY),
        (-7, TrustEvent.ON_TIME),
        (0, TrustEvent.ON_TIME),
        (1, TrustEvent.LATE_1_7),
        (7, TrustEvent.LATE_1_7),
        (8, TrustEvent.LATE_8_30),
        (30, TrustEvent.LATE_8_30),
        (31, TrustEvent.OVERDUE),
    ],
)
def test_trust_event_for(days, event):
    assert trust_event_for(days) == event


def test_trust_score_change():
    assert trust_score_change(TrustEvent.EARLY) == 8
    assert trust_score_change(TrustEvent.DISPUTED) == -15
    assert trust_score_change(TrustEvent.FIRST_LOAN) == 10


def test_apply_trust_event_clamps():
    """Test the score stays within 0-150"""
    assert apply_trust_event(100, TrustEvent.ON_TIME) == 105
    assert apply_trust_event(148, TrustEvent.EARLY) == 150
    assert apply_trust_event(10, TrustEvent.OVERDUE) == 0
