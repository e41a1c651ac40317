"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Callable, List
from fastapi.testclient import TestClient
from trust_engine.api.main import create_app
from trust_engine.domain.models import LoanRecord, UserActivity, UserRecord


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def sample_users() -> List[UserRecord]:
    """Five users across the trust tiers; 'e' never lends or borrows"""
    return [
        UserRecord(id="a", email="ada@example.com", trust_score=120, first_name="Ada", last_name="Lovelace"),
        UserRecord(id="b", email="bob@example.com", trust_score=100),
        UserRecord(id="c", email="cy@example.com", trust_score=90),
        UserRecord(id="d", email="dee@example.com", trust_score=60),
        UserRecord(id="e", email="eve@example.com", trust_score=30),
    ]


@pytest.fixture
def sample_loans() -> List[LoanRecord]:
    """
    Lending history forming triangle a-b-c with a tail c-d.

    a-b: two completed loans
    b-c: lent both ways, one completed, one disputed
    a-c: one active loan
    c-d: one completed loan
    """
    return [
        LoanRecord(lender_id="a", borrower_id="b", amount=100, status="COMPLETED"),
        LoanRecord(lender_id="a", borrower_id="b", amount=200, status="COMPLETED"),
        LoanRecord(lender_id="b", borrower_id="c", amount=50, status="COMPLETED"),
        LoanRecord(lender_id="c", borrower_id="b", amount=75, status="DISPUTED"),
        LoanRecord(lender_id="a", borrower_id="c", amount=300, status="ACTIVE"),
        LoanRecord(lender_id="c", borrower_id="d", amount=20, status="COMPLETED"),
    ]


@pytest.fixture
def make_activity() -> Callable[..., UserActivity]:
    """Factory for a clean, established user's activity with per-test overrides"""

    def _make(**overrides) -> UserActivity:
        values = dict(
            user_id="user_1",
            email="user1@example.com",
            name="User One",
            account_age=365,
            trust_score=100,
            loans_requested=5,
            loans_requested_last_24h=0,
            loans_requested_last_7d=1,
            average_loan_amount=200,
            max_loan_amount=300,
            total_disputes=0,
            total_confirmations=5,
            repayments_received=5,
            repayments_confirmed=5,
            loan_partners=(),
        )
        values.update(overrides)
        return UserActivity(**values)

    return _make


@pytest.fixture
def start_date() -> date:
    return date(2026, 1, 1)
