"""Integration tests for API endpoints"""

from dataclasses import asdict

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def snapshot(sample_users, sample_loans) -> dict:
    """Network snapshot request body built from the sample users and loans"""
    return {
        "users": [asdict(user) for user in sample_users],
        "loans": [asdict(loan) for loan in sample_loans],
    }


@pytest.fixture
def activity_body(make_activity):
    def _body(**overrides) -> dict:
        data = asdict(make_activity(**overrides))
        data["loan_partners"] = list(data["loan_partners"])
        return data

    return _body


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "trust-engine"}


def test_metrics_endpoint(client: TestClient, activity_body):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/fraud/check", json={"activity": activity_body()})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "trust_engine_fraud_checks" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    assert client.get("/health").headers["X-Request-ID"]


def test_network_analyze(client: TestClient, snapshot: dict):
    """Test POST /v1/network/analyze"""
    response = client.post("/v1/network/analyze", json=snapshot)

    assert response.status_code == 200
    data = response.json()
    assert len(data["nodes"]) == 5
    assert len(data["edges"]) == 4
    assert data["metrics"]["total_nodes"] == 5
    assert data["metrics"]["trust_hubs"] == ["b", "c", "a", "d", "e"]

    bc = next(e for e in data["edges"] if {e["source"], e["target"]} == {"b", "c"})
    assert bc["status"] == "disputed"
    assert bc["bidirectional"] is True


def test_network_analyze_empty_snapshot(client: TestClient):
    response = client.post("/v1/network/analyze", json={"users": []})

    assert response.status_code == 200
    assert response.json()["metrics"]["average_degree"] == 0


def test_network_connection(client: TestClient, snapshot: dict):
    """Test POST /v1/network/connection between connected users"""
    response = client.post(
        "/v1/network/connection", json={**snapshot, "source_id": "a", "target_id": "d"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["path"] == {"path": ["a", "c", "d"], "distance": 2, "trust_score": 12}
    assert data["trust_distance"] == pytest.approx(200 / 12)
    assert data["mutual_connections"] == ["c"]


def test_network_connection_unreachable(client: TestClient, snapshot: dict):
    """Test an isolated target yields null path and distance"""
    response = client.post(
        "/v1/network/connection", json={**snapshot, "source_id": "a", "target_id": "e"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["path"] is None
    assert data["trust_distance"] is None
    assert data["mutual_connections"] == []


def test_network_user_position(client: TestClient, snapshot: dict):
    """Test POST /v1/network/users/{user_id}"""
    response = client.post("/v1/network/users/c", json=snapshot)

    assert response.status_code == 200
    data = response.json()
    assert data["node"]["loans_given"] == 2
    assert data["centrality"] == 0.75
    assert data["clustering_coefficient"] == pytest.approx(1 / 3)
    assert sorted(data["neighbors"]) == ["a", "b", "d"]


def test_network_user_unknown(client: TestClient, snapshot: dict):
    response = client.post("/v1/network/users/ghost", json=snapshot)

    assert response.status_code == 404
    assert "ghost" in response.json()["detail"]


def test_fraud_check_clean(client: TestClient, activity_body):
    """Test POST /v1/fraud/check with nothing suspicious"""
    response = client.post(
        "/v1/fraud/check", json={"activity": activity_body(), "requested_amount": 250}
    )

    assert response.status_code == 200
    assert response.json() == {"alert": None}


def test_fraud_check_velocity(client: TestClient, activity_body):
    """Test POST /v1/fraud/check flags rapid requests"""
    response = client.post(
        "/v1/fraud/check",
        json={"activity": activity_body(loans_requested_last_24h=5, loans_requested_last_7d=5)},
    )

    assert response.status_code == 200
    alert = response.json()["alert"]
    assert alert["alert_type"] == "velocity_abuse"
    assert alert["alert_label"] == "Velocity Abuse"
    assert alert["severity"] == "medium"
    assert alert["suspicion_score"] == 40
    assert alert["details"] == {
        "alert_type": "velocity_abuse",
        "requests_last_24h": 5,
        "requests_last_7d": 5,
    }
    assert alert["action_taken"] is None


def test_fraud_check_defaults_max_allowed_to_tier_limit(client: TestClient, activity_body):
    """Test a new Silver account asking for 450 of its 500 limit"""
    body = activity_body(account_age=2, trust_score=60, loans_requested=0, average_loan_amount=0, max_loan_amount=0)
    response = client.post("/v1/fraud/check", json={"activity": body, "requested_amount": 450})

    alert = response.json()["alert"]
    assert alert["alert_type"] == "new_account_abuse"
    assert alert["suspicion_score"] == 50
    assert alert["details"]["max_allowed_amount"] == 500


def test_fraud_check_circular(client: TestClient, activity_body):
    """Test the circular-lending check runs when all activities are supplied"""
    activities = [
        activity_body(user_id="u1", loan_partners=["u2", "u3"]),
        activity_body(user_id="u2", loan_partners=["u1", "u3"]),
        activity_body(user_id="u3", loan_partners=["u1", "u2"]),
    ]
    response = client.post(
        "/v1/fraud/check", json={"activity": activities[0], "activities": activities}
    )

    alert = response.json()["alert"]
    assert alert["alert_type"] == "circular_lending"
    assert sorted(alert["details"]["triangle_partners"]) == ["u2", "u3"]


def test_fraud_scan_with_network(client: TestClient, snapshot: dict, activity_body):
    """Test POST /v1/fraud/scan reads triangles from the snapshot"""
    response = client.post(
        "/v1/fraud/scan",
        json={
            "activities": [activity_body(user_id=uid) for uid in ("a", "b", "c", "d", "e")],
            "network": snapshot,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["scanned"] == 5
    assert sorted(alert["user_id"] for alert in data["alerts"]) == ["a", "b", "c"]


def test_fraud_check_validation(client: TestClient, activity_body):
    """Test negative counters are rejected with 422"""
    response = client.post(
        "/v1/fraud/check", json={"activity": activity_body(loans_requested_last_24h=-1)}
    )
    assert response.status_code == 422


def test_plans_endpoint(client: TestClient):
    """Test POST /v1/plans"""
    response = client.post("/v1/plans", json={"loan_amount": 1000, "trust_score": 90})

    assert response.status_code == 200
    data = response.json()
    assert [plan["type"] for plan in data["plans"]] == ["aggressive", "balanced", "conservative"]
    assert [plan["total_payments"] for plan in data["plans"]] == [4, 6, 9]
    assert data["plans"][1]["payment_amount"] == 169.11
    assert data["recommended_plan"] == "balanced"
    assert data["tier"] == {
        "name": "Gold",
        "annual_rate": 0.05,
        "max_loan_amount": 2000,
        "max_active_loans": 5,
    }


def test_plans_endpoint_weekly(client: TestClient):
    response = client.post(
        "/v1/plans",
        json={"loan_amount": 300, "trust_score": 120, "preferred_frequency": "weekly"},
    )

    data = response.json()
    assert {plan["frequency"] for plan in data["plans"]} == {"weekly"}
    assert data["plans"][1]["total_payments"] == 12
    assert data["recommended_plan"] == "aggressive"


@pytest.mark.parametrize(
    "body",
    [
        {"loan_amount": 0, "trust_score": 90},
        {"loan_amount": 100, "trust_score": 151},
        {"loan_amount": 100, "trust_score": 90, "preferred_frequency": "daily"},
    ],
)
def test_plans_endpoint_validation(client: TestClient, body: dict):
    assert client.post("/v1/plans", json=body).status_code == 422


def test_repayment_outcome(client: TestClient):
    """Test POST /v1/trust/repayment-outcome for a late repayment"""
    response = client.post(
        "/v1/trust/repayment-outcome",
        json={"trust_score": 82, "due_date": "2026-03-01", "completed_date": "2026-03-05"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["event"] == "LATE_1_7"
    assert data["days_late"] == 4
    assert data["change"] == -5
    assert data["new_score"] == 77
    assert data["tier"]["name"] == "Silver"


def test_metrics_label_by_route_template(client: TestClient, snapshot: dict):
    """Test latency is labelled by route template, and unknown paths share one label"""
    client.post("/v1/network/users/ghost", json=snapshot)
    assert client.get("/no-such-route-xyz").status_code == 404

    text = client.get("/metrics").text
    assert 'endpoint="/v1/network/users/{user_id}"' in text
    assert 'endpoint="unmatched"' in text
    assert "no-such-route-xyz" not in text
    assert "/v1/network/users/ghost" not in text
