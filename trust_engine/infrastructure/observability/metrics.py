"""Prometheus metrics for monitoring fraud alert rates, plan generation, and network size"""

from typing import Optional

from prometheus_client import Counter, Histogram

# Fraud metrics
fraud_check_counter = Counter(
    "trust_engine_fraud_checks_total",
    "Total fraud checks run",
    ["outcome"],  # flagged | clear
)

fraud_alert_counter = Counter(
    "trust_engine_fraud_alerts_total",
    "Fraud alerts raised",
    ["severity", "alert_type"],
)

# Repayment plan metrics
plans_generated_counter = Counter(
    "trust_engine_plans_generated_total",
    "Repayment plan sets generated",
    ["frequency"],
)

# Network metrics
network_nodes_histogram = Histogram(
    "trust_engine_network_nodes",
    "Users per analyzed network snapshot",
    buckets=[10, 50, 100, 500, 1000, 5000],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_fraud_check(severity: Optional[str], alert_type: Optional[str]) -> None:
    """Record check outcome; severity/alert_type are None when no alert was raised"""
    if severity is None:
        fraud_check_counter.labels(outcome="clear").inc()
        return

    fraud_check_counter.labels(outcome="flagged").inc()
    fraud_alert_counter.labels(severity=severity, alert_type=alert_type).inc()
