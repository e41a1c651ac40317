"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from trust_engine.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_network_built(
    request_id: str,
    total_nodes: int,
    total_edges: int,
    duration_ms: float,
) -> None:
    """Log structured network analysis outcome"""
    logging.info(
        "Network analyzed",
        extra={
            "request_id": request_id,
            "step": "network_analyzed",
            "total_nodes": total_nodes,
            "total_edges": total_edges,
            "duration_ms": duration_ms,
        },
    )


def log_fraud_alert(
    request_id: str,
    user_id: str,
    alert_type: Optional[str],
    severity: Optional[str],
    suspicion_score: float,
) -> None:
    """Log structured fraud check outcome for review dashboards"""
    logging.info(
        "Fraud check completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "fraud_check_complete",
            "outcome": "flagged" if alert_type else "clear",
            "alert_type": alert_type,
            "severity": severity,
            "suspicion_score": suspicion_score,
        },
    )


def log_plans_generated(
    request_id: str,
    loan_amount: float,
    tier: str,
    frequency: str,
    recommended: str,
) -> None:
    """Log structured repayment plan generation"""
    logging.info(
        "Repayment plans generated",
        extra={
            "request_id": request_id,
            "step": "plans_generated",
            "loan_amount": loan_amount,
            "tier": tier,
            "frequency": frequency,
            "recommended_plan": recommended,
        },
    )
