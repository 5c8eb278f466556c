"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

logger = logging.getLogger("credit_engine")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "credit-engine"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        json_default=str,
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_schedule(method: str, principal: Decimal, term_months: int, total_interest: Decimal) -> None:
    """Log a generated amortization table"""
    logger.info(
        "Schedule generated",
        extra={
            "step": "schedule_generated",
            "method": method,
            "principal": str(principal),
            "term_months": term_months,
            "total_interest": str(total_interest),
        },
    )


def log_payment(
    credit_id: str,
    amount: Decimal,
    installments_affected: int,
    surplus: Decimal,
) -> None:
    """Log where an applied payment went"""
    logger.info(
        "Payment applied",
        extra={
            "step": "payment_applied",
            "credit_id": credit_id,
            "amount": str(amount),
            "installments_affected": installments_affected,
            "surplus": str(surplus),
        },
    )


def log_write_off(credit_id: str, elapsed_days: int) -> None:
    """Log the irreversible write-off of a credit"""
    logger.warning(
        "Credit written off",
        extra={
            "step": "credit_written_off",
            "credit_id": credit_id,
            "elapsed_days": elapsed_days,
        },
    )


def log_guarantee_execution(
    credit_id: str,
    amount_liquidated: Decimal,
    remaining_balance: Decimal,
) -> None:
    """Log a guarantee liquidation"""
    logger.warning(
        "Guarantees executed",
        extra={
            "step": "guarantees_executed",
            "credit_id": credit_id,
            "amount_liquidated": str(amount_liquidated),
            "remaining_balance": str(remaining_balance),
        },
    )


def log_rejected(operation: str, error: Exception) -> None:
    """Log an engine call rejected with a typed error"""
    logger.warning(
        f"{operation} rejected: {error}",
        extra={
            "step": f"{operation}_rejected",
            "error": type(error).__name__,
        },
    )
