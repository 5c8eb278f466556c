"""Engine entrypoint - logging setup, policy and metrics exposition"""

from typing import Optional

from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from credit_engine.config import settings
from credit_engine.domain.models import EnginePolicy
from credit_engine.infrastructure.observability.logging import logger, setup_logging


def bootstrap(log_level: Optional[str] = None) -> EnginePolicy:
    """Configure structured logging and resolve the policy the handlers run with"""
    setup_logging(log_level or settings.log_level)
    policy = settings.policy()

    logger.info(
        "Credit engine ready",
        extra={
            "step": "engine_ready",
            "service_name": settings.service_name,
            "daily_penalty_rate_percent": str(policy.daily_penalty_rate_percent),
            "write_off_days": policy.tiers.write_off_days,
        },
    )
    return policy


def health() -> dict:
    return {"status": "ok", "service": settings.service_name}


def metrics() -> tuple[bytes, str]:
    """Prometheus exposition payload and its content type"""
    return generate_latest(), CONTENT_TYPE_LATEST
