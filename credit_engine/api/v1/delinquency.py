"""Delinquency handler - penalty and tier for one installment"""

from typing import Optional

from credit_engine.api.dependencies import get_policy
from credit_engine.api.v1.schemas import DelinquencyRequest, DelinquencyResponse
from credit_engine.domain import delinquency
from credit_engine.domain.exceptions import DomainException
from credit_engine.domain.models import EnginePolicy
from credit_engine.infrastructure.observability.logging import log_rejected
from credit_engine.infrastructure.observability.metrics import record_delinquency, record_error


def evaluate_delinquency(request: DelinquencyRequest, policy: Optional[EnginePolicy] = None) -> DelinquencyResponse:
    policy = get_policy(policy)
    rate = (
        request.daily_penalty_rate_percent
        if request.daily_penalty_rate_percent is not None
        else policy.daily_penalty_rate_percent
    )

    try:
        assessment = delinquency.evaluate(
            request.due_date,
            request.outstanding_amount,
            request.as_of_date,
            rate,
            policy.tiers,
        )
    except DomainException as e:
        record_error(e)
        log_rejected("delinquency", e)
        raise

    record_delinquency(assessment.tier)

    return DelinquencyResponse(
        penalty_amount=assessment.penalty_amount,
        elapsed_days=assessment.elapsed_days,
        tier=assessment.tier,
    )
