"""Amortization handlers - schedule generation and method comparison"""

from typing import Optional

from credit_engine.api.dependencies import get_policy
from credit_engine.api.v1.schemas import (
    ComparisonRequest,
    ComparisonResponse,
    CreditTermsRequest,
    ScheduleResponse,
)
from credit_engine.domain import amortization
from credit_engine.domain.exceptions import DomainException
from credit_engine.domain.models import EnginePolicy
from credit_engine.infrastructure.observability.logging import log_rejected, log_schedule
from credit_engine.infrastructure.observability.metrics import record_error, schedule_counter


def generate_schedule(request: CreditTermsRequest) -> ScheduleResponse:
    """Build the amortization table for the requested credit terms"""
    try:
        schedule = amortization.generate_schedule(
            request.principal,
            request.annual_rate_percent,
            request.term_months,
            request.method,
            request.disbursement_date,
        )
    except DomainException as e:
        record_error(e)
        log_rejected("schedule", e)
        raise

    schedule_counter.labels(method=schedule.method.value).inc()
    log_schedule(schedule.method.value, schedule.principal, schedule.term_months, schedule.summary.total_interest)

    return ScheduleResponse.from_domain(schedule)


def compare_methods(request: ComparisonRequest, policy: Optional[EnginePolicy] = None) -> ComparisonResponse:
    """
    Compare fixed-installment and fixed-principal over the same terms.

    The recommendation threshold falls back to the configured materiality
    when the request does not carry one.
    """
    policy = get_policy(policy)
    materiality = request.materiality if request.materiality is not None else policy.comparison_materiality

    try:
        comparison = amortization.compare_methods(
            request.principal,
            request.annual_rate_percent,
            request.term_months,
            request.disbursement_date,
            materiality=materiality,
        )
    except DomainException as e:
        record_error(e)
        log_rejected("comparison", e)
        raise

    for schedule in (comparison.fixed_installment, comparison.fixed_principal):
        schedule_counter.labels(method=schedule.method.value).inc()

    return ComparisonResponse.from_domain(comparison)
