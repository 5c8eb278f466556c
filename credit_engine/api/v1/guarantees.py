"""Guarantee execution handler"""

from typing import Optional

from credit_engine.api.dependencies import get_policy
from credit_engine.api.v1.schemas import GuaranteeExecutionRequest, GuaranteeExecutionResponse
from credit_engine.domain import guarantees as guarantee_rules
from credit_engine.domain.exceptions import DomainException
from credit_engine.domain.models import EnginePolicy, Guarantee
from credit_engine.infrastructure.observability.logging import log_guarantee_execution, log_rejected
from credit_engine.infrastructure.observability.metrics import record_error, record_guarantee_execution


def execute_guarantees(
    request: GuaranteeExecutionRequest, policy: Optional[EnginePolicy] = None
) -> GuaranteeExecutionResponse:
    """
    Run the execution trigger over the guarantees of one credit.

    Guarantor savings are not part of the request; the caller applies the
    liquidated amounts to the guarantors' records.
    """
    policy = get_policy(policy)
    guarantees = [
        Guarantee(
            guarantee_id=item.id,
            credit_id=request.credit_id,
            guarantor_id="",
            frozen_amount=item.frozen_amount,
            state=item.state,
        )
        for item in request.guarantees
    ]

    try:
        execution = guarantee_rules.trigger(
            request.credit_outstanding_principal,
            request.credit_status,
            request.elapsed_days,
            guarantees,
            thresholds=policy.tiers,
            grace_days=policy.execution_grace_days,
        )
    except DomainException as e:
        record_error(e)
        log_rejected("guarantee_execution", e)
        raise

    record_guarantee_execution(execution.executed, execution.amount_liquidated)
    if execution.executed:
        log_guarantee_execution(request.credit_id, execution.amount_liquidated, execution.remaining_balance)

    return GuaranteeExecutionResponse(
        executed=execution.executed,
        amount_liquidated=execution.amount_liquidated,
        remaining_balance=execution.remaining_balance,
        updated_guarantee_states=execution.updated_states,
    )
