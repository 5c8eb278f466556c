"""Servicing handlers - scheduled re-evaluation and payment posting for one credit"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from credit_engine.api.dependencies import get_policy
from credit_engine.domain import servicing
from credit_engine.domain.exceptions import DomainException
from credit_engine.domain.models import (
    Credit,
    EnginePolicy,
    Guarantee,
    Guarantor,
    Installment,
    Payment,
    PaymentMethod,
    ReevaluationOutcome,
)
from credit_engine.infrastructure.observability.logging import (
    log_guarantee_execution,
    log_payment,
    log_rejected,
    log_write_off,
)
from credit_engine.infrastructure.observability.metrics import (
    record_delinquency,
    record_error,
    record_guarantee_execution,
    record_payment,
    write_off_counter,
)


def reevaluate_credit(
    credit: Credit,
    installments: Sequence[Installment],
    guarantees: Sequence[Guarantee],
    guarantors: Iterable[Guarantor],
    as_of: date,
    policy: Optional[EnginePolicy] = None,
) -> ReevaluationOutcome:
    """
    Re-evaluate a credit and report what changed.

    Flow:
    1. Refresh every open installment and roll up the credit tier
    2. Write off the credit when the rollup reaches the write-off tier
    3. Execute guarantees once the grace period after the write-off passed
    4. Record metrics and logs for each transition
    """
    policy = get_policy(policy)

    try:
        outcome = servicing.reevaluate(credit, installments, guarantees, guarantors, as_of, policy)
    except DomainException as e:
        record_error(e)
        log_rejected("reevaluation", e)
        raise

    record_delinquency(outcome.delinquency.tier)

    if outcome.written_off:
        write_off_counter.inc()
        log_write_off(credit.credit_id, outcome.delinquency.elapsed_days)

    if outcome.execution is not None and outcome.execution.executed:
        record_guarantee_execution(True, outcome.execution.amount_liquidated)
        log_guarantee_execution(
            credit.credit_id,
            outcome.execution.amount_liquidated,
            outcome.execution.remaining_balance,
        )

    return outcome


def post_credit_payment(
    credit: Credit,
    installments: Sequence[Installment],
    amount: Decimal,
    payment_date: date,
    method: PaymentMethod = PaymentMethod.TRANSFER,
    policy: Optional[EnginePolicy] = None,
) -> Payment:
    """Apply a payment to a disbursed credit, oldest installment first"""
    policy = get_policy(policy)

    try:
        payment = servicing.post_payment(credit, installments, amount, payment_date, policy, method)
    except DomainException as e:
        record_error(e)
        log_rejected("payment", e)
        raise

    record_payment(payment.amount, payment.surplus, credit.outstanding_principal)
    log_payment(credit.credit_id, payment.amount, payment.installments_affected, payment.surplus)

    return payment
