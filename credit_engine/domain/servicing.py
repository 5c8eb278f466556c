"""Credit servicing - re-evaluation pass and payment posting"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from credit_engine.domain import credits, delinquency, guarantees as guarantee_rules, payments
from credit_engine.domain.exceptions import InvalidCreditTransition, InvalidPaymentAmount
from credit_engine.domain.models import (
    Credit,
    CreditStatus,
    DelinquencyTier,
    EnginePolicy,
    Guarantee,
    Guarantor,
    Installment,
    Payment,
    PaymentMethod,
    ReevaluationOutcome,
)
from credit_engine.utils.money import to_decimal


def reevaluate(
    credit: Credit,
    installments: Sequence[Installment],
    guarantees: Sequence[Guarantee],
    guarantors: Iterable[Guarantor],
    as_of: date,
    policy: EnginePolicy,
) -> ReevaluationOutcome:
    """
    Scheduled re-evaluation of one credit.

    Flow:
    1. Refresh penalty, days past due and tier on every open installment
    2. Roll up to the credit using the oldest unpaid installment
    3. Write the credit off when the rollup reaches the write-off tier
    4. Run the guarantee execution trigger (fires after the write-off)

    The caller persists all mutated records in a single transaction.
    """
    guarantee_rules.validate_guarantee_set(guarantees)

    if credit.status not in (CreditStatus.DISBURSED, CreditStatus.WRITTEN_OFF):
        raise InvalidCreditTransition(
            f"Credit {credit.credit_id} is {credit.status.value}; only disbursed credits are re-evaluated"
        )

    assessments = delinquency.reevaluate_installments(
        installments, as_of, policy.daily_penalty_rate_percent, policy.tiers
    )
    rollup = delinquency.rollup(installments, as_of, policy.tiers)

    written_off = False
    if rollup.tier == DelinquencyTier.WRITTEN_OFF:
        written_off = credits.write_off(credit)

    execution = guarantee_rules.execute_guarantees(
        credit,
        rollup,
        guarantees,
        guarantors,
        executed_on=as_of,
        thresholds=policy.tiers,
        grace_days=policy.execution_grace_days,
    )

    return ReevaluationOutcome(
        assessments=assessments,
        delinquency=rollup,
        written_off=written_off,
        execution=execution,
    )


def post_payment(
    credit: Credit,
    installments: Sequence[Installment],
    amount: Decimal,
    payment_date: date,
    policy: EnginePolicy,
    method: PaymentMethod = PaymentMethod.TRANSFER,
) -> Payment:
    """
    Apply an incoming payment to a disbursed credit.

    Penalties are refreshed as of the payment date first, so the member pays
    exactly what is owed that day; then the payment is distributed oldest
    installment first and the credit balance and completion are updated.
    """
    if credit.status != CreditStatus.DISBURSED:
        raise InvalidCreditTransition(
            f"Credit {credit.credit_id} is {credit.status.value} and does not accept payments"
        )
    if to_decimal(amount) <= 0:
        raise InvalidPaymentAmount(f"Payment amount must be positive, got {amount}")

    delinquency.reevaluate_installments(
        installments, payment_date, policy.daily_penalty_rate_percent, policy.tiers
    )
    payment = payments.apply_payment(installments, amount, payment_date, method)
    credits.record_payment(credit, payment, installments)

    return payment
