"""Credit lifecycle - origination, disbursement, settlement, write-off, refinancing, condonation"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from credit_engine.domain.amortization import generate_schedule, validate_terms
from credit_engine.domain.exceptions import ActiveDelinquency, CreditLimitExceeded, InvalidCreditTransition
from credit_engine.domain.models import (
    AmortizationMethod,
    BorrowerStanding,
    Credit,
    CreditStatus,
    Installment,
    InstallmentStatus,
    Payment,
    Schedule,
)
from credit_engine.utils.money import ZERO, to_decimal, to_money

ALLOWED_TRANSITIONS = {
    CreditStatus.REQUESTED: {CreditStatus.APPROVED, CreditStatus.REJECTED},
    CreditStatus.APPROVED: {CreditStatus.DISBURSED, CreditStatus.REJECTED},
    CreditStatus.DISBURSED: {CreditStatus.COMPLETED, CreditStatus.WRITTEN_OFF},
    CreditStatus.REJECTED: set(),
    CreditStatus.COMPLETED: set(),
    CreditStatus.WRITTEN_OFF: set(),
}

# Hard cap per membership stage; unknown stages get the entry cap
STAGE_CREDIT_CAPS = {1: Decimal("500"), 2: Decimal("2000"), 3: Decimal("10000")}
# Stage 1 multiplier grows with each credit taken in the stage, capped at 2.0
STAGE_ONE_MULTIPLIERS = (Decimal("1.25"), Decimal("1.5"), Decimal("1.75"), Decimal("2.0"))
STAGE_MULTIPLIERS = {2: Decimal("2.0"), 3: Decimal("3.0")}


def _transition(credit: Credit, target: CreditStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[credit.status]:
        raise InvalidCreditTransition(
            f"Credit {credit.credit_id} cannot move from {credit.status.value} to {target.value}"
        )
    credit.status = target


def savings_multiplier(stage: int, credits_in_stage: int = 0) -> Decimal:
    if stage == 1:
        return STAGE_ONE_MULTIPLIERS[min(credits_in_stage, len(STAGE_ONE_MULTIPLIERS) - 1)]
    return STAGE_MULTIPLIERS.get(stage, Decimal("1.0"))


def credit_limit(standing: BorrowerStanding) -> Decimal:
    """
    Maximum total a borrower may hold across active credits.

    Formula: min(stage cap, (savings + frozen savings) * stage multiplier)

    Example: stage 1, first credit, 300 saved -> min(500, 375) = 375
    """
    savings = to_decimal(standing.savings_balance) + to_decimal(standing.frozen_savings)
    cap = STAGE_CREDIT_CAPS.get(standing.stage, STAGE_CREDIT_CAPS[1])
    return to_money(min(cap, savings * savings_multiplier(standing.stage, standing.credits_in_stage)))


def check_origination(standing: BorrowerStanding, total_amount: Decimal) -> Decimal:
    """
    Reject a request the borrower is not allowed to take.

    A borrower with an active delinquency cannot borrow at all; otherwise
    the new total plus the active credits must fit within the credit limit.

    Returns:
        The limit still available after the new credit
    """
    if standing.active_delinquency_days > 0:
        raise ActiveDelinquency(
            f"Borrower has an active delinquency of {standing.active_delinquency_days} days"
        )

    limit = credit_limit(standing)
    available = limit - to_decimal(standing.active_credit_total)
    if total_amount > available:
        raise CreditLimitExceeded(
            f"Requested total {total_amount} exceeds available limit {max(available, ZERO)} (limit {limit})"
        )
    return available - total_amount


def open_credit(
    credit_id: str,
    borrower_id: str,
    principal: Decimal,
    term_months: int,
    method: AmortizationMethod | str,
    annual_rate_percent: Decimal,
    standing: BorrowerStanding,
    insurance_premium_percent: Decimal = Decimal("1.0"),
) -> Credit:
    """
    Register a credit request.

    The one-time insurance premium is financed together with the principal:
    total = principal + principal * premium%. The total is checked against
    the borrower's standing before the credit is created.
    """
    method = validate_terms(principal, annual_rate_percent, term_months, method)
    principal = to_money(principal)
    premium = to_money(principal * to_decimal(insurance_premium_percent) / 100)
    check_origination(standing, principal + premium)

    return Credit(
        credit_id=credit_id,
        borrower_id=borrower_id,
        principal_requested=principal,
        insurance_premium=premium,
        total_amount=principal + premium,
        term_months=term_months,
        method=method,
        annual_rate_percent=to_decimal(annual_rate_percent),
    )


def approve(credit: Credit) -> None:
    _transition(credit, CreditStatus.APPROVED)


def reject(credit: Credit) -> None:
    _transition(credit, CreditStatus.REJECTED)


def installments_from_schedule(
    credit_id: str, schedule: Schedule, first_sequence: int = 1
) -> List[Installment]:
    """Turn schedule rows into installment records"""
    offset = first_sequence - 1
    return [
        Installment(
            credit_id=credit_id,
            sequence_number=row.sequence_number + offset,
            due_date=row.due_date,
            scheduled_principal=row.scheduled_principal,
            scheduled_interest=row.scheduled_interest,
            scheduled_total=row.scheduled_total,
        )
        for row in schedule.installments
    ]


def disburse(credit: Credit, disbursement_date: date) -> List[Installment]:
    """
    Release the funds and create the full installment schedule in one batch.

    The schedule amortizes the total amount (principal + insurance premium).
    """
    if credit.status != CreditStatus.APPROVED:
        raise InvalidCreditTransition(
            f"Credit {credit.credit_id} must be approved before disbursement (is {credit.status.value})"
        )

    schedule = generate_schedule(
        credit.total_amount,
        credit.annual_rate_percent,
        credit.term_months,
        credit.method,
        disbursement_date,
    )

    _transition(credit, CreditStatus.DISBURSED)
    credit.disbursement_date = disbursement_date
    credit.outstanding_principal = schedule.summary.total_principal

    return installments_from_schedule(credit.credit_id, schedule)


def write_off(credit: Credit) -> bool:
    """
    Move a disbursed credit to written_off (terminal).

    Returns False when the credit was already written off.
    """
    if credit.status == CreditStatus.WRITTEN_OFF:
        return False
    _transition(credit, CreditStatus.WRITTEN_OFF)
    return True


def is_settled(installments: Sequence[Installment]) -> bool:
    live = [inst for inst in installments if inst.status != InstallmentStatus.CANCELLED]
    return bool(live) and all(inst.status == InstallmentStatus.PAID for inst in live)


def record_payment(credit: Credit, payment: Payment, installments: Sequence[Installment]) -> bool:
    """
    Reflect an applied payment on the credit.

    Decrements the outstanding principal and completes the credit once every
    installment is paid. Returns True when the credit was completed.
    """
    credit.outstanding_principal = max(credit.outstanding_principal - payment.applied_principal, ZERO)

    if credit.status == CreditStatus.DISBURSED and is_settled(installments):
        _transition(credit, CreditStatus.COMPLETED)
        credit.outstanding_principal = ZERO
        return True

    return False


def refinance(
    credit: Credit,
    installments: Sequence[Installment],
    new_term_months: int,
    as_of: date,
    new_annual_rate_percent: Optional[Decimal] = None,
    relief: Decimal = ZERO,
) -> List[Installment]:
    """
    Replace the open part of a disbursed credit with a new schedule.

    Open installments are cancelled; the outstanding principal, minus any
    debt relief, is re-amortized from as_of. New sequence numbers continue
    after the highest existing one so they stay unique within the credit.
    """
    if credit.status != CreditStatus.DISBURSED:
        raise InvalidCreditTransition(
            f"Only disbursed credits can be refinanced (credit {credit.credit_id} is {credit.status.value})"
        )

    relief = to_money(relief)
    if relief < 0:
        raise InvalidCreditTransition("Debt relief cannot be negative")

    new_balance = credit.outstanding_principal - relief
    if new_balance <= 0:
        raise InvalidCreditTransition("Debt relief cannot exceed the outstanding principal")

    rate = credit.annual_rate_percent if new_annual_rate_percent is None else new_annual_rate_percent
    schedule = generate_schedule(new_balance, rate, new_term_months, credit.method, as_of)

    for installment in installments:
        if installment.is_open:
            installment.status = InstallmentStatus.CANCELLED

    last_sequence = max((inst.sequence_number for inst in installments), default=0)

    credit.outstanding_principal = new_balance
    credit.term_months = new_term_months
    credit.annual_rate_percent = to_decimal(rate)

    return installments_from_schedule(credit.credit_id, schedule, first_sequence=last_sequence + 1)


def condone(credit: Credit, amount: Decimal) -> Decimal:
    """
    Forgive part or all of a credit's outstanding principal.

    Applies to disbursed and written-off credits; the schedule is left as is.
    Returns the new outstanding principal.
    """
    if credit.status not in (CreditStatus.DISBURSED, CreditStatus.WRITTEN_OFF):
        raise InvalidCreditTransition(
            f"Only disbursed or written-off credits can be condoned (credit {credit.credit_id} is {credit.status.value})"
        )

    amount = to_money(amount)
    if amount <= 0:
        raise InvalidCreditTransition(f"Condoned amount must be positive, got {amount}")
    if amount > credit.outstanding_principal:
        raise InvalidCreditTransition(
            f"Condoned amount {amount} exceeds the outstanding principal {credit.outstanding_principal}"
        )

    credit.outstanding_principal -= amount
    return credit.outstanding_principal
