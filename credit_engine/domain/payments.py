"""Payment distribution - penalty, then interest, then principal"""

from datetime import date
from decimal import Decimal
from typing import List, Sequence

from credit_engine.domain.exceptions import InvalidInstallmentState, InvalidPaymentAmount
from credit_engine.domain.models import (
    Installment,
    InstallmentAllocation,
    InstallmentStatus,
    Payment,
    PaymentDistribution,
    PaymentMethod,
)
from credit_engine.utils.money import ZERO, to_decimal


def distribute(
    payment_amount: Decimal,
    penalty_due: Decimal,
    interest_due: Decimal,
    principal_due: Decimal,
) -> PaymentDistribution:
    """
    Allocate a payment across one installment's dues in strict priority.

    Order: penalty -> interest -> principal -> surplus (prepayment).
    Only min() and subtraction are used, so the four parts always add up
    to the payment exactly.

    Example:
        payment 200 over (penalty 50, interest 75, principal 175)
        -> applied (50, 75, 75), surplus 0
    """
    payment = to_decimal(payment_amount)
    if payment < 0:
        raise InvalidPaymentAmount(f"Payment amount cannot be negative, got {payment}")

    dues = [to_decimal(penalty_due), to_decimal(interest_due), to_decimal(principal_due)]
    if any(due < 0 for due in dues):
        raise InvalidInstallmentState(f"Amounts due cannot be negative: {dues}")
    penalty, interest, principal = dues

    remaining = payment

    applied_penalty = min(remaining, penalty)
    remaining -= applied_penalty

    applied_interest = min(remaining, interest)
    remaining -= applied_interest

    applied_principal = min(remaining, principal)
    remaining -= applied_principal

    return PaymentDistribution(
        applied_penalty=applied_penalty,
        applied_interest=applied_interest,
        applied_principal=applied_principal,
        surplus=remaining,
    )


def amounts_due(installment: Installment) -> tuple[Decimal, Decimal, Decimal]:
    """
    What is still owed on an installment.

    Returns: (penalty_due, interest_due, principal_due)
    """
    penalty_due = installment.penalty_amount - installment.paid_penalty
    interest_due = installment.scheduled_interest - installment.paid_interest
    principal_due = installment.scheduled_principal - installment.paid_principal

    if min(interest_due, principal_due) < 0:
        raise InvalidInstallmentState(
            f"Installment {installment.sequence_number} is overpaid: "
            f"interest due {interest_due}, principal due {principal_due}"
        )

    # A refreshed (lower) penalty never turns into a credit for the member
    return max(penalty_due, ZERO), interest_due, principal_due


def apply_payment(
    installments: Sequence[Installment],
    amount: Decimal,
    payment_date: date,
    method: PaymentMethod = PaymentMethod.TRANSFER,
) -> Payment:
    """
    Apply a payment to a credit's open installments, oldest first.

    The distributor runs once per installment until the payment is used up.
    An installment whose principal due is fully covered becomes paid (its
    penalty and interest are necessarily covered first). Whatever is left
    after the last open installment is reported as surplus.

    Args:
        installments: All installments of one credit (mutated in place)
        amount: Payment received (> 0)
        payment_date: Date the payment was received
        method: How the payment was made

    Returns:
        Immutable Payment with the per-installment allocation
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise InvalidPaymentAmount(f"Payment amount must be positive, got {amount}")

    open_installments = sorted(
        (inst for inst in installments if inst.is_open),
        key=lambda inst: (inst.due_date, inst.sequence_number),
    )

    remaining = amount
    allocations: List[InstallmentAllocation] = []

    for installment in open_installments:
        if remaining <= 0:
            break

        penalty_due, interest_due, principal_due = amounts_due(installment)
        result = distribute(remaining, penalty_due, interest_due, principal_due)

        installment.paid_penalty += result.applied_penalty
        installment.paid_interest += result.applied_interest
        installment.paid_principal += result.applied_principal

        settled = (
            result.applied_principal == principal_due
            and result.applied_interest == interest_due
            and result.applied_penalty == penalty_due
        )
        if settled:
            installment.status = InstallmentStatus.PAID
            installment.paid_date = payment_date

        allocations.append(
            InstallmentAllocation(
                sequence_number=installment.sequence_number,
                applied_penalty=result.applied_penalty,
                applied_interest=result.applied_interest,
                applied_principal=result.applied_principal,
                settled=settled,
            )
        )
        remaining = result.surplus

    return Payment(
        amount=amount,
        payment_date=payment_date,
        method=PaymentMethod(method),
        allocations=allocations,
        surplus=remaining,
    )
