"""Cross-guarantees between members - freezing, release and execution"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from credit_engine.domain.exceptions import (
    GuaranteeCountViolation,
    GuaranteeStateError,
    GuarantorNotEligible,
    InsufficientSavings,
)
from credit_engine.domain.models import (
    Credit,
    CreditDelinquency,
    CreditStatus,
    EnginePolicy,
    Guarantee,
    GuaranteeExecution,
    GuaranteeState,
    Guarantor,
    Installment,
    InstallmentStatus,
    TierThresholds,
)
from credit_engine.utils.money import ZERO, money_sum, to_decimal, to_money

GUARANTORS_PER_CREDIT = 2


def validate_guarantee_set(guarantees: Sequence[Guarantee]) -> None:
    """A credit holds either zero or exactly two active guarantees, never one"""
    active = sum(1 for g in guarantees if g.state == GuaranteeState.ACTIVE)
    if active not in (0, GUARANTORS_PER_CREDIT):
        raise GuaranteeCountViolation(
            f"Credit must have 0 or {GUARANTORS_PER_CREDIT} active guarantees, found {active}"
        )


def freeze_shares(credit_total: Decimal, freeze_percent: Decimal) -> List[Decimal]:
    """
    Split the frozen collateral evenly between the two guarantors.

    Total frozen = credit total * freeze% (rounded to cents); the second
    share absorbs the odd cent so the shares add up exactly.

    Example: 5000 at 10% -> [250.00, 250.00]
    """
    total = to_money(to_decimal(credit_total) * to_decimal(freeze_percent) / 100)
    first = to_money(total / GUARANTORS_PER_CREDIT)
    return [first, total - first]


def _index(guarantors: Iterable[Guarantor]) -> Dict[str, Guarantor]:
    return {g.guarantor_id: g for g in guarantors}


def check_eligibility(guarantor: Guarantor, amount: Decimal, policy: EnginePolicy) -> None:
    """Raise if the guarantor cannot back a credit with the given frozen share"""
    if not guarantor.is_active:
        raise GuarantorNotEligible(f"Guarantor {guarantor.guarantor_id} is not an active member")

    if guarantor.stage < policy.guarantor_min_stage:
        raise GuarantorNotEligible(
            f"Guarantor {guarantor.guarantor_id} is at stage {guarantor.stage}, "
            f"stage {policy.guarantor_min_stage} required"
        )

    if guarantor.active_guarantees >= policy.max_guarantees_per_guarantor:
        raise GuaranteeCountViolation(
            f"Guarantor {guarantor.guarantor_id} already backs {guarantor.active_guarantees} credits "
            f"(maximum {policy.max_guarantees_per_guarantor})"
        )

    if guarantor.available_savings < amount:
        raise InsufficientSavings(
            f"Guarantor {guarantor.guarantor_id} has {guarantor.available_savings} available, "
            f"{amount} required"
        )


def constitute(
    credit: Credit,
    guarantors: Sequence[Guarantor],
    policy: EnginePolicy,
) -> List[Guarantee]:
    """
    Create the two guarantees backing a credit and freeze the guarantors' savings.

    Both guarantors are checked before anything is frozen.
    """
    if credit.status not in (CreditStatus.REQUESTED, CreditStatus.APPROVED):
        raise GuaranteeStateError(f"Cannot add guarantees to a {credit.status.value} credit")

    if len(guarantors) != GUARANTORS_PER_CREDIT:
        raise GuaranteeCountViolation(
            f"Exactly {GUARANTORS_PER_CREDIT} guarantors are required, got {len(guarantors)}"
        )
    if guarantors[0].guarantor_id == guarantors[1].guarantor_id:
        raise GuaranteeCountViolation("Guarantors must be two different members")
    if credit.borrower_id in (g.guarantor_id for g in guarantors):
        raise GuarantorNotEligible("Borrower cannot guarantee their own credit")

    shares = freeze_shares(credit.total_amount, policy.guarantee_freeze_percent)
    for guarantor, share in zip(guarantors, shares):
        check_eligibility(guarantor, share, policy)

    guarantees = []
    for guarantor, share in zip(guarantors, shares):
        guarantor.frozen_savings += share
        guarantor.active_guarantees += 1
        guarantees.append(
            Guarantee(
                guarantee_id=str(uuid.uuid4()),
                credit_id=credit.credit_id,
                guarantor_id=guarantor.guarantor_id,
                frozen_amount=share,
            )
        )

    return guarantees


def request_release(
    guarantees: Sequence[Guarantee],
    installments: Sequence[Installment],
    min_completed_percent: Decimal = Decimal("50"),
) -> None:
    """
    Move both active guarantees of a credit to in_release.

    Requirements:
    - At least min_completed_percent of the (non-cancelled) installments paid
    - No installment ever charged a penalty (excellent payment behaviour)
    """
    validate_guarantee_set(guarantees)
    active = [g for g in guarantees if g.state == GuaranteeState.ACTIVE]
    if not active:
        raise GuaranteeStateError("Credit has no active guarantees to release")

    live = [inst for inst in installments if inst.status != InstallmentStatus.CANCELLED]
    if not live:
        raise GuaranteeStateError("Credit has no installments")

    paid = sum(1 for inst in live if inst.status == InstallmentStatus.PAID)
    completed = Decimal(paid) * 100 / len(live)
    if completed < to_decimal(min_completed_percent):
        raise GuaranteeStateError(
            f"Credit must be at least {min_completed_percent}% repaid to release guarantees, "
            f"currently {completed:.1f}%"
        )

    if any(inst.penalty_amount > 0 for inst in live):
        raise GuaranteeStateError("Credit has late installments; release requires a clean payment record")

    for guarantee in active:
        guarantee.state = GuaranteeState.IN_RELEASE


def approve_release(guarantees: Sequence[Guarantee], guarantors: Iterable[Guarantor]) -> Decimal:
    """Release the frozen savings of guarantees awaiting release; returns the amount unfrozen"""
    pending = [g for g in guarantees if g.state == GuaranteeState.IN_RELEASE]
    if not pending:
        raise GuaranteeStateError("No guarantees are awaiting release")

    index = _index(guarantors)
    for guarantee in pending:
        guarantor = index.get(guarantee.guarantor_id)
        if guarantor is None:
            raise GuaranteeStateError(f"Guarantor {guarantee.guarantor_id} not provided")
        if guarantor.frozen_savings < guarantee.frozen_amount:
            raise InsufficientSavings(
                f"Guarantor {guarantor.guarantor_id} has only {guarantor.frozen_savings} frozen"
            )

    for guarantee in pending:
        guarantor = index[guarantee.guarantor_id]
        guarantor.frozen_savings -= guarantee.frozen_amount
        guarantor.active_guarantees = max(guarantor.active_guarantees - 1, 0)
        guarantee.state = GuaranteeState.RELEASED

    return money_sum(g.frozen_amount for g in pending)


def reject_release(guarantees: Sequence[Guarantee]) -> None:
    """Return guarantees awaiting release to active"""
    pending = [g for g in guarantees if g.state == GuaranteeState.IN_RELEASE]
    if not pending:
        raise GuaranteeStateError("No guarantees are awaiting release")

    for guarantee in pending:
        guarantee.state = GuaranteeState.ACTIVE


def is_execution_due(
    credit_status: CreditStatus,
    elapsed_days: int,
    thresholds: TierThresholds = TierThresholds(),
    grace_days: int = 1,
) -> bool:
    """
    Execution runs strictly after the write-off: the credit must already be
    written off and the oldest unpaid installment at least grace_days past
    the write-off threshold (day 91 by default).
    """
    return (
        CreditStatus(credit_status) == CreditStatus.WRITTEN_OFF
        and elapsed_days >= thresholds.write_off_days + grace_days
    )


def liquidate(
    outstanding_principal: Decimal,
    guarantees: Sequence[Guarantee],
    guarantors: Optional[Iterable[Guarantor]] = None,
    executed_on: Optional[date] = None,
) -> GuaranteeExecution:
    """
    Liquidate every active guarantee of a credit.

    Each active guarantee gives up its full frozen amount and becomes
    executed; its guarantor loses that amount from both frozen and total
    savings. Released or already executed guarantees are skipped, so a
    second run changes nothing and reports executed=False. All checks run
    before any record is touched: both guarantees execute or neither does.
    """
    validate_guarantee_set(guarantees)
    outstanding = to_decimal(outstanding_principal)
    active = [g for g in guarantees if g.state == GuaranteeState.ACTIVE]

    index = _index(guarantors) if guarantors is not None else None
    if index is not None:
        for guarantee in active:
            guarantor = index.get(guarantee.guarantor_id)
            if guarantor is None:
                raise GuaranteeStateError(f"Guarantor {guarantee.guarantor_id} not provided")
            if guarantor.frozen_savings < guarantee.frozen_amount:
                raise InsufficientSavings(
                    f"Guarantor {guarantor.guarantor_id} has only {guarantor.frozen_savings} frozen, "
                    f"{guarantee.frozen_amount} required"
                )

    for guarantee in active:
        guarantee.state = GuaranteeState.EXECUTED
        guarantee.executed_amount = guarantee.frozen_amount
        guarantee.executed_on = executed_on
        if index is not None:
            guarantor = index[guarantee.guarantor_id]
            guarantor.frozen_savings -= guarantee.frozen_amount
            guarantor.savings_balance -= guarantee.frozen_amount
            guarantor.active_guarantees = max(guarantor.active_guarantees - 1, 0)

    liquidated = money_sum(g.frozen_amount for g in active)

    return GuaranteeExecution(
        executed=bool(active),
        amount_liquidated=liquidated,
        remaining_balance=max(outstanding - liquidated, ZERO),
        updated_states={g.guarantee_id: g.state for g in guarantees},
    )


def trigger(
    outstanding_principal: Decimal,
    credit_status: CreditStatus,
    elapsed_days: int,
    guarantees: Sequence[Guarantee],
    guarantors: Optional[Iterable[Guarantor]] = None,
    executed_on: Optional[date] = None,
    thresholds: TierThresholds = TierThresholds(),
    grace_days: int = 1,
) -> GuaranteeExecution:
    """
    Guarantee execution trigger.

    Liquidates the active guarantees once the credit is written off and the
    grace period after the write-off has passed; otherwise nothing changes.

    Example:
        written off, 91 days, guarantees 250 + 250, outstanding 4500
        -> executed, liquidated 500, remaining 4000
    """
    validate_guarantee_set(guarantees)

    if not is_execution_due(credit_status, elapsed_days, thresholds, grace_days):
        return GuaranteeExecution(
            executed=False,
            amount_liquidated=ZERO,
            remaining_balance=max(to_decimal(outstanding_principal), ZERO),
            updated_states={g.guarantee_id: g.state for g in guarantees},
        )

    return liquidate(outstanding_principal, guarantees, guarantors, executed_on)


def execute_guarantees(
    credit: Credit,
    delinquency: CreditDelinquency,
    guarantees: Sequence[Guarantee],
    guarantors: Iterable[Guarantor],
    executed_on: Optional[date] = None,
    thresholds: TierThresholds = TierThresholds(),
    grace_days: int = 1,
) -> GuaranteeExecution:
    """Run the trigger for a credit using its delinquency rollup"""
    return trigger(
        credit.outstanding_principal,
        credit.status,
        delinquency.elapsed_days,
        guarantees,
        guarantors,
        executed_on,
        thresholds,
        grace_days,
    )
