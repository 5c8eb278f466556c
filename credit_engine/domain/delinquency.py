"""Delinquency (mora) engine - penalty accrual and tier classification"""

from datetime import date
from decimal import Decimal
from typing import Dict, Sequence

from credit_engine.domain.exceptions import InvalidDelinquencyInput
from credit_engine.domain.models import (
    CreditDelinquency,
    DelinquencyAssessment,
    DelinquencyTier,
    Installment,
    InstallmentStatus,
    TierThresholds,
)
from credit_engine.utils.date_utils import days_between
from credit_engine.utils.money import ZERO, money_sum, to_decimal, to_money

DEFAULT_TIERS = TierThresholds()


def elapsed_days(due_date: date, as_of: date) -> int:
    """Whole days past due, floored at 0 for installments not yet due"""
    return max(days_between(due_date, as_of), 0)


def classify_tier(days: int, thresholds: TierThresholds = DEFAULT_TIERS) -> DelinquencyTier:
    """
    Map days past due to a delinquency tier.

    Tier bands (inclusive on both ends, contiguous):
    - 0:      current
    - 1-15:   mild
    - 16-30:  moderate
    - 31-60:  severe
    - 61-89:  persistent
    - 90+:    written_off
    """
    if days < 0:
        raise InvalidDelinquencyInput(f"Elapsed days cannot be negative, got {days}")

    if days == 0:
        return DelinquencyTier.CURRENT
    elif days <= thresholds.mild_max:
        return DelinquencyTier.MILD
    elif days <= thresholds.moderate_max:
        return DelinquencyTier.MODERATE
    elif days <= thresholds.severe_max:
        return DelinquencyTier.SEVERE
    elif days <= thresholds.persistent_max:
        return DelinquencyTier.PERSISTENT
    else:
        return DelinquencyTier.WRITTEN_OFF


def accrued_penalty(outstanding: Decimal, daily_rate_percent: Decimal, days: int) -> Decimal:
    """penalty = outstanding * (daily rate / 100) * days, rounded to cents"""
    if days <= 0 or outstanding <= 0:
        return ZERO
    return to_money(to_decimal(outstanding) * to_decimal(daily_rate_percent) / 100 * days)


def evaluate(
    due_date: date,
    outstanding_amount: Decimal,
    as_of: date,
    daily_penalty_rate_percent: Decimal,
    thresholds: TierThresholds = DEFAULT_TIERS,
) -> DelinquencyAssessment:
    """
    Compute penalty, days past due and tier for one installment.

    The penalty is recomputed from scratch on every call, never added to a
    previous value, so evaluating twice with the same inputs is a no-op.
    """
    outstanding = to_decimal(outstanding_amount)
    rate = to_decimal(daily_penalty_rate_percent)
    if outstanding < 0:
        raise InvalidDelinquencyInput(f"Outstanding amount cannot be negative, got {outstanding}")
    if rate < 0:
        raise InvalidDelinquencyInput(f"Daily penalty rate cannot be negative, got {rate}")

    if outstanding == 0:
        return DelinquencyAssessment(penalty_amount=ZERO, elapsed_days=0, tier=DelinquencyTier.CURRENT)

    days = elapsed_days(due_date, as_of)

    return DelinquencyAssessment(
        penalty_amount=accrued_penalty(outstanding, rate, days),
        elapsed_days=days,
        tier=classify_tier(days, thresholds),
    )


def outstanding_installment_amount(installment: Installment) -> Decimal:
    """Scheduled total not yet covered by principal/interest payments"""
    remaining = installment.scheduled_total - installment.paid_principal - installment.paid_interest
    return max(remaining, ZERO)


def evaluate_installment(
    installment: Installment,
    as_of: date,
    daily_penalty_rate_percent: Decimal,
    thresholds: TierThresholds = DEFAULT_TIERS,
) -> DelinquencyAssessment:
    """Evaluate an installment record; settled or cancelled ones are never delinquent"""
    if not installment.is_open:
        return DelinquencyAssessment(penalty_amount=ZERO, elapsed_days=0, tier=DelinquencyTier.CURRENT)

    return evaluate(
        installment.due_date,
        outstanding_installment_amount(installment),
        as_of,
        daily_penalty_rate_percent,
        thresholds,
    )


def reevaluate_installments(
    installments: Sequence[Installment],
    as_of: date,
    daily_penalty_rate_percent: Decimal,
    thresholds: TierThresholds = DEFAULT_TIERS,
) -> Dict[int, DelinquencyAssessment]:
    """
    Refresh penalty, days past due and tier on every open installment.

    Open installments that are past due become overdue. Returns the
    assessments keyed by sequence number.
    """
    assessments = {}
    for installment in installments:
        if not installment.is_open:
            continue

        assessment = evaluate_installment(installment, as_of, daily_penalty_rate_percent, thresholds)
        installment.penalty_amount = assessment.penalty_amount
        installment.elapsed_days = assessment.elapsed_days
        installment.tier = assessment.tier
        if assessment.elapsed_days > 0:
            installment.status = InstallmentStatus.OVERDUE

        assessments[installment.sequence_number] = assessment

    return assessments


def rollup(
    installments: Sequence[Installment],
    as_of: date,
    thresholds: TierThresholds = DEFAULT_TIERS,
) -> CreditDelinquency:
    """
    Credit-level delinquency signal.

    The oldest unpaid installment sets the credit's days past due: the
    oldest gap determines risk, not the most recent one.
    """
    unpaid = sorted(
        (inst for inst in installments if inst.is_open),
        key=lambda inst: (inst.due_date, inst.sequence_number),
    )
    total_penalty = money_sum(max(inst.penalty_amount - inst.paid_penalty, ZERO) for inst in unpaid)
    overdue = sum(1 for inst in unpaid if elapsed_days(inst.due_date, as_of) > 0)

    if not unpaid:
        return CreditDelinquency(
            elapsed_days=0,
            tier=DelinquencyTier.CURRENT,
            oldest_unpaid_sequence=None,
            total_penalty_due=ZERO,
            overdue_installments=0,
        )

    oldest = unpaid[0]
    days = elapsed_days(oldest.due_date, as_of)

    return CreditDelinquency(
        elapsed_days=days,
        tier=classify_tier(days, thresholds),
        oldest_unpaid_sequence=oldest.sequence_number,
        total_penalty_due=total_penalty,
        overdue_installments=overdue,
    )


def amount_due_with_penalty(
    installment_amount: Decimal, days: int, daily_penalty_rate_percent: Decimal
) -> tuple[Decimal, Decimal]:
    """
    Amount to settle an installment today.

    Returns: (penalty, installment amount + penalty)
    """
    amount = to_decimal(installment_amount)
    if amount <= 0:
        raise InvalidDelinquencyInput(f"Installment amount must be positive, got {amount}")

    penalty = accrued_penalty(amount, daily_penalty_rate_percent, days)
    return penalty, to_money(amount + penalty)
