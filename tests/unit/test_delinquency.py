"""Unit tests for penalty accrual and delinquency tiers"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from credit_engine.domain.delinquency import (
    amount_due_with_penalty,
    classify_tier,
    evaluate,
    evaluate_installment,
    outstanding_installment_amount,
    reevaluate_installments,
    rollup,
)
from credit_engine.domain.exceptions import InvalidDelinquencyInput
from credit_engine.domain.models import DelinquencyTier, InstallmentStatus, TierThresholds


DUE = date(2024, 1, 1)
RATE = Decimal("1.0")


@pytest.mark.parametrize(
    "days, tier",
    [
        (0, DelinquencyTier.CURRENT),
        (1, DelinquencyTier.MILD),
        (15, DelinquencyTier.MILD),
        (16, DelinquencyTier.MODERATE),
        (30, DelinquencyTier.MODERATE),
        (31, DelinquencyTier.SEVERE),
        (60, DelinquencyTier.SEVERE),
        (61, DelinquencyTier.PERSISTENT),
        (89, DelinquencyTier.PERSISTENT),
        (90, DelinquencyTier.WRITTEN_OFF),
        (400, DelinquencyTier.WRITTEN_OFF),
    ],
)
def test_tier_boundaries(days, tier):
    """Tier bands are contiguous and inclusive on both ends"""
    assert classify_tier(days) == tier
    assert evaluate(DUE, Decimal("100"), DUE + timedelta(days=days), RATE).tier == tier


def test_classify_negative_days_rejected():
    with pytest.raises(InvalidDelinquencyInput):
        classify_tier(-1)


def test_custom_thresholds():
    """Tier bounds come from the policy"""
    thresholds = TierThresholds(mild_max=5, moderate_max=10, severe_max=20, persistent_max=29)

    assert classify_tier(6, thresholds) == DelinquencyTier.MODERATE
    assert classify_tier(29, thresholds) == DelinquencyTier.PERSISTENT
    assert classify_tier(30, thresholds) == DelinquencyTier.WRITTEN_OFF
    assert thresholds.write_off_days == 30


def test_penalty_accrues_daily():
    """10 days at 1% per day on 100 outstanding"""
    assessment = evaluate(DUE, Decimal("100"), date(2024, 1, 11), RATE)

    assert assessment.elapsed_days == 10
    assert assessment.penalty_amount == Decimal("10.00")
    assert assessment.tier == DelinquencyTier.MILD


def test_penalty_rounds_half_up():
    """91.68 * 1% * 34 days = 31.1712"""
    assessment = evaluate(date(2024, 2, 15), Decimal("91.68"), date(2024, 3, 20), RATE)

    assert assessment.elapsed_days == 34
    assert assessment.penalty_amount == Decimal("31.17")
    assert assessment.tier == DelinquencyTier.SEVERE


def test_not_yet_due_is_current():
    """Evaluating before the due date accrues nothing"""
    assessment = evaluate(DUE, Decimal("100"), date(2023, 12, 20), RATE)

    assert assessment.elapsed_days == 0
    assert assessment.penalty_amount == Decimal("0.00")
    assert assessment.tier == DelinquencyTier.CURRENT


def test_nothing_outstanding_is_current():
    """A fully covered installment is never delinquent"""
    assessment = evaluate(DUE, Decimal("0"), date(2024, 6, 1), RATE)

    assert assessment.elapsed_days == 0
    assert assessment.penalty_amount == Decimal("0.00")
    assert assessment.tier == DelinquencyTier.CURRENT


def test_evaluate_is_idempotent():
    """Same inputs, same result: the penalty is recomputed, never accumulated"""
    first = evaluate(DUE, Decimal("250"), date(2024, 2, 10), RATE)
    second = evaluate(DUE, Decimal("250"), date(2024, 2, 10), RATE)

    assert first == second


@pytest.mark.parametrize("outstanding, rate", [(Decimal("-1"), RATE), (Decimal("100"), Decimal("-0.5"))])
def test_negative_inputs_rejected(outstanding, rate):
    with pytest.raises(InvalidDelinquencyInput):
        evaluate(DUE, outstanding, date(2024, 2, 1), rate)


def test_outstanding_installment_amount(disbursed_credit):
    """Scheduled total minus what was paid toward principal and interest"""
    _, installments = disbursed_credit
    installment = installments[0]
    installment.paid_interest = Decimal("15.00")
    installment.paid_principal = Decimal("20.00")

    assert outstanding_installment_amount(installment) == Decimal("56.68")


def test_paid_installment_never_delinquent(disbursed_credit):
    _, installments = disbursed_credit
    installments[0].status = InstallmentStatus.PAID

    assessment = evaluate_installment(installments[0], date(2024, 12, 31), RATE)

    assert assessment.tier == DelinquencyTier.CURRENT
    assert assessment.penalty_amount == Decimal("0.00")


def test_reevaluate_marks_overdue_installments(disbursed_credit):
    """Installments due Feb 15 and Mar 15, evaluated Mar 20"""
    _, installments = disbursed_credit

    assessments = reevaluate_installments(installments, date(2024, 3, 20), RATE)

    assert len(assessments) == 12
    assert installments[0].status == InstallmentStatus.OVERDUE
    assert installments[0].elapsed_days == 34
    assert installments[0].penalty_amount == Decimal("31.17")
    assert installments[1].status == InstallmentStatus.OVERDUE
    assert installments[1].elapsed_days == 5
    assert installments[1].penalty_amount == Decimal("4.58")
    assert installments[2].status == InstallmentStatus.PENDING
    assert installments[2].tier == DelinquencyTier.CURRENT


def test_reevaluate_is_idempotent(disbursed_credit):
    """Running the same pass twice leaves the same penalties"""
    _, installments = disbursed_credit

    reevaluate_installments(installments, date(2024, 3, 20), RATE)
    first = [inst.penalty_amount for inst in installments]
    reevaluate_installments(installments, date(2024, 3, 20), RATE)

    assert [inst.penalty_amount for inst in installments] == first


def test_rollup_uses_oldest_unpaid_installment(disbursed_credit):
    """The oldest gap sets the credit tier, not the most recent one"""
    _, installments = disbursed_credit
    as_of = date(2024, 3, 20)
    reevaluate_installments(installments, as_of, RATE)

    result = rollup(installments, as_of)

    assert result.oldest_unpaid_sequence == 1
    assert result.elapsed_days == 34
    assert result.tier == DelinquencyTier.SEVERE
    assert result.overdue_installments == 2
    assert result.total_penalty_due == Decimal("35.75")


def test_rollup_skips_paid_installments(disbursed_credit):
    _, installments = disbursed_credit
    installments[0].status = InstallmentStatus.PAID

    result = rollup(installments, date(2024, 3, 20))

    assert result.oldest_unpaid_sequence == 2
    assert result.elapsed_days == 5
    assert result.tier == DelinquencyTier.MILD


def test_rollup_settled_credit_is_current(disbursed_credit):
    _, installments = disbursed_credit
    for installment in installments:
        installment.status = InstallmentStatus.PAID

    result = rollup(installments, date(2025, 6, 1))

    assert result.oldest_unpaid_sequence is None
    assert result.tier == DelinquencyTier.CURRENT


def test_amount_due_with_penalty():
    """Installment plus penalty accrued so far"""
    assert amount_due_with_penalty(Decimal("100"), 10, RATE) == (Decimal("10.00"), Decimal("110.00"))
    assert amount_due_with_penalty(Decimal("91.68"), 0, RATE) == (Decimal("0.00"), Decimal("91.68"))

    with pytest.raises(InvalidDelinquencyInput):
        amount_due_with_penalty(Decimal("0"), 10, RATE)
