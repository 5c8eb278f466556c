"""Integration tests for credit servicing flows (re-evaluation, payments, execution)"""

import pytest
from datetime import date
from decimal import Decimal

from credit_engine.domain import credits, guarantees as guarantee_rules
from credit_engine.domain.exceptions import InvalidCreditTransition, InvalidPaymentAmount
from credit_engine.domain.models import (
    CreditStatus,
    DelinquencyTier,
    GuaranteeState,
    InstallmentStatus,
)
from credit_engine.domain.servicing import post_payment, reevaluate
from credit_engine.utils.money import to_money


@pytest.fixture
def guaranteed_credit(requested_credit, guarantors, policy):
    """5000 credit backed by two guarantors (250 frozen each), disbursed 2024-01-15"""
    guarantees = guarantee_rules.constitute(requested_credit, guarantors, policy)
    credits.approve(requested_credit)
    installments = credits.disburse(requested_credit, date(2024, 1, 15))
    return requested_credit, installments, guarantees, guarantors


def test_unpaid_credit_is_written_off_then_guarantees_execute(guaranteed_credit, policy):
    """First installment due Feb 15 never paid: day 89, 90, 91, 92"""
    credit, installments, guarantees, guarantors = guaranteed_credit

    day_89 = reevaluate(credit, installments, guarantees, guarantors, date(2024, 5, 14), policy)
    assert day_89.delinquency.elapsed_days == 89
    assert day_89.delinquency.tier == DelinquencyTier.PERSISTENT
    assert day_89.delinquency.overdue_installments == 3
    assert day_89.written_off is False
    assert credit.status == CreditStatus.DISBURSED

    day_90 = reevaluate(credit, installments, guarantees, guarantors, date(2024, 5, 15), policy)
    assert day_90.delinquency.tier == DelinquencyTier.WRITTEN_OFF
    assert day_90.written_off is True
    assert day_90.execution.executed is False
    assert credit.status == CreditStatus.WRITTEN_OFF
    assert all(g.state == GuaranteeState.ACTIVE for g in guarantees)

    day_91 = reevaluate(credit, installments, guarantees, guarantors, date(2024, 5, 16), policy)
    assert day_91.written_off is False
    assert day_91.execution.executed is True
    assert day_91.execution.amount_liquidated == Decimal("500.00")
    assert day_91.execution.remaining_balance == Decimal("4500.00")
    assert all(g.state == GuaranteeState.EXECUTED for g in guarantees)
    assert all(g.executed_on == date(2024, 5, 16) for g in guarantees)
    assert [g.savings_balance for g in guarantors] == [Decimal("4750.00"), Decimal("4750.00")]

    day_92 = reevaluate(credit, installments, guarantees, guarantors, date(2024, 5, 17), policy)
    assert day_92.execution.executed is False
    assert [g.savings_balance for g in guarantors] == [Decimal("4750.00"), Decimal("4750.00")]


def test_penalties_accrue_on_reevaluation(guaranteed_credit, policy):
    credit, installments, guarantees, guarantors = guaranteed_credit

    outcome = reevaluate(credit, installments, guarantees, guarantors, date(2024, 2, 25), policy)

    expected = to_money(installments[0].scheduled_total * Decimal("0.10"))
    assert outcome.assessments[1].elapsed_days == 10
    assert outcome.assessments[1].penalty_amount == expected
    assert installments[0].status == InstallmentStatus.OVERDUE
    assert outcome.delinquency.total_penalty_due == expected


def test_reevaluate_rejects_undisbursed_credit(requested_credit, policy):
    with pytest.raises(InvalidCreditTransition):
        reevaluate(requested_credit, [], [], [], date(2024, 2, 1), policy)


def test_paying_on_time_completes_credit(disbursed_credit, policy):
    """Twelve on-time payments settle the credit with no penalties"""
    credit, installments = disbursed_credit

    for installment in list(installments):
        post_payment(credit, installments, installment.scheduled_total, installment.due_date, policy)

    assert credit.status == CreditStatus.COMPLETED
    assert credit.outstanding_principal == Decimal("0.00")
    assert all(inst.status == InstallmentStatus.PAID for inst in installments)
    assert all(inst.penalty_amount == Decimal("0.00") for inst in installments)


def test_late_payment_covers_penalty_first(disbursed_credit, policy):
    """Ten days late: 9.17 penalty comes out of the 91.68 payment"""
    credit, installments = disbursed_credit

    payment = post_payment(credit, installments, Decimal("91.68"), date(2024, 2, 25), policy)

    assert payment.applied_penalty == Decimal("9.17")
    assert payment.applied_interest == Decimal("15.00")
    assert payment.applied_principal == Decimal("67.51")
    assert installments[0].status == InstallmentStatus.OVERDUE
    assert credit.outstanding_principal == Decimal("932.49")

    post_payment(credit, installments, Decimal("9.17"), date(2024, 2, 25), policy)

    assert installments[0].status == InstallmentStatus.PAID
    assert credit.outstanding_principal == Decimal("923.32")


def test_payment_rejected_before_any_change(disbursed_credit, policy):
    credit, installments = disbursed_credit

    with pytest.raises(InvalidPaymentAmount):
        post_payment(credit, installments, Decimal("0"), date(2024, 6, 1), policy)

    assert all(inst.status == InstallmentStatus.PENDING for inst in installments)
    assert all(inst.penalty_amount == Decimal("0.00") for inst in installments)


def test_written_off_credit_refuses_payments(disbursed_credit, policy):
    credit, installments = disbursed_credit
    credits.write_off(credit)

    with pytest.raises(InvalidCreditTransition):
        post_payment(credit, installments, Decimal("100"), date(2024, 6, 1), policy)
