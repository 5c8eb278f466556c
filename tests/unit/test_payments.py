"""Unit tests for payment distribution (penalty -> interest -> principal -> surplus)"""

import pytest
from datetime import date
from decimal import Decimal

from credit_engine.domain.exceptions import InvalidInstallmentState, InvalidPaymentAmount
from credit_engine.domain.models import InstallmentStatus, PaymentMethod
from credit_engine.domain.payments import amounts_due, apply_payment, distribute


def test_distribute_reference_scenario():
    """200 over (penalty 50, interest 75, principal 175) leaves 100 principal unpaid"""
    result = distribute(Decimal("200"), Decimal("50"), Decimal("75"), Decimal("175"))

    assert result.applied_penalty == Decimal("50")
    assert result.applied_interest == Decimal("75")
    assert result.applied_principal == Decimal("75")
    assert result.surplus == Decimal("0")


@pytest.mark.parametrize(
    "payment, expected",
    [
        ("0", ("0", "0", "0", "0")),
        ("30", ("30", "0", "0", "0")),
        ("50", ("50", "0", "0", "0")),
        ("125", ("50", "75", "0", "0")),
        ("300", ("50", "75", "175", "0")),
        ("450.55", ("50", "75", "175", "150.55")),
    ],
)
def test_distribute_priority_order(payment, expected):
    """Nothing reaches a later component while an earlier one is unpaid"""
    result = distribute(Decimal(payment), Decimal("50"), Decimal("75"), Decimal("175"))

    assert (result.applied_penalty, result.applied_interest, result.applied_principal, result.surplus) == tuple(
        Decimal(value) for value in expected
    )


@pytest.mark.parametrize(
    "payment, penalty, interest, principal",
    [
        ("0.01", "0", "0", "0"),
        ("91.68", "0", "15.00", "76.68"),
        ("17.33", "4.58", "13.85", "77.83"),
        ("1000.00", "31.17", "0", "0"),
        ("76.69", "0.01", "0.01", "76.68"),
    ],
)
def test_distribute_parts_add_up_to_payment(payment, penalty, interest, principal):
    result = distribute(Decimal(payment), Decimal(penalty), Decimal(interest), Decimal(principal))

    total = result.applied_penalty + result.applied_interest + result.applied_principal + result.surplus
    assert total == Decimal(payment)
    assert result.applied_penalty <= Decimal(penalty)
    assert result.applied_interest <= Decimal(interest)
    assert result.applied_principal <= Decimal(principal)
    assert result.surplus >= 0


def test_distribute_rejects_negative_payment():
    with pytest.raises(InvalidPaymentAmount):
        distribute(Decimal("-1"), Decimal("0"), Decimal("0"), Decimal("0"))


def test_distribute_rejects_negative_dues():
    with pytest.raises(InvalidInstallmentState):
        distribute(Decimal("10"), Decimal("0"), Decimal("-5"), Decimal("10"))


def test_apply_exact_installment(disbursed_credit):
    """Paying the first installment on time settles it"""
    _, installments = disbursed_credit

    payment = apply_payment(installments, Decimal("91.68"), date(2024, 2, 15))

    assert installments[0].status == InstallmentStatus.PAID
    assert installments[0].paid_date == date(2024, 2, 15)
    assert installments[0].paid_interest == Decimal("15.00")
    assert installments[0].paid_principal == Decimal("76.68")
    assert installments[1].status == InstallmentStatus.PENDING
    assert payment.installments_affected == 1
    assert payment.surplus == Decimal("0.00")
    assert payment.method == PaymentMethod.TRANSFER


def test_apply_spills_over_oldest_first(disbursed_credit):
    """200 settles two installments and partially covers the third"""
    _, installments = disbursed_credit

    payment = apply_payment(installments, Decimal("200"), date(2024, 2, 15), PaymentMethod.CASH)

    assert [inst.status for inst in installments[:3]] == [
        InstallmentStatus.PAID,
        InstallmentStatus.PAID,
        InstallmentStatus.PENDING,
    ]
    assert payment.installments_affected == 3
    assert payment.allocations[2].applied_interest == Decimal("12.68")
    assert payment.allocations[2].applied_principal == Decimal("3.96")
    assert payment.allocations[2].settled is False
    assert payment.applied_principal + payment.applied_interest == Decimal("200.00")
    assert payment.method == PaymentMethod.CASH


def test_apply_penalty_first(disbursed_credit):
    """An installment's penalty is paid before its interest and principal"""
    _, installments = disbursed_credit
    installments[0].penalty_amount = Decimal("10.00")

    payment = apply_payment(installments, Decimal("50"), date(2024, 3, 1))

    allocation = payment.allocations[0]
    assert allocation.applied_penalty == Decimal("10.00")
    assert allocation.applied_interest == Decimal("15.00")
    assert allocation.applied_principal == Decimal("25.00")
    assert installments[0].status == InstallmentStatus.PENDING


def test_apply_overpayment_reports_surplus(disbursed_credit):
    """Paying more than the whole credit leaves a surplus"""
    _, installments = disbursed_credit

    payment = apply_payment(installments, Decimal("1200"), date(2024, 2, 15))

    assert all(inst.status == InstallmentStatus.PAID for inst in installments)
    assert payment.applied_principal == Decimal("1000.00")
    assert payment.applied_interest == Decimal("100.14")
    assert payment.surplus == Decimal("99.86")


def test_apply_skips_closed_installments(disbursed_credit):
    _, installments = disbursed_credit
    installments[0].status = InstallmentStatus.CANCELLED

    payment = apply_payment(installments, Decimal("10"), date(2024, 2, 15))

    assert payment.allocations[0].sequence_number == 2


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
def test_apply_rejects_non_positive_amount(disbursed_credit, amount):
    _, installments = disbursed_credit

    with pytest.raises(InvalidPaymentAmount):
        apply_payment(installments, amount, date(2024, 2, 15))


def test_amounts_due_detects_overpaid_installment(disbursed_credit):
    _, installments = disbursed_credit
    installments[0].paid_interest = Decimal("20.00")

    with pytest.raises(InvalidInstallmentState):
        amounts_due(installments[0])
