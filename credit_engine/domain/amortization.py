"""Amortization table generation for cooperative credits"""

import math
from datetime import date
from decimal import ROUND_UP, Decimal, InvalidOperation
from typing import List, Sequence

from credit_engine.domain.exceptions import InvalidAmortizationInput, InvalidPaymentAmount
from credit_engine.domain.models import (
    AmortizationMethod,
    MethodComparison,
    PrepaymentEstimate,
    Schedule,
    ScheduledInstallment,
    ScheduleSummary,
)
from credit_engine.utils.date_utils import add_months
from credit_engine.utils.money import CENT, ZERO, money_sum, to_decimal, to_money

MIN_TERM_MONTHS = 6
MAX_TERM_MONTHS = 60
MAX_ANNUAL_RATE = Decimal("100")


def validate_terms(
    principal: Decimal,
    annual_rate_percent: Decimal,
    term_months: int,
    method: AmortizationMethod | str = AmortizationMethod.FIXED_INSTALLMENT,
) -> AmortizationMethod:
    """Reject invalid credit terms before any computation; returns the parsed method"""
    amount = _parse_number(principal, "Principal")
    if amount <= 0:
        raise InvalidAmortizationInput(f"Principal must be positive, got {principal}")
    if amount != amount.quantize(CENT):
        raise InvalidAmortizationInput(f"Principal cannot have fractions of a cent, got {principal}")

    rate = _parse_number(annual_rate_percent, "Annual rate")
    if rate < 0 or rate > MAX_ANNUAL_RATE:
        raise InvalidAmortizationInput(f"Annual rate must be between 0 and 100, got {rate}")

    if isinstance(term_months, bool) or not isinstance(term_months, int):
        raise InvalidAmortizationInput(f"Term must be a whole number of months, got {term_months!r}")
    if not MIN_TERM_MONTHS <= term_months <= MAX_TERM_MONTHS:
        raise InvalidAmortizationInput(
            f"Term must be between {MIN_TERM_MONTHS} and {MAX_TERM_MONTHS} months, got {term_months}"
        )

    try:
        return AmortizationMethod(method)
    except ValueError:
        raise InvalidAmortizationInput(f"Unknown amortization method: {method!r}")


def _parse_number(value, label: str) -> Decimal:
    try:
        number = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmortizationInput(f"{label} is not a number: {value!r}")
    if not number.is_finite():
        raise InvalidAmortizationInput(f"{label} must be finite, got {value!r}")
    return number


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Periodic rate as a fraction: annual / 12 / 100"""
    return to_decimal(annual_rate_percent) / 12 / 100


def fixed_installment_amount(principal: Decimal, rate: Decimal, term_months: int) -> Decimal:
    """
    Constant payment for the fixed-installment method, rounded to cents.

    Formula: C = P * [i * (1 + i)^n] / [(1 + i)^n - 1]

    Example: 1000 at 18% annual (1.5% monthly) over 12 months -> 91.68
    """
    if rate == 0:
        return to_money(principal / term_months)

    growth = (1 + rate) ** term_months
    return to_money(principal * (rate * growth) / (growth - 1))


def fixed_principal_portion(principal: Decimal, term_months: int) -> Decimal:
    """
    Constant principal portion for the fixed-principal method.

    Rounded up to the cent so the final row only ever takes a smaller or
    equal remainder. Amounts too small for that (fewer cents than periods)
    fall back to half-up rounding.

    Example: 100 over 9 months -> 11.12, final row 11.04
    """
    portion = (principal / term_months).quantize(CENT, rounding=ROUND_UP)
    if portion * (term_months - 1) > principal:
        return to_money(principal / term_months)
    return portion


def generate_schedule(
    principal: Decimal,
    annual_rate_percent: Decimal,
    term_months: int,
    method: AmortizationMethod | str,
    disbursement_date: date,
) -> Schedule:
    """
    Generate the complete amortization table for a credit.

    Requirements:
    - Interest accrues on the outstanding balance, rounded to cents each period
    - Installment k falls due k calendar months after disbursement
    - Final installment's principal equals the remaining balance, so the
      principal portions sum exactly to the principal and the table ends at 0

    Args:
        principal: Amount financed (> 0)
        annual_rate_percent: Nominal annual rate, 0-100
        term_months: Number of monthly installments, 6-60
        method: fixed_installment (constant payment) or fixed_principal
        disbursement_date: Date the funds were released

    Returns:
        Schedule with one row per installment and a totals summary
    """
    method = validate_terms(principal, annual_rate_percent, term_months, method)
    principal = to_money(principal)
    rate = monthly_rate(annual_rate_percent)

    if method == AmortizationMethod.FIXED_INSTALLMENT:
        rows = _fixed_installment_rows(principal, rate, term_months, disbursement_date)
    else:
        rows = _fixed_principal_rows(principal, rate, term_months, disbursement_date)

    total_principal = money_sum(row.scheduled_principal for row in rows)
    total_interest = money_sum(row.scheduled_interest for row in rows)

    return Schedule(
        method=method,
        principal=principal,
        annual_rate_percent=to_decimal(annual_rate_percent),
        term_months=term_months,
        installments=rows,
        summary=ScheduleSummary(
            total_principal=total_principal,
            total_interest=total_interest,
            total_payable=total_principal + total_interest,
        ),
    )


def _fixed_installment_rows(
    principal: Decimal, rate: Decimal, term_months: int, disbursement_date: date
) -> List[ScheduledInstallment]:
    installment = fixed_installment_amount(principal, rate, term_months)
    balance = principal
    rows = []

    for number in range(1, term_months + 1):
        interest = to_money(balance * rate)

        if number == term_months:
            # Last installment absorbs cumulative rounding drift
            capital = balance
        else:
            capital = installment - interest

        balance -= capital
        rows.append(
            ScheduledInstallment(
                sequence_number=number,
                due_date=add_months(disbursement_date, number),
                scheduled_principal=capital,
                scheduled_interest=interest,
                scheduled_total=capital + interest,
                remaining_balance=balance,
            )
        )

    return rows


def _fixed_principal_rows(
    principal: Decimal, rate: Decimal, term_months: int, disbursement_date: date
) -> List[ScheduledInstallment]:
    fixed_capital = fixed_principal_portion(principal, term_months)
    balance = principal
    rows = []

    for number in range(1, term_months + 1):
        interest = to_money(balance * rate)
        capital = balance if number == term_months else fixed_capital

        balance -= capital
        rows.append(
            ScheduledInstallment(
                sequence_number=number,
                due_date=add_months(disbursement_date, number),
                scheduled_principal=capital,
                scheduled_interest=interest,
                scheduled_total=capital + interest,
                remaining_balance=balance,
            )
        )

    return rows


def compare_methods(
    principal: Decimal,
    annual_rate_percent: Decimal,
    term_months: int,
    disbursement_date: date,
    materiality: Decimal = Decimal("10.00"),
) -> MethodComparison:
    """
    Run both methods over identical terms and recommend one.

    The lower-interest method is recommended only when the total interest
    difference exceeds the materiality threshold; below it neither method
    is preferred.
    """
    fixed_installment = generate_schedule(
        principal, annual_rate_percent, term_months, AmortizationMethod.FIXED_INSTALLMENT, disbursement_date
    )
    fixed_principal = generate_schedule(
        principal, annual_rate_percent, term_months, AmortizationMethod.FIXED_PRINCIPAL, disbursement_date
    )

    interest_delta = fixed_installment.summary.total_interest - fixed_principal.summary.total_interest
    first_delta = (
        fixed_installment.installments[0].scheduled_total - fixed_principal.installments[0].scheduled_total
    )
    last_delta = (
        fixed_installment.installments[-1].scheduled_total - fixed_principal.installments[-1].scheduled_total
    )

    if abs(interest_delta) <= to_decimal(materiality):
        recommended = None
        reason = f"Interest difference of {abs(interest_delta)} is immaterial; either method fits"
    elif interest_delta > 0:
        recommended = AmortizationMethod.FIXED_PRINCIPAL
        reason = f"Saves {interest_delta} in total interest"
    else:
        recommended = AmortizationMethod.FIXED_INSTALLMENT
        reason = f"Saves {-interest_delta} in total interest"

    return MethodComparison(
        fixed_installment=fixed_installment,
        fixed_principal=fixed_principal,
        interest_delta=interest_delta,
        first_installment_delta=first_delta,
        last_installment_delta=last_delta,
        recommended=recommended,
        reason=reason,
    )


def estimate_prepayment(
    remaining: Sequence[ScheduledInstallment],
    prepayment: Decimal,
    annual_rate_percent: Decimal,
) -> PrepaymentEstimate:
    """
    Estimate how many fixed installments a principal prepayment removes.

    The installment amount stays the same; the term shrinks:
        n = ceil(ln(C / (C - B * i)) / ln(1 + i))
    where B is the balance left after the prepayment.
    """
    prepayment = to_decimal(prepayment)
    if prepayment <= 0:
        raise InvalidPaymentAmount(f"Prepayment must be positive, got {prepayment}")
    if not remaining:
        raise InvalidAmortizationInput("No remaining installments to prepay")

    original_count = len(remaining)
    original_interest = money_sum(row.scheduled_interest for row in remaining)
    balance = money_sum(row.scheduled_principal for row in remaining)
    new_balance = balance - prepayment

    if new_balance <= 0:
        return PrepaymentEstimate(
            original_installments=original_count,
            new_installments=0,
            installments_saved=original_count,
            interest_saved=original_interest,
        )

    rate = monthly_rate(annual_rate_percent)
    installment = remaining[0].scheduled_total

    if rate == 0:
        new_count = math.ceil(new_balance / installment)
    else:
        if installment <= to_money(new_balance * rate):
            raise InvalidAmortizationInput("Installment does not cover the periodic interest")
        periods = (installment / (installment - new_balance * rate)).ln() / (1 + rate).ln()
        new_count = math.ceil(periods)

    # Same installment over the shorter term; the final one only clears the balance
    balance = new_balance
    new_interest = ZERO
    for number in range(1, new_count + 1):
        interest = to_money(balance * rate)
        capital = balance if number == new_count else min(installment - interest, balance)
        balance -= capital
        new_interest += interest

    saved = original_interest - new_interest

    return PrepaymentEstimate(
        original_installments=original_count,
        new_installments=new_count,
        installments_saved=max(original_count - new_count, 0),
        interest_saved=to_money(saved) if saved > 0 else ZERO,
    )
