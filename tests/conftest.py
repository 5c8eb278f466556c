"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal

from credit_engine.domain import credits
from credit_engine.domain.models import (
    AmortizationMethod,
    BorrowerStanding,
    Credit,
    EnginePolicy,
    Guarantor,
    Installment,
)


DISBURSEMENT_DATE = date(2024, 1, 15)


@pytest.fixture
def policy() -> EnginePolicy:
    """Default engine policy (1% daily penalty, 10% freeze, tiers 15/30/60/89)"""
    return EnginePolicy()


@pytest.fixture
def standing() -> BorrowerStanding:
    """Stage-3 borrower with 5000 saved and no other credits: limit 10000"""
    return BorrowerStanding(stage=3, savings_balance=Decimal("5000.00"))


@pytest.fixture
def requested_credit(standing) -> Credit:
    """5000 requested over 12 months at 18%, no insurance premium"""
    return credits.open_credit(
        credit_id="cr-001",
        borrower_id="m-100",
        principal=Decimal("5000"),
        term_months=12,
        method=AmortizationMethod.FIXED_INSTALLMENT,
        annual_rate_percent=Decimal("18"),
        standing=standing,
        insurance_premium_percent=Decimal("0"),
    )


@pytest.fixture
def guarantors() -> list[Guarantor]:
    """Two stage-3 members with 5000 savings each"""
    return [
        Guarantor(guarantor_id="m-200", stage=3, is_active=True, savings_balance=Decimal("5000.00")),
        Guarantor(guarantor_id="m-300", stage=4, is_active=True, savings_balance=Decimal("5000.00")),
    ]


@pytest.fixture
def disbursed_credit(standing) -> tuple[Credit, list[Installment]]:
    """1000 at 18% over 12 fixed installments, disbursed 2024-01-15"""
    credit = credits.open_credit(
        credit_id="cr-002",
        borrower_id="m-101",
        principal=Decimal("1000"),
        term_months=12,
        method=AmortizationMethod.FIXED_INSTALLMENT,
        annual_rate_percent=Decimal("18"),
        standing=standing,
        insurance_premium_percent=Decimal("0"),
    )
    credits.approve(credit)
    installments = credits.disburse(credit, DISBURSEMENT_DATE)
    return credit, installments
