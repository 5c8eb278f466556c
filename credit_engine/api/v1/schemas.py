"""Pydantic schemas for the engine's request/response shapes"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from credit_engine.domain.models import (
    AmortizationMethod,
    CreditStatus,
    DelinquencyTier,
    GuaranteeState,
    MethodComparison,
    Schedule,
    ScheduleSummary,
)


class EngineSchema(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def reduce_datetimes(cls, value):
        # A datetime keeps its own calendar date; no time zone conversion
        if isinstance(value, datetime):
            return value.date()
        return value


class CreditTermsRequest(EngineSchema):
    """Input for schedule generation"""

    principal: Decimal
    annual_rate_percent: Decimal
    term_months: int
    method: AmortizationMethod
    disbursement_date: date


class ComparisonRequest(EngineSchema):
    """Input for comparing both amortization methods"""

    principal: Decimal
    annual_rate_percent: Decimal
    term_months: int
    disbursement_date: date
    materiality: Optional[Decimal] = Field(None, ge=0, description="Defaults to the configured threshold")


class ScheduleRowSchema(EngineSchema):
    sequence_number: int
    due_date: date
    scheduled_principal: Decimal
    scheduled_interest: Decimal
    scheduled_total: Decimal
    remaining_balance: Decimal


class ScheduleSummarySchema(EngineSchema):
    total_principal: Decimal
    total_interest: Decimal
    total_payable: Decimal

    @classmethod
    def from_domain(cls, summary: ScheduleSummary) -> "ScheduleSummarySchema":
        return cls(
            total_principal=summary.total_principal,
            total_interest=summary.total_interest,
            total_payable=summary.total_payable,
        )


class ScheduleResponse(EngineSchema):
    method: AmortizationMethod
    installments: List[ScheduleRowSchema]
    summary: ScheduleSummarySchema

    @classmethod
    def from_domain(cls, schedule: Schedule) -> "ScheduleResponse":
        return cls(
            method=schedule.method,
            installments=[
                ScheduleRowSchema(
                    sequence_number=row.sequence_number,
                    due_date=row.due_date,
                    scheduled_principal=row.scheduled_principal,
                    scheduled_interest=row.scheduled_interest,
                    scheduled_total=row.scheduled_total,
                    remaining_balance=row.remaining_balance,
                )
                for row in schedule.installments
            ],
            summary=ScheduleSummarySchema.from_domain(schedule.summary),
        )


class ComparisonResponse(EngineSchema):
    interest_delta: Decimal
    first_installment_delta: Decimal
    last_installment_delta: Decimal
    recommended_method: Optional[AmortizationMethod] = None
    reason: str
    fixed_installment: ScheduleSummarySchema
    fixed_principal: ScheduleSummarySchema

    @classmethod
    def from_domain(cls, comparison: MethodComparison) -> "ComparisonResponse":
        return cls(
            interest_delta=comparison.interest_delta,
            first_installment_delta=comparison.first_installment_delta,
            last_installment_delta=comparison.last_installment_delta,
            recommended_method=comparison.recommended,
            reason=comparison.reason,
            fixed_installment=ScheduleSummarySchema.from_domain(comparison.fixed_installment.summary),
            fixed_principal=ScheduleSummarySchema.from_domain(comparison.fixed_principal.summary),
        )


class DelinquencyRequest(EngineSchema):
    """Input for a single installment's delinquency evaluation"""

    due_date: date
    outstanding_amount: Decimal
    as_of_date: date
    daily_penalty_rate_percent: Optional[Decimal] = Field(None, description="Defaults to the configured rate")


class DelinquencyResponse(EngineSchema):
    penalty_amount: Decimal
    elapsed_days: int
    tier: DelinquencyTier


class DistributionRequest(EngineSchema):
    """Input for distributing a payment over one installment"""

    payment_amount: Decimal
    penalty_due: Decimal
    interest_due: Decimal
    principal_due: Decimal


class DistributionResponse(EngineSchema):
    applied_penalty: Decimal
    applied_interest: Decimal
    applied_principal: Decimal
    surplus: Decimal


class GuaranteeInput(EngineSchema):
    id: str = Field(..., min_length=1)
    state: GuaranteeState
    frozen_amount: Decimal = Field(..., ge=0)


class GuaranteeExecutionRequest(EngineSchema):
    """Input for the guarantee execution trigger"""

    credit_id: str = ""
    credit_outstanding_principal: Decimal = Field(..., ge=0)
    credit_status: CreditStatus
    elapsed_days: int = Field(..., ge=0, description="Days past due of the oldest unpaid installment")
    guarantees: List[GuaranteeInput]


class GuaranteeExecutionResponse(EngineSchema):
    executed: bool
    amount_liquidated: Decimal
    remaining_balance: Decimal
    updated_guarantee_states: Dict[str, GuaranteeState]
