"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from credit_engine.utils.money import ZERO


class AmortizationMethod(str, Enum):
    FIXED_INSTALLMENT = "fixed_installment"
    FIXED_PRINCIPAL = "fixed_principal"


class CreditStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"
    COMPLETED = "completed"
    WRITTEN_OFF = "written_off"


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"
    CANCELLED = "cancelled"


class DelinquencyTier(str, Enum):
    CURRENT = "current"
    MILD = "mild"  # 1-15 days
    MODERATE = "moderate"  # 16-30 days
    SEVERE = "severe"  # 31-60 days
    PERSISTENT = "persistent"  # 61-89 days
    WRITTEN_OFF = "written_off"  # 90+ days


class GuaranteeState(str, Enum):
    ACTIVE = "active"
    IN_RELEASE = "in_release"
    RELEASED = "released"
    EXECUTED = "executed"


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    DEPOSIT = "deposit"
    OTHER = "other"


@dataclass(frozen=True)
class TierThresholds:
    """Inclusive upper bound (in days) of each delinquency tier"""

    mild_max: int = 15
    moderate_max: int = 30
    severe_max: int = 60
    persistent_max: int = 89

    @property
    def write_off_days(self) -> int:
        return self.persistent_max + 1


@dataclass(frozen=True)
class EnginePolicy:
    """Snapshot of tunable parameters, resolved once per operation by the caller"""

    daily_penalty_rate_percent: Decimal = Decimal("1.0")
    guarantee_freeze_percent: Decimal = Decimal("10.0")
    max_guarantees_per_guarantor: int = 3
    guarantor_min_stage: int = 3
    release_min_completed_percent: Decimal = Decimal("50")
    insurance_premium_percent: Decimal = Decimal("1.0")
    comparison_materiality: Decimal = Decimal("10.00")
    execution_grace_days: int = 1
    tiers: TierThresholds = field(default_factory=TierThresholds)


@dataclass
class Credit:
    """Loan granted to a cooperative member"""

    credit_id: str
    borrower_id: str
    principal_requested: Decimal
    insurance_premium: Decimal
    total_amount: Decimal  # principal + one-time insurance premium
    term_months: int
    method: AmortizationMethod
    annual_rate_percent: Decimal
    status: CreditStatus = CreditStatus.REQUESTED
    disbursement_date: Optional[date] = None
    outstanding_principal: Decimal = ZERO


@dataclass
class Installment:
    """Single scheduled payment of a credit"""

    credit_id: str
    sequence_number: int
    due_date: date
    scheduled_principal: Decimal
    scheduled_interest: Decimal
    scheduled_total: Decimal
    paid_principal: Decimal = ZERO
    paid_interest: Decimal = ZERO
    paid_penalty: Decimal = ZERO
    penalty_amount: Decimal = ZERO
    elapsed_days: int = 0
    tier: DelinquencyTier = DelinquencyTier.CURRENT
    status: InstallmentStatus = InstallmentStatus.PENDING
    paid_date: Optional[date] = None

    @property
    def is_open(self) -> bool:
        return self.status in (InstallmentStatus.PENDING, InstallmentStatus.OVERDUE)


@dataclass
class Guarantor:
    """Member whose savings back other members' credits"""

    guarantor_id: str
    stage: int
    is_active: bool
    savings_balance: Decimal
    frozen_savings: Decimal = ZERO
    active_guarantees: int = 0

    @property
    def available_savings(self) -> Decimal:
        return self.savings_balance - self.frozen_savings


@dataclass(frozen=True)
class BorrowerStanding:
    """Borrower facts the origination rules read, supplied by the caller"""

    stage: int
    savings_balance: Decimal
    frozen_savings: Decimal = ZERO
    credits_in_stage: int = 0
    active_credit_total: Decimal = ZERO  # total_amount of requested/approved/disbursed credits
    active_delinquency_days: int = 0  # 0 when no delinquency is active


@dataclass
class Guarantee:
    """Frozen share of a guarantor's savings securing one credit"""

    guarantee_id: str
    credit_id: str
    guarantor_id: str
    frozen_amount: Decimal
    state: GuaranteeState = GuaranteeState.ACTIVE
    executed_amount: Decimal = ZERO
    executed_on: Optional[date] = None


@dataclass(frozen=True)
class ScheduledInstallment:
    """One row of an amortization table"""

    sequence_number: int
    due_date: date
    scheduled_principal: Decimal
    scheduled_interest: Decimal
    scheduled_total: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class ScheduleSummary:
    total_principal: Decimal
    total_interest: Decimal
    total_payable: Decimal


@dataclass(frozen=True)
class Schedule:
    """Complete amortization table"""

    method: AmortizationMethod
    principal: Decimal
    annual_rate_percent: Decimal
    term_months: int
    installments: List[ScheduledInstallment]
    summary: ScheduleSummary


@dataclass(frozen=True)
class MethodComparison:
    """Fixed-installment vs fixed-principal over identical terms"""

    fixed_installment: Schedule
    fixed_principal: Schedule
    interest_delta: Decimal  # fixed-installment minus fixed-principal
    first_installment_delta: Decimal
    last_installment_delta: Decimal
    recommended: Optional[AmortizationMethod]
    reason: str


@dataclass(frozen=True)
class PrepaymentEstimate:
    original_installments: int
    new_installments: int
    installments_saved: int
    interest_saved: Decimal


@dataclass(frozen=True)
class DelinquencyAssessment:
    """Output of one installment evaluation"""

    penalty_amount: Decimal
    elapsed_days: int
    tier: DelinquencyTier


@dataclass(frozen=True)
class CreditDelinquency:
    """Credit-level rollup driven by the oldest unpaid installment"""

    elapsed_days: int
    tier: DelinquencyTier
    oldest_unpaid_sequence: Optional[int]
    total_penalty_due: Decimal
    overdue_installments: int


@dataclass(frozen=True)
class PaymentDistribution:
    """Allocation of a payment over one installment's dues"""

    applied_penalty: Decimal
    applied_interest: Decimal
    applied_principal: Decimal
    surplus: Decimal


@dataclass(frozen=True)
class InstallmentAllocation:
    sequence_number: int
    applied_penalty: Decimal
    applied_interest: Decimal
    applied_principal: Decimal
    settled: bool


@dataclass(frozen=True)
class Payment:
    """Immutable record of a payment and where it went"""

    amount: Decimal
    payment_date: date
    method: PaymentMethod
    allocations: List[InstallmentAllocation]
    surplus: Decimal

    @property
    def installments_affected(self) -> int:
        return len(self.allocations)

    @property
    def applied_penalty(self) -> Decimal:
        return sum((a.applied_penalty for a in self.allocations), ZERO)

    @property
    def applied_interest(self) -> Decimal:
        return sum((a.applied_interest for a in self.allocations), ZERO)

    @property
    def applied_principal(self) -> Decimal:
        return sum((a.applied_principal for a in self.allocations), ZERO)


@dataclass(frozen=True)
class GuaranteeExecution:
    """Outcome of the guarantee execution trigger"""

    executed: bool
    amount_liquidated: Decimal
    remaining_balance: Decimal
    updated_states: dict[str, GuaranteeState]


@dataclass(frozen=True)
class ReevaluationOutcome:
    """Result of one scheduled re-evaluation pass over a credit"""

    assessments: dict[int, DelinquencyAssessment]
    delinquency: CreditDelinquency
    written_off: bool  # transitioned during this pass
    execution: Optional[GuaranteeExecution]
