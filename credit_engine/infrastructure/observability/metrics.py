"""Prometheus metrics for schedules, delinquency, payments and guarantee executions"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

from credit_engine.domain.models import DelinquencyTier

# Amortization metrics
schedule_counter = Counter(
    "credit_engine_schedules_total",
    "Amortization tables generated",
    ["method"],  # fixed_installment | fixed_principal
)

# Delinquency metrics
delinquency_tier_counter = Counter(
    "credit_engine_delinquency_evaluations_total",
    "Delinquency evaluations by resulting tier",
    ["tier"],
)

write_off_counter = Counter(
    "credit_engine_write_offs_total",
    "Credits transitioned to written_off",
)

# Payment metrics
payment_counter = Counter(
    "credit_engine_payments_total",
    "Payments distributed",
    ["outcome"],  # exact | partial | surplus
)

payment_amount_histogram = Histogram(
    "credit_engine_payment_amount",
    "Distributed payment amounts",
    buckets=[10, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

# Guarantee metrics
guarantee_execution_counter = Counter(
    "credit_engine_guarantee_executions_total",
    "Guarantee execution trigger runs",
    ["outcome"],  # executed | skipped
)

guarantee_liquidated_counter = Counter(
    "credit_engine_guarantee_liquidated_amount_total",
    "Savings liquidated from guarantors",
)

# Engine errors
engine_error_counter = Counter(
    "credit_engine_errors_total",
    "Typed engine errors raised to callers",
    ["error"],
)


def record_delinquency(tier: DelinquencyTier) -> None:
    delinquency_tier_counter.labels(tier=DelinquencyTier(tier).value).inc()


def record_payment(amount: Decimal, surplus: Decimal, principal_left: Decimal) -> None:
    """Classify a distribution: surplus left over, dues exactly covered, or partial"""
    if surplus > 0:
        outcome = "surplus"
    elif principal_left == 0:
        outcome = "exact"
    else:
        outcome = "partial"

    payment_counter.labels(outcome=outcome).inc()
    payment_amount_histogram.observe(float(amount))


def record_guarantee_execution(executed: bool, amount_liquidated: Decimal) -> None:
    outcome = "executed" if executed else "skipped"
    guarantee_execution_counter.labels(outcome=outcome).inc()
    if executed:
        guarantee_liquidated_counter.inc(float(amount_liquidated))


def record_error(error: Exception) -> None:
    engine_error_counter.labels(error=type(error).__name__).inc()
