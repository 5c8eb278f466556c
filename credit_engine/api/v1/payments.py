"""Payment distribution handler"""

from credit_engine.api.v1.schemas import DistributionRequest, DistributionResponse
from credit_engine.domain import payments
from credit_engine.domain.exceptions import DomainException, InvalidPaymentAmount
from credit_engine.infrastructure.observability.logging import log_rejected
from credit_engine.infrastructure.observability.metrics import record_error, record_payment


def distribute_payment(request: DistributionRequest) -> DistributionResponse:
    """
    Split a payment over one installment's penalty, interest and principal.

    Zero or negative payments are rejected here, before reaching the
    distributor.
    """
    try:
        if request.payment_amount <= 0:
            raise InvalidPaymentAmount(f"Payment amount must be positive, got {request.payment_amount}")

        distribution = payments.distribute(
            request.payment_amount,
            request.penalty_due,
            request.interest_due,
            request.principal_due,
        )
    except DomainException as e:
        record_error(e)
        log_rejected("distribution", e)
        raise

    record_payment(
        request.payment_amount,
        distribution.surplus,
        request.principal_due - distribution.applied_principal,
    )

    return DistributionResponse(
        applied_penalty=distribution.applied_penalty,
        applied_interest=distribution.applied_interest,
        applied_principal=distribution.applied_principal,
        surplus=distribution.surplus,
    )
