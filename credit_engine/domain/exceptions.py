"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidAmortizationInput(DomainException):
    """Principal, rate, term or method outside the accepted ranges"""

    pass


class InvalidPaymentAmount(DomainException):
    """Payment amount is zero or negative"""

    pass


class InvalidInstallmentState(DomainException):
    """Installment amounts are inconsistent (e.g. negative dues)"""

    pass


class InvalidDelinquencyInput(DomainException):
    """Delinquency evaluation received malformed inputs"""

    pass


class GuaranteeCountViolation(DomainException):
    """Credit does not hold zero or exactly two active guarantees, or a
    guarantor is already at the maximum number of simultaneous guarantees"""

    pass


class GuarantorNotEligible(DomainException):
    """Guarantor is inactive or below the required membership stage"""

    pass


class InsufficientSavings(DomainException):
    """Guarantor's available savings cannot cover the amount to freeze"""

    pass


class GuaranteeStateError(DomainException):
    """Guarantee is not in a state that allows the requested transition"""

    pass


class InvalidCreditTransition(DomainException):
    """Credit lifecycle transition is not allowed from its current status"""

    pass


class ActiveDelinquency(DomainException):
    """Borrower still carries an active delinquency on another credit"""

    pass


class CreditLimitExceeded(DomainException):
    """Requested amount plus the borrower's active credits exceed the credit limit"""

    pass
