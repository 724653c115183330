from django.core.exceptions import (
    ImproperlyConfigured,
    ObjectDoesNotExist,
    ValidationError,
)
from django.db import IntegrityError


# ---------- Validation (caller sent something wrong → HTTP 400) ----------
class LedgerValidationError(ValidationError):
    """Base class for rejected ledger input. Carries a stable ``code``."""

    default_code = "invalid"

    def __init__(self, message, code=None, params=None):
        super().__init__(message, code=code or self.default_code, params=params)


class UnbalancedJournalError(LedgerValidationError):
    """Raised when a journal's debits and credits do not match."""

    default_code = "unbalanced"


class TooFewLinesError(LedgerValidationError):
    default_code = "too_few_lines"


class InvalidAmountError(LedgerValidationError):
    default_code = "invalid_amount"


class InvalidRangeError(LedgerValidationError):
    default_code = "invalid_range"


class OverlappingRangeError(LedgerValidationError):
    default_code = "overlapping_range"


class CustomerMismatchError(LedgerValidationError):
    """Prepayment and invoice belong to different customers."""

    default_code = "customer_mismatch"


# ---------- Not found (→ HTTP 404) ----------
class LedgerNotFoundError(ObjectDoesNotExist):
    code = "not_found"


class UnknownAccountError(LedgerNotFoundError):
    code = "unknown_account"


class UnknownCustomerError(LedgerNotFoundError):
    code = "unknown_customer"


class UnknownInvoiceError(LedgerNotFoundError):
    code = "unknown_invoice"


class UnknownPrepaymentError(LedgerNotFoundError):
    code = "unknown_prepayment"


class FiscalYearNotFoundError(LedgerNotFoundError):
    code = "fiscal_year_not_found"


# ---------- State conflicts (valid input, wrong moment → HTTP 409) ----------
class StateConflictError(ValidationError):
    """The request is well formed but the current state forbids it."""

    default_code = "conflict"

    def __init__(self, message, code=None, params=None):
        super().__init__(message, code=code or self.default_code, params=params)


class ClosedFiscalYearError(StateConflictError):
    default_code = "closed_fiscal_year"


class CannotActivateClosedYearError(StateConflictError):
    default_code = "cannot_activate_closed_year"


class AlreadyClosedError(StateConflictError):
    default_code = "already_closed"


class ImmutableClosedYearError(StateConflictError):
    default_code = "immutable_closed_year"


class InsufficientPrepaymentBalanceError(StateConflictError):
    default_code = "insufficient_prepayment_balance"


class InvoiceAlreadySettledError(StateConflictError):
    default_code = "invoice_already_settled"


class InvoiceHasPaymentsError(StateConflictError):
    default_code = "invoice_has_payments"


class AlreadyReversedError(StateConflictError):
    default_code = "already_reversed"


# ---------- Infrastructure ----------
class DuplicateNumberError(IntegrityError):
    """Number allocation kept colliding after every retry attempt."""

    code = "duplicate_number"


class MissingSystemAccountError(ImproperlyConfigured):
    """A configured system account code is absent or inactive."""

    code = "missing_system_account"
