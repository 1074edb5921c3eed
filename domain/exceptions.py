"""Exceptions raised by the permit domain and fee engine."""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Iterable, Optional


def _label(value) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class PermitError(Exception):
    """Base exception for permit domain errors."""
    pass


class InvalidArgumentError(PermitError, ValueError):
    """Malformed or out-of-range input. Raised before any mutation."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidTransitionError(PermitError):
    """Operation attempted from a status that does not allow it."""

    def __init__(self, operation: str, expected: Iterable, actual):
        self.operation = operation
        self.expected = tuple(expected)
        self.actual = actual
        expected_str = ", ".join(_label(s) for s in self.expected)
        super().__init__(
            f"Cannot {operation}: expected status {expected_str}, actual: {_label(actual)}"
        )


class DomainRuleViolation(PermitError):
    """A business rule blocks the operation."""
    pass


class MissingDocumentsError(DomainRuleViolation):
    def __init__(self, missing: Iterable):
        self.missing = list(missing)
        super().__init__(
            "Missing required documents: " + ", ".join(_label(t) for t in self.missing)
        )


class DocumentExpiredError(DomainRuleViolation):
    def __init__(self, document_type, expiry_date: date, as_of: date):
        self.document_type = document_type
        self.expiry_date = expiry_date
        self.as_of = as_of
        super().__init__(
            f"Cannot verify document: {_label(document_type)} expired on "
            f"{expiry_date.isoformat()}. Please request an updated document from the applicant."
        )


class DocumentsNotVerifiedError(DomainRuleViolation):
    def __init__(self, unverified: Iterable):
        self.unverified = list(unverified)
        super().__init__(
            "All documents must be verified before payment. Unverified: "
            + ", ".join(_label(t) for t in self.unverified)
        )


class PaymentNotCompletedError(DomainRuleViolation):
    def __init__(self, actual=None):
        self.actual = actual
        detail = f" (payment status: {_label(actual)})" if actual is not None else " (no payment)"
        super().__init__("Payment must be completed before approval" + detail)


class PaymentAlreadyCompletedError(DomainRuleViolation):
    def __init__(self, payment_id: str):
        self.payment_id = payment_id
        super().__init__(
            "A completed payment already exists for this application; approve it or refund the payment first"
        )


class PendingWaiverExistsError(DomainRuleViolation):
    def __init__(self, waiver_id: str):
        self.waiver_id = waiver_id
        super().__init__(f"A pending waiver already exists for this application ({waiver_id})")


class PaymentAlreadyVerifiedError(DomainRuleViolation):
    def __init__(self, payment_id: str):
        self.payment_id = payment_id
        super().__init__("Payment has already been verified")


class InvoiceNotPastDueError(DomainRuleViolation):
    def __init__(self, invoice_number: str, due_date: date):
        self.invoice_number = invoice_number
        self.due_date = due_date
        super().__init__(f"Invoice {invoice_number} is not past its due date {due_date.isoformat()}")


class PaymentExceedsBalanceError(DomainRuleViolation):
    def __init__(self, amount, balance_due):
        self.amount = amount
        self.balance_due = balance_due
        super().__init__(f"Payment amount ({amount}) exceeds balance due ({balance_due})")


class ApplicationNotFlaggedError(DomainRuleViolation):
    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__("Application is not flagged")


class NotFoundError(PermitError):
    """Referenced record is absent."""

    kind = "Record"

    def __init__(self, key):
        self.key = key
        super().__init__(f"{self.kind} '{_label(key)}' not found")


class ApplicationNotFoundError(NotFoundError):
    kind = "Application"


class DocumentNotFoundError(NotFoundError):
    kind = "Document"


class WaiverNotFoundError(NotFoundError):
    kind = "Waiver"


class PaymentNotFoundError(NotFoundError):
    kind = "Payment for application"


class FeeRateNotFoundError(NotFoundError):
    kind = "Fee rate"


class ConcurrencyConflictError(PermitError):
    """The aggregate changed since it was loaded."""

    def __init__(self, application_id: str, expected_version: int):
        self.application_id = application_id
        self.expected_version = expected_version
        super().__init__(
            f"Application '{application_id}' was modified concurrently "
            f"(expected version {expected_version})"
        )
