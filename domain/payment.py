"""Payment child record: a single fee payment and its finance-officer verification."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from domain.enums import OPEN_PAYMENT_STATUSES, PaymentMethod, PaymentStatus
from domain.exceptions import InvalidTransitionError, PaymentAlreadyVerifiedError
from domain.values import Money, require_text


@dataclass(eq=False)
class Payment:
    id: str
    amount: Money
    method: PaymentMethod
    created_at: datetime
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_reference: Optional[str] = None
    receipt_number: Optional[str] = None
    receipt_url: Optional[str] = None
    payment_date: Optional[datetime] = None
    failure_reason: Optional[str] = None
    refunded_by: Optional[str] = None
    refunded_at: Optional[datetime] = None
    refund_reason: Optional[str] = None
    is_verified: bool = False
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    verification_notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, amount: Money, method: PaymentMethod, now: datetime) -> "Payment":
        # Money is non-negative by construction, so a fully waived fee still yields a payable record.
        return cls(
            id=str(uuid.uuid4()),
            amount=Money(amount.amount, amount.currency),
            method=PaymentMethod(method),
            created_at=now,
            updated_at=now,
        )

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_PAYMENT_STATUSES

    def _require_status(self, operation: str, *allowed: PaymentStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(operation, allowed, self.status)

    def mark_processing(self, now: datetime) -> None:
        self._require_status("process payment", PaymentStatus.PENDING)
        self.status = PaymentStatus.PROCESSING
        self.updated_at = now

    def complete(
        self,
        transaction_reference: str,
        receipt_number: str,
        now: datetime,
        receipt_url: Optional[str] = None,
    ) -> None:
        self._require_status("complete payment", PaymentStatus.PENDING, PaymentStatus.PROCESSING)
        transaction_reference = require_text(
            transaction_reference, "transaction_reference", "Transaction reference"
        )
        receipt_number = require_text(receipt_number, "receipt_number", "Receipt number")
        self.status = PaymentStatus.COMPLETED
        self.transaction_reference = transaction_reference
        self.receipt_number = receipt_number
        self.receipt_url = receipt_url
        self.payment_date = now
        self.failure_reason = None
        self.updated_at = now

    def fail(self, reason: str, now: datetime) -> None:
        self._require_status("fail payment", PaymentStatus.PENDING, PaymentStatus.PROCESSING)
        self.failure_reason = require_text(reason, "reason", "Failure reason")
        self.status = PaymentStatus.FAILED
        self.updated_at = now

    def refund(self, refunded_by: str, reason: str, now: datetime) -> None:
        self._require_status("refund payment", PaymentStatus.COMPLETED)
        refunded_by = require_text(refunded_by, "refunded_by", "Refunded by")
        reason = require_text(reason, "reason", "Refund reason")
        self.status = PaymentStatus.REFUNDED
        self.refunded_by = refunded_by
        self.refunded_at = now
        self.refund_reason = reason
        self.updated_at = now

    def cancel(self, now: datetime) -> None:
        self._require_status("cancel payment", PaymentStatus.PENDING, PaymentStatus.PROCESSING)
        self.status = PaymentStatus.CANCELLED
        self.updated_at = now

    def verify(self, verified_by: str, now: datetime, notes: Optional[str] = None) -> None:
        """Finance officer confirms the receipt was received. Allowed once, after completion."""
        verified_by = require_text(verified_by, "verified_by", "Verified by")
        self._require_status("verify payment", PaymentStatus.COMPLETED)
        if self.is_verified:
            raise PaymentAlreadyVerifiedError(self.id)
        self.is_verified = True
        self.verified_by = verified_by
        self.verified_at = now
        self.verification_notes = notes
        self.updated_at = now
