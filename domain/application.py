"""
Application aggregate: the lifecycle state machine of a Foreign Operator Permit application.

The aggregate owns its documents, payment and waivers. Every operation validates its
inputs and guards first, then mutates, then records events; a failing operation leaves
the aggregate unchanged. Events are collected apart from state and drained by the caller
with pull_events().
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from domain import events as ev
from domain.document import DEFAULT_EXPIRY_WARNING_DAYS, Document
from domain.enums import (
    REQUIRED_DOCUMENT_TYPES,
    ApplicationStatus,
    ApplicationType,
    DocumentStatus,
    DocumentType,
    PaymentMethod,
    PaymentStatus,
    WaiverType,
)
from domain.exceptions import (
    ApplicationNotFlaggedError,
    DocumentNotFoundError,
    DocumentsNotVerifiedError,
    InvalidArgumentError,
    InvalidTransitionError,
    MissingDocumentsError,
    PaymentAlreadyCompletedError,
    PaymentNotCompletedError,
    PaymentNotFoundError,
    PendingWaiverExistsError,
    WaiverNotFoundError,
)
from domain.payment import Payment
from domain.values import FlightDetails, Money, Number, require_text
from domain.waiver import Waiver, validate_percentage

S = ApplicationStatus

NUMBER_PREFIXES = {
    ApplicationType.ONE_TIME: "FOP-OT",
    ApplicationType.BLANKET: "FOP-BL",
    ApplicationType.EMERGENCY: "FOP-EM",
}

MIN_OVERRIDE_JUSTIFICATION = 10

WAIVER_STATUSES = (S.DRAFT, S.SUBMITTED, S.UNDER_REVIEW, S.PENDING_DOCUMENTS)
NON_TERMINAL_STATUSES = (S.DRAFT, S.SUBMITTED, S.UNDER_REVIEW, S.PENDING_DOCUMENTS, S.PENDING_PAYMENT)
CANCELLABLE_STATUSES = NON_TERMINAL_STATUSES + (S.REJECTED,)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_application_number(application_type: ApplicationType, now: datetime) -> str:
    """FOP-OT-20250115-1A2B3C4D: type prefix, UTC creation date, 8 upper-case hex chars."""
    prefix = NUMBER_PREFIXES[ApplicationType(application_type)]
    return f"{prefix}-{now.astimezone(timezone.utc):%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def _validate_period(start: date, end: date) -> None:
    if start is None or end is None:
        raise InvalidArgumentError("Requested start and end dates are required", "requested_period")
    if end < start:
        raise InvalidArgumentError("End date must be on or after start date", "requested_end_date")


@dataclass
class FeeOverride:
    original_amount: Money
    new_amount: Money
    justification: str
    overridden_by: str
    overridden_at: datetime


@dataclass
class FlagRecord:
    reason: str
    flagged_by: str
    flagged_at: datetime


@dataclass(eq=False)
class Application:
    id: str
    tenant_id: str
    application_number: str
    application_type: ApplicationType
    operator_id: str
    aircraft_id: str
    flight_details: FlightDetails
    requested_start_date: date
    requested_end_date: date
    calculated_fee: Money
    created_at: datetime
    updated_at: datetime
    status: ApplicationStatus = S.DRAFT
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    fee_override: Optional[FeeOverride] = None
    flag_record: Optional[FlagRecord] = None
    documents: dict[DocumentType, Document] = field(default_factory=dict)
    payment: Optional[Payment] = None
    waivers: list[Waiver] = field(default_factory=list)
    version: int = 0
    _events: list[ev.DomainEvent] = field(default_factory=list, repr=False)

    @classmethod
    def create(
        cls,
        tenant_id: str,
        application_type: ApplicationType,
        operator_id: str,
        aircraft_id: str,
        flight_details: FlightDetails,
        requested_start_date: date,
        requested_end_date: date,
        calculated_fee: Money,
        now: Optional[datetime] = None,
    ) -> "Application":
        now = now or _utcnow()
        tenant_id = require_text(tenant_id, "tenant_id", "Tenant ID")
        operator_id = require_text(operator_id, "operator_id", "Operator ID")
        aircraft_id = require_text(aircraft_id, "aircraft_id", "Aircraft ID")
        if flight_details is None:
            raise InvalidArgumentError("Flight details are required", "flight_details")
        if calculated_fee is None:
            raise InvalidArgumentError("Calculated fee is required", "calculated_fee")
        _validate_period(requested_start_date, requested_end_date)
        application_type = ApplicationType(application_type)

        application = cls(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            application_number=generate_application_number(application_type, now),
            application_type=application_type,
            operator_id=operator_id,
            aircraft_id=aircraft_id,
            flight_details=flight_details,
            requested_start_date=requested_start_date,
            requested_end_date=requested_end_date,
            calculated_fee=calculated_fee,
            created_at=now,
            updated_at=now,
        )
        application._record(ev.ApplicationCreated(
            application.id,
            now,
            tenant_id=tenant_id,
            application_number=application.application_number,
            application_type=application_type,
        ))
        return application

    def _record(self, event: ev.DomainEvent) -> None:
        self._events.append(event)

    def pull_events(self) -> list[ev.DomainEvent]:
        """Return and clear the events recorded since the last drain."""
        drained, self._events = self._events, []
        return drained

    @property
    def pending_events(self) -> tuple[ev.DomainEvent, ...]:
        return tuple(self._events)

    def _ensure_status(self, operation: str, allowed: Iterable[ApplicationStatus]) -> None:
        allowed = tuple(allowed)
        if self.status not in allowed:
            raise InvalidTransitionError(operation, allowed, self.status)

    def _touch(self, now: datetime) -> None:
        self.updated_at = now

    def find_document(self, document_id: str) -> Document:
        for document in self.documents.values():
            if document.id == document_id:
                return document
        raise DocumentNotFoundError(document_id)

    def _find_waiver(self, waiver_id: str) -> Waiver:
        for waiver in self.waivers:
            if waiver.id == waiver_id:
                return waiver
        raise WaiverNotFoundError(waiver_id)

    def _require_payment(self) -> Payment:
        if self.payment is None:
            raise PaymentNotFoundError(self.id)
        return self.payment

    @property
    def is_flagged(self) -> bool:
        return self.flag_record is not None

    @property
    def pending_waiver(self) -> Optional[Waiver]:
        return next((w for w in self.waivers if w.is_pending), None)

    def missing_document_types(self) -> list[DocumentType]:
        return [t for t in REQUIRED_DOCUMENT_TYPES if t not in self.documents]

    def unverified_document_types(self) -> list[DocumentType]:
        return [t for t, d in self.documents.items() if not d.is_verified]

    def all_documents_verified(self) -> bool:
        return all(d.is_verified for d in self.documents.values())

    def update_flight_details(self, flight_details: FlightDetails, now: Optional[datetime] = None) -> None:
        self._ensure_status("update flight details", [S.DRAFT])
        if flight_details is None:
            raise InvalidArgumentError("Flight details are required", "flight_details")
        self.flight_details = flight_details
        self._touch(now or _utcnow())

    def update_requested_period(self, start_date: date, end_date: date, now: Optional[datetime] = None) -> None:
        self._ensure_status("update requested period", [S.DRAFT])
        _validate_period(start_date, end_date)
        self.requested_start_date = start_date
        self.requested_end_date = end_date
        self._touch(now or _utcnow())

    def update_calculated_fee(self, fee: Money, now: Optional[datetime] = None) -> None:
        self._ensure_status("update calculated fee", [S.DRAFT])
        if fee is None:
            raise InvalidArgumentError("Fee is required", "calculated_fee")
        self.calculated_fee = fee
        self._touch(now or _utcnow())

    def add_document(self, document: Document, now: Optional[datetime] = None) -> Optional[Document]:
        """Attach a document, replacing any prior one of the same type. Returns the replaced document."""
        self._ensure_status("add document", [S.DRAFT, S.PENDING_DOCUMENTS])
        if document is None:
            raise InvalidArgumentError("Document is required", "document")
        replaced = self.documents.get(document.document_type)
        self.documents[document.document_type] = document
        self._touch(now or _utcnow())
        return replaced

    def submit(self, now: Optional[datetime] = None) -> None:
        self._ensure_status("submit", [S.DRAFT])
        missing = self.missing_document_types()
        if missing:
            raise MissingDocumentsError(missing)
        now = now or _utcnow()
        self.status = S.SUBMITTED
        self.submitted_at = now
        self._touch(now)
        self._record(ev.ApplicationSubmitted(self.id, now, application_number=self.application_number))

    def start_review(self, reviewer: str, now: Optional[datetime] = None) -> None:
        self._ensure_status("start review", [S.SUBMITTED])
        reviewer = require_text(reviewer, "reviewer", "Reviewer")
        now = now or _utcnow()
        self.status = S.UNDER_REVIEW
        self.reviewed_by = reviewer
        self.reviewed_at = now
        self._touch(now)
        self._record(ev.ApplicationUnderReview(self.id, now, reviewer=reviewer))

    def verify_document(
        self,
        document_id: str,
        verified_by: str,
        now: Optional[datetime] = None,
        warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS,
    ) -> Document:
        """
        Verify one document as of `now`. Raises DocumentExpiredError, leaving the
        aggregate untouched, when the document expired before the verification date.
        Verifying the last unverified document moves PendingDocuments back to UnderReview.
        """
        now = now or _utcnow()
        document = self.find_document(document_id)
        document.verify(verified_by, now)
        self._touch(now)
        self._record(ev.DocumentVerified(
            self.id, now,
            document_id=document.id,
            document_type=document.document_type,
            verified_by=document.verified_by,
        ))
        today = now.date()
        if document.is_expiring_soon(today, warning_days):
            self._record(ev.DocumentExpiringSoon(
                self.id, now,
                document_id=document.id,
                document_type=document.document_type,
                expiry_date=document.expiry_date,
                days_until_expiry=document.days_until_expiry(today),
            ))
        if self.status == S.PENDING_DOCUMENTS and self.all_documents_verified():
            self.status = S.UNDER_REVIEW
        return document

    def reject_document(
        self, document_id: str, reason: str, rejected_by: str, now: Optional[datetime] = None
    ) -> Document:
        self._ensure_status("reject document", NON_TERMINAL_STATUSES)
        now = now or _utcnow()
        document = self.find_document(document_id)
        document.reject(reason, rejected_by, now)
        self.status = S.PENDING_DOCUMENTS
        self._touch(now)
        self._record(ev.DocumentRejected(
            self.id, now,
            document_id=document.id,
            document_type=document.document_type,
            rejected_by=document.verified_by,
            reason=document.rejection_reason,
        ))
        return document

    def mark_expired_documents(self, as_of: Optional[date] = None, now: Optional[datetime] = None) -> list[Document]:
        """Housekeeping: mark every document past its expiry date as Expired."""
        now = now or _utcnow()
        as_of = as_of or now.date()
        expired = [
            d for d in self.documents.values()
            if d.is_expired(as_of) and d.status != DocumentStatus.EXPIRED
        ]
        for document in expired:
            document.mark_expired(now)
        if expired:
            self._touch(now)
        return expired

    def request_payment(self, method: PaymentMethod, now: Optional[datetime] = None) -> Payment:
        """Open a payment for the current fee. An earlier open payment is cancelled; a completed one blocks a second charge."""
        self._ensure_status("request payment", [S.UNDER_REVIEW])
        previous = self.payment
        if previous is not None and previous.status == PaymentStatus.COMPLETED:
            raise PaymentAlreadyCompletedError(previous.id)
        unverified = self.unverified_document_types()
        if unverified:
            raise DocumentsNotVerifiedError(unverified)
        now = now or _utcnow()
        if previous is not None and previous.is_open:
            previous.cancel(now)
        self.payment = Payment.create(self.calculated_fee, method, now)
        self.status = S.PENDING_PAYMENT
        self._touch(now)
        self._record(ev.PaymentRequested(
            self.id, now,
            payment_id=self.payment.id,
            amount=self.payment.amount.amount,
            currency=self.payment.amount.currency,
        ))
        return self.payment

    def mark_payment_processing(self, now: Optional[datetime] = None) -> None:
        self._ensure_status("mark payment processing", [S.PENDING_PAYMENT])
        payment = self._require_payment()
        now = now or _utcnow()
        payment.mark_processing(now)
        self._touch(now)

    def complete_payment(
        self,
        transaction_reference: str,
        receipt_number: str,
        receipt_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        self._ensure_status("complete payment", [S.PENDING_PAYMENT])
        payment = self._require_payment()
        now = now or _utcnow()
        payment.complete(transaction_reference, receipt_number, now, receipt_url=receipt_url)
        self._touch(now)
        self._record(ev.PaymentCompleted(
            self.id, now,
            payment_id=payment.id,
            amount=payment.amount.amount,
            currency=payment.amount.currency,
            transaction_reference=payment.transaction_reference,
            receipt_number=payment.receipt_number,
        ))

    def fail_payment(self, reason: str, now: Optional[datetime] = None) -> None:
        self._ensure_status("fail payment", [S.PENDING_PAYMENT])
        payment = self._require_payment()
        now = now or _utcnow()
        payment.fail(reason, now)
        self._touch(now)
        self._record(ev.PaymentFailed(self.id, now, payment_id=payment.id, reason=payment.failure_reason))

    def refund_payment(self, refunded_by: str, reason: str, now: Optional[datetime] = None) -> None:
        payment = self._require_payment()
        now = now or _utcnow()
        payment.refund(refunded_by, reason, now)
        self._touch(now)
        self._record(ev.PaymentRefunded(
            self.id, now, payment_id=payment.id, refunded_by=payment.refunded_by, reason=payment.refund_reason
        ))

    def verify_payment(self, verified_by: str, notes: Optional[str] = None, now: Optional[datetime] = None) -> None:
        payment = self._require_payment()
        now = now or _utcnow()
        payment.verify(verified_by, now, notes=notes)
        self._touch(now)
        self._record(ev.PaymentVerified(self.id, now, payment_id=payment.id, verified_by=payment.verified_by))

    def approve(self, approved_by: str, notes: Optional[str] = None, now: Optional[datetime] = None) -> None:
        self._ensure_status("approve", [S.PENDING_PAYMENT, S.UNDER_REVIEW])
        if self.payment is None or self.payment.status != PaymentStatus.COMPLETED:
            raise PaymentNotCompletedError(self.payment.status if self.payment else None)
        approved_by = require_text(approved_by, "approved_by", "Approved by")
        now = now or _utcnow()
        self.status = S.APPROVED
        self.approved_at = now
        self.approved_by = approved_by
        self.review_notes = notes
        self._touch(now)
        self._record(ev.ApplicationApproved(self.id, now, approved_by=approved_by, notes=notes))

    def reject(self, rejected_by: str, reason: str, now: Optional[datetime] = None) -> None:
        self._ensure_status("reject", NON_TERMINAL_STATUSES)
        rejected_by = require_text(rejected_by, "rejected_by", "Rejected by")
        reason = require_text(reason, "reason", "Rejection reason")
        now = now or _utcnow()
        self.status = S.REJECTED
        self.reviewed_by = rejected_by
        self.reviewed_at = now
        self.rejection_reason = reason
        self._touch(now)
        self._record(ev.ApplicationRejected(self.id, now, rejected_by=rejected_by, reason=reason))

    def cancel(self, reason: Optional[str] = None, now: Optional[datetime] = None) -> None:
        """Cancel the application. An open payment is cancelled with it; a completed one is left for refund."""
        self._ensure_status("cancel", CANCELLABLE_STATUSES)
        now = now or _utcnow()
        previous = self.status
        payment_cancelled = False
        if self.payment is not None and self.payment.is_open:
            self.payment.cancel(now)
            payment_cancelled = True
        self.status = S.CANCELLED
        self.cancelled_at = now
        self.cancellation_reason = reason.strip() if reason and reason.strip() else None
        self._touch(now)
        self._record(ev.ApplicationCancelled(
            self.id, now, previous_status=previous, payment_cancelled=payment_cancelled
        ))

    def override_fee(
        self, new_fee: Money, justification: str, overridden_by: str, now: Optional[datetime] = None
    ) -> None:
        self._ensure_status("override fee", [S.DRAFT, S.UNDER_REVIEW])
        if new_fee is None:
            raise InvalidArgumentError("New fee is required", "new_fee")
        justification = require_text(justification, "justification", "Justification")
        if len(justification) < MIN_OVERRIDE_JUSTIFICATION:
            raise InvalidArgumentError(
                f"Justification must be at least {MIN_OVERRIDE_JUSTIFICATION} characters", "justification"
            )
        overridden_by = require_text(overridden_by, "overridden_by", "Overridden by")
        now = now or _utcnow()
        original = self.calculated_fee
        self.fee_override = FeeOverride(
            original_amount=original,
            new_amount=new_fee,
            justification=justification,
            overridden_by=overridden_by,
            overridden_at=now,
        )
        self.calculated_fee = new_fee
        self._touch(now)
        self._record(ev.FeeOverridden(
            self.id, now,
            original_amount=original.amount,
            new_amount=new_fee.amount,
            currency=new_fee.currency,
            overridden_by=overridden_by,
            justification=justification,
        ))

    def request_waiver(
        self, waiver_type: WaiverType, reason: str, requested_by: str, now: Optional[datetime] = None
    ) -> Waiver:
        self._ensure_status("request waiver", WAIVER_STATUSES)
        pending = self.pending_waiver
        if pending is not None:
            raise PendingWaiverExistsError(pending.id)
        now = now or _utcnow()
        waiver = Waiver.create(waiver_type, reason, requested_by, now)
        self.waivers.append(waiver)
        self._touch(now)
        self._record(ev.WaiverRequested(
            self.id, now, waiver_id=waiver.id, waiver_type=waiver.waiver_type, requested_by=waiver.requested_by
        ))
        return waiver

    def approve_waiver(
        self, waiver_id: str, approved_by: str, percentage: Number, now: Optional[datetime] = None
    ) -> Waiver:
        """Approve a pending waiver and reduce the calculated fee by fee x percentage / 100."""
        self._ensure_status("approve waiver", WAIVER_STATUSES)
        waiver = self._find_waiver(waiver_id)
        percentage = validate_percentage(percentage)
        waived = self.calculated_fee.multiply(percentage / Decimal(100))
        new_fee = self.calculated_fee - waived
        now = now or _utcnow()
        waiver.approve(approved_by, waived, percentage, now)
        self.calculated_fee = new_fee
        self._touch(now)
        self._record(ev.WaiverApproved(
            self.id, now,
            waiver_id=waiver.id,
            approved_by=waiver.approved_by,
            waived_amount=waived.amount,
            waiver_percentage=percentage,
            new_fee=new_fee.amount,
        ))
        return waiver

    def reject_waiver(
        self, waiver_id: str, rejected_by: str, reason: str, now: Optional[datetime] = None
    ) -> Waiver:
        waiver = self._find_waiver(waiver_id)
        now = now or _utcnow()
        waiver.reject(rejected_by, reason, now)
        self._touch(now)
        self._record(ev.WaiverRejected(
            self.id, now, waiver_id=waiver.id, rejected_by=waiver.rejected_by, reason=waiver.rejection_reason
        ))
        return waiver

    def flag(self, reason: str, flagged_by: str, now: Optional[datetime] = None) -> None:
        """Set the review flag. Flagging an already flagged application replaces the reason."""
        reason = require_text(reason, "reason", "Flag reason")
        flagged_by = require_text(flagged_by, "flagged_by", "Flagged by")
        now = now or _utcnow()
        self.flag_record = FlagRecord(reason=reason, flagged_by=flagged_by, flagged_at=now)
        self._touch(now)
        self._record(ev.ApplicationFlagged(self.id, now, flagged_by=flagged_by, reason=reason))

    def unflag(self, unflagged_by: str, now: Optional[datetime] = None) -> None:
        if not self.is_flagged:
            raise ApplicationNotFlaggedError(self.id)
        unflagged_by = require_text(unflagged_by, "unflagged_by", "Unflagged by")
        now = now or _utcnow()
        self.flag_record = None
        self._touch(now)
        self._record(ev.ApplicationUnflagged(self.id, now, unflagged_by=unflagged_by))
