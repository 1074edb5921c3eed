"""
Domain events recorded by the Application aggregate.
Pure data: the aggregate collects them, the caller drains them with pull_events().
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class DomainEvent:
    application_id: str
    occurred_at: datetime

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-friendly payload, used for logging and notification handlers."""
        out: dict[str, Any] = {"event": self.name}
        for key, value in asdict(self).items():
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (datetime, date)):
                value = value.isoformat()
            elif isinstance(value, Decimal):
                value = str(value)
            out[key] = value
        return out


@dataclass(frozen=True)
class ApplicationCreated(DomainEvent):
    tenant_id: str = ""
    application_number: str = ""
    application_type: Optional[Enum] = None


@dataclass(frozen=True)
class ApplicationSubmitted(DomainEvent):
    application_number: str = ""


@dataclass(frozen=True)
class ApplicationUnderReview(DomainEvent):
    reviewer: str = ""


@dataclass(frozen=True)
class DocumentVerified(DomainEvent):
    document_id: str = ""
    document_type: Optional[Enum] = None
    verified_by: str = ""


@dataclass(frozen=True)
class DocumentRejected(DomainEvent):
    document_id: str = ""
    document_type: Optional[Enum] = None
    rejected_by: str = ""
    reason: str = ""


@dataclass(frozen=True)
class DocumentExpiringSoon(DomainEvent):
    document_id: str = ""
    document_type: Optional[Enum] = None
    expiry_date: Optional[date] = None
    days_until_expiry: int = 0


@dataclass(frozen=True)
class DocumentVerificationFailedDueToExpiry(DomainEvent):
    document_id: str = ""
    document_type: Optional[Enum] = None
    expiry_date: Optional[date] = None
    attempted_by: str = ""


@dataclass(frozen=True)
class PaymentRequested(DomainEvent):
    payment_id: str = ""
    amount: Decimal = Decimal("0")
    currency: Optional[Enum] = None


@dataclass(frozen=True)
class PaymentCompleted(DomainEvent):
    payment_id: str = ""
    amount: Decimal = Decimal("0")
    currency: Optional[Enum] = None
    transaction_reference: str = ""
    receipt_number: str = ""


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    payment_id: str = ""
    reason: str = ""


@dataclass(frozen=True)
class PaymentRefunded(DomainEvent):
    payment_id: str = ""
    refunded_by: str = ""
    reason: str = ""


@dataclass(frozen=True)
class PaymentVerified(DomainEvent):
    payment_id: str = ""
    verified_by: str = ""


@dataclass(frozen=True)
class ApplicationApproved(DomainEvent):
    approved_by: str = ""
    notes: Optional[str] = None


@dataclass(frozen=True)
class ApplicationRejected(DomainEvent):
    rejected_by: str = ""
    reason: str = ""


@dataclass(frozen=True)
class ApplicationCancelled(DomainEvent):
    previous_status: Optional[Enum] = None
    payment_cancelled: bool = False


@dataclass(frozen=True)
class WaiverRequested(DomainEvent):
    waiver_id: str = ""
    waiver_type: Optional[Enum] = None
    requested_by: str = ""


@dataclass(frozen=True)
class WaiverApproved(DomainEvent):
    waiver_id: str = ""
    approved_by: str = ""
    waived_amount: Decimal = Decimal("0")
    waiver_percentage: Decimal = Decimal("0")
    new_fee: Decimal = Decimal("0")


@dataclass(frozen=True)
class WaiverRejected(DomainEvent):
    waiver_id: str = ""
    rejected_by: str = ""
    reason: str = ""


@dataclass(frozen=True)
class FeeOverridden(DomainEvent):
    original_amount: Decimal = Decimal("0")
    new_amount: Decimal = Decimal("0")
    currency: Optional[Enum] = None
    overridden_by: str = ""
    justification: str = ""


@dataclass(frozen=True)
class ApplicationFlagged(DomainEvent):
    flagged_by: str = ""
    reason: str = ""


@dataclass(frozen=True)
class ApplicationUnflagged(DomainEvent):
    unflagged_by: str = ""


ALL_EVENT_TYPES = tuple(DomainEvent.__subclasses__())
