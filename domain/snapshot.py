"""
JSON-friendly snapshot of an Application aggregate, used by the repository to persist
the aggregate and its children as one document. Pending events are not part of the snapshot.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from domain.application import Application, FeeOverride, FlagRecord
from domain.document import Document
from domain.enums import (
    ApplicationStatus,
    ApplicationType,
    DocumentStatus,
    DocumentType,
    PaymentMethod,
    PaymentStatus,
    WaiverStatus,
    WaiverType,
)
from domain.payment import Payment
from domain.values import FlightDetails, Money
from domain.waiver import Waiver

SNAPSHOT_VERSION = 1


def _dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _d(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_d(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _money(value: Optional[Money]) -> Optional[dict]:
    return value.to_dict() if value is not None else None


def _parse_money(value: Optional[dict]) -> Optional[Money]:
    return Money.from_dict(value) if value else None


def _document_to_dict(doc: Document) -> dict[str, Any]:
    return {
        "id": doc.id,
        "document_type": doc.document_type.value,
        "file_name": doc.file_name,
        "file_size": doc.file_size,
        "mime_type": doc.mime_type,
        "locator": doc.locator,
        "status": doc.status.value,
        "expiry_date": _d(doc.expiry_date),
        "verified_at": _dt(doc.verified_at),
        "verified_by": doc.verified_by,
        "rejection_reason": doc.rejection_reason,
        "uploaded_at": _dt(doc.uploaded_at),
        "uploaded_by": doc.uploaded_by,
        "updated_at": _dt(doc.updated_at),
    }


def _document_from_dict(data: dict[str, Any]) -> Document:
    return Document(
        id=data["id"],
        document_type=DocumentType(data["document_type"]),
        file_name=data["file_name"],
        file_size=data["file_size"],
        mime_type=data["mime_type"],
        locator=data["locator"],
        uploaded_by=data["uploaded_by"],
        uploaded_at=_parse_dt(data["uploaded_at"]),
        status=DocumentStatus(data["status"]),
        expiry_date=_parse_d(data.get("expiry_date")),
        verified_at=_parse_dt(data.get("verified_at")),
        verified_by=data.get("verified_by"),
        rejection_reason=data.get("rejection_reason"),
        updated_at=_parse_dt(data.get("updated_at")),
    )


def _payment_to_dict(payment: Payment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "amount": _money(payment.amount),
        "method": payment.method.value,
        "status": payment.status.value,
        "transaction_reference": payment.transaction_reference,
        "receipt_number": payment.receipt_number,
        "receipt_url": payment.receipt_url,
        "payment_date": _dt(payment.payment_date),
        "failure_reason": payment.failure_reason,
        "refunded_by": payment.refunded_by,
        "refunded_at": _dt(payment.refunded_at),
        "refund_reason": payment.refund_reason,
        "is_verified": payment.is_verified,
        "verified_by": payment.verified_by,
        "verified_at": _dt(payment.verified_at),
        "verification_notes": payment.verification_notes,
        "created_at": _dt(payment.created_at),
        "updated_at": _dt(payment.updated_at),
    }


def _payment_from_dict(data: dict[str, Any]) -> Payment:
    return Payment(
        id=data["id"],
        amount=_parse_money(data["amount"]),
        method=PaymentMethod(data["method"]),
        created_at=_parse_dt(data["created_at"]),
        status=PaymentStatus(data["status"]),
        transaction_reference=data.get("transaction_reference"),
        receipt_number=data.get("receipt_number"),
        receipt_url=data.get("receipt_url"),
        payment_date=_parse_dt(data.get("payment_date")),
        failure_reason=data.get("failure_reason"),
        refunded_by=data.get("refunded_by"),
        refunded_at=_parse_dt(data.get("refunded_at")),
        refund_reason=data.get("refund_reason"),
        is_verified=bool(data.get("is_verified")),
        verified_by=data.get("verified_by"),
        verified_at=_parse_dt(data.get("verified_at")),
        verification_notes=data.get("verification_notes"),
        updated_at=_parse_dt(data.get("updated_at")),
    )


def _waiver_to_dict(waiver: Waiver) -> dict[str, Any]:
    return {
        "id": waiver.id,
        "waiver_type": waiver.waiver_type.value,
        "status": waiver.status.value,
        "reason": waiver.reason,
        "requested_by": waiver.requested_by,
        "requested_at": _dt(waiver.requested_at),
        "waived_amount": _money(waiver.waived_amount),
        "waiver_percentage": str(waiver.waiver_percentage) if waiver.waiver_percentage is not None else None,
        "approved_by": waiver.approved_by,
        "approved_at": _dt(waiver.approved_at),
        "rejected_by": waiver.rejected_by,
        "rejected_at": _dt(waiver.rejected_at),
        "rejection_reason": waiver.rejection_reason,
        "updated_at": _dt(waiver.updated_at),
    }


def _waiver_from_dict(data: dict[str, Any]) -> Waiver:
    percentage = data.get("waiver_percentage")
    return Waiver(
        id=data["id"],
        waiver_type=WaiverType(data["waiver_type"]),
        reason=data["reason"],
        requested_by=data["requested_by"],
        requested_at=_parse_dt(data["requested_at"]),
        status=WaiverStatus(data["status"]),
        waived_amount=_parse_money(data.get("waived_amount")),
        waiver_percentage=Decimal(percentage) if percentage is not None else None,
        approved_by=data.get("approved_by"),
        approved_at=_parse_dt(data.get("approved_at")),
        rejected_by=data.get("rejected_by"),
        rejected_at=_parse_dt(data.get("rejected_at")),
        rejection_reason=data.get("rejection_reason"),
        updated_at=_parse_dt(data.get("updated_at")),
    )


def to_snapshot(app: Application) -> dict[str, Any]:
    """Serialize the aggregate (without pending events) to a JSON-compatible dict."""
    override = app.fee_override
    flag = app.flag_record
    return {
        "snapshot_version": SNAPSHOT_VERSION,
        "id": app.id,
        "tenant_id": app.tenant_id,
        "application_number": app.application_number,
        "application_type": app.application_type.value,
        "status": app.status.value,
        "operator_id": app.operator_id,
        "aircraft_id": app.aircraft_id,
        "flight_details": app.flight_details.to_dict(),
        "requested_start_date": _d(app.requested_start_date),
        "requested_end_date": _d(app.requested_end_date),
        "calculated_fee": _money(app.calculated_fee),
        "submitted_at": _dt(app.submitted_at),
        "reviewed_at": _dt(app.reviewed_at),
        "reviewed_by": app.reviewed_by,
        "review_notes": app.review_notes,
        "approved_at": _dt(app.approved_at),
        "approved_by": app.approved_by,
        "rejection_reason": app.rejection_reason,
        "cancelled_at": _dt(app.cancelled_at),
        "cancellation_reason": app.cancellation_reason,
        "fee_override": {
            "original_amount": _money(override.original_amount),
            "new_amount": _money(override.new_amount),
            "justification": override.justification,
            "overridden_by": override.overridden_by,
            "overridden_at": _dt(override.overridden_at),
        } if override else None,
        "flag": {
            "reason": flag.reason,
            "flagged_by": flag.flagged_by,
            "flagged_at": _dt(flag.flagged_at),
        } if flag else None,
        "documents": [_document_to_dict(d) for d in app.documents.values()],
        "payment": _payment_to_dict(app.payment) if app.payment else None,
        "waivers": [_waiver_to_dict(w) for w in app.waivers],
        "created_at": _dt(app.created_at),
        "updated_at": _dt(app.updated_at),
        "version": app.version,
    }


def from_snapshot(data: dict[str, Any]) -> Application:
    """Rebuild an aggregate from a snapshot. The result carries no pending events."""
    override = data.get("fee_override")
    flag = data.get("flag")
    documents = [_document_from_dict(d) for d in data.get("documents") or []]
    return Application(
        id=data["id"],
        tenant_id=data["tenant_id"],
        application_number=data["application_number"],
        application_type=ApplicationType(data["application_type"]),
        operator_id=data["operator_id"],
        aircraft_id=data["aircraft_id"],
        flight_details=FlightDetails.from_dict(data["flight_details"]),
        requested_start_date=_parse_d(data["requested_start_date"]),
        requested_end_date=_parse_d(data["requested_end_date"]),
        calculated_fee=_parse_money(data["calculated_fee"]),
        created_at=_parse_dt(data["created_at"]),
        updated_at=_parse_dt(data["updated_at"]),
        status=ApplicationStatus(data["status"]),
        submitted_at=_parse_dt(data.get("submitted_at")),
        reviewed_at=_parse_dt(data.get("reviewed_at")),
        reviewed_by=data.get("reviewed_by"),
        review_notes=data.get("review_notes"),
        approved_at=_parse_dt(data.get("approved_at")),
        approved_by=data.get("approved_by"),
        rejection_reason=data.get("rejection_reason"),
        cancelled_at=_parse_dt(data.get("cancelled_at")),
        cancellation_reason=data.get("cancellation_reason"),
        fee_override=FeeOverride(
            original_amount=_parse_money(override["original_amount"]),
            new_amount=_parse_money(override["new_amount"]),
            justification=override["justification"],
            overridden_by=override["overridden_by"],
            overridden_at=_parse_dt(override["overridden_at"]),
        ) if override else None,
        flag_record=FlagRecord(
            reason=flag["reason"],
            flagged_by=flag["flagged_by"],
            flagged_at=_parse_dt(flag["flagged_at"]),
        ) if flag else None,
        documents={d.document_type: d for d in documents},
        payment=_payment_from_dict(data["payment"]) if data.get("payment") else None,
        waivers=[_waiver_from_dict(w) for w in data.get("waivers") or []],
        version=int(data.get("version", 0)),
    )
