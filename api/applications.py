from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_tenant_id
from database import get_db
from domain.application import Application
from domain.enums import ApplicationStatus, DocumentType
from domain.snapshot import to_snapshot
from schemas.application import (
    ApplicationCreate,
    ApplicationUpdate,
    ApproveBody,
    CancelBody,
    DocumentReject,
    DocumentVerify,
    ExpireDocuments,
    FeeOverrideBody,
    FlagBody,
    PaymentOutcome,
    PaymentRequestBody,
    RejectBody,
    ReviewStart,
    UnflagBody,
    WaiverApproveBody,
    WaiverRejectBody,
    WaiverRequestBody,
)
from services import applications as svc
from services.document_store import get_document_store
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/applications", tags=["applications"])


def _app_to_response(app: Application) -> dict[str, Any]:
    """Serialize the aggregate with camelCase keys for the frontend. Storage locators stay server-side."""
    data = to_snapshot(app)
    data.pop("snapshot_version", None)
    data["is_flagged"] = app.is_flagged
    data["missing_document_types"] = [t.value for t in app.missing_document_types()]
    for document in data.get("documents", []):
        document.pop("locator", None)
    return dict_keys_to_camel(data)


def _document_to_response(document) -> dict[str, Any]:
    return dict_keys_to_camel({
        "id": document.id,
        "document_type": document.document_type,
        "file_name": document.file_name,
        "file_size": document.file_size,
        "mime_type": document.mime_type,
        "status": document.status,
        "expiry_date": document.expiry_date,
        "uploaded_by": document.uploaded_by,
        "uploaded_at": document.uploaded_at,
        "verified_by": document.verified_by,
        "verified_at": document.verified_at,
        "rejection_reason": document.rejection_reason,
    })


def _waiver_to_response(waiver) -> dict[str, Any]:
    return dict_keys_to_camel({
        "id": waiver.id,
        "waiver_type": waiver.waiver_type,
        "status": waiver.status,
        "reason": waiver.reason,
        "requested_by": waiver.requested_by,
        "requested_at": waiver.requested_at,
        "approved_by": waiver.approved_by,
        "waived_amount": waiver.waived_amount.to_dict() if waiver.waived_amount else None,
        "waiver_percentage": waiver.waiver_percentage,
        "rejected_by": waiver.rejected_by,
        "rejection_reason": waiver.rejection_reason,
    })


@router.get("")
async def list_applications(
    status: Optional[ApplicationStatus] = None,
    flagged: Optional[bool] = None,
    limit: int = 100,
    offset: int = 0,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    apps = await svc.list_applications(db, tenant_id, status=status, flagged=flagged, limit=limit, offset=offset)
    return [_app_to_response(a) for a in apps]


@router.get("/{application_id}")
async def get_application(
    application_id: str, tenant_id: str = Depends(get_tenant_id), db: AsyncSession = Depends(get_db)
):
    return _app_to_response(await svc.get_application(db, tenant_id, application_id))


@router.post("", status_code=201)
async def create_application(
    body: ApplicationCreate, tenant_id: str = Depends(get_tenant_id), db: AsyncSession = Depends(get_db)
):
    app = await svc.create_application(
        db,
        tenant_id,
        application_type=body.application_type,
        operator_id=body.operator_id,
        aircraft_id=body.aircraft_id,
        flight_details=body.flight_details.to_domain(),
        requested_start_date=body.requested_start_date,
        requested_end_date=body.requested_end_date,
        seat_count=body.seat_count,
        mtow_kg=body.mtow_kg,
    )
    return _app_to_response(app)


@router.patch("/{application_id}")
async def update_application(
    application_id: str,
    body: ApplicationUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    app = await svc.update_draft(
        db,
        tenant_id,
        application_id,
        flight_details=body.flight_details.to_domain() if body.flight_details else None,
        requested_start_date=body.requested_start_date,
        requested_end_date=body.requested_end_date,
        calculated_fee=body.calculated_fee.to_domain() if body.calculated_fee else None,
    )
    return _app_to_response(app)


@router.post("/{application_id}/documents", status_code=201)
async def upload_document(
    application_id: str,
    file: UploadFile = File(...),
    document_type: DocumentType = Form(..., alias="documentType"),
    uploaded_by: str = Form(..., alias="uploadedBy"),
    expiry_date: Optional[date] = Form(None, alias="expiryDate"),
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    data = await file.read()
    document = await svc.upload_document(
        db,
        tenant_id,
        application_id,
        document_type=document_type,
        file_name=file.filename or "document",
        data=data,
        mime_type=file.content_type or "application/octet-stream",
        uploaded_by=uploaded_by,
        expiry_date=expiry_date,
        store=get_document_store(),
    )
    return _document_to_response(document)


@router.post("/{application_id}/submit")
async def submit_application(
    application_id: str, tenant_id: str = Depends(get_tenant_id), db: AsyncSession = Depends(get_db)
):
    return _app_to_response(await svc.submit_application(db, tenant_id, application_id))


@router.post("/{application_id}/review")
async def start_review(
    application_id: str,
    body: ReviewStart,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _app_to_response(await svc.start_review(db, tenant_id, application_id, body.reviewer))


@router.post("/{application_id}/documents/{document_id}/verify")
async def verify_document(
    application_id: str,
    document_id: str,
    body: DocumentVerify,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    document = await svc.verify_document(db, tenant_id, application_id, document_id, body.verified_by)
    return _document_to_response(document)


@router.post("/{application_id}/documents/{document_id}/reject")
async def reject_document(
    application_id: str,
    document_id: str,
    body: DocumentReject,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    document = await svc.reject_document(db, tenant_id, application_id, document_id, body.reason, body.rejected_by)
    return _document_to_response(document)


@router.post("/{application_id}/documents/expire")
async def expire_documents(
    application_id: str,
    body: ExpireDocuments,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    expired = await svc.expire_documents(db, tenant_id, application_id, body.as_of)
    return [_document_to_response(d) for d in expired]


@router.post("/{application_id}/payment")
async def request_payment(
    application_id: str,
    body: PaymentRequestBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _app_to_response(await svc.request_payment(db, tenant_id, application_id, body.method))


@router.post("/{application_id}/payment/outcome")
async def record_payment_outcome(
    application_id: str,
    body: PaymentOutcome,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    app = await svc.record_payment_outcome(
        db,
        tenant_id,
        application_id,
        body.outcome,
        transaction_reference=body.transaction_reference,
        receipt_number=body.receipt_number,
        receipt_url=body.receipt_url,
        reason=body.reason,
        actor=body.actor,
        notes=body.notes,
    )
    return _app_to_response(app)


@router.post("/{application_id}/approve")
async def approve_application(
    application_id: str,
    body: ApproveBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _app_to_response(
        await svc.approve_application(db, tenant_id, application_id, body.approved_by, body.notes)
    )


@router.post("/{application_id}/reject")
async def reject_application(
    application_id: str,
    body: RejectBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _app_to_response(
        await svc.reject_application(db, tenant_id, application_id, body.rejected_by, body.reason)
    )


@router.post("/{application_id}/cancel")
async def cancel_application(
    application_id: str,
    body: CancelBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _app_to_response(await svc.cancel_application(db, tenant_id, application_id, body.reason))


@router.post("/{application_id}/fee-override")
async def override_fee(
    application_id: str,
    body: FeeOverrideBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    app = await svc.override_fee(
        db, tenant_id, application_id, body.new_fee.to_domain(), body.justification, body.overridden_by
    )
    return _app_to_response(app)


@router.post("/{application_id}/waivers", status_code=201)
async def request_waiver(
    application_id: str,
    body: WaiverRequestBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    waiver = await svc.request_waiver(
        db, tenant_id, application_id, body.waiver_type, body.reason, body.requested_by
    )
    return _waiver_to_response(waiver)


@router.post("/{application_id}/waivers/{waiver_id}/approve")
async def approve_waiver(
    application_id: str,
    waiver_id: str,
    body: WaiverApproveBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    waiver = await svc.approve_waiver(db, tenant_id, application_id, waiver_id, body.approved_by, body.percentage)
    return _waiver_to_response(waiver)


@router.post("/{application_id}/waivers/{waiver_id}/reject")
async def reject_waiver(
    application_id: str,
    waiver_id: str,
    body: WaiverRejectBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    waiver = await svc.reject_waiver(db, tenant_id, application_id, waiver_id, body.rejected_by, body.reason)
    return _waiver_to_response(waiver)


@router.post("/{application_id}/flag")
async def flag_application(
    application_id: str,
    body: FlagBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _app_to_response(await svc.flag_application(db, tenant_id, application_id, body.reason, body.flagged_by))


@router.post("/{application_id}/unflag")
async def unflag_application(
    application_id: str,
    body: UnflagBody,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _app_to_response(await svc.unflag_application(db, tenant_id, application_id, body.unflagged_by))
