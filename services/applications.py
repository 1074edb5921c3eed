"""
Application use cases: load the aggregate, apply one operation, save with a version
check and commit. Drained events reach the dispatcher only once the commit succeeds.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from domain import events as ev
from domain.application import Application
from domain.document import Document
from domain.enums import ApplicationType, DocumentType, PaymentMethod, WaiverType
from domain.exceptions import DocumentExpiredError, InvalidArgumentError, PermitError
from domain.values import FlightDetails, Money, Number
from services.document_store import DocumentStore, get_document_store
from services.events import EventDispatcher, dispatcher as default_dispatcher
from services.fee_policy import PermitFeePolicy
from services.permit_fees import calculate_permit_fee
from services.repositories import ApplicationRepository, FeeConfigurationRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAYMENT_OUTCOMES = ("processing", "completed", "failed", "refunded", "verified")


async def permit_fee_policy_for(session: AsyncSession, tenant_id: str) -> PermitFeePolicy:
    config = await FeeConfigurationRepository(session).get_active(tenant_id)
    return PermitFeePolicy.from_configuration(config)


def _publish(events: list[ev.DomainEvent], events_dispatcher: Optional[EventDispatcher]) -> None:
    if events:
        (events_dispatcher or default_dispatcher).dispatch(events)


async def _commit_and_publish(
    session: AsyncSession, app: Application, events_dispatcher: Optional[EventDispatcher]
) -> None:
    events = app.pull_events()
    await session.commit()
    _publish(events, events_dispatcher)


async def _apply(
    session: AsyncSession,
    tenant_id: str,
    application_id: str,
    operation: str,
    action: Callable[[Application], T],
    events_dispatcher: Optional[EventDispatcher] = None,
) -> tuple[Application, T]:
    repo = ApplicationRepository(session)
    app = await repo.get(tenant_id, application_id)
    try:
        result = action(app)
    except PermitError as exc:
        logger.warning("%s rejected for application %s: %s", operation, application_id, exc)
        raise
    await repo.save(app)
    await _commit_and_publish(session, app, events_dispatcher)
    logger.info("%s: application %s now %s (v%d)", operation, app.application_number, app.status.value, app.version)
    return app, result


async def get_application(session: AsyncSession, tenant_id: str, application_id: str) -> Application:
    return await ApplicationRepository(session).get(tenant_id, application_id)


async def list_applications(session: AsyncSession, tenant_id: str, **filters) -> list[Application]:
    return await ApplicationRepository(session).list(tenant_id, **filters)


async def create_application(
    session: AsyncSession,
    tenant_id: str,
    application_type: ApplicationType,
    operator_id: str,
    aircraft_id: str,
    flight_details: FlightDetails,
    requested_start_date: date,
    requested_end_date: date,
    seat_count: int,
    mtow_kg: Number,
    events_dispatcher: Optional[EventDispatcher] = None,
) -> Application:
    """Create a Draft application priced with the tenant's permit fee policy."""
    policy = await permit_fee_policy_for(session, tenant_id)
    quote = calculate_permit_fee(application_type, seat_count, mtow_kg, policy)
    app = Application.create(
        tenant_id=tenant_id,
        application_type=application_type,
        operator_id=operator_id,
        aircraft_id=aircraft_id,
        flight_details=flight_details,
        requested_start_date=requested_start_date,
        requested_end_date=requested_end_date,
        calculated_fee=Money(quote.total_fee, quote.currency),
    )
    await ApplicationRepository(session).add(app)
    await _commit_and_publish(session, app, events_dispatcher)
    logger.info(
        "Created application %s for operator %s, fee %s (%s)",
        app.application_number, operator_id, app.calculated_fee, quote.policy_source,
    )
    return app


async def update_draft(
    session: AsyncSession,
    tenant_id: str,
    application_id: str,
    flight_details: Optional[FlightDetails] = None,
    requested_start_date: Optional[date] = None,
    requested_end_date: Optional[date] = None,
    calculated_fee: Optional[Money] = None,
) -> Application:
    def action(app: Application) -> None:
        if flight_details is not None:
            app.update_flight_details(flight_details)
        if requested_start_date is not None or requested_end_date is not None:
            app.update_requested_period(
                requested_start_date or app.requested_start_date,
                requested_end_date or app.requested_end_date,
            )
        if calculated_fee is not None:
            app.update_calculated_fee(calculated_fee)

    app, _ = await _apply(session, tenant_id, application_id, "Update draft", action)
    return app


async def upload_document(
    session: AsyncSession,
    tenant_id: str,
    application_id: str,
    document_type: DocumentType,
    file_name: str,
    data: bytes,
    mime_type: str,
    uploaded_by: str,
    expiry_date: Optional[date] = None,
    store: Optional[DocumentStore] = None,
    events_dispatcher: Optional[EventDispatcher] = None,
) -> Document:
    """Store the file, then attach it. The blob of a replaced document is removed once the commit succeeds."""
    store = store or get_document_store()
    locator = await run_in_threadpool(store.store, data, file_name, mime_type)
    try:
        document = Document.create(
            document_type=document_type,
            file_name=file_name,
            file_size=len(data),
            mime_type=mime_type,
            locator=locator,
            uploaded_by=uploaded_by,
            expiry_date=expiry_date,
        )
        _, replaced = await _apply(
            session, tenant_id, application_id, "Upload document",
            lambda app: app.add_document(document), events_dispatcher,
        )
    except Exception:
        await run_in_threadpool(store.delete, locator)
        raise
    if replaced is not None:
        await run_in_threadpool(store.delete, replaced.locator)
    return document


async def submit_application(session: AsyncSession, tenant_id: str, application_id: str) -> Application:
    app, _ = await _apply(session, tenant_id, application_id, "Submit", lambda a: a.submit())
    return app


async def start_review(session: AsyncSession, tenant_id: str, application_id: str, reviewer: str) -> Application:
    app, _ = await _apply(session, tenant_id, application_id, "Start review", lambda a: a.start_review(reviewer))
    return app


async def verify_document(
    session: AsyncSession,
    tenant_id: str,
    application_id: str,
    document_id: str,
    verified_by: str,
    events_dispatcher: Optional[EventDispatcher] = None,
) -> Document:
    """
    Verify a document. An expired document leaves the application unchanged;
    DocumentVerificationFailedDueToExpiry is published and the error re-raised.
    """
    repo = ApplicationRepository(session)
    app = await repo.get(tenant_id, application_id)
    now = datetime.now(timezone.utc)
    try:
        document = app.verify_document(
            document_id, verified_by, now=now, warning_days=settings.document_expiry_warning_days
        )
    except DocumentExpiredError as exc:
        logger.warning("Verification of document %s on %s refused: %s", document_id, app.application_number, exc)
        failed = app.find_document(document_id)
        _publish([ev.DocumentVerificationFailedDueToExpiry(
            app.id, now,
            document_id=failed.id,
            document_type=failed.document_type,
            expiry_date=failed.expiry_date,
            attempted_by=verified_by,
        )], events_dispatcher)
        raise
    except PermitError as exc:
        logger.warning("Verify document rejected for application %s: %s", application_id, exc)
        raise
    await repo.save(app)
    await _commit_and_publish(session, app, events_dispatcher)
    logger.info("Verified %s document on %s", document.document_type.value, app.application_number)
    return document


async def reject_document(
    session: AsyncSession, tenant_id: str, application_id: str, document_id: str, reason: str, rejected_by: str
) -> Document:
    _, document = await _apply(
        session, tenant_id, application_id, "Reject document",
        lambda a: a.reject_document(document_id, reason, rejected_by),
    )
    return document


async def expire_documents(
    session: AsyncSession, tenant_id: str, application_id: str, as_of: Optional[date] = None
) -> list[Document]:
    _, expired = await _apply(
        session, tenant_id, application_id, "Expire documents", lambda a: a.mark_expired_documents(as_of)
    )
    return expired


async def request_payment(
    session: AsyncSession, tenant_id: str, application_id: str, method: PaymentMethod
) -> Application:
    app, _ = await _apply(
        session, tenant_id, application_id, "Request payment", lambda a: a.request_payment(PaymentMethod(method))
    )
    return app


async def record_payment_outcome(
    session: AsyncSession,
    tenant_id: str,
    application_id: str,
    outcome: str,
    transaction_reference: Optional[str] = None,
    receipt_number: Optional[str] = None,
    receipt_url: Optional[str] = None,
    reason: Optional[str] = None,
    actor: Optional[str] = None,
    notes: Optional[str] = None,
) -> Application:
    """
    Apply a payment processor or finance officer outcome:
    processing, completed, failed, refunded or verified.
    """
    actions: dict[str, Callable[[Application], None]] = {
        "processing": lambda a: a.mark_payment_processing(),
        "completed": lambda a: a.complete_payment(transaction_reference, receipt_number, receipt_url=receipt_url),
        "failed": lambda a: a.fail_payment(reason),
        "refunded": lambda a: a.refund_payment(actor, reason),
        "verified": lambda a: a.verify_payment(actor, notes=notes),
    }
    if outcome not in actions:
        raise InvalidArgumentError(
            f"Unknown payment outcome '{outcome}'; expected one of {', '.join(PAYMENT_OUTCOMES)}", "outcome"
        )
    app, _ = await _apply(session, tenant_id, application_id, f"Payment {outcome}", actions[outcome])
    return app


async def approve_application(
    session: AsyncSession, tenant_id: str, application_id: str, approved_by: str, notes: Optional[str] = None
) -> Application:
    app, _ = await _apply(session, tenant_id, application_id, "Approve", lambda a: a.approve(approved_by, notes))
    return app


async def reject_application(
    session: AsyncSession, tenant_id: str, application_id: str, rejected_by: str, reason: str
) -> Application:
    app, _ = await _apply(session, tenant_id, application_id, "Reject", lambda a: a.reject(rejected_by, reason))
    return app


async def cancel_application(
    session: AsyncSession, tenant_id: str, application_id: str, reason: Optional[str] = None
) -> Application:
    app, _ = await _apply(session, tenant_id, application_id, "Cancel", lambda a: a.cancel(reason))
    return app


async def override_fee(
    session: AsyncSession,
    tenant_id: str,
    application_id: str,
    new_fee: Money,
    justification: str,
    overridden_by: str,
) -> Application:
    app, _ = await _apply(
        session, tenant_id, application_id, "Override fee",
        lambda a: a.override_fee(new_fee, justification, overridden_by),
    )
    return app


async def request_waiver(
    session: AsyncSession,
    tenant_id: str,
    application_id: str,
    waiver_type: WaiverType,
    reason: str,
    requested_by: str,
):
    _, waiver = await _apply(
        session, tenant_id, application_id, "Request waiver",
        lambda a: a.request_waiver(WaiverType(waiver_type), reason, requested_by),
    )
    return waiver


async def approve_waiver(
    session: AsyncSession, tenant_id: str, application_id: str, waiver_id: str, approved_by: str, percentage: Number
):
    _, waiver = await _apply(
        session, tenant_id, application_id, "Approve waiver",
        lambda a: a.approve_waiver(waiver_id, approved_by, percentage),
    )
    return waiver


async def reject_waiver(
    session: AsyncSession, tenant_id: str, application_id: str, waiver_id: str, rejected_by: str, reason: str
):
    _, waiver = await _apply(
        session, tenant_id, application_id, "Reject waiver",
        lambda a: a.reject_waiver(waiver_id, rejected_by, reason),
    )
    return waiver


async def flag_application(
    session: AsyncSession,
    tenant_id: str,
    application_id: str,
    reason: str,
    flagged_by: str,
    events_dispatcher: Optional[EventDispatcher] = None,
) -> Application:
    app, _ = await _apply(
        session, tenant_id, application_id, "Flag", lambda a: a.flag(reason, flagged_by), events_dispatcher
    )
    return app


async def unflag_application(
    session: AsyncSession, tenant_id: str, application_id: str, unflagged_by: str
) -> Application:
    app, _ = await _apply(session, tenant_id, application_id, "Unflag", lambda a: a.unflag(unflagged_by))
    return app
