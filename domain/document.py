"""Compliance document attached to an application, one per document type."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from domain.enums import DocumentStatus, DocumentType
from domain.exceptions import DocumentExpiredError, InvalidArgumentError
from domain.values import require_text

DEFAULT_EXPIRY_WARNING_DAYS = 30


@dataclass(eq=False)
class Document:
    id: str
    document_type: DocumentType
    file_name: str
    file_size: int
    mime_type: str
    locator: str
    uploaded_by: str
    uploaded_at: datetime
    status: DocumentStatus = DocumentStatus.PENDING
    expiry_date: Optional[date] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        document_type: DocumentType,
        file_name: str,
        file_size: int,
        mime_type: str,
        locator: str,
        uploaded_by: str,
        expiry_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> "Document":
        now = now or datetime.now(timezone.utc)
        if file_size is None or file_size <= 0:
            raise InvalidArgumentError("File size must be positive", "file_size")
        return cls(
            id=str(uuid.uuid4()),
            document_type=DocumentType(document_type),
            file_name=require_text(file_name, "file_name", "File name"),
            file_size=int(file_size),
            mime_type=require_text(mime_type, "mime_type", "MIME type"),
            locator=require_text(locator, "locator", "Document locator"),
            uploaded_by=require_text(uploaded_by, "uploaded_by", "Uploaded by"),
            uploaded_at=now,
            expiry_date=expiry_date,
            updated_at=now,
        )

    def is_expired(self, as_of: date) -> bool:
        """A document expiring today is still valid."""
        return self.expiry_date is not None and as_of > self.expiry_date

    def is_expiring_soon(self, as_of: date, warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS) -> bool:
        return (
            self.expiry_date is not None
            and not self.is_expired(as_of)
            and self.expiry_date <= as_of + timedelta(days=warning_days)
        )

    def days_until_expiry(self, as_of: date) -> Optional[int]:
        if self.expiry_date is None:
            return None
        return (self.expiry_date - as_of).days

    @property
    def is_verified(self) -> bool:
        return self.status == DocumentStatus.VERIFIED

    def verify(self, verified_by: str, now: datetime) -> None:
        verified_by = require_text(verified_by, "verified_by", "Verified by")
        if self.is_expired(now.date()):
            raise DocumentExpiredError(self.document_type, self.expiry_date, now.date())
        self.status = DocumentStatus.VERIFIED
        self.verified_at = now
        self.verified_by = verified_by
        self.rejection_reason = None
        self.updated_at = now

    def reject(self, reason: str, rejected_by: str, now: datetime) -> None:
        reason = require_text(reason, "reason", "Rejection reason")
        rejected_by = require_text(rejected_by, "rejected_by", "Rejected by")
        self.status = DocumentStatus.REJECTED
        self.rejection_reason = reason
        # the reviewer is recorded in the verifier fields for both outcomes
        self.verified_at = now
        self.verified_by = rejected_by
        self.updated_at = now

    def mark_expired(self, now: datetime) -> None:
        self.status = DocumentStatus.EXPIRED
        self.updated_at = now
