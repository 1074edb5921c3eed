"""Discretionary fee waiver requested against an application."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from domain.enums import WaiverStatus, WaiverType
from domain.exceptions import InvalidArgumentError, InvalidTransitionError
from domain.values import Money, Number, require_text, to_decimal


def validate_percentage(percentage: Number) -> Decimal:
    value = to_decimal(percentage, "waiver_percentage")
    if value < 0 or value > 100:
        raise InvalidArgumentError("Waiver percentage must be between 0 and 100", "waiver_percentage")
    return value


@dataclass(eq=False)
class Waiver:
    id: str
    waiver_type: WaiverType
    reason: str
    requested_by: str
    requested_at: datetime
    status: WaiverStatus = WaiverStatus.PENDING
    waived_amount: Optional[Money] = None
    waiver_percentage: Optional[Decimal] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, waiver_type: WaiverType, reason: str, requested_by: str, now: datetime) -> "Waiver":
        return cls(
            id=str(uuid.uuid4()),
            waiver_type=WaiverType(waiver_type),
            reason=require_text(reason, "reason", "Reason"),
            requested_by=require_text(requested_by, "requested_by", "Requested by"),
            requested_at=now,
            updated_at=now,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == WaiverStatus.PENDING

    def approve(self, approved_by: str, waived_amount: Money, percentage: Number, now: datetime) -> None:
        if not self.is_pending:
            raise InvalidTransitionError("approve waiver", [WaiverStatus.PENDING], self.status)
        approved_by = require_text(approved_by, "approved_by", "Approved by")
        percentage = validate_percentage(percentage)
        self.status = WaiverStatus.APPROVED
        self.approved_by = approved_by
        self.approved_at = now
        self.waived_amount = waived_amount
        self.waiver_percentage = percentage
        self.updated_at = now

    def reject(self, rejected_by: str, reason: str, now: datetime) -> None:
        if not self.is_pending:
            raise InvalidTransitionError("reject waiver", [WaiverStatus.PENDING], self.status)
        rejected_by = require_text(rejected_by, "rejected_by", "Rejected by")
        reason = require_text(reason, "reason", "Rejection reason")
        self.status = WaiverStatus.REJECTED
        self.rejected_by = rejected_by
        self.rejected_at = now
        self.rejection_reason = reason
        self.updated_at = now
