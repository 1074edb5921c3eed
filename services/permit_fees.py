"""
Base permit fee: (base + seats x per-seat + MTOW kg x per-kg) x type multiplier.
Pure function; returns the additive components, multiplier and an itemised breakdown.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from domain.enums import ApplicationType, FeeSource
from domain.exceptions import InvalidArgumentError
from domain.values import Money, Number, to_decimal
from schemas.fees import FeeBreakdownItemSchema, PermitFeeRequest, PermitFeeResult
from services.fee_policy import PermitFeePolicy

ONE = Decimal("1")

MULTIPLIER_LABELS = {
    ApplicationType.BLANKET: "Blanket Permit Surcharge",
    ApplicationType.EMERGENCY: "Emergency Discount",
}


def calculate_permit_fee(
    application_type: ApplicationType,
    seat_count: int,
    mtow_kg: Number,
    policy: Optional[PermitFeePolicy] = None,
) -> PermitFeeResult:
    """
    Compute the permit fee for one application.
    Negative seat count or weight raise InvalidArgumentError; zero is allowed.
    """
    application_type = ApplicationType(application_type)
    if seat_count is None or seat_count < 0:
        raise InvalidArgumentError("Seat count cannot be negative", "seat_count")
    mtow_kg = to_decimal(mtow_kg, "mtow_kg")
    if mtow_kg < 0:
        raise InvalidArgumentError("MTOW cannot be negative", "mtow_kg")
    policy = policy or PermitFeePolicy.default()
    currency = policy.currency

    base_fee = Money(policy.base_fee, currency)
    seat_fee = Money(seat_count * policy.per_seat_fee, currency)
    weight_fee = Money(mtow_kg * policy.per_kg_fee, currency)
    subtotal = base_fee + seat_fee + weight_fee
    multiplier = policy.multiplier_for(application_type)
    total = subtotal.multiply(multiplier)

    breakdown = [
        FeeBreakdownItemSchema(description="Base Fee", amount=base_fee.amount, source=FeeSource.FOP),
        FeeBreakdownItemSchema(
            description=f"Seat Fee ({seat_count} seats x ${policy.per_seat_fee:.2f})",
            amount=seat_fee.amount,
            source=FeeSource.FOP,
        ),
        FeeBreakdownItemSchema(
            description=f"Weight Fee ({mtow_kg:.0f} kg x ${policy.per_kg_fee:.4f})",
            amount=weight_fee.amount,
            source=FeeSource.FOP,
        ),
    ]
    if multiplier != ONE:
        # adjustment is shown as a positive amount either way
        adjustment = total - subtotal if multiplier > ONE else subtotal - total
        label = MULTIPLIER_LABELS.get(application_type) or ("Surcharge" if multiplier > ONE else "Discount")
        breakdown.append(
            FeeBreakdownItemSchema(
                description=f"{label} ({multiplier}x)", amount=adjustment.amount, source=FeeSource.FOP
            )
        )

    return PermitFeeResult(
        application_type=application_type,
        base_fee=base_fee.amount,
        seat_fee=seat_fee.amount,
        weight_fee=weight_fee.amount,
        subtotal=subtotal.amount,
        multiplier=multiplier,
        total_fee=total.amount,
        currency=currency,
        breakdown=breakdown,
        policy_source=policy.source,
    )


def quote_permit_fee(request: PermitFeeRequest, policy: Optional[PermitFeePolicy] = None) -> PermitFeeResult:
    return calculate_permit_fee(request.application_type, request.seat_count, request.mtow_kg, policy)
