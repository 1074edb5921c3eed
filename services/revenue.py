"""
Unified fee quote: the permit fee and the airport tariff for the same flight,
with one combined breakdown tagged by source.
"""
from __future__ import annotations

from typing import Optional

from domain.enums import FeeSource
from domain.values import Money, Weight
from schemas.fees import TariffRequest, UnifiedFeeRequest, UnifiedFeeResult
from services.fee_policy import PermitFeePolicy, TariffPolicy
from services.permit_fees import calculate_permit_fee
from services.tariff import calculate_tariff


def calculate_unified_fees(
    request: UnifiedFeeRequest,
    permit_policy: Optional[PermitFeePolicy] = None,
    tariff_policy: Optional[TariffPolicy] = None,
) -> UnifiedFeeResult:
    """MTOW is supplied in kilograms and converted to pounds for the tariff."""
    permit = calculate_permit_fee(request.application_type, request.seat_count, request.mtow_kg, permit_policy)
    mtow_lbs = Weight.kilograms(request.mtow_kg).in_pounds
    tariff = calculate_tariff(
        TariffRequest(
            mtow_lbs=mtow_lbs,
            operation_type=request.operation_type,
            airport=request.airport,
            passenger_count=request.passenger_count,
            parking_hours=request.parking_hours,
            requires_cat_vi_fire=request.requires_cat_vi_fire,
            include_flight_plan_filing=request.include_flight_plan_filing,
            fuel_gallons=request.fuel_gallons,
            scheduled_time=request.scheduled_time,
            lighting_hours=request.lighting_hours,
            is_interisland=request.is_interisland,
            is_departing=request.is_departing,
        ),
        tariff_policy,
    )
    fop_total = Money(permit.total_fee, permit.currency)
    airport_total = Money(tariff.total_fee, tariff.currency)
    grand_total = fop_total + airport_total

    breakdown = [
        item.model_copy(update={"source": FeeSource.FOP}) for item in permit.breakdown
    ] + [
        item.model_copy(update={"source": FeeSource.AIRPORT}) for item in tariff.breakdown
    ]
    return UnifiedFeeResult(
        permit=permit,
        tariff=tariff,
        mtow_lbs=mtow_lbs,
        fop_total=fop_total.amount,
        airport_total=airport_total.amount,
        grand_total=grand_total.amount,
        currency=grand_total.currency,
        breakdown=breakdown,
    )
