from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from domain.enums import (
    Airport,
    ApplicationType,
    Currency,
    ExtendedOperationsBand,
    FeeCategory,
    FeeSource,
    FlightOperationType,
    MtowTier,
)


class FeeBreakdownItemSchema(BaseModel):
    description: str
    amount: Decimal
    category: Optional[FeeCategory] = None
    source: Optional[FeeSource] = None


class PermitFeeRequest(BaseModel):
    application_type: ApplicationType = Field(..., alias="applicationType")
    seat_count: int = Field(..., alias="seatCount")
    mtow_kg: Decimal = Field(..., alias="mtowKg")

    model_config = {"populate_by_name": True}


class PermitFeeResult(BaseModel):
    application_type: ApplicationType
    base_fee: Decimal
    seat_fee: Decimal
    weight_fee: Decimal
    subtotal: Decimal
    multiplier: Decimal
    total_fee: Decimal
    currency: Currency
    breakdown: list[FeeBreakdownItemSchema] = Field(default_factory=list)
    policy_source: Optional[str] = None


class TariffRequest(BaseModel):
    """
    Airport tariff inputs. Bounds are checked by the calculator so that negative
    weights raise a domain error while zero or negative counts simply yield no fee.
    """
    mtow_lbs: Decimal = Field(..., alias="mtowLbs")
    operation_type: FlightOperationType = Field(..., alias="operationType")
    airport: Airport = Airport.TUPJ
    passenger_count: int = Field(0, alias="passengerCount")
    parking_hours: int = Field(0, alias="parkingHours")
    requires_cat_vi_fire: bool = Field(False, alias="requiresCatViFire")
    include_flight_plan_filing: bool = Field(False, alias="includeFlightPlanFiling")
    fuel_gallons: Decimal = Field(Decimal("0"), alias="fuelGallons")
    scheduled_time: Optional[time] = Field(None, alias="scheduledTime")
    lighting_hours: int = Field(0, alias="lightingHours")
    is_interisland: bool = Field(False, alias="isInterisland")
    is_departing: bool = Field(True, alias="isDeparting")
    as_of: Optional[date] = Field(None, alias="asOf")

    model_config = {"populate_by_name": True}


class TariffResult(BaseModel):
    total_fee: Decimal
    landing_fee: Decimal
    navigation_fee: Decimal
    mtow_tier: MtowTier
    extended_operations_band: Optional[ExtendedOperationsBand] = None
    currency: Currency
    breakdown: list[FeeBreakdownItemSchema] = Field(default_factory=list)
    policy_source: Optional[str] = None


class InterestRequest(BaseModel):
    principal: Decimal
    days_overdue: int = Field(..., alias="daysOverdue")
    currency: Currency = Currency.USD

    model_config = {"populate_by_name": True}


class InterestResult(BaseModel):
    principal: Decimal
    days_overdue: int
    monthly_rate: Decimal
    periods: Decimal
    interest: Decimal
    currency: Currency


class UnifiedFeeRequest(BaseModel):
    """Permit fee plus airport tariff for one flight, with MTOW given in kilograms."""
    application_type: ApplicationType = Field(..., alias="applicationType")
    seat_count: int = Field(..., alias="seatCount")
    mtow_kg: Decimal = Field(..., alias="mtowKg")
    operation_type: FlightOperationType = Field(..., alias="operationType")
    airport: Airport = Airport.TUPJ
    passenger_count: int = Field(0, alias="passengerCount")
    parking_hours: int = Field(0, alias="parkingHours")
    requires_cat_vi_fire: bool = Field(False, alias="requiresCatViFire")
    include_flight_plan_filing: bool = Field(False, alias="includeFlightPlanFiling")
    fuel_gallons: Decimal = Field(Decimal("0"), alias="fuelGallons")
    scheduled_time: Optional[time] = Field(None, alias="scheduledTime")
    lighting_hours: int = Field(0, alias="lightingHours")
    is_interisland: bool = Field(False, alias="isInterisland")
    is_departing: bool = Field(True, alias="isDeparting")

    model_config = {"populate_by_name": True}


class UnifiedFeeResult(BaseModel):
    permit: PermitFeeResult
    tariff: TariffResult
    mtow_lbs: Decimal
    fop_total: Decimal
    airport_total: Decimal
    grand_total: Decimal
    currency: Currency
    breakdown: list[FeeBreakdownItemSchema] = Field(default_factory=list)


class FeeRateCreate(BaseModel):
    category: FeeCategory
    rate: Decimal
    effective_from: date = Field(..., alias="effectiveFrom")
    effective_to: Optional[date] = Field(None, alias="effectiveTo")
    operation_type: Optional[FlightOperationType] = Field(None, alias="operationType")
    airport: Optional[Airport] = None
    mtow_tier: Optional[MtowTier] = Field(None, alias="mtowTier")
    time_band: Optional[ExtendedOperationsBand] = Field(None, alias="timeBand")
    is_per_unit: bool = Field(False, alias="isPerUnit")
    unit_description: Optional[str] = Field(None, alias="unitDescription")
    minimum_fee: Optional[Decimal] = Field(None, alias="minimumFee")
    currency: Currency = Currency.USD
    description: Optional[str] = None
    supersedes_id: Optional[str] = Field(None, alias="supersedesId")

    model_config = {"populate_by_name": True}
