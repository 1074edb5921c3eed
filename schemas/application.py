from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from domain.enums import ApplicationType, Currency, FlightPurpose, PaymentMethod, WaiverType
from domain.values import FlightDetails, Money


class FlightDetailsSchema(BaseModel):
    purpose: FlightPurpose
    arrival_airport: str = Field(..., alias="arrivalAirport")
    departure_airport: str = Field(..., alias="departureAirport")
    estimated_flight_date: date = Field(..., alias="estimatedFlightDate")
    purpose_description: Optional[str] = Field(None, alias="purposeDescription")
    number_of_passengers: Optional[int] = Field(None, alias="numberOfPassengers")
    cargo_description: Optional[str] = Field(None, alias="cargoDescription")

    model_config = {"populate_by_name": True}

    def to_domain(self) -> FlightDetails:
        return FlightDetails(**self.model_dump(by_alias=False))


class ApplicationCreate(BaseModel):
    application_type: ApplicationType = Field(..., alias="applicationType")
    operator_id: str = Field(..., alias="operatorId")
    aircraft_id: str = Field(..., alias="aircraftId")
    flight_details: FlightDetailsSchema = Field(..., alias="flightDetails")
    requested_start_date: date = Field(..., alias="requestedStartDate")
    requested_end_date: date = Field(..., alias="requestedEndDate")
    # aircraft figures used to price the permit
    seat_count: int = Field(..., alias="seatCount")
    mtow_kg: Decimal = Field(..., alias="mtowKg")

    model_config = {"populate_by_name": True}


class MoneySchema(BaseModel):
    amount: Decimal
    currency: Currency = Currency.USD

    def to_domain(self) -> Money:
        return Money(self.amount, self.currency)


class ApplicationUpdate(BaseModel):
    """Draft edits; omitted fields are left as they are."""

    flight_details: Optional[FlightDetailsSchema] = Field(None, alias="flightDetails")
    requested_start_date: Optional[date] = Field(None, alias="requestedStartDate")
    requested_end_date: Optional[date] = Field(None, alias="requestedEndDate")
    calculated_fee: Optional[MoneySchema] = Field(None, alias="calculatedFee")

    model_config = {"populate_by_name": True}


class ReviewStart(BaseModel):
    reviewer: str


class DocumentVerify(BaseModel):
    verified_by: str = Field(..., alias="verifiedBy")

    model_config = {"populate_by_name": True}


class DocumentReject(BaseModel):
    reason: str
    rejected_by: str = Field(..., alias="rejectedBy")

    model_config = {"populate_by_name": True}


class ExpireDocuments(BaseModel):
    as_of: Optional[date] = Field(None, alias="asOf")

    model_config = {"populate_by_name": True}


class PaymentRequestBody(BaseModel):
    method: PaymentMethod


class PaymentOutcome(BaseModel):
    outcome: Literal["processing", "completed", "failed", "refunded", "verified"]
    transaction_reference: Optional[str] = Field(None, alias="transactionReference")
    receipt_number: Optional[str] = Field(None, alias="receiptNumber")
    receipt_url: Optional[str] = Field(None, alias="receiptUrl")
    reason: Optional[str] = None
    actor: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}


class ApproveBody(BaseModel):
    approved_by: str = Field(..., alias="approvedBy")
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}


class RejectBody(BaseModel):
    rejected_by: str = Field(..., alias="rejectedBy")
    reason: str

    model_config = {"populate_by_name": True}


class CancelBody(BaseModel):
    reason: Optional[str] = None


class FeeOverrideBody(BaseModel):
    new_fee: MoneySchema = Field(..., alias="newFee")
    justification: str
    overridden_by: str = Field(..., alias="overriddenBy")

    model_config = {"populate_by_name": True}


class WaiverRequestBody(BaseModel):
    waiver_type: WaiverType = Field(..., alias="waiverType")
    reason: str
    requested_by: str = Field(..., alias="requestedBy")

    model_config = {"populate_by_name": True}


class WaiverApproveBody(BaseModel):
    approved_by: str = Field(..., alias="approvedBy")
    percentage: Decimal

    model_config = {"populate_by_name": True}


class WaiverRejectBody(BaseModel):
    rejected_by: str = Field(..., alias="rejectedBy")
    reason: str

    model_config = {"populate_by_name": True}


class FlagBody(BaseModel):
    reason: str
    flagged_by: str = Field(..., alias="flaggedBy")

    model_config = {"populate_by_name": True}


class UnflagBody(BaseModel):
    unflagged_by: str = Field(..., alias="unflaggedBy")

    model_config = {"populate_by_name": True}
