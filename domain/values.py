"""
Immutable value objects: Money, Weight, FlightDetails, and the MTOW tier bands.
All validation happens at construction; invalid input raises InvalidArgumentError.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from domain.enums import Currency, FlightPurpose, MtowTier
from domain.exceptions import InvalidArgumentError

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
KG_TO_LBS = Decimal("2.20462")

# Upper bounds (inclusive) of the first three MTOW tiers, in pounds.
TIER1_MAX_LBS = Decimal("12500")
TIER2_MAX_LBS = Decimal("75000")
TIER3_MAX_LBS = Decimal("100000")


def to_decimal(value: Number, field: str = "value") -> Decimal:
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidArgumentError(f"{field} is not a number: {value!r}", field) from exc
    if not result.is_finite():
        raise InvalidArgumentError(f"{field} must be finite", field)
    return result


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class Money:
    """
    Non-negative amount in a single currency, held to the cent.

    Usage:
        fee = Money("150.00")                 # USD by default
        total = fee + Money(25, Currency.USD)
        half = total * Decimal("0.5")
    """
    amount: Decimal
    currency: Currency = Currency.USD

    def __post_init__(self):
        amount = to_decimal(self.amount, "amount")
        if amount < 0:
            raise InvalidArgumentError("Amount cannot be negative", "amount")
        try:
            currency = Currency(self.currency)
        except ValueError as exc:
            raise InvalidArgumentError(f"Unsupported currency: {self.currency!r}", "currency") from exc
        # frozen dataclass
        object.__setattr__(self, "amount", round_cents(amount))
        object.__setattr__(self, "currency", currency)

    @classmethod
    def zero(cls, currency: Currency = Currency.USD) -> "Money":
        return cls(Decimal("0"), currency)

    @classmethod
    def usd(cls, amount: Number) -> "Money":
        return cls(to_decimal(amount, "amount"), Currency.USD)

    def _ensure_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise InvalidArgumentError(
                f"Cannot combine {self.currency.value} with {other.currency.value}", "currency"
            )

    def __add__(self, other: "Money") -> "Money":
        self._ensure_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._ensure_same_currency(other)
        result = self.amount - other.amount
        if result < 0:
            raise InvalidArgumentError("Result cannot be negative", "amount")
        return Money(result, self.currency)

    def multiply(self, factor: Number) -> "Money":
        factor = to_decimal(factor, "factor")
        if factor < 0:
            raise InvalidArgumentError("Factor cannot be negative", "factor")
        return Money(self.amount * factor, self.currency)

    def __mul__(self, factor: Number) -> "Money":
        return self.multiply(factor)

    def __rmul__(self, factor: Number) -> "Money":
        return self.multiply(factor)

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency.value}"

    def to_dict(self) -> dict:
        return {"amount": str(self.amount), "currency": self.currency.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Money":
        return cls(Decimal(data["amount"]), Currency(data["currency"]))


class WeightUnit(str, Enum):
    KG = "KG"
    LBS = "LBS"


@dataclass(frozen=True)
class Weight:
    value: Decimal
    unit: WeightUnit = WeightUnit.KG

    def __post_init__(self):
        value = to_decimal(self.value, "weight")
        if value < 0:
            raise InvalidArgumentError("Weight cannot be negative", "weight")
        object.__setattr__(self, "value", round_cents(value))
        object.__setattr__(self, "unit", WeightUnit(self.unit))

    @classmethod
    def kilograms(cls, value: Number) -> "Weight":
        return cls(to_decimal(value, "weight"), WeightUnit.KG)

    @classmethod
    def pounds(cls, value: Number) -> "Weight":
        return cls(to_decimal(value, "weight"), WeightUnit.LBS)

    @property
    def in_pounds(self) -> Decimal:
        if self.unit == WeightUnit.LBS:
            return self.value
        return round_cents(self.value * KG_TO_LBS)

    @property
    def in_kilograms(self) -> Decimal:
        if self.unit == WeightUnit.KG:
            return self.value
        return round_cents(self.value / KG_TO_LBS)

    def __str__(self) -> str:
        return f"{self.value:.2f} {self.unit.value}"


def mtow_tier_for_pounds(weight_lbs: Number) -> MtowTier:
    """Classify a maximum take-off weight (lb) into its tariff tier."""
    weight = to_decimal(weight_lbs, "mtow_lbs")
    if weight < 0:
        raise InvalidArgumentError("MTOW cannot be negative", "mtow_lbs")
    if weight <= TIER1_MAX_LBS:
        return MtowTier.TIER1
    if weight <= TIER2_MAX_LBS:
        return MtowTier.TIER2
    if weight <= TIER3_MAX_LBS:
        return MtowTier.TIER3
    return MtowTier.TIER4


def require_text(value: Optional[str], field: str, label: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{label} is required", field)
    return str(value).strip()


@dataclass(frozen=True)
class FlightDetails:
    purpose: FlightPurpose
    arrival_airport: str
    departure_airport: str
    estimated_flight_date: date
    purpose_description: Optional[str] = None
    number_of_passengers: Optional[int] = None
    cargo_description: Optional[str] = None

    def __post_init__(self):
        purpose = FlightPurpose(self.purpose)
        arrival = require_text(self.arrival_airport, "arrival_airport", "Arrival airport").upper()
        departure = require_text(self.departure_airport, "departure_airport", "Departure airport").upper()
        description = self.purpose_description.strip() if self.purpose_description else None
        if purpose == FlightPurpose.OTHER and not description:
            raise InvalidArgumentError(
                "Purpose description is required for 'Other' purpose", "purpose_description"
            )
        if self.number_of_passengers is not None and self.number_of_passengers < 0:
            raise InvalidArgumentError("Number of passengers cannot be negative", "number_of_passengers")
        object.__setattr__(self, "purpose", purpose)
        object.__setattr__(self, "arrival_airport", arrival)
        object.__setattr__(self, "departure_airport", departure)
        object.__setattr__(self, "purpose_description", description)
        object.__setattr__(
            self, "cargo_description", self.cargo_description.strip() if self.cargo_description else None
        )

    def to_dict(self) -> dict:
        return {
            "purpose": self.purpose.value,
            "arrival_airport": self.arrival_airport,
            "departure_airport": self.departure_airport,
            "estimated_flight_date": self.estimated_flight_date.isoformat(),
            "purpose_description": self.purpose_description,
            "number_of_passengers": self.number_of_passengers,
            "cargo_description": self.cargo_description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FlightDetails":
        return cls(
            purpose=FlightPurpose(data["purpose"]),
            arrival_airport=data["arrival_airport"],
            departure_airport=data["departure_airport"],
            estimated_flight_date=date.fromisoformat(data["estimated_flight_date"]),
            purpose_description=data.get("purpose_description"),
            number_of_passengers=data.get("number_of_passengers"),
            cargo_description=data.get("cargo_description"),
        )
