"""
Rate sources for the fee engine.

PermitFeePolicy carries the permit fee parameters (tenant configuration or settings defaults).
DefaultTariffPolicy holds the published airport tariff; RateTableTariffPolicy reads an
effective-dated FeeRateTable and falls back to the defaults for anything it lacks.
All rates are Decimal; the calculators wrap totals in Money.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional, Protocol

from config import settings
from domain.enums import (
    EXEMPT_OPERATION_TYPES,
    Airport,
    ApplicationType,
    Currency,
    ExtendedOperationsBand,
    FeeCategory,
    FlightOperationType,
    MtowTier,
)
from domain.exceptions import InvalidArgumentError
from domain.values import to_decimal
from services.rate_table import FeeRate, FeeRateTable

DEFAULT_POLICY_SOURCE = "Default Policy"


@dataclass(frozen=True)
class PermitFeePolicy:
    base_fee: Decimal
    per_seat_fee: Decimal
    per_kg_fee: Decimal
    one_time_multiplier: Decimal = Decimal("1.0")
    blanket_multiplier: Decimal = Decimal("2.5")
    emergency_multiplier: Decimal = Decimal("0.5")
    currency: Currency = Currency.USD
    source: str = DEFAULT_POLICY_SOURCE

    def __post_init__(self):
        for name in ("base_fee", "per_seat_fee", "per_kg_fee"):
            value = to_decimal(getattr(self, name), name)
            if value < 0:
                raise InvalidArgumentError(f"{name} cannot be negative", name)
            object.__setattr__(self, name, value)
        for name in ("one_time_multiplier", "blanket_multiplier", "emergency_multiplier"):
            value = to_decimal(getattr(self, name), name)
            if value <= 0:
                raise InvalidArgumentError(f"{name} must be positive", name)
            object.__setattr__(self, name, value)
        object.__setattr__(self, "currency", Currency(self.currency))

    def multiplier_for(self, application_type: ApplicationType) -> Decimal:
        return {
            ApplicationType.ONE_TIME: self.one_time_multiplier,
            ApplicationType.BLANKET: self.blanket_multiplier,
            ApplicationType.EMERGENCY: self.emergency_multiplier,
        }[ApplicationType(application_type)]

    @classmethod
    def default(cls) -> "PermitFeePolicy":
        """Defaults from settings (150 base, 10 per seat, 0.02 per kg unless overridden in .env)."""
        return cls(
            base_fee=settings.permit_base_fee,
            per_seat_fee=settings.permit_per_seat_fee,
            per_kg_fee=settings.permit_per_kg_fee,
            one_time_multiplier=settings.one_time_multiplier,
            blanket_multiplier=settings.blanket_multiplier,
            emergency_multiplier=settings.emergency_multiplier,
            currency=Currency(settings.default_currency),
        )

    @classmethod
    def from_configuration(cls, config) -> "PermitFeePolicy":
        """Build from a tenant FeeConfiguration row; None falls back to the defaults."""
        if config is None:
            return cls.default()
        updated = config.updated_at.strftime("%Y-%m-%d") if config.updated_at else "n/a"
        return cls(
            base_fee=config.base_fee,
            per_seat_fee=config.per_seat_fee,
            per_kg_fee=config.per_kg_fee,
            one_time_multiplier=config.one_time_multiplier,
            blanket_multiplier=config.blanket_multiplier,
            emergency_multiplier=config.emergency_multiplier,
            currency=Currency(config.currency),
            source=f"Tenant Configuration (ID: {config.id}, Modified: {updated})",
        )


def extended_operations_band(scheduled: time) -> ExtendedOperationsBand:
    """Map a local time of day onto its extended-operations band."""
    hour = scheduled.hour
    if hour < 4:
        return ExtendedOperationsBand.OVERNIGHT
    if hour < 6:
        return ExtendedOperationsBand.EARLY
    if hour >= 22:
        return ExtendedOperationsBand.LATE
    return ExtendedOperationsBand.STANDARD


class TariffPolicy(Protocol):
    currency: Currency

    @property
    def source(self) -> str: ...

    def landing_rate(self, operation_type: FlightOperationType, tier: MtowTier) -> Decimal: ...

    def minimum_landing_fee(self, operation_type: FlightOperationType, tier: MtowTier) -> Decimal: ...

    def navigation_fee(self, tier: MtowTier) -> Decimal: ...

    def airport_development_fee(self, airport: Airport, is_interisland: bool) -> Decimal: ...

    def security_charge(self) -> Decimal: ...

    def hold_baggage_screening_fee(self) -> Decimal: ...

    def parking_percentage(self) -> Decimal: ...

    def cat_vi_fire_fee(self) -> Decimal: ...

    def flight_plan_filing_fee(self) -> Decimal: ...

    def fuel_flow_per_gallon(self) -> Decimal: ...

    def lighting_per_hour(self) -> Decimal: ...

    def late_payment_interest_rate(self) -> Decimal: ...

    def extended_operations_fee(self, band: ExtendedOperationsBand) -> Decimal: ...


D = Decimal

# Rate per started 1,000 lb of MTOW. Interisland uses the local/scheduled schedule.
LANDING_RATES: dict[FlightOperationType, dict[MtowTier, Decimal]] = {
    FlightOperationType.LOCAL_SCHEDULED: {
        MtowTier.TIER1: D("2.50"), MtowTier.TIER2: D("3.00"), MtowTier.TIER3: D("3.50"), MtowTier.TIER4: D("5.00"),
    },
    FlightOperationType.INTERISLAND: {
        MtowTier.TIER1: D("2.50"), MtowTier.TIER2: D("3.00"), MtowTier.TIER3: D("3.50"), MtowTier.TIER4: D("5.00"),
    },
    FlightOperationType.GENERAL_AVIATION: {
        MtowTier.TIER1: D("5.00"), MtowTier.TIER2: D("10.00"), MtowTier.TIER3: D("12.00"), MtowTier.TIER4: D("15.00"),
    },
    FlightOperationType.CHARTER: {
        MtowTier.TIER1: D("5.00"), MtowTier.TIER2: D("10.00"), MtowTier.TIER3: D("12.00"), MtowTier.TIER4: D("15.00"),
    },
}

MINIMUM_LANDING_FEES: dict[FlightOperationType, Decimal] = {
    FlightOperationType.LOCAL_SCHEDULED: D("15.00"),
    FlightOperationType.GENERAL_AVIATION: D("20.00"),
    FlightOperationType.CHARTER: D("20.00"),
    FlightOperationType.INTERISLAND: D("10.00"),
}

NAVIGATION_FEES: dict[MtowTier, Decimal] = {
    MtowTier.TIER1: D("5.00"),
    MtowTier.TIER2: D("10.00"),
    MtowTier.TIER3: D("15.00"),
    MtowTier.TIER4: D("20.00"),
}

AIRPORT_DEVELOPMENT_FEES: dict[Airport, Decimal] = {
    Airport.TUPJ: D("15.00"),
    Airport.TUPW: D("10.00"),
    Airport.TUPY: D("10.00"),
}

EXTENDED_OPERATIONS_FEES: dict[ExtendedOperationsBand, Decimal] = {
    ExtendedOperationsBand.STANDARD: D("0.00"),
    ExtendedOperationsBand.EARLY: D("975.00"),
    ExtendedOperationsBand.LATE: D("1650.00"),
    ExtendedOperationsBand.OVERNIGHT: D("3225.00"),
}

INTERISLAND_AIRPORT_DEVELOPMENT_FEE = D("5.00")
SECURITY_CHARGE = D("5.00")
HOLD_BAGGAGE_SCREENING_FEE = D("7.00")
PARKING_PERCENTAGE = D("0.20")
CAT_VI_FIRE_FEE = D("100.00")
FLIGHT_PLAN_FILING_FEE = D("20.00")
FUEL_FLOW_PER_GALLON = D("0.20")
LIGHTING_PER_HOUR = D("35.00")
LATE_PAYMENT_INTEREST_RATE = D("0.015")  # per 30-day period


class DefaultTariffPolicy:
    """The published airport tariff schedule."""

    currency = Currency.USD

    @property
    def source(self) -> str:
        return DEFAULT_POLICY_SOURCE

    def landing_rate(self, operation_type: FlightOperationType, tier: MtowTier) -> Decimal:
        if operation_type in EXEMPT_OPERATION_TYPES:
            return D("0")
        return LANDING_RATES[operation_type][tier]

    def minimum_landing_fee(self, operation_type: FlightOperationType, tier: MtowTier) -> Decimal:
        return MINIMUM_LANDING_FEES.get(operation_type, D("0"))

    def navigation_fee(self, tier: MtowTier) -> Decimal:
        return NAVIGATION_FEES[tier]

    def airport_development_fee(self, airport: Airport, is_interisland: bool) -> Decimal:
        if is_interisland:
            return INTERISLAND_AIRPORT_DEVELOPMENT_FEE
        return AIRPORT_DEVELOPMENT_FEES[airport]

    def security_charge(self) -> Decimal:
        return SECURITY_CHARGE

    def hold_baggage_screening_fee(self) -> Decimal:
        return HOLD_BAGGAGE_SCREENING_FEE

    def parking_percentage(self) -> Decimal:
        return PARKING_PERCENTAGE

    def cat_vi_fire_fee(self) -> Decimal:
        return CAT_VI_FIRE_FEE

    def flight_plan_filing_fee(self) -> Decimal:
        return FLIGHT_PLAN_FILING_FEE

    def fuel_flow_per_gallon(self) -> Decimal:
        return FUEL_FLOW_PER_GALLON

    def lighting_per_hour(self) -> Decimal:
        return LIGHTING_PER_HOUR

    def late_payment_interest_rate(self) -> Decimal:
        return LATE_PAYMENT_INTEREST_RATE

    def extended_operations_fee(self, band: ExtendedOperationsBand) -> Decimal:
        return EXTENDED_OPERATIONS_FEES[band]


class RateTableTariffPolicy:
    """Tariff read from a FeeRateTable as of a date, falling back per item to another policy."""

    def __init__(
        self,
        table: FeeRateTable,
        as_of: date,
        fallback: Optional[TariffPolicy] = None,
        tenant_id: Optional[str] = None,
    ):
        self.table = table
        self.as_of = as_of
        self.fallback = fallback or DefaultTariffPolicy()
        self.tenant_id = tenant_id
        self.currency = self.fallback.currency

    @property
    def source(self) -> str:
        if len(self.table) == 0:
            return self.fallback.source
        return (
            f"Rate Table (Tenant: {self.tenant_id or 'n/a'}, "
            f"Effective: {self.as_of.isoformat()}, Rates: {len(self.table)})"
        )

    def _find(self, category: FeeCategory, **discriminators) -> Optional[FeeRate]:
        rate = self.table.find_applicable(category, self.as_of, **discriminators)
        if rate is not None and rate.currency != self.currency:
            raise InvalidArgumentError(
                f"{category.value} rate {rate.id} is in {rate.currency.value}; "
                f"the tariff is priced in {self.currency.value}",
                "currency",
            )
        return rate

    def landing_rate(self, operation_type: FlightOperationType, tier: MtowTier) -> Decimal:
        if operation_type in EXEMPT_OPERATION_TYPES:
            return D("0")
        rate = self._find(FeeCategory.LANDING, operation_type=operation_type, mtow_tier=tier)
        return rate.rate if rate else self.fallback.landing_rate(operation_type, tier)

    def minimum_landing_fee(self, operation_type: FlightOperationType, tier: MtowTier) -> Decimal:
        rate = self._find(FeeCategory.LANDING, operation_type=operation_type, mtow_tier=tier)
        if rate is not None and rate.minimum_fee is not None:
            return rate.minimum_fee
        return self.fallback.minimum_landing_fee(operation_type, tier)

    def navigation_fee(self, tier: MtowTier) -> Decimal:
        rate = self._find(FeeCategory.NAVIGATION, mtow_tier=tier)
        return rate.rate if rate else self.fallback.navigation_fee(tier)

    def airport_development_fee(self, airport: Airport, is_interisland: bool) -> Decimal:
        if is_interisland:
            rate = self._find(
                FeeCategory.AIRPORT_DEVELOPMENT, operation_type=FlightOperationType.INTERISLAND, airport=airport
            )
            if rate is not None and rate.operation_type is None:
                # airport rate without the interisland discriminator is the international fee
                rate = None
        else:
            rate = self._find(FeeCategory.AIRPORT_DEVELOPMENT, airport=airport)
        return rate.rate if rate else self.fallback.airport_development_fee(airport, is_interisland)

    def _flat(self, category: FeeCategory, default: Decimal) -> Decimal:
        rate = self._find(category)
        return rate.rate if rate else default

    def security_charge(self) -> Decimal:
        return self._flat(FeeCategory.SECURITY, self.fallback.security_charge())

    def hold_baggage_screening_fee(self) -> Decimal:
        return self._flat(FeeCategory.HOLD_BAGGAGE_SCREENING, self.fallback.hold_baggage_screening_fee())

    def parking_percentage(self) -> Decimal:
        return self._flat(FeeCategory.PARKING, self.fallback.parking_percentage())

    def cat_vi_fire_fee(self) -> Decimal:
        return self._flat(FeeCategory.CAT_VI_FIRE_UPGRADE, self.fallback.cat_vi_fire_fee())

    def flight_plan_filing_fee(self) -> Decimal:
        return self._flat(FeeCategory.FLIGHT_PLAN_FILING, self.fallback.flight_plan_filing_fee())

    def fuel_flow_per_gallon(self) -> Decimal:
        return self._flat(FeeCategory.FUEL_FLOW, self.fallback.fuel_flow_per_gallon())

    def lighting_per_hour(self) -> Decimal:
        return self._flat(FeeCategory.LIGHTING, self.fallback.lighting_per_hour())

    def late_payment_interest_rate(self) -> Decimal:
        return self._flat(FeeCategory.LATE_PAYMENT_INTEREST, self.fallback.late_payment_interest_rate())

    def extended_operations_fee(self, band: ExtendedOperationsBand) -> Decimal:
        if band == ExtendedOperationsBand.STANDARD:
            return D("0")
        rate = self._find(FeeCategory.EXTENDED_OPERATIONS, time_band=band)
        return rate.rate if rate else self.fallback.extended_operations_fee(band)
