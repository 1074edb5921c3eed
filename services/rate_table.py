"""
Effective-dated airport tariff reference table.

FeeRateTable is an append-only list of FeeRate entries indexed by category. Entries are
never removed: a newer entry supersedes an older one by closing its effective window,
and an entry can be deactivated outright.
"""
from __future__ import annotations

import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, Optional

from domain.enums import Airport, Currency, ExtendedOperationsBand, FeeCategory, FlightOperationType, MtowTier
from domain.exceptions import FeeRateNotFoundError, InvalidArgumentError
from domain.values import to_decimal


@dataclass(eq=False)
class FeeRate:
    category: FeeCategory
    rate: Decimal
    effective_from: date
    operation_type: Optional[FlightOperationType] = None
    airport: Optional[Airport] = None
    mtow_tier: Optional[MtowTier] = None
    time_band: Optional[ExtendedOperationsBand] = None
    is_per_unit: bool = False
    unit_description: Optional[str] = None
    minimum_fee: Optional[Decimal] = None
    effective_to: Optional[date] = None
    is_active: bool = True
    currency: Currency = Currency.USD
    description: Optional[str] = None
    tenant_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        self.category = FeeCategory(self.category)
        self.currency = Currency(self.currency)
        self.rate = to_decimal(self.rate, "rate")
        if self.rate < 0:
            raise InvalidArgumentError("Rate cannot be negative", "rate")
        if self.minimum_fee is not None:
            self.minimum_fee = to_decimal(self.minimum_fee, "minimum_fee")
            if self.minimum_fee < 0:
                raise InvalidArgumentError("Minimum fee cannot be negative", "minimum_fee")
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise InvalidArgumentError("Effective to date must be on or after effective from date", "effective_to")

    def is_effective_on(self, as_of: date) -> bool:
        return (
            self.is_active
            and self.effective_from <= as_of
            and (self.effective_to is None or as_of <= self.effective_to)
        )

    def close(self, effective_to: date) -> None:
        """End the effective window; the entry stays available for earlier dates."""
        if effective_to < self.effective_from:
            raise InvalidArgumentError("Effective to date must be on or after effective from date", "effective_to")
        self.effective_to = effective_to

    def deactivate(self, effective_to: Optional[date] = None) -> None:
        if not self.is_active:
            raise InvalidArgumentError("Fee rate is already inactive", "is_active")
        if effective_to is not None:
            self.close(effective_to)
        self.is_active = False


def _matches(value, wanted) -> bool:
    """Entry discriminator matches when it equals the wanted value or is unspecified."""
    return value is None or value == wanted


class FeeRateTable:
    """In-memory tariff table with an explicit as-of lookup."""

    def __init__(self, rates: Iterable[FeeRate] = ()):
        self._rates: list[FeeRate] = []
        self._by_category: dict[FeeCategory, list[FeeRate]] = defaultdict(list)
        for rate in rates:
            self.add(rate)

    def __len__(self) -> int:
        return len(self._rates)

    def __iter__(self) -> Iterator[FeeRate]:
        return iter(self._rates)

    def add(self, rate: FeeRate) -> FeeRate:
        self._rates.append(rate)
        self._by_category[rate.category].append(rate)
        return rate

    def get(self, rate_id: str) -> FeeRate:
        for rate in self._rates:
            if rate.id == rate_id:
                return rate
        raise FeeRateNotFoundError(rate_id)

    def find_applicable(
        self,
        category: FeeCategory,
        as_of: date,
        operation_type: Optional[FlightOperationType] = None,
        airport: Optional[Airport] = None,
        mtow_tier: Optional[MtowTier] = None,
        time_band: Optional[ExtendedOperationsBand] = None,
    ) -> Optional[FeeRate]:
        """
        Best entry for a category as of a date, or None.

        Each discriminator on an entry must equal the requested value or be unspecified.
        An entry carrying a discriminator the caller did not ask for never matches.
        Ties prefer a specific operation type, then a specific tier, then a specific
        airport, then the latest effective_from.
        """
        candidates = [
            r for r in self._by_category.get(FeeCategory(category), ())
            if r.is_effective_on(as_of)
            and _matches(r.operation_type, operation_type)
            and _matches(r.airport, airport)
            and _matches(r.mtow_tier, mtow_tier)
            and _matches(r.time_band, time_band)
        ]
        if not candidates:
            return None
        return max(
            candidates,
            key=lambda r: (
                r.operation_type is not None,
                r.mtow_tier is not None,
                r.airport is not None,
                r.effective_from,
            ),
        )

    def supersede(self, rate_id: str, new_rate: FeeRate) -> FeeRate:
        """Add new_rate and close the prior entry the day before new_rate takes effect."""
        prior = self.get(rate_id)
        if new_rate.category != prior.category:
            raise InvalidArgumentError("Superseding rate must have the same category", "category")
        if new_rate.effective_from <= prior.effective_from:
            raise InvalidArgumentError(
                "Superseding rate must take effect after the rate it replaces", "effective_from"
            )
        prior.close(new_rate.effective_from - timedelta(days=1))
        return self.add(new_rate)

    def deactivate(self, rate_id: str, effective_to: Optional[date] = None) -> FeeRate:
        rate = self.get(rate_id)
        rate.deactivate(effective_to)
        return rate

