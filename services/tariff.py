"""
Airport tariff schedule and late-payment interest.

calculate_tariff itemises every charge for one movement (landing, navigation, parking,
passenger, extended operations and the requested add-ons). calculate_interest accrues
interest on an overdue principal. Both are pure: same inputs, same result.
"""
from __future__ import annotations

from decimal import ROUND_CEILING, Decimal
from typing import Optional

from domain.enums import EXEMPT_OPERATION_TYPES, ExtendedOperationsBand, FeeCategory, FeeSource, MtowTier
from domain.exceptions import InvalidArgumentError
from domain.values import Money, mtow_tier_for_pounds, to_decimal
from schemas.fees import FeeBreakdownItemSchema, InterestResult, TariffRequest, TariffResult
from services.fee_policy import DefaultTariffPolicy, TariffPolicy, extended_operations_band

THOUSAND = Decimal("1000")
PARKING_BLOCK_HOURS = 8
INTEREST_GRACE_DAYS = 30
INTEREST_PERIOD_DAYS = Decimal("30")

_default_policy = DefaultTariffPolicy()


def _ceil(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_CEILING)


def landing_fee(mtow_lbs: Decimal, operation_type, tier: MtowTier, policy: TariffPolicy) -> Money:
    """Rate per started 1,000 lb, clamped to the operation type's minimum. Exempt types pay nothing."""
    if operation_type in EXEMPT_OPERATION_TYPES:
        return Money.zero(policy.currency)
    units = _ceil(mtow_lbs / THOUSAND)
    calculated = units * policy.landing_rate(operation_type, tier)
    minimum = policy.minimum_landing_fee(operation_type, tier)
    return Money(max(calculated, minimum), policy.currency)


def parking_blocks(hours: int) -> int:
    if hours is None or hours <= 0:
        return 0
    return -(-hours // PARKING_BLOCK_HOURS)


def parking_fee(landing: Money, blocks: int, policy: TariffPolicy) -> Money:
    if blocks <= 0:
        return Money.zero(landing.currency)
    return landing.multiply(policy.parking_percentage()).multiply(blocks)


def calculate_tariff(request: TariffRequest, policy: Optional[TariffPolicy] = None) -> TariffResult:
    """
    Compute the itemised airport tariff.

    Negative MTOW or fuel raise InvalidArgumentError. Zero or negative passenger,
    parking and lighting figures contribute nothing. The extended-operations charge
    is derived from scheduled_time whenever one is given.
    """
    policy = policy or _default_policy
    currency = policy.currency
    mtow_lbs = to_decimal(request.mtow_lbs, "mtow_lbs")
    if mtow_lbs < 0:
        raise InvalidArgumentError("MTOW cannot be negative", "mtow_lbs")
    fuel_gallons = to_decimal(request.fuel_gallons or 0, "fuel_gallons")
    if fuel_gallons < 0:
        raise InvalidArgumentError("Fuel gallons cannot be negative", "fuel_gallons")

    tier = mtow_tier_for_pounds(mtow_lbs)
    op = request.operation_type
    items: list[tuple[FeeCategory, str, Money]] = []

    landing = landing_fee(mtow_lbs, op, tier, policy)
    items.append((FeeCategory.LANDING, f"Landing Fee ({tier.value}, {op.value})", landing))

    navigation = Money(policy.navigation_fee(tier), currency)
    items.append((FeeCategory.NAVIGATION, f"Navigation/Communication Fee ({tier.value})", navigation))

    if request.requires_cat_vi_fire:
        items.append((FeeCategory.CAT_VI_FIRE_UPGRADE, "CAT-VI Fire Upgrade", Money(policy.cat_vi_fire_fee(), currency)))

    blocks = parking_blocks(request.parking_hours)
    if blocks:
        items.append((
            FeeCategory.PARKING,
            f"Parking/Ramp Fee ({blocks} x 8-hour blocks)",
            parking_fee(landing, blocks, policy),
        ))

    pax = request.passenger_count or 0
    if pax > 0:
        development = policy.airport_development_fee(request.airport, request.is_interisland)
        security = policy.security_charge()
        items.append((
            FeeCategory.AIRPORT_DEVELOPMENT,
            f"Airport Development Fee ({pax} pax x ${development:.2f})",
            Money(pax * development, currency),
        ))
        items.append((
            FeeCategory.SECURITY,
            f"Security Charge ({pax} pax x ${security:.2f})",
            Money(pax * security, currency),
        ))
        if request.is_departing:
            screening = policy.hold_baggage_screening_fee()
            items.append((
                FeeCategory.HOLD_BAGGAGE_SCREENING,
                f"Hold Baggage Screening ({pax} pax x ${screening:.2f})",
                Money(pax * screening, currency),
            ))

    band: Optional[ExtendedOperationsBand] = None
    if request.scheduled_time is not None:
        band = extended_operations_band(request.scheduled_time)
        items.append((
            FeeCategory.EXTENDED_OPERATIONS,
            f"Extended Operations Fee ({band.value}, {request.scheduled_time:%H:%M})",
            Money(policy.extended_operations_fee(band), currency),
        ))

    if request.lighting_hours and request.lighting_hours > 0:
        rate = policy.lighting_per_hour()
        items.append((
            FeeCategory.LIGHTING,
            f"Lighting Fee ({request.lighting_hours} hours x ${rate:.2f})",
            Money(request.lighting_hours * rate, currency),
        ))

    if request.include_flight_plan_filing:
        items.append((
            FeeCategory.FLIGHT_PLAN_FILING, "Flight Plan Filing Fee", Money(policy.flight_plan_filing_fee(), currency)
        ))

    if fuel_gallons > 0:
        rate = policy.fuel_flow_per_gallon()
        items.append((
            FeeCategory.FUEL_FLOW,
            f"Fuel Flow Fee ({fuel_gallons:,.0f} gallons x ${rate:.2f})",
            Money(fuel_gallons * rate, currency),
        ))

    always_listed = (FeeCategory.LANDING, FeeCategory.NAVIGATION)
    breakdown = [
        FeeBreakdownItemSchema(category=category, description=description, amount=amount.amount, source=FeeSource.AIRPORT)
        for category, description, amount in items
        if category in always_listed or not amount.is_zero()
    ]
    total = Money.zero(currency)
    for _, _, amount in items:
        total = total + amount

    return TariffResult(
        total_fee=total.amount,
        landing_fee=landing.amount,
        navigation_fee=navigation.amount,
        mtow_tier=tier,
        extended_operations_band=band,
        currency=currency,
        breakdown=breakdown,
        policy_source=policy.source,
    )


def calculate_interest(
    principal: Money, days_overdue: int, policy: Optional[TariffPolicy] = None
) -> InterestResult:
    """
    Late-payment interest: nothing within the 30-day grace period, then the monthly
    rate pro-rated per day beyond it (45 days -> half a period). Keeps the principal's currency.
    """
    if days_overdue is None or days_overdue < 0:
        raise InvalidArgumentError("Days overdue cannot be negative", "days_overdue")
    policy = policy or _default_policy
    rate = policy.late_payment_interest_rate()
    if days_overdue <= INTEREST_GRACE_DAYS:
        periods = Decimal("0")
        interest = Money.zero(principal.currency)
    else:
        periods = Decimal(days_overdue - INTEREST_GRACE_DAYS) / INTEREST_PERIOD_DAYS
        interest = Money(principal.amount * rate * periods, principal.currency)
    return InterestResult(
        principal=principal.amount,
        days_overdue=days_overdue,
        monthly_rate=rate,
        periods=periods.quantize(Decimal("0.0001")),
        interest=interest.amount,
        currency=principal.currency,
    )
