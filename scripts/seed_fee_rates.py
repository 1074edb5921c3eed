"""
Seed a tenant's rate table with the published airport tariff and a default fee configuration.
Run: python -m scripts.seed_fee_rates [tenant_id] [effective_from YYYY-MM-DD] (from the project root).
"""
import asyncio
import os
import sys
import uuid
from datetime import date

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from config import settings
from database import AsyncSessionLocal, init_db
from domain.enums import ExtendedOperationsBand, FeeCategory, FlightOperationType
from models import FeeConfigurationRecord, FeeRateRecord
from services.fee_policy import (
    AIRPORT_DEVELOPMENT_FEES,
    CAT_VI_FIRE_FEE,
    EXTENDED_OPERATIONS_FEES,
    FLIGHT_PLAN_FILING_FEE,
    FUEL_FLOW_PER_GALLON,
    HOLD_BAGGAGE_SCREENING_FEE,
    INTERISLAND_AIRPORT_DEVELOPMENT_FEE,
    LANDING_RATES,
    LATE_PAYMENT_INTEREST_RATE,
    LIGHTING_PER_HOUR,
    MINIMUM_LANDING_FEES,
    NAVIGATION_FEES,
    PARKING_PERCENTAGE,
    SECURITY_CHARGE,
)
from services.rate_table import FeeRate
from services.repositories import FeeRateRepository

DEFAULT_TENANT = "bvi-airports"


def default_schedule(effective_from: date) -> list[FeeRate]:
    """The published tariff expressed as rate-table entries."""
    rates = []
    for op_type, tiers in LANDING_RATES.items():
        for tier, rate in tiers.items():
            rates.append(FeeRate(
                category=FeeCategory.LANDING,
                operation_type=op_type,
                mtow_tier=tier,
                rate=rate,
                minimum_fee=MINIMUM_LANDING_FEES.get(op_type),
                is_per_unit=True,
                unit_description="per 1,000 lb MTOW",
                effective_from=effective_from,
            ))
    for tier, rate in NAVIGATION_FEES.items():
        rates.append(FeeRate(category=FeeCategory.NAVIGATION, mtow_tier=tier, rate=rate, effective_from=effective_from))
    for airport, rate in AIRPORT_DEVELOPMENT_FEES.items():
        rates.append(FeeRate(
            category=FeeCategory.AIRPORT_DEVELOPMENT,
            airport=airport,
            rate=rate,
            is_per_unit=True,
            unit_description="per passenger",
            effective_from=effective_from,
        ))
    rates.append(FeeRate(
        category=FeeCategory.AIRPORT_DEVELOPMENT,
        operation_type=FlightOperationType.INTERISLAND,
        rate=INTERISLAND_AIRPORT_DEVELOPMENT_FEE,
        is_per_unit=True,
        unit_description="per passenger",
        effective_from=effective_from,
    ))
    for band, rate in EXTENDED_OPERATIONS_FEES.items():
        if band == ExtendedOperationsBand.STANDARD:
            continue
        rates.append(FeeRate(
            category=FeeCategory.EXTENDED_OPERATIONS, time_band=band, rate=rate, effective_from=effective_from
        ))
    flat = [
        (FeeCategory.SECURITY, SECURITY_CHARGE, "per passenger"),
        (FeeCategory.HOLD_BAGGAGE_SCREENING, HOLD_BAGGAGE_SCREENING_FEE, "per departing passenger"),
        (FeeCategory.PARKING, PARKING_PERCENTAGE, "share of landing fee per 8-hour block"),
        (FeeCategory.CAT_VI_FIRE_UPGRADE, CAT_VI_FIRE_FEE, None),
        (FeeCategory.FLIGHT_PLAN_FILING, FLIGHT_PLAN_FILING_FEE, None),
        (FeeCategory.FUEL_FLOW, FUEL_FLOW_PER_GALLON, "per gallon"),
        (FeeCategory.LIGHTING, LIGHTING_PER_HOUR, "per hour"),
        (FeeCategory.LATE_PAYMENT_INTEREST, LATE_PAYMENT_INTEREST_RATE, "per 30 days overdue"),
    ]
    for category, rate, unit in flat:
        rates.append(FeeRate(
            category=category,
            rate=rate,
            is_per_unit=unit is not None,
            unit_description=unit,
            effective_from=effective_from,
        ))
    return rates


async def seed(tenant_id: str = DEFAULT_TENANT, effective_from: date = date(2025, 1, 1)):
    await init_db()
    async with AsyncSessionLocal() as session:
        existing = await session.execute(select(FeeRateRecord.id).where(FeeRateRecord.tenant_id == tenant_id).limit(1))
        if existing.scalar_one_or_none():
            print(f"Tenant {tenant_id} already has fee rates, skipping rate table")
        else:
            repo = FeeRateRepository(session)
            rates = default_schedule(effective_from)
            for rate in rates:
                await repo.add(tenant_id, rate)
            print(f"Seeded {len(rates)} fee rates for {tenant_id}")

        config = await session.execute(
            select(FeeConfigurationRecord.id).where(FeeConfigurationRecord.tenant_id == tenant_id).limit(1)
        )
        if config.scalar_one_or_none():
            print(f"Tenant {tenant_id} already has a fee configuration, skipping")
        else:
            session.add(FeeConfigurationRecord(
                id=f"cfg-{uuid.uuid4().hex[:12]}",
                tenant_id=tenant_id,
                base_fee=settings.permit_base_fee,
                per_seat_fee=settings.permit_per_seat_fee,
                per_kg_fee=settings.permit_per_kg_fee,
                one_time_multiplier=settings.one_time_multiplier,
                blanket_multiplier=settings.blanket_multiplier,
                emergency_multiplier=settings.emergency_multiplier,
                currency=settings.default_currency,
                modified_by="seed",
            ))
            print(f"Seeded fee configuration for {tenant_id}")
        await session.commit()
    print("Seed complete.")


if __name__ == "__main__":
    tenant = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_TENANT
    start = date.fromisoformat(sys.argv[2]) if len(sys.argv) > 2 else date(2025, 1, 1)
    asyncio.run(seed(tenant, start))
