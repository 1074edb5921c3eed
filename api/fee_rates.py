from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_tenant_id
from database import get_db
from schemas.fees import FeeRateCreate
from services.rate_table import FeeRate
from services.repositories import FeeRateRepository
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/fee-rates", tags=["fee-rates"])


def _rate_to_response(rate: FeeRate) -> dict[str, Any]:
    return dict_keys_to_camel({
        "id": rate.id,
        "category": rate.category,
        "operation_type": rate.operation_type,
        "airport": rate.airport,
        "mtow_tier": rate.mtow_tier,
        "time_band": rate.time_band,
        "rate": rate.rate,
        "currency": rate.currency,
        "is_per_unit": rate.is_per_unit,
        "unit_description": rate.unit_description,
        "minimum_fee": rate.minimum_fee,
        "effective_from": rate.effective_from,
        "effective_to": rate.effective_to,
        "is_active": rate.is_active,
        "description": rate.description,
    })


@router.get("")
async def list_fee_rates(
    include_inactive: bool = False,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    rates = await FeeRateRepository(db).list(tenant_id, include_inactive=include_inactive)
    return [_rate_to_response(r) for r in rates]


@router.post("", status_code=201)
async def create_fee_rate(
    body: FeeRateCreate, tenant_id: str = Depends(get_tenant_id), db: AsyncSession = Depends(get_db)
):
    """Add a rate. With supersedesId the referenced rate is closed the day before this one takes effect."""
    rate = FeeRate(**body.model_dump(by_alias=False, exclude={"supersedes_id"}))
    repo = FeeRateRepository(db)
    if body.supersedes_id:
        rate = await repo.supersede(tenant_id, body.supersedes_id, rate)
    else:
        rate = await repo.add(tenant_id, rate)
    return _rate_to_response(rate)


@router.post("/{rate_id}/deactivate")
async def deactivate_fee_rate(
    rate_id: str,
    effective_to: Optional[date] = None,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _rate_to_response(await FeeRateRepository(db).deactivate(tenant_id, rate_id, effective_to))
